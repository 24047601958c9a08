"""GitHub release tracking shared by the github_repos and github_orgs modules."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import httpx
import structlog

from richard.bot.module import Message, ModuleParam

logger = structlog.get_logger(__name__)

GITHUB_API = "https://api.github.com"
RELEASES_PER_PAGE = 60
MAX_RELEASE_AGE = timedelta(days=10)


def params() -> list[ModuleParam]:
    return [
        ModuleParam("GITHUB_TOKEN", "Github token to make api calls", True),
        ModuleParam(
            "GITHUB_REPOS_0_FULLNAME",
            "Specific github repo to watch. e.g. kubernetes/kubernetes. Can be multiple (0..)",
            False,
        ),
    ]


def github_headers(token: str) -> dict[str, str]:
    return {
        "Authorization": f"token {token}",
        "Accept": "application/vnd.github+json",
    }


@dataclass(frozen=True)
class Release:
    tag_name: str
    name: str
    html_url: str
    published_at: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Release:
        return cls(
            tag_name=str(data["tag_name"]),
            name=str(data.get("name") or data["tag_name"]),
            html_url=str(data.get("html_url") or ""),
            published_at=data.get("published_at"),
        )

    def is_too_old(self, now: Optional[datetime] = None) -> bool:
        if not self.published_at:
            return False
        try:
            published = datetime.fromisoformat(self.published_at.replace("Z", "+00:00"))
        except ValueError:
            return False
        if published.tzinfo is None:
            published = published.replace(tzinfo=timezone.utc)
        now = now or datetime.now(timezone.utc)
        return now - published >= MAX_RELEASE_AGE

    def notification_message(self, project_name: str) -> str:
        return f"👋 Release of [{project_name} {self.name}]({self.html_url})"


class GithubRepo:
    """Release history of one repository; new releases become notifications."""

    def __init__(self, full_name: str, client: httpx.AsyncClient, token: str):
        self.full_name = full_name
        self.client = client
        self.token = token
        self.maintained: Optional[bool] = None
        self.releases: Optional[dict[str, Release]] = None

    async def run(self) -> Optional[list[Message]]:
        logger.debug("checking github repo", repo=self.full_name)
        if self.maintained is None:
            self.maintained = await self.fetch_maintained()
        if self.maintained is None:
            logger.debug("cannot get maintenance details yet", repo=self.full_name)
            return None
        if not self.maintained:
            logger.debug("repo is not maintained, not getting releases", repo=self.full_name)
            return None

        current = await self.fetch_releases()
        if current is None:
            return None

        if self.releases is None:
            logger.debug("initial release mapping", repo=self.full_name, releases=len(current))
            self.releases = {r.tag_name: r for r in current}
            return None

        messages = []
        for release in current:
            if release.tag_name in self.releases:
                continue
            self.releases[release.tag_name] = release
            if not release.is_too_old():
                messages.append(release.notification_message(self.full_name))
        return messages or None

    async def fetch_maintained(self) -> Optional[bool]:
        try:
            resp = await self.client.get(f"{GITHUB_API}/repos/{self.full_name}", headers=github_headers(self.token))
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("cannot read repo", repo=self.full_name, error=f"{type(e).__name__}: {e}")
            return None
        if not isinstance(data, dict):
            logger.error("unexpected repo payload", repo=self.full_name, payload_type=type(data).__name__)
            return None
        return not data.get("fork", False) and not data.get("archived", False)

    async def fetch_releases(self) -> Optional[list[Release]]:
        url = f"{GITHUB_API}/repos/{self.full_name}/releases"
        releases: list[Release] = []
        page = 1
        while True:
            try:
                resp = await self.client.get(
                    url,
                    params={"per_page": RELEASES_PER_PAGE, "page": page},
                    headers=github_headers(self.token),
                )
                resp.raise_for_status()
                items = resp.json()
                batch = [Release.from_api(item) for item in items if not item.get("draft")]
            except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as e:
                logger.error("cannot get releases", repo=self.full_name, error=f"{type(e).__name__}: {e}")
                return None
            releases.extend(batch)
            if len(items) < RELEASES_PER_PAGE:
                break
            page += 1
        logger.debug("release list", repo=self.full_name, count=len(releases))
        return releases
