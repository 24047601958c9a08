from __future__ import annotations

from typing import Optional

import httpx
import structlog

from richard.bot.module import Message, ModuleParam
from richard.config import Environment
from richard.modules import github
from richard.modules.base import HttpModule

logger = structlog.get_logger(__name__)

REPOS_PER_PAGE = 100
ONE_DAY_SECONDS = 24 * 60 * 60

RELEASES_VARIATION = 0
LISTING_VARIATION = 1


class GithubOrg:
    def __init__(self, name: str, client: httpx.AsyncClient, token: str):
        self.name = name
        self.client = client
        self.token = token
        self.repos: dict[str, github.GithubRepo] = {}

    async def run(self) -> list[Message]:
        if not self.repos:
            await self.update_repo_listing()
        messages: list[Message] = []
        for repo in self.repos.values():
            messages.extend(await repo.run() or [])
        return messages

    async def update_repo_listing(self) -> None:
        full_names = await self.fetch_repo_names()
        if full_names is None:
            return
        for full_name in full_names:
            # Known repos keep their release history.
            if full_name not in self.repos:
                self.repos[full_name] = github.GithubRepo(full_name, self.client, self.token)
        logger.debug("org repositories listed", org=self.name, count=len(self.repos))

    async def fetch_repo_names(self) -> Optional[list[str]]:
        url = f"{github.GITHUB_API}/orgs/{self.name}/repos"
        names: list[str] = []
        page = 1
        while True:
            try:
                resp = await self.client.get(
                    url,
                    params={"type": "public", "per_page": REPOS_PER_PAGE, "page": page, "sort": "full_name"},
                    headers=github.github_headers(self.token),
                )
                resp.raise_for_status()
                items = resp.json()
                batch = [str(item["full_name"]) for item in items]
            except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
                logger.error("cannot list org repositories", org=self.name, error=f"{type(e).__name__}: {e}")
                return None
            names.extend(batch)
            if len(items) < REPOS_PER_PAGE:
                break
            page += 1
        return names


class GithubOrgs(HttpModule):
    """Announces new releases of every public repository of some organisations."""

    name = "github_orgs"

    def __init__(self, env: Environment, client: Optional[httpx.AsyncClient] = None):
        super().__init__(env, client)
        token = env.require("GITHUB_TOKEN")
        self.orgs = [GithubOrg(e["NAME"], self.client, token) for e in env.indexed("GITHUB_ORG", "NAME")]
        for org in self.orgs:
            logger.info("github organisation configured", org=org.name)
        if not self.orgs:
            logger.warning("github_orgs module enabled but no configuration provided")

    @classmethod
    def params(cls) -> list[ModuleParam]:
        return [
            ModuleParam("GITHUB_TOKEN", "Github token to make api calls", True),
            ModuleParam("GITHUB_ORG_0_NAME", "Github organisation name, can be multiple (0..)", False),
        ]

    def variation_cooldowns(self) -> list[float]:
        return [3600.0, ONE_DAY_SECONDS]

    async def run_variation(self, index: int) -> Optional[list[Message]]:
        if index == RELEASES_VARIATION:
            messages: list[Message] = []
            for org in self.orgs:
                messages.extend(await org.run())
            return messages or None
        if index == LISTING_VARIATION:
            for org in self.orgs:
                await org.update_repo_listing()
            return None
        logger.error("variation is not managed", variation=index)
        return None
