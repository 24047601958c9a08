from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import feedparser
import httpx
import structlog

from richard.bot.module import Message, ModuleParam
from richard.config import Environment
from richard.modules.base import HttpModule

logger = structlog.get_logger(__name__)


def entry_id(entry: Any) -> Optional[str]:
    return entry.get("id") or entry.get("link") or entry.get("title")


def newest_entry(entries: list[Any]) -> Optional[Any]:
    """Most recently published entry; feed order decides when dates are missing."""
    if not entries:
        return None
    dated = [e for e in entries if e.get("published_parsed")]
    if dated:
        return max(dated, key=lambda e: tuple(e["published_parsed"]))
    return entries[0]


@dataclass
class Feed:
    name: str
    url: str
    latest: Optional[Any] = None

    def update(self, entry: Optional[Any]) -> bool:
        """Store the newest entry; True when it differs from the previous one."""
        changed = self.latest is not None and entry is not None and entry_id(self.latest) != entry_id(entry)
        if entry is not None:
            self.latest = entry
        return changed

    def announce(self) -> Optional[str]:
        if self.latest is None:
            return None
        title = self.latest.get("title")
        url = self.latest.get("link")
        if title and url:
            return f"{self.name}: [{title}]({url})"
        if url:
            return f"New post on [{self.name}]({url})"
        if title:
            return f"New post on {self.name}: {title}"
        return f"New post on {self.name}"


class Feeds(HttpModule):
    name = "feeds"

    def __init__(self, env: Environment, client: Optional[httpx.AsyncClient] = None):
        super().__init__(env, client)
        self.feeds = [Feed(name=e["NAME"], url=e["URL"]) for e in env.indexed("FEED", "NAME", "URL")]
        for feed in self.feeds:
            logger.info("feed configured", name=feed.name, url=feed.url)
        if not self.feeds:
            logger.warning("feeds module enabled but no configuration provided")

    @classmethod
    def params(cls) -> list[ModuleParam]:
        return [
            ModuleParam("FEED_0_NAME", "Feed name, can be multiple (0..)", False),
            ModuleParam("FEED_0_URL", "Feed URL, can be multiple (0..)", False),
        ]

    def variation_cooldowns(self) -> list[float]:
        return [3600.0]

    async def run_variation(self, index: int) -> Optional[list[Message]]:
        messages: list[Message] = []
        for feed in self.feeds:
            entry = await self.last_entry(feed)
            if feed.update(entry):
                announce = feed.announce()
                if announce:
                    messages.append(announce)
        if not messages:
            logger.info("no new feed entry")
            return None
        logger.info("new feed entries", count=len(messages))
        return messages

    async def last_entry(self, feed: Feed) -> Optional[Any]:
        logger.debug("downloading feed", name=feed.name)
        try:
            resp = await self.client.get(feed.url)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("cannot read feed", name=feed.name, url=feed.url, error=f"{type(e).__name__}: {e}")
            return None

        parsed = feedparser.parse(resp.content)
        if parsed.get("bozo") and not parsed.get("entries"):
            logger.error("cannot parse feed", name=feed.name, error=str(parsed.get("bozo_exception")))
            return None
        return newest_entry(list(parsed.get("entries") or []))
