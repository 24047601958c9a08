from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx
import structlog

from richard.bot.module import Message, ModuleParam
from richard.config import Environment
from richard.modules.base import HttpModule

logger = structlog.get_logger(__name__)


@dataclass
class Webpage:
    name: str
    url: str
    content: Optional[str] = None


class Webpages(HttpModule):
    """Announces raw content changes of watched pages."""

    name = "webpages"

    def __init__(self, env: Environment, client: Optional[httpx.AsyncClient] = None):
        super().__init__(env, client)
        self.pages = [Webpage(name=e["NAME"], url=e["URL"]) for e in env.indexed("WEBPAGES", "NAME", "URL")]
        for page in self.pages:
            logger.info("webpage configured", name=page.name, url=page.url)
        if not self.pages:
            logger.warning("webpages module enabled but no configuration provided")

    @classmethod
    def params(cls) -> list[ModuleParam]:
        return [
            ModuleParam("WEBPAGES_0_NAME", "Webpage name, can be multiple (0..)", False),
            ModuleParam("WEBPAGES_0_URL", "Webpage URL, can be multiple (0..)", False),
        ]

    def variation_cooldowns(self) -> list[float]:
        return [60.0]

    async def run_variation(self, index: int) -> Optional[list[Message]]:
        messages = []
        for page in self.pages:
            if await self.changed(page):
                messages.append(f"[{page.name}]({page.url}) has changed")
        return messages or None

    async def changed(self, page: Webpage) -> bool:
        try:
            resp = await self.client.get(page.url)
            body = resp.text
        except httpx.HTTPError as e:
            logger.error("cannot fetch webpage", name=page.name, error=f"{type(e).__name__}: {e}")
            return False

        changed = page.content is not None and page.content != body
        page.content = body
        return changed
