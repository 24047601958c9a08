from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from richard.bot.module import Message, MessageCtx, ModuleCapabilities, ModuleParam
from richard.config import Environment
from richard.http import redact
from richard.modules.base import HttpModule

logger = structlog.get_logger(__name__)

WEBEX_MESSAGES_URL = "https://webexapis.com/v1/messages"


class WebexMessage(BaseModel):
    id: str
    text: str = ""
    created: str


class WebexMessages(BaseModel):
    items: list[WebexMessage] = []


class Webex(HttpModule):
    """Webex room transport.

    Only messages mentioning the bot are read. ``last_seen`` holds the
    ``created`` timestamp of the newest message already handed out; the
    first poll sets it without returning anything so the room history is
    never replayed.
    """

    name = "webex"

    def __init__(self, env: Environment, client: Optional[httpx.AsyncClient] = None):
        super().__init__(env, client)
        self.token = env.require("WEBEX_TOKEN")
        self.room_id = env.require("WEBEX_ROOM_ID")
        self.last_seen: Optional[str] = None

    @classmethod
    def params(cls) -> list[ModuleParam]:
        return [
            ModuleParam("WEBEX_TOKEN", "Webex bot token", True),
            ModuleParam("WEBEX_ROOM_ID", "Webex room id the bot talks in", True),
        ]

    def capabilities(self) -> ModuleCapabilities:
        return ModuleCapabilities(send_message=True, read_message=True, resp_message=True)

    def variation_cooldowns(self) -> list[float]:
        return []

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    async def emit(self, messages: Sequence[Message]) -> None:
        for message in messages:
            await self._post({"roomId": self.room_id, "markdown": message})

    async def reply(self, parent: MessageCtx, message: Message) -> None:
        await self._post({"roomId": self.room_id, "parentId": parent.id, "text": message})

    async def _post(self, payload: dict[str, str]) -> bool:
        try:
            resp = await self.client.post(WEBEX_MESSAGES_URL, json=payload, headers=self.headers)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("cannot post webex message", error=redact(f"{type(e).__name__}: {e}", self.token))
            return False
        logger.debug("webex message posted", status=resp.status_code)
        return True

    async def poll_unread(self) -> Optional[list[MessageCtx]]:
        try:
            resp = await self.client.get(
                WEBEX_MESSAGES_URL,
                params={"roomId": self.room_id, "mentionedPeople": "me"},
                headers=self.headers,
            )
            resp.raise_for_status()
            listing = WebexMessages.model_validate_json(resp.content)
        except (httpx.HTTPError, ValidationError) as e:
            logger.error("cannot read webex messages", error=redact(f"{type(e).__name__}: {e}", self.token))
            return None
        return [MessageCtx(content=m.text, id=m.id) for m in self.filter_unseen(listing.items)]

    def filter_unseen(self, items: list[WebexMessage]) -> list[WebexMessage]:
        items = sorted(items, key=lambda m: m.created)
        if self.last_seen is not None:
            items = [m for m in items if m.created > self.last_seen]

        if items:
            first_poll = self.last_seen is None
            self.last_seen = items[-1].created
            if first_poll:
                return []
        elif self.last_seen is None:
            self.last_seen = "0"
        return items
