from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Optional

import httpx
import structlog

from richard.bot.module import Message, MessageCtx, ModuleCapabilities, ModuleParam
from richard.config import Environment
from richard.http import redact
from richard.modules.base import HttpModule

logger = structlog.get_logger(__name__)

TELEGRAM_API = "https://api.telegram.org"
TELEGRAM_MAX_MESSAGE_LEN = 3900


@dataclass(frozen=True)
class TelegramConfig:
    bot_token: str
    chat_id: str

    def method_url(self, method: str) -> str:
        return f"{TELEGRAM_API}/bot{self.bot_token}/{method}"


def split_telegram_message(text: str, *, max_len: int = TELEGRAM_MAX_MESSAGE_LEN) -> list[str]:
    """Cut ``text`` in chunks Telegram accepts, preferring line boundaries."""
    s = (text or "").strip()
    if not s:
        return [""]

    max_len = max(1, int(max_len))
    parts: list[str] = []
    while s:
        if len(s) <= max_len:
            parts.append(s)
            break
        cut = s.rfind("\n", 0, max_len + 1)
        if cut < max_len * 0.6:
            cut = max_len
        parts.append(s[:cut].rstrip())
        s = s[cut:].lstrip()
    return parts


async def send_telegram_message(
    client: httpx.AsyncClient,
    config: TelegramConfig,
    text: str,
    *,
    reply_to_message_id: Optional[int] = None,
) -> tuple[bool, dict]:
    payload: dict[str, Any] = {"chat_id": config.chat_id, "text": text}
    if reply_to_message_id is not None:
        payload["reply_to_message_id"] = reply_to_message_id
    try:
        resp = await client.post(config.method_url("sendMessage"), json=payload)
        data = resp.json()
        if not isinstance(data, dict):
            return False, {"ok": False, "error": f"unexpected response body (HTTP {resp.status_code})"}
        return bool(data.get("ok")), data
    except (httpx.HTTPError, ValueError) as e:
        return False, {"ok": False, "error": redact(f"{type(e).__name__}: {e}", config.bot_token)}


async def send_telegram_message_chunked(
    client: httpx.AsyncClient,
    config: TelegramConfig,
    text: str,
    *,
    reply_to_message_id: Optional[int] = None,
    max_len: int = TELEGRAM_MAX_MESSAGE_LEN,
) -> tuple[bool, list[dict]]:
    ok_all = True
    responses: list[dict] = []
    for part in split_telegram_message(text, max_len=max_len):
        ok, resp = await send_telegram_message(client, config, part, reply_to_message_id=reply_to_message_id)
        ok_all = ok_all and ok
        responses.append(resp)
    return ok_all, responses


def redact_telegram_response(data: dict) -> dict:
    safe: dict[str, Any] = {"ok": data.get("ok")}
    if isinstance(data.get("result"), dict):
        safe["result"] = {"message_id": data["result"].get("message_id")}
    if data.get("error") or data.get("description"):
        safe["error"] = data.get("error") or data.get("description")
    return safe


class Telegram(HttpModule):
    """Telegram chat transport: broadcasts, unread messages and threaded replies."""

    name = "telegram"

    def __init__(self, env: Environment, client: Optional[httpx.AsyncClient] = None):
        super().__init__(env, client)
        self.config = TelegramConfig(
            bot_token=env.require("TELEGRAM_BOT_TOKEN"),
            chat_id=env.require("TELEGRAM_CHAT_ID"),
        )
        # getUpdates offset; None until the first poll skipped the backlog.
        self.offset: Optional[int] = None

    @classmethod
    def params(cls) -> list[ModuleParam]:
        return [
            ModuleParam("TELEGRAM_BOT_TOKEN", "Telegram bot token", True),
            ModuleParam("TELEGRAM_CHAT_ID", "Telegram chat the bot talks in", True),
        ]

    def capabilities(self) -> ModuleCapabilities:
        return ModuleCapabilities(send_message=True, read_message=True, resp_message=True)

    def variation_cooldowns(self) -> list[float]:
        return []

    async def emit(self, messages: Sequence[Message]) -> None:
        for message in messages:
            ok, responses = await send_telegram_message_chunked(self.client, self.config, message)
            if not ok:
                logger.error("telegram send failed", responses=[redact_telegram_response(r) for r in responses])

    async def reply(self, parent: MessageCtx, message: Message) -> None:
        try:
            reply_to: Optional[int] = int(parent.id)
        except ValueError:
            reply_to = None
        ok, responses = await send_telegram_message_chunked(
            self.client, self.config, message, reply_to_message_id=reply_to
        )
        if not ok:
            logger.error("telegram reply failed", parent=parent.id, responses=[redact_telegram_response(r) for r in responses])

    async def poll_unread(self) -> Optional[list[MessageCtx]]:
        params: dict[str, Any] = {"timeout": 0, "allowed_updates": '["message"]'}
        if self.offset is not None:
            params["offset"] = self.offset
        try:
            resp = await self.client.get(self.config.method_url("getUpdates"), params=params)
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("cannot fetch telegram updates", error=redact(f"{type(e).__name__}: {e}", self.config.bot_token))
            return None
        if not isinstance(data, dict):
            logger.error("unexpected telegram getUpdates payload", payload_type=type(data).__name__)
            return None
        if not data.get("ok"):
            logger.error("telegram getUpdates failed", response=redact_telegram_response(data))
            return None
        result = data.get("result")
        return self.filter_unseen(result if isinstance(result, list) else [])

    def filter_unseen(self, updates: list[dict[str, Any]]) -> list[MessageCtx]:
        updates = sorted(
            (u for u in updates if isinstance(u, dict) and isinstance(u.get("update_id"), int)),
            key=lambda u: u["update_id"],
        )
        if self.offset is not None:
            updates = [u for u in updates if u["update_id"] >= self.offset]
        first_poll = self.offset is None
        if updates:
            self.offset = updates[-1]["update_id"] + 1
        elif first_poll:
            self.offset = 0
        if first_poll:
            return []

        messages: list[MessageCtx] = []
        for update in updates:
            message = update.get("message")
            if not isinstance(message, dict):
                continue
            chat = message.get("chat")
            if not isinstance(chat, dict) or str(chat.get("id")) != str(self.config.chat_id):
                continue
            text = message.get("text")
            if not isinstance(text, str) or not text:
                continue
            messages.append(MessageCtx(content=text, id=str(message.get("message_id"))))
        return messages
