from __future__ import annotations

from typing import Any, Optional

import httpx
import structlog

from richard.bot.module import Message, ModuleCapabilities, ModuleParam
from richard.bot.triggers import APOLOGY
from richard.config import Environment
from richard.modules.base import HttpModule

logger = structlog.get_logger(__name__)

GENERATE_TIMEOUT_SECONDS = 600.0


class Ollama(HttpModule):
    """Answers every message no other module picked up, using an Ollama model.

    The conversation context returned by Ollama is kept between calls so
    follow-up questions stay in the same conversation.
    """

    name = "ollama"

    def __init__(self, env: Environment, client: Optional[httpx.AsyncClient] = None):
        super().__init__(env, client)
        self.model = env.require("OLLAMA_MODEL_NAME")
        self.endpoint = env.require("OLLAMA_URL").rstrip("/")
        self.context: list[int] = []

    @classmethod
    def params(cls) -> list[ModuleParam]:
        return [
            ModuleParam("OLLAMA_MODEL_NAME", "Ollama model name to use", True),
            ModuleParam("OLLAMA_URL", "ollama URL to query", True),
        ]

    def capabilities(self) -> ModuleCapabilities:
        return ModuleCapabilities(catch_non_triggered=True)

    def variation_cooldowns(self) -> list[float]:
        return []

    async def on_trigger(self, message: str) -> Optional[list[Message]]:
        try:
            response = await self.query(message)
        except (httpx.HTTPError, ValueError, KeyError) as e:
            logger.error("ollama query failed", error=f"{type(e).__name__}: {e}")
            response = APOLOGY
        return [response]

    async def query(self, prompt: str) -> str:
        payload: dict[str, Any] = {
            "prompt": prompt,
            "model": self.model,
            "stream": False,
            "context": self.context,
        }
        resp = await self.client.post(
            f"{self.endpoint}/api/generate",
            json=payload,
            timeout=GENERATE_TIMEOUT_SECONDS,
        )
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            raise ValueError(f"unexpected ollama response: {type(data).__name__}")
        context = data.get("context")
        if isinstance(context, list):
            self.context = context
        return str(data["response"])
