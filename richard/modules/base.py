from __future__ import annotations

from typing import Optional

import httpx

from richard.bot.module import Module
from richard.config import Environment, load_settings
from richard.http import request_agent


class HttpModule(Module):
    """Module owning one HTTP client for its whole lifetime.

    The client timeout is ``BotSettings.http_timeout_seconds``; an invalid
    value raises pydantic's ValidationError, a ValueError.
    """

    def __init__(self, env: Environment, client: Optional[httpx.AsyncClient] = None):
        super().__init__(env)
        self.client = client or request_agent(timeout=load_settings(env).http_timeout_seconds)

    async def aclose(self) -> None:
        await self.client.aclose()
