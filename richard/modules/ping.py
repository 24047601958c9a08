from __future__ import annotations

from typing import Optional

from richard.bot.module import Message, Module, ModuleCapabilities


class Ping(Module):
    name = "ping"

    def variation_cooldowns(self) -> list[float]:
        return []

    def capabilities(self) -> ModuleCapabilities:
        return ModuleCapabilities(triggers=("/ping",))

    async def on_trigger(self, message: str) -> Optional[list[Message]]:
        return ["pong"]
