from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

import structlog

from richard.bot.module import Message, Module, ModuleCapabilities, ModuleData
from richard.config import Environment

logger = structlog.get_logger(__name__)


class Help(Module):
    """Lists every trigger declared by the registered modules."""

    name = "help"

    def __init__(self, env: Environment):
        super().__init__(env)
        self.commands: set[str] = set()

    def variation_cooldowns(self) -> list[float]:
        return []

    def capabilities(self) -> ModuleCapabilities:
        return ModuleCapabilities(triggers=("/help",))

    async def on_registry_snapshot(self, modules: Sequence[ModuleData]) -> None:
        for module in modules:
            self.commands.update(module.capabilities.triggers or ())
        logger.debug("commands harvested", commands=sorted(self.commands))

    async def on_trigger(self, message: str) -> Optional[list[Message]]:
        command_list = "".join(f"- {command}\n" for command in sorted(self.commands))
        return [f"Available commands are:\n{command_list}"]
