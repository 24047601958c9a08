"""Routes chat messages to the modules whose capabilities ask for them.

Dispatch tiers for one message, evaluated over the trigger-capable
modules in registry order:

1. catch-all modules always run;
2. modules with a declared trigger contained in the text run;
3. only when no module matched in tier 2, catch-non-triggered modules run.

Responses are replied, in evaluation order, on the chat module the
message came from.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

import structlog

from richard.bot.module import Message, MessageCtx, Module, ModuleData, ModuleParam
from richard.config import Environment

logger = structlog.get_logger(__name__)

APOLOGY = "Sorry, I can't respond to that right now."
DEFAULT_COOLDOWN_SECONDS = 10.0


class Triggers(Module):
    name = "triggers"

    def __init__(self, env: Environment, cooldown: Optional[float] = None):
        super().__init__(env)
        if cooldown is None:
            cooldown = env.get_float("TRIGGERS_COOLDOWN", DEFAULT_COOLDOWN_SECONDS)
        if cooldown < 0:
            raise ValueError(f"TRIGGERS_COOLDOWN must not be negative, got {cooldown}")
        self.cooldown = cooldown
        self.trigger_modules: list[ModuleData] = []
        self.chat_modules: list[ModuleData] = []

    @classmethod
    def params(cls) -> list[ModuleParam]:
        return [
            ModuleParam(
                "TRIGGERS_COOLDOWN",
                f"Seconds between two polls of the chat modules (default {DEFAULT_COOLDOWN_SECONDS:g})",
                False,
            ),
        ]

    def variation_cooldowns(self) -> list[float]:
        return [self.cooldown]

    async def on_registry_snapshot(self, modules: Sequence[ModuleData]) -> None:
        peers = [m for m in modules if m.name != self.name]
        self.trigger_modules = [m for m in peers if m.capabilities.handles_triggers]
        self.chat_modules = [m for m in peers if m.capabilities.is_chat]
        logger.info(
            "trigger routing ready",
            trigger_modules=[m.name for m in self.trigger_modules],
            chat_modules=[m.name for m in self.chat_modules],
        )

    async def run_variation(self, index: int) -> Optional[list[Message]]:
        for chat_module in self.chat_modules:
            await self.route_chat_module(chat_module)
        return None

    async def route_chat_module(self, chat_module: ModuleData) -> None:
        async with chat_module.handle.exclusive() as module:
            try:
                unread = await module.poll_unread()
            except Exception as e:
                logger.error("cannot read messages", module=chat_module.name, error=str(e))
                return

        for message in unread or []:
            logger.debug("new message", module=chat_module.name, content=message.content)
            responses = await self.dispatch(message.content)
            if not responses:
                logger.debug("no module responded", module=chat_module.name)
                continue
            await self._reply(chat_module, message, responses)

    async def dispatch(self, text: str) -> list[Message]:
        """Run every module selected for ``text`` and collect their responses."""
        responses: list[Message] = []
        triggered = False
        for candidate in self.trigger_modules:
            capabilities = candidate.capabilities
            if capabilities.catch_all:
                logger.debug("module catches all messages", module=candidate.name)
                responses.extend(await self._invoke(candidate, text))
            trigger = capabilities.matching_trigger(text)
            if trigger is not None:
                logger.debug("module triggered", module=candidate.name, trigger=trigger)
                triggered = True
                responses.extend(await self._invoke(candidate, text))

        if not triggered:
            for candidate in self.trigger_modules:
                if candidate.capabilities.catch_non_triggered:
                    logger.debug("module catches non triggered message", module=candidate.name)
                    responses.extend(await self._invoke(candidate, text))
        return responses

    async def _invoke(self, candidate: ModuleData, text: str) -> list[Message]:
        async with candidate.handle.exclusive() as module:
            try:
                responses = await module.on_trigger(text)
            except Exception as e:
                logger.error("trigger handling failed", module=candidate.name, error=str(e))
                return [APOLOGY]
        return list(responses or [])

    async def _reply(self, chat_module: ModuleData, parent: MessageCtx, responses: list[Message]) -> None:
        async with chat_module.handle.exclusive() as module:
            for response in responses:
                try:
                    await module.reply(parent, response)
                except Exception as e:
                    logger.error("cannot reply", module=chat_module.name, parent=parent.id, error=str(e))
