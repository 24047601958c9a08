from __future__ import annotations

from typing import Optional

import httpx
import structlog

from richard.bot.module import Message, ModuleCapabilities, ModuleParam
from richard.config import Environment
from richard.modules.watch import ProbingModule, Target

logger = structlog.get_logger(__name__)

ERROR_RATE_VARIATION = 0
ALIVE_VARIATION = 1


class DownDetectors(ProbingModule):
    """Watches HTTP services and reports when they go down or come back."""

    name = "down_detectors"

    def __init__(self, env: Environment, client: Optional[httpx.AsyncClient] = None):
        targets = [Target(name=e["NAME"], url=e["URL"]) for e in env.indexed("DOWN_DETECTORS", "NAME", "URL")]
        super().__init__(env, targets, client)
        for target in self.targets:
            logger.info("down detector configured", name=target.name)
        if not self.targets:
            logger.warning("down_detectors module enabled but no configuration provided")

    @classmethod
    def params(cls) -> list[ModuleParam]:
        return [
            ModuleParam("DOWN_DETECTORS_0_NAME", "Friendly name of what is watched, can be multiple (0..)", False),
            ModuleParam("DOWN_DETECTORS_0_URL", "URL of what is watched, can be multiple (0..)", False),
        ]

    def capabilities(self) -> ModuleCapabilities:
        return ModuleCapabilities(triggers=("/status",))

    def variation_cooldowns(self) -> list[float]:
        return [2.0, 2.0]

    async def run_variation(self, index: int) -> Optional[list[Message]]:
        if index == ERROR_RATE_VARIATION:
            return await self.check_error_rate()
        if index == ALIVE_VARIATION:
            return await self.check_alive()
        logger.error("variation is not managed", variation=index)
        return None

    async def on_trigger(self, message: str) -> Optional[list[Message]]:
        return [self.status_lines() or "nothing is watched"]
