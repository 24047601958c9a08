"""Shared behavior of modules that probe a list of targets."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import httpx
import structlog

from richard.bot.module import Message
from richard.config import Environment
from richard.http import probe_url
from richard.liveness import HIGH_ERROR_RATE, LivenessMonitor, ProbeError, Transition
from richard.modules.base import HttpModule

logger = structlog.get_logger(__name__)


@dataclass
class Target:
    name: str
    url: str
    monitor: LivenessMonitor = field(init=False)

    def __post_init__(self) -> None:
        self.monitor = LivenessMonitor(name=self.name)


class ProbingModule(HttpModule):
    probe_method = "GET"

    def __init__(self, env: Environment, targets: list[Target], client: Optional[httpx.AsyncClient] = None):
        super().__init__(env, client)
        self.targets = targets

    async def probe(self, target: Target) -> Optional[ProbeError]:
        return await probe_url(self.client, target.url, method=self.probe_method)

    async def check_error_rate(self) -> Optional[list[Message]]:
        messages: list[Message] = []
        for target in self.targets:
            error = await self.probe(target)
            rate = target.monitor.record_error_rate(error is not None)
            if rate is None:
                continue
            crossed = target.monitor.crossed_high_error_rate(rate)
            if rate > HIGH_ERROR_RATE:
                logger.warning("high error rate", target=target.name, error_rate_percent=int(rate * 100))
            if crossed:
                messages.append(f"high error rate on {target.name}: {int(rate * 100)}%")
        return messages or None

    async def check_alive(self) -> Optional[list[Message]]:
        messages: list[Message] = []
        for target in self.targets:
            error = await self.probe(target)
            transition = target.monitor.record_liveness(error)
            if target.monitor.alive:
                logger.debug("target is alive", target=target.name)
            else:
                logger.warning("target is not alive", target=target.name, error=str(target.monitor.last_error))
            if transition is Transition.WENT_DOWN:
                messages.append(target.monitor.down_message())
            elif transition is Transition.CAME_UP:
                messages.append(target.monitor.up_message())
        return messages or None

    def status_lines(self) -> str:
        return "".join(
            f"{t.name}: alive={str(t.monitor.alive).lower()}, error_rate={t.monitor.error_rate:.2f}\n"
            for t in self.targets
        )
