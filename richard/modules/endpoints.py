from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx
import structlog

from richard.bot.module import Message, ModuleCapabilities, ModuleParam
from richard.config import Environment
from richard.modules.watch import ProbingModule, Target

logger = structlog.get_logger(__name__)

ERROR_RATE_VARIATION = 0
ALIVE_VARIATION = 1
VERSION_VARIATION = 2


@dataclass
class Endpoint(Target):
    version: Optional[str] = None


class Endpoints(ProbingModule):
    """Outscale API endpoints: liveness, error rate and published API version."""

    name = "endpoints"
    probe_method = "POST"

    def __init__(self, env: Environment, client: Optional[httpx.AsyncClient] = None):
        endpoints = [Endpoint(name=e["NAME"], url=e["ENDPOINT"]) for e in env.indexed("REGION", "NAME", "ENDPOINT")]
        super().__init__(env, endpoints, client)
        for endpoint in self.targets:
            logger.info("endpoint configured", name=endpoint.name)
        if not self.targets:
            logger.warning("endpoints module enabled but no configuration provided")

    @classmethod
    def params(cls) -> list[ModuleParam]:
        return [
            ModuleParam("REGION_0_NAME", "Outscale region name of the endpoints, can be multiple (0..)", False),
            ModuleParam("REGION_0_ENDPOINT", "Outscale region endpoint, can be multiple (0..)", False),
        ]

    def capabilities(self) -> ModuleCapabilities:
        return ModuleCapabilities(triggers=("/endpoints",))

    def variation_cooldowns(self) -> list[float]:
        return [2.0, 2.0, 600.0]

    async def run_variation(self, index: int) -> Optional[list[Message]]:
        if index == ERROR_RATE_VARIATION:
            return await self.check_error_rate()
        if index == ALIVE_VARIATION:
            return await self.check_alive()
        if index == VERSION_VARIATION:
            return await self.check_versions()
        logger.error("variation is not managed", variation=index)
        return None

    async def on_trigger(self, message: str) -> Optional[list[Message]]:
        lines = [
            f"{e.name}: alive={str(e.monitor.alive).lower()}, version={e.version or 'unknown'}, "
            f"error_rate={e.monitor.error_rate:.2f}\n"
            for e in self.targets
        ]
        return ["".join(lines) or "no endpoint configured"]

    async def check_versions(self) -> Optional[list[Message]]:
        messages = []
        for endpoint in self.targets:
            logger.debug("updating version", endpoint=endpoint.name)
            version = await self.update_version(endpoint)
            if version is not None:
                messages.append(f"New API version on {endpoint.name}: {version}")
        return messages or None

    async def update_version(self, endpoint: Endpoint) -> Optional[str]:
        """Return the new version when it changed; the first observation only records it."""
        version = await self.fetch_version(endpoint)
        if version is None:
            return None
        previous = endpoint.version
        endpoint.version = version
        if previous is not None and previous != version:
            return version
        return None

    async def fetch_version(self, endpoint: Endpoint) -> Optional[str]:
        try:
            resp = await self.client.post(endpoint.url)
            resp.raise_for_status()
            return str(resp.json()["Version"])
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.error("cannot read api version", endpoint=endpoint.name, error=f"{type(e).__name__}: {e}")
            return None
