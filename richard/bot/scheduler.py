"""Module registry and the concurrent workers that drive it."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from typing import Optional

import structlog

from richard.bot.module import Message, Module, ModuleData, params_documentation
from richard.config import BotSettings, Environment
from richard.errors import MissingConfigError, NoModuleEnabledError, WorkersCollapsedError

logger = structlog.get_logger(__name__)


class Bot:
    """Registers modules, then runs one worker per (module, variation).

    Runs of one module are serialized by its handle; different modules
    run concurrently. Messages returned by ``run_variation`` go through a
    bounded mailbox to a single broadcast worker that hands each batch to
    every send-capable module.
    """

    def __init__(self, settings: Optional[BotSettings] = None):
        self.settings = settings or BotSettings()
        self.modules: list[ModuleData] = []

    @classmethod
    def from_environment(
        cls,
        env: Environment,
        catalogue: Iterable[type[Module]],
        settings: Optional[BotSettings] = None,
    ) -> Bot:
        bot = cls(settings)
        for module_cls in catalogue:
            bot.register(module_cls, env)
        return bot

    def register(self, module_cls: type[Module], env: Environment) -> Optional[ModuleData]:
        """Build and add one module; disabled or misconfigured modules are skipped."""
        name = module_cls.name
        if not env.is_module_enabled(name):
            logger.info("module is not enabled", module=name)
            return None
        logger.info("module is enabled", module=name)

        missing = [p.name for p in module_cls.params() if p.mandatory and not (env.get(p.name) or "").strip()]
        if missing:
            logger.error("cannot init module: missing mandatory configuration", module=name, missing=missing)
            return None

        try:
            module = module_cls(env)
        except (MissingConfigError, ValueError) as e:
            # ValueError covers malformed values, pydantic ValidationError included.
            logger.error("cannot init module", module=name, error=str(e))
            return None
        return self.add(module)

    def add(self, module: Module) -> ModuleData:
        if any(existing.name == module.name for existing in self.modules):
            raise ValueError(f"module {module.name!r} is already registered")
        data = ModuleData.wrap(module)
        self.modules.append(data)
        logger.info(
            "module registered",
            module=data.name,
            variations=len(data.variation_cooldowns),
        )
        return data

    def help(self) -> str:
        return params_documentation((m.name, m.params) for m in self.modules)

    async def distribute_snapshot(self) -> None:
        snapshot = tuple(self.modules)
        for data in snapshot:
            async with data.handle.exclusive() as module:
                await module.on_registry_snapshot(snapshot)

    async def run(self) -> None:
        """Run until every worker has stopped, which raises WorkersCollapsedError."""
        if not self.modules:
            raise NoModuleEnabledError("no module enabled")

        mailbox: asyncio.Queue[list[Message]] = asyncio.Queue(maxsize=self.settings.mailbox_capacity)
        await self.distribute_snapshot()

        tasks: list[asyncio.Task] = []
        for data in self.modules:
            for variation, cooldown in enumerate(data.variation_cooldowns):
                tasks.append(
                    asyncio.create_task(
                        self._variation_worker(data, variation, cooldown, mailbox),
                        name=f"{data.name}[{variation}]",
                    )
                )
        tasks.append(asyncio.create_task(self._broadcast_worker(mailbox), name="broadcast"))
        logger.info("bot started", workers=len(tasks))
        await self._supervise(tasks)

    async def close(self) -> None:
        for data in self.modules:
            async with data.handle.exclusive() as module:
                await module.aclose()

    async def _variation_worker(
        self,
        data: ModuleData,
        variation: int,
        cooldown: float,
        mailbox: asyncio.Queue[list[Message]],
    ) -> None:
        while True:
            logger.debug("waiting for module lock", module=data.name, variation=variation)
            async with data.handle.exclusive() as module:
                logger.debug("run", module=data.name, variation=variation)
                messages = await module.run_variation(variation)
            if messages:
                await mailbox.put(list(messages))
            await asyncio.sleep(cooldown)

    async def _broadcast_worker(self, mailbox: asyncio.Queue[list[Message]]) -> None:
        sinks = [data for data in self.modules if data.capabilities.send_message]
        while True:
            try:
                messages = mailbox.get_nowait()
            except asyncio.QueueEmpty:
                await asyncio.sleep(self.settings.broadcast_idle_seconds)
                continue
            for sink in sinks:
                async with sink.handle.exclusive() as module:
                    await module.emit(messages)
            mailbox.task_done()

    async def _supervise(self, tasks: list[asyncio.Task]) -> None:
        pending = set(tasks)
        try:
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    if task.cancelled():
                        logger.error("worker cancelled", worker=task.get_name())
                        continue
                    exc = task.exception()
                    if exc is not None:
                        logger.error("worker died", worker=task.get_name(), exc_info=exc)
                    else:
                        logger.error("worker stopped", worker=task.get_name())
                if pending:
                    logger.warning("workers still running", count=len(pending))
        finally:
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
        raise WorkersCollapsedError(f"all {len(tasks)} workers have stopped")
