"""Module contract, capability descriptor and registry entries."""

from __future__ import annotations

import abc
import asyncio
from collections.abc import AsyncIterator, Iterable, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import ClassVar, Optional

from richard.config import Environment, module_enabled_key

Message = str


@dataclass(frozen=True)
class ModuleParam:
    name: str
    description: str
    mandatory: bool = False


@dataclass(frozen=True)
class MessageCtx:
    """An incoming chat message and the opaque id replies are attached to."""

    content: Message
    id: str


@dataclass(frozen=True)
class ModuleCapabilities:
    triggers: Optional[tuple[str, ...]] = None
    catch_all: bool = False
    catch_non_triggered: bool = False
    send_message: bool = False
    read_message: bool = False
    resp_message: bool = False

    def __post_init__(self) -> None:
        if self.triggers is not None:
            object.__setattr__(self, "triggers", tuple(self.triggers))

    @property
    def handles_triggers(self) -> bool:
        return bool(self.triggers) or self.catch_all or self.catch_non_triggered

    @property
    def is_chat(self) -> bool:
        return self.read_message or self.resp_message

    def matching_trigger(self, text: str) -> Optional[str]:
        """First declared trigger contained in ``text`` (case-sensitive)."""
        for trigger in self.triggers or ():
            if trigger in text:
                return trigger
        return None


class Module(abc.ABC):
    """A unit of work the bot schedules and routes messages to.

    Every hook has a do-nothing default; a module overrides what it
    takes part in. Hooks are only ever called while the caller holds
    the module's exclusive-access handle, so implementations mutate
    their own state freely. Failures of the module's own I/O must be
    caught and logged inside the hook.
    """

    name: ClassVar[str]

    def __init__(self, env: Environment):
        self.env = env

    @classmethod
    def params(cls) -> list[ModuleParam]:
        return []

    def capabilities(self) -> ModuleCapabilities:
        return ModuleCapabilities()

    @abc.abstractmethod
    def variation_cooldowns(self) -> list[float]:
        """Seconds to sleep after each run, one entry per variation."""

    async def on_registry_snapshot(self, modules: Sequence[ModuleData]) -> None:
        return None

    async def run_variation(self, index: int) -> Optional[list[Message]]:
        return None

    async def on_trigger(self, message: str) -> Optional[list[Message]]:
        return None

    async def emit(self, messages: Sequence[Message]) -> None:
        return None

    async def poll_unread(self) -> Optional[list[MessageCtx]]:
        return None

    async def reply(self, parent: MessageCtx, message: Message) -> None:
        return None

    async def aclose(self) -> None:
        return None


class ModuleHandle:
    """Shared reference to one module; access is serialized by a lock."""

    def __init__(self, module: Module):
        self._module = module
        self._lock = asyncio.Lock()

    @property
    def locked(self) -> bool:
        return self._lock.locked()

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[Module]:
        async with self._lock:
            yield self._module


@dataclass(frozen=True)
class ModuleData:
    """Registry snapshot entry."""

    handle: ModuleHandle
    name: str
    capabilities: ModuleCapabilities
    variation_cooldowns: tuple[float, ...]
    params: tuple[ModuleParam, ...]

    @classmethod
    def wrap(cls, module: Module) -> ModuleData:
        return cls(
            handle=ModuleHandle(module),
            name=module.name,
            capabilities=module.capabilities(),
            variation_cooldowns=tuple(float(d) for d in module.variation_cooldowns()),
            params=tuple(module.params()),
        )


def params_documentation(modules: Iterable[tuple[str, Sequence[ModuleParam]]]) -> str:
    lines: list[str] = []
    for name, params in modules:
        lines.append(f"# '{name}' module parameters")
        lines.append(f"- {module_enabled_key(name)}: enable module {name} (mandatory: false)")
        seen: set[str] = set()
        for param in params:
            if param.name in seen:
                continue
            seen.add(param.name)
            lines.append(f"- {param.name}: {param.description} (mandatory: {str(param.mandatory).lower()})")
        lines.append("")
    return "\n".join(lines) + ("\n" if lines else "")
