"""Module model, scheduler and trigger routing."""

from .module import (
    Message,
    MessageCtx,
    Module,
    ModuleCapabilities,
    ModuleData,
    ModuleHandle,
    ModuleParam,
    params_documentation,
)
from .scheduler import Bot
from .triggers import Triggers

__all__ = [
    "Bot",
    "Message",
    "MessageCtx",
    "Module",
    "ModuleCapabilities",
    "ModuleData",
    "ModuleHandle",
    "ModuleParam",
    "Triggers",
    "params_documentation",
]
