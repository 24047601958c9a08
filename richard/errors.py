"""Exceptions raised by the bot runtime."""

from __future__ import annotations


class BotError(Exception):
    """Base class for bot runtime errors."""


class MissingConfigError(BotError):
    """A mandatory configuration key is absent or empty."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"missing mandatory configuration {key}")


class NoModuleEnabledError(BotError):
    """The registry is empty, there is nothing to schedule."""


class WorkersCollapsedError(BotError):
    """Every scheduler worker has stopped."""
