"""Configuration for the bot and its modules.

Every setting is a flat ``KEY=value`` pair. Values come from an optional
YAML file and from the process environment, the environment winning.
Modules never read ``os.environ`` themselves: they receive an
:class:`Environment` snapshot at construction.
"""

from __future__ import annotations

import os
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field

from richard.errors import MissingConfigError

DEFAULT_CONFIG_PATH = "config/richard.yaml"

# Upper bound for indexed keys such as FEED_0_URL, FEED_1_URL, ...
MAX_INDEXED_ENTRIES = 100

_ENABLED_VALUES = {"1", "true"}


class Environment(Mapping[str, str]):
    """Immutable view over the merged configuration keys."""

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values = {str(k): str(v) for k, v in (values or {}).items() if v is not None}

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def require(self, key: str) -> str:
        """Return the value of a mandatory key or raise MissingConfigError."""
        value = self._values.get(key)
        if value is None or not value.strip():
            raise MissingConfigError(key)
        return value

    def get_float(self, key: str, default: float) -> float:
        value = self._values.get(key)
        if value is None or not value.strip():
            return default
        return float(value)

    def indexed(self, prefix: str, *fields: str) -> list[dict[str, str]]:
        """Collect ``PREFIX_<i>_FIELD`` groups, stopping at the first incomplete index.

        ``env.indexed("FEED", "NAME", "URL")`` returns
        ``[{"NAME": ..., "URL": ...}, ...]`` for FEED_0_*, FEED_1_*, ...
        """
        entries: list[dict[str, str]] = []
        for i in range(MAX_INDEXED_ENTRIES):
            entry = {}
            for field in fields:
                value = self._values.get(f"{prefix}_{i}_{field}")
                if value is None:
                    return entries
                entry[field] = value
            entries.append(entry)
        return entries

    def is_module_enabled(self, module_name: str) -> bool:
        value = self._values.get(module_enabled_key(module_name), "")
        return value.strip().lower() in _ENABLED_VALUES


def module_enabled_key(module_name: str) -> str:
    return f"BOT_MODULE_{module_name.upper()}_ENABLED"


def load_environment(config_path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> Environment:
    """Merge the YAML config file (if any) with the process environment."""
    if config_path is None:
        config_path = Path(os.getenv("RICHARD_CONFIG", DEFAULT_CONFIG_PATH))
    if environ is None:
        environ = os.environ

    values: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config YAML must be a mapping: {config_path}")
        values.update(data)

    values.update(environ)
    return Environment(values)


class BotSettings(BaseModel):
    """Bot-wide runtime settings."""

    log_level: str = Field(default="INFO", description="Logging level")
    mailbox_capacity: int = Field(default=100, ge=1, description="Pending broadcast batches before producers block")
    broadcast_idle_seconds: float = Field(default=10.0, gt=0, description="Broadcast worker sleep when the mailbox is empty")
    http_timeout_seconds: float = Field(default=10.0, gt=0, description="Default timeout of outgoing HTTP calls")


def load_settings(env: Environment) -> BotSettings:
    """Build BotSettings from the environment, raising pydantic's ValidationError on bad values."""
    overrides = {
        "log_level": env.get("LOG_LEVEL"),
        "mailbox_capacity": env.get("BOT_MAILBOX_CAPACITY"),
        "broadcast_idle_seconds": env.get("BOT_BROADCAST_IDLE_SECONDS"),
        "http_timeout_seconds": env.get("BOT_HTTP_TIMEOUT"),
    }
    return BotSettings(**{k: v for k, v in overrides.items() if v is not None})
