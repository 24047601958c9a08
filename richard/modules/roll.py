from __future__ import annotations

import random
from typing import Optional

import structlog

from richard.bot.module import Message, Module, ModuleCapabilities
from richard.config import Environment

logger = structlog.get_logger(__name__)

MAX_DICE = 1000
MAX_FACES = 1000

USAGE = "roll <dices> : roll one or more dices where '<dice>' is formated like 1d20."


def parse_dice(request: str) -> Optional[tuple[int, int]]:
    """Extract ``(count, faces)`` from ``"... /roll 3d6 ..."``."""
    parts = request.split("/roll", 1)
    if len(parts) < 2:
        return None
    words = parts[1].split(" ")
    if len(words) < 2:
        return None
    dice = words[1].split("d")
    if len(dice) < 2:
        return None
    try:
        count = int(dice[0])
        faces = int(dice[1])
    except ValueError:
        return None
    if not (0 < count <= MAX_DICE and 0 < faces <= MAX_FACES):
        return None
    return count, faces


def format_roll(count: int, faces: int, rolls: list[int]) -> str:
    output = f"roll {count}d{faces}: "
    if 1 < count < 100:
        output += "(" + "+".join(str(r) for r in rolls) + ") = "
    return output + str(sum(rolls))


class Roll(Module):
    name = "roll"

    def __init__(self, env: Environment, rng: Optional[random.Random] = None):
        super().__init__(env)
        self.rng = rng or random.Random()

    def variation_cooldowns(self) -> list[float]:
        return []

    def capabilities(self) -> ModuleCapabilities:
        return ModuleCapabilities(triggers=("/roll",))

    async def on_trigger(self, message: str) -> Optional[list[Message]]:
        parsed = parse_dice(message)
        if parsed is None:
            return [USAGE]
        count, faces = parsed
        rolls = [self.rng.randint(1, faces) for _ in range(count)]
        result = format_roll(count, faces, rolls)
        logger.debug("rolled", request=message, result=result)
        return [result]
