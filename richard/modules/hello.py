from __future__ import annotations

import random
from typing import Optional

import structlog

from richard.bot.module import Message, Module
from richard.config import Environment
from richard.modules.quotes import QUOTES

logger = structlog.get_logger(__name__)

SEVEN_DAYS_SECONDS = 7 * 24 * 60 * 60


class Hello(Module):
    """Broadcasts a random quote every week."""

    name = "hello"

    def __init__(self, env: Environment, rng: Optional[random.Random] = None):
        super().__init__(env)
        self.rng = rng or random.Random()
        self.has_skipped_first_time = False

    def variation_cooldowns(self) -> list[float]:
        return [SEVEN_DAYS_SECONDS]

    async def run_variation(self, index: int) -> Optional[list[Message]]:
        # The first run happens at boot; stay quiet on restarts.
        if not self.has_skipped_first_time:
            self.has_skipped_first_time = True
            return None
        author, quote = self.rng.choice(QUOTES)
        logger.info("saying hello", author=author)
        return [f"{quote} — {author}"]
