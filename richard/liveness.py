"""Liveness and error-rate tracking for polled targets.

Two signals are derived from the same probe outcome:

- liveness, a Schmitt trigger over a saturating failure counter so a
  single transient failure or success never flips the state;
- error rate, the mean failure ratio over the last ``ERROR_RATE_WINDOW``
  probes, only reported once the window is full.
"""

from __future__ import annotations

import enum
from collections import deque
from dataclasses import dataclass, field
from typing import Optional

LOW = 3
HIGH = 6
MAX_FAILURES = 10

ERROR_RATE_WINDOW = 100
HIGH_ERROR_RATE = 0.1


class ProbeError(Exception):
    """A probe failed; ``str()`` is the reason shown to chat users."""


class ProbeStatusError(ProbeError):
    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(status_code)

    def __str__(self) -> str:
        if self.status_code == 503:
            return (
                "API has been very properly put in maintenance mode by the wonderful ops team, "
                "thanks for your understanding"
            )
        return f"API is down (error code: {self.status_code})"


class ProbeTransportError(ProbeError):
    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)

    def __str__(self) -> str:
        return f"API seems down (transport error: {self.detail})"


class Transition(enum.Enum):
    WENT_DOWN = "down"
    CAME_UP = "up"


def update_liveness(*, alive: bool, failure_count: int, observed_ok: bool) -> tuple[bool, int, Optional[Transition]]:
    if observed_ok:
        failure_count = max(int(failure_count) - 1, 0)
    else:
        failure_count = min(int(failure_count) + 1, MAX_FAILURES)

    if alive and failure_count == HIGH:
        return False, failure_count, Transition.WENT_DOWN
    if not alive and failure_count == LOW:
        return True, failure_count, Transition.CAME_UP
    return alive, failure_count, None


@dataclass
class LivenessMonitor:
    """State of one watched target. Owned by the module polling it."""

    name: str
    alive: bool = True
    failure_count: int = 0
    last_error: Optional[ProbeError] = None
    error_samples: deque = field(default_factory=lambda: deque(maxlen=ERROR_RATE_WINDOW))
    sample_count: int = 0
    error_rate: float = 0.0
    high_error_rate: bool = False

    def record_liveness(self, error: Optional[ProbeError]) -> Optional[Transition]:
        """Feed one probe outcome; return the transition it caused, if any."""
        if error is not None:
            self.last_error = error
        self.alive, self.failure_count, transition = update_liveness(
            alive=self.alive,
            failure_count=self.failure_count,
            observed_ok=error is None,
        )
        return transition

    def record_error_rate(self, failed: bool) -> Optional[float]:
        """Feed one probe outcome; return the error rate once the window is full."""
        self.error_samples.append(1.0 if failed else 0.0)
        self.error_rate = sum(self.error_samples) / ERROR_RATE_WINDOW
        self.sample_count += 1
        if self.sample_count >= ERROR_RATE_WINDOW:
            return self.error_rate
        return None

    def crossed_high_error_rate(self, rate: float) -> bool:
        """True only on the probe where the rate goes above HIGH_ERROR_RATE."""
        was_high = self.high_error_rate
        self.high_error_rate = rate > HIGH_ERROR_RATE
        return self.high_error_rate and not was_high

    def down_message(self) -> str:
        if self.last_error is None:
            return f"{self.name} seems down (no reason found)"
        return f"{self.name}: {self.last_error}"

    def up_message(self) -> str:
        return f"{self.name} is up"
