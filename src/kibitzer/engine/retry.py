"""Retry policy and the clock abstraction used by the reasoning client.

Time is injected so tests can count attempts and measure dispatch spacing
without real sleeps.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterator, Optional

SleepFn = Callable[[float], Awaitable[None]]
ClockFn = Callable[[], float]


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff: ``base_delay * multiplier ** n`` for n < max_retries."""

    max_retries: int = 3
    base_delay: float = 1.0
    multiplier: float = 2.0

    def delays(self) -> Iterator[float]:
        delay = self.base_delay
        for _ in range(self.max_retries):
            yield delay
            delay *= self.multiplier

    @classmethod
    def from_config(cls, cfg) -> "RetryPolicy":
        return cls(
            max_retries=cfg.max_retries,
            base_delay=cfg.base_delay,
            multiplier=cfg.multiplier,
        )


@dataclass
class Clock:
    """Wall-clock pair: a monotonic ``now`` and an awaitable ``sleep``."""

    now: ClockFn = time.monotonic
    sleep: SleepFn = asyncio.sleep



@dataclass
class CircuitBreaker:
    """One-way switch; once tripped it stays tripped for the session."""

    tripped: bool = False
    reason: Optional[str] = None

    def trip(self, reason: str) -> bool:
        """Open the breaker. Returns ``True`` only on the first trip."""
        if self.tripped:
            return False
        self.tripped = True
        self.reason = reason
        return True
