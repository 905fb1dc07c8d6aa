"""
Rate limiting between ledger calls.

The reconciler waits on a ``RateLimiter`` after every item instead of
calling ``time.sleep`` itself, so tests run without real delays.
"""

from __future__ import annotations

import time
from typing import Callable, Protocol


class RateLimiter(Protocol):
    def wait(self) -> None: ...


class FixedDelayRateLimiter:
    """Sleeps a fixed number of milliseconds per ``wait()``."""

    def __init__(self, delay_ms: int, sleep: Callable[[float], None] = time.sleep):
        if delay_ms < 0:
            raise ValueError(f"delay_ms must be non-negative, got {delay_ms}")
        self._delay_seconds = delay_ms / 1000
        self._sleep = sleep

    @property
    def delay_seconds(self) -> float:
        return self._delay_seconds

    def wait(self) -> None:
        if self._delay_seconds > 0:
            self._sleep(self._delay_seconds)


class NoDelayRateLimiter:
    def wait(self) -> None:
        return None
