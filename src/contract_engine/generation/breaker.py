"""
Circuit Breaker
Fails generation fast after consecutive backend failures until a cooldown
elapses. One instance is shared by every orchestrator in the process.
"""

import threading
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable

from ..core import get_logger, get_settings

logger = get_logger(__name__)


def _now_ms() -> float:
    return time.time() * 1000


@dataclass(frozen=True)
class BreakerSnapshot:
    """Point-in-time view of breaker state."""

    failures: int
    open_until: float
    threshold: int
    cooldown_ms: int


class CircuitBreaker:
    """
    Consecutive-failure circuit breaker.

    The circuit is open iff ``now < open_until``. Checking an expired circuit
    resets it. All state changes happen under one lock, and the lock is never
    held while a backend call is in flight.
    """

    def __init__(
        self,
        threshold: int = 3,
        cooldown_ms: int = 60_000,
        clock: Callable[[], float] = _now_ms,
        name: str = "gemini",
    ) -> None:
        """
        Args:
            threshold: Consecutive failures that open the circuit
            cooldown_ms: How long the circuit stays open
            clock: Current time in milliseconds
            name: Name used in logs
        """
        self.threshold = threshold
        self.cooldown_ms = cooldown_ms
        self.name = name
        self._clock = clock
        self._lock = threading.Lock()
        self._failures = 0
        self._open_until = 0.0

    def _is_open_locked(self) -> bool:
        now = self._clock()
        if self._open_until and now < self._open_until:
            return True
        if self._open_until and now >= self._open_until:
            self._open_until = 0.0
            self._failures = 0
            logger.warning("breaker_auto_reset", breaker=self.name)
        return False

    def is_open(self) -> bool:
        """True while cooling down; resets an expired circuit as a side effect."""
        with self._lock:
            return self._is_open_locked()

    def record_failure(self) -> None:
        with self._lock:
            # An expired circuit heals before the failure is counted.
            is_open = self._is_open_locked()
            self._failures += 1
            if self._failures >= self.threshold and not is_open:
                self._open_until = self._clock() + self.cooldown_ms
                logger.error(
                    "breaker_opened",
                    breaker=self.name,
                    failures=self._failures,
                    cooldown_ms=self.cooldown_ms,
                )

    def record_success(self) -> None:
        with self._lock:
            if self._failures > 0 or self._open_until:
                logger.info("breaker_success_reset", breaker=self.name, failures=self._failures)
            self._failures = 0
            self._open_until = 0.0

    def reset(self) -> None:
        """Administrative override: close the circuit immediately."""
        with self._lock:
            self._failures = 0
            self._open_until = 0.0
        logger.info("breaker_manual_reset", breaker=self.name)

    def snapshot(self) -> BreakerSnapshot:
        with self._lock:
            return BreakerSnapshot(
                failures=self._failures,
                open_until=self._open_until,
                threshold=self.threshold,
                cooldown_ms=self.cooldown_ms,
            )


@lru_cache
def get_circuit_breaker() -> CircuitBreaker:
    """Process-wide breaker configured from settings."""
    settings = get_settings()
    return CircuitBreaker(threshold=settings.breaker_threshold, cooldown_ms=settings.breaker_cooldown_ms)
