"""
Circuit Breaker Gate.

Stops the login flow from hammering an endpoint that is known to be
failing, then lets a probe through once a cool-down has passed.

The gate is process-local and shared by every virtual user running in
the process.  All read-modify-write sequences on the state happen
inside one lock region per call, so concurrent users cannot both see a
stale failure count and push it past the threshold twice.

State machine::

    CLOSED --(consecutive failures >= threshold)--> OPEN
    OPEN   --(cool-down elapsed, on allow())-------> CLOSED
    OPEN   --(any recorded success)----------------> CLOSED

Key Concepts Demonstrated:
- Consecutive-failure circuit breaker with time-based recovery
- Lock-guarded shared state for concurrent virtual users
- Injectable clock so state transitions are testable without sleeping
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

FAILURE_THRESHOLD = 5
RESET_TIMEOUT_SECONDS = 30.0


class CircuitStatus(str, enum.Enum):
    CLOSED = "closed"
    OPEN = "open"


@dataclass
class CircuitState:
    """
    Mutable breaker bookkeeping.

    ``opened_at`` is set only while the circuit is open; it holds a
    reading of the gate's clock, not wall-clock time.
    """

    consecutive_failures: int = 0
    opened_at: float | None = None


class CircuitBreakerGate:
    """
    Decide whether a guarded call may proceed.

    Args:
        failure_threshold: Consecutive failures that open the circuit.
        reset_timeout_seconds: Cool-down after which an open circuit
            lets the next call through.
        clock: Monotonic time source in seconds.
        name: Operation label used in log lines.
    """

    def __init__(
        self,
        failure_threshold: int = FAILURE_THRESHOLD,
        reset_timeout_seconds: float = RESET_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        name: str = "login",
    ) -> None:
        if failure_threshold <= 0:
            raise ValueError("failure_threshold must be > 0")
        self.failure_threshold = failure_threshold
        self.reset_timeout_seconds = reset_timeout_seconds
        self.name = name
        self._clock = clock
        self._state = CircuitState()
        self._lock = threading.Lock()

    @property
    def status(self) -> CircuitStatus:
        with self._lock:
            return CircuitStatus.OPEN if self._state.opened_at is not None else CircuitStatus.CLOSED

    def snapshot(self) -> CircuitState:
        """Return a copy of the current state."""
        with self._lock:
            return CircuitState(self._state.consecutive_failures, self._state.opened_at)

    def allow(self) -> bool:
        """
        Return ``False`` while the circuit is open and cooling down.

        Once the cool-down has elapsed the circuit is closed (failure
        count reset, ``opened_at`` cleared) before returning ``True``.
        """
        with self._lock:
            opened_at = self._state.opened_at
            if opened_at is None:
                return True

            elapsed = self._clock() - opened_at
            if elapsed < self.reset_timeout_seconds:
                logger.warning(
                    "Circuit open: skipping %s for %ds",
                    self.name,
                    int(self.reset_timeout_seconds - elapsed),
                )
                return False

            logger.info("Attempting to reset circuit for %s", self.name)
            self._state.consecutive_failures = 0
            self._state.opened_at = None
            return True

    def record_result(self, succeeded: bool) -> None:
        """
        Feed one outcome into the breaker.

        A success always clears the failure count and closes the
        circuit.  A failure increments the count and opens the circuit
        the first time the count reaches the threshold.
        """
        with self._lock:
            if succeeded:
                self._state.consecutive_failures = 0
                self._state.opened_at = None
                return

            self._state.consecutive_failures += 1
            if (
                self._state.consecutive_failures >= self.failure_threshold
                and self._state.opened_at is None
            ):
                self._state.opened_at = self._clock()
                logger.error(
                    "Circuit opened for %s after %d consecutive failures",
                    self.name,
                    self._state.consecutive_failures,
                )
