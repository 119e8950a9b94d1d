"""
Custom metrics for the login flow.

Locust already records per-request statistics; these metrics cover the
signals it does not know about: the login failure rate as judged by the
rubric, token refresh failures, client-side payload preparation time,
successful logins, and bytes sent.

All metric types are lock-guarded because every virtual user in the
process writes to the same :class:`LoginMetrics` instance.
"""

from __future__ import annotations

import json
import math
import os
import threading
import time
from typing import Any


class Rate:
    """Fraction of ``True`` samples."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._hits = 0
        self._total = 0
        self._lock = threading.Lock()

    def add(self, hit: bool) -> None:
        with self._lock:
            self._total += 1
            if hit:
                self._hits += 1

    @property
    def hits(self) -> int:
        with self._lock:
            return self._hits

    @property
    def total(self) -> int:
        with self._lock:
            return self._total

    @property
    def rate(self) -> float:
        with self._lock:
            return self._hits / self._total if self._total else 0.0

    def summary(self) -> dict[str, Any]:
        with self._lock:
            rate = self._hits / self._total if self._total else 0.0
            return {"rate": rate, "hits": self._hits, "total": self._total}


class Trend:
    """Distribution of numeric samples (durations in milliseconds)."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._values: list[float] = []
        self._lock = threading.Lock()

    def add(self, value: float) -> None:
        with self._lock:
            self._values.append(float(value))

    @property
    def count(self) -> int:
        with self._lock:
            return len(self._values)

    def values(self) -> list[float]:
        with self._lock:
            return list(self._values)

    def percentile(self, pct: float) -> float:
        """Nearest-rank percentile; ``0.0`` when there are no samples."""
        ordered = sorted(self.values())
        if not ordered:
            return 0.0
        rank = max(1, math.ceil(pct * len(ordered) / 100.0))
        return ordered[rank - 1]

    def summary(self) -> dict[str, Any]:
        values = self.values()
        if not values:
            return {"count": 0, "avg": 0.0, "min": 0.0, "max": 0.0, "p95": 0.0}
        return {
            "count": len(values),
            "avg": sum(values) / len(values),
            "min": min(values),
            "max": max(values),
            "p95": self.percentile(95),
        }


class Counter:
    """Monotonically increasing total."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._count = 0
        self._lock = threading.Lock()

    def add(self, amount: int = 1) -> None:
        with self._lock:
            self._count += amount

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    def summary(self) -> dict[str, Any]:
        return {"count": self.count}


class LoginMetrics:
    """The set of signals emitted by the login flow."""

    def __init__(self) -> None:
        self.login_failures = Rate("login_failures")
        self.token_refresh_failures = Rate("token_refresh_failures")
        self.request_duration_ms = Trend("request_duration_ms")
        self.data_processing_time_ms = Trend("data_processing_time_ms")
        self.successful_logins = Counter("successful_logins")
        self.data_sent_bytes = Counter("data_sent_bytes")

    def _all(self) -> list[Rate | Trend | Counter]:
        return [
            self.login_failures,
            self.token_refresh_failures,
            self.request_duration_ms,
            self.data_processing_time_ms,
            self.successful_logins,
            self.data_sent_bytes,
        ]

    def summary(self) -> dict[str, Any]:
        return {metric.name: metric.summary() for metric in self._all()}

    def write_json(self, output_dir: str = "results") -> str:
        """Dump :meth:`summary` to ``<output_dir>/login_metrics_<ts>.json`` and return the path."""
        os.makedirs(output_dir, exist_ok=True)
        path = os.path.join(output_dir, "login_metrics_{}.json".format(int(time.time())))
        with open(path, "w", encoding="utf-8") as handle:
            json.dump(self.summary(), handle, indent=2)
        return path
