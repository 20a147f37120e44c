"""Observability: counters and timers for extraction runs, plus summary logging."""

import threading
import time
from contextlib import contextmanager
from typing import Any

import structlog

logger = structlog.get_logger().bind(source="observability")


class Metrics:
    """Thread-safe counters and timers keyed by dotted metric name.

    Names follow the log event convention, e.g. ``memory.extract.primary``.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._counters: dict[str, int] = {}
        self._timers: dict[str, list[float]] = {}

    def counter(self, name: str, value: int = 1):
        with self._lock:
            self._counters[name] = self._counters.get(name, 0) + value

    def get(self, name: str) -> int:
        """Current value of a counter (0 if never incremented)."""
        with self._lock:
            return self._counters.get(name, 0)

    @contextmanager
    def timer(self, name: str):
        """Time the wrapped block; failures are timed too."""
        start = time.monotonic()
        try:
            yield
        finally:
            elapsed = time.monotonic() - start
            with self._lock:
                self._timers.setdefault(name, []).append(elapsed)

    def summary(self) -> dict[str, Any]:
        with self._lock:
            counters = dict(self._counters)
            timers = {name: list(d) for name, d in self._timers.items()}

        timer_summary = {
            name: {
                "count": len(d),
                "total": round(sum(d), 4),
                "avg": round(sum(d) / len(d), 4),
                "max": round(max(d), 4),
            }
            for name, d in timers.items()
            if d
        }
        return {"counters": counters, "timers": timer_summary}

    def fallback_rate(self) -> float:
        """Share of extractions that ended on the rule-based path."""
        with self._lock:
            primary = self._counters.get("memory.extract.primary", 0)
            fallback = self._counters.get("memory.extract.fallback", 0)
        total = primary + fallback
        return fallback / total if total else 0.0

    def reset(self):
        with self._lock:
            self._counters.clear()
            self._timers.clear()


metrics = Metrics()


def log_run_summary():
    """Log the current metrics summary via structlog."""
    summary = metrics.summary()
    logger.info("run_summary", fallback_rate=round(metrics.fallback_rate(), 3), **summary)
