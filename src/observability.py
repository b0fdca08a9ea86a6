"""Observability: per-operation counters/timers and run summary logging."""

import time
from contextlib import contextmanager
from typing import Any

import structlog

logger = structlog.get_logger(source="observability")


class Metrics:
    """Dict-based metrics for engine operations (calls, errors, durations)."""

    def __init__(self):
        self._counters: dict[str, int] = {}
        self._timers: dict[str, list[float]] = {}

    def counter(self, name: str, value: int = 1):
        """Increment a counter by the given value."""
        self._counters[name] = self._counters.get(name, 0) + value

    def count(self, name: str) -> int:
        return self._counters.get(name, 0)

    @contextmanager
    def operation(self, name: str):
        """Time an engine operation; counts `<name>.calls` and `<name>.errors`."""
        self.counter(f"{name}.calls")
        start = time.perf_counter()
        try:
            yield
        except Exception:
            self.counter(f"{name}.errors")
            raise
        finally:
            self._timers.setdefault(name, []).append(time.perf_counter() - start)

    def summary(self) -> dict[str, Any]:
        """Return counters plus count/avg/max per timed operation."""
        timer_summary = {}
        for name, durations in self._timers.items():
            timer_summary[name] = {
                "count": len(durations),
                "avg_ms": round(sum(durations) / len(durations) * 1000, 3),
                "max_ms": round(max(durations) * 1000, 3),
            }
        return {
            "counters": dict(self._counters),
            "timers": timer_summary,
        }

    def reset(self):
        """Clear all metrics."""
        self._counters.clear()
        self._timers.clear()


# Module-level singleton
metrics = Metrics()


def log_run_summary():
    """Log the current metrics summary via structlog."""
    summary = metrics.summary()
    logger.info("run_summary", **summary)
