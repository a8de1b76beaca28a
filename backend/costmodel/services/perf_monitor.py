"""Performance monitoring utilities for the cost model pipeline."""
import time
import logging
import threading
import functools
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger("cost-model.perf")


def timed(func: Callable) -> Callable:
    """
    Decorator that measures execution time, logs it at DEBUG and records it
    against the function name in the module tracker.

    Usage::

        @timed
        def run_full_projection(self, ...):
            ...
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            tracker.record_duration(func.__name__, duration_ms)
            logger.debug(
                "function timed",
                extra={
                    "function": func.__qualname__,
                    "duration_ms": duration_ms,
                },
            )
    return wrapper


class PerformanceTracker:
    """
    Thread-safe in-memory tracker for engine metrics.

    Tracks:
    - Projections run and blocks costed
    - Average and slowest duration per timed operation
    - Failure count broken down by operation
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._projections_run: int = 0
        self._blocks_costed: int = 0
        self._durations: Dict[str, list] = {}     # operation -> [duration_ms, ...]
        self._failure_counts: Dict[str, int] = {}  # operation -> count
        self._slowest_operation: Optional[str] = None
        self._slowest_operation_ms: float = 0.0

    # ------------------------------------------------------------------
    # Public write API
    # ------------------------------------------------------------------

    def record_projection(self) -> None:
        with self._lock:
            self._projections_run += 1

    def record_blocks(self, count: int) -> None:
        with self._lock:
            self._blocks_costed += count

    def record_duration(self, operation: str, duration_ms: float) -> None:
        with self._lock:
            self._durations.setdefault(operation, []).append(duration_ms)
            if duration_ms > self._slowest_operation_ms:
                self._slowest_operation_ms = duration_ms
                self._slowest_operation = operation

    def record_failure(self, operation: str) -> None:
        with self._lock:
            self._failure_counts[operation] = self._failure_counts.get(operation, 0) + 1

    # ------------------------------------------------------------------
    # Public read API
    # ------------------------------------------------------------------

    def get_metrics(self) -> Dict[str, Any]:
        """
        Return a snapshot of all collected metrics.

        Returns
        -------
        dict with keys:
            projections_run           : int
            blocks_costed             : int
            slowest_operation         : str | None
            slowest_operation_ms      : float
            failure_count             : int   (total across all operations)
            failure_count_by_operation: dict  {operation: count}
            avg_durations_ms          : dict  {operation: avg_ms}
        """
        with self._lock:
            avgs = {
                op: round(sum(d) / len(d), 2) if d else 0.0
                for op, d in self._durations.items()
            }
            return {
                "projections_run": self._projections_run,
                "blocks_costed": self._blocks_costed,
                "slowest_operation": self._slowest_operation,
                "slowest_operation_ms": round(self._slowest_operation_ms, 2),
                "failure_count": sum(self._failure_counts.values()),
                "failure_count_by_operation": dict(self._failure_counts),
                "avg_durations_ms": avgs,
            }

    def reset(self) -> None:
        """Reset all counters (useful in tests)."""
        with self._lock:
            self._projections_run = 0
            self._blocks_costed = 0
            self._durations.clear()
            self._failure_counts.clear()
            self._slowest_operation = None
            self._slowest_operation_ms = 0.0


# Module-level singleton; import this instance everywhere else.
tracker = PerformanceTracker()
