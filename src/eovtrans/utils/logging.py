"""
Timing for grid parsing and batch transformations.

Durations are logged with a `duration_ms` field and, when the block knows
how many items it processed, a per-item cost, so slow grid uploads and
large batches stand out in the logs.
"""

import logging
import time
from typing import Any, Optional

logger = logging.getLogger(__name__)


class PerformanceTimer:
    """
    Context manager timing a block of work.

    Set `count` inside the block to log the cost per item. Nothing is
    logged when the block raises or finishes under `threshold_ms`.

    Usage:
        with PerformanceTimer("transform_batch", unit="points") as timer:
            timer.count = len(lats)
            ...
    """

    def __init__(
        self,
        operation: str,
        log_level: int = logging.INFO,
        threshold_ms: Optional[float] = None,
        unit: str = "items",
    ):
        self.operation = operation
        self.log_level = log_level
        self.threshold_ms = threshold_ms
        self.unit = unit
        self.count: Optional[int] = None
        self.duration_ms: Optional[float] = None
        self._start: Optional[float] = None

    def __enter__(self) -> "PerformanceTimer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._start is None:
            return
        self.duration_ms = (time.perf_counter() - self._start) * 1000
        if exc_type is not None:
            return
        if self.threshold_ms is not None and self.duration_ms < self.threshold_ms:
            return

        message = f"{self.operation} completed in {self.duration_ms:.2f}ms"
        if self.count:
            message += (
                f" ({self.count} {self.unit}, "
                f"{self.duration_ms / self.count:.3f}ms per {self.unit.rstrip('s')})"
            )
        logger.log(
            self.log_level,
            message,
            extra={
                "duration_ms": self.duration_ms,
                "operation": self.operation,
                "item_count": self.count,
            },
        )
