"""Performance monitoring for pipeline stages.

A ``StageTimer`` records the stages of one pipeline run; the shared
``PerformanceMonitor`` aggregates finished stages across runs.
"""

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Generator, List, Optional


logger = logging.getLogger(__name__)


@dataclass
class PerformanceMetrics:
    """Performance metrics for one pipeline stage."""

    operation_name: str
    start_time: float = field(default_factory=time.time)
    end_time: Optional[float] = None
    duration: Optional[float] = None
    success: bool = True
    error: Optional[str] = None

    def finish(self, success: bool = True, error: Optional[str] = None) -> None:
        """Mark the operation as finished."""
        self.end_time = time.time()
        self.duration = self.end_time - self.start_time
        self.success = success
        self.error = error


class PerformanceMonitor:
    """
    Aggregate stage metrics across pipeline runs.

    Thread-safe; one instance is shared by every run of a pipeline.
    """

    def __init__(self, slow_stage_threshold: float = 60.0):
        """
        Initialize the performance monitor.

        Args:
            slow_stage_threshold: Stage duration in seconds that triggers a warning.
        """
        self.slow_stage_threshold = slow_stage_threshold
        self.metrics: Dict[str, List[PerformanceMetrics]] = {}
        self._lock = threading.Lock()

    def record(self, metric: PerformanceMetrics) -> None:
        """Store a finished metric."""
        with self._lock:
            self.metrics.setdefault(metric.operation_name, []).append(metric)

        if metric.duration and metric.duration > self.slow_stage_threshold:
            logger.warning(
                f"Stage '{metric.operation_name}' was slow: "
                f"{metric.duration:.2f}s > {self.slow_stage_threshold}s"
            )

    def get_operation_stats(self, operation_name: str) -> Dict[str, Any]:
        """
        Get statistics for a specific operation.

        Returns:
            Dictionary with statistics (avg, min, max, count).
        """
        with self._lock:
            recorded = list(self.metrics.get(operation_name, []))

        durations = [m.duration for m in recorded if m.duration is not None]
        if not durations:
            return {}

        return {
            "count": len(durations),
            "average": sum(durations) / len(durations),
            "min": min(durations),
            "max": max(durations),
            "total": sum(durations),
            "success_rate": sum(1 for m in recorded if m.success) / len(recorded),
        }

    def get_all_stats(self) -> Dict[str, Dict[str, Any]]:
        """Get statistics for all tracked operations."""
        with self._lock:
            names = list(self.metrics.keys())
        return {name: self.get_operation_stats(name) for name in names}

    def reset(self) -> None:
        """Reset all metrics."""
        with self._lock:
            self.metrics.clear()


class StageTimer:
    """Times the stages of a single pipeline run."""

    def __init__(self, monitor: Optional[PerformanceMonitor] = None):
        self._monitor = monitor
        self.timings: Dict[str, float] = {}

    @contextmanager
    def stage(self, name: str) -> Generator[PerformanceMetrics, None, None]:
        """Time the enclosed block, recording failure if it raises."""
        metric = PerformanceMetrics(operation_name=name)
        try:
            yield metric
        except Exception as e:
            metric.finish(success=False, error=str(e))
            raise
        else:
            metric.finish(success=True)
        finally:
            self.timings[name] = metric.duration or 0.0
            if self._monitor is not None:
                self._monitor.record(metric)
