"""
Observability for the CoverGrid pipeline.

Stage timings and process memory are recorded per pipeline stage (decode,
clustering, selection, composition) and aggregated for the metrics endpoint.
"""

import time
import threading
from collections import defaultdict, deque
from contextlib import contextmanager
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

import numpy as np
import psutil
from loguru import logger


@dataclass
class PerformanceMetrics:
    """Performance metrics for one pipeline stage."""
    operation_name: str
    duration_ms: float
    memory_usage_mb: float
    pixel_count: int
    cluster_count: int
    timestamp: float
    error: Optional[str] = None


class MetricsCollector:
    """Thread-safe metrics collector for pipeline stages."""

    def __init__(self, max_history: int = 1000):
        self.max_history = max_history
        self._lock = threading.Lock()
        self._metrics_history: deque = deque(maxlen=max_history)
        self._operation_counts = defaultdict(int)
        self._error_counts = defaultdict(int)
        self._durations = defaultdict(lambda: deque(maxlen=100))
        self._counters = defaultdict(int)

    def record_performance(self, metrics: PerformanceMetrics) -> None:
        """Record performance metrics for an operation."""
        with self._lock:
            self._metrics_history.append(metrics)
            self._operation_counts[metrics.operation_name] += 1
            if metrics.error:
                self._error_counts[metrics.operation_name] += 1
            self._durations[metrics.operation_name].append(metrics.duration_ms)

    def increment(self, counter: str, amount: int = 1) -> None:
        """Increment a named counter (e.g. fallback tiles)."""
        with self._lock:
            self._counters[counter] += amount

    def get_operation_stats(self, operation_name: str) -> Dict[str, Any]:
        """Get aggregated statistics for a specific operation."""
        with self._lock:
            durations = list(self._durations.get(operation_name, ()))
            if not durations:
                return {}
            total = self._operation_counts[operation_name]
            errors = self._error_counts[operation_name]

        return {
            'operation_name': operation_name,
            'total_calls': total,
            'error_count': errors,
            'error_rate': errors / max(1, total),
            'duration_stats': {
                'mean_ms': float(np.mean(durations)),
                'median_ms': float(np.median(durations)),
                'p95_ms': float(np.percentile(durations, 95)),
                'max_ms': float(np.max(durations))
            }
        }

    def get_all_stats(self) -> Dict[str, Any]:
        """Get aggregated statistics for all operations."""
        with self._lock:
            names = list(self._operation_counts.keys())
            counters = dict(self._counters)

        return {
            'operations': {name: self.get_operation_stats(name) for name in names},
            'counters': counters
        }

    def get_recent_metrics(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Get the most recent performance metrics."""
        with self._lock:
            recent = list(self._metrics_history)[-limit:]
        return [asdict(metric) for metric in recent]

    def reset(self) -> None:
        """Reset all metrics (for testing)."""
        with self._lock:
            self._metrics_history.clear()
            self._operation_counts.clear()
            self._error_counts.clear()
            self._durations.clear()
            self._counters.clear()


# Global metrics collector instance
_metrics_collector = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    """Get the global metrics collector instance."""
    return _metrics_collector


def _rss_mb() -> float:
    return psutil.Process().memory_info().rss / 1024 / 1024


@contextmanager
def performance_monitor(operation_name: str, pixel_count: int = 0, cluster_count: int = 0):
    """Context manager for monitoring performance of a pipeline stage."""
    start_time = time.time()
    start_memory = _rss_mb()
    error_msg = None

    try:
        yield
    except Exception as e:
        error_msg = str(e)
        raise
    finally:
        end_time = time.time()
        metrics = PerformanceMetrics(
            operation_name=operation_name,
            duration_ms=(end_time - start_time) * 1000,
            memory_usage_mb=max(_rss_mb(), start_memory),
            pixel_count=pixel_count,
            cluster_count=cluster_count,
            timestamp=end_time,
            error=error_msg
        )
        _metrics_collector.record_performance(metrics)

        if error_msg:
            logger.error(f"Operation {operation_name} failed after {metrics.duration_ms:.1f}ms: {error_msg}")
        else:
            logger.debug(f"Operation {operation_name} completed in {metrics.duration_ms:.1f}ms "
                         f"(memory: {metrics.memory_usage_mb:.1f}MB)")
