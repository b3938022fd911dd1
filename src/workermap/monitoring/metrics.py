"""
Metrics collection for the WorkerMap hub.

Provides:
- Accepted/removed/cleared mutation counters
- Rejection counts by reason
- Rate-limited drop and dropped-connection counters
- Prometheus-style export
"""

import threading
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from workermap.core.models import RejectReason


class MetricType(str, Enum):
    """Types of metrics."""

    COUNTER = "counter"
    GAUGE = "gauge"


@dataclass
class HubMetrics:
    """Counters for hub activity. Gauges are passed in at export time."""

    workers_added: int = 0
    workers_removed: int = 0
    clears: int = 0
    batches: int = 0
    rate_limited: int = 0
    connections_opened: int = 0
    connections_dropped: int = 0
    rejections: Counter = field(default_factory=Counter)
    started_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record_added(self, count: int = 1) -> None:
        with self._lock:
            self.workers_added += count

    def record_batch(self) -> None:
        with self._lock:
            self.batches += 1

    def record_removed(self) -> None:
        with self._lock:
            self.workers_removed += 1

    def record_clear(self) -> None:
        with self._lock:
            self.clears += 1

    def record_rejection(self, reason: RejectReason, count: int = 1) -> None:
        with self._lock:
            if reason is RejectReason.RATE_LIMITED:
                self.rate_limited += count
            else:
                self.rejections[reason.value] += count

    def record_connection(self, *, dropped: bool = False) -> None:
        with self._lock:
            if dropped:
                self.connections_dropped += 1
            else:
                self.connections_opened += 1

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        with self._lock:
            return {
                "workers_added": self.workers_added,
                "workers_removed": self.workers_removed,
                "clears": self.clears,
                "batches": self.batches,
                "rate_limited": self.rate_limited,
                "connections_opened": self.connections_opened,
                "connections_dropped": self.connections_dropped,
                "rejections": {reason.value: self.rejections.get(reason.value, 0)
                               for reason in (RejectReason.INVALID, RejectReason.LIMIT,
                                              RejectReason.DUPLICATE, RejectReason.NOT_FOUND)},
                "started_at": self.started_at,
            }

    def to_prometheus(self, gauges: dict[str, int | float] | None = None) -> str:
        """
        Export metrics in Prometheus text format.

        Args:
            gauges: Point-in-time values (registry size, connections, ...)

        Returns:
            Prometheus-formatted metrics string
        """
        data = self.to_dict()
        lines = [
            format_prometheus_metric(
                "workermap_workers_added_total", data["workers_added"],
                MetricType.COUNTER, "Workers accepted into the registry",
            ),
            format_prometheus_metric(
                "workermap_workers_removed_total", data["workers_removed"],
                MetricType.COUNTER, "Workers removed from the registry",
            ),
            format_prometheus_metric(
                "workermap_clears_total", data["clears"], MetricType.COUNTER, "Registry clears",
            ),
            format_prometheus_metric(
                "workermap_rate_limited_total", data["rate_limited"],
                MetricType.COUNTER, "Operations dropped by per-connection rate limits",
            ),
            format_prometheus_metric(
                "workermap_connections_dropped_total", data["connections_dropped"],
                MetricType.COUNTER, "Connections dropped for falling behind",
            ),
        ]

        lines.append("# HELP workermap_rejections_total Operations rejected by reason")
        lines.append("# TYPE workermap_rejections_total counter")
        for reason, count in data["rejections"].items():
            lines.append(f'workermap_rejections_total{{reason="{reason}"}} {count}')

        for name, value in (gauges or {}).items():
            lines.append(format_prometheus_metric(f"workermap_{name}", value, MetricType.GAUGE))

        return "\n".join(lines) + "\n"


def format_prometheus_metric(
    name: str,
    value: float | int,
    metric_type: MetricType = MetricType.GAUGE,
    help_text: str = "",
    labels: dict[str, str] | None = None,
) -> str:
    """
    Format a single metric in Prometheus format.

    Args:
        name: Metric name
        value: Metric value
        metric_type: Type of metric
        help_text: Help text for the metric
        labels: Optional label dict

    Returns:
        Prometheus-formatted metric lines
    """
    lines = []
    if help_text:
        lines.append(f"# HELP {name} {help_text}")
    lines.append(f"# TYPE {name} {metric_type.value}")

    if labels:
        label_str = ",".join(f'{k}="{v}"' for k, v in labels.items())
        lines.append(f"{name}{{{label_str}}} {value}")
    else:
        lines.append(f"{name} {value}")

    return "\n".join(lines)
