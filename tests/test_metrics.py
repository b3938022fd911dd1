"""Tests for hub metrics collection and export."""

from workermap.core.models import RejectReason
from workermap.monitoring.metrics import HubMetrics, MetricType, format_prometheus_metric


class TestHubMetrics:
    """Tests for HubMetrics."""

    def test_counters(self) -> None:
        """Recording methods update the matching counters."""
        metrics = HubMetrics()
        metrics.record_added(3)
        metrics.record_batch()
        metrics.record_removed()
        metrics.record_clear()
        metrics.record_connection()
        metrics.record_connection(dropped=True)

        data = metrics.to_dict()
        assert data["workers_added"] == 3
        assert data["batches"] == 1
        assert data["workers_removed"] == 1
        assert data["clears"] == 1
        assert data["connections_opened"] == 1
        assert data["connections_dropped"] == 1

    def test_rejections_by_reason(self) -> None:
        """Rate-limited drops are tracked apart from other rejections."""
        metrics = HubMetrics()
        metrics.record_rejection(RejectReason.DUPLICATE, 2)
        metrics.record_rejection(RejectReason.RATE_LIMITED)

        data = metrics.to_dict()
        assert data["rate_limited"] == 1
        assert data["rejections"] == {"invalid": 0, "limit": 0, "duplicate": 2, "not_found": 0}

    def test_prometheus_export(self) -> None:
        """Prometheus output includes counters, labelled rejections and gauges."""
        metrics = HubMetrics()
        metrics.record_added()
        metrics.record_rejection(RejectReason.LIMIT)

        text = metrics.to_prometheus({"workers": 1})

        assert "# TYPE workermap_workers_added_total counter" in text
        assert "workermap_workers_added_total 1" in text
        assert 'workermap_rejections_total{reason="limit"} 1' in text
        assert "# TYPE workermap_workers gauge" in text
        assert "workermap_workers 1" in text
        assert text.endswith("\n")


class TestFormatPrometheusMetric:
    """Tests for format_prometheus_metric()."""

    def test_with_labels(self) -> None:
        """Labels are rendered inside braces."""
        text = format_prometheus_metric(
            "x_total", 5, MetricType.COUNTER, "An x", labels={"kind": "y"}
        )
        assert text.splitlines() == [
            "# HELP x_total An x",
            "# TYPE x_total counter",
            'x_total{kind="y"} 5',
        ]
