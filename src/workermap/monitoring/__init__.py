"""
WorkerMap Monitoring Module.

Hub activity counters with JSON and Prometheus export.
"""

__all__ = ["HubMetrics", "MetricType", "format_prometheus_metric"]

from workermap.monitoring.metrics import HubMetrics, MetricType, format_prometheus_metric
