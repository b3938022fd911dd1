"""
WorkerMap Hub Module.

The registry hub, its connection abstraction, event vocabulary and
per-connection rate limiting.
"""

__all__ = [
    "Connection",
    "EventName",
    "HubEvent",
    "HubResult",
    "Operation",
    "RateLimiter",
    "ReconcileReport",
    "RegistryHub",
    "parse_rate_limit",
    "reconcile",
]

from workermap.hub.connection import Connection
from workermap.hub.core import HubResult, ReconcileReport, RegistryHub, reconcile
from workermap.hub.events import EventName, HubEvent, Operation
from workermap.hub.rate_limit import RateLimiter, parse_rate_limit
