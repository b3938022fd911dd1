"""
WorkerMap API Module.

WebSocket channel for viewers plus read-only registry inspection.
"""

from workermap.api.app import create_app

__all__ = ["create_app"]
