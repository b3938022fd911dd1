"""
FastAPI dependencies shared by the route modules.
"""

from fastapi import Request

from workermap.api.schemas.exceptions import ServiceUnavailableError
from workermap.hub.core import RegistryHub


def get_hub(request: Request) -> RegistryHub:
    """Return the running hub attached to the application."""
    hub: RegistryHub | None = getattr(request.app.state, "hub", None)
    if hub is None or not hub.running:
        raise ServiceUnavailableError(detail="Registry hub is not running")
    return hub
