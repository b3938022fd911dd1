"""
Health check endpoint.

Reports liveness, registry size and snapshot write status.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from workermap import __version__
from workermap.api.dependencies import get_hub
from workermap.api.schemas.responses import ErrorResponse, HealthResponse
from workermap.hub.core import RegistryHub

router = APIRouter()


@router.get("", response_model=HealthResponse, responses={503: {"model": ErrorResponse}})
async def health_check(hub: RegistryHub = Depends(get_hub)) -> HealthResponse:
    """
    Report liveness and basic registry statistics.

    The hub is "degraded" while the most recent snapshot write has failed;
    it keeps serving from memory in that state.
    """
    stats = hub.stats()
    store = stats["store"]

    persistence = "healthy"
    status = "ok"
    if store["last_write_ok"] is False:
        persistence = f"unhealthy: {store['last_error']}"
        status = "degraded"

    return HealthResponse(
        status=status,
        version=__version__,
        timestamp=datetime.now(timezone.utc).isoformat(),
        workers=stats["workers"],
        max_workers=stats["max_workers"],
        connections=stats["connections"],
        components={
            "registry": f"healthy ({stats['workers']} workers)",
            "persistence": persistence,
        },
    )

