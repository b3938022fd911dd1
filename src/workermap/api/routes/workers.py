"""
Registry inspection endpoint.

Read-only view of the current registry; mutations only travel over the
realtime channel.
"""

from fastapi import APIRouter, Depends

from workermap.api.dependencies import get_hub
from workermap.api.schemas.responses import ErrorResponse, WorkerListResponse, WorkerResponse
from workermap.hub.core import RegistryHub

router = APIRouter()


@router.get("", response_model=WorkerListResponse, responses={503: {"model": ErrorResponse}})
async def list_workers(hub: RegistryHub = Depends(get_hub)) -> WorkerListResponse:
    """Return every worker in insertion order."""
    workers = await hub.snapshot()
    return WorkerListResponse(
        workers=[WorkerResponse(**w.to_wire()) for w in workers],
        total=len(workers),
    )
