"""
Metrics endpoint.

Provides hub counters in JSON and Prometheus formats.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse

from workermap.api.dependencies import get_hub
from workermap.hub.core import RegistryHub

router = APIRouter()


@router.get("", response_model=None)
async def get_metrics(
    format: str = Query("json", description="Response format: 'json' or 'prometheus'"),
    hub: RegistryHub = Depends(get_hub),
) -> dict[str, Any] | PlainTextResponse:
    """
    Get hub metrics.

    Args:
        format: Response format - "json" (default) or "prometheus"

    Returns:
        Metrics in requested format
    """
    stats = hub.stats()
    store = stats["store"]

    if format.lower() == "prometheus":
        gauges = {
            "workers": stats["workers"],
            "max_workers": stats["max_workers"],
            "connections": stats["connections"],
            "snapshot_writes_completed": store["writes_completed"],
            "snapshot_writes_failed": store["writes_failed"],
            "snapshot_writes_coalesced": store["writes_coalesced"],
        }
        return PlainTextResponse(
            content=hub.metrics.to_prometheus(gauges),
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    return {**hub.metrics.to_dict(), **stats}
