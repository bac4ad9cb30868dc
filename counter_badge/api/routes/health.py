from __future__ import annotations

from fastapi import APIRouter

from counter_badge.adapters.storage.factory import has_durable_store_configured
from counter_badge.core.config import load_storage_settings
from counter_badge.core.storage import get_counter_store
from counter_badge.schemas.health import HealthResponse, StorageHealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Health check endpoint.

    Used by load balancers and monitoring systems to determine service health.
    """

    return HealthResponse(status="ok")


@router.get("/health/storage", response_model=StorageHealthResponse)
async def storage_health() -> StorageHealthResponse:
    """Report which counter store serves requests.

    Reads the configuration only, so it stays cheap and never fails because
    the durable store is down. Unusable storage settings answer with the
    ``storage_misconfigured`` error envelope.
    """

    store = await get_counter_store()
    return StorageHealthResponse(
        status="ok",
        backend=store.name,
        durable_store_configured=has_durable_store_configured(load_storage_settings()),
    )
