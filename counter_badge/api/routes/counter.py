from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from counter_badge.core.admission import get_admission_controller, resolve_client_id
from counter_badge.core.errors import StorageAppError
from counter_badge.core.logging import get_request_id
from counter_badge.core.storage import get_counter_store
from counter_badge.services.counter_service import CounterService
from counter_badge.utils.badge import SVG_MEDIA_TYPE, render_badge_svg

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Counter"])

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

# Value rendered when the store cannot be reached
DEGRADED_COUNT = 0


def _log_storage_failure(exc: StorageAppError, backend: str | None) -> None:
    logger.error(
        "counter.storage_failed",
        extra={
            "error_code": exc.code,
            "error_message": exc.message,
            "backend": backend,
            "request_id": get_request_id(),
        },
    )


def _degraded_badge() -> Response:
    return Response(
        content=render_badge_svg(DEGRADED_COUNT),
        status_code=500,
        media_type=SVG_MEDIA_TYPE,
        headers={"Cache-Control": "no-store"},
    )


async def get_counter_service() -> CounterService | None:
    """Build the counter service for the current request.

    Returns None when no store can be built from the current settings.
    """
    try:
        store = await get_counter_store()
    except StorageAppError as exc:
        _log_storage_failure(exc, backend=None)
        return None

    return CounterService(store=store, admission=get_admission_controller())


@router.get(
    "/api/counter",
    response_class=Response,
    responses={
        200: {"content": {SVG_MEDIA_TYPE: {}}, "description": "Visit counter badge"},
        500: {"content": {SVG_MEDIA_TYPE: {}}, "description": "Degraded badge"},
    },
)
async def visit_counter(
    request: Request,
    service: Annotated[CounterService | None, Depends(get_counter_service)],
) -> Response:
    """Count a visit and return the badge.

    Repeated requests from the same client within the admission window are
    shown the current value without being counted. If the counter store
    fails, a badge showing 0 is returned with status 500.
    """
    if service is None:
        return _degraded_badge()

    client_id = resolve_client_id(request)

    try:
        result = await service.record_visit(client_id)
    except StorageAppError as exc:
        _log_storage_failure(exc, backend=service.store.name)
        return _degraded_badge()

    return Response(
        content=render_badge_svg(result.count),
        media_type=SVG_MEDIA_TYPE,
        headers=NO_CACHE_HEADERS,
    )
