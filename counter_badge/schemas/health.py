from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Liveness response."""

    status: str = Field("ok", description="Always 'ok' when the process serves requests")


class StorageHealthResponse(HealthResponse):
    """Storage diagnostics. Built from configuration only; the medium is not contacted."""

    backend: str = Field(..., description="Active counter store (file, kv-rest, kv-redis)")
    durable_store_configured: bool = Field(
        ...,
        description="Whether a durable-store endpoint/token pair is configured",
    )
