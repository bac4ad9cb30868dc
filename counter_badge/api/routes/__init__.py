from __future__ import annotations

from counter_badge.api.routes.counter import router as counter_router
from counter_badge.api.routes.health import router as health_router

__all__ = ["counter_router", "health_router"]
