"""Admission control wiring for FastAPI routes.

This module connects the admission adapter to the HTTP layer:

- ``resolve_client_id`` derives the client identifier from request metadata.
- ``get_admission_controller`` returns the process-wide controller, or None
  when admission control is disabled (every request is then admitted).

Client identifier precedence: first entry of ``X-Forwarded-For``, then
``X-Real-IP``, then the transport peer address, then ``"unknown"``. Clients
that all resolve to ``"unknown"`` share one admission slot.
"""

from __future__ import annotations

import threading

from fastapi import Request

from counter_badge.adapters.admission.base import AbstractAdmissionController
from counter_badge.adapters.admission.in_memory import (
    UNKNOWN_CLIENT,
    InMemoryFixedWindowAdmissionController,
)
from counter_badge.core.config import settings

_controller: AbstractAdmissionController | None = None
_controller_config: tuple[float, int | None] | None = None
_controller_lock = threading.Lock()


def get_admission_controller() -> AbstractAdmissionController | None:
    """Return the process-wide admission controller.

    The instance is cached in-module so the admission record survives across
    requests. If configuration changes (primarily in tests), the controller
    is rebuilt with an empty record.

    Returns:
        The controller, or None when admission control is disabled.
    """

    global _controller, _controller_config

    if not settings.app.admission_enabled:
        return None

    max_entries = settings.app.admission_max_clients or None
    config = (settings.app.admission_window_seconds, max_entries)

    with _controller_lock:
        if _controller is None or _controller_config != config:
            _controller = InMemoryFixedWindowAdmissionController(
                window_seconds=settings.app.admission_window_seconds,
                max_entries=max_entries,
            )
            _controller_config = config
        return _controller


def reset_admission_controller() -> None:
    """Drop the cached controller and its record."""

    global _controller, _controller_config
    with _controller_lock:
        _controller = None
        _controller_config = None


def resolve_client_id(request: Request) -> str:
    """Derive the admission identifier for a request.

    Args:
        request: FastAPI request.

    Returns:
        str: Client address, or ``"unknown"``.
    """

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    return UNKNOWN_CLIENT

