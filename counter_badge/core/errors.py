"""Application-level exception types.

This module defines domain errors used across services/adapters, enabling
consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional; adapters fill in what they know.
    """

    backend: str
    operation: str
    http_status: int
    path: str
    setting: str


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class StorageAppError(AppError):
    """Base class for counter storage failures."""


class StorageConfigError(StorageAppError):
    """Raised when the storage settings cannot produce a working store.

    Covers unparseable environment values and connection URLs the client
    library rejects.
    """


class BackendUnavailableError(StorageAppError):
    """Raised when the storage medium is unreachable or answers malformed data.

    Covers network and filesystem faults, non-2xx responses and bodies that
    cannot be interpreted as a counter value. Never retried by the core.
    """


class CorruptStateError(StorageAppError):
    """Raised when persisted local state cannot be parsed as a counter document."""
