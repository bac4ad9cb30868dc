"""Admission control interfaces.

The counter service depends on this abstraction so the in-process record can
later be replaced by a shared store without touching the service.
"""

from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from enum import Enum


def hash_client_id(client_id: str) -> str:
    """Hash a client identifier for logging without exposing the address."""
    return hashlib.sha256(client_id.encode()).hexdigest()[:16]


class AdmissionDecision(str, Enum):
    """Outcome for a single request."""

    ADMIT = "admit"
    """The request may mutate the counter."""

    SUPPRESS = "suppress"
    """The request may only read the counter."""

    @property
    def admitted(self) -> bool:
        return self is AdmissionDecision.ADMIT


class AbstractAdmissionController(ABC):
    """Interface for admission controllers."""

    @abstractmethod
    def evaluate(self, client_id: str, *, now: float | None = None) -> AdmissionDecision:
        """Decide whether a request from client_id may mutate the counter.

        Args:
            client_id: Client identifier (typically a network address).
            now: UNIX time in seconds; defaults to the controller's clock.

        Returns:
            AdmissionDecision for this request. Never raises.
        """
        raise NotImplementedError
