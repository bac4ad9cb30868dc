"""Counter service: admission decision followed by a counter read or bump."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from counter_badge.adapters.admission.base import (
    AbstractAdmissionController,
    AdmissionDecision,
    hash_client_id,
)
from counter_badge.adapters.storage.base import AbstractCounterStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VisitResult:
    """Outcome of one badge request.

    Attributes:
        count: Counter value to render.
        decision: Whether the request was counted.
        backend: Name of the store that served the value.
    """

    count: int
    decision: AdmissionDecision
    backend: str

    @property
    def counted(self) -> bool:
        return self.decision is AdmissionDecision.ADMIT


class CounterService:
    """Runs the per-request counter flow.

    Admitted requests increment the counter, suppressed requests only read
    it. Storage errors propagate to the caller, which decides how to degrade.
    The admission decision is taken before any storage call, so a storage
    failure never alters the admission record.
    """

    def __init__(
        self,
        store: AbstractCounterStore,
        admission: AbstractAdmissionController | None = None,
    ) -> None:
        self._store = store
        self._admission = admission

    @property
    def store(self) -> AbstractCounterStore:
        return self._store

    def _decide(self, client_id: str, now: float | None) -> AdmissionDecision:
        if self._admission is None:
            return AdmissionDecision.ADMIT
        return self._admission.evaluate(client_id, now=now)

    async def record_visit(self, client_id: str, *, now: float | None = None) -> VisitResult:
        """Count a visit from client_id if admitted and return the value to show.

        Args:
            client_id: Client identifier (see ``resolve_client_id``).
            now: Optional UNIX time override, mainly for tests.

        Returns:
            VisitResult with the count and the admission decision.

        Raises:
            StorageAppError: If the store cannot be read or written.
        """
        decision = self._decide(client_id, now)

        if decision is AdmissionDecision.ADMIT:
            count = await self._store.increment()
        else:
            count = await self._store.get_count()

        logger.info(
            "counter.visit",
            extra={
                "client_hash": hash_client_id(client_id),
                "decision": decision.value,
                "count": count,
                "backend": self._store.name,
            },
        )
        return VisitResult(count=count, decision=decision, backend=self._store.name)
