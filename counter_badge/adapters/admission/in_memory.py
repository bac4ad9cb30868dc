"""In-memory fixed-window admission controller.

Notes:
- Per-process only: every worker keeps its own record.
- Thread-safe: uses a lock around shared state.
- Bounded: stale entries are swept and the oldest are evicted past capacity.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from typing import Callable

from counter_badge.adapters.admission.base import (
    AbstractAdmissionController,
    AdmissionDecision,
)

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


class InMemoryFixedWindowAdmissionController(AbstractAdmissionController):
    """At most one admission per client identifier per window.

    The window is anchored at the last *admitted* request: suppressed requests
    never move it. A client is admitted again once ``now - last_admitted``
    reaches ``window_seconds``.

    The record keeps identifiers ordered by last admission. Entries older than
    one window carry no information (the next request would be admitted
    anyway) and are swept when the record reaches capacity; if it is still
    full, the least recently admitted identifiers are evicted.
    """

    def __init__(
        self,
        *,
        window_seconds: float = 60.0,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the admission controller.

        Args:
            window_seconds: Size of the fixed window in seconds.
            max_entries: Maximum tracked identifiers (None for unbounded).
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If window_seconds or max_entries are invalid.
        """
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1")

        self._window_seconds = window_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._lock = threading.RLock()
        self._last_admitted: OrderedDict[str, float] = OrderedDict()

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    def __len__(self) -> int:
        with self._lock:
            return len(self._last_admitted)

    def evaluate(self, client_id: str, *, now: float | None = None) -> AdmissionDecision:
        """Evaluate and record a request from client_id.

        An empty identifier is treated as ``"unknown"``; all such clients
        share one admission slot.
        """
        key = client_id or UNKNOWN_CLIENT
        current = self._clock() if now is None else now

        with self._lock:
            last = self._last_admitted.get(key)
            if last is not None and current - last < self._window_seconds:
                return AdmissionDecision.SUPPRESS

            self._last_admitted[key] = current
            self._last_admitted.move_to_end(key)
            self._enforce_capacity_locked(current)
            return AdmissionDecision.ADMIT

    def _sweep_expired_locked(self, now: float) -> int:
        # Oldest admissions come first, so stop at the first live entry.
        removed = 0
        while self._last_admitted:
            key, admitted_at = next(iter(self._last_admitted.items()))
            if now - admitted_at < self._window_seconds:
                break
            self._last_admitted.popitem(last=False)
            removed += 1
        return removed

    def _enforce_capacity_locked(self, now: float) -> None:
        if self._max_entries is None or len(self._last_admitted) <= self._max_entries:
            return

        swept = self._sweep_expired_locked(now)
        evicted = 0
        while len(self._last_admitted) > self._max_entries:
            self._last_admitted.popitem(last=False)
            evicted += 1

        logger.debug(
            "admission.record_trimmed",
            extra={
                "swept": swept,
                "evicted": evicted,
                "size": len(self._last_admitted),
            },
        )
