"""Per-client sliding-window rate limiting."""

from __future__ import annotations

import logging
import time
from collections import defaultdict, deque
from typing import Callable, Protocol

from core.config import settings

logger = logging.getLogger(__name__)


class RateLimitStore(Protocol):
    """Storage for admitted-request timestamps, one log per client."""

    def timestamps(self, client_id: str) -> list[float]: ...

    def prune(self, client_id: str, cutoff: float) -> None: ...

    def record(self, client_id: str, timestamp: float) -> None: ...


class InMemoryRateLimitStore:
    """Process-local store; state is not shared between instances."""

    def __init__(self):
        self._logs: dict[str, deque[float]] = defaultdict(deque)

    def timestamps(self, client_id: str) -> list[float]:
        return list(self._logs.get(client_id, ()))

    def prune(self, client_id: str, cutoff: float) -> None:
        log = self._logs.get(client_id)
        if log is None:
            return
        while log and log[0] < cutoff:
            log.popleft()
        if not log:
            del self._logs[client_id]

    def record(self, client_id: str, timestamp: float) -> None:
        self._logs[client_id].append(timestamp)


class SlidingWindowRateLimiter:
    """Admit at most ``max_requests`` per client in any trailing window.

    Only admitted requests are logged, so a rejected burst does not extend
    the time a client has to wait. A request exactly ``window_seconds`` old
    still counts against the window.
    """

    def __init__(
        self,
        max_requests: int | None = None,
        window_seconds: float | None = None,
        store: RateLimitStore | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests or settings.rate_limit_max_requests
        self.window_seconds = window_seconds or settings.rate_limit_window_seconds
        self.store = store if store is not None else InMemoryRateLimitStore()
        self.clock = clock

    def allow(self, client_id: str) -> bool:
        now = self.clock()
        self.store.prune(client_id, now - self.window_seconds)
        if len(self.store.timestamps(client_id)) >= self.max_requests:
            logger.warning("Rate limit exceeded for client %s", client_id)
            return False
        self.store.record(client_id, now)
        return True
