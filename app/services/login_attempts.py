"""Sliding-window login throttle keyed by submitted email or caller address."""

import logging
import math
import time
from datetime import UTC, datetime
from typing import Protocol

from app.core.errors import RateLimitedError

logger = logging.getLogger(__name__)


class AttemptStore(Protocol):
    """Where attempt timestamps live; swap in a shared store for multi-instance setups."""

    def get(self, key: str) -> list[float]: ...

    def set(self, key: str, stamps: list[float]) -> None: ...

    def clear(self, key: str) -> None: ...


class InMemoryAttemptStore:
    """
    Process-local attempt store. Resets on restart, is not shared between
    instances, and never evicts keys.
    """

    def __init__(self) -> None:
        self._attempts: dict[str, list[float]] = {}

    def get(self, key: str) -> list[float]:
        return list(self._attempts.get(key, ()))

    def set(self, key: str, stamps: list[float]) -> None:
        self._attempts[key] = list(stamps)

    def clear(self, key: str) -> None:
        self._attempts.pop(key, None)

    def __len__(self) -> int:
        return len(self._attempts)


class LoginThrottle:
    """
    Allow at most max_attempts attempts per identifier inside window_seconds.

    Read-modify-write without a lock: two concurrent attempts for one identifier
    can under-count by one.
    """

    def __init__(
        self,
        store: AttemptStore,
        *,
        max_attempts: int = 5,
        window_seconds: float = 15 * 60,
    ) -> None:
        self.store = store
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds

    def hit(self, identifier: str, now: float | None = None) -> None:
        """Record an attempt, or raise RateLimitedError when the window is full."""
        now = time.time() if now is None else now
        recent = [t for t in self.store.get(identifier) if now - t < self.window_seconds]
        if len(recent) >= self.max_attempts:
            reset_at = min(recent) + self.window_seconds
            retry_after = max(1, math.ceil(reset_at - now))
            self.store.set(identifier, recent)
            logger.warning(
                "Login throttled for identifier; retry_after=%ss attempts=%s",
                retry_after,
                len(recent),
            )
            raise RateLimitedError(
                "Too many login attempts",
                code="RATE_LIMITED",
                extra={
                    "resetTime": datetime.fromtimestamp(reset_at, UTC).isoformat(),
                    "retryAfter": retry_after,
                },
            )
        recent.append(now)
        self.store.set(identifier, recent)

    def reset(self, identifier: str) -> None:
        self.store.clear(identifier)
