import logging
import math
import threading
import time
from typing import Callable, Dict, Optional, Protocol, Tuple, runtime_checkable

from pydantic import BaseModel

from transmute.config import RateLimitConfig
from transmute.core.exceptions import RateLimitExceededError


@runtime_checkable
class RateLimitStore(Protocol):
    """Fixed window attempt counters. hit() must increment atomically."""

    def hit(self, key: str, decay_seconds: int) -> int: ...

    def attempts(self, key: str) -> int: ...

    def available_in(self, key: str) -> int: ...

    def clear(self, key: str) -> None: ...


class MemoryRateLimitStore:
    """In-process counter store; a window starts with the first hit on a key."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._windows: Dict[str, Tuple[int, float]] = {}
        self._lock = threading.Lock()

    def _active_window(self, key: str, now: float) -> Optional[Tuple[int, float]]:
        window = self._windows.get(key)
        if window is None:
            return None
        if window[1] <= now:
            del self._windows[key]
            return None
        return window

    def hit(self, key: str, decay_seconds: int) -> int:
        with self._lock:
            now = self._clock()
            window = self._active_window(key, now)
            if window is None:
                window = (1, now + decay_seconds)
            else:
                window = (window[0] + 1, window[1])
            self._windows[key] = window
            return window[0]

    def attempts(self, key: str) -> int:
        with self._lock:
            window = self._active_window(key, self._clock())
            return window[0] if window else 0

    def available_in(self, key: str) -> int:
        with self._lock:
            now = self._clock()
            window = self._active_window(key, now)
            if window is None:
                return 0
            return max(0, math.ceil(window[1] - now))

    def clear(self, key: str) -> None:
        with self._lock:
            self._windows.pop(key, None)


class RateLimitStatus(BaseModel):
    key: str
    max_attempts: int
    attempts: int
    remaining: int
    retry_after: int
    limited: bool


class RateLimiter:
    """
    Gate that admits at most `max_attempts` checks per key within a decay window.

    Checks must run before any provider work starts.
    """

    def __init__(self, config: RateLimitConfig, store: Optional[RateLimitStore] = None):
        self.config = config
        self.store: RateLimitStore = store or MemoryRateLimitStore()

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    @property
    def global_key(self) -> str:
        return f"{self.config.key_prefix}:global"

    def check(self, key: str) -> None:
        if not self.enabled:
            return

        count = self.store.hit(key, self.config.decay_seconds)
        if count > self.config.max_attempts:
            retry_after = max(1, self.store.available_in(key))
            logging.warning(
                f"Rate limit exceeded for {key}: {count} attempts, retry in {retry_after}s"
            )
            raise RateLimitExceededError(key, self.config.max_attempts, retry_after)

    def check_global(self) -> None:
        if not self.enabled:
            return
        self.check(self.global_key)

    def remaining(self, key: str) -> int:
        return max(0, self.config.max_attempts - self.store.attempts(key))

    def status(self, key: str) -> RateLimitStatus:
        attempts = self.store.attempts(key)
        return RateLimitStatus(
            key=key,
            max_attempts=self.config.max_attempts,
            attempts=attempts,
            remaining=max(0, self.config.max_attempts - attempts),
            retry_after=self.store.available_in(key),
            limited=attempts >= self.config.max_attempts,
        )

    def reset(self, key: str) -> None:
        self.store.clear(key)

    def reset_global(self) -> None:
        self.reset(self.global_key)
