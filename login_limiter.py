from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)

LOGIN_ATTEMPT_WINDOW_SECONDS = 5 * 60
LOGIN_ATTEMPT_MAX = 5


class RateLimitedError(Exception):
    """Too many failed logins for one (address, account) pair; retry later."""

    def __init__(self, retry_after_seconds: float):
        super().__init__("Too many login attempts. Please try again later.")
        self.retry_after_seconds = max(0.0, retry_after_seconds)


@dataclass
class _AttemptState:
    count: int
    first_at: float


class LoginAttemptLimiter:
    """
    Counts failed logins per (client address, lower-cased account) in a window
    that starts at the first failure. State is memory-only.

    The login route calls `reserve` before verifying credentials and `clear` on
    success. `check` and `record_failure` are the two halves of `reserve` for
    callers that count failures after the fact.
    """

    def __init__(
        self,
        *,
        max_attempts: int = LOGIN_ATTEMPT_MAX,
        window_seconds: float = LOGIN_ATTEMPT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_attempts = max_attempts
        self._window = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._attempts: dict[str, _AttemptState] = {}

    @staticmethod
    def key_for(address: str, account: str) -> str:
        return f"{address}::{account.lower()}"

    def check(self, address: str, account: str) -> None:
        key = self.key_for(address, account)
        now = self._clock()
        with self._lock:
            state = self._attempts.get(key)
            if state is None:
                return
            if now - state.first_at > self._window:
                del self._attempts[key]
                return
            if state.count >= self._max_attempts:
                retry_after = self._window - (now - state.first_at)
                logger.warning("LOGIN LIMITER: %s locked out for %.0fs", key, retry_after)
                raise RateLimitedError(retry_after)

    def record_failure(self, address: str, account: str) -> int:
        key = self.key_for(address, account)
        with self._lock:
            state = self._attempts.get(key)
            if state is None:
                state = _AttemptState(count=0, first_at=self._clock())
                self._attempts[key] = state
            state.count += 1
            return state.count

    def reserve(self, address: str, account: str) -> int:
        """
        Check and count one attempt under a single lock hold.

        Concurrent logins for the same key cannot all pass the check before any
        of them is counted. A success undoes the count with `clear`; an outcome
        that is not a credential failure undoes it with `release`.
        """
        key = self.key_for(address, account)
        now = self._clock()
        with self._lock:
            state = self._attempts.get(key)
            if state is not None and now - state.first_at > self._window:
                del self._attempts[key]
                state = None
            if state is None:
                state = _AttemptState(count=0, first_at=now)
                self._attempts[key] = state
            elif state.count >= self._max_attempts:
                retry_after = self._window - (now - state.first_at)
                logger.warning("LOGIN LIMITER: %s locked out for %.0fs", key, retry_after)
                raise RateLimitedError(retry_after)
            state.count += 1
            return state.count

    def release(self, address: str, account: str) -> None:
        key = self.key_for(address, account)
        with self._lock:
            state = self._attempts.get(key)
            if state is None:
                return
            state.count -= 1
            if state.count <= 0:
                del self._attempts[key]

    def clear(self, address: str, account: str) -> None:
        with self._lock:
            self._attempts.pop(self.key_for(address, account), None)

    def failures(self, address: str, account: str) -> int:
        with self._lock:
            state = self._attempts.get(self.key_for(address, account))
            return state.count if state else 0
