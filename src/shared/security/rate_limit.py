"""Per-client request counting for the contact form."""

import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Protocol

# Rate limiting configuration
RATE_LIMIT_WINDOW_SECONDS = 15 * 60
RATE_LIMIT_MAX_REQUESTS = 5


@dataclass
class RateWindow:
    count: int
    window_start: float


@dataclass(frozen=True)
class RateDecision:
    allowed: bool
    remaining: int
    retry_after_seconds: int = 0


class RateLimiter(Protocol):
    def admit(self, client_address: str) -> RateDecision: ...

    def sweep(self) -> int: ...


class FixedWindowRateLimiter:
    """
    Counts requests per client address in windows that open on the first request.

    The window resets once the current time is past window_start + window length,
    so a client gets a fresh quota exactly one window after its first request.
    """

    def __init__(
        self,
        max_requests: int = RATE_LIMIT_MAX_REQUESTS,
        window_seconds: int = RATE_LIMIT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, RateWindow] = {}
        self._lock = Lock()

    def admit(self, client_address: str) -> RateDecision:
        now = self._clock()
        with self._lock:
            window = self._windows.get(client_address)
            if window is None or now >= window.window_start + self.window_seconds:
                window = RateWindow(count=0, window_start=now)
                self._windows[client_address] = window

            if window.count >= self.max_requests:
                retry_after = int(window.window_start + self.window_seconds - now) + 1
                return RateDecision(allowed=False, remaining=0, retry_after_seconds=max(retry_after, 1))

            window.count += 1
            return RateDecision(allowed=True, remaining=self.max_requests - window.count)

    def sweep(self) -> int:
        """Forget windows that have already elapsed."""
        now = self._clock()
        with self._lock:
            stale = [
                address for address, window in self._windows.items()
                if now >= window.window_start + self.window_seconds
            ]
            for address in stale:
                del self._windows[address]
            return len(stale)
