"""One-time CSRF token issuance and validation."""

import logging
import secrets
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Optional, Protocol

from src.shared.errors import ExpiredToken, MissingToken, UnknownToken

CSRF_TOKEN_BYTES = 32  # 256 bits
CSRF_TOKEN_TTL_SECONDS = 60 * 60


@dataclass(frozen=True)
class CsrfToken:
    token: str
    client_fingerprint: str
    expires_at: float


class TokenStore(Protocol):
    """Anything that can hand out and redeem one-time tokens.

    The in-memory store only works for a single process. A multi-instance
    deployment can back this with a shared cache without touching the routes.
    """

    def issue(self, client_address: str) -> str: ...

    def validate(self, token: Optional[str]) -> None: ...

    def sweep(self) -> int: ...


class InMemoryTokenStore:
    """Process-wide token map guarded by a lock."""

    def __init__(self, ttl_seconds: int = CSRF_TOKEN_TTL_SECONDS, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._tokens: Dict[str, CsrfToken] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._tokens)

    def __contains__(self, token: str) -> bool:
        return token in self._tokens

    def issue(self, client_address: str) -> str:
        """
        Issue a new token bound to the client address and issuance time.

        Expired entries are swept on every issue so the map cannot grow without bound
        even if the periodic sweep is not running.
        """
        now = self._clock()
        token = secrets.token_hex(CSRF_TOKEN_BYTES)
        entry = CsrfToken(
            token=token,
            client_fingerprint=f"{client_address}:{int(now)}",
            expires_at=now + self.ttl_seconds,
        )
        with self._lock:
            self._sweep_locked(now)
            self._tokens[token] = entry
        return token

    def validate(self, token: Optional[str]) -> None:
        """
        Redeem a token.

        Raises:
            MissingToken: no token supplied
            UnknownToken: token was never issued or was already used
            ExpiredToken: token outlived its TTL (it is removed)
        """
        if not token:
            raise MissingToken()

        with self._lock:
            entry = self._tokens.get(token)
            if entry is None:
                raise UnknownToken()
            # Either outcome below consumes the token
            del self._tokens[token]

        if self._clock() > entry.expires_at:
            logging.info(f"Rejected expired CSRF token issued to {entry.client_fingerprint}")
            raise ExpiredToken()

    def sweep(self) -> int:
        """Remove expired tokens. Returns how many were dropped."""
        with self._lock:
            return self._sweep_locked(self._clock())

    def _sweep_locked(self, now: float) -> int:
        expired = [key for key, entry in self._tokens.items() if now > entry.expires_at]
        for key in expired:
            del self._tokens[key]
        return len(expired)
