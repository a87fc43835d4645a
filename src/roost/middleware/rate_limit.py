"""Fixed-window rate limiting (``ratelimit``).

Each identity gets ``requests`` calls per ``window_seconds``. Logged-in
users are counted by user id, anonymous visitors by client address, so
sharing an IP doesn't share a budget once signed in.
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from roost.errors import TooManyRequests
from roost.http.request import Request
from roost.http.response import Response
from roost.middleware.protocol import Next
from roost.security.audit import RATE_LIMITED, emit_security_event

logger = logging.getLogger("roost.security")


@dataclass(frozen=True, slots=True)
class RateLimitConfig:
    """Configuration for the rate limiter.

    ``key_header`` names a proxy header (``x-forwarded-for``) whose first
    hop identifies anonymous clients. Leave it unset unless a trusted
    proxy overwrites that header: clients can send any value they like.
    """

    requests: int = 100
    window_seconds: int = 3600
    session_key: str = "user_id"
    key_header: str | None = None


class RateLimitMiddleware:
    """In-memory, thread-safe fixed-window limiter.

    Exceeding the budget raises ``TooManyRequests`` (429 with
    ``Retry-After``); the error renderer answers API paths with JSON.
    """

    __slots__ = ("_clock", "_config", "_lock", "_state")

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or RateLimitConfig()
        self._clock = clock
        self._lock = threading.Lock()
        self._state: dict[str, tuple[int, float]] = {}

    @property
    def config(self) -> RateLimitConfig:
        return self._config

    def identity(self, request: Request) -> str:
        """``user:<id>`` for logged-in sessions, else ``ip:<client>``."""
        session = request.session
        if session is not None and session.has(self._config.session_key):
            return f"user:{session.get(self._config.session_key)}"

        header_name = self._config.key_header
        if header_name:
            raw = request.headers.get(header_name)
            if raw:
                # First hop of the proxy chain is the client.
                forwarded = raw.split(",")[0].strip()
                if forwarded:
                    return f"ip:{forwarded}"
        if request.client:
            return f"ip:{request.client[0]}"
        return "ip:unknown"

    def hit(self, key: str) -> tuple[bool, int]:
        """Count one request for *key*.

        Returns ``(allowed, retry_after_seconds)``.
        """
        cfg = self._config
        now = self._clock()
        with self._lock:
            count, window_start = self._state.get(key, (0, now))
            if now - window_start >= cfg.window_seconds:
                count, window_start = 0, now

            if count >= cfg.requests:
                retry_after = max(1, int(window_start + cfg.window_seconds - now))
                return False, retry_after

            self._state[key] = (count + 1, window_start)
            return True, 0

    def reset(self) -> None:
        """Forget every counter."""
        with self._lock:
            self._state.clear()

    async def __call__(self, request: Request, next: Next) -> Response:
        key = self.identity(request)
        allowed, retry_after = self.hit(key)
        if not allowed:
            logger.warning(
                "Rate limit exceeded for %s on %s %s (%d per %ds)",
                key,
                request.method,
                request.path,
                self._config.requests,
                self._config.window_seconds,
            )
            emit_security_event(
                RATE_LIMITED,
                request=request,
                details={"identity": key, "retry_after": retry_after},
            )
            raise TooManyRequests(retry_after)
        return await next(request)
