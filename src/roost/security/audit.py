"""Security audit trail for the access-control middleware.

Every denial the built-in middleware produces (anonymous visitor on a
protected page, wrong role, logged-in user on a guest page, exhausted
rate limit, bad CSRF token) becomes a ``SecurityEvent``. Events are logged on
``roost.security`` and handed to an optional process-wide sink.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from time import time
from typing import TYPE_CHECKING, Any, TypeAlias

if TYPE_CHECKING:
    from roost.http.request import Request

logger = logging.getLogger("roost.security")

AUTH_REQUIRED = "auth.required"
ROLE_DENIED = "authz.role_denied"
GUEST_REDIRECTED = "auth.guest_redirected"
RATE_LIMITED = "ratelimit.exceeded"
CSRF_REJECTED = "csrf.rejected"


@dataclass(frozen=True, slots=True)
class SecurityEvent:
    """One denial, with enough request context to investigate it."""

    name: str
    timestamp: float = field(default_factory=time)
    method: str | None = None
    path: str | None = None
    client_ip: str | None = None
    user_id: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def describe(self) -> str:
        return (
            f"{self.name} {self.method or '-'} {self.path or '-'} "
            f"ip={self.client_ip or '-'} user={self.user_id or '-'}"
        )


SecurityEventSink: TypeAlias = Callable[[SecurityEvent], None]

_sink_lock = threading.Lock()
_sink: SecurityEventSink | None = None


def set_security_event_sink(sink: SecurityEventSink | None) -> None:
    """Install the process-wide sink; ``None`` removes it."""
    global _sink
    with _sink_lock:
        _sink = sink


def emit_security_event(
    name: str,
    *,
    request: Request | None = None,
    user_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> SecurityEvent:
    """Record *name* for *request*.

    Without an explicit *user_id*, the id the auth middleware stored on
    ``request.state`` is used.
    """
    if request is not None and user_id is None and "user_id" in request.state:
        user_id = str(request.state["user_id"])
    event = SecurityEvent(
        name=name,
        method=request.method if request is not None else None,
        path=request.path if request is not None else None,
        client_ip=request.client_ip if request is not None else None,
        user_id=user_id,
        details=details or {},
    )
    logger.info("%s %s", event.describe(), event.details)

    with _sink_lock:
        sink = _sink
    if sink is not None:
        sink(event)
    return event
