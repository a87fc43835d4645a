"""Security audit events raised by the access-control middleware.

Forward them to your own telemetry::

    from roost.security import set_security_event_sink

    set_security_event_sink(lambda event: metrics.increment(event.name))
"""

from roost.security.audit import (
    AUTH_REQUIRED,
    CSRF_REJECTED,
    GUEST_REDIRECTED,
    RATE_LIMITED,
    ROLE_DENIED,
    SecurityEvent,
    emit_security_event,
    set_security_event_sink,
)

__all__ = [
    "AUTH_REQUIRED",
    "CSRF_REJECTED",
    "GUEST_REDIRECTED",
    "RATE_LIMITED",
    "ROLE_DENIED",
    "SecurityEvent",
    "emit_security_event",
    "set_security_event_sink",
]
