"""CSRF protection for browser forms (``csrf``).

A random token lives in the session. State-changing requests must send
it back in the ``_csrf_token`` form field, the ``X-CSRF-Token`` header,
or a ``_csrf_token`` key of a JSON body. API paths are exempt: they are
called with credentials, not by a browser submitting a form.

Usage::

    with app.group(middleware="csrf"):
        app.post("/create-thread", "ThreadController@store")

    # In the handler rendering the form:
    def create_form(request: Request):
        token = csrf_token(request.session)
        return f'<form method="post"><input type="hidden" name="_csrf_token" value="{token}">'
"""

import logging
import secrets
from dataclasses import dataclass
from typing import Any

from roost.errors import ConfigurationError, Forbidden
from roost.http.request import Request
from roost.http.response import Response
from roost.middleware.protocol import Next
from roost.middleware.sessions import Session
from roost.security.audit import CSRF_REJECTED, emit_security_event

logger = logging.getLogger("roost.security")

_UNSAFE_METHODS: frozenset[str] = frozenset({"POST", "PUT", "PATCH", "DELETE"})


@dataclass(frozen=True, slots=True)
class CSRFConfig:
    field_name: str = "_csrf_token"
    header_name: str = "X-CSRF-Token"
    session_key: str = "_csrf_token"
    token_length: int = 32
    api_prefix: str = "/api/"
    exempt_paths: frozenset[str] = frozenset()


def csrf_token(session: Session, config: CSRFConfig | None = None) -> str:
    """The session's token, created on first use."""
    cfg = config or CSRFConfig()
    token = session.get(cfg.session_key)
    if not token:
        token = secrets.token_hex(cfg.token_length)
        session.set(cfg.session_key, token)
    return token


async def submitted_token(request: Request, config: CSRFConfig) -> str | None:
    """The token sent with *request*: header, then form field, then JSON key."""
    token = request.headers.get(config.header_name)
    if token is not None:
        return token

    content_type = request.content_type or ""
    if content_type.startswith("application/x-www-form-urlencoded"):
        return (await request.form()).get(config.field_name)
    if content_type.startswith("application/json"):
        try:
            body: Any = await request.json()
        except ValueError:
            return None
        value = body.get(config.field_name) if isinstance(body, dict) else None
        return value if isinstance(value, str) else None
    return None


class CSRFMiddleware:
    """Reject unsafe requests whose token doesn't match the session's.

    Safe methods pass through, and ensure the session has a token for
    the forms they render. A mismatch is logged and audited before it is
    raised as ``Forbidden``.
    """

    __slots__ = ("_config",)

    def __init__(self, config: CSRFConfig | None = None) -> None:
        self._config = config or CSRFConfig()

    @property
    def config(self) -> CSRFConfig:
        return self._config

    def exempt(self, request: Request) -> bool:
        cfg = self._config
        return (
            request.method not in _UNSAFE_METHODS
            or request.is_api(cfg.api_prefix)
            or request.path in cfg.exempt_paths
        )

    async def __call__(self, request: Request, next: Next) -> Response:
        if request.session is None:
            msg = (
                "CSRF middleware requires SessionMiddleware. Set AppConfig.secret_key "
                "or add SessionMiddleware before routes that use csrf."
            )
            raise ConfigurationError(msg)

        expected = csrf_token(request.session, self._config)
        if self.exempt(request):
            return await next(request)

        submitted = await submitted_token(request, self._config)
        if submitted is None or not secrets.compare_digest(submitted.encode(), expected.encode()):
            reason = "missing" if submitted is None else "invalid"
            logger.warning(
                "CSRF token %s on %s %s from %s",
                reason,
                request.method,
                request.path,
                request.client_ip,
            )
            emit_security_event(CSRF_REJECTED, request=request, details={"reason": reason})
            raise Forbidden(f"CSRF token {reason}")
        return await next(request)
