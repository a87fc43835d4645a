"""Session-based capability checks: ``auth``, ``admin``, ``moderator``, ``guest``.

Each check reads the login state from ``request.session`` (attached by
``SessionMiddleware``) and either lets the chain proceed or halts it:

- ``AuthMiddleware``: a logged-in user is required. Browsers are
  redirected to the login page and the original URL is remembered;
  API clients get a 401.
- ``AdminMiddleware``: the session role must be ``admin`` (403 otherwise).
- ``ModeratorMiddleware``: the role must be ``admin`` or ``moderator``.
- ``GuestMiddleware``: logged-in users are sent home (login/register pages).

On success the user id and role are copied into ``request.state`` so
handlers don't need to touch the session.

Usage::

    from roost.middleware.auth import login, login_redirect_target

    async def do_login(request: Request):
        user = await users.verify(...)
        login(request.session, user.id, user.role)
        return Redirect(login_redirect_target(request.session))
"""

from dataclasses import dataclass
from typing import Any

from roost.errors import ConfigurationError, Forbidden, Unauthorized
from roost.http.request import Request
from roost.http.response import Response
from roost.middleware.protocol import Next
from roost.middleware.sessions import Session
from roost.security.audit import (
    AUTH_REQUIRED,
    GUEST_REDIRECTED,
    ROLE_DENIED,
    emit_security_event,
)

ADMIN_DENIED = "Access denied. Admin privileges required."
MODERATOR_DENIED = "Access denied. Moderator privileges required."


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AuthConfig:
    """Auth middleware configuration.

    Attributes:
        session_key: Session key holding the logged-in user id.
        role_key: Session key holding the user's role.
        redirect_key: Session key remembering where to go after login.
        login_url: Where unauthenticated browsers are redirected.
        home_url: Where logged-in users are sent by ``GuestMiddleware``.
        api_prefix: Paths under this prefix always get JSON errors.
        admin_role: Role accepted by ``AdminMiddleware``.
        moderator_roles: Roles accepted by ``ModeratorMiddleware``.
    """

    session_key: str = "user_id"
    role_key: str = "user_role"
    redirect_key: str = "redirect_after_login"
    login_url: str = "/login"
    home_url: str = "/"
    api_prefix: str = "/api/"
    admin_role: str = "admin"
    moderator_roles: frozenset[str] = frozenset({"admin", "moderator"})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _redirect(url: str) -> Response:
    return Response(status=302, headers=(("Location", url),))


def _session(request: Request) -> Session:
    if request.session is None:
        msg = (
            "Auth middleware requires SessionMiddleware. Set AppConfig.secret_key "
            "or add SessionMiddleware before routes that use auth checks."
        )
        raise ConfigurationError(msg)
    return request.session


def is_api_request(request: Request, config: AuthConfig) -> bool:
    """True for API-style clients: API prefix, bearer token, or JSON ``Accept``."""
    return (
        request.is_api(config.api_prefix)
        or "authorization" in request.headers
        or request.wants_json
    )


def login(session: Session, user_id: Any, role: str = "user", config: AuthConfig | None = None) -> None:
    """Regenerate the session and record the logged-in user.

    The remembered post-login target survives the regeneration.
    """
    cfg = config or AuthConfig()
    target = session.get(cfg.redirect_key)
    session.regenerate()
    session.set(cfg.session_key, user_id)
    session.set(cfg.role_key, role)
    if target is not None:
        session.set(cfg.redirect_key, target)


def logout(session: Session) -> None:
    """Discard every session value."""
    session.regenerate()


def login_redirect_target(
    session: Session,
    default: str = "/",
    config: AuthConfig | None = None,
) -> str:
    """Pop and return the URL remembered by ``AuthMiddleware``."""
    cfg = config or AuthConfig()
    target = session.get(cfg.redirect_key)
    session.remove(cfg.redirect_key)
    if isinstance(target, str) and target.startswith("/") and not target.startswith("//"):
        return target
    return default


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------


class AuthMiddleware:
    """Require a logged-in user (``auth``)."""

    __slots__ = ("_config",)

    def __init__(self, config: AuthConfig | None = None) -> None:
        self._config = config or AuthConfig()

    @property
    def config(self) -> AuthConfig:
        return self._config

    def _authenticated(self, request: Request) -> bool:
        """Check the session; record the user on ``request.state`` if present."""
        cfg = self._config
        session = _session(request)
        if not session.has(cfg.session_key):
            return False
        request.state["user_id"] = session.get(cfg.session_key)
        request.state["user_role"] = session.get(cfg.role_key)
        return True

    def _reject_anonymous(self, request: Request) -> Response:
        cfg = self._config
        api = is_api_request(request, cfg)
        emit_security_event(AUTH_REQUIRED, request=request, details={"api": api})
        if api:
            raise Unauthorized()
        _session(request).set(cfg.redirect_key, request.url)
        return _redirect(cfg.login_url)

    async def __call__(self, request: Request, next: Next) -> Response:
        if not self._authenticated(request):
            return self._reject_anonymous(request)
        return await next(request)


class _RoleMiddleware(AuthMiddleware):
    """Auth check plus a role check; subclasses pick the roles."""

    __slots__ = ()

    denied_message = "Forbidden"

    def _allowed_roles(self) -> frozenset[str]:
        raise NotImplementedError

    async def __call__(self, request: Request, next: Next) -> Response:
        if not self._authenticated(request):
            return self._reject_anonymous(request)

        role = request.state.get("user_role")
        if role not in self._allowed_roles():
            emit_security_event(
                ROLE_DENIED,
                request=request,
                user_id=str(request.state.get("user_id")),
                details={"role": role, "required": sorted(self._allowed_roles())},
            )
            raise Forbidden(self.denied_message)
        return await next(request)


class AdminMiddleware(_RoleMiddleware):
    """Require the admin role (``admin``)."""

    __slots__ = ()

    denied_message = ADMIN_DENIED

    def _allowed_roles(self) -> frozenset[str]:
        return frozenset({self._config.admin_role})


class ModeratorMiddleware(_RoleMiddleware):
    """Require a moderator or admin role (``moderator``)."""

    __slots__ = ()

    denied_message = MODERATOR_DENIED

    def _allowed_roles(self) -> frozenset[str]:
        return self._config.moderator_roles


class GuestMiddleware(AuthMiddleware):
    """Only anonymous visitors may proceed (``guest``)."""

    __slots__ = ()

    async def __call__(self, request: Request, next: Next) -> Response:
        cfg = self._config
        session = _session(request)
        if session.has(cfg.session_key):
            emit_security_event(
                GUEST_REDIRECTED,
                request=request,
                user_id=str(session.get(cfg.session_key)),
            )
            return _redirect(cfg.home_url)
        return await next(request)
