"""Session middleware: signed cookie sessions.

Session data is serialized as JSON and signed using ``itsdangerous``.
The session is attached to the request (``request.session``) and passed
down the chain explicitly; nothing is stored in globals or ContextVars.
"""

from collections.abc import Iterator, MutableMapping
from dataclasses import dataclass
from typing import Any

from itsdangerous import BadSignature, URLSafeTimedSerializer

from roost.errors import ConfigurationError
from roost.http.request import Request
from roost.http.response import Response
from roost.middleware.protocol import Next

FLASH_KEY = "_flash"


class Session(MutableMapping[str, Any]):
    """Mutable per-request session data.

    Behaves like a dict and adds the small vocabulary the auth layer
    uses: ``has``, ``get``, ``set``, ``remove``, ``flash``, ``regenerate``.
    Any write marks the session ``modified`` so the middleware knows to
    re-sign the cookie.
    """

    __slots__ = ("_data", "modified", "regenerated")

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data or {})
        self.modified = False
        self.regenerated = False

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value
        self.modified = True

    def __delitem__(self, key: str) -> None:
        del self._data[key]
        self.modified = True

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Session({self._data!r})"

    def has(self, key: str) -> bool:
        """True if *key* is present and not ``None``."""
        return self._data.get(key) is not None

    def set(self, key: str, value: Any) -> None:
        self[key] = value

    def remove(self, key: str) -> None:
        """Delete *key* if present."""
        if key in self._data:
            del self[key]

    def flash(self, key: str, value: Any = None) -> Any:
        """Store a one-shot message, or read and clear it.

        ``flash("error", "Bad password")`` stores; ``flash("error")``
        returns the stored value once and forgets it.
        """
        messages = self._data.get(FLASH_KEY)
        if value is not None:
            messages = dict(messages or {})
            messages[key] = value
            self[FLASH_KEY] = messages
            return None
        if not messages or key not in messages:
            return None
        messages = dict(messages)
        result = messages.pop(key)
        if messages:
            self[FLASH_KEY] = messages
        else:
            del self[FLASH_KEY]
        return result

    def regenerate(self) -> None:
        """Discard all data, preventing session fixation on login/logout."""
        self._data.clear()
        self.modified = True
        self.regenerated = True

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)


# -- Configuration --


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Session middleware configuration.

    ``secret_key`` is required: sessions are signed, not encrypted.
    """

    secret_key: str
    cookie_name: str = "forum_session"
    max_age: int = 86400  # 24 hours
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"


# -- Middleware --


class SessionMiddleware:
    """Signed cookie session middleware.

    Reads the session cookie, verifies the signature and age, attaches a
    ``Session`` to the request, then writes the cookie back when the
    session changed or already existed (refreshing its timestamp). A session
    regenerated down to nothing (``logout``) expires the cookie instead.
    Tampered or expired cookies yield an empty session.

    Usage::

        from roost.middleware.sessions import SessionConfig, SessionMiddleware

        app.add_middleware(SessionMiddleware(SessionConfig(secret_key="...")))

        # In a handler:
        def dashboard(request: Request):
            request.session.set("visits", request.session.get("visits", 0) + 1)
    """

    __slots__ = ("_config", "_serializer")

    def __init__(self, config: SessionConfig) -> None:
        if not config.secret_key:
            msg = "SessionConfig.secret_key must not be empty."
            raise ConfigurationError(msg)

        self._config = config
        self._serializer = URLSafeTimedSerializer(config.secret_key, salt="roost.session")

    @property
    def config(self) -> SessionConfig:
        return self._config

    def load(self, request: Request) -> Session:
        """Deserialize and verify the session cookie."""
        cookie_value = request.cookies.get(self._config.cookie_name)
        if not cookie_value:
            return Session()

        try:
            data = self._serializer.loads(cookie_value, max_age=self._config.max_age)
        except BadSignature:
            return Session()

        if not isinstance(data, dict):
            return Session()
        return Session(data)

    def dumps(self, session: Session) -> str:
        """Sign *session* into a cookie value."""
        return self._serializer.dumps(session.to_dict())

    def _save(self, response: Response, session: Session) -> Response:
        cfg = self._config
        return response.with_cookie(
            name=cfg.cookie_name,
            value=self.dumps(session),
            max_age=cfg.max_age,
            path=cfg.path,
            domain=cfg.domain,
            secure=cfg.secure,
            httponly=cfg.httponly,
            samesite=cfg.samesite,
        )

    async def __call__(self, request: Request, next: Next) -> Response:
        """Load session, dispatch, then save (or expire) the session cookie."""
        had_cookie = self._config.cookie_name in request.cookies
        session = self.load(request)

        response = await next(request.with_session(session))

        if session.regenerated and not session:
            # Logged out: drop the cookie instead of signing an empty dict
            return response.without_cookie(self._config.cookie_name, self._config.path)
        if session.modified or had_cookie:
            return self._save(response, session)
        return response
