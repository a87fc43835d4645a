"""Middleware composition and the identifier registry.

Routes name their middleware by identifier (``"auth"``, ``"admin"``,
``"ratelimit"``); the registry maps identifiers to middleware callables
and ``compose`` wraps them around an endpoint in list order.
"""

from collections.abc import Callable, Iterable, Sequence
from typing import Any

from roost.errors import ConfigurationError
from roost.http.request import Request
from roost.http.response import Response
from roost.middleware.protocol import Next


def compose(middleware: Sequence[Callable[..., Any]], endpoint: Next) -> Next:
    """Wrap *endpoint* in *middleware*, first element outermost.

    A middleware that returns without calling ``next`` halts the chain:
    neither later middleware nor the endpoint run.
    """
    handler = endpoint
    for mw in reversed(middleware):
        outer = handler
        mw_ref = mw

        async def make_next(req: Request, _mw: Any = mw_ref, _next: Next = outer) -> Response:
            return await _mw(req, _next)

        handler = make_next
    return handler


class MiddlewareRegistry:
    """Case-insensitive identifier -> middleware mapping.

    Usage::

        registry = MiddlewareRegistry()
        registry.register("Auth", AuthMiddleware(config))
        registry.resolve_chain(("auth", "ratelimit"))  # ConfigurationError: ratelimit
    """

    __slots__ = ("_entries",)

    def __init__(self) -> None:
        self._entries: dict[str, Callable[..., Any]] = {}

    @staticmethod
    def _key(name: str) -> str:
        return name.strip().lower()

    def register(self, name: str, middleware: Callable[..., Any]) -> None:
        """Register or replace the middleware for *name*."""
        if not name or not name.strip():
            msg = "Middleware identifier must be a non-empty string."
            raise ConfigurationError(msg)
        if not callable(middleware):
            msg = f"Middleware {name!r} must be callable, got {type(middleware).__name__}"
            raise ConfigurationError(msg)
        self._entries[self._key(name)] = middleware

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._key(name) in self._entries

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._entries)

    def resolve(self, name: str) -> Callable[..., Any]:
        """Return the middleware for *name*.

        Raises ``ConfigurationError`` for unknown identifiers.
        """
        try:
            return self._entries[self._key(name)]
        except KeyError:
            known = ", ".join(sorted(self._entries)) or "none"
            msg = f"Unknown middleware {name!r} (registered: {known})"
            raise ConfigurationError(msg) from None

    def resolve_chain(self, names: Iterable[str]) -> tuple[Callable[..., Any], ...]:
        """Resolve every identifier in *names*, preserving order."""
        return tuple(self.resolve(name) for name in names)
