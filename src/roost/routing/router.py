"""Compiled router with ordered, first-match lookup.

Routes are scanned in registration order. The first route whose method
fits and whose pattern matches wins, even when a later route would be a
more specific match. The router never changes after construction, so
concurrent lookups need no locking.
"""

from collections.abc import Iterable

from roost.errors import MethodNotAllowed, NotFound
from roost.routing.matcher import normalize_path
from roost.routing.route import ANY_METHOD, METHODS, Route, RouteMatch


class Router:
    """Immutable ordered route list.

    Usage::

        router = Router(table.routes)
        match = router.match("GET", "/admin/users/edit/42")
        match.path_params  # {"id": "42"}
    """

    __slots__ = ("_routes",)

    def __init__(self, routes: Iterable[Route]) -> None:
        self._routes: tuple[Route, ...] = tuple(routes)

    @property
    def routes(self) -> tuple[Route, ...]:
        """All routes, in registration order."""
        return self._routes

    def match(self, method: str, path: str) -> RouteMatch:
        """Match a request method and path.

        Returns a ``RouteMatch`` on success.
        Raises ``MethodNotAllowed`` if the path matches but no route for
        this method does.
        Raises ``NotFound`` if no route matches the path.
        """
        method = method.upper()
        path = normalize_path(path)
        allowed: set[str] = set()

        for route in self._routes:
            params = route.pattern.match(path)
            if params is None:
                continue
            if route.accepts(method):
                return RouteMatch(route=route, path_params=params)
            allowed.add(route.method)

        if allowed:
            raise MethodNotAllowed(frozenset(allowed))
        raise NotFound(f"No route matches {method} {path!r}")

    def allowed_methods(self, path: str) -> frozenset[str]:
        """Verbs registered for *path* (``*`` routes expand to every verb)."""
        path = normalize_path(path)
        allowed: set[str] = set()
        for route in self._routes:
            if route.pattern.match(path) is None:
                continue
            if route.method == ANY_METHOD:
                allowed.update(METHODS)
            else:
                allowed.add(route.method)
        return frozenset(allowed)
