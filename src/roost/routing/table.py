"""Route table: the append-only registration phase.

Routes are registered in order, optionally inside nested groups that
contribute a path prefix and middleware identifiers. The table is frozen
when the app compiles it into a ``Router``; registration order is the
matching order.

Groups are an explicit scope stack rather than nested closures::

    table = RouteTable()
    with table.group("/admin", middleware=("ratelimit",), admin=True):
        table.get("/users", "AdminController@users")
        table.get("/users/edit/{id}", "AdminController@editUser")

    # or, with a builder callable
    table.group("/api", middleware=("cors",), builder=register_api)
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from types import TracebackType

from roost._internal.types import HandlerRef
from roost.errors import ConfigurationError
from roost.routing.matcher import PathPattern
from roost.routing.route import ANY_METHOD, METHODS, Route


@dataclass(frozen=True, slots=True)
class GroupScope:
    """One level of the group stack."""

    prefix: str = ""
    middleware: tuple[str, ...] = ()


def _normalize_identifiers(middleware: str | Iterable[str]) -> tuple[str, ...]:
    if isinstance(middleware, str):
        middleware = (middleware,)
    result: list[str] = []
    for ident in middleware:
        if not isinstance(ident, str) or not ident.strip():
            msg = f"Middleware identifiers must be non-empty strings, got {ident!r}"
            raise ConfigurationError(msg)
        result.append(ident.strip().lower())
    return tuple(result)


def _normalize_methods(methods: str | Iterable[str]) -> tuple[str, ...]:
    if isinstance(methods, str):
        methods = (methods,)
    result: list[str] = []
    for method in methods:
        upper = method.upper()
        if upper != ANY_METHOD and upper not in METHODS:
            allowed = ", ".join(sorted(METHODS))
            msg = f"Unsupported HTTP method {method!r} (expected one of: {allowed}, or '*')"
            raise ConfigurationError(msg)
        if upper not in result:
            result.append(upper)
    if not result:
        msg = "A route needs at least one HTTP method."
        raise ConfigurationError(msg)
    return tuple(result)


def _check_handler(handler: HandlerRef) -> None:
    if callable(handler):
        return
    if isinstance(handler, str):
        name, sep, method = handler.partition("@")
        if name and (not sep or method):
            return
    msg = f"Invalid handler {handler!r}: expected a callable or 'Name@method'"
    raise ConfigurationError(msg)


def _dedupe(identifiers: Iterable[str]) -> tuple[str, ...]:
    """Drop repeated identifiers, keeping the first position."""
    return tuple(dict.fromkeys(identifiers))


class RouteGroup:
    """Context manager for one ``RouteTable.group()`` scope.

    Entering pushes the scope; leaving pops it. ``__enter__`` returns the
    table so the ``as`` target can be used for registration.
    """

    __slots__ = ("_scope", "_table")

    def __init__(self, table: "RouteTable", scope: GroupScope) -> None:
        self._table = table
        self._scope = scope

    @property
    def scope(self) -> GroupScope:
        return self._scope

    def __enter__(self) -> "RouteTable":
        self._table._push(self._scope)
        return self._table

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._table._pop(self._scope)


class RouteTable:
    """Ordered, append-only collection of routes.

    Usage::

        table = RouteTable()
        table.get("/", "HomeController@index")
        table.add("/login", "AuthController@login", methods=("GET", "POST"))
        table.freeze()
    """

    __slots__ = ("_frozen", "_routes", "_scopes")

    def __init__(self) -> None:
        self._routes: list[Route] = []
        self._scopes: list[GroupScope] = []
        self._frozen = False

    # -- Registration --

    def add(
        self,
        pattern: str,
        handler: HandlerRef,
        methods: str | Iterable[str] = "GET",
        *,
        requires_auth: bool = False,
        requires_admin: bool = False,
        middleware: str | Iterable[str] = (),
        name: str | None = None,
    ) -> list[Route]:
        """Register one route per method in *methods*.

        The effective path is the concatenation of every enclosing group
        prefix and *pattern*. The effective middleware is every enclosing
        group's identifiers, outer to inner, then the route's own.
        ``requires_auth`` / ``requires_admin`` append ``auth`` / ``admin``.

        Raises ``ConfigurationError`` if the table is frozen, the pattern
        is malformed, or a method or handler is invalid.
        """
        self._check_not_frozen()
        verbs = _normalize_methods(methods)
        _check_handler(handler)

        path = "".join(scope.prefix for scope in self._scopes) + pattern
        compiled = PathPattern.compile(path or "/")

        own = list(_normalize_identifiers(middleware))
        if requires_auth:
            own.append("auth")
        if requires_admin:
            own.append("admin")
        chain = _dedupe(
            [ident for scope in self._scopes for ident in scope.middleware] + own
        )

        added: list[Route] = []
        for verb in verbs:
            route = Route(
                method=verb,
                path=compiled.path,
                pattern=compiled,
                handler=handler,
                middleware=chain,
                requires_auth="auth" in chain or "admin" in chain or "moderator" in chain,
                requires_admin="admin" in chain,
                name=name,
            )
            self._routes.append(route)
            added.append(route)
        return added

    def get(self, pattern: str, handler: HandlerRef, **kwargs: object) -> list[Route]:
        """Register a GET route."""
        return self.add(pattern, handler, "GET", **kwargs)  # type: ignore[arg-type]

    def post(self, pattern: str, handler: HandlerRef, **kwargs: object) -> list[Route]:
        """Register a POST route."""
        return self.add(pattern, handler, "POST", **kwargs)  # type: ignore[arg-type]

    def put(self, pattern: str, handler: HandlerRef, **kwargs: object) -> list[Route]:
        """Register a PUT route."""
        return self.add(pattern, handler, "PUT", **kwargs)  # type: ignore[arg-type]

    def delete(self, pattern: str, handler: HandlerRef, **kwargs: object) -> list[Route]:
        """Register a DELETE route."""
        return self.add(pattern, handler, "DELETE", **kwargs)  # type: ignore[arg-type]

    def options(self, pattern: str, handler: HandlerRef, **kwargs: object) -> list[Route]:
        """Register an OPTIONS route (reachable only via ``Router.match``)."""
        return self.add(pattern, handler, "OPTIONS", **kwargs)  # type: ignore[arg-type]

    def any(self, pattern: str, handler: HandlerRef, **kwargs: object) -> list[Route]:
        """Register a route that serves every method."""
        return self.add(pattern, handler, ANY_METHOD, **kwargs)  # type: ignore[arg-type]

    def group(
        self,
        prefix: str = "",
        middleware: str | Iterable[str] = (),
        *,
        auth: bool = False,
        admin: bool = False,
        builder: Callable[["RouteTable"], object] | None = None,
    ) -> RouteGroup:
        """Open a group scope with a path prefix and middleware.

        With *builder*, the callable is invoked with the table inside the
        scope and the scope is closed before returning. Without it, use
        the returned ``RouteGroup`` as a context manager.
        """
        self._check_not_frozen()
        if prefix and not prefix.startswith("/"):
            msg = f"Group prefix {prefix!r} must start with '/'"
            raise ConfigurationError(msg)

        identifiers = list(_normalize_identifiers(middleware))
        if auth:
            identifiers.append("auth")
        if admin:
            identifiers.append("admin")
        group = RouteGroup(
            self,
            GroupScope(prefix=prefix.rstrip("/"), middleware=tuple(identifiers)),
        )
        if builder is not None:
            with group:
                builder(self)
        return group

    def _push(self, scope: GroupScope) -> None:
        self._check_not_frozen()
        self._scopes.append(scope)

    def _pop(self, scope: GroupScope) -> None:
        if not self._scopes or self._scopes[-1] is not scope:
            msg = "Route groups must be closed in the order they were opened."
            raise ConfigurationError(msg)
        self._scopes.pop()

    # -- Lifecycle --

    def freeze(self) -> None:
        """End the registration phase."""
        if self._scopes:
            msg = "Cannot freeze the route table while a group is still open."
            raise ConfigurationError(msg)
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = "Cannot register routes after the route table is frozen."
            raise ConfigurationError(msg)

    # -- Introspection --

    @property
    def routes(self) -> tuple[Route, ...]:
        """All registered routes, in registration order."""
        return tuple(self._routes)

    def __len__(self) -> int:
        return len(self._routes)

    def format_routes(self, prefix: str = "") -> str:
        """Render an aligned METHOD / PATH / HANDLER / MIDDLEWARE table.

        With *prefix*, only routes whose path starts with it are listed.
        """
        headers = ("METHOD", "PATH", "HANDLER", "MIDDLEWARE")
        rows = [
            (
                route.method,
                route.path,
                route.handler_name + (f" ({route.name})" if route.name else ""),
                ", ".join(route.middleware) or "-",
            )
            for route in self._routes
            if route.path.startswith(prefix)
        ]
        widths = [
            max([len(headers[i])] + [len(row[i]) for row in rows]) for i in range(3)
        ]
        fmt = f"{{:<{widths[0]}}}  {{:<{widths[1]}}}  {{:<{widths[2]}}}  {{}}"
        lines = [fmt.format(*headers)]
        lines.append("-" * min(sum(widths) + 6 + len(headers[3]), 80))
        lines.extend(fmt.format(*row) for row in rows)
        return "\n".join(lines)
