"""Route and RouteMatch frozen dataclasses."""

from dataclasses import dataclass

from roost._internal.types import HandlerRef
from roost.routing.matcher import PathPattern

# Verbs a route may be registered for; "*" matches any of them
METHODS: frozenset[str] = frozenset({"GET", "POST", "PUT", "DELETE", "OPTIONS"})
ANY_METHOD = "*"


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition.

    Created by ``RouteTable.add()`` with the effective path and middleware
    of every enclosing group already folded in. ``handler`` is either a
    callable or a ``"Name@method"`` reference resolved when the app freezes.
    """

    method: str
    path: str
    pattern: PathPattern
    handler: HandlerRef
    middleware: tuple[str, ...] = ()
    requires_auth: bool = False
    requires_admin: bool = False
    name: str | None = None

    def accepts(self, method: str) -> bool:
        """True if this route serves *method*."""
        return self.method == ANY_METHOD or self.method == method

    @property
    def handler_name(self) -> str:
        """Human-readable handler label for route listings."""
        if isinstance(self.handler, str):
            return self.handler
        return getattr(self.handler, "__qualname__", repr(self.handler))


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    path_params: dict[str, str]
