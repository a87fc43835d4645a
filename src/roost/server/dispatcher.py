"""Dispatcher: match, run the route's middleware, invoke the handler.

``Dispatcher.run(request)`` is the single per-request entry point:

1. ``OPTIONS`` -> 200 preflight with CORS headers; routing is skipped.
2. First route in registration order whose method and pattern fit.
   ``NotFound`` / ``MethodNotAllowed`` propagate to the error handler.
3. The route's middleware chain runs in order; a halt is final.
4. The handler is called with the request and path parameters and its
   return value is converted to a ``Response``.
5. Handler exceptions propagate untouched.

Handler references and middleware identifiers are resolved when the
dispatcher is built, so configuration mistakes surface at startup.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from roost._internal.invoke import invoke
from roost.errors import HTTPError
from roost.http.request import Request
from roost.http.response import Response
from roost.middleware.cors import CORSConfig, preflight_response
from roost.middleware.pipeline import MiddlewareRegistry, compose
from roost.middleware.protocol import Next
from roost.routing.handlers import HandlerRegistry, build_handler_kwargs
from roost.routing.route import Route, RouteMatch
from roost.routing.router import Router
from roost.server.negotiation import negotiate

STATE_KEY = "dispatch_state"
ROUTE_KEY = "route"


class DispatchState(Enum):
    """Where a request ended up in the dispatch state machine."""

    UNMATCHED = "unmatched"
    MATCHED = "matched"
    AUTHORIZED = "authorized"
    COMPLETED = "completed"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class CompiledRoute:
    """A route with its handler resolved and middleware chain composed."""

    route: Route
    handler: Callable[..., Any]
    chain: Next


def _make_endpoint(handler: Callable[..., Any], param_types: dict[str, str]) -> Next:
    async def endpoint(request: Request) -> Response:
        request.state[STATE_KEY] = DispatchState.AUTHORIZED
        kwargs = build_handler_kwargs(handler, request, request.path_params, param_types)
        result = await invoke(handler, **kwargs)
        response = negotiate(result)
        request.state[STATE_KEY] = DispatchState.COMPLETED
        return response

    return endpoint


class Dispatcher:
    """Per-request orchestration over an immutable router.

    Usage::

        dispatcher = Dispatcher(router, handlers, middleware, cors)
        response = await dispatcher.run(request)
    """

    __slots__ = ("_compiled", "_cors", "_router")

    def __init__(
        self,
        router: Router,
        handlers: HandlerRegistry,
        middleware: MiddlewareRegistry,
        cors: CORSConfig | None = None,
    ) -> None:
        self._router = router
        self._cors = cors or CORSConfig()
        # Keyed by identity: equal-looking routes registered twice stay distinct
        self._compiled: dict[int, CompiledRoute] = {}
        for route in router.routes:
            handler = handlers.resolve(route.handler)
            chain = compose(
                middleware.resolve_chain(route.middleware),
                _make_endpoint(handler, route.pattern.param_types),
            )
            self._compiled[id(route)] = CompiledRoute(route=route, handler=handler, chain=chain)

    @property
    def router(self) -> Router:
        return self._router

    def compiled(self, route: Route) -> CompiledRoute:
        """The resolved handler and chain for *route*."""
        return self._compiled[id(route)]

    def match(self, request: Request) -> RouteMatch:
        """Route *request*, recording the outcome on ``request.state``."""
        try:
            match = self._router.match(request.method, request.path)
        except HTTPError:
            request.state[STATE_KEY] = DispatchState.REJECTED
            raise
        request.state[ROUTE_KEY] = match.route
        request.state[STATE_KEY] = DispatchState.MATCHED
        return match

    async def run(self, request: Request) -> Response:
        """Dispatch one request and return its response."""
        request.state[STATE_KEY] = DispatchState.UNMATCHED

        if request.method == "OPTIONS":
            return preflight_response(self._cors, request)

        match = self.match(request)
        compiled = self.compiled(match.route)

        try:
            response = await compiled.chain(request.with_path_params(match.path_params))
        except HTTPError:
            if request.state[STATE_KEY] is DispatchState.MATCHED:
                request.state[STATE_KEY] = DispatchState.REJECTED
            raise

        if request.state[STATE_KEY] is DispatchState.MATCHED:
            # A middleware answered without calling next
            request.state[STATE_KEY] = DispatchState.REJECTED
        return response
