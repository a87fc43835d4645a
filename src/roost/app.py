"""Roost application class.

Mutable during setup (routes, controllers, middleware, error handlers).
Frozen on the first request or at lifespan startup, when handler
references and middleware identifiers are resolved and the route table
is compiled into a router.
"""

import logging
import threading
from collections.abc import Callable, Iterable
from typing import Any

from roost._internal.invoke import run_hooks
from roost._internal.types import ErrorHandler, Handler, HandlerRef, Hook, Receive, Scope, Send
from roost.config import AppConfig
from roost.errors import ConfigurationError
from roost.middleware.access_log import AccessLogMiddleware
from roost.middleware.auth import (
    AdminMiddleware,
    AuthConfig,
    AuthMiddleware,
    GuestMiddleware,
    ModeratorMiddleware,
)
from roost.middleware.cors import CORSConfig, CORSMiddleware
from roost.middleware.csrf import CSRFConfig, CSRFMiddleware
from roost.middleware.pipeline import MiddlewareRegistry, compose
from roost.middleware.protocol import Middleware, Next
from roost.middleware.rate_limit import RateLimitConfig, RateLimitMiddleware
from roost.middleware.sessions import SessionConfig, SessionMiddleware
from roost.routing.handlers import HandlerRegistry
from roost.routing.route import Route
from roost.routing.router import Router
from roost.routing.table import RouteGroup, RouteTable
from roost.server.dispatcher import Dispatcher
from roost.server.errors import ErrorResponder
from roost.server.handler import handle_request

logger = logging.getLogger("roost.server")

# Identifiers whose middleware reads the session
_SESSION_IDENTIFIERS = frozenset({"auth", "admin", "moderator", "guest", "csrf"})


class App:
    """The roost application.

    Usage::

        app = App(AppConfig(secret_key="..."))
        app.controller("HomeController", HomeController)
        app.get("/", "HomeController@index")

        with app.group("/admin", admin=True):
            app.get("/users/edit/{id}", "AdminController@editUser")

    Thread safety:
        The setup phase is single-threaded (registration at import time).
        The freeze transition uses a Lock + double-check so exactly one
        thread compiles the app, even if several workers receive their
        first request concurrently.
    """

    __slots__ = (
        "_dispatcher",
        "_error_handlers",
        "_errors",
        "_freeze_lock",
        "_frozen",
        "_handlers",
        "_middleware",
        "_middleware_list",
        "_pipeline",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
        "routes",
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self.routes = RouteTable()
        self._handlers = HandlerRegistry()
        self._middleware = MiddlewareRegistry()
        self._middleware_list: list[Middleware] = []
        self._error_handlers: dict[int | type, ErrorHandler] = {}
        self._startup_hooks: list[Hook] = []
        self._shutdown_hooks: list[Hook] = []
        self._frozen: bool = False
        self._freeze_lock = threading.Lock()

        # Compiled state: set during _freeze()
        self._dispatcher: Dispatcher | None = None
        self._pipeline: Next | None = None
        self._errors: ErrorResponder | None = None

        self._register_standard_middleware()

    # -- Derived configs --

    @property
    def auth_config(self) -> AuthConfig:
        cfg = self.config
        return AuthConfig(login_url=cfg.login_url, home_url=cfg.home_url, api_prefix=cfg.api_prefix)

    @property
    def cors_config(self) -> CORSConfig:
        cfg = self.config
        return CORSConfig(
            allow_origins=cfg.cors_allow_origins,
            allow_methods=cfg.cors_allow_methods,
            allow_headers=cfg.cors_allow_headers,
            max_age=cfg.cors_max_age,
        )

    def _register_standard_middleware(self) -> None:
        auth = self.auth_config
        self._middleware.register("auth", AuthMiddleware(auth))
        self._middleware.register("admin", AdminMiddleware(auth))
        self._middleware.register("moderator", ModeratorMiddleware(auth))
        self._middleware.register("guest", GuestMiddleware(auth))
        self._middleware.register("cors", CORSMiddleware(self.cors_config))
        csrf = CSRFConfig(api_prefix=self.config.api_prefix)
        self._middleware.register("csrf", CSRFMiddleware(csrf))
        forwarded = "x-forwarded-for" if self.config.rate_limit_trust_forwarded else None
        self._middleware.register(
            "ratelimit",
            RateLimitMiddleware(
                RateLimitConfig(
                    requests=self.config.rate_limit_requests,
                    window_seconds=self.config.rate_limit_window,
                    key_header=forwarded,
                )
            ),
        )

    # -- Route registration --

    def route(
        self,
        path: str,
        *,
        methods: str | Iterable[str] = "GET",
        middleware: str | Iterable[str] = (),
        requires_auth: bool = False,
        requires_admin: bool = False,
        name: str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Register a route handler via decorator.

        Args:
            path: URL path pattern. Use ``{param}`` for path parameters.
            methods: HTTP method or methods. Defaults to ``"GET"``.
            middleware: Middleware identifiers run before the handler.
            requires_auth: Shorthand for the ``auth`` identifier.
            requires_admin: Shorthand for the ``admin`` identifier.
            name: Optional route name, shown in route listings.
        """

        def decorator(func: Handler) -> Handler:
            self._check_not_frozen()
            self.routes.add(
                path,
                func,
                methods,
                middleware=middleware,
                requires_auth=requires_auth,
                requires_admin=requires_admin,
                name=name,
            )
            return func

        return decorator

    def add(
        self,
        path: str,
        handler: HandlerRef,
        methods: str | Iterable[str] = "GET",
        **options: Any,
    ) -> list[Route]:
        """Register *handler* for each of *methods* (see ``RouteTable.add``)."""
        self._check_not_frozen()
        return self.routes.add(path, handler, methods, **options)

    def _register(
        self, method: str, path: str, handler: HandlerRef | None, options: dict[str, Any]
    ) -> Any:
        if handler is not None:
            return self.add(path, handler, method, **options)
        return self.route(path, methods=method, **options)

    def get(self, path: str, handler: HandlerRef | None = None, **options: Any) -> Any:
        """Register a GET route, directly or as a decorator."""
        return self._register("GET", path, handler, options)

    def post(self, path: str, handler: HandlerRef | None = None, **options: Any) -> Any:
        """Register a POST route, directly or as a decorator."""
        return self._register("POST", path, handler, options)

    def put(self, path: str, handler: HandlerRef | None = None, **options: Any) -> Any:
        """Register a PUT route, directly or as a decorator."""
        return self._register("PUT", path, handler, options)

    def delete(self, path: str, handler: HandlerRef | None = None, **options: Any) -> Any:
        """Register a DELETE route, directly or as a decorator."""
        return self._register("DELETE", path, handler, options)

    def any(self, path: str, handler: HandlerRef | None = None, **options: Any) -> Any:
        """Register a route for every method, directly or as a decorator."""
        return self._register("*", path, handler, options)

    def group(
        self,
        prefix: str = "",
        middleware: str | Iterable[str] = (),
        *,
        auth: bool = False,
        admin: bool = False,
        builder: Callable[[RouteTable], object] | None = None,
    ) -> RouteGroup:
        """Open a route group (see ``RouteTable.group``)."""
        self._check_not_frozen()
        return self.routes.group(prefix, middleware, auth=auth, admin=admin, builder=builder)

    # -- Controllers --

    def controller(self, name: str, controller: Any = None) -> Any:
        """Register a controller for ``"Name@method"`` handler references.

        Works directly (``app.controller("HomeController", HomeController)``)
        or as a class decorator (``@app.controller("HomeController")``).
        """
        self._check_not_frozen()
        if controller is not None:
            self._handlers.register(name, controller)
            return controller

        def decorator(obj: Any) -> Any:
            self._handlers.register(name, obj)
            return obj

        return decorator

    # -- Middleware --

    def register_middleware(self, name: str, middleware: Middleware) -> None:
        """Register or replace the middleware behind a route identifier."""
        self._check_not_frozen()
        self._middleware.register(name, middleware)

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware that runs for every request."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    # -- Error handlers --

    def error(
        self,
        code_or_exception: int | type[Exception],
    ) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register an error handler via decorator."""

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_frozen()
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    # -- Lifecycle hooks --

    def on_startup(self, func: Hook) -> Hook:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        before the server begins accepting HTTP requests.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Hook) -> Hook:
        """Register an async or sync shutdown hook via decorator."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Compiled state --

    @property
    def router(self) -> Router:
        """The compiled router (freezes the app if needed)."""
        self._ensure_frozen()
        assert self._dispatcher is not None
        return self._dispatcher.router

    @property
    def dispatcher(self) -> Dispatcher:
        """The compiled dispatcher (freezes the app if needed)."""
        self._ensure_frozen()
        assert self._dispatcher is not None
        return self._dispatcher

    # -- Server --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Compile the app and serve it with granian."""
        from roost.logs import configure_logging
        from roost.server.runner import run_server

        configure_logging(self.config)
        self._ensure_frozen()
        run_server(
            self,
            host or self.config.host,
            port or self.config.port,
        )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return
        if scope["type"] != "http":
            return

        self._ensure_frozen()
        assert self._pipeline is not None and self._errors is not None
        await handle_request(scope, receive, send, self._pipeline, self._errors)

    async def _handle_lifespan(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup (configuration errors fail startup
        instead of the first request), then runs the registered hooks.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self._ensure_frozen()
                    await run_hooks(self._startup_hooks)
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await run_hooks(self._shutdown_hooks)
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        # 1. Close the registration phase
        self.routes.freeze()
        routes = self.routes.routes

        # 2. Global middleware: access log outermost, then sessions
        middleware_list: list[Middleware] = []
        if self.config.access_log:
            middleware_list.append(AccessLogMiddleware())
        if self.config.secret_key:
            middleware_list.append(
                SessionMiddleware(
                    SessionConfig(
                        secret_key=self.config.secret_key,
                        cookie_name=self.config.session_cookie,
                        max_age=self.config.session_max_age,
                        secure=self.config.session_secure,
                    )
                )
            )
        middleware_list.extend(self._middleware_list)

        has_sessions = any(isinstance(mw, SessionMiddleware) for mw in middleware_list)
        if not has_sessions:
            needing = sorted(
                {r.path for r in routes if _SESSION_IDENTIFIERS.intersection(r.middleware)}
            )
            if needing:
                msg = (
                    "Routes use session-based middleware but sessions are disabled: "
                    f"{', '.join(needing)}. Set AppConfig.secret_key or add SessionMiddleware."
                )
                raise ConfigurationError(msg)

        # 3. Resolve handlers and middleware identifiers, compile the router
        dispatcher = Dispatcher(
            Router(routes),
            self._handlers,
            self._middleware,
            self.cors_config,
        )

        self._dispatcher = dispatcher
        self._pipeline = compose(tuple(middleware_list), dispatcher.run)
        self._errors = ErrorResponder(
            dict(self._error_handlers), debug=self.config.debug, api_prefix=self.config.api_prefix
        )
        self._frozen = True
        logger.debug("Compiled %d routes", len(routes))

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes, controllers, and middleware before app.run()."
            )
            raise ConfigurationError(msg)
