"""Roost: routing and middleware dispatch for forum applications.

Declare routes once, in groups that share a prefix and middleware,
resolve ``"Controller@method"`` handler references, and dispatch each
request through its route's middleware chain.

Basic usage::

    from roost import App, AppConfig

    app = App(AppConfig(secret_key="change-me"))

    @app.controller("HomeController")
    class HomeController:
        def index(self):
            return "Welcome to the forum"

    app.get("/", "HomeController@index")

    with app.group("/admin", admin=True):
        app.get("/users/edit/{id}", "AdminController@editUser")

    app.run()
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "Forbidden",
    "HTTPError",
    "MethodNotAllowed",
    "Middleware",
    "Next",
    "NotFound",
    "Redirect",
    "Request",
    "Response",
    "RoostError",
    "RouteTable",
    "Session",
    "TooManyRequests",
    "Unauthorized",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import roost`` fast while providing a clean top-level API.
    """
    if name == "App":
        from roost.app import App

        return App

    if name == "AppConfig":
        from roost.config import AppConfig

        return AppConfig

    if name == "Request":
        from roost.http.request import Request

        return Request

    if name in ("Response", "Redirect"):
        from roost.http import response as _resp

        return getattr(_resp, name)

    if name == "RouteTable":
        from roost.routing.table import RouteTable

        return RouteTable

    if name == "Session":
        from roost.middleware.sessions import Session

        return Session

    if name in ("Middleware", "Next"):
        from roost.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in (
        "ConfigurationError",
        "Forbidden",
        "HTTPError",
        "MethodNotAllowed",
        "NotFound",
        "RoostError",
        "TooManyRequests",
        "Unauthorized",
    ):
        from roost import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
