"""Handler resolution and invocation.

Route handlers are callables or ``"Name@method"`` strings naming a
registered controller. References are resolved once, when the app
freezes, so a typo is a startup failure rather than a per-request one::

    registry = HandlerRegistry()
    registry.register("AdminController", AdminController)
    registry.resolve("AdminController@editUser")  # bound edit_user method
    registry.resolve("HomeController")             # HomeController().index
"""

import inspect
import re
from collections.abc import Callable
from typing import Any

from roost._internal.types import Handler, HandlerRef
from roost.errors import ConfigurationError
from roost.http.request import Request
from roost.routing.params import convert_param

DEFAULT_ACTION = "index"

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def _snake_case(name: str) -> str:
    """``editUser`` -> ``edit_user``."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


class HandlerRegistry:
    """Maps controller names to controller objects.

    Classes are instantiated once, on first resolution, with no
    arguments. Instances are used as-is.
    """

    __slots__ = ("_controllers", "_instances")

    def __init__(self) -> None:
        self._controllers: dict[str, Any] = {}
        self._instances: dict[str, Any] = {}

    def register(self, name: str, controller: Any) -> None:
        """Register *controller* under *name* (replaces any previous one)."""
        if not name or "@" in name:
            msg = f"Invalid controller name {name!r}"
            raise ConfigurationError(msg)
        self._controllers[name] = controller
        self._instances.pop(name, None)

    def __contains__(self, name: object) -> bool:
        return name in self._controllers

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._controllers)

    def _instance(self, name: str) -> Any:
        if name in self._instances:
            return self._instances[name]
        try:
            controller = self._controllers[name]
        except KeyError:
            msg = f"Unknown controller {name!r}. Register it with app.controller({name!r}, ...)."
            raise ConfigurationError(msg) from None
        if inspect.isclass(controller):
            try:
                controller = controller()
            except TypeError as exc:
                msg = f"Controller {name!r} could not be instantiated: {exc}"
                raise ConfigurationError(msg) from exc
        self._instances[name] = controller
        return controller

    def resolve(self, ref: HandlerRef) -> Handler:
        """Resolve *ref* to a callable.

        Callables are returned unchanged. ``"Name@method"`` resolves to the
        bound method (``camelCase`` names fall back to ``snake_case``);
        a bare ``"Name"`` resolves to ``Name.index``.

        Raises ``ConfigurationError`` for unknown controllers or methods.
        """
        if not isinstance(ref, str):
            if callable(ref):
                return ref
            msg = f"Handler {ref!r} is neither callable nor a 'Name@method' string"
            raise ConfigurationError(msg)

        name, _, action = ref.partition("@")
        action = action or DEFAULT_ACTION
        controller = self._instance(name)

        for candidate in (action, _snake_case(action)):
            method = getattr(controller, candidate, None)
            if method is not None and callable(method):
                return method

        msg = f"Controller {name!r} has no action {action!r} (from handler {ref!r})"
        raise ConfigurationError(msg)


def build_handler_kwargs(
    handler: Callable[..., Any],
    request: Request,
    path_params: dict[str, str],
    param_types: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Inspect handler signature and build kwargs from request + path params.

    Resolution order:
    1. ``request`` parameter (by name or ``Request`` annotation)
    2. Path parameters (by name), converted through the parameter's
       annotation when present, else through the route converter
    3. ``**kwargs`` handlers receive every remaining path parameter
    """
    sig = inspect.signature(handler, eval_str=True)
    kwargs: dict[str, Any] = {}
    accepts_var_kw = False

    for name, param in sig.parameters.items():
        if param.kind is inspect.Parameter.VAR_KEYWORD:
            accepts_var_kw = True
        elif name == "request" or param.annotation is Request:
            kwargs[name] = request
        elif name in path_params:
            value = path_params[name]
            if param.annotation is not inspect.Parameter.empty:
                try:
                    kwargs[name] = param.annotation(value)
                except (ValueError, TypeError):
                    kwargs[name] = value
            elif param_types and param_types.get(name, "str") != "str":
                kwargs[name] = convert_param(value, param_types[name])
            else:
                kwargs[name] = value

    if accepts_var_kw:
        for name, value in path_params.items():
            kwargs.setdefault(name, value)

    return kwargs
