"""Locate the App a CLI command operates on.

Targets are ``"module:attribute"`` import strings or paths to a Python
file (``examples/forum/app.py``), optionally followed by ``:attribute``.
The attribute defaults to ``app``.
"""

import importlib
import runpy
import sys
from pathlib import Path
from typing import Any, NoReturn

from roost.app import App
from roost.errors import ConfigurationError


def _split_target(target: str) -> tuple[str, str]:
    # "C:\\forum\\app.py" keeps its drive colon
    location, sep, attr = target.rpartition(":")
    if not sep or "/" in attr or "\\" in attr or attr.endswith(".py"):
        return target, "app"
    return location, attr or "app"


def _load_namespace(location: str) -> dict[str, Any]:
    if location.endswith(".py") or "/" in location:
        path = Path(location)
        if not path.is_file():
            msg = f"No such file: {location!r}"
            raise ModuleNotFoundError(msg)
        return runpy.run_path(str(path), run_name=f"roost_cli_{path.stem}")
    return vars(importlib.import_module(location))


def resolve_app(target: str) -> App:
    """Resolve *target* to an App instance.

    A callable that is not an App is treated as a factory and called with
    no arguments.

    Raises:
        ModuleNotFoundError: If the module or file cannot be found.
        AttributeError: If the attribute does not exist.
        TypeError: If the resolved object is not a roost ``App``.
    """
    location, attr = _split_target(target)
    namespace = _load_namespace(location)
    try:
        obj = namespace[attr]
    except KeyError:
        msg = f"{location!r} has no attribute {attr!r}"
        raise AttributeError(msg) from None

    if callable(obj) and not isinstance(obj, App):
        try:
            obj = obj()
        except Exception as exc:
            msg = f"App factory {target!r} raised an error: {exc}"
            raise TypeError(msg) from exc

    if not isinstance(obj, App):
        msg = f"{target!r} resolved to {type(obj).__name__}, not a roost.App instance"
        raise TypeError(msg)
    return obj


def _fail(exc: Exception) -> NoReturn:
    print(f"Error: {exc}", file=sys.stderr)
    raise SystemExit(1) from exc


def load_app(target: str) -> App:
    """Resolve and compile *target*, exiting with code 1 on any failure.

    Compiling resolves every handler reference and middleware identifier,
    so configuration mistakes are reported before anything is served.
    """
    try:
        app = resolve_app(target)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        _fail(exc)
    try:
        app._ensure_frozen()
    except ConfigurationError as exc:
        _fail(exc)
    return app
