"""Call handlers and hooks that may be ``def`` or ``async def``."""

import inspect
from collections.abc import Iterable
from typing import Any

from roost._internal.types import Hook


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *handler*, awaiting the result when it is awaitable."""
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


async def run_hooks(hooks: Iterable[Hook]) -> None:
    """Run lifecycle hooks in registration order; the first failure propagates."""
    for hook in hooks:
        await invoke(hook)
