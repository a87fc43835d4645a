"""Type aliases shared across roost.

ASGI aliases are only used by the server layer, ``Request.from_asgi`` and
the test client. Everything above that works with ``Request`` and
``Response``.
"""

from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any, TypeAlias

Message: TypeAlias = MutableMapping[str, Any]
Scope: TypeAlias = MutableMapping[str, Any]
Receive: TypeAlias = Callable[[], Awaitable[Message]]
Send: TypeAlias = Callable[[Message], Awaitable[None]]

# A callable, or a "Controller@method" string resolved at freeze
Handler: TypeAlias = Callable[..., Any]
HandlerRef: TypeAlias = Handler | str

# Called as handler(), handler(request) or handler(request, exc)
ErrorHandler: TypeAlias = Callable[..., Any]

# Startup / shutdown hooks take no arguments
Hook: TypeAlias = Callable[[], Any]
