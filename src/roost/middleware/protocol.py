"""The middleware contract.

A middleware is any ``async (request, next) -> Response`` callable. It
either proceeds with ``return await next(request)`` (possibly passing a
copy of the request that carries more context) or halts by returning
its own response. After a halt, nothing later in the chain runs, the
handler included.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeAlias

from roost.http.request import Request
from roost.http.response import Response

# The rest of the chain, ending in the route handler
Next: TypeAlias = Callable[[Request], Awaitable[Response]]


class Middleware(Protocol):
    """Structural type for middleware; functions and objects both fit.

    ::

        async def maintenance(request: Request, next: Next) -> Response:
            if request.path.startswith("/admin"):
                return Response("Back soon", status=503)
            return await next(request)

        app.register_middleware("maintenance", maintenance)
        app.get("/admin/settings", "AdminController@settings", middleware="maintenance")
    """

    async def __call__(self, request: Request, next: Next) -> Response: ...
