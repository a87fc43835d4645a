"""Turning exceptions into responses.

``HTTPError`` subclasses carry their own status; anything else is a 500.
A handler registered with ``@app.error(...)`` takes precedence. Without
one, API callers get ``{"error": ..., "status": ...}`` and browsers get
plain text (or the traceback page when ``debug`` is on).
"""

import html
import inspect
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from roost._internal.invoke import invoke
from roost._internal.types import ErrorHandler
from roost.errors import HTTPError
from roost.http.request import Request
from roost.http.response import Response
from roost.server.negotiation import negotiate

logger = logging.getLogger("roost.server")


@dataclass(frozen=True, slots=True)
class ErrorResponder:
    handlers: Mapping[int | type, ErrorHandler] = field(default_factory=dict)
    debug: bool = False
    api_prefix: str = "/api/"

    async def respond(self, exc: Exception, request: Request) -> Response:
        if isinstance(exc, HTTPError):
            logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)
            status = exc.status
            handler = self.handlers.get(type(exc)) or self.handlers.get(status)
        else:
            logger.exception("500 %s %s", request.method, request.path)
            status = 500
            handler = self.handlers.get(500) or self.handlers.get(type(exc))

        if handler is not None:
            response = await self._call(handler, request, exc)
            if response.status == 200:
                response = response.with_status(status)
        elif isinstance(exc, HTTPError):
            response = self._default_http(exc, request)
        else:
            response = self._default_internal(exc, request)

        for name, value in getattr(exc, "headers", ()):
            if response.header(name) is None:
                response = response.with_header(name, value)
        return response

    @staticmethod
    async def _call(handler: ErrorHandler, request: Request, exc: Exception) -> Response:
        arity = len(inspect.signature(handler).parameters)
        return negotiate(await invoke(handler, *(request, exc)[: min(arity, 2)]))

    def _wants_json(self, request: Request) -> bool:
        return request.is_api(self.api_prefix) or request.wants_json

    def _default_http(self, exc: HTTPError, request: Request) -> Response:
        message = exc.detail or f"Error {exc.status}"
        if self._wants_json(request):
            return Response.json({"error": message, "status": exc.status}, status=exc.status)
        if self.debug and exc.detail:
            message = str(exc)
        return Response(html.escape(message), status=exc.status)

    def _default_internal(self, exc: Exception, request: Request) -> Response:
        if self._wants_json(request):
            payload: dict[str, object] = {"error": "Internal Server Error", "status": 500}
            if self.debug:
                payload["exception"] = f"{type(exc).__qualname__}: {exc}"
            return Response.json(payload, status=500)
        if self.debug:
            from roost.server.debug_page import render_debug_page

            return Response(render_debug_page(exc, request), status=500)
        return Response("Internal Server Error", status=500)
