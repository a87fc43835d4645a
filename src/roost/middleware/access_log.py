"""Access logging: one line per request on ``roost.access``."""

import logging
import time

from roost.errors import HTTPError
from roost.http.request import Request
from roost.http.response import Response
from roost.middleware.protocol import Next

logger = logging.getLogger("roost.access")


class AccessLogMiddleware:
    """Log method, path, status, duration, and user id.

    Added globally by the app when ``AppConfig.access_log`` is set.
    Errors are re-raised for the error handler after being logged with
    their status (500 for anything that isn't an ``HTTPError``).
    """

    __slots__ = ()

    async def __call__(self, request: Request, next: Next) -> Response:
        start = time.perf_counter()
        status = 500
        try:
            response = await next(request)
            status = response.status
            return response
        except HTTPError as exc:
            status = exc.status
            raise
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.info(
                "%s %s %d %.1fms user=%s",
                request.method,
                request.url,
                status,
                elapsed_ms,
                request.state.get("user_id", "-"),
            )
