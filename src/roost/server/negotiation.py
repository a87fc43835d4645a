"""Turn whatever a controller action returns into a ``Response``.

Middleware only ever sees ``Response`` objects, so the conversion
happens at the end of the chain, right after the handler returns.

=======================  =========================================
Return value             Response
=======================  =========================================
``Response``             unchanged
``Redirect``             its status, ``Location`` header
``None``                 204, empty body
``str``                  200, ``text/html``
``bytes``                200, ``application/octet-stream``
``dict`` / ``list``      200, ``application/json``
``(value, status)``      *value* converted, status replaced
``(value, status, h)``   as above, plus headers from dict *h*
=======================  =========================================
"""

from typing import Any

from roost.errors import ConfigurationError
from roost.http.response import Redirect, Response


def negotiate(value: Any) -> Response:
    """Convert a handler's return value; unknown types are a ``ConfigurationError``."""
    match value:
        case Response():
            return value
        case Redirect(url=url, status=status, headers=headers):
            return Response(status=status, headers=(("Location", url), *headers))
        case None:
            return Response(status=204)
        case str():
            return Response(value)
        case bytes():
            return Response(value, content_type="application/octet-stream")
        case dict() | list():
            return Response.json(value)
        case (inner, int() as status):
            return negotiate(inner).with_status(status)
        case (inner, int() as status, dict() as headers):
            return negotiate(inner).with_status(status).with_headers(headers)
    msg = (
        f"Handler returned {type(value).__name__}, which has no response conversion. "
        "Return a Response, Redirect, str, bytes, dict, list, None, "
        "or a (value, status[, headers]) tuple."
    )
    raise ConfigurationError(msg)
