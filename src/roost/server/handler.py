"""ASGI entry for HTTP requests.

Nothing past this module sees raw ASGI messages: the scope becomes a
``Request``, the compiled pipeline turns it into a ``Response``, and any
exception that escapes the pipeline is rendered by ``ErrorResponder``.
"""

from roost._internal.types import Receive, Scope, Send
from roost.http.request import Request
from roost.middleware.protocol import Next
from roost.server.errors import ErrorResponder
from roost.server.sender import send_response


async def handle_request(
    scope: Scope, receive: Receive, send: Send, pipeline: Next, errors: ErrorResponder
) -> None:
    request = Request.from_asgi(scope, receive)
    try:
        response = await pipeline(request)
    except Exception as exc:
        response = await errors.respond(exc, request)
    await send_response(response, send)
