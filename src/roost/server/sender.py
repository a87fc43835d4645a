"""Write a ``Response`` to the ASGI ``send`` channel."""

from roost._internal.types import Send
from roost.http.response import Response

# 1xx, 204 and 304 responses never carry a body
_BODYLESS = frozenset({204, 304})


def _latin1(value: str) -> bytes:
    return value.encode("latin-1")


def encode_headers(response: Response, content_length: int) -> list[tuple[bytes, bytes]]:
    """Lowercased ASGI header pairs, one ``set-cookie`` per cookie."""
    headers = [(b"content-type", _latin1(response.content_type))]
    headers += [(_latin1(name.lower()), _latin1(value)) for name, value in response.headers]
    headers += [(b"set-cookie", _latin1(c.to_header_value())) for c in response.cookies]
    headers.append((b"content-length", str(content_length).encode()))
    return headers


async def send_response(response: Response, send: Send) -> None:
    """Send the start and body messages for *response*."""
    status = response.status
    body = b"" if status < 200 or status in _BODYLESS else response.body_bytes
    await send(
        {
            "type": "http.response.start",
            "status": status,
            "headers": encode_headers(response, len(body)),
        }
    )
    await send({"type": "http.response.body", "body": body})
