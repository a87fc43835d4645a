"""Immutable HTTP request.

Frozen metadata with async body access. Per-request context that the
pipeline accumulates (the session, the authenticated user, the dispatch
state) travels on the request itself rather than in globals.
"""

from __future__ import annotations

import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from roost._internal.types import Receive
from roost.http.cookies import parse_cookies
from roost.http.headers import Headers
from roost.http.query import QueryParams

if TYPE_CHECKING:
    from roost.http.forms import FormData
    from roost.middleware.sessions import Session


async def _empty_receive() -> dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Metadata (method, path, headers, etc.) is frozen at creation.
    Body is accessed asynchronously via ``.body()``, ``.json()``, ``.form()``.

    ``session`` is attached by ``SessionMiddleware``; ``state`` is a
    per-request scratch dict shared by every copy of the request made
    with ``dataclasses.replace`` (auth middleware records ``user_id`` and
    ``user_role`` there, the dispatcher records ``dispatch_state``).
    """

    method: str
    path: str
    headers: Headers = field(default_factory=Headers)
    query: QueryParams = field(default_factory=QueryParams)
    path_params: dict[str, str] = field(default_factory=dict)
    client: tuple[str, int] | None = None
    cookies: Mapping[str, str] = field(default_factory=dict)
    session: Session | None = None
    state: dict[str, Any] = field(default_factory=dict, compare=False)

    # Private: ASGI receive callable for body streaming
    _receive: Receive = _empty_receive

    # Private: mutable cache for body and parsed form data
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def content_length(self) -> int | None:
        """``Content-Length`` as an int, or None when absent or malformed."""
        value = self.headers.get("content-length", "")
        return int(value) if value.isdigit() else None

    @property
    def url(self) -> str:
        """Path plus query string, as the client sent it."""
        qs = self.query.raw.decode("latin-1")
        return f"{self.path}?{qs}" if qs else self.path

    @property
    def client_ip(self) -> str:
        """Best-effort client address, honoring ``X-Forwarded-For``."""
        forwarded = self.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        if self.client:
            return self.client[0]
        return "unknown"

    @property
    def wants_json(self) -> bool:
        """True for XHR requests or clients that accept JSON."""
        if self.headers.get("x-requested-with", "").lower() == "xmlhttprequest":
            return True
        return "application/json" in self.headers.get("accept", "")

    def is_api(self, prefix: str = "/api/") -> bool:
        """True if the path falls under the JSON API prefix."""
        return self.path.startswith(prefix)

    # -- Derived copies --

    def with_path_params(self, params: dict[str, str]) -> Request:
        """Return a copy carrying the matched path parameters."""
        return replace(self, path_params=params)

    def with_session(self, session: Session) -> Request:
        """Return a copy with *session* attached."""
        return replace(self, session=session)

    # -- Body --

    async def body(self) -> bytes:
        """The raw body. The ASGI channel is drained on first call only."""
        cached = self._cache.get("body")
        if cached is None:
            parts = bytearray()
            more = True
            while more:
                message = await self._receive()
                parts += message.get("body", b"")
                more = message.get("more_body", False)
            cached = self._cache["body"] = bytes(parts)
        return cached

    async def text(self) -> str:
        return (await self.body()).decode("utf-8")

    async def json(self) -> Any:
        return json_module.loads(await self.body())

    async def form(self) -> FormData:
        """Decode a urlencoded body; anything else raises ``ValueError``."""
        if "form" not in self._cache:
            from roost.http.forms import FORM_CONTENT_TYPE, parse_form_data

            self._cache["form"] = parse_form_data(
                await self.body(), self.content_type or FORM_CONTENT_TYPE
            )
        return self._cache["form"]

    @classmethod
    def from_asgi(cls, scope: dict[str, Any], receive: Receive) -> Request:
        """Build a request from an ASGI HTTP scope."""
        headers = Headers(tuple(scope.get("headers", ())))
        peer = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            headers=headers,
            query=QueryParams(scope.get("query_string", b"")),
            client=(peer[0], peer[1]) if peer else None,
            cookies=parse_cookies(headers.get("cookie", "")),
            _receive=receive,
        )
