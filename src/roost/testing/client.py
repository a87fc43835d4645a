"""In-process client that drives an ``App`` through its ASGI callable."""

import json as json_module
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlencode

from roost._internal.invoke import run_hooks
from roost._internal.types import Message
from roost.app import App
from roost.http.cookies import parse_cookies
from roost.http.forms import FORM_CONTENT_TYPE
from roost.http.response import Response


@dataclass(slots=True)
class _Capture:
    """ASGI ``send`` target that reassembles the response messages."""

    status: int = 200
    raw_headers: list[tuple[bytes, bytes]] = field(default_factory=list)
    chunks: list[bytes] = field(default_factory=list)

    async def __call__(self, message: Message) -> None:
        match message["type"]:
            case "http.response.start":
                self.status = message["status"]
                self.raw_headers = list(message.get("headers", ()))
            case "http.response.body":
                self.chunks.append(message.get("body", b""))

    def response(self) -> Response:
        headers = [(k.decode("latin-1"), v.decode("latin-1")) for k, v in self.raw_headers]
        content_type = next((v for k, v in headers if k == "content-type"), "text/html; charset=utf-8")
        return Response(
            body=b"".join(self.chunks),
            status=self.status,
            content_type=content_type,
            headers=tuple((k, v) for k, v in headers if k not in ("content-type", "content-length")),
        )


def _encode_body(
    body: bytes | None, form: dict[str, str] | None, json: Any
) -> tuple[bytes, str | None]:
    if form is not None:
        return urlencode(form).encode("utf-8"), FORM_CONTENT_TYPE
    if json is not None:
        return json_module.dumps(json).encode("utf-8"), "application/json"
    return body or b"", None


class TestClient:
    """Sends requests straight into the app, no sockets involved.

    Cookies from ``Set-Cookie`` are replayed on later requests, so a
    login followed by a protected page behaves like a browser session::

        async with TestClient(app) as client:
            await client.post("/login", form={"username": "bob", "password": "secret"})
            assert (await client.get("/settings")).status == 200
    """

    __test__ = False

    __slots__ = ("app", "client_addr", "cookies")

    def __init__(self, app: App, *, client_addr: tuple[str, int] = ("127.0.0.1", 0)) -> None:
        self.app = app
        self.client_addr = client_addr
        self.cookies: dict[str, str] = {}

    async def __aenter__(self) -> "TestClient":
        self.app._ensure_frozen()
        await run_hooks(self.app._startup_hooks)
        return self

    async def __aexit__(self, *args: object) -> None:
        await run_hooks(self.app._shutdown_hooks)

    async def get(self, path: str, *, headers: dict[str, str] | None = None) -> Response:
        return await self.request("GET", path, headers=headers)

    async def delete(self, path: str, *, headers: dict[str, str] | None = None) -> Response:
        return await self.request("DELETE", path, headers=headers)

    async def options(self, path: str, *, headers: dict[str, str] | None = None) -> Response:
        return await self.request("OPTIONS", path, headers=headers)

    async def post(self, path: str, **kwargs: Any) -> Response:
        """POST with ``body=``, ``form=`` or ``json=``, plus optional ``headers=``."""
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Response:
        return await self.request("PUT", path, **kwargs)

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
        form: dict[str, str] | None = None,
        json: Any = None,
    ) -> Response:
        payload, content_type = _encode_body(body, form, json)
        scope = self._scope(method, path, content_type, headers or {})

        pending = [{"type": "http.request", "body": payload, "more_body": False}]

        async def receive() -> Message:
            return pending.pop() if pending else {"type": "http.disconnect"}

        capture = _Capture()
        await self.app(scope, receive, capture)
        response = capture.response()
        self._remember_cookies(response)
        return response

    def _scope(
        self, method: str, path: str, content_type: str | None, headers: dict[str, str]
    ) -> dict[str, Any]:
        path, _, query = path.partition("?")
        merged = {"content-type": content_type} if content_type else {}
        merged.update((k.lower(), v) for k, v in headers.items())

        # Explicit Cookie header values override the jar
        jar = {**self.cookies, **parse_cookies(merged.get("cookie", ""))}
        if jar:
            merged["cookie"] = "; ".join(f"{k}={v}" for k, v in jar.items())

        return {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": method.upper(),
            "path": path,
            "raw_path": path.encode("latin-1"),
            "query_string": query.encode("latin-1"),
            "root_path": "",
            "headers": [(k.encode("latin-1"), v.encode("latin-1")) for k, v in merged.items()],
            "server": ("testserver", 80),
            "client": self.client_addr,
        }

    def _remember_cookies(self, response: Response) -> None:
        for name, value in response.headers:
            if name != "set-cookie":
                continue
            pair, _, attributes = value.partition(";")
            key, _, cookie_value = (part.strip() for part in pair.partition("="))
            if "max-age=0" in attributes.lower().replace(" ", ""):
                self.cookies.pop(key, None)
            else:
                self.cookies[key] = cookie_value
