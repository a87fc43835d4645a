"""Outgoing responses.

``Response`` is immutable: every ``with_*`` call returns a modified copy,
so middleware can decorate a handler's response without side effects::

    Response("<h1>Banned</h1>", status=403).with_header("Retry-After", "3600")
"""

from __future__ import annotations

import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from roost.http.cookies import SetCookie


@dataclass(frozen=True, slots=True)
class Response:
    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/html; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()
    cookies: tuple[SetCookie, ...] = ()

    @classmethod
    def json(cls, data: Any, status: int = 200) -> Response:
        """Serialize *data* to JSON; unknown types fall back to ``str()``."""
        return cls(json_module.dumps(data, default=str), status, "application/json")

    def with_status(self, status: int) -> Response:
        return replace(self, status=status)

    def with_content_type(self, content_type: str) -> Response:
        return replace(self, content_type=content_type)

    def with_header(self, name: str, value: str) -> Response:
        """Append a header; existing headers with the same name are kept."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> Response:
        return replace(self, headers=(*self.headers, *headers.items()))

    def with_cookie(self, name: str, value: str, **attributes: Any) -> Response:
        """Attach a ``Set-Cookie``; *attributes* are ``SetCookie`` fields
        (``max_age``, ``path``, ``domain``, ``secure``, ``httponly``, ``samesite``).
        """
        return replace(self, cookies=(*self.cookies, SetCookie(name, value, **attributes)))

    def without_cookie(self, name: str, path: str = "/") -> Response:
        """Tell the browser to delete cookie *name*."""
        return replace(self, cookies=(*self.cookies, SetCookie.expired(name, path)))

    def header(self, name: str, default: str | None = None) -> str | None:
        """First value of header *name*, compared case-insensitively."""
        wanted = name.lower()
        return next((v for k, v in self.headers if k.lower() == wanted), default)

    @property
    def body_bytes(self) -> bytes:
        return self.body.encode("utf-8") if isinstance(self.body, str) else self.body

    @property
    def text(self) -> str:
        return self.body.decode("utf-8") if isinstance(self.body, bytes) else self.body


@dataclass(frozen=True, slots=True)
class Redirect:
    """Handler return value for a redirect; 302 unless *status* says otherwise."""

    url: str
    status: int = 302
    headers: tuple[tuple[str, str], ...] = ()
