"""Roost exception hierarchy.

Shared across the route table, router, dispatcher, and middleware so every
module raises and catches the same types.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import ClassVar


class RoostError(Exception):
    """Base for all roost-specific errors."""


class ConfigurationError(RoostError):
    """Raised when routes, handlers, or middleware are misconfigured.

    Malformed patterns fail at registration time. Unknown middleware
    identifiers and unresolvable ``Name@method`` references fail when
    the app freezes, before the first request is served.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(RoostError):
    """Raise from a handler or middleware to answer with *status*.

    ``headers`` are added to the error response unless an ``@app.error``
    handler already set them.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        return f"{self.status}: {self.detail}" if self.detail else str(self.status)

    def add_headers(self, headers: Mapping[str, str]) -> None:
        """Attach more response headers while the error propagates.

        Like ``add_note()``, this mutates the exception in place; its type
        (and any ``@app.error`` handler keyed on it) stays the same.
        """
        object.__setattr__(self, "headers", (*self.headers, *headers.items()))


class _StatusError(HTTPError):
    code: ClassVar[int]
    reason: ClassVar[str]

    def __init__(self, detail: str | None = None, headers: tuple[tuple[str, str], ...] = ()) -> None:
        super().__init__(self.code, self.reason if detail is None else detail, headers)


class Unauthorized(_StatusError):  # noqa: N818
    """An API request without a logged-in session."""

    code, reason = 401, "Unauthorized"


class Forbidden(_StatusError):  # noqa: N818
    """Logged in, but the role is not enough for this route."""

    code, reason = 403, "Forbidden"


class NotFound(_StatusError):  # noqa: N818
    code, reason = 404, "Not Found"


class MethodNotAllowed(_StatusError):  # noqa: N818
    """The path exists under other methods, listed in ``Allow``."""

    code, reason = 405, "Method Not Allowed"

    def __init__(self, allowed: frozenset[str], detail: str | None = None) -> None:
        allow = ", ".join(sorted(allowed))
        super().__init__(detail or f"{self.reason}; use one of: {allow}", (("Allow", allow),))


class TooManyRequests(_StatusError):  # noqa: N818
    code, reason = 429, "Too Many Requests"

    def __init__(self, retry_after: int, detail: str | None = None) -> None:
        super().__init__(detail, (("Retry-After", str(retry_after)),))
