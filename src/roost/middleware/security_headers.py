"""Browser hardening headers for HTML pages.

Forum pages are framed, sniffed and linked from elsewhere like any
other site; these headers limit what a browser lets third parties do with
them. JSON API responses are not touched.
"""

from dataclasses import dataclass

from roost.http.request import Request
from roost.http.response import Response
from roost.middleware.protocol import Next


@dataclass(frozen=True, slots=True)
class SecurityHeadersConfig:
    """Header values, sent verbatim. ``None`` leaves a header out."""

    x_frame_options: str | None = "SAMEORIGIN"
    x_content_type_options: str | None = "nosniff"
    referrer_policy: str | None = "strict-origin-when-cross-origin"
    content_security_policy: str | None = None
    strict_transport_security: str | None = None

    def headers(self) -> dict[str, str]:
        values = {
            "X-Frame-Options": self.x_frame_options,
            "X-Content-Type-Options": self.x_content_type_options,
            "Referrer-Policy": self.referrer_policy,
            "Content-Security-Policy": self.content_security_policy,
            "Strict-Transport-Security": self.strict_transport_security,
        }
        return {name: value for name, value in values.items() if value}


class SecurityHeadersMiddleware:
    """Add the configured headers to ``text/html`` responses.

    Headers a handler already set are kept::

        app.add_middleware(SecurityHeadersMiddleware(
            SecurityHeadersConfig(strict_transport_security="max-age=31536000"),
        ))
    """

    __slots__ = ("_headers",)

    def __init__(self, config: SecurityHeadersConfig | None = None) -> None:
        self._headers = (config or SecurityHeadersConfig()).headers()

    async def __call__(self, request: Request, next: Next) -> Response:
        response = await next(request)
        if not response.content_type.startswith("text/html"):
            return response
        missing = {k: v for k, v in self._headers.items() if response.header(k) is None}
        return response.with_headers(missing)
