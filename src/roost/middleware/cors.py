"""CORS middleware and the global preflight response.

``CORSMiddleware`` (identifier ``cors``) adds CORS headers to every
response of the routes that list it, including error responses raised
further down the chain. ``OPTIONS`` requests never reach routing: the
dispatcher answers every one of them with ``preflight_response``.
"""

from dataclasses import dataclass

from roost.errors import HTTPError
from roost.http.request import Request
from roost.http.response import Response
from roost.middleware.protocol import Next


@dataclass(frozen=True, slots=True)
class CORSConfig:
    """CORS configuration.

    Defaults allow any origin with the verbs and headers the forum API
    uses. Override what you need::

        CORSConfig(
            allow_origins=("https://forum.example.com",),
            allow_credentials=True,
        )
    """

    allow_origins: tuple[str, ...] = ("*",)
    allow_methods: tuple[str, ...] = ("GET", "POST", "PUT", "DELETE", "OPTIONS")
    allow_headers: tuple[str, ...] = ("Content-Type", "Authorization")
    expose_headers: tuple[str, ...] = ()
    allow_credentials: bool = False
    max_age: int = 86400

    def is_allowed_origin(self, origin: str) -> bool:
        """Check if the origin is in the allow list."""
        if "*" in self.allow_origins:
            return True
        return origin in self.allow_origins


def cors_headers(config: CORSConfig, origin: str | None) -> dict[str, str]:
    """Origin, credentials, and expose headers for a request from *origin*.

    Without an ``Origin`` header, only a wildcard configuration produces
    ``Access-Control-Allow-Origin``.
    """
    if "*" in config.allow_origins and not config.allow_credentials:
        headers = {"Access-Control-Allow-Origin": "*"}
    elif origin is not None and config.is_allowed_origin(origin):
        headers = {"Access-Control-Allow-Origin": origin, "Vary": "Origin"}
    else:
        return {}

    if config.allow_credentials:
        headers["Access-Control-Allow-Credentials"] = "true"
    if config.expose_headers:
        headers["Access-Control-Expose-Headers"] = ", ".join(config.expose_headers)
    return headers


def add_cors_headers(response: Response, config: CORSConfig, origin: str | None) -> Response:
    """Return *response* with the ``cors_headers`` for *origin* added."""
    return response.with_headers(cors_headers(config, origin))


def preflight_response(config: CORSConfig, request: Request) -> Response:
    """Build the 200 response returned for every ``OPTIONS`` request."""
    response = Response(body="", status=200, content_type="text/plain; charset=utf-8")
    response = add_cors_headers(response, config, request.headers.get("origin"))
    response = response.with_header("Access-Control-Allow-Methods", ", ".join(config.allow_methods))
    if config.allow_headers:
        response = response.with_header(
            "Access-Control-Allow-Headers",
            ", ".join(config.allow_headers),
        )
    return response.with_header("Access-Control-Max-Age", str(config.max_age))


class CORSMiddleware:
    """Add CORS headers to a route's responses (``cors``).

    Usage::

        with app.group("/api", middleware=("cors", "ratelimit")):
            app.get("/topics", "ApiController@topics")
    """

    __slots__ = ("config",)

    def __init__(self, config: CORSConfig | None = None) -> None:
        self.config = config or CORSConfig()

    async def __call__(self, request: Request, next: Next) -> Response:
        """Add CORS headers to the response, or to the error that replaces it."""
        origin = request.headers.get("origin")
        try:
            response = await next(request)
        except HTTPError as exc:
            exc.add_headers(cors_headers(self.config, origin))
            raise
        return add_cors_headers(response, self.config, origin)
