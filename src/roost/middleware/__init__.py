"""Middleware: Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Response

Built-in middleware (registered identifier in parentheses):
    AuthMiddleware (auth) -- Require a logged-in session
    AdminMiddleware (admin) -- Require the admin role
    ModeratorMiddleware (moderator) -- Require the moderator or admin role
    GuestMiddleware (guest) -- Redirect logged-in users away
    CORSMiddleware (cors) -- Cross-Origin Resource Sharing headers
    RateLimitMiddleware (ratelimit) -- Fixed-window request budget
    CSRFMiddleware (csrf) -- Session token check on form submissions
    SessionMiddleware -- Signed cookie sessions (global)
    SecurityHeadersMiddleware -- X-Frame-Options, X-Content-Type-Options, Referrer-Policy
    AccessLogMiddleware -- Request logging on ``roost.access``
"""

from roost.middleware.access_log import AccessLogMiddleware
from roost.middleware.auth import (
    AdminMiddleware,
    AuthConfig,
    AuthMiddleware,
    GuestMiddleware,
    ModeratorMiddleware,
)
from roost.middleware.cors import CORSConfig, CORSMiddleware
from roost.middleware.csrf import CSRFConfig, CSRFMiddleware, csrf_token
from roost.middleware.pipeline import MiddlewareRegistry, compose
from roost.middleware.protocol import Middleware, Next
from roost.middleware.rate_limit import RateLimitConfig, RateLimitMiddleware
from roost.middleware.security_headers import (
    SecurityHeadersConfig,
    SecurityHeadersMiddleware,
)
from roost.middleware.sessions import Session, SessionConfig, SessionMiddleware

__all__ = [
    "AccessLogMiddleware",
    "AdminMiddleware",
    "AuthConfig",
    "AuthMiddleware",
    "CORSConfig",
    "CORSMiddleware",
    "CSRFConfig",
    "CSRFMiddleware",
    "GuestMiddleware",
    "Middleware",
    "MiddlewareRegistry",
    "ModeratorMiddleware",
    "Next",
    "RateLimitConfig",
    "RateLimitMiddleware",
    "SecurityHeadersConfig",
    "SecurityHeadersMiddleware",
    "Session",
    "SessionConfig",
    "SessionMiddleware",
    "compose",
    "csrf_token",
]
