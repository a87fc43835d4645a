"""Application configuration.

AppConfig is a frozen dataclass: immutable after creation, IDE-autocompletable,
no string-key dict lookups. ``AppConfig.from_env()`` reads the same fields
from ``ROOST_*`` environment variables for deployments.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

from roost.errors import ConfigurationError

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off", ""})


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, port=3000, secret_key="s3cr3t")
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    workers: int = 1

    # Security: sessions are disabled when empty
    secret_key: str = ""

    # Auth redirects
    login_url: str = "/login"
    home_url: str = "/"
    api_prefix: str = "/api/"

    # Sessions
    session_cookie: str = "forum_session"
    session_max_age: int = 86400  # 24 hours
    session_secure: bool = False

    # CORS (applied to OPTIONS preflight and the "cors" middleware)
    cors_allow_origins: tuple[str, ...] = ("*",)
    cors_allow_methods: tuple[str, ...] = ("GET", "POST", "PUT", "DELETE", "OPTIONS")
    cors_allow_headers: tuple[str, ...] = ("Content-Type", "Authorization")
    cors_max_age: int = 86400

    # Rate limiting ("ratelimit" middleware)
    rate_limit_requests: int = 100
    rate_limit_window: int = 3600
    # Key anonymous clients on X-Forwarded-For; only behind a trusted proxy
    rate_limit_trust_forwarded: bool = False

    # Logging
    log_level: str = "info"
    access_log: bool = True

    @classmethod
    def from_env(
        cls,
        prefix: str = "ROOST_",
        environ: Mapping[str, str] | None = None,
    ) -> AppConfig:
        """Build a config from environment variables.

        Each field maps to ``{prefix}{FIELD_NAME}``: ``ROOST_DEBUG=1``,
        ``ROOST_PORT=9000``, ``ROOST_CORS_ALLOW_ORIGINS=https://a,https://b``.
        Missing variables keep the default.

        Raises ``ConfigurationError`` if a value cannot be coerced.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for f in fields(cls):
            raw = env.get(f"{prefix}{f.name.upper()}")
            if raw is None:
                continue
            values[f.name] = _coerce(f.name, raw, f.default)
        return cls(**values)


def _coerce(name: str, raw: str, default: Any) -> Any:
    """Coerce an environment string to the type of the field default."""
    if isinstance(default, bool):
        lowered = raw.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        msg = f"{name}: expected a boolean, got {raw!r}"
        raise ConfigurationError(msg)
    if isinstance(default, int):
        try:
            return int(raw)
        except ValueError:
            msg = f"{name}: expected an integer, got {raw!r}"
            raise ConfigurationError(msg) from None
    if isinstance(default, tuple):
        return tuple(part.strip() for part in raw.split(",") if part.strip())
    return raw
