"""Reading the ``Cookie`` header and writing ``Set-Cookie``."""

from dataclasses import dataclass


def parse_cookies(header: str) -> dict[str, str]:
    """``"forum_session=abc; lang=en"`` -> ``{"forum_session": "abc", "lang": "en"}``.

    Pairs without ``=`` are skipped; double-quoted values are unquoted.
    """
    cookies: dict[str, str] = {}
    for pair in header.split(";"):
        name, sep, value = pair.partition("=")
        name = name.strip()
        if not sep or not name:
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1]
        cookies[name] = value
    return cookies


@dataclass(frozen=True, slots=True)
class SetCookie:
    """One ``Set-Cookie`` header; session cookies default to HttpOnly + Lax."""

    name: str
    value: str
    max_age: int | None = None
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"

    @classmethod
    def expired(cls, name: str, path: str = "/") -> "SetCookie":
        """A directive that makes the browser drop *name* immediately."""
        return cls(name=name, value="", max_age=0, path=path)

    def to_header_value(self) -> str:
        attributes = [
            f"Max-Age={self.max_age}" if self.max_age is not None else None,
            f"Path={self.path}" if self.path else None,
            f"Domain={self.domain}" if self.domain else None,
            "Secure" if self.secure else None,
            "HttpOnly" if self.httponly else None,
            f"SameSite={self.samesite}" if self.samesite else None,
        ]
        return "; ".join([f"{self.name}={self.value}", *filter(None, attributes)])
