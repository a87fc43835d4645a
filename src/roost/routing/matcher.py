"""Path patterns with ``{name}`` placeholders.

A pattern is split on ``/`` into segments. Literal segments match
verbatim; a placeholder matches exactly one non-empty path segment.
Pattern and request path must have the same number of segments: there
are no greedy, wildcard, or optional placeholders.

Examples::

    "/"                        -> ()
    "/forums"                  -> (PathSegment("forums"),)
    "/admin/users/edit/{id}"   -> (..., PathSegment("{id}", is_param=True, ...))
    "/topics/{id:int}"         -> (..., PathSegment("{id:int}", param_type="int"))
"""

from dataclasses import dataclass, field

from roost.errors import ConfigurationError
from roost.routing.params import CONVERTERS, Converter


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route path.

    Static:  ``/users``  (is_param=False)
    Param:   ``/{id}``   (is_param=True, param_name="id")
    Typed:   ``/{id:int}`` (is_param=True, param_name="id", param_type="int")
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"
    converter: Converter | None = field(default=None, compare=False, repr=False)


def normalize_path(path: str) -> str:
    """Normalize a pattern or request path for comparison.

    Strips trailing slashes except for the root; empty becomes ``/``.
    """
    if not path:
        return "/"
    if not path.startswith("/"):
        path = "/" + path
    return path.rstrip("/") or "/"


def _split(path: str) -> list[str]:
    if path == "/":
        return []
    return path[1:].split("/")


def _parse_segment(part: str, pattern: str) -> PathSegment:
    if "{" not in part and "}" not in part:
        return PathSegment(value=part)

    if not (part.startswith("{") and part.endswith("}")):
        msg = f"Malformed route pattern {pattern!r}: unmatched brace in segment {part!r}"
        raise ConfigurationError(msg)

    inner = part[1:-1]
    if "{" in inner or "}" in inner:
        msg = f"Malformed route pattern {pattern!r}: nested braces in segment {part!r}"
        raise ConfigurationError(msg)

    param_name, _, param_type = inner.partition(":")
    param_type = param_type or "str"
    if not param_name.isidentifier():
        msg = f"Malformed route pattern {pattern!r}: invalid placeholder name {param_name!r}"
        raise ConfigurationError(msg)
    if param_type not in CONVERTERS:
        known = ", ".join(sorted(CONVERTERS))
        msg = (
            f"Malformed route pattern {pattern!r}: unknown converter {param_type!r} "
            f"(expected one of: {known})"
        )
        raise ConfigurationError(msg)

    return PathSegment(
        value=part,
        is_param=True,
        param_name=param_name,
        param_type=param_type,
        converter=CONVERTERS[param_type],
    )


def parse_path(pattern: str) -> tuple[PathSegment, ...]:
    """Parse a route pattern into segments.

    Raises ``ConfigurationError`` for patterns that don't start with
    ``/``, empty segments, unmatched braces, invalid or duplicate
    placeholder names, and unknown converters.
    """
    if not pattern.startswith("/"):
        msg = f"Malformed route pattern {pattern!r}: must start with '/'"
        raise ConfigurationError(msg)

    segments: list[PathSegment] = []
    seen: set[str] = set()
    for part in _split(normalize_path(pattern)):
        if not part:
            msg = f"Malformed route pattern {pattern!r}: empty path segment"
            raise ConfigurationError(msg)
        segment = _parse_segment(part, pattern)
        if segment.is_param:
            if segment.param_name in seen:
                msg = (
                    f"Malformed route pattern {pattern!r}: "
                    f"duplicate placeholder {segment.param_name!r}"
                )
                raise ConfigurationError(msg)
            seen.add(segment.param_name or "")
        segments.append(segment)
    return tuple(segments)


@dataclass(frozen=True, slots=True)
class PathPattern:
    """A compiled route pattern.

    Usage::

        pattern = PathPattern.compile("/admin/users/edit/{id}")
        pattern.match("/admin/users/edit/42")   # {"id": "42"}
        pattern.match("/admin/users/edit")      # None
    """

    path: str
    segments: tuple[PathSegment, ...]

    @classmethod
    def compile(cls, pattern: str) -> "PathPattern":
        """Validate and compile *pattern*."""
        return cls(path=normalize_path(pattern), segments=parse_path(pattern))

    @property
    def param_names(self) -> tuple[str, ...]:
        """Placeholder names in path order."""
        return tuple(s.param_name for s in self.segments if s.is_param and s.param_name)

    @property
    def param_types(self) -> dict[str, str]:
        """Converter name for each placeholder."""
        return {
            s.param_name: s.param_type for s in self.segments if s.is_param and s.param_name
        }

    def match(self, path: str) -> dict[str, str] | None:
        """Return extracted parameters, or ``None`` if *path* doesn't fit."""
        parts = _split(normalize_path(path))
        if len(parts) != len(self.segments):
            return None

        params: dict[str, str] = {}
        for segment, part in zip(self.segments, parts, strict=True):
            if not segment.is_param:
                if part != segment.value:
                    return None
                continue
            if not part or segment.converter is None or not segment.converter.accepts(part):
                return None
            params[segment.param_name or ""] = part
        return params
