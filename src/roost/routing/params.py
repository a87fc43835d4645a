"""Placeholder converters for ``{name:converter}`` path segments.

``{id}`` accepts any non-empty segment. ``{id:int}``, ``{price:float}``
and ``{token:slug}`` narrow what the segment may contain, and handlers
whose parameters carry no annotation receive the converted value.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Converter:
    """How one placeholder kind matches and converts a segment."""

    name: str
    regex: re.Pattern[str]
    to_python: Callable[[str], Any]

    def accepts(self, segment: str) -> bool:
        return self.regex.fullmatch(segment) is not None


CONVERTERS: dict[str, Converter] = {
    c.name: c
    for c in (
        Converter("str", re.compile(r"[^/]+"), str),
        Converter("int", re.compile(r"\d+"), int),
        Converter("float", re.compile(r"\d+(?:\.\d+)?"), float),
        Converter("slug", re.compile(r"[A-Za-z0-9_-]+"), str),
    )
}


def convert_param(value: str, param_type: str) -> Any:
    """Convert a captured segment with the named converter.

    Raises ``KeyError`` for an unknown converter and ``ValueError`` if
    the converter rejects *value*.
    """
    return CONVERTERS[param_type].to_python(value)
