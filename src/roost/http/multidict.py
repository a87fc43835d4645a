"""Read-only multi-value mapping shared by query strings and form bodies.

``?tag=python&tag=asyncio`` and a form with repeated checkboxes both
parse to several values under one key. Indexing returns the first value;
``get_list`` returns all of them.
"""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qs


def parse_pairs(encoded: str) -> dict[str, list[str]]:
    """Parse a ``key=value&key=value`` string, keeping blank values."""
    return parse_qs(encoded, keep_blank_values=True)


class MultiDict(Mapping[str, str]):
    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, list[str]] | None = None) -> None:
        self._data: dict[str, list[str]] = {k: list(v) for k, v in (data or {}).items() if v}

    def __getitem__(self, key: str) -> str:
        return self._data[key][0]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._data!r})"

    def get_list(self, key: str) -> list[str]:
        return list(self._data.get(key, ()))

    def get_int(self, key: str, default: int | None = None) -> int | None:
        """First value as an int; *default* when missing or not numeric.

        Pagination (``?page=2``) and id fields use this.
        """
        try:
            return int(self[key])
        except (KeyError, ValueError):
            return default
