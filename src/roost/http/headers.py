"""Case-insensitive request headers.

The raw ASGI byte pairs are kept for re-encoding; lookups go through a
lowercase index built once when the request is created.
"""

from collections.abc import Iterator, Mapping


class Headers(Mapping[str, str]):
    """Read-only header mapping; ``headers["Accept"]`` is the first value.

    Repeated headers (``Accept``, ``X-Forwarded-For`` from several proxies)
    are all available through ``get_list``.
    """

    __slots__ = ("_index", "_raw")

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        self._raw = raw
        self._index: dict[str, list[str]] = {}
        for name, value in raw:
            self._index.setdefault(name.decode("latin-1").lower(), []).append(value.decode("latin-1"))

    @classmethod
    def from_dict(cls, headers: Mapping[str, str]) -> "Headers":
        """Build headers from ``{name: value}`` (used by tests and tools)."""
        return cls(
            tuple((k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in headers.items())
        )

    def __getitem__(self, key: str) -> str:
        return self._index[key.lower()][0]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self._index)

    def __len__(self) -> int:
        return len(self._index)

    def __repr__(self) -> str:
        return f"Headers({self._index!r})"

    def get_list(self, key: str) -> list[str]:
        return list(self._index.get(key.lower(), ()))

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        """The byte pairs exactly as received."""
        return self._raw
