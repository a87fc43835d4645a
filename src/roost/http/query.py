"""Query string parameters."""

from roost.http.multidict import MultiDict, parse_pairs


class QueryParams(MultiDict):
    """Parsed query string; the undecoded bytes stay available as ``raw``."""

    __slots__ = ("_raw",)

    def __init__(self, query_string: bytes = b"") -> None:
        super().__init__(parse_pairs(query_string.decode("latin-1")))
        self._raw = query_string

    @property
    def raw(self) -> bytes:
        return self._raw
