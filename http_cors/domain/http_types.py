"""Shared request/response types consumed by the CORS middleware."""

from dataclasses import dataclass, field
from typing import (
    Any,
    Awaitable,
    Callable,
    Iterator,
    Mapping,
    MutableMapping,
    Optional,
    Protocol,
    Union,
)


class HeaderMap(MutableMapping[str, str]):
    """Case-insensitive header mapping that keeps the casing of the last write."""

    def __init__(self, initial: Optional[Mapping[str, str]] = None) -> None:
        self._items: dict[str, tuple[str, str]] = {}
        if initial:
            for name, value in initial.items():
                self[name] = value

    def __getitem__(self, name: str) -> str:
        return self._items[name.lower()][1]

    def __setitem__(self, name: str, value: str) -> None:
        self._items[name.lower()] = (name, value)

    def __delitem__(self, name: str) -> None:
        del self._items[name.lower()]

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._items

    def __repr__(self) -> str:
        return f"HeaderMap({dict(self.items())!r})"


class RequestLike(Protocol):  # pylint: disable=too-few-public-methods
    """Minimum request surface the middleware reads."""

    method: Optional[str]
    headers: Mapping[str, str]


class ResponseLike(Protocol):
    """Minimum response surface the middleware writes."""

    status_code: int

    def set_header(self, name: str, value: str) -> None:
        """Store a header value, replacing any previous value."""

    def get_header(self, name: str) -> Optional[str]:
        """Return the current header value or None."""

    def end(self) -> None:
        """Finalize the response with no further body."""


NextFunction = Callable[..., Union[Awaitable[Any], Any]]


@dataclass
class CorsRequest:
    """Represents the parts of a parsed HTTP request relevant to CORS."""

    method: Optional[str]
    headers: HeaderMap = field(default_factory=HeaderMap)

    def __post_init__(self) -> None:
        if not isinstance(self.headers, HeaderMap):
            self.headers = HeaderMap(self.headers)


@dataclass
class CorsResponse:
    """In-memory response that records headers, status and finalization."""

    status_code: int = 200
    headers: HeaderMap = field(default_factory=HeaderMap)
    finished: bool = False

    def set_header(self, name: str, value: str) -> None:
        """Store a header value, replacing any previous value."""
        self.headers[name] = value

    def get_header(self, name: str) -> Optional[str]:
        """Return the current header value or None."""
        return self.headers.get(name)

    def end(self) -> None:
        """Finalize the response; repeated calls are ignored."""
        self.finished = True


def header_value(headers: Mapping[str, str], name: str) -> Optional[str]:
    """Look up a header on any mapping, ignoring case when needed."""
    if isinstance(headers, HeaderMap):
        return headers.get(name)
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in headers.items():
        if key.lower() == lowered:
            return candidate
    return None
