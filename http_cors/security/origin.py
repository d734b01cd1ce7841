"""Origin rules: classification of the ``origin`` option and request matching."""

import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

from http_cors.security.errors import InvalidCorsOptions

WILDCARD = "*"


@dataclass(frozen=True)
class WildcardOrigin:
    """Allow any origin with a literal ``*``."""


@dataclass(frozen=True)
class FixedOrigin:
    """A single origin string; exact match when used as a list member."""

    value: str


@dataclass(frozen=True)
class PatternOrigin:
    """A compiled regular expression tested against the request origin."""

    pattern: re.Pattern


@dataclass(frozen=True)
class ReflectAnyOrigin:
    """Boolean ``True``: every request origin is allowed and reflected."""


@dataclass(frozen=True)
class DeniedOrigin:
    """Falsy setting: nothing matches."""


@dataclass(frozen=True)
class OriginList:
    """Allowed when any member allows the request origin."""

    members: tuple["OriginRule", ...]


@dataclass(frozen=True)
class DynamicOrigin:
    """Callable deciding the origin per request, sync or async."""

    resolver: Callable[[Optional[str]], Union[Any, Awaitable[Any]]]


OriginRule = Union[
    WildcardOrigin,
    FixedOrigin,
    PatternOrigin,
    ReflectAnyOrigin,
    DeniedOrigin,
    OriginList,
    DynamicOrigin,
]


@dataclass(frozen=True)
class OriginDecision:
    """Concrete Access-Control-Allow-Origin outcome for one request.

    ``value`` of None means the header is omitted.
    """

    value: Optional[str]
    vary: bool


def is_denial(value: Any) -> bool:
    """Return True for the falsy origin settings that skip CORS entirely."""
    return value is None or value is False or value == ""


def _parse_member(value: Any) -> OriginRule:
    if isinstance(value, str):
        return FixedOrigin(value)
    if isinstance(value, bool):
        return ReflectAnyOrigin() if value else DeniedOrigin()
    if isinstance(value, re.Pattern):
        return PatternOrigin(value)
    if isinstance(value, (list, tuple)):
        return OriginList(tuple(_parse_member(item) for item in value))
    raise InvalidCorsOptions(
        f"unsupported origin list member of type {type(value).__name__}"
    )


def parse_origin(value: Any, *, allow_dynamic: bool = True) -> OriginRule:
    """Classify a configured ``origin`` value into an origin rule."""
    if callable(value) and not isinstance(value, re.Pattern):
        if not allow_dynamic:
            raise InvalidCorsOptions("origin resolver must not return a callable")
        return DynamicOrigin(value)
    if is_denial(value):
        return DeniedOrigin()
    if value == WILDCARD:
        return WildcardOrigin()
    if isinstance(value, str):
        return FixedOrigin(value)
    if value is True:
        return ReflectAnyOrigin()
    if isinstance(value, re.Pattern):
        return PatternOrigin(value)
    if isinstance(value, (list, tuple)):
        return OriginList(tuple(_parse_member(item) for item in value))
    raise InvalidCorsOptions(f"unsupported origin of type {type(value).__name__}")


def is_origin_allowed(request_origin: Optional[str], rule: OriginRule) -> bool:
    """Check the request origin against a static rule."""
    if isinstance(rule, OriginList):
        return any(is_origin_allowed(request_origin, member) for member in rule.members)
    if isinstance(rule, FixedOrigin):
        return request_origin == rule.value
    if isinstance(rule, PatternOrigin):
        return request_origin is not None and rule.pattern.search(request_origin) is not None
    if isinstance(rule, ReflectAnyOrigin):
        return True
    if isinstance(rule, (DeniedOrigin, WildcardOrigin)):
        return False
    raise TypeError(f"origin rule {rule!r} must be resolved before matching")


def decide_origin(rule: OriginRule, request_origin: Optional[str]) -> OriginDecision:
    """Turn a static rule into the header value for this request."""
    if isinstance(rule, (WildcardOrigin, DeniedOrigin)):
        return OriginDecision(WILDCARD, vary=False)
    if isinstance(rule, FixedOrigin):
        return OriginDecision(rule.value, vary=True)
    if isinstance(rule, DynamicOrigin):
        raise TypeError("dynamic origin must be resolved before deciding")
    allowed = is_origin_allowed(request_origin, rule)
    return OriginDecision(request_origin if allowed else None, vary=True)
