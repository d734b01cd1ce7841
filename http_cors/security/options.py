"""CORS policy options: defaults, shallow merge and validation."""

import math
from dataclasses import dataclass, field, fields
from numbers import Real
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence, Union

from http_cors.security.errors import InvalidCorsOptions
from http_cors.security.origin import parse_origin

DEFAULT_METHODS = "GET,HEAD,PUT,PATCH,POST,DELETE"

DEFAULT_OPTIONS: Mapping[str, Any] = MappingProxyType(
    {
        "origin": "*",
        "methods": DEFAULT_METHODS,
        "preflight_continue": False,
        "options_success_status": 204,
    }
)

LEGACY_HEADERS_KEY = "headers"

HeaderList = Union[str, Sequence[str]]


def merge(base: Mapping[str, Any], override: Optional[Mapping[str, Any]]) -> dict:
    """Return a new dict with override's keys laid over base's."""
    merged = dict(base)
    if override:
        merged.update(override)
    return merged


@dataclass(frozen=True)
class CorsOptions:  # pylint: disable=too-many-instance-attributes
    """Fully populated CORS policy options."""

    origin: Any = DEFAULT_OPTIONS["origin"]
    methods: Optional[HeaderList] = DEFAULT_METHODS
    allowed_headers: Optional[HeaderList] = None
    exposed_headers: Optional[HeaderList] = None
    credentials: Optional[bool] = False
    max_age: Optional[Real] = None
    preflight_continue: Optional[bool] = False
    options_success_status: int = 204
    extras: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "CorsOptions":
        """Build options from snake_case keys, keeping unknown keys in extras."""
        values = dict(mapping)
        legacy_headers = values.pop(LEGACY_HEADERS_KEY, None)
        allowed = values.get("allowed_headers")
        if (allowed is None or allowed == "") and legacy_headers:
            values["allowed_headers"] = legacy_headers

        known = {}
        for option in option_names():
            if option in values:
                known[option] = values.pop(option)
        return cls(**known, extras=MappingProxyType(values))

    def to_mapping(self) -> dict:
        """Return the options as a plain dict, extras included."""
        data = dict(self.extras)
        for option in option_names():
            data[option] = getattr(self, option)
        return data


def option_names() -> tuple[str, ...]:
    """Names of the recognised option fields."""
    return tuple(item.name for item in fields(CorsOptions) if item.name != "extras")


def _is_header_list(value: Any) -> bool:
    if isinstance(value, str):
        return True
    if isinstance(value, (list, tuple)):
        return all(isinstance(item, str) for item in value)
    return False


def validate_options(options: CorsOptions) -> CorsOptions:
    """Raise InvalidCorsOptions when any option has an unsupported shape."""
    for name in ("methods", "allowed_headers", "exposed_headers"):
        value = getattr(options, name)
        if value is not None and not _is_header_list(value):
            raise InvalidCorsOptions(
                f"{name} must be a string or a list of strings, "
                f"got {type(value).__name__}"
            )

    for name in ("credentials", "preflight_continue"):
        value = getattr(options, name)
        if value is not None and not isinstance(value, bool):
            raise InvalidCorsOptions(f"{name} must be a boolean")

    max_age = options.max_age
    if max_age is not None:
        if isinstance(max_age, bool) or not isinstance(max_age, Real):
            raise InvalidCorsOptions("max_age must be a number")
        if not math.isfinite(max_age):
            raise InvalidCorsOptions("max_age must be finite")
        if max_age < 0:
            raise InvalidCorsOptions("max_age must not be negative")

    status = options.options_success_status
    if isinstance(status, bool) or not isinstance(status, int):
        raise InvalidCorsOptions("options_success_status must be an integer")
    if not 100 <= status <= 599:
        raise InvalidCorsOptions(
            f"options_success_status {status} is not a valid HTTP status"
        )

    parse_origin(options.origin)
    return options


def build_options(
    override: Union["CorsOptions", Mapping[str, Any], None]
) -> CorsOptions:
    """Merge override over DEFAULT_OPTIONS and validate the result."""
    if isinstance(override, CorsOptions):
        override = override.to_mapping()
    elif override is not None and not isinstance(override, Mapping):
        raise InvalidCorsOptions(
            f"options must be a mapping, got {type(override).__name__}"
        )
    return validate_options(CorsOptions.from_mapping(merge(DEFAULT_OPTIONS, override)))
