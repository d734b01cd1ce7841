"""Per-request CORS policy resolution."""

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from http_cors.domain.correlation_id import CorrelationLoggerAdapter
from http_cors.domain.http_types import RequestLike, header_value
from http_cors.security.options import CorsOptions, build_options
from http_cors.security.origin import (
    DeniedOrigin,
    DynamicOrigin,
    OriginDecision,
    decide_origin,
    is_denial,
    parse_origin,
)

RESOLVER_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("http_cors.security.resolver"), {}
)

OptionsInput = Union[CorsOptions, Mapping[str, Any], None]
OptionsProvider = Callable[[RequestLike], Union[OptionsInput, Awaitable[OptionsInput]]]


@dataclass(frozen=True)
class ResolvedPolicy:
    """Options for a single request with the origin already decided."""

    options: CorsOptions
    origin: OriginDecision


async def settle(value: Any) -> Any:
    """Await value when it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


def as_provider(options: Union[OptionsInput, OptionsProvider]) -> OptionsProvider:
    """Wrap a static options record in a provider; pass providers through."""
    if callable(options):
        return options

    def _static_provider(_request: RequestLike) -> OptionsInput:
        return options

    return _static_provider


async def resolve_policy(
    provider: OptionsProvider, request: RequestLike
) -> Optional[ResolvedPolicy]:
    """Resolve the policy for request.

    Returns None when the origin setting (static or dynamically produced) is
    falsy; such requests carry no CORS headers. Provider and origin resolver
    exceptions propagate to the caller.
    """
    override = await settle(provider(request))
    options = build_options(override)
    request_origin = header_value(request.headers, "origin")

    rule = parse_origin(options.origin)
    if isinstance(rule, DynamicOrigin):
        outcome = await settle(rule.resolver(request_origin))
        if is_denial(outcome):
            return None
        rule = parse_origin(outcome, allow_dynamic=False)
        if RESOLVER_LOGGER.logger.isEnabledFor(logging.DEBUG):
            RESOLVER_LOGGER.debug(
                "Dynamic origin resolved",
                extra={"event": "cors_origin_resolved", "origin": request_origin},
            )
    elif isinstance(rule, DeniedOrigin):
        return None

    return ResolvedPolicy(options, decide_origin(rule, request_origin))
