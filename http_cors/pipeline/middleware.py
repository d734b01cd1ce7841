"""CORS middleware tying policy resolution to header composition."""

import logging
from typing import Optional, Union

from http_cors.domain.correlation_id import CorrelationLoggerAdapter
from http_cors.domain.http_types import (
    NextFunction,
    RequestLike,
    ResponseLike,
    header_value,
)
from http_cors.security.composer import (
    apply_headers,
    compose_headers,
    is_preflight,
)
from http_cors.security.options import build_options
from http_cors.security.resolver import (
    OptionsInput,
    OptionsProvider,
    as_provider,
    resolve_policy,
    settle,
)

MIDDLEWARE_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("http_cors.pipeline.middleware"), {}
)


class CorsMiddleware:
    """Attach CORS headers and terminate preflight requests.

    ``options`` is a static options record (mapping or CorsOptions), None for
    the defaults, or a provider called with each request that returns such a
    record, either directly or as an awaitable.
    """

    def __init__(self, options: Union[OptionsInput, OptionsProvider] = None) -> None:
        if not callable(options):
            build_options(options)
        self._provider = as_provider(options)

    async def __call__(
        self, request: RequestLike, response: ResponseLike, call_next: NextFunction
    ) -> None:
        try:
            policy = await resolve_policy(self._provider, request)
        except Exception as exc:  # pylint: disable=broad-except
            MIDDLEWARE_LOGGER.warning(
                "CORS policy resolution failed",
                extra={
                    "event": "cors_policy_error",
                    "error_type": type(exc).__name__,
                    "method": request.method,
                },
            )
            await _continue(call_next, exc)
            return

        if policy is None:
            MIDDLEWARE_LOGGER.info(
                "Origin denied, skipping CORS headers",
                extra={
                    "event": "cors_origin_denied",
                    "method": request.method,
                    "origin": header_value(request.headers, "origin") or "-",
                },
            )
            await _continue(call_next)
            return

        preflight = is_preflight(request)
        apply_headers(compose_headers(policy, request, preflight), response)

        if not preflight:
            if MIDDLEWARE_LOGGER.logger.isEnabledFor(logging.DEBUG):
                MIDDLEWARE_LOGGER.debug(
                    "CORS headers applied",
                    extra={
                        "event": "cors_headers_applied",
                        "method": request.method,
                        "allowed_origin": policy.origin.value or "-",
                    },
                )
            await _continue(call_next)
            return

        options = policy.options
        if options.preflight_continue:
            await _continue(call_next)
            return

        # Safari and others hang waiting for a body without an explicit length.
        response.status_code = options.options_success_status
        response.set_header("Content-Length", "0")
        response.end()
        if MIDDLEWARE_LOGGER.logger.isEnabledFor(logging.DEBUG):
            MIDDLEWARE_LOGGER.debug(
                "Preflight handled",
                extra={
                    "event": "cors_preflight_handled",
                    "status_code": options.options_success_status,
                    "allowed_origin": policy.origin.value or "-",
                },
            )


async def _continue(
    call_next: NextFunction, error: Optional[BaseException] = None
) -> None:
    if error is None:
        await settle(call_next())
    else:
        await settle(call_next(error))


def cors(options: Union[OptionsInput, OptionsProvider] = None) -> CorsMiddleware:
    """Create a CORS middleware for the given options or provider."""
    return CorsMiddleware(options)
