"""Preview the CORS headers a policy attaches to a simulated request."""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Optional

from http_cors.bootstrap.config import options_from_args, parse_cli_args
from http_cors.bootstrap.logging_setup import configure_logging
from http_cors.domain.correlation_id import (
    CorrelationLoggerAdapter,
    correlation_id_from_headers,
    correlation_scope,
)
from http_cors.domain.http_types import CorsRequest, CorsResponse
from http_cors.pipeline.middleware import cors
from http_cors.security.errors import InvalidCorsOptions

CLI_LOGGER = CorrelationLoggerAdapter(logging.getLogger("http_cors.cli"), {})

EXIT_INVALID_CONFIG = 2


def build_request(args: argparse.Namespace) -> CorsRequest:
    """Assemble the simulated request from the --request-* flags."""
    headers: dict[str, str] = {}
    if args.request_origin:
        headers["Origin"] = args.request_origin
    if args.request_headers:
        headers["Access-Control-Request-Headers"] = args.request_headers
    if args.request_method == "OPTIONS":
        headers["Access-Control-Request-Method"] = "GET"
    return CorsRequest(args.request_method, headers)


async def preview(options: dict[str, Any], request: CorsRequest) -> dict[str, Any]:
    """Run one request through the middleware and describe the outcome."""
    middleware = cors(options)
    response = CorsResponse()
    calls: list[Optional[BaseException]] = []

    def call_next(error: Optional[BaseException] = None) -> None:
        calls.append(error)

    await middleware(request, response, call_next)

    result: dict[str, Any] = {
        "status_code": response.status_code,
        "headers": dict(response.headers.items()),
        "finished": response.finished,
        "next_called": bool(calls),
    }
    if calls and calls[0] is not None:
        result["error"] = str(calls[0])
    return result


def main(argv: Optional[list[str]] = None) -> int:
    """Parse flags, run the preview and print the result as JSON."""
    args = parse_cli_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.log_level, args.log_destination)

    request = build_request(args)
    with correlation_scope(correlation_id_from_headers(request.headers)):
        try:
            options = options_from_args(args)
            result = asyncio.run(preview(options, request))
        except InvalidCorsOptions as error:
            CLI_LOGGER.error(
                "Invalid CORS configuration",
                extra={"event": "cors_config_invalid", "error_type": type(error).__name__},
            )
            print(f"invalid configuration: {error}", file=sys.stderr)
            return EXIT_INVALID_CONFIG

    print(json.dumps(result, indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    sys.exit(main())
