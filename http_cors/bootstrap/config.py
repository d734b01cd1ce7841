"""Policy configuration from environment variables and CLI arguments."""

import argparse
import os
import re
from typing import Any, Optional

from http_cors.security.errors import InvalidCorsOptions
from http_cors.security.options import DEFAULT_METHODS


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    value = os.getenv(name)
    return int(value) if value is not None and value != "" else default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: list[str]) -> list[str]:
    value = os.getenv(name)
    if value is None:
        return default
    return _split_list(value)


def _split_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


DEFAULT_ORIGINS = _env_list("HTTP_CORS_ORIGINS", ["*"])
DEFAULT_ORIGIN_PATTERNS = _env_list("HTTP_CORS_ORIGIN_PATTERNS", [])
DEFAULT_ALLOWED_METHODS = _env_list("HTTP_CORS_METHODS", _split_list(DEFAULT_METHODS))
DEFAULT_ALLOWED_HEADERS = _env_list("HTTP_CORS_ALLOWED_HEADERS", [])
DEFAULT_EXPOSED_HEADERS = _env_list("HTTP_CORS_EXPOSED_HEADERS", [])
DEFAULT_CREDENTIALS = _env_bool("HTTP_CORS_CREDENTIALS", False)
DEFAULT_MAX_AGE = _env_int("HTTP_CORS_MAX_AGE", None)
DEFAULT_PREFLIGHT_CONTINUE = _env_bool("HTTP_CORS_PREFLIGHT_CONTINUE", False)
DEFAULT_OPTIONS_SUCCESS_STATUS = _env_int("HTTP_CORS_OPTIONS_SUCCESS_STATUS", 204)


def parse_cli_args(argv: list[str]) -> argparse.Namespace:
    """Return parsed CLI arguments for the policy preview."""
    parser = argparse.ArgumentParser(
        description="Preview the CORS headers a policy produces for a request"
    )
    default_log_level = os.getenv("HTTP_CORS_LOG_LEVEL", "WARNING").upper()
    default_destination = os.getenv("HTTP_CORS_LOG_DESTINATION", "stderr")
    parser.add_argument(
        "--log-level",
        default=default_log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )
    parser.add_argument(
        "--log-destination",
        default=default_destination,
        help="stderr, stdout or a file path",
    )
    parser.add_argument(
        "--origins",
        default=",".join(DEFAULT_ORIGINS),
        help="Comma-separated allowed origins; '*' allows any (default: *)",
    )
    parser.add_argument(
        "--origin-pattern",
        action="append",
        default=list(DEFAULT_ORIGIN_PATTERNS),
        help="Regular expression matched against the request origin (repeatable)",
    )
    parser.add_argument(
        "--methods",
        default=",".join(DEFAULT_ALLOWED_METHODS),
        help="Comma-separated list of allowed methods",
    )
    parser.add_argument(
        "--allowed-headers",
        default=",".join(DEFAULT_ALLOWED_HEADERS),
        help="Comma-separated allowed request headers (empty reflects the request)",
    )
    parser.add_argument(
        "--exposed-headers",
        default=",".join(DEFAULT_EXPOSED_HEADERS),
        help="Comma-separated list of exposed response headers",
    )
    parser.add_argument(
        "--credentials",
        action=argparse.BooleanOptionalAction,
        default=DEFAULT_CREDENTIALS,
        help="Send Access-Control-Allow-Credentials: true",
    )
    parser.add_argument(
        "--max-age",
        type=int,
        default=DEFAULT_MAX_AGE,
        help="Preflight cache duration in seconds (omitted when unset)",
    )
    parser.add_argument(
        "--preflight-continue",
        action=argparse.BooleanOptionalAction,
        default=DEFAULT_PREFLIGHT_CONTINUE,
        help="Pass preflight requests to the next stage instead of ending them",
    )
    parser.add_argument(
        "--options-success-status",
        type=int,
        default=DEFAULT_OPTIONS_SUCCESS_STATUS,
        help="Status code for terminated preflight requests",
    )
    parser.add_argument("--request-method", default="GET", type=str.upper)
    parser.add_argument("--request-origin", help="Origin header of the request")
    parser.add_argument(
        "--request-headers",
        help="Access-Control-Request-Headers value of the request",
    )
    return parser.parse_args(argv)


def _origin_setting(origins: list[str], patterns: list[str]) -> Any:
    if not patterns:
        if origins == ["*"]:
            return "*"
        if len(origins) == 1:
            return origins[0]
        if not origins:
            return False
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as exc:
            raise InvalidCorsOptions(f"invalid origin pattern {pattern!r}: {exc}") from exc
    return [*origins, *compiled]


def options_from_args(args: argparse.Namespace) -> dict[str, Any]:
    """Translate parsed arguments into a CORS options mapping."""
    options: dict[str, Any] = {
        "origin": _origin_setting(_split_list(args.origins), args.origin_pattern),
        "methods": _split_list(args.methods),
        "credentials": args.credentials,
        "preflight_continue": args.preflight_continue,
        "options_success_status": args.options_success_status,
    }
    allowed_headers = _split_list(args.allowed_headers)
    if allowed_headers:
        options["allowed_headers"] = allowed_headers
    exposed_headers = _split_list(args.exposed_headers)
    if exposed_headers:
        options["exposed_headers"] = exposed_headers
    if args.max_age is not None:
        options["max_age"] = args.max_age
    return options
