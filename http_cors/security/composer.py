"""Header composition for preflight and actual CORS requests."""

from dataclasses import dataclass
from numbers import Real
from typing import Optional, Sequence, Union

from http_cors.domain.http_types import RequestLike, ResponseLike, header_value
from http_cors.domain.vary import append_vary
from http_cors.security.options import CorsOptions, HeaderList
from http_cors.security.resolver import ResolvedPolicy

ALLOW_ORIGIN = "Access-Control-Allow-Origin"
ALLOW_CREDENTIALS = "Access-Control-Allow-Credentials"
ALLOW_METHODS = "Access-Control-Allow-Methods"
ALLOW_HEADERS = "Access-Control-Allow-Headers"
MAX_AGE = "Access-Control-Max-Age"
EXPOSE_HEADERS = "Access-Control-Expose-Headers"
REQUEST_HEADERS = "Access-Control-Request-Headers"
VARY = "Vary"


@dataclass(frozen=True)
class HeaderDirective:
    """A header to set; a None or empty value means the header is omitted."""

    key: str
    value: Optional[str]


Directive = Union[HeaderDirective, None, Sequence["Directive"]]


def _join(value: Optional[HeaderList]) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    return ",".join(value)


def _format_number(value: Real) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def is_preflight(request: RequestLike) -> bool:
    """Return True when the request method is OPTIONS."""
    method = request.method
    return isinstance(method, str) and method.upper() == "OPTIONS"


def configure_origin(policy: ResolvedPolicy) -> list[Directive]:
    """Allow-Origin plus Vary: Origin for fixed or reflected origins."""
    directives: list[Directive] = [HeaderDirective(ALLOW_ORIGIN, policy.origin.value)]
    if policy.origin.vary:
        directives.append(HeaderDirective(VARY, "Origin"))
    return directives


def configure_credentials(options: CorsOptions) -> Optional[HeaderDirective]:
    if options.credentials is True:
        return HeaderDirective(ALLOW_CREDENTIALS, "true")
    return None


def configure_methods(options: CorsOptions) -> HeaderDirective:
    return HeaderDirective(ALLOW_METHODS, _join(options.methods))


def configure_allowed_headers(
    options: CorsOptions, request: RequestLike
) -> list[Directive]:
    """Configured Allow-Headers, or the request's own list reflected back."""
    directives: list[Directive] = []
    allowed = options.allowed_headers
    if allowed is None or allowed == "":
        value = header_value(request.headers, REQUEST_HEADERS)
        directives.append(HeaderDirective(VARY, REQUEST_HEADERS))
    else:
        value = _join(allowed)
    if value:
        directives.append(HeaderDirective(ALLOW_HEADERS, value))
    return directives


def configure_max_age(options: CorsOptions) -> Optional[HeaderDirective]:
    if options.max_age is None:
        return None
    value = _format_number(options.max_age)
    return HeaderDirective(MAX_AGE, value) if value else None


def configure_exposed_headers(options: CorsOptions) -> Optional[HeaderDirective]:
    value = _join(options.exposed_headers)
    if value:
        return HeaderDirective(EXPOSE_HEADERS, value)
    return None


def compose_headers(
    policy: ResolvedPolicy, request: RequestLike, preflight: bool
) -> list[Directive]:
    """Build the ordered directives for a preflight or an actual request."""
    options = policy.options
    if preflight:
        return [
            configure_origin(policy),
            configure_credentials(options),
            configure_methods(options),
            configure_allowed_headers(options, request),
            configure_max_age(options),
            configure_exposed_headers(options),
        ]
    return [
        configure_origin(policy),
        configure_credentials(options),
        configure_exposed_headers(options),
    ]


def apply_headers(directives: Sequence[Directive], response: ResponseLike) -> None:
    """Write directives to the response, merging Vary instead of replacing it."""
    for directive in directives:
        if not directive:
            continue
        if isinstance(directive, HeaderDirective):
            if not directive.value:
                continue
            if directive.key == VARY:
                append_vary(response, directive.value)
            else:
                response.set_header(directive.key, directive.value)
        else:
            apply_headers(directive, response)
