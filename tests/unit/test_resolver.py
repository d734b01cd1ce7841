"""Unit tests for per-request policy resolution."""

import asyncio
import re

import pytest

from http_cors.security.errors import InvalidCorsOptions
from http_cors.security.options import CorsOptions
from http_cors.security.origin import OriginDecision
from http_cors.security.resolver import as_provider, resolve_policy
from tests.utils.middleware import make_request


def resolve(options, request):
    """Run the resolver synchronously for a static record or provider."""
    return asyncio.run(resolve_policy(as_provider(options), request))


def test_as_provider_wraps_static_record():
    """Static records are yielded unchanged by the wrapper."""
    record = {"origin": "https://a.example"}

    provider = as_provider(record)

    assert provider(make_request()) is record


def test_as_provider_passes_callables_through():
    """Providers are used as-is."""

    def provider(_request):
        return None

    assert as_provider(provider) is provider


def test_resolve_defaults_to_wildcard():
    """No configuration resolves to the wildcard without Vary."""
    policy = resolve(None, make_request(origin="https://a.example"))

    assert policy.origin == OriginDecision("*", vary=False)
    assert isinstance(policy.options, CorsOptions)


def test_resolve_fixed_origin():
    """A fixed string is emitted as-is with Vary."""
    policy = resolve({"origin": "https://a.example"}, make_request())

    assert policy.origin == OriginDecision("https://a.example", vary=True)


def test_resolve_pattern_reflects_match():
    """Pattern matches reflect the request origin."""
    options = {"origin": re.compile(r"^https://.*\.example\.com$")}

    allowed = resolve(options, make_request(origin="https://api.example.com"))
    denied = resolve(options, make_request(origin="https://evil.test"))

    assert allowed.origin == OriginDecision("https://api.example.com", vary=True)
    assert denied.origin == OriginDecision(None, vary=True)


@pytest.mark.parametrize("origin", [False, None, ""])
def test_resolve_falsy_origin_skips_policy(origin):
    """Falsy origin settings produce the skip outcome rather than an error."""
    assert resolve({"origin": origin}, make_request(origin="https://a.example")) is None


def test_resolve_awaits_async_provider():
    """Async providers are awaited and receive the request."""
    seen = []

    async def provider(request):
        seen.append(request)
        await asyncio.sleep(0)
        return {"origin": "https://a.example", "credentials": True}

    request = make_request()
    policy = asyncio.run(resolve_policy(provider, request))

    assert seen == [request]
    assert policy.options.credentials is True


def test_resolve_provider_error_propagates():
    """Provider exceptions reach the caller unchanged."""

    def provider(_request):
        raise RuntimeError("provider failed")

    with pytest.raises(RuntimeError, match="provider failed"):
        resolve(provider, make_request(origin="https://a.example"))


def test_resolve_dynamic_origin_receives_request_origin():
    """The origin resolver is called once with the Origin header value."""
    calls = []

    async def decide(request_origin):
        calls.append(request_origin)
        return ["https://a.example"]

    policy = resolve({"origin": decide}, make_request(origin="https://a.example"))

    assert calls == ["https://a.example"]
    assert policy.origin == OriginDecision("https://a.example", vary=True)


def test_resolve_dynamic_origin_result_is_interpreted_statically():
    """Strings and booleans from the resolver follow the static rules."""
    fixed = resolve({"origin": lambda origin: "https://fixed.example"}, make_request())
    reflected = resolve(
        {"origin": lambda origin: True}, make_request(origin="https://b.example")
    )
    wildcard = resolve({"origin": lambda origin: "*"}, make_request())

    assert fixed.origin == OriginDecision("https://fixed.example", vary=True)
    assert reflected.origin == OriginDecision("https://b.example", vary=True)
    assert wildcard.origin == OriginDecision("*", vary=False)


@pytest.mark.parametrize("outcome", [False, None, ""])
def test_resolve_dynamic_denial_skips_policy(outcome):
    """A falsy resolver outcome skips CORS headers."""
    assert resolve({"origin": lambda origin: outcome}, make_request()) is None


def test_resolve_dynamic_origin_error_propagates():
    """Resolver exceptions reach the caller unchanged."""
    error = LookupError("unknown tenant")

    async def decide(_origin):
        raise error

    with pytest.raises(LookupError) as excinfo:
        resolve({"origin": decide}, make_request(origin="https://a.example"))
    assert excinfo.value is error


def test_resolve_dynamic_origin_returning_callable_is_rejected():
    """A resolver may not hand back another resolver."""
    with pytest.raises(InvalidCorsOptions):
        resolve({"origin": lambda origin: (lambda other: True)}, make_request())


def test_resolve_invalid_provider_output_raises():
    """Provider-produced options are validated per request."""
    with pytest.raises(InvalidCorsOptions):
        resolve(lambda request: {"max_age": -5}, make_request())


def test_resolve_does_not_mutate_configuration():
    """The caller's record is left intact after resolution."""

    def decide(_origin):
        return "https://decided.example"

    record = {"origin": decide, "methods": ["GET"]}

    resolve(record, make_request(origin="https://a.example"))

    assert record == {"origin": decide, "methods": ["GET"]}
