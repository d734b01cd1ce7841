"""Unit tests for sensitive data redaction."""

from http_cors.bootstrap.logging_setup import redact_sensitive


def test_redact_credential_like_values():
    """Values mentioning secrets are redacted."""
    assert redact_sensitive("Authorization: Bearer token123") == "[REDACTED]"
    assert redact_sensitive("api_key=secret") == "[REDACTED]"


def test_redact_long_opaque_sequences():
    """Long hex or base64 runs are redacted."""
    assert redact_sensitive("0123456789abcdef0123456789abcdef") == "[REDACTED]"
    assert redact_sensitive("YWJjZGVmZ2hpamtsbW5vcHFyc3R1dnd4eXo=") == "[REDACTED]"


def test_no_redaction_for_origins():
    """Ordinary origins and methods pass through untouched."""
    assert redact_sensitive("https://app.example.com") == "https://app.example.com"
    assert redact_sensitive("OPTIONS") == "OPTIONS"
    assert redact_sensitive("") == ""
