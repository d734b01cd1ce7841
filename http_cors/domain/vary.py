"""Vary header accumulation helpers."""

import re
from typing import Optional, Sequence, Union

from http_cors.domain.http_types import ResponseLike

FIELD_NAME_PATTERN = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


def _parse_tokens(value: str) -> list[str]:
    return [token.strip() for token in value.split(",") if token.strip()]


def add_vary(existing: Optional[str], tokens: Union[str, Sequence[str]]) -> str:
    """Return the Vary value that results from merging tokens into existing.

    Tokens are compared case-insensitively and kept in first-seen order.
    A ``*`` on either side absorbs everything else.
    """
    if isinstance(tokens, str):
        fields = _parse_tokens(tokens)
    else:
        fields = [item.strip() for item in tokens if item and item.strip()]

    for token in fields:
        if not FIELD_NAME_PATTERN.match(token):
            raise ValueError(f"field argument contains an invalid header name: {token!r}")

    current = existing or ""
    current_tokens = _parse_tokens(current)
    if "*" in current_tokens or "*" in fields:
        return "*"

    merged = current
    seen = {token.lower() for token in current_tokens}
    for token in fields:
        lowered = token.lower()
        if lowered in seen:
            continue
        seen.add(lowered)
        merged = f"{merged}, {token}" if merged else token
    return merged


def append_vary(response: ResponseLike, tokens: Union[str, Sequence[str]]) -> None:
    """Merge tokens into the response's Vary header."""
    existing = response.get_header("Vary")
    updated = add_vary(existing, tokens)
    if updated != existing:
        response.set_header("Vary", updated)
