"""
auth/bearer.py -- Authorization header parsing.

The scheme prefix is matched exactly: "Bearer " with a capital B and one
space. Only that prefix is removed. Whatever follows is returned as-is,
including leading or trailing whitespace, so downstream validators must not
assume the value was trimmed.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from auth.errors import MissingOrMalformedHeaderError

BEARER_PREFIX = "Bearer "


def extract_bearer_token(header_value: str | None) -> str:
    """Return the raw token from an Authorization header value.

    Raises MissingOrMalformedHeaderError when the header is absent, empty, or
    does not start with the exact "Bearer " prefix.
    """
    if not header_value:
        raise MissingOrMalformedHeaderError("Authorization header is missing.")
    if not header_value.startswith(BEARER_PREFIX):
        raise MissingOrMalformedHeaderError("Authorization header does not use the Bearer scheme.")
    return header_value[len(BEARER_PREFIX) :]
