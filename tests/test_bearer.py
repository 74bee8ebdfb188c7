"""Unit tests for auth/bearer.py -- Authorization header parsing."""

from __future__ import annotations

import pytest

from auth.bearer import extract_bearer_token
from auth.errors import MissingOrMalformedHeaderError


def test_extracts_token_after_prefix() -> None:
    assert extract_bearer_token("Bearer abc123") == "abc123"


def test_remainder_is_not_trimmed() -> None:
    """Only the fixed prefix is removed; surrounding whitespace stays part of the token."""
    assert extract_bearer_token("Bearer  abc123 ") == " abc123 "


def test_prefix_only_yields_empty_token() -> None:
    assert extract_bearer_token("Bearer ") == ""


@pytest.mark.parametrize(
    "header",
    [
        None,
        "",
        "abc123",
        "bearer abc123",
        "BEARER abc123",
        "Bearer",
        "Bearerabc123",
        "Basic dXNlcjpwYXNz",
        " Bearer abc123",
    ],
)
def test_rejects_missing_or_malformed_header(header: str | None) -> None:
    with pytest.raises(MissingOrMalformedHeaderError):
        extract_bearer_token(header)
