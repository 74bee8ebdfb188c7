"""
chirps/content.py -- Chirp body rules.

A body must be 1..140 characters. Blocked words are masked rather than
rejected: the body is split on single spaces and any word that matches a
blocked word case-insensitively becomes "****". Punctuation attached to a
word ("kerfuffle!") keeps it from matching, and runs of spaces survive the
round trip unchanged.
"""

MAX_CHIRP_LENGTH = 140

BLOCKED_WORDS = frozenset({"kerfuffle", "sharbert", "fornax"})

MASK = "****"


class ChirpLengthError(ValueError):
    """Body is empty or longer than MAX_CHIRP_LENGTH."""


def check_length(body: str) -> None:
    if not body:
        raise ChirpLengthError("Chirp is too short.")
    if len(body) > MAX_CHIRP_LENGTH:
        raise ChirpLengthError("Chirp is too long.")


def clean_body(body: str) -> str:
    """Return body with every blocked word replaced by MASK."""
    words = body.split(" ")
    return " ".join(MASK if word.lower() in BLOCKED_WORDS else word for word in words)
