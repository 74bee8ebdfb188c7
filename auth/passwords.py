"""
auth/passwords.py -- Argon2id password hashing.

Security design decisions:
  Argon2id via argon2-cffi. Memory-hard, salted, one-way. Each call to
       hash_password() draws a fresh random salt. The returned PHC string
       ("$argon2id$v=19$m=...,t=...,p=...$<salt>$<digest>") carries every
       parameter needed to verify it later, so no side channel is needed.

  Cost parameters come from Settings (ARGON2_TIME_COST, ARGON2_MEMORY_COST,
       ARGON2_PARALLELISM). Hashes made under older parameters still verify;
       needs_rehash() tells login when to upgrade them.

  Verification is constant-time inside libargon2. Never compare digests with ==.

  The _DUMMY_HASH constant enables timing equalization in login so response
       time does not reveal whether an email exists.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from argon2 import PasswordHasher, Type
from argon2.exceptions import HashingError as Argon2HashingError
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from auth.errors import HashingError, MalformedHashError
from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("chirpy.auth")

_settings = get_settings()

_hasher = PasswordHasher(
    time_cost=_settings.argon2_time_cost,
    memory_cost=_settings.argon2_memory_cost,
    parallelism=_settings.argon2_parallelism,
    type=Type.ID,
)


def hash_password(plain: str) -> str:
    """Return the Argon2id PHC string for the given plaintext password.

    Raises HashingError only if libargon2 itself fails (typically it could not
    allocate memory_cost KiB). Input content never causes a failure.
    """
    try:
        return _hasher.hash(plain)
    except Argon2HashingError as exc:
        logger.error("Argon2 hashing failed: %s", exc)
        raise HashingError("Password hashing failed.") from exc


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext matches the stored hash, False if not.

    A hash string that is not a recognised Argon2 encoding raises
    MalformedHashError. That is a data problem, not a wrong password, and the
    two are kept apart.
    """
    try:
        return _hasher.verify(hashed, plain)
    except VerifyMismatchError:
        return False
    except (InvalidHashError, VerificationError, ValueError) as exc:
        # ValueError covers a non-ASCII hash string failing to encode.
        raise MalformedHashError("Stored password hash is not a valid Argon2 encoding.") from exc


def needs_rehash(hashed: str) -> bool:
    """Return True if the hash was produced with different cost parameters.

    Call only after a successful verify_password(). A malformed hash raises
    MalformedHashError, same as verify.
    """
    try:
        return _hasher.check_needs_rehash(hashed)
    except (InvalidHashError, ValueError) as exc:
        raise MalformedHashError("Stored password hash is not a valid Argon2 encoding.") from exc


# Timing equalization dummy hash.
# Computed once at module load with the live parameters so a lookup miss costs
# the same as a wrong password.
_DUMMY_HASH: str = hash_password("chirpy_timing_dummy")


def verify_dummy_password(plain: str) -> None:
    """Burn one verification's worth of work. Used when the account does not exist."""
    verify_password(plain, _DUMMY_HASH)


# ---------------------------------------------------------------------------
# User authentication (constant-time)
# ---------------------------------------------------------------------------


def authenticate_user(store: UserStore, email: str, password: str) -> User | None:
    """Authenticate an email/password login with timing equalization.

    Always runs Argon2 whether or not the user exists:
    - Unknown email: Argon2 runs against _DUMMY_HASH (same cost as a real check)
    - Wrong password: Argon2 runs against the real hash (same cost)

    On success, a hash made under outdated cost parameters is upgraded in place.
    A corrupt stored hash is logged and treated as a failed login.

    Returns the User on success, None on any failure.
    """
    user = store.get_by_email(email)
    if user is None:
        # Equalize timing -- do NOT return early before running Argon2
        verify_dummy_password(password)
        return None
    try:
        matched = verify_password(password, user.hashed_password)
    except MalformedHashError:
        logger.error("Stored password hash for user %s is malformed", user.id)
        return None
    if not matched:
        return None
    if needs_rehash(user.hashed_password):
        store.update_password_hash(user.id, hash_password(password))
        logger.info("Re-hashed password for user %s with current Argon2 parameters", user.id)
    return user
