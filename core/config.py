"""
core/config.py -- Chirpy settings, read once from the environment and .env.

Every environment read goes through get_settings(). Nothing else in the tree
touches os.environ.

Signing key rules:
  - a key that is set must be at least MIN_SECRET_KEY_LENGTH characters;
  - an unset key is fatal unless DEBUG=true, in which case a throwaway key is
    generated for this process only.

Access tokens are HS256, so a short or guessable key makes every token
forgeable. The checks run when Settings is built, which the API lifespan does
before it accepts a request.

Layer rule: core/ imports nothing from api/, auth/ or chirps/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("chirpy.config")

MIN_SECRET_KEY_LENGTH = 32

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'auth' / 'chirpy_auth.db'}"


class Settings(BaseSettings):
    """Environment-backed settings. Field names map to upper-case env vars."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = False
    # "dev" unlocks POST /admin/reset. Any other value (including empty) keeps it closed.
    platform: str = ""
    secret_key: str = ""
    db_url: str = _DEFAULT_DB_URL

    # Access tokens cannot be revoked, so keep this short.
    access_token_expire_seconds: int = Field(default=3600, gt=0)
    refresh_token_expire_days: int = Field(default=60, gt=0)

    argon2_time_cost: int = Field(default=3, ge=1)
    argon2_memory_cost: int = Field(default=65536, ge=8)  # KiB
    argon2_parallelism: int = Field(default=4, ge=1)

    # Shared secret the billing provider sends in X-API-Key on webhooks.
    # Empty accepts unsigned webhooks (local development only).
    polka_key: str = ""

    @field_validator("secret_key")
    @classmethod
    def _secret_key_long_enough(cls, value: str) -> str:
        if value and len(value) < MIN_SECRET_KEY_LENGTH:
            raise ValueError(f"SECRET_KEY must be at least {MIN_SECRET_KEY_LENGTH} characters.")
        return value

    @model_validator(mode="after")
    def _secret_key_present(self) -> "Settings":
        if self.secret_key:
            return self
        if not self.debug:
            raise ValueError("SECRET_KEY must be set unless DEBUG=true.")
        self.secret_key = secrets.token_urlsafe(48)
        logger.warning("SECRET_KEY unset with DEBUG=true: signing with a per-process key, tokens die on restart.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide Settings, built on first call.

    Tests that change the environment call get_settings.cache_clear().
    """
    return Settings()
