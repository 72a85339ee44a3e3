"""
Runtime configuration for hashgate.

Settings are environment-driven and read once per process. They hold the
site secret used as default salt/key material, the anti-forgery token
lifetime and signing algorithm, the streaming chunk size used for file
digests, and the Argon2 cost parameters for password hashing.

Environment variables:
- HASHGATE_SITE_SECRET: site-wide secret (required outside ENV=TEST/DEV)
- HASHGATE_TOKEN_LIFETIME: token lifetime in seconds (default 86400)
- HASHGATE_TOKEN_ALGORITHM: HS256, HS384 or HS512 (default HS256)
- HASHGATE_FILE_CHUNK_SIZE: bytes read per chunk when hashing files
- HASHGATE_ARGON2_TIME_COST / _MEMORY_COST / _PARALLELISM
"""

import os
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

TOKEN_ALGORITHMS = ("HS256", "HS384", "HS512")


class HashSettings(BaseModel):
    """
    Immutable settings consumed by the hash facade.

    The site secret is wrapped in SecretStr so it never shows up in
    repr() output or validation errors.
    """

    model_config = ConfigDict(frozen=True)

    site_secret: Optional[SecretStr] = None
    token_lifetime_seconds: int = Field(86400, ge=60)
    token_algorithm: str = "HS256"
    file_chunk_size: int = Field(65536, ge=1)

    # argon2-cffi RFC 9106 low-memory profile
    argon2_time_cost: int = Field(3, ge=1)
    argon2_memory_cost: int = Field(65536, ge=8)
    argon2_parallelism: int = Field(4, ge=1)

    @field_validator("token_algorithm")
    @classmethod
    def _check_token_algorithm(cls, value: str) -> str:
        if value not in TOKEN_ALGORITHMS:
            raise ValueError(f"token_algorithm must be one of {TOKEN_ALGORITHMS}")
        return value

    @field_validator("site_secret")
    @classmethod
    def _blank_secret_is_unset(cls, value: Optional[SecretStr]) -> Optional[SecretStr]:
        if value is not None and not value.get_secret_value():
            return None
        return value


def is_dev_environment() -> bool:
    """True when ENV is TEST or DEV (development fallbacks allowed)."""
    return os.getenv("ENV", "").upper() in ("TEST", "DEV")


def settings_from_env() -> HashSettings:
    """
    Build settings from environment variables.

    Unset variables fall back to the model defaults. Malformed values
    raise pydantic.ValidationError.
    """
    raw = {
        "site_secret": os.getenv("HASHGATE_SITE_SECRET"),
        "token_lifetime_seconds": os.getenv("HASHGATE_TOKEN_LIFETIME"),
        "token_algorithm": os.getenv("HASHGATE_TOKEN_ALGORITHM"),
        "file_chunk_size": os.getenv("HASHGATE_FILE_CHUNK_SIZE"),
        "argon2_time_cost": os.getenv("HASHGATE_ARGON2_TIME_COST"),
        "argon2_memory_cost": os.getenv("HASHGATE_ARGON2_MEMORY_COST"),
        "argon2_parallelism": os.getenv("HASHGATE_ARGON2_PARALLELISM"),
    }
    return HashSettings(**{key: value for key, value in raw.items() if value is not None})


@lru_cache(maxsize=1)
def load_settings() -> HashSettings:
    """Process-wide settings singleton. Call load_settings.cache_clear() to re-read."""
    return settings_from_env()
