"""
Cache Configuration — validated settings for the secure document cache.

Reads defaults from the environment (see ``foi_session.conf``):
    FOI_CACHE_PREFIX = <namespace prefix for stored entries>
    FOI_CACHE_TTL = <entry lifetime in seconds>

Security Note:
    Key material is never configurable. Session keys are generated in
    process and never leave the key manager.
"""
import os
import logging
from datetime import timedelta

from pydantic import BaseModel, Field, field_validator

from ..conf import CACHE_PREFIX, CACHE_TTL, CACHE_KEY_BITS, LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)


class CacheConfig(BaseModel):
    """Validated secure cache configuration."""

    key_prefix: str = Field(default=CACHE_PREFIX)
    entry_ttl: int = Field(default=CACHE_TTL, ge=60, validate_default=True)
    key_bits: int = Field(default=CACHE_KEY_BITS)

    model_config = {"frozen": True}

    @field_validator("key_prefix")
    @classmethod
    def validate_prefix(cls, v: str) -> str:
        """A blank prefix would make panic clear wipe foreign keys."""
        if not v or not v.strip():
            raise ValueError("Cache key prefix cannot be empty")
        return v

    @field_validator("key_bits")
    @classmethod
    def validate_key_bits(cls, v: int) -> int:
        """Only AES-256 is supported."""
        if v != 256:
            raise ValueError(f"Unsupported key size: {v} bits")
        return v

    @property
    def ttl(self) -> timedelta:
        return timedelta(seconds=self.entry_ttl)

    @classmethod
    def from_env(cls) -> "CacheConfig":
        """Create CacheConfig by loading values from environment.

        Returns:
            Populated CacheConfig instance.
        """
        key_prefix = os.environ.get("FOI_CACHE_PREFIX", CACHE_PREFIX)
        entry_ttl = os.environ.get("FOI_CACHE_TTL", CACHE_TTL)
        logger.debug(
            "Cache config loaded: prefix=%s ttl=%ss", key_prefix, entry_ttl,
        )
        return cls(key_prefix=key_prefix, entry_ttl=entry_ttl)
