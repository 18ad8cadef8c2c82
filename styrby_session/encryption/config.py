"""
Encryption Configuration — Wire-format constants and validated settings.

The constants below are part of the stored wire format. Changing any of them
invalidates every payload encrypted so far unless it is re-encrypted
(see ``migration.py``).

Reads optional settings from environment variables:
    STYRBY_USER_SECRET = <base64-encoded user master secret>
    STYRBY_KEY_USAGE = <usage label, defaults to KEY_USAGE>
    STYRBY_KEY_CACHE_SIZE = <integer>
    STYRBY_KEY_CACHE_HEADROOM = <integer>

Security Note:
    Never log secret material. Only log sizes and identifiers.
"""
import os
import base64
import binascii
import secrets
import logging

from cryptography.hazmat.primitives import hashes
from pydantic import BaseModel, Field, field_validator, model_validator

from .errors import InvalidInputError

logger = logging.getLogger("styrby.session.encryption")

KEY_USAGE = "styrby-session-encryption-v1"
KEY_SIZE = 32  # secret box key
NONCE_SIZE = 24  # XSalsa20 nonce
TAG_SIZE = 16  # Poly1305 tag
HASH_ALGORITHM = hashes.SHA512  # HMAC hash used by the KDF

USER_SECRET_ENV = "STYRBY_USER_SECRET"


def load_user_secret(var: str = USER_SECRET_ENV) -> bytes:
    """Load the user master secret from a base64 environment variable.

    Args:
        var: Name of the environment variable holding the secret.

    Returns:
        Raw secret bytes.

    Raises:
        RuntimeError: If the variable is not set.
        InvalidInputError: If the value is not valid base64 or decodes to
            zero bytes.
    """
    raw = os.environ.get(var)
    if raw is None:
        raise RuntimeError(
            f"{var} environment variable is not set. "
            f"Set {var}=<base64-encoded-secret>"
        )
    try:
        secret = base64.b64decode(raw, validate=True)
    except binascii.Error as err:
        raise InvalidInputError(f"{var} is not valid base64") from err
    if not secret:
        raise InvalidInputError(f"{var} decodes to an empty secret")
    logger.debug("Loaded user secret from %s (%d bytes)", var, len(secret))
    return secret


def generate_user_secret() -> str:
    """Generate a random 32-byte user secret and return it as base64.

    Utility for operators and local development.
    """
    return base64.b64encode(secrets.token_bytes(KEY_SIZE)).decode("ascii")


class EncryptionConfig(BaseModel):
    """Validated encryption settings."""

    key_usage: str = Field(default=KEY_USAGE, min_length=1)
    key_cache_size: int = Field(default=100, ge=1, le=10000)
    key_cache_headroom: int = Field(default=10, ge=0)

    @field_validator("key_usage")
    @classmethod
    def validate_usage(cls, v: str) -> str:
        """Reject labels made only of whitespace."""
        if not v.strip():
            raise ValueError("key_usage cannot be blank")
        return v

    @model_validator(mode="after")
    def validate_headroom(self) -> "EncryptionConfig":
        """Ensure eviction headroom leaves room for at least one key."""
        if self.key_cache_headroom >= self.key_cache_size:
            raise ValueError(
                f"key_cache_headroom ({self.key_cache_headroom}) must be "
                f"smaller than key_cache_size ({self.key_cache_size})"
            )
        return self

    @classmethod
    def from_env(cls) -> "EncryptionConfig":
        """Create EncryptionConfig by loading values from environment.

        Returns:
            Populated EncryptionConfig instance.
        """
        return cls(
            key_usage=os.environ.get("STYRBY_KEY_USAGE", KEY_USAGE),
            key_cache_size=int(os.environ.get("STYRBY_KEY_CACHE_SIZE", 100)),
            key_cache_headroom=int(os.environ.get("STYRBY_KEY_CACHE_HEADROOM", 10)),
        )
