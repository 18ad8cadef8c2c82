"""
Message Cipher — Authenticated encryption of session messages.

Uses the NaCl secret box construction (XSalsa20-Poly1305):
    ciphertext = SecretBox(key).encrypt(utf8(plaintext), nonce)
    len(ciphertext) = len(utf8(plaintext)) + 16

A fresh random 24-byte nonce is drawn for every call, so the same key can be
used for any number of messages.

Security Note:
    Never log plaintext, ciphertext or keys. Decryption errors never say
    whether the key was wrong or the data was tampered with.
"""
import logging
from collections.abc import Mapping
from typing import Any, Union

import nacl.exceptions
import nacl.utils
from nacl.secret import SecretBox

from .config import KEY_SIZE, NONCE_SIZE, TAG_SIZE
from .errors import DecryptionError, EncryptionError, InvalidInputError
from .payload import EncryptedPayload, encode_b64

logger = logging.getLogger("styrby.session.encryption")

PayloadLike = Union[EncryptedPayload, Mapping[str, Any]]


def _check_key(key: bytes) -> bytes:
    if not isinstance(key, (bytes, bytearray, memoryview)):
        raise InvalidInputError(f"key must be bytes, got {type(key).__name__}")
    if len(key) != KEY_SIZE:
        raise InvalidInputError(
            f"key must be exactly {KEY_SIZE} bytes, got {len(key)}"
        )
    return bytes(key)


def encrypt_message(plaintext: str, key: bytes) -> EncryptedPayload:
    """Encrypt a message for storage.

    Args:
        plaintext: Message content, any text including the empty string.
        key: 32-byte symmetric key, normally from ``derive_session_key``.

    Returns:
        EncryptedPayload with base64 ciphertext and nonce.

    Raises:
        InvalidInputError: If plaintext is not text or key is not 32 bytes.
        EncryptionError: If the secret box primitive fails.
    """
    if not isinstance(plaintext, str):
        raise InvalidInputError(
            f"plaintext must be str, got {type(plaintext).__name__}"
        )
    key = _check_key(key)
    try:
        data = plaintext.encode("utf-8")
    except UnicodeEncodeError as err:
        raise InvalidInputError("plaintext is not encodable as UTF-8") from err

    nonce = nacl.utils.random(NONCE_SIZE)
    try:
        encrypted = SecretBox(key).encrypt(data, nonce)
    except nacl.exceptions.CryptoError as err:
        raise EncryptionError("Encryption failed: secret box refused input") from err
    return EncryptedPayload(
        content_encrypted=encode_b64(encrypted.ciphertext),
        nonce=encode_b64(nonce),
    )


def decrypt_message(payload: PayloadLike, key: bytes) -> str:
    """Decrypt a stored message.

    The authentication tag is verified before any plaintext is released.

    Args:
        payload: EncryptedPayload, or a mapping with ``contentEncrypted``
            and ``nonce``.
        key: 32-byte symmetric key used at encryption time.

    Returns:
        Decrypted plaintext.

    Raises:
        InvalidInputError: If the payload shape or encoding is invalid, or
            key is not 32 bytes.
        DecryptionError: If authentication fails (wrong key or tampered data).
    """
    if not isinstance(payload, EncryptedPayload):
        payload = EncryptedPayload.from_mapping(payload)
    key = _check_key(key)
    ciphertext, nonce = payload.decode()
    if len(nonce) != NONCE_SIZE:
        raise InvalidInputError(
            f"nonce must decode to {NONCE_SIZE} bytes, got {len(nonce)}"
        )
    if len(ciphertext) < TAG_SIZE:
        raise InvalidInputError(
            f"contentEncrypted too short: {len(ciphertext)} bytes "
            f"(minimum {TAG_SIZE})"
        )
    try:
        data = SecretBox(key).decrypt(ciphertext, nonce)
        return data.decode("utf-8")
    except (nacl.exceptions.CryptoError, UnicodeDecodeError):
        raise DecryptionError() from None


def is_encrypted_payload(value: Any) -> bool:
    """Check that a value has the encrypted payload structure.

    Does not verify that the payload decrypts.
    """
    if isinstance(value, EncryptedPayload):
        return True
    if not isinstance(value, Mapping):
        return False
    return isinstance(value.get("contentEncrypted"), str) and isinstance(
        value.get("nonce"), str
    )


def generate_random_key() -> bytes:
    """Generate a random 32-byte key.

    For tests and ephemeral use only. Production keys come from
    ``derive_session_key`` so they stay reproducible and scoped.
    """
    return nacl.utils.random(KEY_SIZE)
