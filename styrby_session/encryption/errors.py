"""Error taxonomy for session message encryption.

Messages never include plaintext, ciphertext or key material.
"""


class SessionEncryptionError(Exception):
    """Base class for all session encryption failures."""


class InvalidInputError(SessionEncryptionError, ValueError):
    """Malformed caller input, detected before any cryptographic work."""


class EncryptionError(SessionEncryptionError):
    """The encryption primitive refused to operate. Not retryable."""


class DecryptionError(SessionEncryptionError):
    """Authentication failed: wrong key or tampered data."""

    def __init__(self, message: str = "Decryption failed: invalid key or tampered data"):
        super().__init__(message)
