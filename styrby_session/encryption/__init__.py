"""Session Encryption — End-to-end encryption of agent session messages.

Messages are encrypted on the originating device with a key derived from
the user's master secret, the session id and the machine id, and stored as
opaque ciphertext.

Security Note (Threat Model):
    The storage backend is assumed curious or compromised: it only ever sees
    base64 ciphertext and nonces. Derived keys are cached in process memory
    by ``SessionMessageCipher``; a memory dump of the agent process exposes
    them. This is an accepted limitation.
"""

from .config import (
    KEY_SIZE,
    KEY_USAGE,
    NONCE_SIZE,
    TAG_SIZE,
    EncryptionConfig,
    generate_user_secret,
    load_user_secret,
)
from .errors import (
    DecryptionError,
    EncryptionError,
    InvalidInputError,
    SessionEncryptionError,
)
from .kdf import KeyContext, derive_key, derive_session_key
from .payload import EncryptedPayload, decode_b64, encode_b64
from .cipher import (
    decrypt_message,
    encrypt_message,
    generate_random_key,
    is_encrypted_payload,
)
from .key_cache import SessionKeyCache
from .message_cipher import DECRYPTION_FAILED, SessionMessageCipher
from .migration import migrate_records, reencrypt_payload

__all__ = [
    "KEY_SIZE",
    "KEY_USAGE",
    "NONCE_SIZE",
    "TAG_SIZE",
    "EncryptionConfig",
    "generate_user_secret",
    "load_user_secret",
    "SessionEncryptionError",
    "InvalidInputError",
    "EncryptionError",
    "DecryptionError",
    "KeyContext",
    "derive_key",
    "derive_session_key",
    "EncryptedPayload",
    "encode_b64",
    "decode_b64",
    "encrypt_message",
    "decrypt_message",
    "is_encrypted_payload",
    "generate_random_key",
    "SessionKeyCache",
    "SessionMessageCipher",
    "DECRYPTION_FAILED",
    "migrate_records",
    "reencrypt_payload",
]
