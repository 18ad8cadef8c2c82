"""
Key Derivation — Per-session, per-device symmetric keys.

    key = HMAC-SHA512(user_secret, lp(usage) || lp(session_id) || lp(machine_id))[:32]

where ``lp(x)`` is the UTF-8 encoding of ``x`` prefixed by its byte length as
a 4-byte big-endian integer. The length prefix makes the encoding injective,
so ``("a", "bc")`` and ``("ab", "c")`` never collide.

Security Note:
    Never log the user secret or derived keys. Only log identifiers.
"""
import struct
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from cryptography.hazmat.primitives import hmac

from .config import HASH_ALGORITHM, KEY_SIZE, KEY_USAGE
from .errors import InvalidInputError

logger = logging.getLogger("styrby.session.encryption")

_LENGTH_PREFIX = struct.Struct("!I")


@dataclass(frozen=True)
class KeyContext:
    """Inputs for deriving a session key.

    ``user_secret`` is owned by the caller and is excluded from ``repr``.
    """

    user_secret: bytes = field(repr=False)
    session_id: str
    machine_id: str


def _encode_component(value: str) -> bytes:
    if not isinstance(value, str):
        raise InvalidInputError(
            f"Key derivation components must be str, got {type(value).__name__}"
        )
    data = value.encode("utf-8")
    return _LENGTH_PREFIX.pack(len(data)) + data


def derive_key(secret: bytes, usage: str, path: Sequence[str]) -> bytes:
    """Derive a 32-byte key from a master secret, usage label and path.

    Args:
        secret: User master secret (non-empty).
        usage: Usage label used for domain separation (e.g. KEY_USAGE).
        path: Ordered context components (e.g. [session_id, machine_id]).

    Returns:
        32-byte derived key.

    Raises:
        InvalidInputError: If secret is empty or not bytes-like, or if usage
            or a path component is not a string.
    """
    if not isinstance(secret, (bytes, bytearray, memoryview)):
        raise InvalidInputError(
            f"secret must be bytes, got {type(secret).__name__}"
        )
    if len(secret) == 0:
        raise InvalidInputError("secret cannot be empty")
    if isinstance(path, (str, bytes)) or not isinstance(path, Sequence):
        raise InvalidInputError("path must be a sequence of strings")

    message = _encode_component(usage) + b"".join(
        _encode_component(component) for component in path
    )
    h = hmac.HMAC(bytes(secret), HASH_ALGORITHM())
    h.update(message)
    return h.finalize()[:KEY_SIZE]


def derive_session_key(context: KeyContext, usage: str = KEY_USAGE) -> bytes:
    """Derive the key for one session on one machine.

    Args:
        context: User secret plus session and machine identifiers.
        usage: Usage label; only overridden during label migrations.

    Returns:
        32-byte secret box key.
    """
    key = derive_key(
        context.user_secret, usage, [context.session_id, context.machine_id]
    )
    logger.debug(
        "Derived session key: session=%s machine=%s",
        context.session_id, context.machine_id,
    )
    return key
