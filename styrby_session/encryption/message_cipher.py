"""
SessionMessageCipher — Encrypts and decrypts session messages for one user.

Provides the API used by the session storage layer:
- ``encrypt(session_id, machine_id, content)`` — encrypt one message
- ``decrypt(session_id, machine_id, payload)`` — decrypt one message
- ``seal_record(...)`` — encrypt into storage columns
- ``open_records(...)`` — decrypt a batch of stored rows for display
- ``forget()`` — drop cached keys

Security Note:
    Never log plaintext, ciphertext or key material. Only log session,
    machine and message identifiers.
"""
import logging
from collections.abc import Iterable, Mapping
from typing import Any, Optional

from .cipher import PayloadLike, decrypt_message, encrypt_message
from .config import EncryptionConfig
from .errors import DecryptionError, InvalidInputError
from .kdf import KeyContext, derive_session_key
from .key_cache import SessionKeyCache
from .payload import EncryptedPayload

logger = logging.getLogger("styrby.session.encryption")

DECRYPTION_FAILED = "[Decryption failed]"


class SessionMessageCipher:
    """Message encryption bound to a user master secret.

    Keys are derived per (session, machine) pair and cached in a bounded
    FIFO cache sized from :class:`EncryptionConfig`.
    """

    def __init__(
        self,
        user_secret: bytes,
        config: Optional[EncryptionConfig] = None,
    ):
        if not isinstance(user_secret, (bytes, bytearray)) or not user_secret:
            raise InvalidInputError("user_secret must be non-empty bytes")
        self._config = config or EncryptionConfig()
        self._secret = bytes(user_secret)
        self._cache = SessionKeyCache(
            max_size=self._config.key_cache_size,
            headroom=self._config.key_cache_headroom,
        )

    def __repr__(self) -> str:
        return (
            f"<SessionMessageCipher usage={self._config.key_usage!r} "
            f"cached_keys={len(self._cache)}>"
        )

    @property
    def usage(self) -> str:
        return self._config.key_usage

    def session_key(self, session_id: str, machine_id: str) -> bytes:
        """Return the (cached) key for a session on a machine."""
        context = KeyContext(
            user_secret=self._secret,
            session_id=session_id,
            machine_id=machine_id,
        )
        return self._cache.get_or_derive(
            session_id,
            machine_id,
            lambda: derive_session_key(context, self._config.key_usage),
        )

    def encrypt(self, session_id: str, machine_id: str, content: str) -> EncryptedPayload:
        key = self.session_key(session_id, machine_id)
        return encrypt_message(content, key)

    def decrypt(self, session_id: str, machine_id: str, payload: PayloadLike) -> str:
        key = self.session_key(session_id, machine_id)
        return decrypt_message(payload, key)

    def seal_record(self, session_id: str, machine_id: str, content: str) -> dict[str, str]:
        """Encrypt content and return the ``content_encrypted`` and
        ``encryption_nonce`` storage columns.
        """
        return self.encrypt(session_id, machine_id, content).to_record()

    def open_records(
        self,
        session_id: str,
        machine_id: str,
        rows: Iterable[Mapping[str, Any]],
    ) -> list[dict[str, Any]]:
        """Decrypt stored message rows for display.

        Each row is copied with an added ``content`` key:
        - ``None`` when the row carries no encrypted payload,
        - the plaintext when decryption succeeds,
        - ``DECRYPTION_FAILED`` when the row cannot be decrypted.

        Args:
            session_id: Session the rows belong to.
            machine_id: Machine whose key encrypted the rows.
            rows: Storage rows with ``content_encrypted``/``encryption_nonce``.

        Returns:
            New list of row dicts with ``content`` set.
        """
        key = self.session_key(session_id, machine_id)
        opened: list[dict[str, Any]] = []
        failed = 0
        for row in rows:
            item = dict(row)
            if not EncryptedPayload.record_has_payload(row):
                item["content"] = None
            else:
                try:
                    payload = EncryptedPayload.from_record(row)
                    item["content"] = decrypt_message(payload, key)
                except (DecryptionError, InvalidInputError) as err:
                    logger.error(
                        "Failed to decrypt message id=%s session=%s: %s",
                        row.get("id"), session_id, err,
                    )
                    item["content"] = DECRYPTION_FAILED
                    failed += 1
            opened.append(item)
        if failed:
            logger.warning(
                "Session %s: %d of %d message(s) could not be decrypted",
                session_id, failed, len(opened),
            )
        return opened

    def forget(self) -> None:
        """Drop all cached session keys."""
        self._cache.clear()
