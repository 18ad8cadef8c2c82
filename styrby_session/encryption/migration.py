"""
Label Migration — Re-encryption of stored messages under a new usage label.

Changing ``KEY_USAGE`` invalidates every previously derived key. Stored rows
must be re-encrypted: decrypt with the key derived under the old label,
encrypt with the key derived under the new one. Rows which do not open
under the old key are left untouched and counted as errors.

Security Note:
    Plaintext exists in memory only during re-encryption of each row.
    Never log plaintext or ciphertext values.
"""
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from .cipher import PayloadLike, decrypt_message, encrypt_message
from .errors import DecryptionError, InvalidInputError
from .kdf import KeyContext, derive_session_key
from .payload import EncryptedPayload

logger = logging.getLogger("styrby.session.encryption")


def reencrypt_payload(
    payload: PayloadLike,
    old_key: bytes,
    new_key: bytes,
) -> EncryptedPayload:
    """Decrypt a payload with old_key and encrypt it again with new_key.

    A fresh nonce is drawn for the new payload.

    Raises:
        InvalidInputError: If the payload or either key is malformed.
        DecryptionError: If the payload does not open under old_key.
    """
    return encrypt_message(decrypt_message(payload, old_key), new_key)


def migrate_records(
    rows: Iterable[Mapping[str, Any]],
    user_secret: bytes,
    session_id: str,
    machine_id: str,
    old_usage: str,
    new_usage: str,
) -> tuple[list[dict[str, Any]], dict[str, int]]:
    """Re-encrypt stored message rows from old_usage to new_usage keys.

    Args:
        rows: Storage rows with ``content_encrypted``/``encryption_nonce``.
        user_secret: User master secret.
        session_id: Session the rows belong to.
        machine_id: Machine whose key encrypted the rows.
        old_usage: Usage label the rows are currently encrypted under.
        new_usage: Usage label to migrate to.

    Returns:
        Tuple of (new rows, stats). Stats has keys: total, migrated,
        skipped, errors. Input rows are not modified.

    Raises:
        InvalidInputError: If user_secret is empty or the labels are equal.
    """
    if old_usage == new_usage:
        raise InvalidInputError("old_usage and new_usage must differ")

    context = KeyContext(
        user_secret=user_secret, session_id=session_id, machine_id=machine_id,
    )
    old_key = derive_session_key(context, old_usage)
    new_key = derive_session_key(context, new_usage)

    stats = {"total": 0, "migrated": 0, "skipped": 0, "errors": 0}
    migrated: list[dict[str, Any]] = []

    logger.info(
        "Starting label migration for session=%s machine=%s: %s -> %s",
        session_id, machine_id, old_usage, new_usage,
    )

    for row in rows:
        stats["total"] += 1
        item = dict(row)
        if not EncryptedPayload.record_has_payload(row):
            stats["skipped"] += 1
            migrated.append(item)
            continue
        try:
            payload = EncryptedPayload.from_record(row)
            item.update(reencrypt_payload(payload, old_key, new_key).to_record())
            stats["migrated"] += 1
        except (DecryptionError, InvalidInputError) as err:
            logger.error(
                "Error migrating message id=%s session=%s: %s",
                row.get("id"), session_id, err,
            )
            stats["errors"] += 1
        migrated.append(item)

    logger.info("Label migration complete: %s", stats)
    return migrated, stats
