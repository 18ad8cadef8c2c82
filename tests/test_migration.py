"""
Tests for re-encryption under a new usage label.
"""
import pytest

from styrby_session.encryption import (
    KEY_USAGE,
    DecryptionError,
    EncryptionConfig,
    InvalidInputError,
    SessionMessageCipher,
    decrypt_message,
    encrypt_message,
    generate_random_key,
    migrate_records,
    reencrypt_payload,
)

NEW_USAGE = "styrby-session-encryption-v2"


class TestReencryptPayload:

    def test_reencrypt(self):
        old_key, new_key = generate_random_key(), generate_random_key()
        payload = encrypt_message("move me", old_key)
        moved = reencrypt_payload(payload, old_key, new_key)
        assert moved.nonce != payload.nonce
        assert decrypt_message(moved, new_key) == "move me"
        with pytest.raises(DecryptionError):
            decrypt_message(moved, old_key)

    def test_wrong_old_key(self):
        payload = encrypt_message("x", generate_random_key())
        with pytest.raises(DecryptionError):
            reencrypt_payload(payload, generate_random_key(), generate_random_key())


class TestMigrateRecords:

    @pytest.fixture
    def old_cipher(self, secret):
        return SessionMessageCipher(secret)

    @pytest.fixture
    def new_cipher(self, secret):
        return SessionMessageCipher(secret, EncryptionConfig(key_usage=NEW_USAGE))

    def test_migrates_all_rows(self, secret, old_cipher, new_cipher):
        rows = [
            {"id": i, **old_cipher.seal_record("s", "m", f"msg {i}")}
            for i in range(5)
        ]
        migrated, stats = migrate_records(rows, secret, "s", "m", KEY_USAGE, NEW_USAGE)
        assert stats == {"total": 5, "migrated": 5, "skipped": 0, "errors": 0}
        opened = new_cipher.open_records("s", "m", migrated)
        assert [row["content"] for row in opened] == [f"msg {i}" for i in range(5)]
        assert [row["id"] for row in migrated] == list(range(5))

    def test_old_label_no_longer_opens(self, secret, old_cipher):
        rows = [{"id": 1, **old_cipher.seal_record("s", "m", "x")}]
        migrated, _ = migrate_records(rows, secret, "s", "m", KEY_USAGE, NEW_USAGE)
        with pytest.raises(DecryptionError):
            old_cipher.decrypt("s", "m", {
                "contentEncrypted": migrated[0]["content_encrypted"],
                "nonce": migrated[0]["encryption_nonce"],
            })

    def test_skips_and_errors(self, secret, old_cipher):
        good = {"id": 1, **old_cipher.seal_record("s", "m", "ok")}
        plain = {"id": 2, "message_type": "system"}
        foreign = {"id": 3, **old_cipher.seal_record("other", "m", "nope")}
        migrated, stats = migrate_records(
            [good, plain, foreign], secret, "s", "m", KEY_USAGE, NEW_USAGE,
        )
        assert stats == {"total": 3, "migrated": 1, "skipped": 1, "errors": 1}
        assert migrated[1] == plain
        assert migrated[2] == foreign

    def test_input_rows_not_mutated(self, secret, old_cipher):
        row = {"id": 1, **old_cipher.seal_record("s", "m", "x")}
        original = dict(row)
        migrate_records([row], secret, "s", "m", KEY_USAGE, NEW_USAGE)
        assert row == original

    def test_same_label_rejected(self, secret):
        with pytest.raises(InvalidInputError):
            migrate_records([], secret, "s", "m", KEY_USAGE, KEY_USAGE)

    def test_empty_secret_rejected(self):
        with pytest.raises(InvalidInputError):
            migrate_records([], b"", "s", "m", KEY_USAGE, NEW_USAGE)

    def test_row_missing_a_field_is_skipped(self, secret, old_cipher):
        sealed = old_cipher.seal_record("s", "m", "x")
        row = {"id": 1, "content_encrypted": sealed["content_encrypted"]}
        migrated, stats = migrate_records([row], secret, "s", "m", KEY_USAGE, NEW_USAGE)
        assert stats == {"total": 1, "migrated": 0, "skipped": 1, "errors": 0}
        assert migrated == [row]
