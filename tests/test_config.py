"""
Tests for encryption configuration and secret loading.
"""
import base64

import pytest
from pydantic import ValidationError

from styrby_session.encryption import (
    KEY_SIZE,
    KEY_USAGE,
    NONCE_SIZE,
    TAG_SIZE,
    EncryptionConfig,
    InvalidInputError,
    generate_user_secret,
    load_user_secret,
)


class TestConstants:
    """Wire-format constants."""

    def test_values(self):
        assert KEY_USAGE == "styrby-session-encryption-v1"
        assert KEY_SIZE == 32
        assert NONCE_SIZE == 24
        assert TAG_SIZE == 16


class TestEncryptionConfig:

    def test_defaults(self):
        config = EncryptionConfig()
        assert config.key_usage == KEY_USAGE
        assert config.key_cache_size == 100
        assert config.key_cache_headroom == 10

    def test_blank_usage_rejected(self):
        with pytest.raises(ValidationError):
            EncryptionConfig(key_usage="   ")

    def test_empty_usage_rejected(self):
        with pytest.raises(ValidationError):
            EncryptionConfig(key_usage="")

    def test_cache_size_bounds(self):
        with pytest.raises(ValidationError):
            EncryptionConfig(key_cache_size=0)
        with pytest.raises(ValidationError):
            EncryptionConfig(key_cache_size=10001)

    def test_headroom_must_be_smaller_than_size(self):
        with pytest.raises(ValidationError):
            EncryptionConfig(key_cache_size=5, key_cache_headroom=5)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("STYRBY_KEY_USAGE", "styrby-session-encryption-v2")
        monkeypatch.setenv("STYRBY_KEY_CACHE_SIZE", "20")
        monkeypatch.setenv("STYRBY_KEY_CACHE_HEADROOM", "2")
        config = EncryptionConfig.from_env()
        assert config.key_usage == "styrby-session-encryption-v2"
        assert config.key_cache_size == 20
        assert config.key_cache_headroom == 2

    def test_from_env_defaults(self, monkeypatch):
        for name in ("STYRBY_KEY_USAGE", "STYRBY_KEY_CACHE_SIZE", "STYRBY_KEY_CACHE_HEADROOM"):
            monkeypatch.delenv(name, raising=False)
        assert EncryptionConfig.from_env() == EncryptionConfig()


class TestUserSecret:

    def test_load(self, monkeypatch):
        monkeypatch.setenv("STYRBY_USER_SECRET", base64.b64encode(b"\x01" * 32).decode())
        assert load_user_secret() == b"\x01" * 32

    def test_custom_variable(self, monkeypatch):
        monkeypatch.setenv("OTHER_SECRET", base64.b64encode(b"abc").decode())
        assert load_user_secret("OTHER_SECRET") == b"abc"

    def test_missing(self, monkeypatch):
        monkeypatch.delenv("STYRBY_USER_SECRET", raising=False)
        with pytest.raises(RuntimeError):
            load_user_secret()

    def test_empty(self, monkeypatch):
        monkeypatch.setenv("STYRBY_USER_SECRET", "")
        with pytest.raises(InvalidInputError):
            load_user_secret()

    def test_invalid_base64(self, monkeypatch):
        monkeypatch.setenv("STYRBY_USER_SECRET", "not-base64!")
        with pytest.raises(InvalidInputError) as exc:
            load_user_secret()
        assert "not-base64!" not in str(exc.value)

    def test_generate(self):
        value = generate_user_secret()
        assert len(base64.b64decode(value)) == 32
        assert generate_user_secret() != value
