import pytest

from styrby_session.encryption import KEY_USAGE, derive_key, generate_random_key


@pytest.fixture
def secret():
    """The fixed 32-byte master secret used across scenarios."""
    return b"\x01" * 32


@pytest.fixture
def session_key(secret):
    """Key for session-abc on machine-xyz under the production label."""
    return derive_key(secret, KEY_USAGE, ["session-abc", "machine-xyz"])


@pytest.fixture
def random_key():
    return generate_random_key()
