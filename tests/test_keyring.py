"""
Unit tests for the key ring.
"""

import base64
import dataclasses
import logging

import pytest

from sessionseal.errors import InvalidConfiguration
from sessionseal.modules.keyring import KeyRing


def test_active_and_retired_keys(secret_key, retired_key):
    ring = KeyRing((secret_key, retired_key))

    assert ring.active == secret_key
    assert ring.retired == (retired_key,)
    assert list(ring) == [secret_key, retired_key]
    assert len(ring) == 2


def test_list_input_is_normalised_to_tuple(secret_key):
    ring = KeyRing([secret_key])
    assert ring.keys == (secret_key,)


def test_empty_ring_is_rejected():
    with pytest.raises(InvalidConfiguration):
        KeyRing(())


@pytest.mark.parametrize("bad_key", [b"", "not-bytes", None])
def test_invalid_keys_are_rejected(bad_key):
    with pytest.raises(InvalidConfiguration):
        KeyRing((bad_key,))


def test_invalid_configuration_is_a_value_error():
    """Test startup code catching ValueError also catches configuration errors."""
    with pytest.raises(ValueError):
        KeyRing(())


def test_short_key_logs_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="sessionseal.modules.keyring.keyring"):
        KeyRing((b"short-key",))
    assert "recommended" in caplog.text


def test_ring_is_immutable(keyring, retired_key):
    with pytest.raises(dataclasses.FrozenInstanceError):
        keyring.keys = (retired_key,)


def test_rotate_returns_new_ring(keyring, secret_key, retired_key):
    """Test rotation prepends the new key and leaves the original untouched."""
    rotated = keyring.rotate(retired_key)

    assert rotated.active == retired_key
    assert rotated.retired == (secret_key,)
    assert keyring.keys == (secret_key,)


def test_prune_drops_oldest_keys(secret_key, retired_key):
    ring = KeyRing((retired_key, secret_key)).prune(1)
    assert ring.keys == (retired_key,)

    with pytest.raises(InvalidConfiguration):
        ring.prune(0)


def test_generate_key():
    key = KeyRing.generate_key()
    assert isinstance(key, bytes)
    assert len(key) == 32
    assert key != KeyRing.generate_key()


def test_from_base64_accepts_both_alphabets(secret_key, retired_key):
    standard = base64.b64encode(secret_key).decode()
    urlsafe = base64.urlsafe_b64encode(retired_key).decode().rstrip("=")

    ring = KeyRing.from_base64([standard, f" {urlsafe} ", ""])

    assert ring.keys == (secret_key, retired_key)


def test_from_base64_rejects_garbage():
    with pytest.raises(InvalidConfiguration):
        KeyRing.from_base64(["not base64!"])


def test_from_base64_rejects_empty_list():
    with pytest.raises(InvalidConfiguration):
        KeyRing.from_base64(["", " "])


def test_from_secret_is_deterministic():
    salt = "0123456789abcdef"
    first = KeyRing.from_secret("correct horse battery staple", salt, iterations=1000)
    second = KeyRing.from_secret(b"correct horse battery staple", salt.encode(), iterations=1000)
    other = KeyRing.from_secret("another passphrase", salt, iterations=1000)

    assert len(first.active) == 32
    assert first.keys == second.keys
    assert first.keys != other.keys


def test_from_secret_requires_salt_and_secret():
    with pytest.raises(InvalidConfiguration):
        KeyRing.from_secret("passphrase", "short")
    with pytest.raises(InvalidConfiguration):
        KeyRing.from_secret("", "0123456789abcdef")


def test_repr_does_not_leak_keys(secret_key):
    text = repr(KeyRing((secret_key,)))
    assert "1 keys" in text
    assert str(secret_key) not in text
