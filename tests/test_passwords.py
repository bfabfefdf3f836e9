import pytest

from tradejournal.auth.passwords import hash_password, verify_password


def test_hash_verifies_and_rejects_wrong_password():
    h = hash_password("correct horse")
    assert h.startswith("$argon2id$")
    assert verify_password(h, "correct horse")
    assert not verify_password(h, "battery staple")


def test_each_hash_has_its_own_salt():
    assert hash_password("same-password") != hash_password("same-password")


def test_malformed_or_empty_hash_is_a_failed_verification():
    assert verify_password("not-an-argon2-hash", "whatever") is False
    assert verify_password("", "whatever") is False
    assert verify_password(hash_password("abcdef"), "") is False


def test_empty_password_cannot_be_hashed():
    with pytest.raises(ValueError):
        hash_password("")
