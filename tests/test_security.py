# tests/test_security.py
import hashlib
from datetime import timedelta

from portal.core.security import (
    create_access_token,
    create_verification_token,
    decode_access_token,
    hash_password,
    verification_token_matches,
    verify_and_update,
    verify_password,
)


def test_hash_is_salted_and_verifies():
    first = hash_password("Applywizz@2026")
    second = hash_password("Applywizz@2026")
    assert first != second
    assert first.startswith("$pbkdf2-sha256$")
    assert verify_password("Applywizz@2026", first)
    assert not verify_password("applywizz@2026", first)


def test_legacy_sha256_hash_verifies_and_is_upgraded():
    legacy = hashlib.sha256(b"Applywizz@2026").hexdigest()
    valid, new_hash = verify_and_update("Applywizz@2026", legacy)
    assert valid
    assert new_hash and new_hash.startswith("$pbkdf2-sha256$")

    valid, new_hash = verify_and_update("wrong", legacy)
    assert not valid
    assert new_hash is None


def test_unknown_hash_format_does_not_verify():
    assert not verify_password("x", "not-a-hash")


def test_access_token_round_trip():
    token = create_access_token(7, "admin@applywizz.com")
    session = decode_access_token(token)
    assert session.id == 7
    assert session.email == "admin@applywizz.com"


def test_expired_or_foreign_tokens_are_rejected():
    expired = create_access_token(7, "admin@applywizz.com", expires_delta=timedelta(minutes=-1))
    assert decode_access_token(expired) is None
    assert decode_access_token("garbage") is None
    # an email proof is not an admin session
    assert decode_access_token(create_verification_token("a@b.co")) is None


def test_verification_token_is_bound_to_email():
    token = create_verification_token("Jane@Example.com")
    assert verification_token_matches(token, "jane@example.com")
    assert not verification_token_matches(token, "other@example.com")
    assert not verification_token_matches(create_access_token(1, "jane@example.com"), "jane@example.com")


def test_missing_verification_token_is_rejected():
    assert verification_token_matches(None, "jane@example.com") is False
    assert verification_token_matches("", "jane@example.com") is False
