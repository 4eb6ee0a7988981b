import base64

from todo_manager.utils.security import SALT_LENGTH, get_password_hash, verify_password


def test_hash_verifies_original_password():
    encoded = get_password_hash("correct horse")
    assert verify_password("correct horse", encoded)


def test_wrong_password_is_rejected():
    encoded = get_password_hash("correct horse")
    assert not verify_password("Correct horse", encoded)


def test_hash_is_salt_plus_sha256_digest():
    raw = base64.b64decode(get_password_hash("pw"), validate=True)
    assert len(raw) == SALT_LENGTH + 32


def test_same_password_hashes_differently():
    assert get_password_hash("same") != get_password_hash("same")


def test_plaintext_never_appears_in_hash():
    assert "hunter22" not in get_password_hash("hunter22")


def test_empty_stored_hash_is_rejected():
    assert not verify_password("anything", "")
    assert not verify_password("anything", None)


def test_non_base64_stored_hash_is_rejected():
    assert not verify_password("anything", "not base64 at all!")


def test_too_short_stored_hash_is_rejected():
    only_salt = base64.b64encode(b"\x00" * SALT_LENGTH).decode("ascii")
    assert not verify_password("anything", only_salt)


def test_missing_candidate_password_is_rejected():
    encoded = get_password_hash("correct horse")
    assert not verify_password(None, encoded)
    assert not verify_password("", encoded)
