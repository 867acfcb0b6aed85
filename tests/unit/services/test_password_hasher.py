import hashlib

import bcrypt
import pytest

from session_service.app.services.password_hasher import (
    HashScheme,
    detect_scheme,
    hash_password,
    make_md5_hash,
    make_pbkdf2_hash,
    needs_upgrade,
    verify_password,
)


def test_detect_scheme_by_stored_format():
    bcrypt_hash = bcrypt.hashpw(b"pw", bcrypt.gensalt(4)).decode()

    assert detect_scheme(bcrypt_hash) == HashScheme.bcrypt
    assert detect_scheme("$2y$10$abcdefghijklmnopqrstuv") == HashScheme.bcrypt
    assert detect_scheme(make_pbkdf2_hash("pw", salt="salt")) == HashScheme.pbkdf2
    assert detect_scheme(make_md5_hash("pw")) == HashScheme.md5
    assert detect_scheme(hashlib.md5(b"pw").hexdigest()) == HashScheme.md5
    assert detect_scheme("plaintext") == HashScheme.unknown


def test_bcrypt_verification():
    stored = hash_password("SecurePass123!")

    assert stored.startswith("$2b$")
    assert verify_password("SecurePass123!", stored)
    assert not verify_password("WrongPassword!", stored)
    assert not needs_upgrade(stored)


def test_pbkdf2_verification_and_upgrade_flag():
    stored = make_pbkdf2_hash("secret1")

    assert verify_password("secret1", stored)
    assert not verify_password("secret2", stored)
    assert needs_upgrade(stored)


@pytest.mark.parametrize(
    "stored",
    [
        "md5:e52d98c459819a11775936d8dfbb7929",
        "e52d98c459819a11775936d8dfbb7929",
        "E52D98C459819A11775936D8DFBB7929",
    ],
)
def test_md5_verification_accepts_prefixed_and_bare_digests(stored):
    # md5("secret1")
    assert verify_password("secret1", stored)
    assert not verify_password("secret2", stored)
    assert needs_upgrade(stored)


@pytest.mark.parametrize("stored", ["", "plaintext", "pbkdf2:", "pbkdf2:salt-only", "$2b$broken"])
def test_unrecognized_or_corrupt_hash_never_verifies(stored):
    assert not verify_password("anything", stored)
