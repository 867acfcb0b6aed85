"""
Password Hashing

Stored hashes may use one of three schemes; the scheme is picked by sniffing
the stored value, never by inspecting anything else about the account:

- bcrypt ("$2a$", "$2b$", "$2y$") - current, used for every new hash
- "pbkdf2:<salt>:<hex>" - PBKDF2-HMAC-SHA256 written by the previous backend
- "md5:<hex>" or a bare 32-char hex digest - legacy

Verifiers are pure functions so login can accept any scheme and upgrade the
stored value afterwards without a forced reset.
"""

import hashlib
import re
import secrets
from enum import Enum
from typing import Callable, Dict, Optional

import bcrypt

BCRYPT_ROUNDS = 12

PBKDF2_PREFIX = "pbkdf2:"
PBKDF2_ITERATIONS = 10000
PBKDF2_KEY_LENGTH = 64

MD5_PREFIX = "md5:"
_MD5_HEX = re.compile(r"^[0-9a-fA-F]{32}$")


class HashScheme(str, Enum):
    bcrypt = "bcrypt"
    pbkdf2 = "pbkdf2"
    md5 = "md5"
    unknown = "unknown"


CURRENT_SCHEME = HashScheme.bcrypt


def detect_scheme(stored_hash: str) -> HashScheme:
    """Identify the scheme from the stored value's prefix/format"""
    if stored_hash.startswith(("$2a$", "$2b$", "$2y$")):
        return HashScheme.bcrypt
    if stored_hash.startswith(PBKDF2_PREFIX):
        return HashScheme.pbkdf2
    if stored_hash.startswith(MD5_PREFIX) or _MD5_HEX.match(stored_hash):
        return HashScheme.md5
    return HashScheme.unknown


def _verify_bcrypt(password: str, stored_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), stored_hash.encode())
    except ValueError:
        return False


def _verify_pbkdf2(password: str, stored_hash: str) -> bool:
    salt, _, expected = stored_hash[len(PBKDF2_PREFIX):].partition(":")
    if not salt or not expected:
        return False
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS, PBKDF2_KEY_LENGTH
    ).hex()
    return secrets.compare_digest(digest, expected.lower())


def _verify_md5(password: str, stored_hash: str) -> bool:
    expected = stored_hash[len(MD5_PREFIX):] if stored_hash.startswith(MD5_PREFIX) else stored_hash
    digest = hashlib.md5(password.encode()).hexdigest()
    return secrets.compare_digest(digest, expected.lower())


def _verify_unknown(password: str, stored_hash: str) -> bool:
    return False


_VERIFIERS: Dict[HashScheme, Callable[[str, str], bool]] = {
    HashScheme.bcrypt: _verify_bcrypt,
    HashScheme.pbkdf2: _verify_pbkdf2,
    HashScheme.md5: _verify_md5,
    HashScheme.unknown: _verify_unknown,
}


def verify_password(password: str, stored_hash: str) -> bool:
    """Verify a plain password against a stored hash of any supported scheme"""
    return _VERIFIERS[detect_scheme(stored_hash)](password, stored_hash)


def hash_password(password: str) -> str:
    """Hash a password with the current scheme"""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(BCRYPT_ROUNDS)).decode()


def needs_upgrade(stored_hash: str) -> bool:
    return detect_scheme(stored_hash) != CURRENT_SCHEME


_dummy_hash: Optional[bytes] = None


def burn_verification_time() -> None:
    """Spend a bcrypt check so unknown emails cost as much as wrong passwords"""
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = bcrypt.hashpw(b"dummy_password", bcrypt.gensalt(BCRYPT_ROUNDS))
    bcrypt.checkpw(b"not_the_password", _dummy_hash)


def make_pbkdf2_hash(password: str, salt: Optional[str] = None) -> str:
    """PBKDF2 hash in the previous backend's format (used to seed migrated accounts)"""
    salt = salt or secrets.token_hex(32)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS, PBKDF2_KEY_LENGTH
    ).hex()
    return f"{PBKDF2_PREFIX}{salt}:{digest}"


def make_md5_hash(password: str) -> str:
    """Legacy MD5 hash with prefix (used to seed migrated accounts)"""
    return f"{MD5_PREFIX}{hashlib.md5(password.encode()).hexdigest()}"
