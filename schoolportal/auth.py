"""Credential hashing for the school portal.

Passwords are stored as salted PBKDF2-HMAC-SHA256 digests in the form
``pbkdf2_sha256$<iterations>$<salt hex>$<digest hex>``. The iteration count
is part of the stored value, so raising ``HASH_ITERATIONS`` later does not
break existing accounts.
"""

import hashlib
import hmac
import os
import secrets

from dotenv import load_dotenv

load_dotenv()

ALGORITHM = "pbkdf2_sha256"
HASH_ITERATIONS = int(os.getenv("PASSWORD_HASH_ITERATIONS", "120000"))
SALT_BYTES = 16

# Localised message shown for every login failure, whatever the cause.
LOGIN_ERROR_MESSAGE = "Kredencialet e gabuara"


def _derive(password: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)


def hash_password(password: str) -> str:
    """Hash a password with a fresh random salt.

    Args:
        password: Plain text password

    Returns:
        Encoded hash string safe to store in ``users.password_hash``
    """
    salt = secrets.token_bytes(SALT_BYTES)
    digest = _derive(password, salt, HASH_ITERATIONS)
    return f"{ALGORITHM}${HASH_ITERATIONS}${salt.hex()}${digest.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored hash in constant time.

    Args:
        password: Plain text password to verify
        password_hash: Value produced by ``hash_password``

    Returns:
        True if the password matches, False otherwise (including when the
        stored value is malformed)
    """
    try:
        algorithm, iterations, salt_hex, digest_hex = password_hash.split("$")
        if algorithm != ALGORITHM:
            return False
        expected = bytes.fromhex(digest_hex)
        actual = _derive(password, bytes.fromhex(salt_hex), int(iterations))
    except (AttributeError, ValueError):
        return False
    return hmac.compare_digest(actual, expected)
