"""bcrypt password hashes.

Passwords are digested with SHA-256 (base64, 44 bytes) before bcrypt, which
would otherwise ignore everything past 72 bytes.
"""

import base64
import hashlib

import bcrypt


def _bcrypt_input(password: str) -> bytes:
    return base64.b64encode(hashlib.sha256(password.encode("utf-8")).digest())


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(_bcrypt_input(password), bcrypt.gensalt()).decode("ascii")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """False for a wrong password and for a malformed stored hash."""
    try:
        return bcrypt.checkpw(_bcrypt_input(plain_password), hashed_password.encode("ascii"))
    except (ValueError, UnicodeEncodeError):
        return False
