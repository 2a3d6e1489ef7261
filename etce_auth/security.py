"""
Password hashing utilities.
"""
import bcrypt

from etce_auth.config import settings


def _encode(password: str) -> bytes:
    password_bytes = password.encode('utf-8')
    # bcrypt limits to 72 bytes
    return password_bytes[:72]


def hash_password(password: str, rounds: int = None) -> str:
    """
    Hash a plain password using bcrypt with a fresh salt.
    Bcrypt limits passwords to 72 bytes, so we handle that constraint.
    """
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(_encode(password), salt)
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password (constant time)."""
    if not hashed_password:
        return False

    try:
        return bcrypt.checkpw(_encode(plain_password), hashed_password.encode('utf-8'))
    except ValueError:
        # not a bcrypt hash
        return False


# Checked when the account does not exist so that a miss costs the same as a
# wrong password.
DUMMY_PASSWORD_HASH = hash_password("etce-portal-dummy-password")
