"""Password hashing for traveller, operator and back-office accounts.

bcrypt only reads the first 72 bytes of a password, so longer passwords are
refused at registration rather than silently truncated. Users whose
``hashed_password`` is NULL cannot log in with a password at all.
"""

import logging

import bcrypt

logger = logging.getLogger(__name__)

MAX_PASSWORD_BYTES = 72


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


def hash_password(password: str) -> str:
    """Hash a plain-text password with a fresh salt.

    Raises:
        ValueError: The UTF-8 encoded password exceeds ``MAX_PASSWORD_BYTES``.
    """
    if password_too_long(password):
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Check a login attempt against a stored hash.

    Accounts without a password, over-long attempts and unreadable hashes
    never match.
    """
    if not hashed_password or password_too_long(plain_password):
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash could not be read as bcrypt")
        return False
