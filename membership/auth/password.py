"""
Password Hashing and Verification
bcrypt hashes, upgraded in place when the configured cost changes
"""

import secrets
import string
from typing import Optional
from passlib.context import CryptContext
from membership.config import settings

# Hashes below the configured cost get re-hashed on the next login
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
    bcrypt__min_rounds=settings.BCRYPT_ROUNDS,
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def verify_and_upgrade(plain_password: str, hashed_password: str) -> tuple[bool, Optional[str]]:
    """
    Verify a password and re-hash it if the stored hash is outdated

    Args:
        plain_password: Password as typed at login
        hashed_password: Stored hash

    Returns:
        Tuple of (matches, replacement hash or None)
    """
    return pwd_context.verify_and_update(plain_password, hashed_password)


def generate_random_password(length: int = 12) -> str:
    """Random letters and digits, always containing at least one of each"""
    letters, digits = string.ascii_letters, string.digits
    while True:
        password = "".join(secrets.choice(letters + digits) for _ in range(length))
        if any(c in digits for c in password) and any(c in letters for c in password):
            return password
