"""
Signed Bearer Tokens
JWT creation and verification for user and admin tokens
"""

from datetime import timedelta
from enum import Enum
from typing import Optional
from jose import JWTError, jwt
from membership.config import Settings, settings as default_settings
from membership.errors import Unauthorized
from membership.time_utils import utcnow


class TokenType(str, Enum):
    USER = "user"
    ADMIN = "admin"


def create_access_token(
    data: dict,
    expires_delta: Optional[timedelta] = None,
    settings: Settings = default_settings,
) -> str:
    """
    Create JWT access token

    Args:
        data: Claims to encode (sub, type, role, ...)
        expires_delta: Token lifetime, JWT_EXPIRATION_HOURS by default
        settings: Settings holding the signing key

    Returns:
        Encoded JWT token
    """
    to_encode = data.copy()
    now = utcnow()
    expire = now + (expires_delta or timedelta(hours=settings.JWT_EXPIRATION_HOURS))
    to_encode.update({"iat": now, "exp": expire})

    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str, settings: Settings = default_settings) -> dict:
    """
    Decode JWT access token

    Raises:
        Unauthorized: If the token is malformed, tampered with or expired
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise Unauthorized("Could not validate credentials")


def create_user_token(user, settings: Settings = default_settings) -> str:
    return create_access_token(
        {"sub": user.id, "type": TokenType.USER.value, "role": user.role.value},
        expires_delta=timedelta(days=settings.USER_TOKEN_EXPIRATION_DAYS),
        settings=settings,
    )


def create_admin_token(admin, settings: Settings = default_settings) -> str:
    return create_access_token(
        {
            "sub": admin.id,
            "type": TokenType.ADMIN.value,
            "role": admin.role,
            "permissions": sorted(p.value for p in admin.permissions),
        },
        expires_delta=timedelta(hours=settings.JWT_EXPIRATION_HOURS),
        settings=settings,
    )
