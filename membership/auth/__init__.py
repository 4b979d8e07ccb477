"""
Authentication Module
Password hashing, signed tokens and the access control gate
"""

from membership.auth.password import (
    generate_random_password,
    hash_password,
    verify_and_upgrade,
    verify_password,
)
from membership.auth.permissions import AccessGate, Identity, Permission, permissions_for_role
from membership.auth.tokens import (
    TokenType,
    create_access_token,
    create_admin_token,
    create_user_token,
    decode_access_token,
)

__all__ = [
    "hash_password",
    "verify_password",
    "verify_and_upgrade",
    "generate_random_password",
    "AccessGate",
    "Identity",
    "Permission",
    "permissions_for_role",
    "TokenType",
    "create_access_token",
    "create_admin_token",
    "create_user_token",
    "decode_access_token",
]
