"""
Access Control Gate
Turns a bearer token into an identity and checks role-derived permissions
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
from membership.auth.tokens import TokenType, decode_access_token
from membership.config import Settings
from membership.errors import Forbidden, Unauthorized

logger = logging.getLogger(__name__)


class Permission(str, Enum):
    USERS_READ = "users.read"
    USERS_WRITE = "users.write"
    USERS_DELETE = "users.delete"
    EVENTS_READ = "events.read"
    EVENTS_WRITE = "events.write"
    EVENTS_DELETE = "events.delete"
    COLLEGES_READ = "colleges.read"
    COLLEGES_WRITE = "colleges.write"
    COLLEGES_DELETE = "colleges.delete"
    ADMINS_READ = "admins.read"
    ADMINS_WRITE = "admins.write"
    ADMINS_DELETE = "admins.delete"
    SETTINGS_READ = "settings.read"
    SETTINGS_WRITE = "settings.write"
    ANALYTICS_READ = "analytics.read"
    SYSTEM_ADMIN = "system.admin"


SUPER_ADMIN_ROLE = "super-admin"
ADMIN_ROLE = "admin"

ROLE_PERMISSIONS = {
    SUPER_ADMIN_ROLE: frozenset(Permission),
    ADMIN_ROLE: frozenset({
        Permission.USERS_READ,
        Permission.USERS_WRITE,
        Permission.EVENTS_READ,
        Permission.EVENTS_WRITE,
        Permission.EVENTS_DELETE,
        Permission.ANALYTICS_READ,
    }),
}


def permissions_for_role(role) -> frozenset:
    """Permission set for an admin role; unknown roles get nothing"""
    return ROLE_PERMISSIONS.get(getattr(role, "value", role), frozenset())


@dataclass(frozen=True)
class Identity:
    """Authenticated caller for one request"""
    subject_id: str
    token_type: TokenType
    role: Optional[str] = None
    permissions: frozenset = field(default_factory=frozenset)

    @classmethod
    def for_admin(cls, admin) -> "Identity":
        """Identity from a freshly loaded admin; role and permissions come from the store"""
        return cls(
            subject_id=admin.id,
            token_type=TokenType.ADMIN,
            role=admin.role,
            permissions=admin.permissions,
        )

    @property
    def is_super_admin(self) -> bool:
        return self.token_type == TokenType.ADMIN and self.role == SUPER_ADMIN_ROLE


class AccessGate:
    """Authenticates tokens and authorizes identities"""

    def __init__(self, settings: Settings):
        self.settings = settings

    def authenticate(self, token: Optional[str], expected_type: TokenType) -> Identity:
        """
        Verify a bearer token of the expected type

        Raises:
            Unauthorized: Missing, malformed, expired or wrong-type token
        """
        if not token:
            raise Unauthorized("Access token required")

        payload = decode_access_token(token, self.settings)
        subject_id = payload.get("sub")
        if not subject_id:
            raise Unauthorized("Invalid authentication credentials")
        if payload.get("type") != expected_type.value:
            raise Unauthorized(f"{expected_type.value.capitalize()} token required")

        role = payload.get("role")
        # The permissions claim is informational; the role decides
        permissions = permissions_for_role(role) if expected_type == TokenType.ADMIN else frozenset()
        return Identity(
            subject_id=subject_id,
            token_type=expected_type,
            role=role,
            permissions=permissions,
        )

    @staticmethod
    def authorize(identity: Identity, *required: Permission) -> Identity:
        missing = [p.value for p in required if p not in identity.permissions]
        if missing:
            logger.info("Denied %s: missing %s", identity.subject_id, ", ".join(missing))
            raise Forbidden(f"Insufficient permissions: {', '.join(missing)} required")
        return identity

    @staticmethod
    def require_super_admin(identity: Identity) -> Identity:
        if not identity.is_super_admin:
            raise Forbidden("Super admin access required")
        return identity

    @staticmethod
    def college_scope(admin) -> Optional[str]:
        """
        College an admin's queries are restricted to

        Returns None for super-admins (unscoped).

        Raises:
            Forbidden: College admin without an active tenure
        """
        if admin.role == SUPER_ADMIN_ROLE:
            return None
        if not admin.assigned_college_id:
            raise Forbidden("No college assignment found")
        return admin.assigned_college_id
