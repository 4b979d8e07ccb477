"""
Authentication Dependencies
Resolve bearer tokens into the current user or admin for each request
"""

from dataclasses import dataclass
from typing import Optional, Union
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from membership.auth.permissions import AccessGate, Identity, Permission
from membership.auth.tokens import TokenType
from membership.errors import Forbidden, NotFoundError, Unauthorized
from membership.schemas.admin import CollegeAdmin, SuperAdmin
from membership.schemas.user import User
from membership.services import Services, get_services

# Security scheme; missing tokens are reported as Unauthorized by the gate
security = HTTPBearer(auto_error=False)


def get_gate(request: Request) -> AccessGate:
    return request.app.state.gate


def _token(credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    return credentials.credentials if credentials else None


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    gate: AccessGate = Depends(get_gate),
    services: Services = Depends(get_services),
) -> User:
    """
    Require a user token

    Raises:
        Unauthorized: Missing, invalid or admin token, or unknown/deactivated user
    """
    identity = gate.authenticate(_token(credentials), TokenType.USER)
    try:
        user = await services.users.get_user(identity.subject_id)
    except NotFoundError:
        raise Unauthorized("User not found")
    if not user.is_active:
        raise Unauthorized("Account is deactivated")
    return user


async def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    gate: AccessGate = Depends(get_gate),
    services: Services = Depends(get_services),
) -> Union[SuperAdmin, CollegeAdmin]:
    """
    Require an admin token and load the admin fresh from the store

    Raises:
        Unauthorized: Missing, invalid or user token, or unknown/deactivated admin
    """
    identity = gate.authenticate(_token(credentials), TokenType.ADMIN)
    try:
        admin = await services.admins.get_admin(identity.subject_id)
    except NotFoundError:
        raise Unauthorized("Admin not found")
    if not admin.is_active:
        raise Unauthorized("Account is deactivated")
    return admin


async def require_super_admin(admin=Depends(get_current_admin)) -> SuperAdmin:
    AccessGate.require_super_admin(Identity.for_admin(admin))
    return admin


def require_permissions(*permissions: Permission):
    """Dependency factory: the current admin must hold every permission"""

    async def checker(admin=Depends(get_current_admin)):
        AccessGate.authorize(Identity.for_admin(admin), *permissions)
        return admin

    return checker


@dataclass
class CollegeAccess:
    """A college admin together with the college their queries are limited to"""
    admin: CollegeAdmin
    college_id: str


def require_college_access(*permissions: Permission):
    """
    Dependency factory for college-scoped routes

    Raises:
        Forbidden: Missing permission, super admin, or no active tenure
    """

    async def checker(admin=Depends(require_permissions(*permissions))) -> CollegeAccess:
        college_id = AccessGate.college_scope(admin)
        if college_id is None:
            raise Forbidden("College admin access required")
        return CollegeAccess(admin=admin, college_id=college_id)

    return checker
