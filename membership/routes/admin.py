"""
Admin Account Routes
Login, own profile, password change and dashboard for every admin
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from membership.auth.dependencies import get_current_admin
from membership.auth.permissions import AccessGate
from membership.auth.tokens import create_admin_token
from membership.schemas.admin import (
    AdminAuthResponse,
    AdminResponse,
    ChangePasswordRequest,
    UpdateProfileRequest,
)
from membership.schemas.common import StatusResponse
from membership.services import Services, get_services

router = APIRouter()


class AdminLoginRequest(BaseModel):
    username: str = Field(..., min_length=3, description="Username or email")
    password: str


async def _admin_response(admin, services: Services) -> AdminResponse:
    return AdminResponse.from_admin(admin, await services.admins.college_name(admin.assigned_college_id))


@router.post("/login", response_model=AdminAuthResponse)
async def login(
    credentials: AdminLoginRequest,
    services: Services = Depends(get_services),
):
    """
    Login endpoint for super admins and college admins

    Accepts a username or an email. Updates last_login.
    """
    admin = await services.admins.authenticate(credentials.username, credentials.password)
    return AdminAuthResponse(
        status="success",
        message="Login successful",
        access_token=create_admin_token(admin, services.settings),
        admin=await _admin_response(admin, services),
    )


@router.get("/profile", response_model=AdminResponse)
async def get_profile(
    current_admin=Depends(get_current_admin),
    services: Services = Depends(get_services),
):
    return await _admin_response(current_admin, services)


@router.put("/profile", response_model=AdminResponse)
async def update_profile(
    request: UpdateProfileRequest,
    current_admin=Depends(get_current_admin),
    services: Services = Depends(get_services),
):
    admin = await services.admins.update_profile(current_admin.id, request)
    return await _admin_response(admin, services)


@router.post("/change-password", response_model=StatusResponse)
async def change_password(
    request: ChangePasswordRequest,
    current_admin=Depends(get_current_admin),
    services: Services = Depends(get_services),
):
    await services.admins.change_password(current_admin.id, request.current_password, request.new_password)
    return StatusResponse(message="Password changed successfully")


@router.get("/dashboard")
async def dashboard(
    current_admin=Depends(get_current_admin),
    services: Services = Depends(get_services),
):
    """
    Society-wide totals for super admins, college stats for college admins
    """
    if current_admin.role == "super-admin":
        return {"scope": "global", "stats": await services.analytics.super_admin_dashboard()}

    college_id = AccessGate.college_scope(current_admin)
    return {"scope": "college", "stats": await services.analytics.college_dashboard(college_id)}
