"""
Member Routes
Own profile and event registrations
"""

from fastapi import APIRouter, Depends
from membership.auth.dependencies import get_current_user
from membership.schemas.event import UserRegistrationsResponse
from membership.schemas.user import UpdateUserRequest, User, UserResponse
from membership.services import Services, get_services

router = APIRouter()


@router.get("/profile", response_model=UserResponse)
async def get_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    request: UpdateUserRequest,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """
    Update own profile

    Email, college and member ID cannot be changed here; `is_active` is ignored.
    """
    return await services.users.update_profile(current_user.id, request)


@router.get("/registrations", response_model=UserRegistrationsResponse)
async def my_registrations(
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Every event the member registered for, with the registration status"""
    pairs = await services.events.user_registrations(current_user.id)
    return {
        "total": len(pairs),
        "registrations": [
            {"event": services.events.to_response(event), "registration": registration}
            for event, registration in pairs
        ],
    }
