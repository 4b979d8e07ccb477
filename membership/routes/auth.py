"""
Member Authentication Routes
Registration, login and current-user endpoints
"""

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr
from membership.auth.dependencies import get_current_user
from membership.auth.tokens import create_user_token
from membership.schemas.user import RegisterUserRequest, User, UserAuthResponse, UserResponse
from membership.services import Services, get_services

router = APIRouter()


class LoginRequest(BaseModel):
    email: EmailStr


@router.post("/register", response_model=UserAuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterUserRequest,
    services: Services = Depends(get_services),
):
    """
    Register a new member

    - **college**: matched case-insensitively against known colleges; a
      matched college must have an admin for the given batch year
    - **photo_url**: optional link to a profile photo

    Returns: Member token and profile, including the generated member ID
    """
    user = await services.users.register_user(request)
    return UserAuthResponse(
        status="success",
        message="User registered successfully",
        access_token=create_user_token(user, services.settings),
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=UserAuthResponse)
async def login(
    credentials: LoginRequest,
    services: Services = Depends(get_services),
):
    """Member login by email"""
    user = await services.users.login(credentials.email)
    return UserAuthResponse(
        status="success",
        message="Login successful",
        access_token=create_user_token(user, services.settings),
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    """Current member"""
    return current_user
