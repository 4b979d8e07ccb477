"""
User Request/Response Models
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator
from membership.schemas.common import EntityModel, UtcDatetime


class MemberRole(str, Enum):
    CORE_MEMBER = "core-member"
    BOARD_MEMBER = "board-member"
    SPECIAL_MEMBER = "special-member"
    OTHER = "other"


class User(EntityModel):
    """Stored user"""
    full_name: str
    email: str
    phone: str
    college: str
    college_id: Optional[str] = None
    batch_year: str
    role: MemberRole = MemberRole.OTHER
    photo_url: Optional[str] = None
    member_id: str
    is_active: bool = True


class RegisterUserRequest(BaseModel):
    """Request to register as a member"""
    full_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    phone: str = Field(..., min_length=10, max_length=20)
    college: str = Field(..., min_length=2, max_length=200, description="College name as written")
    batch_year: str = Field(..., min_length=1, max_length=10)
    role: MemberRole = MemberRole.OTHER
    photo_url: Optional[str] = None

    @field_validator("full_name", "phone", "college", "batch_year")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()

    class Config:
        json_schema_extra = {
            "example": {
                "full_name": "Asha Raman",
                "email": "asha@example.com",
                "phone": "9876543210",
                "college": "Rajalakshmi Institute of Technology",
                "batch_year": "2024",
                "role": "core-member"
            }
        }


class UpdateUserRequest(BaseModel):
    """Request to update a member profile"""
    full_name: Optional[str] = Field(None, min_length=2, max_length=100)
    phone: Optional[str] = Field(None, min_length=10, max_length=20)
    batch_year: Optional[str] = Field(None, min_length=1, max_length=10)
    role: Optional[MemberRole] = None
    photo_url: Optional[str] = None
    is_active: Optional[bool] = None


class UserResponse(BaseModel):
    """User details"""
    id: str
    full_name: str
    email: str
    phone: str
    college: str
    college_id: Optional[str]
    batch_year: str
    role: MemberRole
    photo_url: Optional[str]
    member_id: str
    is_active: bool
    created_at: UtcDatetime

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    """Paginated list of users"""
    total: int
    skip: int
    limit: int
    users: list[UserResponse]


class UserAuthResponse(BaseModel):
    """Token issued after user registration or login"""
    status: str
    message: str
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
