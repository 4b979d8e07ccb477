"""
Admin Models
Stored admin variants plus request/response models
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, EmailStr, Field, TypeAdapter, field_validator, model_validator
from membership.schemas.common import EntityModel, UtcDatetime


class AdminRole(str, Enum):
    SUPER_ADMIN = "super-admin"
    ADMIN = "admin"


class TenureInfo(BaseModel):
    """An admin's own tenure record"""
    college_id: str
    batch_year: int
    start_date: UtcDatetime
    end_date: Optional[UtcDatetime] = None
    is_active: bool = True


class _AdminBase(EntityModel):
    username: str
    email: str
    password_hash: str
    full_name: str
    is_active: bool = True
    last_login: Optional[UtcDatetime] = None

    @property
    def permissions(self) -> frozenset:
        from membership.auth.permissions import permissions_for_role
        return permissions_for_role(self.role)


class SuperAdmin(_AdminBase):
    """Society-wide administrator; never scoped to a college"""
    role: Literal["super-admin"] = "super-admin"

    @property
    def assigned_college_id(self) -> None:
        return None

    @property
    def batch_year(self) -> None:
        return None

    @property
    def tenure(self) -> None:
        return None

    @property
    def has_active_tenure(self) -> bool:
        return False


class CollegeAdmin(_AdminBase):
    """
    College administrator

    `assigned_college_id` is set exactly when `tenure` is active, and then
    agrees with the tenure's college and batch year.
    """
    role: Literal["admin"] = "admin"
    assigned_college_id: Optional[str] = None
    batch_year: Optional[int] = None
    tenure: Optional[TenureInfo] = None

    @model_validator(mode="after")
    def check_assignment(self):
        active = self.tenure is not None and self.tenure.is_active
        if active:
            if self.assigned_college_id != self.tenure.college_id:
                raise ValueError("assigned_college_id must match the active tenure's college")
            if self.batch_year != self.tenure.batch_year:
                raise ValueError("batch_year must match the active tenure's batch year")
        elif self.assigned_college_id is not None:
            raise ValueError("assigned_college_id requires an active tenure")
        return self

    @property
    def has_active_tenure(self) -> bool:
        return self.tenure is not None and self.tenure.is_active


Admin = Annotated[Union[SuperAdmin, CollegeAdmin], Field(discriminator="role")]

_admin_adapter = TypeAdapter(Admin)


def parse_admin(doc: dict) -> Union[SuperAdmin, CollegeAdmin]:
    """Build the admin variant matching a stored document's role"""
    return _admin_adapter.validate_python(doc)


class CreateAdminRequest(BaseModel):
    """Request to create a college admin"""
    username: str = Field(..., min_length=3, max_length=20)
    email: EmailStr
    password: Optional[str] = Field(None, min_length=6, description="Generated when omitted")
    full_name: str = Field(..., min_length=2, max_length=100)
    college_id: str = Field(..., description="College the admin heads")
    batch_year: int = Field(..., ge=2000, le=2100)

    @field_validator("username", "email")
    @classmethod
    def lower_text(cls, v: str) -> str:
        return v.strip().lower()

    class Config:
        json_schema_extra = {
            "example": {
                "username": "rit_admin",
                "email": "admin@rit.edu",
                "full_name": "Priya Kumar",
                "college_id": "6f1c2a64-1d8f-4f0a-9a53-1b1f0a9c2d11",
                "batch_year": 2025
            }
        }


class UpdateAdminRequest(BaseModel):
    """Request to update admin details"""
    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(None, min_length=2, max_length=100)
    is_active: Optional[bool] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v


class UpdateProfileRequest(BaseModel):
    """Admin's own profile changes"""
    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(None, min_length=2, max_length=100)


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=6)


class AssignTenureRequest(BaseModel):
    """Assign a college's tenure head for a batch year"""
    college_id: str
    admin_id: str
    batch_year: int = Field(..., ge=2000, le=2100)
    start_date: Optional[datetime] = None


class TransferTenureRequest(BaseModel):
    """Hand a college's tenure over to another admin"""
    college_id: str
    to_admin_id: str
    batch_year: int = Field(..., ge=2000, le=2100)
    from_admin_id: Optional[str] = None
    reason: Optional[str] = Field(None, max_length=500)


class EndTenureRequest(BaseModel):
    admin_id: str
    reason: str = Field(..., min_length=3, max_length=500)


class AdminResponse(BaseModel):
    """Admin details (never includes the password hash)"""
    id: str
    username: str
    email: str
    full_name: str
    role: AdminRole
    assigned_college_id: Optional[str] = None
    college_name: Optional[str] = None
    batch_year: Optional[int] = None
    tenure: Optional[TenureInfo] = None
    permissions: list[str]
    is_active: bool
    last_login: Optional[UtcDatetime]
    created_at: UtcDatetime

    @classmethod
    def from_admin(cls, admin, college_name: Optional[str] = None) -> "AdminResponse":
        return cls(
            id=admin.id,
            username=admin.username,
            email=admin.email,
            full_name=admin.full_name,
            role=admin.role,
            assigned_college_id=admin.assigned_college_id,
            college_name=college_name,
            batch_year=admin.batch_year,
            tenure=admin.tenure,
            permissions=sorted(p.value for p in admin.permissions),
            is_active=admin.is_active,
            last_login=admin.last_login,
            created_at=admin.created_at,
        )


class AdminCreatedResponse(AdminResponse):
    """Response after creating admin (includes generated password)"""
    temp_password: Optional[str] = Field(None, description="Generated temporary password (sent via email)")


class AdminListResponse(BaseModel):
    """List of admins"""
    total: int
    admins: list[AdminResponse]


class AdminAuthResponse(BaseModel):
    """Token issued after admin login"""
    status: str
    message: str
    access_token: str
    token_type: str = "bearer"
    admin: AdminResponse
