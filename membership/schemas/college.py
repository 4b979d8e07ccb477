"""
College Models
For super-admin college management and the public college list
"""

import uuid
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, field_validator
from membership.schemas.common import EntityModel, UtcDatetime


class ContactInfo(BaseModel):
    email: EmailStr
    phone: str = Field(..., min_length=5, max_length=20)
    website: Optional[str] = None


class TenureHead(BaseModel):
    """One entry in a college's tenure history"""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    admin_id: str
    batch_year: int
    start_date: UtcDatetime
    end_date: Optional[UtcDatetime] = None
    is_active: bool = True


class College(EntityModel):
    """Stored college"""
    name: str
    code: str
    location: str
    address: str
    contact_info: ContactInfo
    tenure_heads: list[TenureHead] = []
    is_active: bool = True

    @property
    def active_tenure_heads(self) -> list[TenureHead]:
        return [head for head in self.tenure_heads if head.is_active]

    def current_tenure_head(self, batch_year: int) -> Optional[TenureHead]:
        for head in self.tenure_heads:
            if head.is_active and head.batch_year == batch_year:
                return head
        return None


def _normalize_code(v: str) -> str:
    return v.strip().upper()


class CreateCollegeRequest(BaseModel):
    """Request to create a new college"""
    name: str = Field(..., min_length=2, max_length=200, description="College name")
    code: str = Field(..., min_length=2, max_length=10, description="Short code (stored upper-case)")
    location: str = Field(..., min_length=2, max_length=200)
    address: str = Field(..., min_length=2, max_length=500)
    contact_info: ContactInfo

    @field_validator("code", mode="before")
    @classmethod
    def normalize_code(cls, v):
        return _normalize_code(v) if isinstance(v, str) else v

    @field_validator("name", "location", "address")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Rajalakshmi Institute of Technology",
                "code": "RIT",
                "location": "Chennai",
                "address": "Kuthambakkam, Chennai 600124",
                "contact_info": {"email": "office@ritchennai.edu.in", "phone": "04412345678"}
            }
        }


class UpdateCollegeRequest(BaseModel):
    """Request to update college details"""
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    code: Optional[str] = Field(None, min_length=2, max_length=10)
    location: Optional[str] = Field(None, min_length=2, max_length=200)
    address: Optional[str] = Field(None, min_length=2, max_length=500)
    contact_info: Optional[ContactInfo] = None
    is_active: Optional[bool] = None

    @field_validator("code", mode="before")
    @classmethod
    def normalize_code(cls, v):
        return _normalize_code(v) if isinstance(v, str) else v


class TenureHeadResponse(TenureHead):
    admin_name: Optional[str] = None
    admin_username: Optional[str] = None


class CollegeResponse(BaseModel):
    """College details response"""
    id: str
    name: str
    code: str
    location: str
    address: str
    contact_info: ContactInfo
    tenure_heads: list[TenureHeadResponse]
    is_active: bool
    created_at: UtcDatetime
    updated_at: UtcDatetime


class CollegeStats(BaseModel):
    total_users: int
    active_users: int
    total_events: int
    upcoming_events: int
    active_tenure_heads: int


class CollegeDetailedResponse(CollegeResponse):
    """College with user/event counts"""
    stats: CollegeStats


class CollegeListResponse(BaseModel):
    """List of colleges response"""
    total: int
    colleges: list[CollegeResponse]


class PublicCollegeResponse(BaseModel):
    """College as shown on the registration form"""
    id: str
    name: str
    code: str
    location: str
