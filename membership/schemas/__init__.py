"""
Pydantic schemas for stored entities and request/response validation
"""

from membership.schemas.admin import (
    Admin,
    AdminRole,
    CollegeAdmin,
    SuperAdmin,
    TenureInfo,
    parse_admin,
)
from membership.schemas.college import College, TenureHead
from membership.schemas.event import (
    Event,
    EventType,
    Registration,
    RegistrationDecision,
    RegistrationStatus,
    WindowStatus,
)
from membership.schemas.user import MemberRole, User

__all__ = [
    "Admin",
    "AdminRole",
    "CollegeAdmin",
    "SuperAdmin",
    "TenureInfo",
    "parse_admin",
    "College",
    "TenureHead",
    "Event",
    "EventType",
    "Registration",
    "RegistrationDecision",
    "RegistrationStatus",
    "WindowStatus",
    "MemberRole",
    "User",
]
