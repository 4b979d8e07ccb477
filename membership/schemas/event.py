"""
Event Models
Events, their embedded registrations and the registration decision
"""

import re
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator
from membership.schemas.common import EntityModel, UtcDatetime

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class EventType(str, Enum):
    COLLEGE_SPECIFIC = "college-specific"
    OPEN_TO_ALL = "open-to-all"


class EventCategory(str, Enum):
    WORKSHOP = "workshop"
    SEMINAR = "seminar"
    HACKATHON = "hackathon"
    COMPETITION = "competition"
    MEETUP = "meetup"
    OTHER = "other"


class RegistrationStatus(str, Enum):
    CONFIRMED = "confirmed"
    WAITLISTED = "waitlisted"
    CANCELLED = "cancelled"


class WindowStatus(str, Enum):
    OPEN = "open"
    FULL = "full"
    CLOSED = "closed"


class Organizer(BaseModel):
    admin_id: str
    name: str
    contact: str


class Registration(BaseModel):
    user_id: str
    registered_at: UtcDatetime
    status: RegistrationStatus = RegistrationStatus.CONFIRMED


def _check_time(v: Optional[str]) -> Optional[str]:
    if v is not None and not TIME_PATTERN.match(v):
        raise ValueError("time must be HH:MM")
    return v


def _check_target(event_type, target_college_id) -> None:
    if event_type == EventType.COLLEGE_SPECIFIC and not target_college_id:
        raise ValueError("college-specific events need a target_college_id")
    if event_type == EventType.OPEN_TO_ALL and target_college_id:
        raise ValueError("open-to-all events cannot target a college")


class Event(EntityModel):
    """Stored event"""
    title: str
    description: str
    date: UtcDatetime
    time: str
    location: str
    event_type: EventType
    target_college_id: Optional[str] = None
    max_attendees: int = Field(..., ge=1, le=10000)
    category: EventCategory = EventCategory.OTHER
    organizer: Organizer
    registrations: list[Registration] = []
    requirements: list[str] = []
    prizes: list[str] = []
    registration_deadline: UtcDatetime
    is_active: bool = True

    @model_validator(mode="after")
    def check_target(self):
        _check_target(self.event_type, self.target_college_id)
        return self

    def active_registration(self, user_id: str) -> Optional[Registration]:
        for registration in self.registrations:
            if registration.user_id == user_id and registration.status != RegistrationStatus.CANCELLED:
                return registration
        return None

    def count(self, status: RegistrationStatus) -> int:
        return sum(1 for registration in self.registrations if registration.status == status)


class CreateEventRequest(BaseModel):
    """Request to create an event"""
    title: str = Field(..., min_length=3, max_length=200)
    description: str = Field(..., min_length=10, max_length=5000)
    date: UtcDatetime
    time: str = Field("10:00", description="HH:MM")
    location: str = Field(..., min_length=2, max_length=300)
    event_type: EventType = EventType.OPEN_TO_ALL
    target_college_id: Optional[str] = None
    max_attendees: int = Field(100, ge=1, le=10000, description="Defaults to DEFAULT_MAX_ATTENDEES")
    category: EventCategory = EventCategory.OTHER
    requirements: list[str] = []
    prizes: list[str] = []
    registration_deadline: Optional[UtcDatetime] = Field(
        None, description="Defaults to a week from now"
    )

    @field_validator("time")
    @classmethod
    def check_time(cls, v: str) -> str:
        return _check_time(v)

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Intro to Rust",
                "description": "Hands-on workshop covering ownership and borrowing",
                "date": "2026-11-20T00:00:00Z",
                "time": "14:30",
                "location": "Seminar Hall B",
                "event_type": "open-to-all",
                "max_attendees": 60,
                "category": "workshop"
            }
        }


class UpdateEventRequest(BaseModel):
    """Request to update an event"""
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = Field(None, min_length=10, max_length=5000)
    date: Optional[UtcDatetime] = None
    time: Optional[str] = None
    location: Optional[str] = Field(None, min_length=2, max_length=300)
    event_type: Optional[EventType] = None
    target_college_id: Optional[str] = None
    max_attendees: Optional[int] = Field(None, ge=1, le=10000)
    category: Optional[EventCategory] = None
    requirements: Optional[list[str]] = None
    prizes: Optional[list[str]] = None
    registration_deadline: Optional[UtcDatetime] = None
    is_active: Optional[bool] = None

    @field_validator("time")
    @classmethod
    def check_time(cls, v: Optional[str]) -> Optional[str]:
        return _check_time(v)


class RegistrationDecision(BaseModel):
    """Outcome of checking whether a user may register"""
    allowed: bool
    reason: Optional[str] = None
    resulting_status: Optional[RegistrationStatus] = None


class RegistrationResponse(BaseModel):
    event_id: str
    user_id: str
    status: RegistrationStatus
    registered_at: UtcDatetime
    message: str


class EventResponse(BaseModel):
    """Event as listed to users and admins"""
    id: str
    title: str
    description: str
    date: UtcDatetime
    time: str
    location: str
    event_type: EventType
    target_college_id: Optional[str]
    max_attendees: int
    category: EventCategory
    organizer: Organizer
    requirements: list[str]
    prizes: list[str]
    registration_deadline: UtcDatetime
    is_active: bool
    confirmed_count: int
    waitlisted_count: int
    available_spots: int
    registration_status: WindowStatus
    created_at: UtcDatetime


class RegistrationDetail(Registration):
    full_name: Optional[str] = None
    email: Optional[str] = None
    member_id: Optional[str] = None
    college: Optional[str] = None


class EventDetailResponse(EventResponse):
    """Event with its registration list (admins only)"""
    registrations: list[RegistrationDetail]


class EventListResponse(BaseModel):
    total: int
    skip: int
    limit: int
    events: list[EventResponse]


class RegistrationStatusResponse(BaseModel):
    """A user's standing for one event"""
    event_id: str
    registration_status: WindowStatus
    available_spots: int
    registration: Optional[Registration]
    decision: RegistrationDecision


class UserRegistrationItem(BaseModel):
    event: EventResponse
    registration: Registration


class UserRegistrationsResponse(BaseModel):
    total: int
    registrations: list[UserRegistrationItem]
