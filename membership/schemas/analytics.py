"""
Dashboard and Analytics Models
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel
from membership.schemas.event import EventResponse
from membership.schemas.user import UserResponse


class AnalyticsPeriod(str, Enum):
    WEEK = "7d"
    MONTH = "30d"
    QUARTER = "90d"

    @property
    def days(self) -> int:
        return int(self.value[:-1])


class SuperAdminDashboardResponse(BaseModel):
    """Society-wide totals"""
    total_colleges: int
    active_colleges: int
    total_admins: int
    assigned_admins: int
    unassigned_admins: int
    total_users: int
    active_users: int
    total_events: int
    active_events: int
    upcoming_events: int
    total_registrations: int


class CollegeDashboardResponse(BaseModel):
    """Stats for one college"""
    college_id: str
    college_name: str
    total_users: int
    active_users: int
    users_by_role: dict[str, int]
    total_events: int
    active_events: int
    events_by_type: dict[str, int]
    upcoming_events: list[EventResponse]
    recent_users: list[UserResponse]


class UserGrowth(BaseModel):
    total: int
    new_in_period: int
    by_role: dict[str, int]
    by_batch: dict[str, int]


class EventRegistrationData(BaseModel):
    event_id: str
    event_title: str
    total_registrations: int
    confirmed_registrations: int
    waitlisted: int
    fill_rate: float


class EventMetrics(BaseModel):
    total: int
    new_in_period: int
    by_category: dict[str, int]
    registration_data: list[EventRegistrationData]
    average_fill_rate: Optional[float]


class CollegeAnalyticsResponse(BaseModel):
    """User growth and event metrics for a college over a period"""
    college_id: str
    period: AnalyticsPeriod
    user_growth: UserGrowth
    event_metrics: EventMetrics
