"""
College Admin Routes
Users, events and analytics, always limited to the admin's assigned college
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from membership.auth.dependencies import CollegeAccess, require_college_access
from membership.auth.permissions import Permission
from membership.errors import Forbidden
from membership.schemas.analytics import AnalyticsPeriod, CollegeAnalyticsResponse, CollegeDashboardResponse
from membership.schemas.event import (
    CreateEventRequest,
    EventCategory,
    EventDetailResponse,
    EventListResponse,
    EventResponse,
    EventType,
    UpdateEventRequest,
)
from membership.schemas.user import MemberRole, UpdateUserRequest, UserListResponse, UserResponse
from membership.services import Services, get_services

router = APIRouter()


async def _scoped_user(user_id: str, access: CollegeAccess, services: Services):
    user = await services.users.get_user(user_id)
    if user.college_id != access.college_id:
        raise Forbidden("User not in your college")
    return user


# Users

@router.get("/users", response_model=UserListResponse)
async def list_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    role: Optional[MemberRole] = None,
    batch_year: Optional[str] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = Query(None, max_length=100),
    access: CollegeAccess = Depends(require_college_access(Permission.USERS_READ)),
    services: Services = Depends(get_services),
):
    """Members of the admin's college"""
    users, total = await services.users.list_users(
        college_id=access.college_id,
        role=role.value if role else None,
        batch_year=batch_year,
        is_active=is_active,
        search=search,
        skip=skip,
        limit=limit,
    )
    return {"total": total, "skip": skip, "limit": limit, "users": users}


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    access: CollegeAccess = Depends(require_college_access(Permission.USERS_READ)),
    services: Services = Depends(get_services),
):
    return await _scoped_user(user_id, access, services)


@router.put("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    request: UpdateUserRequest,
    access: CollegeAccess = Depends(require_college_access(Permission.USERS_WRITE)),
    services: Services = Depends(get_services),
):
    await _scoped_user(user_id, access, services)
    return await services.users.update_user(user_id, request)


# Events

@router.get("/events", response_model=EventListResponse)
async def list_events(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    category: Optional[EventCategory] = None,
    is_active: Optional[bool] = None,
    upcoming_only: bool = False,
    search: Optional[str] = Query(None, max_length=100),
    access: CollegeAccess = Depends(require_college_access(Permission.EVENTS_READ)),
    services: Services = Depends(get_services),
):
    events, total = await services.events.list_events(
        college_id=access.college_id,
        category=category.value if category else None,
        is_active=is_active,
        upcoming_only=upcoming_only,
        search=search,
        skip=skip,
        limit=limit,
    )
    return {
        "total": total,
        "skip": skip,
        "limit": limit,
        "events": [services.events.to_response(event) for event in events],
    }


@router.post("/events", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    request: CreateEventRequest,
    access: CollegeAccess = Depends(require_college_access(Permission.EVENTS_WRITE)),
    services: Services = Depends(get_services),
):
    """
    Create an event for the admin's college

    Events created here are always college-specific to the admin's college.
    """
    if request.event_type == EventType.OPEN_TO_ALL:
        raise Forbidden("College admins can only create events for their own college")
    event = await services.events.create_event(
        request.model_copy(update={"event_type": EventType.COLLEGE_SPECIFIC}),
        organizer=access.admin,
        target_college_id=access.college_id,
    )
    return services.events.to_response(event)


@router.get("/events/{event_id}", response_model=EventDetailResponse)
async def get_event(
    event_id: str,
    access: CollegeAccess = Depends(require_college_access(Permission.EVENTS_READ)),
    services: Services = Depends(get_services),
):
    """Event with its registrations and the registered members' details"""
    event = await services.events.get_scoped_event(event_id, access.college_id)
    return await services.events.to_detail(event)


@router.put("/events/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: str,
    request: UpdateEventRequest,
    access: CollegeAccess = Depends(require_college_access(Permission.EVENTS_WRITE)),
    services: Services = Depends(get_services),
):
    event = await services.events.update_event(event_id, request, college_id=access.college_id)
    return services.events.to_response(event)


@router.delete("/events/{event_id}", response_model=EventResponse)
async def delete_event(
    event_id: str,
    access: CollegeAccess = Depends(require_college_access(Permission.EVENTS_DELETE)),
    services: Services = Depends(get_services),
):
    event = await services.events.delete_event(event_id, college_id=access.college_id)
    return services.events.to_response(event)


# Dashboard & analytics

@router.get("/dashboard", response_model=CollegeDashboardResponse)
async def dashboard(
    access: CollegeAccess = Depends(require_college_access(Permission.ANALYTICS_READ)),
    services: Services = Depends(get_services),
):
    return await services.analytics.college_dashboard(access.college_id)


@router.get("/analytics", response_model=CollegeAnalyticsResponse)
async def analytics(
    period: AnalyticsPeriod = Query(AnalyticsPeriod.MONTH),
    access: CollegeAccess = Depends(require_college_access(Permission.ANALYTICS_READ)),
    services: Services = Depends(get_services),
):
    """New members and events over the last 7, 30 or 90 days"""
    return await services.analytics.college_analytics(access.college_id, period)
