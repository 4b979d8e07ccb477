"""
Event Routes
Browsing events and registering for them
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from membership.auth.dependencies import get_current_user
from membership.schemas.event import (
    EventCategory,
    EventListResponse,
    EventResponse,
    RegistrationResponse,
    RegistrationStatusResponse,
)
from membership.schemas.user import User
from membership.services import Services, get_services

router = APIRouter()


@router.get("", response_model=EventListResponse)
async def list_events(
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(20, ge=1, le=100, description="Number of records to return"),
    category: Optional[EventCategory] = None,
    search: Optional[str] = Query(None, max_length=100),
    upcoming_only: bool = Query(False),
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """
    Active events visible to the member

    Open-to-all events plus events for the member's own college.
    """
    events, total = await services.events.list_events(
        category=category.value if category else None,
        is_active=True,
        upcoming_only=upcoming_only,
        search=search,
        skip=skip,
        limit=limit,
        visible_to=current_user,
    )
    return {
        "total": total,
        "skip": skip,
        "limit": limit,
        "events": [services.events.to_response(event) for event in events],
    }


@router.get("/upcoming", response_model=list[EventResponse])
async def upcoming_events(
    limit: int = Query(10, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    events = await services.events.upcoming_events(limit=limit, visible_to=current_user)
    return [services.events.to_response(event) for event in events]


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: str,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    event = await services.events.get_visible_event(event_id, current_user)
    return services.events.to_response(event)


@router.post("/{event_id}/register", response_model=RegistrationResponse, status_code=201)
async def register_for_event(
    event_id: str,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """
    Register for an event

    Confirmed while seats remain, waitlisted once the event is full.
    Fails with a registration error after the deadline or when already registered.
    """
    registration = await services.registrations.register(event_id, current_user.id)
    message = (
        "Registered successfully"
        if registration.status.value == "confirmed"
        else "Event is full, you have been added to the waitlist"
    )
    return {**registration.model_dump(), "event_id": event_id, "message": message}


@router.delete("/{event_id}/register", response_model=RegistrationResponse)
async def unregister_from_event(
    event_id: str,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Cancel the member's registration; the first waitlisted member takes the freed seat"""
    registration = await services.registrations.unregister(event_id, current_user.id)
    return {**registration.model_dump(), "event_id": event_id, "message": "Registration cancelled"}


@router.get("/{event_id}/registration-status", response_model=RegistrationStatusResponse)
async def registration_status(
    event_id: str,
    current_user: User = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    """Window state, open seats, the member's registration and what registering would do"""
    await services.events.get_visible_event(event_id, current_user)
    return await services.registrations.registration_for(event_id, current_user.id)
