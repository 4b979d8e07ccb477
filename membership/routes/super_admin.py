"""
Super Admin Routes
Colleges, admins, tenures, users and events across the whole society
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from membership.auth.dependencies import require_super_admin
from membership.schemas.activity_log import ActivityLogResponse
from membership.schemas.admin import (
    AdminCreatedResponse,
    AdminListResponse,
    AdminResponse,
    AdminRole,
    AssignTenureRequest,
    CreateAdminRequest,
    EndTenureRequest,
    TransferTenureRequest,
    UpdateAdminRequest,
)
from membership.schemas.analytics import SuperAdminDashboardResponse
from membership.schemas.college import (
    College,
    CollegeDetailedResponse,
    CollegeListResponse,
    CollegeResponse,
    CreateCollegeRequest,
    TenureHead,
    TenureHeadResponse,
    UpdateCollegeRequest,
)
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


async def _college_response(college: College, services: Services) -> dict:
    names = await services.colleges.admin_names(college)
    heads = []
    for head in college.tenure_heads:
        full_name, username = names.get(head.admin_id, (None, None))
        heads.append(TenureHeadResponse(**head.model_dump(), admin_name=full_name, admin_username=username))
    return {**college.model_dump(exclude={"tenure_heads", "version"}), "tenure_heads": heads}


async def _admin_response(admin, services: Services) -> AdminResponse:
    return AdminResponse.from_admin(admin, await services.admins.college_name(admin.assigned_college_id))


# Colleges

@router.post("/colleges", response_model=CollegeResponse, status_code=status.HTTP_201_CREATED)
async def create_college(
    request: CreateCollegeRequest,
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    """
    Create a new college

    - **name**: unique
    - **code**: unique short code, stored upper-case (2-10 chars)
    """
    college = await services.colleges.create_college(request, performed_by=current_admin.id)
    return await _college_response(college, services)


@router.get("/colleges", response_model=CollegeListResponse)
async def list_colleges(
    skip: int = Query(0, ge=0, description="Number of records to skip"),
    limit: int = Query(50, ge=1, le=100, description="Number of records to return"),
    active_only: bool = Query(False, description="Only show active colleges"),
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    colleges, total = await services.colleges.list_colleges(active_only=active_only, skip=skip, limit=limit)
    return {
        "total": total,
        "colleges": [await _college_response(college, services) for college in colleges],
    }


@router.get("/colleges/code/{code}", response_model=CollegeResponse)
async def get_college_by_code(
    code: str,
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    college = await services.colleges.get_college_by_code(code)
    return await _college_response(college, services)


@router.get("/colleges/{college_id}", response_model=CollegeDetailedResponse)
async def get_college(
    college_id: str,
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    """College with tenure history and user/event counts"""
    college = await services.colleges.get_college(college_id)
    return {
        **await _college_response(college, services),
        "stats": await services.colleges.get_college_stats(college_id),
    }


@router.put("/colleges/{college_id}", response_model=CollegeResponse)
async def update_college(
    college_id: str,
    request: UpdateCollegeRequest,
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    college = await services.colleges.update_college(college_id, request, performed_by=current_admin.id)
    return await _college_response(college, services)


@router.delete("/colleges/{college_id}", response_model=CollegeResponse)
async def delete_college(
    college_id: str,
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    """
    Deactivate a college

    Refused while any admin holds an active tenure there.
    """
    college = await services.colleges.delete_college(college_id, performed_by=current_admin.id)
    return await _college_response(college, services)


@router.post("/colleges/{college_id}/reactivate", response_model=CollegeResponse)
async def reactivate_college(
    college_id: str,
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    college = await services.colleges.reactivate_college(college_id, performed_by=current_admin.id)
    return await _college_response(college, services)


@router.get("/colleges/{college_id}/tenure-heads", response_model=list[TenureHead])
async def list_tenure_heads(
    college_id: str,
    active_only: bool = Query(False),
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    return await services.tenure.list_tenure_heads(college_id, active_only=active_only)


# Admins

@router.post("/admins", response_model=AdminCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_admin(
    request: CreateAdminRequest,
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    """
    Create a college admin and make them tenure head of the college for the batch

    When no password is given one is generated, returned once and emailed.
    """
    admin, temp_password = await services.admins.create_college_admin(request, performed_by=current_admin.id)
    response = await _admin_response(admin, services)
    return AdminCreatedResponse(**response.model_dump(), temp_password=temp_password)


@router.get("/admins", response_model=AdminListResponse)
async def list_admins(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    role: Optional[AdminRole] = None,
    college_id: Optional[str] = None,
    is_active: Optional[bool] = None,
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    admins, total = await services.admins.list_admins(
        role=role.value if role else None,
        college_id=college_id,
        is_active=is_active,
        skip=skip,
        limit=limit,
    )
    return {"total": total, "admins": [await _admin_response(admin, services) for admin in admins]}


@router.get("/unassigned-admins", response_model=AdminListResponse)
async def list_unassigned_admins(
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    """Active college admins without a current tenure, for (re)assignment"""
    admins = await services.admins.list_unassigned_admins()
    return {"total": len(admins), "admins": [await _admin_response(admin, services) for admin in admins]}


@router.get("/admins/{admin_id}", response_model=AdminResponse)
async def get_admin(
    admin_id: str,
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    return await _admin_response(await services.admins.get_admin(admin_id), services)


@router.put("/admins/{admin_id}", response_model=AdminResponse)
async def update_admin(
    admin_id: str,
    request: UpdateAdminRequest,
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    admin = await services.admins.update_admin(admin_id, request, performed_by=current_admin.id)
    return await _admin_response(admin, services)


@router.delete("/admins/{admin_id}", response_model=AdminResponse)
async def deactivate_admin(
    admin_id: str,
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    """Deactivate an admin; an active tenure is ended first"""
    admin = await services.admins.deactivate_admin(admin_id, performed_by=current_admin.id)
    return await _admin_response(admin, services)


# Tenures

@router.post("/assign-tenure", response_model=TenureHead, status_code=status.HTTP_201_CREATED)
async def assign_tenure(
    request: AssignTenureRequest,
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    """Make an admin the tenure head of a college for a batch year"""
    return await services.tenure.assign_tenure(
        request.college_id,
        request.admin_id,
        request.batch_year,
        start_date=request.start_date,
        performed_by=current_admin.id,
    )


@router.post("/transfer-tenure", response_model=TenureHead)
async def transfer_tenure(
    request: TransferTenureRequest,
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    """Close the current holder's tenure and hand it to another admin, atomically"""
    return await services.tenure.transfer_tenure(
        request.to_admin_id,
        request.college_id,
        request.batch_year,
        from_admin_id=request.from_admin_id,
        reason=request.reason,
        performed_by=current_admin.id,
    )


@router.post("/end-tenure", response_model=AdminResponse)
async def end_tenure(
    request: EndTenureRequest,
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    admin = await services.tenure.end_tenure(request.admin_id, request.reason, performed_by=current_admin.id)
    return await _admin_response(admin, services)


# Users

@router.get("/users", response_model=UserListResponse)
async def list_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    college_id: Optional[str] = None,
    role: Optional[MemberRole] = None,
    batch_year: Optional[str] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = Query(None, max_length=100),
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    users, total = await services.users.list_users(
        college_id=college_id,
        role=role.value if role else None,
        batch_year=batch_year,
        is_active=is_active,
        search=search,
        skip=skip,
        limit=limit,
    )
    return {"total": total, "skip": skip, "limit": limit, "users": users}


@router.get("/users/member/{member_id}", response_model=UserResponse)
async def get_user_by_member_id(
    member_id: str,
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    """Look a member up by member ID (e.g. DEVS-2025-0001)"""
    return await services.users.get_user_by_member_id(member_id)


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    return await services.users.get_user(user_id)


@router.put("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    request: UpdateUserRequest,
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    return await services.users.update_user(user_id, request)


@router.delete("/users/{user_id}", response_model=UserResponse)
async def deactivate_user(
    user_id: str,
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    """Users are never deleted, only deactivated"""
    return await services.users.deactivate_user(user_id)


# Events

@router.get("/events", response_model=EventListResponse)
async def list_events(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    college_id: Optional[str] = None,
    event_type: Optional[EventType] = None,
    category: Optional[EventCategory] = None,
    is_active: Optional[bool] = None,
    upcoming_only: bool = False,
    organizer_id: Optional[str] = None,
    search: Optional[str] = Query(None, max_length=100),
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    events, total = await services.events.list_events(
        college_id=college_id,
        event_type=event_type.value if event_type else None,
        category=category.value if category else None,
        is_active=is_active,
        upcoming_only=upcoming_only,
        search=search,
        organizer_id=organizer_id,
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
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    event = await services.events.create_event(request, organizer=current_admin)
    return services.events.to_response(event)


@router.get("/events/{event_id}", response_model=EventDetailResponse)
async def get_event(
    event_id: str,
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    """Event with its registrations and the registered members' details"""
    event = await services.events.get_event(event_id)
    return await services.events.to_detail(event)


@router.put("/events/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: str,
    request: UpdateEventRequest,
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    event = await services.events.update_event(event_id, request)
    return services.events.to_response(event)


@router.delete("/events/{event_id}", response_model=EventResponse)
async def delete_event(
    event_id: str,
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    event = await services.events.delete_event(event_id)
    return services.events.to_response(event)


# Dashboard

@router.get("/dashboard", response_model=SuperAdminDashboardResponse)
async def dashboard(
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    return await services.analytics.super_admin_dashboard()


@router.get("/activity-logs", response_model=ActivityLogResponse)
async def activity_logs(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    action: Optional[str] = None,
    admin_id: Optional[str] = None,
    days: Optional[int] = Query(None, ge=1, le=365),
    current_admin=Depends(require_super_admin),
    services: Services = Depends(get_services),
):
    """Audit trail of admin actions, newest first"""
    logs, total = await services.activity_logs.get_activity_logs(
        limit=limit, offset=offset, action_filter=action, admin_id=admin_id, days=days
    )
    return {
        "logs": logs,
        "total": total,
        "limit": limit,
        "offset": offset,
        "has_more": offset + len(logs) < total,
    }
