from datetime import timedelta

import pytest

from membership.errors import ConflictError, Forbidden, NotFoundError, ValidationError
from membership.schemas.analytics import AnalyticsPeriod
from membership.schemas.event import (
    CreateEventRequest,
    EventType,
    RegistrationStatus,
    UpdateEventRequest,
    WindowStatus,
)
from membership.store import EntityKind, StaleEntityError
from membership.time_utils import utcnow

pytestmark = pytest.mark.anyio


async def test_default_deadline_and_organizer(services, factory, settings):
    root = await factory.super_admin()
    before = utcnow()
    event = await services.events.create_event(
        CreateEventRequest(
            title="Hack Night",
            description="Overnight build session for all members",
            date=before + timedelta(days=30),
            location="Main Auditorium",
        ),
        organizer=root,
    )
    assert event.organizer.admin_id == root.id
    window = timedelta(days=settings.DEFAULT_REGISTRATION_WINDOW_DAYS)
    assert before + window <= event.registration_deadline <= utcnow() + window
    assert event.max_attendees == settings.DEFAULT_MAX_ATTENDEES
    assert services.events.to_response(event)["registration_status"] == WindowStatus.OPEN


async def test_college_specific_event_needs_known_target(services, factory):
    root = await factory.super_admin()
    with pytest.raises(ValidationError):
        await factory.event(root, event_type=EventType.COLLEGE_SPECIFIC)
    with pytest.raises(NotFoundError):
        await factory.event(root, event_type=EventType.COLLEGE_SPECIFIC, target_college_id="missing")


async def test_visibility(services, factory):
    college = await factory.college()
    other = await factory.college()
    admin = await factory.college_admin(college.id)
    await factory.college_admin(other.id)
    root = await factory.super_admin()

    open_event = await factory.event(root)
    private = await factory.event(admin, event_type=EventType.COLLEGE_SPECIFIC, target_college_id=college.id)
    insider = await factory.user(college_name=college.name)
    outsider = await factory.user(college_name=other.name)

    events, total = await services.events.list_events(is_active=True, visible_to=insider)
    assert total == 2
    events, total = await services.events.list_events(is_active=True, visible_to=outsider)
    assert [e.id for e in events] == [open_event.id]

    with pytest.raises(Forbidden):
        await services.events.get_visible_event(private.id, outsider)


async def test_scoped_admin_cannot_touch_other_colleges(services, factory):
    college = await factory.college()
    other = await factory.college()
    admin = await factory.college_admin(college.id)
    other_admin = await factory.college_admin(other.id)
    event = await factory.event(admin, event_type=EventType.COLLEGE_SPECIFIC, target_college_id=college.id)

    with pytest.raises(Forbidden):
        await services.events.update_event(event.id, UpdateEventRequest(title="Hijacked"), college_id=other.id)
    with pytest.raises(Forbidden):
        await services.events.update_event(
            event.id, UpdateEventRequest(event_type=EventType.OPEN_TO_ALL), college_id=college.id
        )
    with pytest.raises(Forbidden):
        await services.events.delete_event(event.id, college_id=other_admin.assigned_college_id)

    updated = await services.events.update_event(
        event.id, UpdateEventRequest(max_attendees=5), college_id=college.id
    )
    assert updated.max_attendees == 5


async def test_super_admin_can_open_event_to_all(services, factory):
    college = await factory.college()
    admin = await factory.college_admin(college.id)
    event = await factory.event(admin, event_type=EventType.COLLEGE_SPECIFIC, target_college_id=college.id)

    updated = await services.events.update_event(event.id, UpdateEventRequest(event_type=EventType.OPEN_TO_ALL))
    assert updated.target_college_id is None


async def test_detail_joins_member_details(services, factory):
    root = await factory.super_admin()
    event = await factory.event(root, max_attendees=1)
    first, second = await factory.user(), await factory.user()
    await services.registrations.register(event.id, first.id)
    await services.registrations.register(event.id, second.id)

    detail = await services.events.to_detail(await services.events.get_event(event.id))
    assert detail["confirmed_count"] == 1
    assert detail["waitlisted_count"] == 1
    assert [r["member_id"] for r in detail["registrations"]] == [first.member_id, second.member_id]

    pairs = await services.events.user_registrations(second.id)
    assert [(e.id, r.status) for e, r in pairs] == [(event.id, RegistrationStatus.WAITLISTED)]


async def test_dashboards(services, factory):
    college = await factory.college()
    admin = await factory.college_admin(college.id)
    await factory.unassigned_admin()
    event = await factory.event(admin, event_type=EventType.COLLEGE_SPECIFIC, target_college_id=college.id)
    user = await factory.user(college_name=college.name)
    await services.registrations.register(event.id, user.id)

    overview = await services.analytics.super_admin_dashboard()
    assert overview["total_admins"] == 2
    assert overview["assigned_admins"] == 1
    assert overview["unassigned_admins"] == 1
    assert overview["total_registrations"] == 1

    dashboard = await services.analytics.college_dashboard(college.id)
    assert dashboard["total_users"] == 1
    assert dashboard["events_by_type"] == {"college-specific": 1}

    analytics = await services.analytics.college_analytics(college.id, AnalyticsPeriod.WEEK)
    assert analytics["user_growth"]["new_in_period"] == 1
    assert analytics["event_metrics"]["registration_data"][0]["fill_rate"] == 0.5


async def test_list_by_organizer_and_search(services, factory):
    college = await factory.college()
    admin = await factory.college_admin(college.id)
    root = await factory.super_admin()
    mine = await factory.event(admin, event_type=EventType.COLLEGE_SPECIFIC, target_college_id=college.id)
    await factory.event(root)

    events, total = await services.events.list_events(organizer_id=admin.id)
    assert total == 1
    assert events[0].id == mine.id

    events, total = await services.events.list_events(search="SEMINAR HALL")
    assert total == 2


async def test_capacity_cannot_drop_below_confirmed(services, factory):
    root = await factory.super_admin()
    event = await factory.event(root, max_attendees=2)
    for _ in range(2):
        await services.registrations.register(event.id, (await factory.user()).id)

    with pytest.raises(ValidationError):
        await services.events.update_event(event.id, UpdateEventRequest(max_attendees=1))
    stored = await services.events.get_event(event.id)
    assert stored.max_attendees == 2
    assert stored.count(RegistrationStatus.CONFIRMED) == 2


async def test_raising_capacity_promotes_waitlist_first(services, factory):
    root = await factory.super_admin()
    event = await factory.event(root, max_attendees=1)
    first, waiting, latecomer = await factory.user(), await factory.user(), await factory.user()
    await services.registrations.register(event.id, first.id)
    await services.registrations.register(event.id, waiting.id)

    updated = await services.events.update_event(event.id, UpdateEventRequest(max_attendees=2))
    assert updated.active_registration(waiting.id).status == RegistrationStatus.CONFIRMED

    registration = await services.registrations.register(event.id, latecomer.id)
    assert registration.status == RegistrationStatus.WAITLISTED


async def test_capacity_update_retries_after_registration(services, store, factory, monkeypatch):
    root = await factory.super_admin()
    event = await factory.event(root, max_attendees=2)
    first, second = await factory.user(), await factory.user()
    await services.registrations.register(event.id, first.id)
    original = store.update
    raced = []

    async def racing_update(kind, entity_id, patch, **kwargs):
        if kind == EntityKind.EVENT and not raced:
            raced.append(True)
            # The second seat fills between our read and write
            await services.registrations.register(event.id, second.id)
        return await original(kind, entity_id, patch, **kwargs)

    monkeypatch.setattr(store, "update", racing_update)
    with pytest.raises(ValidationError):
        await services.events.update_event(event.id, UpdateEventRequest(max_attendees=1))
    stored = await services.events.get_event(event.id)
    assert stored.max_attendees == 2
    assert stored.count(RegistrationStatus.CONFIRMED) == 2


async def test_update_gives_up_under_contention(services, store, factory, monkeypatch):
    root = await factory.super_admin()
    event = await factory.event(root)

    async def always_stale(kind, entity_id, patch, **kwargs):
        raise StaleEntityError(kind, entity_id)

    monkeypatch.setattr(store, "update", always_stale)
    with pytest.raises(ConflictError):
        await services.events.update_event(event.id, UpdateEventRequest(title="Renamed"))
