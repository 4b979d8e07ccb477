from datetime import timedelta

import pytest

from membership.errors import ConflictError, Forbidden, InvalidStateError, RegistrationError, ValidationError
from membership.schemas.event import (
    Event,
    EventType,
    Organizer,
    Registration,
    RegistrationStatus,
    WindowStatus,
)
from membership.services.registration_service import (
    ALREADY_REGISTERED,
    DEADLINE_PASSED,
    apply_cancellation,
    apply_capacity,
    apply_registration,
    available_spots,
    can_register,
    registration_status,
)
from membership.store import EntityKind, StaleEntityError
from membership.time_utils import utcnow


def make_event(max_attendees=2, registrations=(), deadline_in=timedelta(days=1)):
    now = utcnow()
    return Event(
        id="e1",
        created_at=now,
        updated_at=now,
        title="Intro to Rust",
        description="Hands-on workshop",
        date=now + timedelta(days=7),
        time="10:00",
        location="Hall B",
        event_type=EventType.OPEN_TO_ALL,
        max_attendees=max_attendees,
        organizer=Organizer(admin_id="a1", name="Admin", contact="admin@example.com"),
        registrations=list(registrations),
        registration_deadline=now + deadline_in,
    )


def reg(user_id, status=RegistrationStatus.CONFIRMED, minutes_ago=0):
    return Registration(user_id=user_id, registered_at=utcnow() - timedelta(minutes=minutes_ago), status=status)


# Pure rules

def test_can_register_confirms_while_seats_remain():
    decision = can_register(make_event(), "u1", utcnow())
    assert decision.allowed
    assert decision.resulting_status == RegistrationStatus.CONFIRMED


def test_can_register_waitlists_when_full():
    event = make_event(max_attendees=1, registrations=[reg("u1")])
    decision = can_register(event, "u2", utcnow())
    assert decision.allowed
    assert decision.resulting_status == RegistrationStatus.WAITLISTED


def test_deadline_is_checked_before_duplicates():
    event = make_event(registrations=[reg("u1")], deadline_in=timedelta(minutes=-1))
    decision = can_register(event, "u1", utcnow())
    assert not decision.allowed
    assert decision.reason == DEADLINE_PASSED


def test_cancelled_registration_does_not_block():
    event = make_event(registrations=[reg("u1", RegistrationStatus.CANCELLED)])
    assert can_register(event, "u1", utcnow()).allowed
    event = make_event(registrations=[reg("u1", RegistrationStatus.WAITLISTED)])
    assert can_register(event, "u1", utcnow()).reason == ALREADY_REGISTERED


def test_window_status_and_spots():
    full = make_event(max_attendees=1, registrations=[reg("u1"), reg("u2", RegistrationStatus.WAITLISTED)])
    assert available_spots(full) == 0
    assert registration_status(full, utcnow()) == WindowStatus.FULL
    assert registration_status(make_event(), utcnow()) == WindowStatus.OPEN
    assert registration_status(make_event(), utcnow() + timedelta(days=2)) == WindowStatus.CLOSED


def test_apply_registration_refuses_duplicates():
    event = make_event(registrations=[reg("u1")])
    with pytest.raises(RegistrationError) as exc:
        apply_registration(event, "u1", utcnow())
    assert exc.value.reason == ALREADY_REGISTERED


def test_cancellation_promotes_earliest_waitlisted():
    event = make_event(max_attendees=1, registrations=[
        reg("u1", minutes_ago=30),
        reg("late", RegistrationStatus.WAITLISTED, minutes_ago=5),
        reg("early", RegistrationStatus.WAITLISTED, minutes_ago=10),
    ])
    registrations, cancelled, promoted = apply_cancellation(event, "u1")

    assert cancelled.status == RegistrationStatus.CANCELLED
    assert promoted.user_id == "early"
    statuses = {r.user_id: r.status for r in registrations}
    assert statuses == {
        "u1": RegistrationStatus.CANCELLED,
        "late": RegistrationStatus.WAITLISTED,
        "early": RegistrationStatus.CONFIRMED,
    }


def test_cancelling_waitlisted_does_not_promote():
    event = make_event(max_attendees=1, registrations=[
        reg("u1"), reg("u2", RegistrationStatus.WAITLISTED), reg("u3", RegistrationStatus.WAITLISTED),
    ])
    _, _, promoted = apply_cancellation(event, "u2")
    assert promoted is None


def test_promotion_can_be_disabled():
    event = make_event(max_attendees=1, registrations=[reg("u1"), reg("u2", RegistrationStatus.WAITLISTED)])
    registrations, _, promoted = apply_cancellation(event, "u1", promote=False)
    assert promoted is None
    assert registrations[1].status == RegistrationStatus.WAITLISTED


def test_capacity_cannot_drop_below_confirmed():
    event = make_event(max_attendees=2, registrations=[reg("u1"), reg("u2")])
    with pytest.raises(ValidationError):
        apply_capacity(event, 1)
    registrations, promoted = apply_capacity(event, 2)
    assert promoted == []
    assert [r.status for r in registrations] == [RegistrationStatus.CONFIRMED] * 2


def test_capacity_increase_promotes_in_arrival_order():
    event = make_event(max_attendees=1, registrations=[
        reg("u1", minutes_ago=30),
        reg("late", RegistrationStatus.WAITLISTED, minutes_ago=5),
        reg("early", RegistrationStatus.WAITLISTED, minutes_ago=10),
        reg("gone", RegistrationStatus.CANCELLED, minutes_ago=20),
    ])
    registrations, promoted = apply_capacity(event, 2)

    assert [r.user_id for r in promoted] == ["early"]
    statuses = {r.user_id: r.status for r in registrations}
    assert statuses["late"] == RegistrationStatus.WAITLISTED
    assert statuses["gone"] == RegistrationStatus.CANCELLED

    registrations, promoted = apply_capacity(event, 10)
    assert [r.user_id for r in promoted] == ["early", "late"]
    assert event.registrations[2].status == RegistrationStatus.WAITLISTED

    _, promoted = apply_capacity(event, 10, promote=False)
    assert promoted == []


def test_cancel_without_registration():
    with pytest.raises(InvalidStateError):
        apply_cancellation(make_event(), "u1")


# Service

@pytest.mark.anyio
async def test_capacity_waitlist_and_promotion(services, factory):
    organizer = await factory.super_admin()
    event = await factory.event(organizer, max_attendees=2)
    u1, u2, u3 = [await factory.user() for _ in range(3)]

    assert (await services.registrations.register(event.id, u1.id)).status == RegistrationStatus.CONFIRMED
    assert (await services.registrations.register(event.id, u2.id)).status == RegistrationStatus.CONFIRMED
    assert (await services.registrations.register(event.id, u3.id)).status == RegistrationStatus.WAITLISTED

    await services.registrations.unregister(event.id, u1.id)
    stored = await services.events.get_event(event.id)
    assert stored.active_registration(u3.id).status == RegistrationStatus.CONFIRMED
    assert stored.count(RegistrationStatus.CONFIRMED) == 2
    assert available_spots(stored) == 0


@pytest.mark.anyio
async def test_register_after_deadline(services, factory):
    organizer = await factory.super_admin()
    deadline = utcnow() + timedelta(hours=1)
    event = await factory.event(organizer, deadline=deadline)
    user = await factory.user()

    with pytest.raises(RegistrationError) as exc:
        await services.registrations.register(event.id, user.id, now=deadline + timedelta(seconds=1))
    assert exc.value.reason == DEADLINE_PASSED


@pytest.mark.anyio
async def test_duplicate_and_double_cancel(services, factory):
    organizer = await factory.super_admin()
    event = await factory.event(organizer)
    user = await factory.user()

    await services.registrations.register(event.id, user.id)
    with pytest.raises(RegistrationError):
        await services.registrations.register(event.id, user.id)

    await services.registrations.unregister(event.id, user.id)
    with pytest.raises(InvalidStateError):
        await services.registrations.unregister(event.id, user.id)

    again = await services.registrations.register(event.id, user.id)
    assert again.status == RegistrationStatus.CONFIRMED


@pytest.mark.anyio
async def test_college_specific_event_rejects_other_colleges(services, factory):
    college = await factory.college()
    other = await factory.college()
    admin = await factory.college_admin(college.id)
    await factory.college_admin(other.id)
    event = await factory.event(admin, event_type=EventType.COLLEGE_SPECIFIC, target_college_id=college.id)

    outsider = await factory.user(college_name=other.name)
    with pytest.raises(Forbidden):
        await services.registrations.register(event.id, outsider.id)

    insider = await factory.user(college_name=college.name)
    assert (await services.registrations.register(event.id, insider.id)).status == RegistrationStatus.CONFIRMED


@pytest.mark.anyio
async def test_inactive_event_rejects_registration(services, factory):
    organizer = await factory.super_admin()
    event = await factory.event(organizer)
    await services.events.delete_event(event.id)
    user = await factory.user()
    with pytest.raises(InvalidStateError):
        await services.registrations.register(event.id, user.id)


@pytest.mark.anyio
async def test_register_retries_after_concurrent_write(services, store, factory, monkeypatch):
    organizer = await factory.super_admin()
    event = await factory.event(organizer, max_attendees=1)
    rival, user = await factory.user(), await factory.user()
    original = store.update
    raced = []

    async def racing_update(kind, entity_id, patch, **kwargs):
        if kind == EntityKind.EVENT and not raced:
            raced.append(True)
            # Another member takes the last seat between our read and write
            await original(kind, entity_id, {"registrations": [
                {"user_id": rival.id, "registered_at": utcnow(), "status": "confirmed"},
            ]})
        return await original(kind, entity_id, patch, **kwargs)

    monkeypatch.setattr(store, "update", racing_update)
    registration = await services.registrations.register(event.id, user.id)

    assert registration.status == RegistrationStatus.WAITLISTED
    stored = await services.events.get_event(event.id)
    assert [r.user_id for r in stored.registrations] == [rival.id, user.id]


@pytest.mark.anyio
async def test_register_gives_up_under_contention(services, store, factory, monkeypatch):
    organizer = await factory.super_admin()
    event = await factory.event(organizer)
    user = await factory.user()

    async def always_stale(kind, entity_id, patch, **kwargs):
        raise StaleEntityError(kind, entity_id)

    monkeypatch.setattr(store, "update", always_stale)
    with pytest.raises(ConflictError):
        await services.registrations.register(event.id, user.id)


@pytest.mark.anyio
async def test_registration_for_reports_decision(services, factory):
    organizer = await factory.super_admin()
    event = await factory.event(organizer, max_attendees=1)
    user = await factory.user()

    before = await services.registrations.registration_for(event.id, user.id)
    assert before["registration"] is None
    assert before["decision"].resulting_status == RegistrationStatus.CONFIRMED

    await services.registrations.register(event.id, user.id)
    after = await services.registrations.registration_for(event.id, user.id)
    assert after["registration_status"] == WindowStatus.FULL
    assert after["decision"].reason == ALREADY_REGISTERED
