from datetime import timedelta

import pytest

from membership.database import Base, create_database, create_sync_engine
from membership.errors import ConflictError, NotFoundError
from membership.schemas.event import EventType, RegistrationStatus
from membership.store import EntityKind, Range, SqlEntityStore, StaleEntityError
from membership.time_utils import utcnow

pytestmark = pytest.mark.anyio


@pytest.fixture
async def store(tmp_path):
    """SQLite-backed store; services and factory pick it up through this fixture"""
    url = f"sqlite:///{tmp_path / 'membership.db'}"
    engine = create_sync_engine(url)
    Base.metadata.create_all(engine)
    engine.dispose()

    sql_store = SqlEntityStore(create_database(url))
    await sql_store.connect()
    yield sql_store
    await sql_store.disconnect()


async def test_create_get_and_version(store):
    doc = await store.create(EntityKind.COLLEGE, {
        "name": "RIT", "code": "RIT", "location": "Chennai", "address": "1 Road",
        "contact_info": {"email": "office@rit.edu"}, "tenure_heads": [], "is_active": True,
    })
    assert doc["version"] == 1
    assert doc["created_at"].tzinfo is not None
    assert doc["contact_info"] == {"email": "office@rit.edu"}

    updated = await store.update(EntityKind.COLLEGE, doc["id"], {"location": "Madurai", "version": 9})
    assert updated["location"] == "Madurai"
    assert updated["version"] == 2

    with pytest.raises(NotFoundError):
        await store.get(EntityKind.COLLEGE, "missing")


async def test_unique_constraints(factory):
    await factory.college(name="RIT", code="RIT")
    with pytest.raises(ConflictError):
        await factory.college(name="Another", code="RIT")


async def test_stale_expected_version(store, factory):
    college = await factory.college()
    await store.update(EntityKind.COLLEGE, college.id, {"location": "Madurai"})

    with pytest.raises(StaleEntityError):
        await store.update(EntityKind.COLLEGE, college.id, {"location": "Trichy"}, expected_version=1)
    stored = await store.get(EntityKind.COLLEGE, college.id)
    assert stored["location"] == "Madurai"
    assert stored["version"] == 2


async def test_tenure_heads_round_trip(services, factory):
    college = await factory.college()
    admin = await factory.college_admin(college.id, batch_year=2025)

    stored = await services.colleges.get_college(college.id)
    head = stored.current_tenure_head(2025)
    assert head.admin_id == admin.id
    assert head.start_date.tzinfo is not None

    await services.tenure.end_tenure(admin.id)
    stored = await services.colleges.get_college(college.id)
    assert stored.current_tenure_head(2025) is None
    assert stored.tenure_heads[0].end_date is not None


async def test_registrations_round_trip(services, factory):
    root = await factory.super_admin()
    event = await factory.event(root, max_attendees=1)
    first, second = await factory.user(), await factory.user()
    await services.registrations.register(event.id, first.id)
    await services.registrations.register(event.id, second.id)

    stored = await services.events.get_event(event.id)
    assert [r.status for r in stored.registrations] == [
        RegistrationStatus.CONFIRMED, RegistrationStatus.WAITLISTED,
    ]
    assert stored.registrations[0].registered_at.tzinfo is not None

    await services.registrations.unregister(event.id, first.id)
    stored = await services.events.get_event(event.id)
    assert stored.active_registration(second.id).status == RegistrationStatus.CONFIRMED


async def test_membership_and_range_filters(store, factory):
    root = await factory.super_admin()
    college, other = await factory.college(), await factory.college()
    open_event = await factory.event(root)
    own = await factory.event(root, event_type=EventType.COLLEGE_SPECIFIC, target_college_id=college.id)
    await factory.event(root, event_type=EventType.COLLEGE_SPECIFIC, target_college_id=other.id)

    visible = await store.find(EntityKind.EVENT, {"target_college_id": [None, college.id]})
    assert {doc["id"] for doc in visible} == {open_event.id, own.id}
    assert await store.count(EntityKind.EVENT, {"target_college_id": None}) == 1

    now = utcnow()
    assert await store.count(EntityKind.EVENT, {"date": Range(start=now)}) == 3
    assert await store.count(EntityKind.EVENT, {"date": Range(end=now)}) == 0
    window = Range(start=now + timedelta(days=13), end=now + timedelta(days=15))
    assert await store.count(EntityKind.EVENT, {"date": window}) == 3


async def test_update_keeps_columns_written_meanwhile(services, store, factory, monkeypatch):
    root = await factory.super_admin()
    event = await factory.event(root)
    user = await factory.user()
    check_unique = store._check_unique
    raced = []

    async def register_in_between(kind, doc):
        if kind == EntityKind.EVENT and not raced:
            raced.append(True)
            # A registration lands after the soft delete read the event
            await services.registrations.register(event.id, user.id)
        await check_unique(kind, doc)

    monkeypatch.setattr(store, "_check_unique", register_in_between)
    await services.events.delete_event(event.id)

    stored = await services.events.get_event(event.id)
    assert not stored.is_active
    assert [r.user_id for r in stored.registrations] == [user.id]
    assert stored.version == 3


async def test_transaction_rolls_back(store, factory):
    college = await factory.college()
    with pytest.raises(RuntimeError):
        async with store.transaction():
            await store.update(EntityKind.COLLEGE, college.id, {"location": "Madurai"})
            raise RuntimeError("boom")
    assert (await store.get(EntityKind.COLLEGE, college.id))["location"] == "Chennai"
