import asyncio

import pytest

from membership.errors import ConflictError, NotFoundError
from membership.store import EntityKind, Range, StaleEntityError

pytestmark = pytest.mark.anyio


async def test_create_assigns_managed_fields(store):
    doc = await store.create(EntityKind.COLLEGE, {"name": "RIT", "code": "RIT"})
    assert doc["id"]
    assert doc["version"] == 1
    assert doc["created_at"] == doc["updated_at"]


async def test_update_bumps_version_and_ignores_managed_fields(store):
    doc = await store.create(EntityKind.COLLEGE, {"name": "RIT", "code": "RIT"})
    updated = await store.update(EntityKind.COLLEGE, doc["id"], {"name": "RIT Chennai", "version": 42})
    assert updated["name"] == "RIT Chennai"
    assert updated["version"] == 2


async def test_stale_expected_version_is_rejected(store):
    doc = await store.create(EntityKind.COLLEGE, {"name": "RIT", "code": "RIT"})
    await store.update(EntityKind.COLLEGE, doc["id"], {"name": "RIT 2"})
    with pytest.raises(StaleEntityError):
        await store.update(EntityKind.COLLEGE, doc["id"], {"name": "RIT 3"}, expected_version=1)
    assert (await store.get(EntityKind.COLLEGE, doc["id"]))["name"] == "RIT 2"


async def test_unique_constraints(store):
    await store.create(EntityKind.COLLEGE, {"name": "RIT", "code": "RIT"})
    with pytest.raises(ConflictError):
        await store.create(EntityKind.COLLEGE, {"name": "Other", "code": "RIT"})


async def test_unique_constraint_skips_missing_values(store):
    for n in range(2):
        await store.create(EntityKind.ADMIN, {
            "username": f"admin{n}", "email": f"admin{n}@example.com",
            "assigned_college_id": None, "batch_year": None,
        })
    await store.create(EntityKind.ADMIN, {
        "username": "head", "email": "head@example.com", "assigned_college_id": "c1", "batch_year": 2025,
    })
    with pytest.raises(ConflictError):
        await store.create(EntityKind.ADMIN, {
            "username": "head2", "email": "head2@example.com", "assigned_college_id": "c1", "batch_year": 2025,
        })


async def test_get_and_delete_missing(store):
    with pytest.raises(NotFoundError):
        await store.get(EntityKind.USER, "missing")
    with pytest.raises(NotFoundError):
        await store.delete(EntityKind.USER, "missing")


async def test_find_filters_and_ordering(store):
    for n, college_id in enumerate(["c1", "c2", None]):
        await store.create(EntityKind.EVENT, {"title": f"e{n}", "target_college_id": college_id, "seats": n})

    visible = await store.find(EntityKind.EVENT, {"target_college_id": [None, "c1"]}, order_by="title")
    assert [doc["title"] for doc in visible] == ["e0", "e2"]

    ranged = await store.find(EntityKind.EVENT, {"seats": Range(start=1)}, order_by="seats", descending=True)
    assert [doc["seats"] for doc in ranged] == [2, 1]

    assert await store.count(EntityKind.EVENT, {"target_college_id": None}) == 1
    page = await store.find(EntityKind.EVENT, order_by="title", limit=1, offset=1)
    assert [doc["title"] for doc in page] == ["e1"]


async def test_returned_documents_are_copies(store):
    doc = await store.create(EntityKind.EVENT, {"title": "e", "registrations": []})
    doc["registrations"].append({"user_id": "u1"})
    assert (await store.get(EntityKind.EVENT, doc["id"]))["registrations"] == []


async def test_transaction_rolls_back_on_error(store):
    doc = await store.create(EntityKind.COLLEGE, {"name": "RIT", "code": "RIT"})
    with pytest.raises(RuntimeError):
        async with store.transaction():
            await store.update(EntityKind.COLLEGE, doc["id"], {"name": "Changed"})
            await store.create(EntityKind.COLLEGE, {"name": "New", "code": "NEW"})
            raise RuntimeError("boom")

    assert (await store.get(EntityKind.COLLEGE, doc["id"]))["name"] == "RIT"
    assert await store.count(EntityKind.COLLEGE) == 1


async def test_nested_transaction_joins_outer(store):
    with pytest.raises(RuntimeError):
        async with store.transaction():
            async with store.transaction():
                await store.create(EntityKind.COLLEGE, {"name": "Inner", "code": "IN"})
            raise RuntimeError("boom")
    assert await store.count(EntityKind.COLLEGE) == 0


async def test_rollback_keeps_writes_from_other_tasks(store):
    college = await store.create(EntityKind.COLLEGE, {"name": "RIT", "code": "RIT"})
    other = await store.create(EntityKind.COLLEGE, {"name": "SSN", "code": "SSN"})

    with pytest.raises(RuntimeError):
        async with store.transaction():
            await store.update(EntityKind.COLLEGE, college["id"], {"name": "Changed"})
            await asyncio.create_task(store.update(EntityKind.COLLEGE, other["id"], {"name": "SSN Chennai"}))
            await asyncio.create_task(store.create(EntityKind.COLLEGE, {"name": "New", "code": "NEW"}))
            raise RuntimeError("boom")

    assert (await store.get(EntityKind.COLLEGE, college["id"]))["name"] == "RIT"
    assert (await store.get(EntityKind.COLLEGE, other["id"]))["name"] == "SSN Chennai"
    assert await store.count(EntityKind.COLLEGE, {"code": "NEW"}) == 1
