import pytest

from membership.errors import ConflictError, InvalidStateError, MembershipError, ValidationError
from membership.schemas.college import UpdateCollegeRequest
from membership.services.activity_log_service import ActivityAction

pytestmark = pytest.mark.anyio


async def test_create_admin_makes_tenure_head(services, factory):
    college = await factory.college()
    admin = await factory.college_admin(college.id, batch_year=2025)

    assert admin.assigned_college_id == college.id
    assert admin.batch_year == 2025
    assert admin.tenure.is_active
    head = await services.tenure.current_tenure_head(college.id, 2025)
    assert head.admin_id == admin.id


async def test_second_head_for_same_batch_conflicts(services, factory):
    college = await factory.college()
    await factory.college_admin(college.id, batch_year=2025)
    spare = await factory.unassigned_admin()

    with pytest.raises(ConflictError):
        await services.tenure.assign_tenure(college.id, spare.id, 2025)

    head = await services.tenure.assign_tenure(college.id, spare.id, 2026)
    assert head.batch_year == 2026
    assert len(await services.tenure.list_tenure_heads(college.id, active_only=True)) == 2


async def test_create_admin_for_taken_batch_leaves_nothing_behind(services, factory):
    college = await factory.college()
    await factory.college_admin(college.id, batch_year=2025, username="first")

    with pytest.raises(ConflictError):
        await factory.college_admin(college.id, batch_year=2025, username="second")
    assert await services.admins.find_by_login("second") is None


async def test_assign_refuses_admin_with_active_tenure(services, factory):
    college = await factory.college()
    other = await factory.college()
    admin = await factory.college_admin(college.id)

    with pytest.raises(InvalidStateError):
        await services.tenure.assign_tenure(other.id, admin.id, 2026)


async def test_assign_refuses_super_admin_and_inactive_college(services, factory):
    college = await factory.college()
    root = await factory.super_admin()
    with pytest.raises(ValidationError):
        await services.tenure.assign_tenure(college.id, root.id, 2025)

    await services.colleges.delete_college(college.id)
    spare = await factory.unassigned_admin()
    with pytest.raises(InvalidStateError):
        await services.tenure.assign_tenure(college.id, spare.id, 2025)


async def test_transfer_closes_previous_holder(services, factory):
    college = await factory.college()
    holder = await factory.college_admin(college.id, batch_year=2025)
    successor = await factory.unassigned_admin()

    head = await services.tenure.transfer_tenure(successor.id, college.id, 2025, reason="Graduated")
    assert head.admin_id == successor.id

    heads = await services.tenure.list_tenure_heads(college.id)
    previous = next(h for h in heads if h.admin_id == holder.id)
    assert not previous.is_active
    assert previous.end_date is not None
    assert [h.admin_id for h in heads if h.is_active] == [successor.id]

    holder = await services.admins.get_admin(holder.id)
    assert holder.assigned_college_id is None
    assert not holder.tenure.is_active
    successor = await services.admins.get_admin(successor.id)
    assert successor.assigned_college_id == college.id


async def test_transfer_moves_target_off_previous_college(services, factory):
    old_college = await factory.college()
    new_college = await factory.college()
    mover = await factory.college_admin(old_college.id, batch_year=2024)

    await services.tenure.transfer_tenure(mover.id, new_college.id, 2025)

    assert await services.tenure.current_tenure_head(old_college.id, 2024) is None
    mover = await services.admins.get_admin(mover.id)
    assert mover.assigned_college_id == new_college.id
    assert mover.batch_year == 2025


async def test_transfer_is_all_or_nothing(services, factory, monkeypatch):
    college = await factory.college()
    holder = await factory.college_admin(college.id, batch_year=2025)
    successor = await factory.unassigned_admin()

    async def failing_assign(*args, **kwargs):
        raise RuntimeError("write failed")

    monkeypatch.setattr(services.tenure, "_assign", failing_assign)
    with pytest.raises(RuntimeError):
        await services.tenure.transfer_tenure(successor.id, college.id, 2025)

    head = await services.tenure.current_tenure_head(college.id, 2025)
    assert head.admin_id == holder.id
    holder = await services.admins.get_admin(holder.id)
    assert holder.has_active_tenure


async def test_transfer_checks_claimed_holder(services, factory):
    college = await factory.college()
    holder = await factory.college_admin(college.id)
    spare = await factory.unassigned_admin()

    with pytest.raises(InvalidStateError):
        await services.tenure.transfer_tenure(holder.id, college.id, 2025)
    with pytest.raises(InvalidStateError):
        await services.tenure.transfer_tenure(spare.id, college.id, 2025, from_admin_id=spare.id)


async def test_end_tenure(services, factory):
    college = await factory.college()
    admin = await factory.college_admin(college.id)

    ended = await services.tenure.end_tenure(admin.id, reason="Graduated")
    assert ended.assigned_college_id is None
    assert ended.tenure.end_date is not None
    assert await services.tenure.current_tenure_head(college.id, 2025) is None

    with pytest.raises(InvalidStateError):
        await services.tenure.end_tenure(admin.id)


async def test_stale_college_write_conflicts(services, store, factory):
    college = await factory.college()
    stale = await services.colleges.get_college(college.id)
    await services.colleges.update_college(college.id, UpdateCollegeRequest(location="Madurai"))

    with pytest.raises(ConflictError):
        await services.tenure._write_heads(stale, [])


async def test_college_with_heads_cannot_be_deleted(services, factory):
    college = await factory.college()
    await factory.college_admin(college.id, batch_year=2025, username="asha")

    with pytest.raises(InvalidStateError) as exc:
        await services.colleges.delete_college(college.id)
    assert "asha" in exc.value.message
    with pytest.raises(InvalidStateError):
        await services.colleges.update_college(college.id, UpdateCollegeRequest(is_active=False))


async def test_college_deletable_after_tenures_end(services, factory):
    college = await factory.college()
    admin = await factory.college_admin(college.id)
    await services.tenure.end_tenure(admin.id)

    deleted = await services.colleges.delete_college(college.id)
    assert not deleted.is_active
    restored = await services.colleges.reactivate_college(college.id)
    assert restored.is_active


async def test_college_delete_conflicts_with_late_tenure_change(services, factory, monkeypatch):
    college = await factory.college()
    spare = await factory.unassigned_admin()
    check_deletable = services.tenure.check_deletable

    async def assign_after_check(checked):
        await check_deletable(checked)
        await services.tenure.assign_tenure(college.id, spare.id, 2025)

    monkeypatch.setattr(services.tenure, "check_deletable", assign_after_check)
    with pytest.raises(ConflictError) as exc:
        await services.colleges.delete_college(college.id)
    assert isinstance(exc.value, MembershipError)

    stored = await services.colleges.get_college(college.id)
    assert stored.is_active
    assert stored.current_tenure_head(2025).admin_id == spare.id


async def test_deactivating_admin_ends_tenure(services, factory):
    college = await factory.college()
    admin = await factory.college_admin(college.id)
    root = await factory.super_admin()

    deactivated = await services.admins.deactivate_admin(admin.id, performed_by=root.id)
    assert not deactivated.is_active
    assert not deactivated.has_active_tenure
    assert await services.tenure.current_tenure_head(college.id, 2025) is None

    with pytest.raises(InvalidStateError):
        await services.admins.deactivate_admin(root.id, performed_by=root.id)


async def test_tenure_changes_are_logged(services, factory):
    college = await factory.college()
    root = await factory.super_admin()
    spare = await factory.unassigned_admin()
    await services.tenure.assign_tenure(college.id, spare.id, 2025, performed_by=root.id)
    await services.tenure.end_tenure(spare.id, reason="Graduated", performed_by=root.id)

    logs, total = await services.activity_logs.get_activity_logs(admin_id=root.id)
    assert total == 2
    assert {log["action"] for log in logs} == {ActivityAction.ASSIGN_TENURE, ActivityAction.END_TENURE}
