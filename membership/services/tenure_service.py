"""
Tenure Manager
Assigns, transfers and ends the tenure head of a college for a batch year.

At most one tenure-head record per (college, batch year) is active at a time.
Every write to a college goes through its version, so two concurrent tenure
changes on the same college cannot both succeed.
"""

import logging
from datetime import datetime
from typing import Optional, Union
from membership.errors import ConflictError, InvalidStateError, ValidationError
from membership.schemas.admin import CollegeAdmin, SuperAdmin, TenureInfo, parse_admin
from membership.schemas.college import College, TenureHead
from membership.schemas.common import to_document
from membership.services.activity_log_service import ActivityAction, ActivityLogService
from membership.store import EntityKind, EntityStore, StaleEntityError
from membership.time_utils import ensure_utc, utcnow

logger = logging.getLogger(__name__)


class TenureManager:
    """Tenure operations over colleges and admins"""

    def __init__(self, store: EntityStore, activity_logs: ActivityLogService):
        self.store = store
        self.activity_logs = activity_logs

    # Loading

    async def _load_college(self, college_id: str) -> College:
        return College.model_validate(await self.store.get(EntityKind.COLLEGE, college_id))

    async def _load_admin(self, admin_id: str) -> Union[SuperAdmin, CollegeAdmin]:
        return parse_admin(await self.store.get(EntityKind.ADMIN, admin_id))

    async def _load_tenure_candidate(self, admin_id: str) -> CollegeAdmin:
        admin = await self._load_admin(admin_id)
        if not isinstance(admin, CollegeAdmin):
            raise ValidationError("Super admins cannot hold a college tenure")
        if not admin.is_active:
            raise InvalidStateError(f"Admin '{admin.username}' is deactivated")
        return admin

    async def _load_active_college(self, college_id: str) -> College:
        college = await self._load_college(college_id)
        if not college.is_active:
            raise InvalidStateError(f"College '{college.name}' is inactive")
        return college

    # Writing

    async def _write_heads(self, college: College, heads: list[TenureHead]) -> College:
        try:
            doc = await self.store.update(
                EntityKind.COLLEGE,
                college.id,
                {"tenure_heads": [to_document(head) for head in heads]},
                expected_version=college.version,
            )
        except StaleEntityError:
            raise ConflictError(f"College '{college.name}' was modified concurrently, please retry")
        return College.model_validate(doc)

    async def _assign(
        self,
        college: College,
        admin: CollegeAdmin,
        batch_year: int,
        start_date: datetime,
    ) -> TenureHead:
        if college.current_tenure_head(batch_year):
            raise ConflictError(
                f"College '{college.name}' already has an active tenure head for batch {batch_year}"
            )

        head = TenureHead(admin_id=admin.id, batch_year=batch_year, start_date=start_date)
        await self._write_heads(college, [*college.tenure_heads, head])

        tenure = TenureInfo(college_id=college.id, batch_year=batch_year, start_date=start_date)
        await self.store.update(EntityKind.ADMIN, admin.id, {
            "assigned_college_id": college.id,
            "batch_year": batch_year,
            "tenure": to_document(tenure),
        })
        logger.info("Tenure assigned: %s -> %s batch %s", admin.username, college.code, batch_year)
        return head

    async def _close(self, college_id: str, admin_id: str, batch_year: int, now: datetime) -> None:
        """Close an admin's active tenure on both the college record and the admin"""
        college = await self._load_college(college_id)
        heads = [
            head.model_copy(update={"is_active": False, "end_date": now})
            if head.is_active and head.admin_id == admin_id and head.batch_year == batch_year
            else head
            for head in college.tenure_heads
        ]
        await self._write_heads(college, heads)

        admin = await self._load_admin(admin_id)
        if isinstance(admin, CollegeAdmin) and admin.has_active_tenure and admin.tenure.college_id == college_id:
            tenure = admin.tenure.model_copy(update={"is_active": False, "end_date": now})
            await self.store.update(EntityKind.ADMIN, admin.id, {
                "assigned_college_id": None,
                "batch_year": None,
                "tenure": to_document(tenure),
            })
        logger.info("Tenure closed: admin %s at %s batch %s", admin_id, college.code, batch_year)

    # Operations

    async def assign_tenure(
        self,
        college_id: str,
        admin_id: str,
        batch_year: int,
        start_date: Optional[datetime] = None,
        performed_by: Optional[str] = None,
    ) -> TenureHead:
        """
        Make an admin the tenure head of a college for a batch year

        Raises:
            NotFoundError: College or admin missing
            ValidationError: Admin is a super admin
            InvalidStateError: College inactive, admin inactive or already holding a tenure
            ConflictError: The (college, batch year) pair already has an active head
        """
        async with self.store.transaction():
            college = await self._load_active_college(college_id)
            admin = await self._load_tenure_candidate(admin_id)
            if admin.has_active_tenure:
                raise InvalidStateError(
                    f"Admin '{admin.username}' already holds an active tenure; end or transfer it first"
                )

            start = ensure_utc(start_date) if start_date else utcnow()
            head = await self._assign(college, admin, batch_year, start)

            await self.activity_logs.log_activity(
                performed_by,
                ActivityAction.ASSIGN_TENURE,
                resource_type="college",
                resource_id=college.id,
                details={"admin_id": admin.id, "batch_year": batch_year},
            )
        return head

    async def transfer_tenure(
        self,
        to_admin_id: str,
        college_id: str,
        batch_year: int,
        from_admin_id: Optional[str] = None,
        reason: Optional[str] = None,
        performed_by: Optional[str] = None,
    ) -> TenureHead:
        """
        Hand the tenure for (college, batch year) to another admin

        The current holder is closed first, then the new admin is assigned.
        Runs in one transaction: on any failure nothing changes.
        With no current holder this is a plain assignment.
        """
        async with self.store.transaction():
            college = await self._load_active_college(college_id)
            target = await self._load_tenure_candidate(to_admin_id)

            current = college.current_tenure_head(batch_year)
            if from_admin_id is not None and (current is None or current.admin_id != from_admin_id):
                raise InvalidStateError(
                    f"Admin {from_admin_id} does not hold the tenure for batch {batch_year}"
                )
            if current is not None and current.admin_id == target.id:
                raise InvalidStateError(f"Admin '{target.username}' already holds this tenure")

            now = utcnow()
            if current is not None:
                await self._close(college.id, current.admin_id, batch_year, now)

            if target.has_active_tenure:
                # The incoming admin gives up whatever tenure they held before
                await self._close(target.tenure.college_id, target.id, target.tenure.batch_year, now)

            college = await self._load_college(college_id)
            target = await self._load_tenure_candidate(to_admin_id)
            head = await self._assign(college, target, batch_year, now)

            await self.activity_logs.log_activity(
                performed_by,
                ActivityAction.TRANSFER_TENURE,
                resource_type="college",
                resource_id=college.id,
                details={
                    "from_admin_id": current.admin_id if current else None,
                    "to_admin_id": target.id,
                    "batch_year": batch_year,
                    "reason": reason,
                },
            )
        return head

    async def end_tenure(
        self,
        admin_id: str,
        reason: Optional[str] = None,
        performed_by: Optional[str] = None,
    ) -> CollegeAdmin:
        """
        End an admin's active tenure

        Raises:
            InvalidStateError: The admin holds no active tenure
        """
        async with self.store.transaction():
            admin = await self._load_admin(admin_id)
            if not isinstance(admin, CollegeAdmin) or not admin.has_active_tenure:
                raise InvalidStateError("Admin has no active tenure")

            tenure = admin.tenure
            await self._close(tenure.college_id, admin.id, tenure.batch_year, utcnow())

            await self.activity_logs.log_activity(
                performed_by,
                ActivityAction.END_TENURE,
                resource_type="admin",
                resource_id=admin.id,
                details={"college_id": tenure.college_id, "batch_year": tenure.batch_year, "reason": reason},
            )
            return await self._load_admin(admin_id)

    # Reads

    async def current_tenure_head(self, college_id: str, batch_year: int) -> Optional[TenureHead]:
        college = await self._load_college(college_id)
        return college.current_tenure_head(batch_year)

    async def list_tenure_heads(self, college_id: str, active_only: bool = False) -> list[TenureHead]:
        college = await self._load_college(college_id)
        heads = college.active_tenure_heads if active_only else college.tenure_heads
        return sorted(heads, key=lambda head: head.start_date)

    async def check_deletable(self, college: College) -> None:
        """
        Refuse to delete a college that still has active tenure heads

        Raises:
            InvalidStateError: Naming each active holder
        """
        active = college.active_tenure_heads
        if not active:
            return

        holders = []
        for head in active:
            admins = await self.store.find(EntityKind.ADMIN, {"id": head.admin_id})
            name = admins[0]["username"] if admins else head.admin_id
            holders.append(f"{name} (batch {head.batch_year})")
        raise InvalidStateError(
            f"Cannot delete college '{college.name}' with active tenure heads: "
            f"{', '.join(holders)}. End their tenures first."
        )
