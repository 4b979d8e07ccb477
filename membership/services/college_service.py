"""
College Management Service
Handles college CRUD, soft delete and stats
"""

import logging
from typing import List, Optional
from membership.errors import ConflictError, NotFoundError
from membership.schemas.college import College, CreateCollegeRequest, UpdateCollegeRequest
from membership.schemas.common import to_document
from membership.services.activity_log_service import ActivityAction, ActivityLogService
from membership.services.tenure_service import TenureManager
from membership.store import EntityKind, EntityStore, Range, StaleEntityError
from membership.time_utils import utcnow

logger = logging.getLogger(__name__)


class CollegeService:
    """Service for college operations"""

    def __init__(self, store: EntityStore, tenure: TenureManager, activity_logs: ActivityLogService):
        self.store = store
        self.tenure = tenure
        self.activity_logs = activity_logs

    async def create_college(self, data: CreateCollegeRequest, performed_by: Optional[str] = None) -> College:
        """
        Create a new college

        Raises:
            ConflictError: If name or code already exists
        """
        doc = await self.store.create(EntityKind.COLLEGE, {
            **to_document(data),
            "tenure_heads": [],
            "is_active": True,
        })
        college = College.model_validate(doc)
        await self.activity_logs.log_activity(
            performed_by,
            ActivityAction.CREATE_COLLEGE,
            resource_type="college",
            resource_id=college.id,
            details={"code": college.code},
        )
        logger.info("College created: %s (%s)", college.name, college.code)
        return college

    async def get_college(self, college_id: str) -> College:
        return College.model_validate(await self.store.get(EntityKind.COLLEGE, college_id))

    async def get_college_by_code(self, code: str) -> College:
        docs = await self.store.find(EntityKind.COLLEGE, {"code": code.strip().upper()}, limit=1)
        if not docs:
            raise NotFoundError(f"College with code '{code}' not found")
        return College.model_validate(docs[0])

    async def find_by_name(self, name: str) -> Optional[College]:
        """Case-insensitive match on an active college's name"""
        wanted = name.strip().lower()
        for doc in await self.store.find(EntityKind.COLLEGE, {"is_active": True}):
            if doc["name"].lower() == wanted:
                return College.model_validate(doc)
        return None

    async def list_colleges(
        self,
        active_only: bool = False,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> tuple[List[College], int]:
        """
        List colleges ordered by name

        Returns:
            Tuple of (colleges, total count)
        """
        filters = {"is_active": True} if active_only else {}
        total = await self.store.count(EntityKind.COLLEGE, filters)
        docs = await self.store.find(EntityKind.COLLEGE, filters, order_by="name", limit=limit, offset=skip)
        return [College.model_validate(doc) for doc in docs], total

    async def update_college(
        self,
        college_id: str,
        data: UpdateCollegeRequest,
        performed_by: Optional[str] = None,
    ) -> College:
        """
        Update college details

        Deactivating through an update is subject to the same guard as delete.
        """
        college = await self.get_college(college_id)
        patch = to_document(data, exclude_unset=True)
        deactivate = patch.pop("is_active", None) is False and college.is_active
        if deactivate:
            await self.tenure.check_deletable(college)

        if patch:
            college = College.model_validate(await self.store.update(EntityKind.COLLEGE, college_id, patch))
        if deactivate:
            college = await self.delete_college(college_id, performed_by)
        elif data.is_active and not college.is_active:
            college = await self.reactivate_college(college_id, performed_by)
        return college

    async def delete_college(self, college_id: str, performed_by: Optional[str] = None) -> College:
        """
        Soft delete a college

        Raises:
            InvalidStateError: While the college has active tenure heads
            ConflictError: A tenure change landed after the check
        """
        college = await self.get_college(college_id)
        await self.tenure.check_deletable(college)

        try:
            doc = await self.store.update(
                EntityKind.COLLEGE, college_id, {"is_active": False}, expected_version=college.version
            )
        except StaleEntityError:
            raise ConflictError(f"College '{college.name}' was modified concurrently, please retry")
        await self.activity_logs.log_activity(
            performed_by,
            ActivityAction.DELETE_COLLEGE,
            resource_type="college",
            resource_id=college_id,
            details={"name": college.name},
        )
        logger.info("College deactivated: %s", college.code)
        return College.model_validate(doc)

    async def reactivate_college(self, college_id: str, performed_by: Optional[str] = None) -> College:
        doc = await self.store.update(EntityKind.COLLEGE, college_id, {"is_active": True})
        await self.activity_logs.log_activity(
            performed_by,
            ActivityAction.REACTIVATE_COLLEGE,
            resource_type="college",
            resource_id=college_id,
        )
        return College.model_validate(doc)

    async def get_college_stats(self, college_id: str) -> dict:
        """User and event counts for one college"""
        college = await self.get_college(college_id)
        return {
            "total_users": await self.store.count(EntityKind.USER, {"college_id": college_id}),
            "active_users": await self.store.count(
                EntityKind.USER, {"college_id": college_id, "is_active": True}
            ),
            "total_events": await self.store.count(EntityKind.EVENT, {"target_college_id": college_id}),
            "upcoming_events": await self.store.count(EntityKind.EVENT, {
                "target_college_id": college_id,
                "is_active": True,
                "date": Range(start=utcnow()),
            }),
            "active_tenure_heads": len(college.active_tenure_heads),
        }

    async def admin_names(self, college: College) -> dict:
        """Map admin id to (full_name, username) for a college's tenure history"""
        admin_ids = list({head.admin_id for head in college.tenure_heads})
        if not admin_ids:
            return {}
        docs = await self.store.find(EntityKind.ADMIN, {"id": admin_ids})
        return {doc["id"]: (doc["full_name"], doc["username"]) for doc in docs}
