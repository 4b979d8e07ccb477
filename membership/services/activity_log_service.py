"""
Activity Logging Service
Records admin actions and serves the audit trail
"""

import logging
from datetime import timedelta
from typing import List, Optional
from membership.store import EntityKind, EntityStore, Range
from membership.time_utils import utcnow

logger = logging.getLogger(__name__)


class ActivityAction:
    ASSIGN_TENURE = "assign_tenure"
    TRANSFER_TENURE = "transfer_tenure"
    END_TENURE = "end_tenure"
    CREATE_ADMIN = "create_admin"
    UPDATE_ADMIN = "update_admin"
    DEACTIVATE_ADMIN = "deactivate_admin"
    CREATE_COLLEGE = "create_college"
    DELETE_COLLEGE = "delete_college"
    REACTIVATE_COLLEGE = "reactivate_college"


class ActivityLogService:
    """Service for activity logging operations"""

    def __init__(self, store: EntityStore):
        self.store = store

    async def log_activity(
        self,
        admin_id: Optional[str],
        action: str,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> dict:
        """
        Log an activity

        Args:
            admin_id: Admin who performed the action
            action: Action type (e.g. 'assign_tenure', 'delete_college')
            resource_type: Type of resource affected (e.g. 'college', 'admin')
            resource_id: ID of the resource
            details: Additional JSON details such as a reason

        Returns:
            Created activity log entry
        """
        entry = await self.store.create(EntityKind.ACTIVITY_LOG, {
            "admin_id": admin_id,
            "action": action,
            "resource_type": resource_type,
            "resource_id": resource_id,
            "details": details,
        })
        logger.info("Activity %s on %s %s by %s", action, resource_type, resource_id, admin_id)
        return entry

    async def get_activity_logs(
        self,
        limit: int = 50,
        offset: int = 0,
        action_filter: Optional[str] = None,
        admin_id: Optional[str] = None,
        days: Optional[int] = None,
    ) -> tuple[List[dict], int]:
        """
        Get activity logs, newest first

        Args:
            limit: Number of records to return
            offset: Offset for pagination
            action_filter: Filter by action type
            admin_id: Only logs written by this admin
            days: Only return logs from the last N days

        Returns:
            Tuple of (activity logs list, total count)
        """
        filters = {}
        if action_filter:
            filters["action"] = action_filter
        if admin_id:
            filters["admin_id"] = admin_id
        if days:
            filters["created_at"] = Range(start=utcnow() - timedelta(days=days))

        total = await self.store.count(EntityKind.ACTIVITY_LOG, filters)
        logs = await self.store.find(
            EntityKind.ACTIVITY_LOG,
            filters,
            order_by="created_at",
            descending=True,
            limit=limit,
            offset=offset,
        )
        return logs, total
