"""
Admin Service
Business logic for admin accounts
"""

import asyncio
import logging
from typing import List, Optional, Union
from membership.auth.password import generate_random_password, hash_password, verify_and_upgrade, verify_password
from membership.errors import ConflictError, InvalidStateError, NotFoundError, Unauthorized, ValidationError
from membership.schemas.admin import (
    AdminRole,
    CollegeAdmin,
    CreateAdminRequest,
    SuperAdmin,
    UpdateAdminRequest,
    UpdateProfileRequest,
    parse_admin,
)
from membership.services.activity_log_service import ActivityAction, ActivityLogService
from membership.services.email_service import EmailService
from membership.services.tenure_service import TenureManager
from membership.store import EntityKind, EntityStore
from membership.time_utils import utcnow

logger = logging.getLogger(__name__)

AnyAdmin = Union[SuperAdmin, CollegeAdmin]


class AdminService:
    """Service for admin management operations"""

    def __init__(
        self,
        store: EntityStore,
        tenure: TenureManager,
        activity_logs: ActivityLogService,
        email: EmailService,
    ):
        self.store = store
        self.tenure = tenure
        self.activity_logs = activity_logs
        self.email = email
        self._background: set = set()

    async def _ensure_available(self, username: Optional[str], email: Optional[str], exclude_id: str = None) -> None:
        for field, value in (("username", username), ("email", email)):
            if not value:
                continue
            for doc in await self.store.find(EntityKind.ADMIN, {field: value}):
                if doc["id"] != exclude_id:
                    raise ConflictError(f"Admin with {field} '{value}' already exists")

    def _send_in_background(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def create_college_admin(
        self,
        data: CreateAdminRequest,
        performed_by: Optional[str] = None,
    ) -> tuple[CollegeAdmin, Optional[str]]:
        """
        Create a college admin and make them tenure head of their college

        Generates a password when none is given and emails it.

        Returns:
            Tuple of (admin, generated password or None)

        Raises:
            ConflictError: Username/email taken or the batch already has a head
            NotFoundError: College missing
        """
        await self._ensure_available(data.username, data.email)

        temp_password = None if data.password else generate_random_password(12)
        password_hash = hash_password(data.password or temp_password)

        async with self.store.transaction():
            doc = await self.store.create(EntityKind.ADMIN, {
                "username": data.username,
                "email": data.email,
                "password_hash": password_hash,
                "full_name": data.full_name,
                "role": AdminRole.ADMIN.value,
                "assigned_college_id": None,
                "batch_year": None,
                "tenure": None,
                "is_active": True,
                "last_login": None,
            })
            await self.tenure.assign_tenure(
                data.college_id, doc["id"], data.batch_year, performed_by=performed_by
            )
            await self.activity_logs.log_activity(
                performed_by,
                ActivityAction.CREATE_ADMIN,
                resource_type="admin",
                resource_id=doc["id"],
                details={"username": data.username, "college_id": data.college_id, "batch_year": data.batch_year},
            )
            admin = await self.get_admin(doc["id"])

        if temp_password:
            college = await self.store.get(EntityKind.COLLEGE, data.college_id)
            self._send_in_background(
                self.email.send_welcome_email(
                    admin_email=admin.email,
                    admin_name=admin.full_name,
                    username=admin.username,
                    college_name=college["name"],
                    temp_password=temp_password,
                )
            )

        logger.info("College admin created: %s", admin.username)
        return admin, temp_password

    async def create_super_admin(self, username: str, email: str, password: str, full_name: str) -> SuperAdmin:
        username, email = username.strip().lower(), email.strip().lower()
        await self._ensure_available(username, email)
        doc = await self.store.create(EntityKind.ADMIN, {
            "username": username,
            "email": email,
            "password_hash": hash_password(password),
            "full_name": full_name,
            "role": AdminRole.SUPER_ADMIN.value,
            "assigned_college_id": None,
            "batch_year": None,
            "tenure": None,
            "is_active": True,
            "last_login": None,
        })
        logger.info("Super admin created: %s", username)
        return parse_admin(doc)

    async def get_admin(self, admin_id: str) -> AnyAdmin:
        return parse_admin(await self.store.get(EntityKind.ADMIN, admin_id))

    async def find_by_login(self, identifier: str) -> Optional[AnyAdmin]:
        """Look an admin up by username or email"""
        identifier = identifier.strip().lower()
        field = "email" if "@" in identifier else "username"
        docs = await self.store.find(EntityKind.ADMIN, {field: identifier}, limit=1)
        return parse_admin(docs[0]) if docs else None

    async def authenticate(self, identifier: str, password: str) -> AnyAdmin:
        """
        Verify admin credentials and record the login

        Raises:
            Unauthorized: Unknown admin, wrong password or deactivated account
        """
        admin = await self.find_by_login(identifier)
        if not admin:
            raise Unauthorized("Invalid username or password")
        valid, new_hash = verify_and_upgrade(password, admin.password_hash)
        if not valid:
            raise Unauthorized("Invalid username or password")
        if not admin.is_active:
            raise Unauthorized("Account is deactivated")

        patch = {"last_login": utcnow()}
        if new_hash:
            patch["password_hash"] = new_hash
        doc = await self.store.update(EntityKind.ADMIN, admin.id, patch)
        logger.info("Admin login: %s", admin.username)
        return parse_admin(doc)

    async def list_admins(
        self,
        role: Optional[str] = None,
        college_id: Optional[str] = None,
        is_active: Optional[bool] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[List[AnyAdmin], int]:
        filters = {}
        if role:
            filters["role"] = role
        if college_id:
            filters["assigned_college_id"] = college_id
        if is_active is not None:
            filters["is_active"] = is_active

        total = await self.store.count(EntityKind.ADMIN, filters)
        docs = await self.store.find(
            EntityKind.ADMIN, filters, order_by="created_at", descending=True, limit=limit, offset=skip
        )
        return [parse_admin(doc) for doc in docs], total

    async def list_unassigned_admins(self) -> List[CollegeAdmin]:
        """Active college admins without a current tenure"""
        docs = await self.store.find(
            EntityKind.ADMIN,
            {"role": AdminRole.ADMIN.value, "assigned_college_id": None, "is_active": True},
            order_by="username",
        )
        return [parse_admin(doc) for doc in docs]

    async def update_admin(
        self,
        admin_id: str,
        data: UpdateAdminRequest,
        performed_by: Optional[str] = None,
    ) -> AnyAdmin:
        patch = data.model_dump(exclude_unset=True)
        is_active = patch.pop("is_active", None)
        await self._ensure_available(None, patch.get("email"), exclude_id=admin_id)

        if patch:
            await self.store.update(EntityKind.ADMIN, admin_id, patch)
            await self.activity_logs.log_activity(
                performed_by,
                ActivityAction.UPDATE_ADMIN,
                resource_type="admin",
                resource_id=admin_id,
                details={"fields": sorted(patch)},
            )

        if is_active is False:
            return await self.deactivate_admin(admin_id, performed_by)
        if is_active:
            await self.store.update(EntityKind.ADMIN, admin_id, {"is_active": True})
        return await self.get_admin(admin_id)

    async def update_profile(self, admin_id: str, data: UpdateProfileRequest) -> AnyAdmin:
        patch = data.model_dump(exclude_unset=True)
        await self._ensure_available(None, patch.get("email"), exclude_id=admin_id)
        if not patch:
            return await self.get_admin(admin_id)
        return parse_admin(await self.store.update(EntityKind.ADMIN, admin_id, patch))

    async def change_password(self, admin_id: str, current_password: str, new_password: str) -> None:
        """
        Change an admin's own password

        Raises:
            ValidationError: Current password wrong, or new equals current
        """
        admin = await self.get_admin(admin_id)
        if not verify_password(current_password, admin.password_hash):
            raise ValidationError("Current password is incorrect")
        if current_password == new_password:
            raise ValidationError("New password must differ from the current password")

        await self.store.update(EntityKind.ADMIN, admin_id, {"password_hash": hash_password(new_password)})
        logger.info("Password changed for admin %s", admin.username)

    async def deactivate_admin(self, admin_id: str, performed_by: Optional[str] = None) -> AnyAdmin:
        """
        Deactivate an admin, ending any active tenure first

        Raises:
            InvalidStateError: When an admin tries to deactivate themselves
        """
        if admin_id == performed_by:
            raise InvalidStateError("You cannot deactivate your own account")

        async with self.store.transaction():
            admin = await self.get_admin(admin_id)
            if admin.has_active_tenure:
                await self.tenure.end_tenure(admin_id, reason="Admin deactivated", performed_by=performed_by)

            doc = await self.store.update(EntityKind.ADMIN, admin_id, {"is_active": False})
            await self.activity_logs.log_activity(
                performed_by,
                ActivityAction.DEACTIVATE_ADMIN,
                resource_type="admin",
                resource_id=admin_id,
            )

        logger.info("Admin deactivated: %s", admin.username)
        return parse_admin(doc)

    async def college_name(self, college_id: Optional[str]) -> Optional[str]:
        if not college_id:
            return None
        try:
            return (await self.store.get(EntityKind.COLLEGE, college_id))["name"]
        except NotFoundError:
            return None
