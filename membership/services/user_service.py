"""
User Service
Member registration, lookup and profile management
"""

import logging
from typing import List, Optional
from membership.config import Settings
from membership.errors import ConflictError, NotFoundError, Unauthorized, ValidationError
from membership.schemas.common import to_document
from membership.schemas.user import RegisterUserRequest, UpdateUserRequest, User
from membership.services.college_service import CollegeService
from membership.services.tenure_service import TenureManager
from membership.store import EntityKind, EntityStore
from membership.time_utils import utcnow

logger = logging.getLogger(__name__)


class UserService:
    """Service for member operations"""

    def __init__(
        self,
        store: EntityStore,
        settings: Settings,
        colleges: CollegeService,
        tenure: TenureManager,
    ):
        self.store = store
        self.settings = settings
        self.colleges = colleges
        self.tenure = tenure

    def format_member_id(self, year: int, sequence: int) -> str:
        return f"{self.settings.MEMBER_ID_PREFIX}-{year}-{sequence:04d}"

    async def generate_member_id(self) -> str:
        """
        Next member ID: user count + 1, skipping IDs already taken

        Concurrent registrations may pick the same ID; the unique
        constraint on member_id rejects the loser, which retries.
        """
        year = utcnow().year
        sequence = await self.store.count(EntityKind.USER) + 1
        member_id = self.format_member_id(year, sequence)
        while await self.store.count(EntityKind.USER, {"member_id": member_id}):
            sequence += 1
            member_id = self.format_member_id(year, sequence)
        return member_id

    async def validate_batch_year(self, college_id: str, batch_year: str) -> None:
        """
        Require an active tenure head for the user's college and batch

        Raises:
            ValidationError: If the batch year is malformed or has no head
        """
        try:
            year = int(batch_year)
        except ValueError:
            raise ValidationError(f"Batch year '{batch_year}' is not a year")

        if not await self.tenure.current_tenure_head(college_id, year):
            raise ValidationError(f"No active admin found for batch year {batch_year} at this college")

    async def register_user(self, data: RegisterUserRequest) -> User:
        """
        Register a new member

        Resolves the college name to a college when one matches, and then
        checks the batch has an admin (REQUIRE_BATCH_ADMIN).

        Raises:
            ConflictError: Email already registered, or no member ID could be allocated
            ValidationError: No admin for the batch year
        """
        if await self.store.count(EntityKind.USER, {"email": data.email}):
            raise ConflictError("User with this email already exists")

        college = await self.colleges.find_by_name(data.college)
        if college and self.settings.REQUIRE_BATCH_ADMIN:
            await self.validate_batch_year(college.id, data.batch_year)

        doc = {
            **to_document(data),
            "college_id": college.id if college else None,
            "is_active": True,
        }

        for attempt in range(self.settings.MEMBER_ID_RETRY_LIMIT):
            doc["member_id"] = await self.generate_member_id()
            try:
                created = await self.store.create(EntityKind.USER, doc)
            except ConflictError:
                if await self.store.count(EntityKind.USER, {"email": data.email}):
                    raise ConflictError("User with this email already exists")
                logger.info("Member ID %s taken, retrying (attempt %d)", doc["member_id"], attempt + 1)
                continue

            user = User.model_validate(created)
            logger.info("User registered: %s (%s)", user.email, user.member_id)
            return user

        raise ConflictError("Could not allocate a member ID, please retry")

    async def get_user(self, user_id: str) -> User:
        return User.model_validate(await self.store.get(EntityKind.USER, user_id))

    async def get_user_by_email(self, email: str) -> User:
        docs = await self.store.find(EntityKind.USER, {"email": email.strip().lower()}, limit=1)
        if not docs:
            raise NotFoundError("User not found")
        return User.model_validate(docs[0])

    async def get_user_by_member_id(self, member_id: str) -> User:
        docs = await self.store.find(EntityKind.USER, {"member_id": member_id.strip().upper()}, limit=1)
        if not docs:
            raise NotFoundError("User not found")
        return User.model_validate(docs[0])

    async def login(self, email: str) -> User:
        """
        Look up an active member by email

        Raises:
            Unauthorized: Unknown or deactivated user
        """
        try:
            user = await self.get_user_by_email(email)
        except NotFoundError:
            raise Unauthorized("Invalid credentials or user not found")
        if not user.is_active:
            raise Unauthorized("Account is deactivated")
        logger.info("User login: %s", user.email)
        return user

    async def list_users(
        self,
        college_id: Optional[str] = None,
        role: Optional[str] = None,
        batch_year: Optional[str] = None,
        is_active: Optional[bool] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[List[User], int]:
        """
        List users, newest first

        Args:
            college_id: Scope to one college
            role: Member role filter
            batch_year: Batch year filter
            is_active: Active flag filter
            search: Case-insensitive match on name, email or member ID
            skip: Offset for pagination
            limit: Page size

        Returns:
            Tuple of (users, total count)
        """
        filters = {}
        if college_id:
            filters["college_id"] = college_id
        if role:
            filters["role"] = role
        if batch_year:
            filters["batch_year"] = batch_year
        if is_active is not None:
            filters["is_active"] = is_active

        if not search:
            total = await self.store.count(EntityKind.USER, filters)
            docs = await self.store.find(
                EntityKind.USER, filters, order_by="created_at", descending=True, limit=limit, offset=skip
            )
            return [User.model_validate(doc) for doc in docs], total

        needle = search.strip().lower()
        docs = await self.store.find(EntityKind.USER, filters, order_by="created_at", descending=True)
        matched = [
            doc for doc in docs
            if needle in doc["full_name"].lower()
            or needle in doc["email"].lower()
            or needle in doc["member_id"].lower()
        ]
        page = matched[skip:skip + limit]
        return [User.model_validate(doc) for doc in page], len(matched)

    async def update_user(self, user_id: str, data: UpdateUserRequest) -> User:
        patch = to_document(data, exclude_unset=True)
        if not patch:
            return await self.get_user(user_id)
        return User.model_validate(await self.store.update(EntityKind.USER, user_id, patch))

    async def update_profile(self, user_id: str, data: UpdateUserRequest) -> User:
        """Members may not change their own active flag"""
        fields = data.model_fields_set - {"is_active"}
        return await self.update_user(user_id, UpdateUserRequest(**data.model_dump(include=fields)))

    async def deactivate_user(self, user_id: str) -> User:
        user = User.model_validate(await self.store.update(EntityKind.USER, user_id, {"is_active": False}))
        logger.info("User deactivated: %s", user.email)
        return user
