"""
Entity Store Interface
Abstract persistence shared by every service
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncContextManager, Optional

from membership.errors import ConflictError


class EntityKind(str, Enum):
    USER = "users"
    ADMIN = "admins"
    COLLEGE = "colleges"
    EVENT = "events"
    ACTIVITY_LOG = "activity_logs"


KIND_LABELS = {
    EntityKind.USER: "User",
    EntityKind.ADMIN: "Admin",
    EntityKind.COLLEGE: "College",
    EntityKind.EVENT: "Event",
    EntityKind.ACTIVITY_LOG: "Activity log",
}

# Unique constraints per kind; a constraint only applies when none of its values is None
UNIQUE_CONSTRAINTS = {
    EntityKind.USER: [("email",), ("member_id",)],
    EntityKind.ADMIN: [("username",), ("email",), ("assigned_college_id", "batch_year")],
    EntityKind.COLLEGE: [("name",), ("code",)],
    EntityKind.EVENT: [],
    EntityKind.ACTIVITY_LOG: [],
}

# Fields the store owns; patches cannot overwrite them
MANAGED_FIELDS = ("id", "created_at", "updated_at", "version")


class StaleEntityError(ConflictError):
    """Raised when an update's expected_version no longer matches"""

    def __init__(self, kind: EntityKind, entity_id: str):
        super().__init__(f"{KIND_LABELS[kind]} {entity_id} was modified concurrently, please retry")
        self.kind = kind
        self.entity_id = entity_id


@dataclass(frozen=True)
class Range:
    """Inclusive range filter; either bound may be open"""

    start: Optional[Any] = None
    end: Optional[Any] = None

    def matches(self, value: Any) -> bool:
        if value is None:
            return False
        if self.start is not None and value < self.start:
            return False
        if self.end is not None and value > self.end:
            return False
        return True


def matches_filters(doc: dict, filters: Optional[dict]) -> bool:
    """Evaluate equality, membership and Range filters against a document"""
    for field, expected in (filters or {}).items():
        value = doc.get(field)
        if isinstance(expected, Range):
            if not expected.matches(value):
                return False
        elif isinstance(expected, (list, tuple, set, frozenset)):
            if value not in expected:
                return False
        elif value != expected:
            return False
    return True


def describe_conflict(kind: EntityKind, fields: tuple, doc: dict) -> str:
    values = ", ".join(f"{field} '{doc.get(field)}'" for field in fields)
    return f"{KIND_LABELS[kind]} with {values} already exists"


class EntityStore(ABC):
    """
    Persistence for users, admins, colleges, events and activity logs

    Documents are plain dicts. The store assigns `id`, `created_at`,
    `updated_at` and `version`, and bumps `version` on every update.
    """

    async def connect(self) -> None:
        """Open connections (no-op by default)"""

    async def disconnect(self) -> None:
        """Close connections (no-op by default)"""

    @abstractmethod
    async def create(self, kind: EntityKind, data: dict) -> dict:
        """Insert a document; raises ConflictError on unique violations"""

    @abstractmethod
    async def get(self, kind: EntityKind, entity_id: str) -> dict:
        """Fetch by id; raises NotFoundError"""

    @abstractmethod
    async def find(
        self,
        kind: EntityKind,
        filters: Optional[dict] = None,
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[dict]:
        """Query documents with equality / membership / Range filters"""

    @abstractmethod
    async def count(self, kind: EntityKind, filters: Optional[dict] = None) -> int:
        """Count documents matching filters"""

    @abstractmethod
    async def update(
        self,
        kind: EntityKind,
        entity_id: str,
        patch: dict,
        *,
        expected_version: Optional[int] = None,
    ) -> dict:
        """
        Merge a patch into a document

        Raises NotFoundError, ConflictError on unique violations, and
        StaleEntityError when expected_version is given and out of date.
        """

    @abstractmethod
    async def delete(self, kind: EntityKind, entity_id: str) -> None:
        """Remove a document; raises NotFoundError"""

    @abstractmethod
    def transaction(self) -> AsyncContextManager["EntityStore"]:
        """All-or-nothing unit of work"""
