"""
SQL Entity Store
SQLAlchemy Core tables executed through the async `databases` client
"""

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from databases import Database
from fastapi.encoders import jsonable_encoder
from sqlalchemy import JSON, and_, func, or_, select

from membership.errors import ConflictError, NotFoundError
from membership.models import ActivityLog, Admin, College, Event, User
from membership.store.base import (
    KIND_LABELS,
    MANAGED_FIELDS,
    UNIQUE_CONSTRAINTS,
    EntityKind,
    EntityStore,
    Range,
    StaleEntityError,
    describe_conflict,
)
from membership.time_utils import ensure_utc, utcnow

logger = logging.getLogger(__name__)

TABLES = {
    EntityKind.USER: User.__table__,
    EntityKind.ADMIN: Admin.__table__,
    EntityKind.COLLEGE: College.__table__,
    EntityKind.EVENT: Event.__table__,
    EntityKind.ACTIVITY_LOG: ActivityLog.__table__,
}


def _is_unique_violation(exc: Exception) -> bool:
    # asyncpg raises UniqueViolationError, sqlite3/aiosqlite raise IntegrityError
    name = type(exc).__name__
    return "UniqueViolation" in name or "IntegrityError" in name


class SqlEntityStore(EntityStore):
    """Entity store backed by PostgreSQL (asyncpg) or SQLite (aiosqlite)"""

    def __init__(self, database: Database):
        self.database = database

    async def connect(self) -> None:
        await self.database.connect()
        logger.info("Database connected")

    async def disconnect(self) -> None:
        await self.database.disconnect()
        logger.info("Database disconnected")

    # Row conversion

    def _to_row(self, kind: EntityKind, doc: dict) -> dict:
        table = TABLES[kind]
        row = {}
        for column in table.columns:
            if column.name not in doc:
                continue
            value = doc[column.name]
            if isinstance(column.type, JSON) and value is not None:
                value = jsonable_encoder(value)
            row[column.name] = value
        return row

    def _from_row(self, record) -> dict:
        doc = dict(record._mapping)
        for key, value in doc.items():
            if isinstance(value, datetime):
                doc[key] = ensure_utc(value)
        return doc

    def _where(self, kind: EntityKind, filters: Optional[dict]):
        table = TABLES[kind]
        clauses = []
        for field, expected in (filters or {}).items():
            column = table.c[field]
            if isinstance(expected, Range):
                if expected.start is not None:
                    clauses.append(column >= expected.start)
                if expected.end is not None:
                    clauses.append(column <= expected.end)
            elif isinstance(expected, (list, tuple, set, frozenset)):
                values = [value for value in expected if value is not None]
                if len(values) < len(expected):
                    # NULL never matches IN
                    clauses.append(or_(column.in_(values), column.is_(None)))
                else:
                    clauses.append(column.in_(values))
            elif expected is None:
                clauses.append(column.is_(None))
            else:
                clauses.append(column == expected)
        return clauses

    async def _check_unique(self, kind: EntityKind, doc: dict) -> None:
        table = TABLES[kind]
        for fields in UNIQUE_CONSTRAINTS[kind]:
            values = [doc.get(field) for field in fields]
            if any(value is None for value in values):
                continue
            query = select(table.c.id).where(
                and_(*[table.c[field] == value for field, value in zip(fields, values)]),
                table.c.id != doc["id"],
            )
            if await self.database.fetch_one(query):
                raise ConflictError(describe_conflict(kind, fields, doc))

    async def _execute_write(self, kind: EntityKind, doc: dict, query, fetch: bool = False):
        try:
            if fetch:
                return await self.database.fetch_one(query)
            return await self.database.execute(query)
        except Exception as exc:
            if _is_unique_violation(exc):
                raise ConflictError(f"{KIND_LABELS[kind]} violates a uniqueness constraint") from exc
            raise

    # EntityStore

    async def create(self, kind: EntityKind, data: dict) -> dict:
        table = TABLES[kind]
        now = utcnow()
        doc = dict(data)
        doc["id"] = doc.get("id") or str(uuid.uuid4())
        doc["created_at"] = now
        doc["updated_at"] = now
        doc["version"] = 1

        await self._check_unique(kind, doc)
        await self._execute_write(kind, doc, table.insert().values(**self._to_row(kind, doc)))
        return await self.get(kind, doc["id"])

    async def get(self, kind: EntityKind, entity_id: str) -> dict:
        table = TABLES[kind]
        record = await self.database.fetch_one(table.select().where(table.c.id == entity_id))
        if not record:
            raise NotFoundError(f"{KIND_LABELS[kind]} not found")
        return self._from_row(record)

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
        table = TABLES[kind]
        query = table.select().where(*self._where(kind, filters))
        if order_by:
            column = table.c[order_by]
            query = query.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            query = query.limit(limit)
        if offset:
            query = query.offset(offset)

        records = await self.database.fetch_all(query)
        return [self._from_row(record) for record in records]

    async def count(self, kind: EntityKind, filters: Optional[dict] = None) -> int:
        table = TABLES[kind]
        query = select(func.count()).select_from(table).where(*self._where(kind, filters))
        total = await self.database.fetch_val(query)
        return total or 0

    async def update(
        self,
        kind: EntityKind,
        entity_id: str,
        patch: dict,
        *,
        expected_version: Optional[int] = None,
    ) -> dict:
        table = TABLES[kind]
        current = await self.get(kind, entity_id)
        if expected_version is not None and current["version"] != expected_version:
            raise StaleEntityError(kind, entity_id)

        changes = {k: v for k, v in patch.items() if k not in MANAGED_FIELDS}
        merged = {**current, **changes}
        await self._check_unique(kind, merged)

        # Only the patched columns; the rest may have moved on since our read
        values = self._to_row(kind, changes)
        values["updated_at"] = utcnow()
        values["version"] = table.c.version + 1

        conditions = [table.c.id == entity_id]
        if expected_version is not None:
            conditions.append(table.c.version == expected_version)

        query = table.update().where(*conditions).values(**values).returning(table.c.id)
        updated = await self._execute_write(kind, merged, query, fetch=True)
        if not updated:
            # Someone else wrote between our read and our write
            raise StaleEntityError(kind, entity_id)

        return await self.get(kind, entity_id)

    async def delete(self, kind: EntityKind, entity_id: str) -> None:
        table = TABLES[kind]
        await self.get(kind, entity_id)
        await self.database.execute(table.delete().where(table.c.id == entity_id))

    @asynccontextmanager
    async def transaction(self):
        async with self.database.transaction():
            yield self
