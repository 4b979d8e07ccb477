"""
In-Memory Entity Store
Used by the test-suite and for local runs with STORE_BACKEND=memory
"""

import asyncio
import copy
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from membership.errors import ConflictError, NotFoundError
from membership.store.base import (
    KIND_LABELS,
    MANAGED_FIELDS,
    UNIQUE_CONSTRAINTS,
    EntityKind,
    EntityStore,
    StaleEntityError,
    describe_conflict,
    matches_filters,
)
from membership.time_utils import utcnow


class InMemoryEntityStore(EntityStore):
    """
    Dict-backed store

    Single operations never await, so they are atomic on the event loop.
    Transactions take a lock and journal the original of every entity they
    write. When the block raises only those entities are restored, so writes
    other tasks make meanwhile survive the rollback.
    """

    def __init__(self):
        self._data: dict[EntityKind, dict[str, dict]] = {kind: {} for kind in EntityKind}
        self._lock = asyncio.Lock()
        self._owner: Optional[asyncio.Task] = None
        self._journal: Optional[dict[tuple[EntityKind, str], Optional[dict]]] = None

    def _check_unique(self, kind: EntityKind, doc: dict) -> None:
        for fields in UNIQUE_CONSTRAINTS[kind]:
            values = tuple(doc.get(field) for field in fields)
            if any(value is None for value in values):
                continue
            for other in self._data[kind].values():
                if other["id"] == doc["id"]:
                    continue
                if tuple(other.get(field) for field in fields) == values:
                    raise ConflictError(describe_conflict(kind, fields, doc))

    def _remember(self, kind: EntityKind, entity_id: str) -> None:
        if self._journal is None or self._owner is not asyncio.current_task():
            return
        key = (kind, entity_id)
        if key not in self._journal:
            self._journal[key] = copy.deepcopy(self._data[kind].get(entity_id))

    def _require(self, kind: EntityKind, entity_id: str) -> dict:
        doc = self._data[kind].get(entity_id)
        if doc is None:
            raise NotFoundError(f"{KIND_LABELS[kind]} not found")
        return doc

    async def create(self, kind: EntityKind, data: dict) -> dict:
        now = utcnow()
        doc = copy.deepcopy(data)
        doc["id"] = doc.get("id") or str(uuid.uuid4())
        doc["created_at"] = now
        doc["updated_at"] = now
        doc["version"] = 1

        if doc["id"] in self._data[kind]:
            raise ConflictError(f"{KIND_LABELS[kind]} {doc['id']} already exists")
        self._check_unique(kind, doc)

        self._remember(kind, doc["id"])
        self._data[kind][doc["id"]] = doc
        return copy.deepcopy(doc)

    async def get(self, kind: EntityKind, entity_id: str) -> dict:
        return copy.deepcopy(self._require(kind, entity_id))

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
        docs = [doc for doc in self._data[kind].values() if matches_filters(doc, filters)]

        if order_by:
            # None sorts first ascending, last descending
            docs.sort(
                key=lambda doc: (doc.get(order_by) is not None, doc.get(order_by)),
                reverse=descending,
            )

        docs = docs[offset:]
        if limit is not None:
            docs = docs[:limit]
        return [copy.deepcopy(doc) for doc in docs]

    async def count(self, kind: EntityKind, filters: Optional[dict] = None) -> int:
        return sum(1 for doc in self._data[kind].values() if matches_filters(doc, filters))

    async def update(
        self,
        kind: EntityKind,
        entity_id: str,
        patch: dict,
        *,
        expected_version: Optional[int] = None,
    ) -> dict:
        current = self._require(kind, entity_id)
        if expected_version is not None and current["version"] != expected_version:
            raise StaleEntityError(kind, entity_id)

        merged = copy.deepcopy(current)
        merged.update({
            key: copy.deepcopy(value)
            for key, value in patch.items()
            if key not in MANAGED_FIELDS
        })
        self._check_unique(kind, merged)

        merged["updated_at"] = utcnow()
        merged["version"] = current["version"] + 1
        self._remember(kind, entity_id)
        self._data[kind][entity_id] = merged
        return copy.deepcopy(merged)

    async def delete(self, kind: EntityKind, entity_id: str) -> None:
        self._require(kind, entity_id)
        self._remember(kind, entity_id)
        del self._data[kind][entity_id]

    @asynccontextmanager
    async def transaction(self):
        task = asyncio.current_task()
        if self._owner is not None and self._owner is task:
            # Nested block joins the outer transaction
            yield self
            return

        async with self._lock:
            self._owner = task
            self._journal = {}
            try:
                yield self
            except BaseException:
                self._rollback()
                raise
            finally:
                self._owner = None
                self._journal = None

    def _rollback(self) -> None:
        for (kind, entity_id), original in self._journal.items():
            if original is None:
                self._data[kind].pop(entity_id, None)
            else:
                self._data[kind][entity_id] = original
