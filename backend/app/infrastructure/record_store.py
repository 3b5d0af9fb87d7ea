"""SQL Record Store — RecordStore protocol over an AsyncSession and a DocumentMapping.

Invariants:
    - Every write method commits before returning (one document, one transaction)
    - Flushes inside a write are guarded too: a constraint hit at any point of the
      write (flush, array statement, commit) rolls back and raises RecordConflictError
    - Reads use populate_existing: objects loaded earlier in the session are refreshed,
      so pendingTasks changes made through association rows are always visible
    - update_one locks its row (FOR UPDATE) where the backend supports it
    - $addToSet and $pull are idempotent: re-applying them changes nothing

Design Decisions:
    - Patch language mirrors the filter language ($set/$addToSet/$pull over document
      field names) so services never touch columns directly
    - update_many with only scalar $set is a single bulk UPDATE … WHERE
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy import delete, insert, select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import RecordConflictError
from app.infrastructure.document_mappings import ArrayField, DocumentMapping
from app.infrastructure.predicate_compiler import (
    PredicateError, coerce_operand, compile_predicate, compile_sort,
)

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT")

_PATCH_OPERATORS = ("$set", "$addToSet", "$pull")


class SqlRecordStore(Generic[RecordT]):
    """Document-style persistence for one mapped resource."""

    def __init__(self, db: AsyncSession, mapping: DocumentMapping):
        self.db = db
        self.mapping = mapping

    # ─── Reads ──────────────────────────────────────────────────

    async def find(
        self,
        predicate: dict | None = None,
        *,
        sort: dict | None = None,
        skip: int = 0,
        limit: int = 0,
    ) -> list[RecordT]:
        query = self._select(predicate)
        order = compile_sort(self.mapping, sort)
        if self.mapping.natural_order is not None:
            order.append(self.mapping.natural_order.asc())
        if order:
            query = query.order_by(*order)
        if skip:
            query = query.offset(skip)
        if limit:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def find_one(self, predicate: dict) -> RecordT | None:
        result = await self.db.execute(self._select(predicate).limit(1))
        return result.scalars().first()

    async def find_by_id(self, record_id: UUID) -> RecordT | None:
        return await self.find_one({"_id": record_id})

    async def count_documents(self, predicate: dict | None = None) -> int:
        query = (
            select(func.count())
            .select_from(self.mapping.model)
            .where(compile_predicate(self.mapping, predicate))
        )
        return (await self.db.execute(query)).scalar_one()

    # ─── Writes ─────────────────────────────────────────────────

    async def insert(
        self, record: RecordT, *, arrays: dict[str, list] | None = None,
    ) -> RecordT:
        """Insert record; array fields (e.g. pendingTasks) written in the same commit."""
        async with self._write("insert"):
            self.db.add(record)
            if arrays:
                await self.db.flush()
                owner = getattr(record, self.mapping.id_column.key)
                await self._apply_array_ops([owner], {"$set": arrays})
        return record

    async def save(self, record: RecordT) -> RecordT:
        async with self._write("update"):
            self.db.add(record)
        return record

    async def update_one(self, predicate: dict, patch: dict) -> int:
        self._check_patch(patch)
        sets = self._scalar_sets(patch)
        async with self._write("update"):
            query = self._select(predicate).limit(1).with_for_update()
            record = (await self.db.execute(query)).scalars().first()
            if record is None:
                return 0
            owner = getattr(record, self.mapping.id_column.key)
            for name, value in sets.items():
                setattr(record, self.mapping.fields[name].key, value)
            await self._apply_array_ops([owner], patch)
        return 1

    async def update_many(self, predicate: dict, patch: dict) -> int:
        self._check_patch(patch)
        where = compile_predicate(self.mapping, predicate)
        sets = self._scalar_sets(patch)
        values = {self.mapping.fields[n].key: v for n, v in sets.items()}

        if not self._has_array_ops(patch):
            if not values:
                return 0
            async with self._write("update"):
                result = await self.db.execute(
                    update(self.mapping.model).where(where).values(**values),
                )
            return result.rowcount

        async with self._write("update"):
            owners = list(await self.db.scalars(
                select(self.mapping.id_column).where(where),
            ))
            if not owners:
                return 0
            if values:
                await self.db.execute(
                    update(self.mapping.model)
                    .where(self.mapping.id_column.in_(owners))
                    .values(**values),
                )
            await self._apply_array_ops(owners, patch)
        return len(owners)

    async def delete_one(self, record: RecordT) -> None:
        async with self._write("delete"):
            owner = getattr(record, self.mapping.id_column.key)
            for array in self.mapping.arrays.values():
                await self._pull(array, [owner], None)
            await self.db.delete(record)

    # ─── Helpers ────────────────────────────────────────────────

    @asynccontextmanager
    async def _write(self, operation: str) -> AsyncIterator[None]:
        """One write, one commit; any IntegrityError inside → RecordConflictError."""
        try:
            yield
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(
                f"{self.mapping.resource} {operation} violated a constraint: {e.orig}",
            )
            raise RecordConflictError(self.mapping.resource, operation) from e

    def _select(self, predicate: dict | None):
        return (
            select(self.mapping.model)
            .where(compile_predicate(self.mapping, predicate))
            .execution_options(populate_existing=True)
        )

    def _check_patch(self, patch: dict) -> None:
        if not patch:
            raise PredicateError("empty patch", clause="patch")
        for op, fields in patch.items():
            if op not in _PATCH_OPERATORS:
                raise PredicateError(f"unsupported update '{op}'", clause="patch")
            if not isinstance(fields, dict):
                raise PredicateError(f"'{op}' expects an object", clause="patch")
            for name in fields:
                known = name in self.mapping.fields or name in self.mapping.arrays
                if not known or name == "_id":
                    raise PredicateError(f"cannot update '{name}'", clause="patch")
                if op != "$set" and name not in self.mapping.arrays:
                    raise PredicateError(f"'{op}' needs an array field", clause="patch")

    def _scalar_sets(self, patch: dict) -> dict:
        return {
            name: coerce_operand(self.mapping.fields[name], value, name, "patch")
            for name, value in patch.get("$set", {}).items()
            if name in self.mapping.fields
        }

    def _has_array_ops(self, patch: dict) -> bool:
        return bool(
            patch.get("$addToSet") or patch.get("$pull")
            or any(n in self.mapping.arrays for n in patch.get("$set", {}))
        )

    async def _apply_array_ops(self, owners: list[UUID], patch: dict) -> None:
        for name, value in patch.get("$set", {}).items():
            if name in self.mapping.arrays:
                array = self.mapping.arrays[name]
                values = self._array_values(array, name, value, "$set")
                await self._pull(array, owners, None)
                await self._add_to_set(array, owners, values)
        for name, value in patch.get("$pull", {}).items():
            array = self.mapping.arrays[name]
            if isinstance(value, dict) and set(value) == {"$in"}:
                value = value["$in"]
            await self._pull(
                array, owners, self._array_values(array, name, value, "$pull"),
            )
        for name, value in patch.get("$addToSet", {}).items():
            array = self.mapping.arrays[name]
            if isinstance(value, dict) and set(value) == {"$each"}:
                value = value["$each"]
            await self._add_to_set(
                array, owners, self._array_values(array, name, value, "$addToSet"),
            )

    @staticmethod
    def _array_values(
        array: ArrayField, name: str, value: object, op: str,
    ) -> list:
        raw = value if isinstance(value, list) else [value]
        if op == "$set" and not isinstance(value, list):
            raise PredicateError(f"'$set' on '{name}' expects an array", "patch")
        values = [coerce_operand(array.value, v, name, "patch") for v in raw]
        if None in values:
            raise PredicateError(f"'{name}' cannot hold null", "patch")
        return list(dict.fromkeys(values))

    async def _pull(
        self, array: ArrayField, owners: list[UUID], values: list | None,
    ) -> None:
        statement = delete(array.model).where(array.owner.in_(owners))
        if values is not None:
            if not values:
                return
            statement = statement.where(array.value.in_(values))
        await self.db.execute(statement)

    async def _add_to_set(
        self, array: ArrayField, owners: list[UUID], values: list,
    ) -> None:
        if not values:
            return
        rows = []
        for owner in owners:
            present = set(await self.db.scalars(
                select(array.value).where(
                    array.owner == owner, array.value.in_(values),
                ),
            ))
            rows.extend(
                {array.owner.key: owner, array.value.key: value}
                for value in values if value not in present
            )
        if rows:
            await self.db.execute(insert(array.model), rows)

