"""Content store — generic document operations over one collection.

Callers pass the predicates and record shapes produced by
``app.services.scope``; the store only translates them to SQL.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from app.models.base import utcnow
from app.models.content import ContentRecord

# Columns of the row, never part of the stored document
RESERVED_FIELDS = frozenset({"id", "_id", "collection", "organization_id", "created_at", "updated_at"})


def predicate_clauses(model: type[SQLModel], predicate: dict[str, Any]) -> list:
    """Equality clauses for a ``{column: value}`` predicate."""
    return [getattr(model, column) == value for column, value in predicate.items()]


class ContentStore:
    def __init__(self, session: AsyncSession, collection: str) -> None:
        self._session = session
        self.collection = collection

    def _where(self, predicate: dict[str, Any]) -> list:
        return [
            ContentRecord.collection == self.collection,
            *predicate_clauses(ContentRecord, predicate),
        ]

    async def find(self, predicate: dict[str, Any]) -> list[ContentRecord]:
        stmt = (
            select(ContentRecord)
            .where(*self._where(predicate))
            .order_by(ContentRecord.created_at.asc())  # type: ignore[union-attr]
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def find_one(self, predicate: dict[str, Any]) -> ContentRecord | None:
        result = await self._session.execute(
            select(ContentRecord).where(*self._where(predicate))
        )
        return result.scalars().first()

    async def insert_one(self, record: dict[str, Any]) -> ContentRecord:
        row = ContentRecord(
            organization_id=record["organization_id"],
            collection=self.collection,
            data={k: v for k, v in record.items() if k not in RESERVED_FIELDS},
        )
        self._session.add(row)
        await self._session.commit()
        await self._session.refresh(row)
        return row

    async def update_one(
        self, predicate: dict[str, Any], patch: dict[str, Any],
    ) -> ContentRecord | None:
        """Merge ``patch`` into the matching document. None when nothing matched."""
        row = await self.find_one(predicate)
        if row is None:
            return None
        row.data = {
            **row.data,
            **{k: v for k, v in patch.items() if k not in RESERVED_FIELDS},
        }
        row.updated_at = utcnow()
        self._session.add(row)
        await self._session.commit()
        await self._session.refresh(row)
        return row

    async def delete_one(self, predicate: dict[str, Any]) -> int:
        row = await self.find_one(predicate)
        if row is None:
            return 0
        await self._session.delete(row)
        await self._session.commit()
        return 1

