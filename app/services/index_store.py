"""
Index Store — persistence for SourceFileRecord rows (one per project + path).

Scalar fields go through the ORM; the embedding column is always written by a
separate UPDATE keyed on the row id, since the vector type is not a plain
structured field on every backend.
"""

import logging
import math
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.project import SourceFileRecord

logger = logging.getLogger("index_store")


def _cosine_distance(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    if norm == 0:
        return 1.0
    return 1.0 - dot / norm


class IndexStore:
    @staticmethod
    async def find(db: AsyncSession, project_id: str, file_name: str) -> Optional[SourceFileRecord]:
        result = await db.execute(
            select(SourceFileRecord).where(
                SourceFileRecord.project_id == project_id,
                SourceFileRecord.file_name == file_name,
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def upsert(
        db: AsyncSession,
        project_id: str,
        file_name: str,
        source_code: str,
        summary: str,
        embedding: List[float],
    ) -> SourceFileRecord:
        """Update the existing record in place, or create one; then write its vector."""
        record = await IndexStore.find(db, project_id, file_name)

        if record is not None:
            record.summary = summary
            record.source_code = source_code
            record.updated_at = datetime.now(timezone.utc)
        else:
            record = SourceFileRecord(
                project_id=project_id,
                file_name=file_name,
                source_code=source_code,
                summary=summary,
            )
            db.add(record)

        await db.flush()
        await IndexStore.write_embedding(db, record.id, embedding)
        await db.commit()
        return record

    @staticmethod
    async def write_embedding(db: AsyncSession, record_id: str, embedding: List[float]) -> None:
        await db.execute(
            update(SourceFileRecord)
            .where(SourceFileRecord.id == record_id)
            .values(summary_embedding=embedding)
        )

    @staticmethod
    async def delete_paths(db: AsyncSession, project_id: str, file_names: Sequence[str]) -> int:
        if not file_names:
            return 0
        result = await db.execute(
            delete(SourceFileRecord).where(
                SourceFileRecord.project_id == project_id,
                SourceFileRecord.file_name.in_(list(file_names)),
            )
        )
        await db.commit()
        return result.rowcount or 0

    @staticmethod
    async def search_similar(
        db: AsyncSession,
        project_id: str,
        embedding: List[float],
        limit: int = 10,
    ) -> List[Tuple[SourceFileRecord, float]]:
        """
        Nearest records by cosine distance (ascending).
        Postgres uses pgvector; other dialects compute it in Python.
        """
        dialect_name = db.bind.dialect.name

        if dialect_name == "postgresql":
            distance = SourceFileRecord.summary_embedding.cosine_distance(embedding).label("distance")
            stmt = (
                select(SourceFileRecord, distance)
                .where(
                    SourceFileRecord.project_id == project_id,
                    SourceFileRecord.summary_embedding.is_not(None),
                )
                .order_by(distance)
                .limit(limit)
            )
            rows = (await db.execute(stmt)).all()
            return [(row[0], float(row[1])) for row in rows]

        # SQLite / generic fallback: fine for dev-sized indexes
        result = await db.execute(
            select(SourceFileRecord).where(
                SourceFileRecord.project_id == project_id,
                SourceFileRecord.summary_embedding.is_not(None),
            )
        )
        scored = [
            (rec, _cosine_distance(rec.summary_embedding, embedding))
            for rec in result.scalars().all()
        ]
        scored.sort(key=lambda pair: (pair[1], pair[0].file_name))
        return scored[:limit]
