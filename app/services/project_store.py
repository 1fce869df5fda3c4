"""
Project lookups and the processing-logs blob.

The blob on Project.processing_logs is shared by the structure analyzer and the
background jobs, so writes go through merge(): read, merge one key, then a
compare-and-swap on logs_version. A lost race re-reads and retries.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import get_settings
from app.errors import ConcurrentUpdateError, ProjectNotFoundError
from app.models.project import Project

logger = logging.getLogger("project_store")


class ProjectStore:
    def __init__(self, session_factory: async_sessionmaker, max_attempts: Optional[int] = None):
        self.session_factory = session_factory
        self.max_attempts = max_attempts or get_settings().LOGS_MERGE_MAX_ATTEMPTS

    @staticmethod
    async def get_active(db: AsyncSession, project_id: str) -> Project:
        project = await db.get(Project, project_id)
        if project is None or project.deleted_at is not None:
            raise ProjectNotFoundError(f"Project {project_id} not found")
        return project

    @staticmethod
    async def find_by_repository(db: AsyncSession, repo_url: str) -> List[Project]:
        """Exact, case-sensitive match on repo_url; soft-deleted projects excluded."""
        result = await db.execute(
            select(Project).where(Project.repo_url == repo_url, Project.deleted_at.is_(None))
        )
        return list(result.scalars().all())

    @staticmethod
    async def soft_delete(db: AsyncSession, project_ids: List[str]) -> None:
        if not project_ids:
            return
        await db.execute(
            update(Project)
            .where(Project.id.in_(project_ids))
            .values(deleted_at=datetime.now(timezone.utc))
        )
        await db.commit()

    async def get_logs(self, project_id: str) -> Dict[str, Any]:
        async with self.session_factory() as db:
            project = await db.get(Project, project_id)
            if project is None:
                raise ProjectNotFoundError(f"Project {project_id} not found")
            return dict(project.processing_logs or {})

    async def merge(self, project_id: str, key: str, value: Any) -> Dict[str, Any]:
        """Set processing_logs[key] = value without clobbering concurrent writers."""
        for attempt in range(1, self.max_attempts + 1):
            async with self.session_factory() as db:
                row = (await db.execute(
                    select(Project.processing_logs, Project.logs_version)
                    .where(Project.id == project_id)
                )).one_or_none()
                if row is None:
                    raise ProjectNotFoundError(f"Project {project_id} not found")

                logs = dict(row.processing_logs or {})
                logs[key] = value

                result = await db.execute(
                    update(Project)
                    .where(Project.id == project_id, Project.logs_version == row.logs_version)
                    .values(processing_logs=logs, logs_version=row.logs_version + 1)
                )
                await db.commit()

                if result.rowcount == 1:
                    return logs

            logger.warning(
                f"[{project_id}] processing_logs changed underneath '{key}' write "
                f"(attempt {attempt}/{self.max_attempts}), retrying"
            )

        raise ConcurrentUpdateError(
            f"Could not merge '{key}' into processing logs of project {project_id}"
        )
