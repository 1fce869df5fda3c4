"""
Store-side effects of webhook events: commit ingestion, index deletes for
removed files, re-index enqueues, project lookup and soft delete.
"""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.jobs.queue import JobName, JobQueue
from app.models.project import CommitRecord, Project
from app.models.reindex import FileChangeSet
from app.models.webhook import GitHubCommit
from app.services.index_store import IndexStore
from app.services.project_store import ProjectStore

logger = logging.getLogger("webhooks")


class WebhookDatabaseOperations:
    def __init__(self, session_factory: async_sessionmaker, queue: JobQueue):
        self.session_factory = session_factory
        self.queue = queue

    async def get_projects_for_repository(self, repo_url: str) -> List[Project]:
        async with self.session_factory() as db:
            return await ProjectStore.find_by_repository(db, repo_url)

    async def process_commit_update(self, project_id: str, commit: GitHubCommit, repo_url: str) -> bool:
        """Enqueue commit processing unless (project, hash) is already recorded. True if enqueued."""
        try:
            async with self.session_factory() as db:
                existing = (await db.execute(
                    select(CommitRecord.id).where(
                        CommitRecord.project_id == project_id,
                        CommitRecord.commit_hash == commit.id,
                    )
                )).scalar_one_or_none()

            if existing is not None:
                logger.info(f"Commit {commit.id} already exists, skipping")
                return False

            await self.queue.send(JobName.commit_process, {
                "project_id": project_id,
                "commit": {
                    "commit_hash": commit.id,
                    "commit_message": commit.message,
                    "commit_author_name": commit.author.name,
                    "commit_author_email": commit.author.email,
                    "commit_date": commit.timestamp,
                },
                "github_url": repo_url,
                "is_webhook_triggered": True,
            })
            logger.info(f"Queued commit {commit.id} for processing")
            return True
        except Exception as e:
            logger.error(f"Error processing commit update for {commit.id}: {e}")
            return False

    async def process_file_changes(self, project_id: str, changes: FileChangeSet, repo_url: str) -> None:
        """Drop removed paths from the index now; queue added + modified for re-indexing."""
        logger.info(
            f"[{project_id}] File changes: added={len(changes.added)} "
            f"modified={len(changes.modified)} removed={len(changes.removed)}"
        )
        try:
            if changes.removed:
                async with self.session_factory() as db:
                    deleted = await IndexStore.delete_paths(db, project_id, changes.removed)
                logger.info(f"[{project_id}] Removed {deleted} index records for {len(changes.removed)} deleted files")

            to_reindex = [*changes.added, *changes.modified]
            if to_reindex:
                await self.queue.send(JobName.files_reindex, {
                    "project_id": project_id,
                    "files": to_reindex,
                    "github_url": repo_url,
                    "reason": "webhook_file_changes",
                })
        except Exception as e:
            logger.error(f"Error processing file changes for project {project_id}: {e}")

    async def soft_delete_projects(self, projects: List[Project]) -> None:
        async with self.session_factory() as db:
            await ProjectStore.soft_delete(db, [p.id for p in projects])
        logger.info(f"Archived {len(projects)} projects for deleted repository")
