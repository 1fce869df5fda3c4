"""
Job Handlers — consumers for the five JobName events.

  files_reindex         → FileProcessor over job files, in small batches
  smart_reindex         → FileProcessor, then structure analysis, then last_reindex log
  commit_process        → CommitRecord upsert + diff summary
  pull_request_analysis → PR risk from changed files, last_pull_request log
  release_analysis      → last_release log

Every handler is safe to run twice for the same job (at-least-once delivery).
"""

import asyncio
import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.adapters.base import SummarizationAdapter
from app.config import get_settings
from app.errors import GitHubClientError
from app.jobs.queue import Job, JobName, JobQueue
from app.models.project import CommitProcessingStatus, CommitRecord
from app.models.reindex import ReindexingResult
from app.services.file_processor import FileProcessor
from app.services.github_client import GitHubClient
from app.services.project_store import ProjectStore
from app.services.reindex_policy import should_trigger_reindexing
from app.services.structure_analyzer import StructureAnalyzer

logger = logging.getLogger("job_handlers")

# ─── PR risk thresholds (total changed lines) ───────────

PR_HIGH_RISK_LINES = 500
PR_MEDIUM_RISK_LINES = 100


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _summarize_results(results: List[ReindexingResult]) -> Dict[str, int]:
    counts = Counter(r.status.value for r in results)
    return {
        "files_processed": counts["reindexed"],
        "files_removed": counts["removed"],
        "files_skipped": counts["skipped"],
        "errors": counts["error"],
    }


def pr_risk_level(total_changed_lines: int) -> str:
    if total_changed_lines > PR_HIGH_RISK_LINES:
        return "high"
    if total_changed_lines > PR_MEDIUM_RISK_LINES:
        return "medium"
    return "low"


class JobHandlers:
    def __init__(
        self,
        session_factory: async_sessionmaker,
        github: GitHubClient,
        summarizer: SummarizationAdapter,
        file_processor: FileProcessor,
        structure_analyzer: StructureAnalyzer,
        projects: ProjectStore,
        batch_size: Optional[int] = None,
        batch_delay_seconds: Optional[float] = None,
    ):
        settings = get_settings()
        self.session_factory = session_factory
        self.github = github
        self.summarizer = summarizer
        self.file_processor = file_processor
        self.structure_analyzer = structure_analyzer
        self.projects = projects
        self.batch_size = batch_size or settings.REINDEX_BATCH_SIZE
        self.batch_delay_seconds = (
            batch_delay_seconds if batch_delay_seconds is not None else settings.REINDEX_BATCH_DELAY_SECONDS
        )

    async def _require_project(self, project_id: str) -> None:
        async with self.session_factory() as db:
            await ProjectStore.get_active(db, project_id)

    # ── project.files.reindex.requested ─────────────

    async def files_reindex(self, job: Job) -> List[ReindexingResult]:
        project_id = job.data["project_id"]
        files: List[str] = job.data.get("files", [])
        repo_url = job.data["github_url"]

        logger.info(f"[{project_id}] Processing {len(files)} file changes (reason: {job.data.get('reason')})")

        results: List[ReindexingResult] = []
        for start in range(0, len(files), self.batch_size):
            batch = files[start:start + self.batch_size]
            results.extend(await self.file_processor.reindex_changed_files(project_id, repo_url, batch))

            if start + self.batch_size < len(files) and self.batch_delay_seconds > 0:
                await asyncio.sleep(self.batch_delay_seconds)

        logger.info(f"[{project_id}] File changes processed: {_summarize_results(results)}")
        return results

    # ── project.smart.reindex.requested ─────────────

    async def smart_reindex(self, job: Job) -> Dict[str, Any]:
        project_id = job.data["project_id"]
        repo_url = job.data["github_url"]
        changed_files: List[str] = job.data.get("changed_files", [])
        reason = job.data.get("reason")

        logger.info(f"[{project_id}] Smart re-indexing {len(changed_files)} files (reason: {reason})")
        await self._require_project(project_id)

        results = await self.file_processor.reindex_changed_files(project_id, repo_url, changed_files)

        try:
            await self.structure_analyzer.analyze_codebase_structure(project_id, repo_url)
        except GitHubClientError as e:
            logger.warning(f"[{project_id}] Structure analysis after re-index failed: {e}")

        entry = {
            "timestamp": _now_iso(),
            "commit_hash": job.data.get("commit_hash"),
            "reason": reason,
            "changed_files": changed_files,
            "results": [r.model_dump(mode="json") for r in results],
            **_summarize_results(results),
        }
        await self.projects.merge(project_id, "last_reindex", entry)

        logger.info(f"[{project_id}] Smart re-indexing completed")
        return entry

    # ── project.commit.process.requested ────────────

    @staticmethod
    async def _get_or_create_commit(db: AsyncSession, project_id: str, commit: Dict[str, Any]) -> CommitRecord:
        stmt = select(CommitRecord).where(
            CommitRecord.project_id == project_id,
            CommitRecord.commit_hash == commit["commit_hash"],
        )
        record = (await db.execute(stmt)).scalar_one_or_none()
        if record is not None:
            return record

        db.add(CommitRecord(
            project_id=project_id,
            commit_hash=commit["commit_hash"],
            message=commit.get("commit_message") or "",
            author_name=commit.get("commit_author_name") or "",
            author_email=commit.get("commit_author_email"),
            committed_at=commit.get("commit_date"),
            processing_status=CommitProcessingStatus.pending,
        ))
        try:
            await db.commit()
        except IntegrityError:
            # A concurrent delivery inserted it first
            await db.rollback()
        return (await db.execute(stmt)).scalar_one()

    async def commit_process(self, job: Job) -> CommitProcessingStatus:
        project_id = job.data["project_id"]
        commit = job.data["commit"]
        commit_hash = commit["commit_hash"]

        async with self.session_factory() as db:
            record = await self._get_or_create_commit(db, project_id, commit)
            if record.processing_status == CommitProcessingStatus.completed:
                logger.info(f"[{project_id}] Commit {commit_hash[:8]} already processed")
                return record.processing_status

            record.processing_status = CommitProcessingStatus.processing
            await db.commit()

            owner, repo = self.github.parse_repository_url(job.data["github_url"])
            try:
                diff = await self.github.get_commit_diff(owner, repo, commit_hash)
                summary = await self.summarizer.summarize_commit(diff)
                if summary and summary.strip():
                    status = CommitProcessingStatus.completed
                else:
                    status = CommitProcessingStatus.failed
                    summary = f"Processing failed: Unable to generate summary for commit {commit_hash[:8]}"
            except Exception as e:
                logger.error(f"[{project_id}] Error summarizing commit {commit_hash}: {e}")
                status = CommitProcessingStatus.failed
                summary = f"Processing failed: {str(e)[:100]}"

            record.summary = summary
            record.processing_status = status
            await db.commit()

        logger.info(f"[{project_id}] Commit {commit_hash[:8]} - Status: {status.value}")
        return status

    # ── pullrequest.analysis.requested ──────────────

    async def pull_request_analysis(self, job: Job) -> Dict[str, Any]:
        data = job.data
        project_id = data["project_id"]
        pr_number = data["pr_number"]

        logger.info(f"[{project_id}] Analyzing PR #{pr_number} (action: {data.get('action')})")

        owner, repo = self.github.parse_repository_url(data["github_url"])
        files = await self.github.list_pull_request_files(owner, repo, pr_number)

        affected = [f["filename"] for f in files if f.get("filename")]
        changed_lines = sum(int(f.get("changes", 0) or 0) for f in files)
        risk = pr_risk_level(changed_lines)
        significant = should_trigger_reindexing(affected)

        recommendations: List[str] = []
        if risk == "high":
            recommendations.append("Consider splitting this pull request into smaller changes")
        if significant:
            recommendations.append("Merging will trigger a smart re-index of the project")

        analysis = {
            "pr_number": pr_number,
            "action": data.get("action"),
            "title": data.get("title"),
            "state": data.get("state"),
            "merged": data.get("merged", False),
            "base_branch": data.get("base_branch"),
            "head_branch": data.get("head_branch"),
            "github_url": data["github_url"],
            "risk_level": risk,
            "changed_lines": changed_lines,
            "affected_files": affected,
            "significant": significant,
            "recommendations": recommendations,
            "timestamp": _now_iso(),
        }
        await self.projects.merge(project_id, "last_pull_request", analysis)

        logger.info(f"[{project_id}] PR #{pr_number} analysis completed: risk={risk} files={len(affected)}")
        return analysis

    # ── project.release.analysis.requested ──────────

    async def release_analysis(self, job: Job) -> Dict[str, Any]:
        data = job.data
        project_id = data["project_id"]

        entry = {
            "release_action": data.get("release_action"),
            "release_name": data.get("release_name"),
            "release_tag": data.get("release_tag"),
            "github_url": data.get("github_url"),
            "timestamp": _now_iso(),
        }
        await self.projects.merge(project_id, "last_release", entry)

        logger.info(f"[{project_id}] Release {entry['release_tag']} recorded ({entry['release_action']})")
        return entry


def register_handlers(queue: JobQueue, handlers: JobHandlers) -> None:
    queue.register(JobName.files_reindex, handlers.files_reindex)
    queue.register(JobName.smart_reindex, handlers.smart_reindex)
    queue.register(JobName.commit_process, handlers.commit_process)
    queue.register(JobName.pull_request_analysis, handlers.pull_request_analysis)
    queue.register(JobName.release_analysis, handlers.release_analysis)
