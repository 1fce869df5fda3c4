"""
File Processor — incremental re-indexing of changed paths.

For each path: gone upstream → drop from index; otherwise fetch, summarize,
embed and upsert. Each path is isolated: a failure is recorded as an "error"
result and the batch continues. The batch is best-effort, not transactional.
"""

import logging
from collections import Counter
from typing import List, Sequence

from sqlalchemy.ext.asyncio import async_sessionmaker

from app.adapters.base import EmbeddingAdapter, SummarizationAdapter
from app.models.reindex import ReindexingResult, ReindexStatus
from app.services.github_client import GitHubClient
from app.services.index_store import IndexStore

logger = logging.getLogger("file_processor")

SKIP_CONTENT_UNAVAILABLE = "content_unavailable"
SKIP_EMPTY_SUMMARY = "empty_summary"


class FileProcessor:
    def __init__(
        self,
        github: GitHubClient,
        summarizer: SummarizationAdapter,
        embedder: EmbeddingAdapter,
        session_factory: async_sessionmaker,
    ):
        self.github = github
        self.summarizer = summarizer
        self.embedder = embedder
        self.session_factory = session_factory

    async def reindex_changed_files(
        self,
        project_id: str,
        repo_url: str,
        changed_paths: Sequence[str],
    ) -> List[ReindexingResult]:
        logger.info(f"[{project_id}] Smart re-indexing {len(changed_paths)} files")
        owner, repo = self.github.parse_repository_url(repo_url)
        results: List[ReindexingResult] = []

        for path in changed_paths:
            try:
                results.append(await self._process_path(project_id, owner, repo, path))
            except Exception as e:
                logger.error(f"[{project_id}] Error re-indexing {path}: {e}")
                results.append(ReindexingResult(file_path=path, status=ReindexStatus.error, error=str(e)))

        counts = Counter(r.status.value for r in results)
        logger.info(
            f"[{project_id}] Re-indexing completed: reindexed={counts['reindexed']} "
            f"removed={counts['removed']} skipped={counts['skipped']} errors={counts['error']}"
        )
        return results

    async def _process_path(self, project_id: str, owner: str, repo: str, path: str) -> ReindexingResult:
        # A failed existence check also lands here, so a network blip can drop a live file
        if not await self.github.check_file_exists(owner, repo, path):
            async with self.session_factory() as db:
                await IndexStore.delete_paths(db, project_id, [path])
            logger.info(f"[{project_id}] Removed {path} from index")
            return ReindexingResult(file_path=path, status=ReindexStatus.removed)

        content = await self.github.get_file_content(owner, repo, path)
        if content is None:
            logger.warning(f"[{project_id}] Could not fetch content for {path}, skipping")
            return ReindexingResult(file_path=path, status=ReindexStatus.skipped, error=SKIP_CONTENT_UNAVAILABLE)

        summary = await self.summarizer.summarize(content, path)
        if not summary or not summary.strip():
            logger.warning(f"[{project_id}] Empty summary for {path}, skipping")
            return ReindexingResult(file_path=path, status=ReindexStatus.skipped, error=SKIP_EMPTY_SUMMARY)

        embedding = await self.embedder.embed(summary)

        async with self.session_factory() as db:
            await IndexStore.upsert(db, project_id, path, content, summary, embedding)

        logger.info(f"[{project_id}] Re-indexed {path}")
        return ReindexingResult(file_path=path, status=ReindexStatus.reindexed)
