import logging
from typing import List

from app.jobs.queue import JobName, JobQueue
from app.models.project import Project
from app.models.reindex import FileChangeSet
from app.models.webhook import WebhookPayload
from app.services.reindex_policy import should_trigger_reindexing
from app.services.webhooks.database_operations import WebhookDatabaseOperations

logger = logging.getLogger("webhooks")


async def handle_push_event(
    payload: WebhookPayload,
    projects: List[Project],
    ops: WebhookDatabaseOperations,
    queue: JobQueue,
) -> None:
    """
    Default-branch pushes only. Per project: ingest every commit in the push,
    apply the head commit's file changes, and queue a smart re-index when the
    change set is significant.
    """
    repository = payload.repository
    head_commit = payload.head_commit

    if payload.ref != f"refs/heads/{repository.default_branch}":
        logger.info(f"Ignoring push to non-default branch: {payload.ref}")
        return

    if head_commit is None:
        logger.info("No head commit in push event")
        return

    logger.info(f"Processing push with {len(payload.commits)} commits to {repository.default_branch}")

    # Head commit only, not the union over every commit in the push
    changes = FileChangeSet(
        added=head_commit.added,
        modified=head_commit.modified,
        removed=head_commit.removed,
    )
    changed_paths = changes.all_paths()

    for project in projects:
        for commit in payload.commits:
            await ops.process_commit_update(project.id, commit, repository.html_url)

        if changed_paths:
            await ops.process_file_changes(project.id, changes, repository.html_url)

        if should_trigger_reindexing(changed_paths):
            await queue.send(JobName.smart_reindex, {
                "project_id": project.id,
                "github_url": repository.html_url,
                "changed_files": changed_paths,
                "commit_hash": head_commit.id,
                "reason": "significant_changes",
            })
