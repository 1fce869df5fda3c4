import logging
from typing import List

from app.jobs.queue import JobName, JobQueue
from app.models.project import Project
from app.models.webhook import WebhookPayload

logger = logging.getLogger("webhooks")


async def handle_pull_request_event(payload: WebhookPayload, projects: List[Project], queue: JobQueue) -> None:
    logger.info(f"Processing pull request event: {payload.action}")

    pr = payload.pull_request
    if pr is None:
        logger.warning("pull_request event without pull_request data, ignoring")
        return

    for project in projects:
        await queue.send(JobName.pull_request_analysis, {
            "project_id": project.id,
            "pr_number": pr.number,
            "action": payload.action,
            "title": pr.title,
            "state": pr.state,
            "merged": pr.merged,
            "base_branch": pr.base.ref,
            "head_branch": pr.head.ref,
            "github_url": payload.repository.html_url,
        })
