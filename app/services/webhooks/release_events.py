import logging
from typing import List

from app.jobs.queue import JobName, JobQueue
from app.models.project import Project
from app.models.webhook import WebhookPayload

logger = logging.getLogger("webhooks")


async def handle_release_event(payload: WebhookPayload, projects: List[Project], queue: JobQueue) -> None:
    logger.info(f"Processing release event: {payload.action}")

    release = payload.release
    if release is None:
        logger.warning("release event without release data, ignoring")
        return

    for project in projects:
        await queue.send(JobName.release_analysis, {
            "project_id": project.id,
            "release_action": payload.action,
            "release_name": release.name,
            "release_tag": release.tag_name,
            "github_url": payload.repository.html_url,
        })
