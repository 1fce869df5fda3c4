import logging
from typing import List

from app.models.project import Project
from app.models.webhook import WebhookPayload
from app.services.webhooks.database_operations import WebhookDatabaseOperations

logger = logging.getLogger("webhooks")


async def handle_repository_event(
    payload: WebhookPayload,
    projects: List[Project],
    ops: WebhookDatabaseOperations,
) -> None:
    logger.info(f"Processing repository event: {payload.action}")

    # Only deletion matters; renames, transfers etc. are no-ops
    if payload.action == "deleted":
        await ops.soft_delete_projects(projects)
