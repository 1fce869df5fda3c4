"""
WebhookProcessor — dispatch facade over the per-event handlers.

Public interface:
  handle_push_event / handle_pull_request_event /
  handle_repository_event / handle_release_event (payload, projects)
  get_projects_for_repository(repo_url)
  dispatch(event, payload, projects) -> bool   (False for unhandled event types)
"""

import logging
from typing import List

from sqlalchemy.ext.asyncio import async_sessionmaker

from app.jobs.queue import JobQueue
from app.models.project import Project
from app.models.webhook import WebhookPayload
from app.services.webhooks.database_operations import WebhookDatabaseOperations
from app.services.webhooks.pull_request_events import handle_pull_request_event
from app.services.webhooks.push_events import handle_push_event
from app.services.webhooks.release_events import handle_release_event
from app.services.webhooks.repository_events import handle_repository_event

logger = logging.getLogger("webhooks")

HANDLED_EVENTS = ("push", "pull_request", "repository", "release")


class WebhookProcessor:
    def __init__(self, session_factory: async_sessionmaker, queue: JobQueue):
        self.queue = queue
        self.ops = WebhookDatabaseOperations(session_factory, queue)

    async def handle_push_event(self, payload: WebhookPayload, projects: List[Project]) -> None:
        await handle_push_event(payload, projects, self.ops, self.queue)

    async def handle_pull_request_event(self, payload: WebhookPayload, projects: List[Project]) -> None:
        await handle_pull_request_event(payload, projects, self.queue)

    async def handle_repository_event(self, payload: WebhookPayload, projects: List[Project]) -> None:
        await handle_repository_event(payload, projects, self.ops)

    async def handle_release_event(self, payload: WebhookPayload, projects: List[Project]) -> None:
        await handle_release_event(payload, projects, self.queue)

    async def get_projects_for_repository(self, repo_url: str) -> List[Project]:
        return await self.ops.get_projects_for_repository(repo_url)

    async def dispatch(self, event: str, payload: WebhookPayload, projects: List[Project]) -> bool:
        handlers = {
            "push": self.handle_push_event,
            "pull_request": self.handle_pull_request_event,
            "repository": self.handle_repository_event,
            "release": self.handle_release_event,
        }
        handler = handlers.get(event)
        if handler is None:
            logger.info(f"Unhandled event type: {event}")
            return False

        await handler(payload, projects)
        return True
