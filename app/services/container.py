"""
Wires the services together. Every collaborator is passed in explicitly, so
tests can build the same graph around fakes.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import async_sessionmaker

from app.adapters.base import EmbeddingAdapter, SummarizationAdapter
from app.jobs.handlers import JobHandlers, register_handlers
from app.jobs.queue import JobQueue
from app.services.file_processor import FileProcessor
from app.services.github_client import GitHubClient
from app.services.project_store import ProjectStore
from app.services.semantic_diff import SemanticDiffAnalyzer
from app.services.structure_analyzer import StructureAnalyzer
from app.services.webhooks.processor import WebhookProcessor


@dataclass
class Services:
    session_factory: async_sessionmaker
    github: GitHubClient
    summarizer: SummarizationAdapter
    embedder: EmbeddingAdapter
    queue: JobQueue
    projects: ProjectStore
    file_processor: FileProcessor
    structure_analyzer: StructureAnalyzer
    semantic_diff: SemanticDiffAnalyzer
    webhooks: WebhookProcessor
    handlers: JobHandlers


def build_services(
    session_factory: async_sessionmaker,
    github: GitHubClient,
    summarizer: SummarizationAdapter,
    embedder: EmbeddingAdapter,
    queue: JobQueue,
) -> Services:
    projects = ProjectStore(session_factory)
    file_processor = FileProcessor(github, summarizer, embedder, session_factory)
    structure_analyzer = StructureAnalyzer(github, projects)

    handlers = JobHandlers(
        session_factory=session_factory,
        github=github,
        summarizer=summarizer,
        file_processor=file_processor,
        structure_analyzer=structure_analyzer,
        projects=projects,
    )
    register_handlers(queue, handlers)

    return Services(
        session_factory=session_factory,
        github=github,
        summarizer=summarizer,
        embedder=embedder,
        queue=queue,
        projects=projects,
        file_processor=file_processor,
        structure_analyzer=structure_analyzer,
        semantic_diff=SemanticDiffAnalyzer(),
        webhooks=WebhookProcessor(session_factory, queue),
        handlers=handlers,
    )
