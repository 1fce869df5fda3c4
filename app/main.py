import logging
from contextlib import asynccontextmanager
from typing import List

from fastapi import FastAPI, Depends, HTTPException, Request, status
from pydantic import ValidationError

from app.adapters.groq import GroqSummarizer
from app.adapters.openrouter import OpenRouterEmbedder
from app.config import get_settings
from app.errors import GitHubClientError, ProjectNotFoundError
from app.jobs.queue import create_job_queue
from app.models.api import ProjectCreate, ProjectResponse
from app.models.diff import FileDiff, FileDiffRequest, MultiFileDiffRequest, SemanticDiff
from app.models.project import Project
from app.models.reindex import ReindexingResult, ReindexRequest
from app.models.structure import CodebaseStructureSnapshot, StructureAnalysis
from app.models.webhook import WebhookAck, WebhookPayload
from app.services.container import Services, build_services
from app.services.diff_generator import DiffGenerator
from app.services.github_client import GitHubClient, create_http_client
from app.services.project_store import ProjectStore
from app.services.webhooks.processor import HANDLED_EVENTS
from app.services.webhooks.signature import verify_github_signature
from app.utils.db import AsyncSessionLocal, engine, Base

settings = get_settings()

# Setup Logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger("reindexer")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Ensure DB tables exist
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Tests install their own services before startup
    owned = getattr(app.state, "services", None) is None
    if owned:
        github_http = create_http_client(settings)
        embedder = OpenRouterEmbedder()
        app.state.services = build_services(
            session_factory=AsyncSessionLocal,
            github=GitHubClient(github_http),
            summarizer=GroqSummarizer(),
            embedder=embedder,
            queue=create_job_queue(settings),
        )

    services: Services = app.state.services
    await services.queue.start()
    yield
    # Shutdown
    await services.queue.stop()
    if owned:
        await services.github.http.aclose()
        await embedder.aclose()
        app.state.services = None
    await engine.dispose()


app = FastAPI(
    title="Smart Re-indexer",
    description="Webhook-driven incremental code indexing and semantic diff analysis.",
    version="1.0.0",
    lifespan=lifespan,
)


def get_services(request: Request) -> Services:
    return request.app.state.services


async def _load_project(services: Services, project_id: str) -> Project:
    async with services.session_factory() as db:
        try:
            return await ProjectStore.get_active(db, project_id)
        except ProjectNotFoundError:
            raise HTTPException(status_code=404, detail="Project not found")


@app.get("/health")
async def health_check():
    return {"status": "ok"}


# ─── Projects ─────────────────────────────────────────────

@app.post("/projects", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(body: ProjectCreate, services: Services = Depends(get_services)):
    owner, repo = GitHubClient.parse_repository_url(body.repo_url)
    if not owner or not repo:
        raise HTTPException(status_code=400, detail="repo_url must look like https://github.com/<owner>/<repo>")

    project = Project(
        name=body.name,
        repo_url=f"https://github.com/{owner}/{repo}",
        repo_owner=owner,
        repo_name=repo,
        default_branch=body.default_branch,
    )
    async with services.session_factory() as db:
        db.add(project)
        await db.commit()
        await db.refresh(project)

    logger.info(f"Registered project {project.id} for {project.repo_url}")
    return project


@app.post("/projects/{project_id}/structure", response_model=CodebaseStructureSnapshot)
async def analyze_structure(project_id: str, services: Services = Depends(get_services)):
    project = await _load_project(services, project_id)
    try:
        return await services.structure_analyzer.analyze_codebase_structure(project.id, project.repo_url)
    except GitHubClientError as e:
        logger.error(f"Structure analysis failed for {project_id}: {e}")
        raise HTTPException(status_code=502, detail=f"GitHub request failed: {e}")


@app.get("/projects/{project_id}/key-files", response_model=StructureAnalysis)
async def key_files(project_id: str, services: Services = Depends(get_services)):
    project = await _load_project(services, project_id)
    try:
        return await services.structure_analyzer.identify_key_files(project.id, project.repo_url)
    except GitHubClientError as e:
        logger.error(f"Key file identification failed for {project_id}: {e}")
        raise HTTPException(status_code=502, detail=f"GitHub request failed: {e}")


@app.post("/projects/{project_id}/reindex", response_model=List[ReindexingResult])
async def reindex_files(project_id: str, body: ReindexRequest, services: Services = Depends(get_services)):
    """Synchronous re-index of the given paths; one result per path."""
    project = await _load_project(services, project_id)
    return await services.file_processor.reindex_changed_files(project.id, project.repo_url, body.files)


# ─── GitHub Webhook ───────────────────────────────────────

@app.post("/webhooks/github", response_model=WebhookAck)
async def github_webhook(request: Request, services: Services = Depends(get_services)):
    body = await request.body()
    signature = request.headers.get("x-hub-signature-256")

    if not verify_github_signature(body, signature, settings.GITHUB_WEBHOOK_SECRET):
        raise HTTPException(status_code=401, detail="Invalid signature")

    event = request.headers.get("x-github-event", "")
    if event == "ping":
        return WebhookAck(message="pong", event=event)

    if event not in HANDLED_EVENTS:
        logger.info(f"Ignoring unhandled GitHub event: {event or 'unknown'}")
        return WebhookAck(message="Event ignored", event=event)

    try:
        payload = WebhookPayload.model_validate_json(body)
    except ValidationError as e:
        logger.warning(f"Rejected malformed {event or 'unknown'} webhook: {e.error_count()} validation errors")
        raise HTTPException(status_code=400, detail="Malformed webhook payload")

    logger.info(f"Received GitHub webhook: {event} for {payload.repository.full_name}")

    projects = await services.webhooks.get_projects_for_repository(payload.repository.html_url)
    if not projects:
        logger.info(f"No projects found for repository: {payload.repository.html_url}")
        return WebhookAck(message="Repository not tracked", event=event)

    await services.webhooks.dispatch(event, payload, projects)
    return WebhookAck(message="Webhook processed successfully", event=event, projects=len(projects))


# ─── Diff ─────────────────────────────────────────────────

@app.post("/diff", response_model=FileDiff)
async def file_diff(body: FileDiffRequest):
    return DiffGenerator.generate_file_diff(body.file_name, body.original_content, body.modified_content)


@app.post("/diff/batch", response_model=List[FileDiff])
async def multi_file_diff(body: MultiFileDiffRequest):
    return DiffGenerator.generate_multi_file_diff(body.files)


@app.post("/diff/semantic", response_model=SemanticDiff)
async def semantic_diff(body: FileDiffRequest, services: Services = Depends(get_services)):
    return services.semantic_diff.generate_semantic_diff(
        body.file_name, body.original_content, body.modified_content
    )
