"""Shared fixtures: in-memory database, mocked GitHub API, fake LLM adapters."""

import base64
import hashlib
import os
import tempfile
from typing import Any, Dict, List, Optional

# Settings are cached on first import, so the environment is fixed up front.
os.environ.setdefault(
    "DATABASE_URL", f"sqlite+aiosqlite:///{tempfile.mkdtemp()}/reindexer-test.db"
)
os.environ["GITHUB_WEBHOOK_SECRET"] = "test-webhook-secret"
os.environ["GROQ_API_KEY"] = "test-groq-key"
os.environ["EMBEDDING_DIMENSIONS"] = "8"
os.environ["REINDEX_BATCH_DELAY_SECONDS"] = "0"
os.environ["JOB_RETRY_BACKOFF_SECONDS"] = "0"

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.adapters.base import EmbeddingAdapter, SummarizationAdapter
from app.jobs.queue import Job, JobName, JobQueue
from app.models.project import Project
from app.services.container import build_services
from app.services.github_client import GitHubClient
from app.utils.db import Base

REPO_URL = "https://github.com/acme/widgets"
EMBEDDING_DIMENSIONS = 8


class FakeGitHub:
    """In-memory stand-in for the GitHub REST API, served through httpx.MockTransport."""

    def __init__(self):
        self.files: Dict[str, str] = {}
        self.languages: Dict[str, int] = {"TypeScript": 12000, "CSS": 800}
        self.tree: List[Dict[str, Any]] = []
        self.commit_diffs: Dict[str, str] = {}
        self.pr_files: Dict[int, List[Dict[str, Any]]] = {}
        self.broken_paths: set = set()
        self.oversized_paths: set = set()
        self.fail_tree = False
        self.requests: List[httpx.Request] = []

    def add_file(self, path: str, content: str) -> None:
        self.files[path] = content

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        prefix = "/repos/acme/widgets"
        if not path.startswith(prefix):
            return httpx.Response(404, json={"message": "Not Found"})
        rest = path[len(prefix):]

        if rest.startswith("/contents/"):
            file_path = rest[len("/contents/"):]
            if file_path in self.broken_paths:
                return httpx.Response(500, json={"message": "boom"})
            if file_path in self.oversized_paths:
                # Files over 1 MB come back without inline content
                return httpx.Response(200, json={"type": "file", "encoding": "none", "content": "", "size": 2_000_000})
            if file_path not in self.files:
                return httpx.Response(404, json={"message": "Not Found"})
            encoded = base64.b64encode(self.files[file_path].encode("utf-8")).decode("ascii")
            return httpx.Response(200, json={"type": "file", "encoding": "base64", "content": encoded})

        if rest == "/languages":
            return httpx.Response(200, json=self.languages)

        if rest == "/git/trees/HEAD":
            if self.fail_tree:
                return httpx.Response(403, json={"message": "API rate limit exceeded"})
            return httpx.Response(200, json={"sha": "HEAD", "tree": self.tree, "truncated": False})

        if rest.startswith("/commits/"):
            sha = rest[len("/commits/"):]
            if sha not in self.commit_diffs:
                return httpx.Response(404, json={"message": "No commit found"})
            return httpx.Response(200, text=self.commit_diffs[sha])

        if rest.startswith("/pulls/") and rest.endswith("/files"):
            number = int(rest.split("/")[2])
            return httpx.Response(200, json=self.pr_files.get(number, []))

        return httpx.Response(404, json={"message": "Not Found"})


class FakeSummarizer(SummarizationAdapter):
    def __init__(self):
        self.calls: List[str] = []
        self.empty_for: set = set()
        self.fail_for: set = set()

    async def summarize(self, content: str, source_label: str) -> str:
        self.calls.append(source_label)
        if source_label in self.fail_for:
            raise RuntimeError(f"summarizer unavailable for {source_label}")
        if source_label in self.empty_for:
            return "   "
        return f"{source_label} holds {len(content)} characters of code"

    async def summarize_commit(self, diff: str) -> str:
        if not diff.strip():
            return ""
        return f"- touched {diff.count('diff --git')} files"


class FakeEmbedder(EmbeddingAdapter):
    """Deterministic vectors derived from a hash of the text."""

    def __init__(self):
        self.vectors: Dict[str, List[float]] = {}

    async def embed(self, text: str) -> List[float]:
        if text in self.vectors:
            return self.vectors[text]
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        return [b / 255.0 for b in digest[:EMBEDDING_DIMENSIONS]]


class RecordingQueue(JobQueue):
    """Collects sent jobs instead of running them."""

    def __init__(self):
        super().__init__()
        self.sent: List[Job] = []

    async def send(self, name: JobName, data: Dict[str, Any]) -> Job:
        job = Job(name=name, data=data)
        self.sent.append(job)
        return job

    def named(self, name: JobName) -> List[Job]:
        return [j for j in self.sent if j.name == name]


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
def fake_github():
    return FakeGitHub()


@pytest.fixture
async def github(fake_github):
    http = httpx.AsyncClient(
        base_url="https://api.github.test",
        transport=httpx.MockTransport(fake_github.handler),
    )
    yield GitHubClient(http)
    await http.aclose()


@pytest.fixture
def summarizer():
    return FakeSummarizer()


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def queue():
    return RecordingQueue()


@pytest.fixture
def services(session_factory, github, summarizer, embedder, queue):
    return build_services(session_factory, github, summarizer, embedder, queue)


@pytest.fixture
def project_factory(session_factory):
    async def make_project(
        repo_url: str = REPO_URL,
        default_branch: str = "main",
        name: Optional[str] = None,
    ) -> Project:
        owner, repo = GitHubClient.parse_repository_url(repo_url)
        project = Project(
            name=name or repo,
            repo_url=repo_url,
            repo_owner=owner,
            repo_name=repo,
            default_branch=default_branch,
        )
        async with session_factory() as db:
            db.add(project)
            await db.commit()
        return project

    return make_project


@pytest.fixture
async def project(project_factory):
    return await project_factory()
