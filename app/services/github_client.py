"""
GitHub REST client — the only component that talks to the source host.

The authenticated httpx.AsyncClient is injected (see create_http_client), so
tests can swap in an httpx.MockTransport. Existence and content checks degrade
to False / None on failure; tree, language, metadata and diff fetches raise
GitHubClientError.
"""

import base64
import logging
import re
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import httpx

from app.config import Settings, get_settings
from app.errors import GitHubClientError
from app.models.structure import TreeEntry

logger = logging.getLogger("github_client")

_URL_PREFIX = re.compile(r"^(?:https?://)?(?:www\.)?github\.com/", re.IGNORECASE)


def create_http_client(settings: Optional[Settings] = None) -> httpx.AsyncClient:
    """Authenticated client with explicit timeout and connection retries."""
    settings = settings or get_settings()
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }
    if settings.GITHUB_TOKEN:
        headers["Authorization"] = f"Bearer {settings.GITHUB_TOKEN}"

    return httpx.AsyncClient(
        base_url=settings.GITHUB_API_URL,
        headers=headers,
        timeout=settings.GITHUB_TIMEOUT_SECONDS,
        transport=httpx.AsyncHTTPTransport(retries=settings.GITHUB_MAX_RETRIES),
    )


class GitHubClient:
    def __init__(self, http: httpx.AsyncClient):
        self.http = http

    # ── Helpers ──────────────────────────────────────

    @staticmethod
    def _contents_url(owner: str, repo: str, path: str) -> str:
        return f"/repos/{owner}/{repo}/contents/{quote(path, safe='/')}"

    async def _get(self, url: str, **kwargs) -> httpx.Response:
        try:
            resp = await self.http.get(url, **kwargs)
            resp.raise_for_status()
            return resp
        except httpx.HTTPStatusError as e:
            raise GitHubClientError(
                f"GitHub API {e.response.status_code} for {url}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise GitHubClientError(f"GitHub API request failed for {url}: {e}") from e

    # ── Public ───────────────────────────────────────

    @staticmethod
    def parse_repository_url(url: str) -> Tuple[str, str]:
        """
        "https://github.com/owner/repo" → ("owner", "repo").
        Missing parts come back as "" and must be validated by the caller.
        """
        stripped = _URL_PREFIX.sub("", url.strip()).strip("/")
        if stripped.endswith(".git"):
            stripped = stripped[:-4]
        parts = stripped.split("/")
        owner = parts[0] if len(parts) > 0 else ""
        repo = parts[1] if len(parts) > 1 else ""
        return owner, repo

    async def check_file_exists(self, owner: str, repo: str, path: str) -> bool:
        # Any failure, transient or not, reads as "does not exist"
        try:
            await self._get(self._contents_url(owner, repo, path))
            return True
        except GitHubClientError:
            return False

    async def get_file_content(self, owner: str, repo: str, path: str) -> Optional[str]:
        try:
            resp = await self._get(self._contents_url(owner, repo, path))
            data = resp.json()
        except (GitHubClientError, ValueError) as e:
            logger.error(f"Error fetching file content for {path}: {e}")
            return None

        # Directories come back as a list; large files come back without content
        if not isinstance(data, dict) or not data.get("content"):
            return None

        raw = base64.b64decode(data["content"])
        return raw.decode("utf-8", errors="replace")

    async def get_repository_languages(self, owner: str, repo: str) -> Dict[str, int]:
        resp = await self._get(f"/repos/{owner}/{repo}/languages")
        return {lang: int(size) for lang, size in resp.json().items()}

    async def get_repository_tree(self, owner: str, repo: str) -> List[TreeEntry]:
        """Recursive tree of HEAD on the default branch."""
        resp = await self._get(
            f"/repos/{owner}/{repo}/git/trees/HEAD", params={"recursive": "1"}
        )
        data = resp.json()
        if data.get("truncated"):
            logger.warning(f"Tree for {owner}/{repo} was truncated by GitHub")
        return [TreeEntry(**item) for item in data.get("tree", [])]

    async def get_commit_diff(self, owner: str, repo: str, sha: str) -> str:
        resp = await self._get(
            f"/repos/{owner}/{repo}/commits/{sha}",
            headers={"Accept": "application/vnd.github.v3.diff"},
        )
        return resp.text

    async def list_pull_request_files(self, owner: str, repo: str, number: int) -> List[Dict[str, Any]]:
        resp = await self._get(
            f"/repos/{owner}/{repo}/pulls/{number}/files", params={"per_page": "100"}
        )
        return resp.json()
