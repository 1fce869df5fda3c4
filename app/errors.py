"""
Domain exceptions. Routes translate these into HTTP status codes;
background jobs let them propagate so the queue can retry.
"""

from typing import Optional


class GitHubClientError(Exception):
    """A GitHub REST call failed (transport error or non-2xx response)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ProjectNotFoundError(KeyError):
    pass


class ConcurrentUpdateError(RuntimeError):
    """Optimistic version check on a project's processing logs kept failing."""


class EmbeddingDimensionError(ValueError):
    pass
