"""
Inbound GitHub webhook payloads, validated at the HTTP boundary.
Only the fields the processors read are modelled; the rest is ignored.
"""

from typing import List, Optional
from pydantic import BaseModel, Field


class CommitAuthor(BaseModel):
    name: str = ""
    email: Optional[str] = None


class GitHubCommit(BaseModel):
    id: str
    message: str = ""
    author: CommitAuthor = Field(default_factory=CommitAuthor)
    added: List[str] = Field(default_factory=list)
    removed: List[str] = Field(default_factory=list)
    modified: List[str] = Field(default_factory=list)
    timestamp: Optional[str] = None


class GitHubRepository(BaseModel):
    full_name: str
    html_url: str
    default_branch: str = "main"


class BranchRef(BaseModel):
    ref: str


class GitHubPullRequest(BaseModel):
    number: int
    title: str = ""
    state: str = ""
    merged: bool = False
    base: BranchRef
    head: BranchRef


class GitHubRelease(BaseModel):
    name: Optional[str] = None
    tag_name: str


class WebhookPayload(BaseModel):
    action: Optional[str] = None    # push events carry no action
    repository: GitHubRepository
    commits: List[GitHubCommit] = Field(default_factory=list)
    head_commit: Optional[GitHubCommit] = None
    ref: Optional[str] = None
    before: Optional[str] = None
    after: Optional[str] = None
    pull_request: Optional[GitHubPullRequest] = None
    release: Optional[GitHubRelease] = None


class WebhookAck(BaseModel):
    message: str
    event: Optional[str] = None
    projects: int = 0
