from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


class ReindexStatus(str, Enum):
    reindexed = "reindexed"
    removed = "removed"
    skipped = "skipped"
    error = "error"


class ReindexingResult(BaseModel):
    file_path: str
    status: ReindexStatus
    error: Optional[str] = None   # error message, or skip reason


class FileChangeSet(BaseModel):
    added: List[str] = Field(default_factory=list)
    modified: List[str] = Field(default_factory=list)
    removed: List[str] = Field(default_factory=list)

    def all_paths(self) -> List[str]:
        return [*self.added, *self.modified, *self.removed]


class ReindexRequest(BaseModel):
    files: List[str]
