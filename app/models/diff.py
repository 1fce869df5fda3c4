"""
Pydantic schemas for file diffs and the semantic (impact) diff layered on top.
Computed on demand, never persisted.
"""

from enum import Enum
from typing import ClassVar, List, Optional
from pydantic import BaseModel, Field


class DiffLineKind(str, Enum):
    add = "add"
    remove = "remove"
    context = "context"


class DiffLine(BaseModel):
    kind: DiffLineKind
    text: str
    old_line_number: Optional[int] = None
    new_line_number: Optional[int] = None


class Hunk(BaseModel):
    old_start: int
    old_line_count: int = 0
    new_start: int
    new_line_count: int = 0
    lines: List[DiffLine] = Field(default_factory=list)


class DiffStats(BaseModel):
    insertions: int = 0
    deletions: int = 0
    total_changes: int = 0


class FileDiff(BaseModel):
    file_name: str
    original_content: str
    modified_content: str
    unified_diff: str
    hunks: List[Hunk]
    stats: DiffStats


# ─── Semantic layer ─────────────────────────────────────

class RiskLevel(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class ChangeType(BaseModel):
    type: str            # function_addition | function_removal | dependency_change
    count: int
    items: List[str] = Field(default_factory=list)


class BreakingChange(BaseModel):
    type: str            # function_signature_change
    item: str
    old_signature: str
    new_signature: str
    description: str


class TestingRequirement(BaseModel):
    __test__: ClassVar[bool] = False  # keep pytest from collecting it

    type: str            # integration_testing | async_testing
    priority: RiskLevel
    reason: str


class ImpactAnalysis(BaseModel):
    risk_level: RiskLevel
    affected_areas: List[str] = Field(default_factory=list)
    breaking_changes: List[BreakingChange] = Field(default_factory=list)
    testing_required: List[TestingRequirement] = Field(default_factory=list)


class SemanticDiff(FileDiff):
    change_types: List[ChangeType]
    impact: ImpactAnalysis
    recommendations: List[str]


# ─── Request bodies ─────────────────────────────────────

class FileDiffRequest(BaseModel):
    file_name: str
    original_content: str
    modified_content: str


class MultiFileDiffRequest(BaseModel):
    files: List[FileDiffRequest]
