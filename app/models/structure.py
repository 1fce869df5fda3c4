from typing import List, Dict, Optional
from pydantic import BaseModel, Field


class TreeEntry(BaseModel):
    """One item of a recursive git tree (blob = file, tree = directory)."""
    path: str
    type: str
    sha: str = ""
    size: Optional[int] = None


class CodebaseStructure(BaseModel):
    config_files: List[str] = Field(default_factory=list)
    entry_points: List[str] = Field(default_factory=list)
    core_files: List[str] = Field(default_factory=list)
    api_files: List[str] = Field(default_factory=list)
    schema_files: List[str] = Field(default_factory=list)
    test_files: List[str] = Field(default_factory=list)
    documentation_files: List[str] = Field(default_factory=list)
    framework: str = "unknown"


class CodebaseStructureSnapshot(BaseModel):
    languages: Dict[str, int] = Field(default_factory=dict)
    structure: CodebaseStructure
    total_files: int
    directories: int
    last_analyzed: str    # ISO-8601


class StructureAnalysis(BaseModel):
    key_files: List[str]
    structure: CodebaseStructure
