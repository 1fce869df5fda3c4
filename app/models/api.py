from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional

class ProjectCreate(BaseModel):
    name: str = Field(..., description="Display name of the project")
    repo_url: str = Field(..., description="Canonical GitHub URL, e.g. https://github.com/owner/repo")
    default_branch: str = Field("main", description="Branch whose pushes trigger re-indexing")

class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    repo_url: str
    repo_owner: str
    repo_name: str
    default_branch: str
    deleted_at: Optional[datetime] = None
