"""
SQLAlchemy ORM models for tracked projects and their search index.

Tables: projects, source_file_records, commit_records
All use UUID primary keys for cross-reference stability.
"""

import uuid
import enum
from datetime import datetime, timezone
from sqlalchemy import (
    Column, String, Integer, DateTime, ForeignKey, Enum as SAEnum, Text, JSON,
    Index, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from pgvector.sqlalchemy import Vector

from app.config import get_settings
from app.utils.db import Base

settings = get_settings()


# ─── Enums ───────────────────────────────────────────────

class CommitProcessingStatus(str, enum.Enum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"


# ─── Tables ──────────────────────────────────────────────

def _uuid() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


# pgvector on Postgres; SQLite (dev/tests) keeps the vector as a JSON array
EmbeddingVector = Vector(settings.EMBEDDING_DIMENSIONS).with_variant(JSON(none_as_null=True), "sqlite")


class Project(Base):
    __tablename__ = "projects"

    id = Column(String, primary_key=True, default=_uuid)
    name = Column(String, nullable=False)
    repo_url = Column(Text, nullable=False, index=True)   # canonical https://github.com/<owner>/<repo>
    repo_owner = Column(String, nullable=False)
    repo_name = Column(String, nullable=False)
    default_branch = Column(String, nullable=False, default="main")
    deleted_at = Column(DateTime, nullable=True)

    # codebase_analysis / last_reindex / last_release / last_pull_request
    processing_logs = Column(JSON, nullable=False, default=dict)
    logs_version = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=_now)

    files = relationship("SourceFileRecord", back_populates="project", cascade="all, delete-orphan")
    commits = relationship("CommitRecord", back_populates="project", cascade="all, delete-orphan")


class SourceFileRecord(Base):
    __tablename__ = "source_file_records"

    id = Column(String, primary_key=True, default=_uuid)
    project_id = Column(String, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    file_name = Column(Text, nullable=False)     # repo-relative path
    source_code = Column(Text, nullable=False, default="")
    summary = Column(Text, nullable=False, default="")
    summary_embedding = Column(EmbeddingVector, nullable=True)
    updated_at = Column(DateTime, default=_now, onupdate=_now)

    project = relationship("Project", back_populates="files")

    __table_args__ = (
        UniqueConstraint("project_id", "file_name", name="uq_source_file_project_path"),
        Index("ix_source_file_project", "project_id"),
    )


class CommitRecord(Base):
    __tablename__ = "commit_records"

    id = Column(String, primary_key=True, default=_uuid)
    project_id = Column(String, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    commit_hash = Column(String, nullable=False)
    message = Column(Text, nullable=False, default="")
    author_name = Column(String, nullable=False, default="")
    author_email = Column(String, nullable=True)
    committed_at = Column(String, nullable=True)  # ISO-8601 as delivered by GitHub
    summary = Column(Text, nullable=True)
    processing_status = Column(
        SAEnum(CommitProcessingStatus), nullable=False, default=CommitProcessingStatus.pending
    )
    created_at = Column(DateTime, default=_now)
    updated_at = Column(DateTime, default=_now, onupdate=_now)

    project = relationship("Project", back_populates="commits")

    __table_args__ = (
        UniqueConstraint("project_id", "commit_hash", name="uq_commit_project_hash"),
    )
