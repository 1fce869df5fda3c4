"""
Structure Analyzer — builds the categorized file map of a repository.

Public interface:
    StructureAnalyzer.analyze_codebase_structure(project_id, repo_url)  → snapshot, persisted
    StructureAnalyzer.identify_key_files(project_id, repo_url)          → prioritized key files

GitHub failures (missing repo, rate limit) propagate to the caller; nothing
here retries.
"""

import logging
from datetime import datetime, timezone
from typing import List

from app.models.structure import (
    CodebaseStructure, CodebaseStructureSnapshot, StructureAnalysis, TreeEntry,
)
from app.services import pattern_detector as patterns
from app.services.github_client import GitHubClient
from app.services.project_store import ProjectStore

logger = logging.getLogger("structure_analyzer")

SNAPSHOT_KEY = "codebase_analysis"


def classify_tree(tree: List[TreeEntry]) -> CodebaseStructure:
    """
    Append every blob path to each category whose predicate matches.
    Categories overlap freely; only core excludes test and config.
    """
    structure = CodebaseStructure(
        framework=patterns.detect_framework(item.path for item in tree)
    )

    for item in tree:
        if item.type != "blob":
            continue
        path = item.path

        if patterns.is_config_file(path):
            structure.config_files.append(path)
        if patterns.is_entry_point(path):
            structure.entry_points.append(path)
        if patterns.is_api_file(path):
            structure.api_files.append(path)
        if patterns.is_schema_file(path):
            structure.schema_files.append(path)
        if patterns.is_test_file(path):
            structure.test_files.append(path)
        if patterns.is_documentation_file(path):
            structure.documentation_files.append(path)
        if patterns.is_core_file(path, structure.framework):
            structure.core_files.append(path)

    return structure


def prioritize_key_files(structure: CodebaseStructure) -> List[str]:
    """config → entry points → core → api → schema, de-duplicated, first occurrence wins."""
    ordered = (
        structure.config_files
        + structure.entry_points
        + structure.core_files
        + structure.api_files
        + structure.schema_files
    )
    return list(dict.fromkeys(ordered))


class StructureAnalyzer:
    def __init__(self, github: GitHubClient, projects: ProjectStore):
        self.github = github
        self.projects = projects

    async def analyze_codebase_structure(self, project_id: str, repo_url: str) -> CodebaseStructureSnapshot:
        logger.info(f"[{project_id}] Analyzing codebase structure of {repo_url}")
        owner, repo = self.github.parse_repository_url(repo_url)

        languages = await self.github.get_repository_languages(owner, repo)
        tree = await self.github.get_repository_tree(owner, repo)

        snapshot = CodebaseStructureSnapshot(
            languages=languages,
            structure=classify_tree(tree),
            total_files=sum(1 for item in tree if item.type == "blob"),
            directories=sum(1 for item in tree if item.type == "tree"),
            last_analyzed=datetime.now(timezone.utc).isoformat(),
        )

        await self.projects.merge(project_id, SNAPSHOT_KEY, snapshot.model_dump(mode="json"))
        logger.info(
            f"[{project_id}] Structure: {snapshot.total_files} files, "
            f"framework={snapshot.structure.framework}"
        )
        return snapshot

    async def identify_key_files(self, project_id: str, repo_url: str) -> StructureAnalysis:
        snapshot = await self.analyze_codebase_structure(project_id, repo_url)
        return StructureAnalysis(
            key_files=prioritize_key_files(snapshot.structure),
            structure=snapshot.structure,
        )
