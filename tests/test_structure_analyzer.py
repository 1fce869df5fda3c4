"""Tests for tree classification, snapshot persistence and key-file priority."""

import pytest

from app.errors import GitHubClientError
from app.models.structure import CodebaseStructure, TreeEntry
from app.services.structure_analyzer import SNAPSHOT_KEY, classify_tree, prioritize_key_files

NEXT_TREE = [
    {"path": "package.json", "type": "blob"},
    {"path": "next.config.js", "type": "blob"},
    {"path": "README.md", "type": "blob"},
    {"path": "src", "type": "tree"},
    {"path": "src/app", "type": "tree"},
    {"path": "src/app/layout.tsx", "type": "blob"},
    {"path": "src/app/api/users/route.ts", "type": "blob"},
    {"path": "src/main.ts", "type": "blob"},
    {"path": "src/lib/db.ts", "type": "blob"},
    {"path": "src/lib/db.test.ts", "type": "blob"},
    {"path": "prisma/schema.prisma", "type": "blob"},
]


class TestClassifyTree:
    def test_categories(self):
        structure = classify_tree([TreeEntry(**e) for e in NEXT_TREE])
        assert structure.framework == "nextjs"
        assert structure.config_files == ["package.json", "next.config.js"]
        assert structure.entry_points == ["src/main.ts"]
        assert structure.api_files == ["src/app/api/users/route.ts"]
        assert structure.schema_files == ["prisma/schema.prisma"]
        assert structure.test_files == ["src/lib/db.test.ts"]
        assert structure.documentation_files == ["README.md"]
        assert "src/lib/db.test.ts" not in structure.core_files
        assert "next.config.js" not in structure.core_files
        assert "src/app/layout.tsx" in structure.core_files

    def test_directories_are_ignored(self):
        structure = classify_tree([TreeEntry(path="src", type="tree")])
        assert structure == CodebaseStructure(framework="unknown")


class TestKeyFiles:
    def test_priority_and_dedup(self):
        structure = CodebaseStructure(
            config_files=["package.json"],
            entry_points=["src/main.ts"],
            core_files=["src/main.ts", "src/lib/db.ts", "src/app/api/route.ts"],
            api_files=["src/app/api/route.ts"],
            schema_files=["prisma/schema.prisma"],
            test_files=["src/a.test.ts"],
            documentation_files=["README.md"],
        )
        assert prioritize_key_files(structure) == [
            "package.json",
            "src/main.ts",
            "src/lib/db.ts",
            "src/app/api/route.ts",
            "prisma/schema.prisma",
        ]


class TestAnalyzer:
    async def test_snapshot_is_persisted(self, services, project, fake_github):
        fake_github.tree = NEXT_TREE
        snapshot = await services.structure_analyzer.analyze_codebase_structure(project.id, project.repo_url)

        assert snapshot.total_files == 9
        assert snapshot.directories == 2
        assert snapshot.languages["TypeScript"] == 12000

        logs = await services.projects.get_logs(project.id)
        assert logs[SNAPSHOT_KEY]["structure"]["framework"] == "nextjs"
        assert logs[SNAPSHOT_KEY]["total_files"] == 9

    async def test_snapshot_merge_keeps_other_keys(self, services, project, fake_github):
        await services.projects.merge(project.id, "last_release", {"release_tag": "v1.0.0"})
        fake_github.tree = NEXT_TREE
        await services.structure_analyzer.analyze_codebase_structure(project.id, project.repo_url)

        logs = await services.projects.get_logs(project.id)
        assert logs["last_release"] == {"release_tag": "v1.0.0"}
        assert SNAPSHOT_KEY in logs

    async def test_key_files(self, services, project, fake_github):
        fake_github.tree = NEXT_TREE
        analysis = await services.structure_analyzer.identify_key_files(project.id, project.repo_url)
        assert analysis.key_files[:2] == ["package.json", "next.config.js"]
        assert len(analysis.key_files) == len(set(analysis.key_files))

    async def test_host_errors_propagate(self, services, project, fake_github):
        fake_github.fail_tree = True
        with pytest.raises(GitHubClientError):
            await services.structure_analyzer.analyze_codebase_structure(project.id, project.repo_url)
