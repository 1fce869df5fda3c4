"""
Re-indexing policy: decides whether a change set is sweeping enough to warrant
a full smart re-index on top of the per-file updates.

Dependency manifests, lockfiles, container/env/tooling config, the database
schema and source files under src/ are "significant"; so is any change set
larger than the configured file threshold.
"""

import re
from typing import List, Optional, Sequence

from app.config import get_settings

SIGNIFICANT_PATTERNS: List[re.Pattern] = [
    re.compile(r"package\.json$"),
    re.compile(r"package-lock\.json$"),
    re.compile(r"yarn\.lock$"),
    re.compile(r"pnpm-lock\.yaml$"),
    re.compile(r"Dockerfile$"),
    re.compile(r"docker-compose\.ya?ml$"),
    re.compile(r"\.env"),
    re.compile(r"tsconfig\.json$"),
    re.compile(r"tailwind\.config\."),
    re.compile(r"next\.config\."),
    re.compile(r"prisma/schema\.prisma$"),
    re.compile(r"src/.*\.(ts|tsx|js|jsx)$"),
]


def is_significant_path(path: str) -> bool:
    return any(p.search(path) for p in SIGNIFICANT_PATTERNS)


def should_trigger_reindexing(changed_paths: Sequence[str], threshold: Optional[int] = None) -> bool:
    if threshold is None:
        threshold = get_settings().REINDEX_FILE_THRESHOLD
    if any(is_significant_path(p) for p in changed_paths):
        return True
    return len(changed_paths) > threshold
