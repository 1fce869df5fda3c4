"""
Pattern Detector — classifies repository paths by role.

Every predicate is a pure function over a path string: it tries an ordered list
of regex rules (search semantics, so patterns may match anywhere unless
anchored) and never raises. Categories are independent except for
is_core_file, which excludes anything already classified as test or config.
"""

import re
from typing import Dict, Iterable, List, Pattern

# ─── Rule tables ────────────────────────────────────────

CONFIG_PATTERNS: List[Pattern[str]] = [
    re.compile(r"package\.json$"),
    re.compile(r"tsconfig\.json$"),
    re.compile(r"webpack\.config\."),
    re.compile(r"vite\.config\."),
    re.compile(r"next\.config\."),
    re.compile(r"tailwind\.config\."),
    re.compile(r"eslint\.config\."),
    re.compile(r"\.env"),
    re.compile(r"docker-compose\.ya?ml$"),
    re.compile(r"Dockerfile$"),
]

ENTRY_POINT_PATTERNS: List[Pattern[str]] = [
    re.compile(r"^src/main\."),
    re.compile(r"^src/index\."),
    re.compile(r"^src/app\."),
    re.compile(r"^pages/_app\."),
    re.compile(r"^app/layout\."),
    re.compile(r"^src/App\."),
]

API_PATTERNS: List[Pattern[str]] = [
    re.compile(r"/api/"),
    re.compile(r"/routes/"),
    re.compile(r"/controllers/"),
    re.compile(r"/endpoints/"),
    re.compile(r"server/.*\.ts$"),
    re.compile(r"backend/.*\.ts$"),
]

SCHEMA_PATTERNS: List[Pattern[str]] = [
    re.compile(r"schema\.prisma$"),
    re.compile(r"/models/"),
    re.compile(r"/schemas/"),
    re.compile(r"/database/"),
    re.compile(r"migration"),
]

TEST_PATTERNS: List[Pattern[str]] = [
    re.compile(r"\.test\."),
    re.compile(r"\.spec\."),
    re.compile(r"__tests__/"),
    re.compile(r"/tests?/"),
]

DOCUMENTATION_PATTERNS: List[Pattern[str]] = [
    re.compile(r"README", re.IGNORECASE),
    re.compile(r"\.md$"),
    re.compile(r"/docs?/"),
    re.compile(r"CHANGELOG", re.IGNORECASE),
    re.compile(r"LICENSE", re.IGNORECASE),
]

GENERIC_CORE_PATTERNS: List[Pattern[str]] = [
    re.compile(r"src/.*\.(ts|tsx|js|jsx)$"),
    re.compile(r"lib/.*\.(ts|tsx|js|jsx)$"),
    re.compile(r"utils/.*\.(ts|tsx|js|jsx)$"),
    re.compile(r"components/.*\.(ts|tsx|js|jsx)$"),
    re.compile(r"hooks/.*\.(ts|tsx|js|jsx)$"),
]

FRAMEWORK_CORE_PATTERNS: Dict[str, List[Pattern[str]]] = {
    "nextjs": [
        re.compile(r"^app/.*\.(ts|tsx)$"),
        re.compile(r"^pages/.*\.(ts|tsx|js|jsx)$"),
        re.compile(r"^src/app/.*\.(ts|tsx)$"),
    ],
    "nuxt": [
        re.compile(r"^pages/.*\.(vue|ts|js)$"),
        re.compile(r"^components/.*\.(vue|ts|js)$"),
    ],
    "angular": [
        re.compile(r"^src/app/.*\.(ts|html|scss)$"),
    ],
}

# Marker files checked in priority order
FRAMEWORK_MARKERS = [
    ("nextjs", ("next.config.js", "next.config.ts")),
    ("nuxt", ("nuxt.config.js", "nuxt.config.ts")),
    ("angular", ("angular.json",)),
    ("vue", ("vue.config.js",)),
]


def _matches_any(path: str, patterns: Iterable[Pattern[str]]) -> bool:
    return any(p.search(path) for p in patterns)


# ─── Predicates ─────────────────────────────────────────

def detect_framework(all_paths: Iterable[str]) -> str:
    paths = list(all_paths)
    present = set(paths)
    for framework, markers in FRAMEWORK_MARKERS:
        if any(m in present for m in markers):
            return framework
    if any("package.json" in p for p in paths):
        return "nodejs"
    return "unknown"


def is_config_file(path: str) -> bool:
    return _matches_any(path, CONFIG_PATTERNS)


def is_entry_point(path: str) -> bool:
    return _matches_any(path, ENTRY_POINT_PATTERNS)


def is_api_file(path: str) -> bool:
    return _matches_any(path, API_PATTERNS)


def is_schema_file(path: str) -> bool:
    return _matches_any(path, SCHEMA_PATTERNS)


def is_test_file(path: str) -> bool:
    return _matches_any(path, TEST_PATTERNS)


def is_documentation_file(path: str) -> bool:
    return _matches_any(path, DOCUMENTATION_PATTERNS)


def is_core_file(path: str, framework: str) -> bool:
    patterns = GENERIC_CORE_PATTERNS + FRAMEWORK_CORE_PATTERNS.get(framework, [])
    # Test/config membership wins over core
    return (
        _matches_any(path, patterns)
        and not is_test_file(path)
        and not is_config_file(path)
    )
