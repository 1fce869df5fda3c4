"""
Semantic Diff — impact analysis layered on a plain FileDiff.

Given two versions of a source file, reports:
  - change types (function additions/removals, dependency count changes)
  - risk level from the share of changed lines
  - affected-area tags (public_api, database_schema, configuration)
  - breaking changes (same-named function whose signature text differs)
  - testing requirements and templated recommendations

Structure comes from a CodeStructureExtractor, so the regex heuristic can be
replaced per language without touching the scoring below. No I/O.
"""

import logging
from typing import Dict, List, Optional

from app.models.diff import (
    BreakingChange, ChangeType, DiffStats, ImpactAnalysis, RiskLevel, SemanticDiff, TestingRequirement,
)
from app.services.code_structure import CodeStructureExtractor, FunctionSignature, RegexCodeStructureExtractor
from app.services.diff_generator import DiffGenerator

logger = logging.getLogger("semantic_diff")

# ─── Thresholds ─────────────────────────────────────────

HIGH_RISK_RATIO = 0.5
MEDIUM_RISK_RATIO = 0.2
INTEGRATION_TESTING_MIN_CHANGES = 10

# Substrings checked against the original text only
SCHEMA_MARKERS = ("schema", "model")
CONFIG_MARKERS = ("config", "env")

RECOMMEND_SPLIT = "Consider breaking this change into smaller, incremental updates"
RECOMMEND_TESTING = "Ensure comprehensive testing before deployment"
RECOMMEND_CHECK_CALLERS = "Verify that removed functions are not used elsewhere in the codebase"
RECOMMEND_API_DOCS = "Update API documentation and notify consumers of changes"


def _first_by_name(functions: List[FunctionSignature]) -> Dict[str, FunctionSignature]:
    by_name: Dict[str, FunctionSignature] = {}
    for fn in functions:
        by_name.setdefault(fn.name, fn)
    return by_name


def calculate_risk_level(stats: DiffStats, original: str) -> RiskLevel:
    ratio = stats.total_changes / len(original.split("\n"))
    if ratio > HIGH_RISK_RATIO:
        return RiskLevel.high
    if ratio > MEDIUM_RISK_RATIO:
        return RiskLevel.medium
    return RiskLevel.low


class SemanticDiffAnalyzer:
    def __init__(self, extractor: Optional[CodeStructureExtractor] = None):
        self.extractor = extractor or RegexCodeStructureExtractor()

    def generate_semantic_diff(self, file_name: str, original: str, modified: str) -> SemanticDiff:
        base = DiffGenerator.generate_file_diff(file_name, original, modified)

        original_functions = self.extractor.extract_functions(original)
        modified_functions = self.extractor.extract_functions(modified)

        change_types = self.classify_changes(original, modified, original_functions, modified_functions)
        impact = ImpactAnalysis(
            risk_level=calculate_risk_level(base.stats, original),
            affected_areas=self.identify_affected_areas(original, modified),
            breaking_changes=self.detect_breaking_changes(original_functions, modified_functions),
            testing_required=self.assess_testing_needs(base.stats, original, modified),
        )
        recommendations = self.generate_recommendations(change_types, impact)

        logger.debug(
            f"{file_name}: risk={impact.risk_level.value} "
            f"breaking={len(impact.breaking_changes)} changes={base.stats.total_changes}"
        )

        return SemanticDiff(
            **base.model_dump(),
            change_types=change_types,
            impact=impact,
            recommendations=recommendations,
        )

    # ── Change classification ───────────────────────

    def classify_changes(
        self,
        original: str,
        modified: str,
        original_functions: List[FunctionSignature],
        modified_functions: List[FunctionSignature],
    ) -> List[ChangeType]:
        # Name-only matching: a rename is one addition plus one removal
        original_names = list(_first_by_name(original_functions))
        modified_names = list(_first_by_name(modified_functions))

        added = [n for n in modified_names if n not in original_names]
        removed = [n for n in original_names if n not in modified_names]

        types: List[ChangeType] = []
        if added:
            types.append(ChangeType(type="function_addition", count=len(added), items=added))
        if removed:
            types.append(ChangeType(type="function_removal", count=len(removed), items=removed))

        import_delta = len(self.extractor.extract_imports(modified)) - len(self.extractor.extract_imports(original))
        if import_delta:
            types.append(ChangeType(type="dependency_change", count=abs(import_delta)))

        return types

    # ── Impact ──────────────────────────────────────

    def identify_affected_areas(self, original: str, modified: str) -> List[str]:
        areas: List[str] = []

        if len(self.extractor.extract_exports(original)) != len(self.extractor.extract_exports(modified)):
            areas.append("public_api")
        if any(marker in original for marker in SCHEMA_MARKERS):
            areas.append("database_schema")
        if any(marker in original for marker in CONFIG_MARKERS):
            areas.append("configuration")

        return areas

    @staticmethod
    def detect_breaking_changes(
        original_functions: List[FunctionSignature],
        modified_functions: List[FunctionSignature],
    ) -> List[BreakingChange]:
        modified_by_name = _first_by_name(modified_functions)
        changes: List[BreakingChange] = []

        for name, old in _first_by_name(original_functions).items():
            new = modified_by_name.get(name)
            if new is None or new.signature == old.signature:
                continue
            changes.append(BreakingChange(
                type="function_signature_change",
                item=name,
                old_signature=old.signature,
                new_signature=new.signature,
                description=f'Function signature changed from "{old.signature}" to "{new.signature}"',
            ))

        return changes

    @staticmethod
    def assess_testing_needs(stats: DiffStats, original: str, modified: str) -> List[TestingRequirement]:
        requirements: List[TestingRequirement] = []

        if stats.total_changes > INTEGRATION_TESTING_MIN_CHANGES:
            requirements.append(TestingRequirement(
                type="integration_testing",
                priority=RiskLevel.high,
                reason="Significant code changes detected",
            ))
        if "async" in original or "async" in modified:
            requirements.append(TestingRequirement(
                type="async_testing",
                priority=RiskLevel.medium,
                reason="Asynchronous operations detected",
            ))

        return requirements

    @staticmethod
    def generate_recommendations(change_types: List[ChangeType], impact: ImpactAnalysis) -> List[str]:
        recommendations: List[str] = []

        if impact.risk_level == RiskLevel.high:
            recommendations.append(RECOMMEND_SPLIT)
            recommendations.append(RECOMMEND_TESTING)
        if any(ct.type == "function_removal" for ct in change_types):
            recommendations.append(RECOMMEND_CHECK_CALLERS)
        if "public_api" in impact.affected_areas:
            recommendations.append(RECOMMEND_API_DOCS)

        return recommendations
