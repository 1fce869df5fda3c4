"""
Code structure extraction used by the semantic diff.

CodeStructureExtractor is the seam: the default RegexCodeStructureExtractor is
a heuristic for JS/TS-style sources and both under- and over-matches (a call
followed by a block can pass for a method). A real per-language parser can be
dropped in without touching risk scoring or reporting.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class FunctionSignature:
    name: str
    signature: str   # matched declaration text, e.g. "function add(a, b)"


class CodeStructureExtractor(ABC):
    @abstractmethod
    def extract_functions(self, code: str) -> List[FunctionSignature]:
        pass

    @abstractmethod
    def extract_imports(self, code: str) -> List[str]:
        pass

    @abstractmethod
    def extract_exports(self, code: str) -> List[str]:
        pass


class RegexCodeStructureExtractor(CodeStructureExtractor):
    # function name(...) | const name = (...) => | name(...) {
    FUNCTION_PATTERN = re.compile(
        r"function\s+(\w+)\s*\([^)]*\)"
        r"|const\s+(\w+)\s*=\s*\([^)]*\)\s*=>"
        r"|(\w+)\s*\([^)]*\)\s*\{"
    )
    IMPORT_PATTERN = re.compile(r"""import\s+.*\s+from\s+['"]([^'"]+)['"]""")
    EXPORT_PATTERN = re.compile(
        r"export\s+(?:default\s+)?(?:function|class|const|let|var)\s+(\w+)"
    )

    # Control-flow keywords the method form would otherwise pick up
    KEYWORDS = {"if", "for", "while", "switch", "catch", "with", "return", "function"}

    def extract_functions(self, code: str) -> List[FunctionSignature]:
        functions: List[FunctionSignature] = []
        for match in self.FUNCTION_PATTERN.finditer(code):
            name = match.group(1) or match.group(2) or match.group(3)
            if not name or name in self.KEYWORDS:
                continue
            functions.append(FunctionSignature(name=name, signature=match.group(0)))
        return functions

    def extract_imports(self, code: str) -> List[str]:
        return self.IMPORT_PATTERN.findall(code)

    def extract_exports(self, code: str) -> List[str]:
        return self.EXPORT_PATTERN.findall(code)
