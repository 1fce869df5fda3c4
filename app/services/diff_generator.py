"""
Diff Generator — line-level diffs between two full versions of a file.

Produces three views of the same change:
  - unified diff text (standard ---/+++/@@ patch)
  - hunks rebuilt from the line operation sequence, with old/new line numbers
  - whole-file insertion/deletion stats

Pure and synchronous: no I/O, safe to call from any thread.
"""

import difflib
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from app.models.diff import DiffLine, DiffLineKind, DiffStats, FileDiff, FileDiffRequest, Hunk

# Unchanged lines kept after a change before the hunk is closed
TRAILING_CONTEXT_LINES = 3

NO_NEWLINE_MARKER = "\\ No newline at end of file\n"


@dataclass
class DiffOp:
    """A block of consecutive lines that were added, removed or left unchanged."""
    kind: str                      # added | removed | unchanged
    lines: List[str] = field(default_factory=list)


_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+")


def _split_lines(text: str) -> List[str]:
    # Only "\n" ends a line; endings are kept so "a" vs "a\n" still differs
    return _LINE_RE.findall(text)


def _strip_eol(line: str) -> str:
    return line.rstrip("\r\n")


def _shortest_edit(a: Sequence[str], b: Sequence[str]) -> List[Tuple[str, int]]:
    """
    Myers O(ND) shortest edit script between two line lists.

    Returns moves in order as (kind, index): "unchanged" and "removed"
    index into a, "added" indexes into b. Any shortest script deletes
    len(a) - LCS lines and inserts len(b) - LCS lines, whichever side is
    passed first.
    """
    n, m = len(a), len(b)
    offset = n + m + 1
    v = [0] * (2 * offset + 1)
    # trace[d] holds the furthest x per diagonal k in [-d-1, d+1] before round d
    trace: List[List[int]] = []

    for d in range(n + m + 1):
        trace.append(v[offset - d - 1: offset + d + 2])
        for k in range(-d, d + 1, 2):
            if k == -d or (k != d and v[offset + k - 1] < v[offset + k + 1]):
                x = v[offset + k + 1]
            else:
                x = v[offset + k - 1] + 1
            y = x - k
            while x < n and y < m and a[x] == b[y]:
                x += 1
                y += 1
            v[offset + k] = x
            if x >= n and y >= m:
                return _backtrack(trace, n, m)

    return _backtrack(trace, n, m)


def _backtrack(trace: List[List[int]], n: int, m: int) -> List[Tuple[str, int]]:
    moves: List[Tuple[str, int]] = []
    x, y = n, m

    for d in range(len(trace) - 1, -1, -1):
        row = trace[d]
        k = x - y
        if k == -d or (k != d and row[k - 1 + d + 1] < row[k + 1 + d + 1]):
            prev_k = k + 1
        else:
            prev_k = k - 1
        prev_x = row[prev_k + d + 1]
        prev_y = prev_x - prev_k

        while x > prev_x and y > prev_y:
            x -= 1
            y -= 1
            moves.append(("unchanged", x))
        if d > 0:
            if x == prev_x:
                moves.append(("added", y - 1))
            else:
                moves.append(("removed", x - 1))
        x, y = prev_x, prev_y

    moves.reverse()
    return moves


class DiffGenerator:
    """Static methods — no instance state."""

    # ── Public ───────────────────────────────────────

    @staticmethod
    def generate_file_diff(file_name: str, original: str, modified: str) -> FileDiff:
        ops = DiffGenerator.line_operations(original, modified)
        return FileDiff(
            file_name=file_name,
            original_content=original,
            modified_content=modified,
            unified_diff=DiffGenerator.unified_diff(file_name, original, modified),
            hunks=DiffGenerator.build_hunks(ops),
            stats=DiffGenerator.calculate_stats(ops),
        )

    @staticmethod
    def generate_multi_file_diff(files: Iterable[FileDiffRequest]) -> List[FileDiff]:
        return [
            DiffGenerator.generate_file_diff(f.file_name, f.original_content, f.modified_content)
            for f in files
        ]

    # ── Building blocks ──────────────────────────────

    @staticmethod
    def unified_diff(file_name: str, original: str, modified: str) -> str:
        """Header is always present; body is empty when the texts are identical."""
        out = [f"--- {file_name}\toriginal\n", f"+++ {file_name}\tmodified\n"]

        body = difflib.unified_diff(
            _split_lines(original),
            _split_lines(modified),
            n=TRAILING_CONTEXT_LINES,
            lineterm="\n",
        )
        for i, line in enumerate(body):
            if i < 2:   # difflib's own ---/+++ header
                continue
            if line.endswith("\n"):
                out.append(line)
            else:
                out.append(line + "\n")
                out.append(NO_NEWLINE_MARKER)

        return "".join(out)

    @staticmethod
    def line_operations(original: str, modified: str) -> List[DiffOp]:
        """
        Minimal line-granularity edit script. Within each changed region the
        removed block comes before the added block.
        """
        a = _split_lines(original)
        b = _split_lines(modified)

        # Shared head and tail never take part in the edit search
        head = 0
        while head < len(a) and head < len(b) and a[head] == b[head]:
            head += 1
        tail = 0
        while tail < len(a) - head and tail < len(b) - head and a[-1 - tail] == b[-1 - tail]:
            tail += 1

        a_mid = a[head:len(a) - tail]
        b_mid = b[head:len(b) - tail]

        ops: List[DiffOp] = []
        if head:
            ops.append(DiffOp("unchanged", a[:head]))

        removed: List[str] = []
        added: List[str] = []
        for kind, index in _shortest_edit(a_mid, b_mid):
            if kind == "removed":
                removed.append(a_mid[index])
                continue
            if kind == "added":
                added.append(b_mid[index])
                continue
            if removed or added:
                ops.extend(DiffOp(k, lines) for k, lines in (("removed", removed), ("added", added)) if lines)
                removed, added = [], []
            if ops and ops[-1].kind == "unchanged":
                ops[-1].lines.append(a_mid[index])
            else:
                ops.append(DiffOp("unchanged", [a_mid[index]]))
        ops.extend(DiffOp(k, lines) for k, lines in (("removed", removed), ("added", added)) if lines)

        if tail:
            if ops and ops[-1].kind == "unchanged":
                ops[-1].lines.extend(a[len(a) - tail:])
            else:
                ops.append(DiffOp("unchanged", a[len(a) - tail:]))
        return ops

    @staticmethod
    def build_hunks(ops: List[DiffOp]) -> List[Hunk]:
        """
        Walk the op sequence with running old/new line counters (1-based).
        A change opens a hunk; the next unchanged block contributes at most
        TRAILING_CONTEXT_LINES context lines and closes it. The rest of that
        block only advances the counters. A hunk still open at the end is
        flushed as-is.
        """
        hunks: List[Hunk] = []
        current: Optional[Hunk] = None
        old_line = 1
        new_line = 1

        for op in ops:
            if op.kind in ("added", "removed"):
                if current is None:
                    current = Hunk(old_start=old_line, new_start=new_line)

                for line in op.lines:
                    if op.kind == "added":
                        current.lines.append(DiffLine(
                            kind=DiffLineKind.add, text=_strip_eol(line), new_line_number=new_line,
                        ))
                        current.new_line_count += 1
                        new_line += 1
                    else:
                        current.lines.append(DiffLine(
                            kind=DiffLineKind.remove, text=_strip_eol(line), old_line_number=old_line,
                        ))
                        current.old_line_count += 1
                        old_line += 1
                continue

            # unchanged block
            remaining = len(op.lines)
            if current is not None:
                context = min(TRAILING_CONTEXT_LINES, remaining)
                for line in op.lines[:context]:
                    current.lines.append(DiffLine(
                        kind=DiffLineKind.context,
                        text=_strip_eol(line),
                        old_line_number=old_line,
                        new_line_number=new_line,
                    ))
                    current.old_line_count += 1
                    current.new_line_count += 1
                    old_line += 1
                    new_line += 1
                hunks.append(current)
                current = None
                remaining -= context

            old_line += remaining
            new_line += remaining

        if current is not None:
            hunks.append(current)

        return hunks

    @staticmethod
    def calculate_stats(ops: List[DiffOp]) -> DiffStats:
        insertions = sum(len(op.lines) for op in ops if op.kind == "added")
        deletions = sum(len(op.lines) for op in ops if op.kind == "removed")
        return DiffStats(
            insertions=insertions,
            deletions=deletions,
            total_changes=insertions + deletions,
        )
