"""Tests for line diffs, hunk reconstruction and stats."""

import random
import re

import pytest

from app.models.diff import DiffLineKind, FileDiffRequest
from app.services.diff_generator import DiffGenerator, TRAILING_CONTEXT_LINES


def _lines(n, prefix="line"):
    return [f"{prefix} {i}" for i in range(1, n + 1)]


class TestIdenticalInput:
    def test_no_changes(self):
        text = "a\nb\nc\n"
        diff = DiffGenerator.generate_file_diff("x.ts", text, text)
        assert diff.stats.insertions == 0
        assert diff.stats.deletions == 0
        assert diff.stats.total_changes == 0
        assert diff.hunks == []

    def test_empty_strings(self):
        diff = DiffGenerator.generate_file_diff("x.ts", "", "")
        assert diff.stats.total_changes == 0
        assert diff.hunks == []
        assert diff.unified_diff == "--- x.ts\toriginal\n+++ x.ts\tmodified\n"


def _lcs_length(a, b):
    prev = [0] * (len(b) + 1)
    for x in a:
        cur = [0]
        for j, y in enumerate(b):
            cur.append(prev[j] + 1 if x == y else max(prev[j + 1], cur[j]))
        prev = cur
    return prev[-1]


def _random_pairs(count, seed=7):
    rng = random.Random(seed)
    for _ in range(count):
        yield (
            "".join(rng.choice("ab\n") for _ in range(rng.randint(0, 24))),
            "".join(rng.choice("ab\n") for _ in range(rng.randint(0, 24))),
        )


SWAP_CASES = [
    ("one\ntwo\nthree\nfour\n", "one\n2\nthree\nfour\nfive\nsix\n"),
    ("bba\na\naaab\n\nb\n", "\n\na\nab\naaa\n\naa"),
    ("a\nb\nc\na\nb\nb\na\n", "c\nb\na\nb\na\nc\n"),
    ("", "x\ny\n"),
    ("x\ny", ""),
]


class TestStats:
    @pytest.mark.parametrize("a, b", SWAP_CASES)
    def test_swap_mirrors_stats(self, a, b):
        forward = DiffGenerator.generate_file_diff("f", a, b).stats
        backward = DiffGenerator.generate_file_diff("f", b, a).stats
        assert forward.insertions == backward.deletions
        assert forward.deletions == backward.insertions
        assert forward.total_changes == backward.total_changes

    def test_random_pairs_are_symmetric_and_minimal(self):
        for a, b in _random_pairs(1500):
            forward = DiffGenerator.generate_file_diff("f", a, b).stats
            backward = DiffGenerator.generate_file_diff("f", b, a).stats
            assert (forward.insertions, forward.deletions) == (backward.deletions, backward.insertions), (a, b)

            old = re.findall(r"[^\n]*\n|[^\n]+", a)
            new = re.findall(r"[^\n]*\n|[^\n]+", b)
            common = _lcs_length(old, new)
            assert forward.deletions == len(old) - common, (a, b)
            assert forward.insertions == len(new) - common, (a, b)

    def test_ops_rebuild_both_sides(self):
        for a, b in _random_pairs(300, seed=11):
            ops = DiffGenerator.line_operations(a, b)
            assert "".join(l for op in ops if op.kind != "added" for l in op.lines) == a
            assert "".join(l for op in ops if op.kind != "removed" for l in op.lines) == b

    def test_blank_lines_count(self):
        stats = DiffGenerator.generate_file_diff("f", "a\n", "a\n\n\n").stats
        assert stats.insertions == 2
        assert stats.deletions == 0

    def test_missing_trailing_newline_is_a_change(self):
        stats = DiffGenerator.generate_file_diff("f", "a", "a\n").stats
        assert stats.insertions == 1
        assert stats.deletions == 1


class TestHunks:
    def test_single_replacement(self):
        original = "\n".join(_lines(10)) + "\n"
        modified = original.replace("line 5\n", "LINE FIVE\n")
        hunks = DiffGenerator.generate_file_diff("f", original, modified).hunks

        assert len(hunks) == 1
        hunk = hunks[0]
        assert hunk.old_start == 5
        assert hunk.new_start == 5
        kinds = [line.kind for line in hunk.lines]
        assert kinds == [DiffLineKind.remove, DiffLineKind.add] + [DiffLineKind.context] * TRAILING_CONTEXT_LINES
        assert hunk.lines[0].text == "line 5"
        assert hunk.lines[0].old_line_number == 5
        assert hunk.lines[1].text == "LINE FIVE"
        assert hunk.lines[1].new_line_number == 5
        context = hunk.lines[2:]
        assert [c.old_line_number for c in context] == [6, 7, 8]
        assert [c.new_line_number for c in context] == [6, 7, 8]

    def test_short_trailing_block_gives_short_context(self):
        original = "a\nb\nc\nd\n"
        modified = "a\nb\nX\nd\n"
        hunk = DiffGenerator.generate_file_diff("f", original, modified).hunks[0]
        assert [l.kind for l in hunk.lines] == [DiffLineKind.remove, DiffLineKind.add, DiffLineKind.context]

    def test_change_at_end_flushes_open_hunk(self):
        hunks = DiffGenerator.generate_file_diff("f", "a\nb\n", "a\nb\nc\n").hunks
        assert len(hunks) == 1
        assert hunks[0].new_start == 3
        assert hunks[0].lines[-1].kind == DiffLineKind.add

    def test_line_numbers_track_insertions(self):
        original = "\n".join(_lines(20)) + "\n"
        lines = _lines(20)
        lines.insert(2, "inserted A")
        lines.insert(3, "inserted B")
        lines[15] = "changed"
        modified = "\n".join(lines) + "\n"

        hunks = DiffGenerator.generate_file_diff("f", original, modified).hunks
        assert len(hunks) == 2
        second = hunks[1]
        removed = [l for l in second.lines if l.kind == DiffLineKind.remove][0]
        added = [l for l in second.lines if l.kind == DiffLineKind.add][0]
        assert removed.old_line_number == 14
        assert added.new_line_number == 16
        assert second.old_start == 14
        assert second.new_start == 16

    def test_hunk_starts_are_monotonic(self):
        original = "\n".join(_lines(60)) + "\n"
        lines = _lines(60)
        for i in (3, 17, 18, 40, 58):
            lines[i] = f"edited {i}"
        del lines[25]
        modified = "\n".join(lines) + "\n"

        hunks = DiffGenerator.generate_file_diff("f", original, modified).hunks
        assert len(hunks) >= 3
        for prev, cur in zip(hunks, hunks[1:]):
            assert prev.old_start <= cur.old_start
            assert prev.new_start <= cur.new_start

    def test_counts_cover_every_line(self):
        hunk = DiffGenerator.generate_file_diff("f", "a\nb\nc\nd\ne\n", "a\nB\nc\nd\ne\n").hunks[0]
        assert hunk.old_line_count == sum(1 for l in hunk.lines if l.kind != DiffLineKind.add)
        assert hunk.new_line_count == sum(1 for l in hunk.lines if l.kind != DiffLineKind.remove)


class TestUnifiedDiff:
    def test_headers_and_body(self):
        text = DiffGenerator.unified_diff("src/a.ts", "a\nb\n", "a\nc\n")
        assert text.startswith("--- src/a.ts\toriginal\n+++ src/a.ts\tmodified\n")
        assert "@@ -1,2 +1,2 @@\n" in text
        assert "-b\n" in text
        assert "+c\n" in text

    def test_no_newline_marker(self):
        text = DiffGenerator.unified_diff("f", "a\nb", "a\nc")
        assert "-b\n\\ No newline at end of file\n" in text
        assert "+c\n\\ No newline at end of file\n" in text


class TestMultiFile:
    def test_order_preserved(self):
        diffs = DiffGenerator.generate_multi_file_diff([
            FileDiffRequest(file_name="a.ts", original_content="x\n", modified_content="y\n"),
            FileDiffRequest(file_name="b.ts", original_content="x\n", modified_content="x\n"),
        ])
        assert [d.file_name for d in diffs] == ["a.ts", "b.ts"]
        assert diffs[0].stats.total_changes == 2
        assert diffs[1].stats.total_changes == 0


class TestLineSplitting:
    """Only newline separates lines; other Unicode line breaks stay inside the text."""

    def test_unicode_separator_stays_in_line(self):
        original = "const a = 1;\u2028const b = 2;\nconst c = 3;\n"
        modified = "const a = 1;\u2028const b = 20;\nconst c = 3;\n"

        diff = DiffGenerator.generate_file_diff("f.js", original, modified)

        assert diff.stats.insertions == 1
        assert diff.stats.deletions == 1
        hunk = diff.hunks[0]
        assert hunk.old_start == 1
        assert hunk.lines[0].text == "const a = 1;\u2028const b = 2;"
        assert hunk.lines[1].text == "const a = 1;\u2028const b = 20;"

    def test_form_feed_lines_count_once(self):
        original = "x\x0cy\n" * 10
        modified = "z\x0cw\n" * 10

        stats = DiffGenerator.generate_file_diff("f", original, modified).stats

        assert stats.total_changes == 20

    def test_crlf_endings_are_stripped_from_text(self):
        hunk = DiffGenerator.generate_file_diff("f", "a\r\nb\r\n", "a\r\nc\r\n").hunks[0]
        assert [l.text for l in hunk.lines] == ["b", "c"]
        assert hunk.old_start == 2
