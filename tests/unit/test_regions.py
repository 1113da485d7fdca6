"""
Tests for changed-region extraction.
"""

import pytest

from matomeru.diff.regions import (
    extract_changed_regions,
    group_line_blocks,
    merge_ranges,
    widen,
)
from matomeru.diff.scopes import ScopeFinder

CONTENT = "\n".join(f"line {i}" for i in range(1, 21)) + "\n"


class TestRangeHelpers:
    def test_group_line_blocks(self):
        assert group_line_blocks([5, 1, 2, 3, 9, 5]) == [(1, 3), (5, 5), (9, 9)]

    def test_widen_is_clamped(self):
        assert widen([(0, 1), (8, 9)], 3, 9) == [(0, 4), (5, 9)]

    def test_merge_overlapping_and_adjacent(self):
        assert merge_ranges([(5, 7), (0, 2), (3, 4), (10, 12)]) == [(0, 7), (10, 12)]


class TestExtractChangedRegions:
    def test_context_window(self):
        snippet = extract_changed_regions(CONTENT, [10], context_lines=1)
        assert snippet == "line 9\nline 10\nline 11"

    def test_separate_regions_joined_by_blank_line(self):
        snippet = extract_changed_regions(CONTENT, [2, 18], context_lines=0)
        assert snippet == "line 2\n\nline 18"

    def test_nearby_regions_merge(self):
        snippet = extract_changed_regions(CONTENT, [5, 8], context_lines=1)
        assert snippet == "\n".join(f"line {i}" for i in range(4, 10))

    def test_out_of_range_lines(self):
        assert extract_changed_regions(CONTENT, [0, 99]) is None

    def test_empty_content(self):
        assert extract_changed_regions("", [1]) is None

    def test_unsupported_language_falls_back_to_windows(self):
        finder = ScopeFinder()
        snippet = extract_changed_regions(
            CONTENT, [3], context_lines=0, language="cobol", scope_finder=finder
        )
        assert snippet == "line 3"
        assert not finder.supports_language("cobol")


class TestScopedRegions:
    def test_enclosing_function_is_emitted(self):
        pytest.importorskip("tree_sitter")
        pytest.importorskip("tree_sitter_python")

        source = (
            "import os\n"
            "\n"
            "\n"
            "def first():\n"
            "    a = 1\n"
            "    b = 2\n"
            "    return a + b\n"
            "\n"
            "\n"
            "def second():\n"
            "    return 0\n"
        )
        finder = ScopeFinder()
        snippet = extract_changed_regions(
            source, [6], context_lines=0, language="python", scope_finder=finder
        )
        assert snippet == "def first():\n    a = 1\n    b = 2\n    return a + b"

    def test_close_resets_loaded_languages(self):
        finder = ScopeFinder()
        finder.supports_language("cobol")
        finder.close()
        assert finder._initialized_languages == set()
