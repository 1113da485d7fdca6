"""
Diff Layer - range validation, git invocation, unified diff parsing and
changed-region extraction.
"""

from matomeru.diff.invoker import DiffOutput, DiffProcessInvokerInterface, GitDiffInvoker
from matomeru.diff.parser import (
    HunkLineMap,
    normalize_diff_path,
    parse_name_list,
    parse_unified_diff,
    unquote_c_path,
)
from matomeru.diff.range_validator import build_args, split_range, validate_token
from matomeru.diff.regions import extract_changed_regions, merge_ranges
from matomeru.diff.scopes import ScopeFinder

__all__ = [
    # Range validation
    "build_args",
    "split_range",
    "validate_token",
    # Invocation
    "DiffOutput",
    "DiffProcessInvokerInterface",
    "GitDiffInvoker",
    # Parsing
    "HunkLineMap",
    "normalize_diff_path",
    "parse_name_list",
    "parse_unified_diff",
    "unquote_c_path",
    # Regions
    "ScopeFinder",
    "extract_changed_regions",
    "merge_ranges",
]
