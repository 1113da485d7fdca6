"""
Narrowing of file content to the regions touched by a diff.
"""

import logging
from collections.abc import Iterable

from .scopes import ScopeFinder

logger = logging.getLogger(__name__)

Range = tuple[int, int]


def group_line_blocks(rows: Iterable[int]) -> list[Range]:
    """Group sorted 0-based rows into runs of consecutive rows."""
    blocks: list[Range] = []
    for row in sorted(set(rows)):
        if blocks and row == blocks[-1][1] + 1:
            blocks[-1] = (blocks[-1][0], row)
        else:
            blocks.append((row, row))
    return blocks


def widen(ranges: Iterable[Range], context_lines: int, last_row: int) -> list[Range]:
    """Extend each range by context_lines on both sides, clamped to the document."""
    return [
        (max(0, start - context_lines), min(last_row, end + context_lines))
        for start, end in ranges
    ]


def merge_ranges(ranges: Iterable[Range]) -> list[Range]:
    """Merge overlapping or adjacent ranges."""
    merged: list[Range] = []
    for start, end in sorted(ranges):
        if merged and start <= merged[-1][1] + 1:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def extract_changed_regions(
    content: str,
    changed_lines: Iterable[int],
    context_lines: int = 3,
    language: str | None = None,
    scope_finder: ScopeFinder | None = None,
) -> str | None:
    """
    Extract the parts of a file around its changed lines.

    Args:
        content: Full file content
        changed_lines: New-side line numbers, 1-based
        context_lines: Lines of context kept around each region
        language: Language tag, used for scope lookup
        scope_finder: When given, whole enclosing declarations are emitted
            instead of bare line windows

    Returns:
        Snippets joined by a blank line, or None when nothing applies
    """
    if not content:
        return None

    lines = content.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    if not lines:
        return None
    last_row = len(lines) - 1

    rows = {line - 1 for line in changed_lines if 0 < line <= len(lines)}
    if not rows:
        return None

    ranges: list[Range] | None = None
    if scope_finder is not None and language:
        scopes = scope_finder.find_scopes(content, language, rows)
        if scopes:
            ranges = scopes
        else:
            logger.debug(f"No enclosing scope for changed lines in {language} content")

    if ranges is None:
        ranges = group_line_blocks(rows)

    snippets = []
    for start, end in merge_ranges(widen(ranges, context_lines, last_row)):
        snippets.append("\n".join(lines[start:end + 1]).rstrip())

    combined = "\n\n".join(s for s in snippets if s).strip("\n")
    return combined or None
