"""
Comment stripping for compressed output.

Removes comments, and Python docstrings, using the Tree-sitter grammars that
also back function-scoped diffs. Lines left holding nothing but a removed
comment disappear entirely; trailing comments take their leading whitespace
with them. Content in a language without an installed grammar is returned
unchanged.
"""

import logging
from typing import Any

from matomeru.diff.scopes import ScopeFinder

logger = logging.getLogger(__name__)

COMMENT_NODE_TYPES = frozenset({"comment", "line_comment", "block_comment"})

_PYTHON_SCOPE_PARENTS = frozenset({"function_definition", "class_definition"})

ByteRange = tuple[int, int]


def _first_statement(node: Any) -> Any | None:
    for child in node.named_children:
        if child.type not in COMMENT_NODE_TYPES:
            return child
    return None


def _is_docstring(node: Any) -> bool:
    """True for a string expression opening a Python module, class or function body."""
    if node.type != "expression_statement" or len(node.named_children) != 1:
        return False
    if "string" not in node.named_children[0].type:
        return False

    parent = node.parent
    if parent is None or _first_statement(parent) != node:
        return False
    if parent.type == "module":
        return True
    if parent.type != "block" or parent.parent is None:
        return False
    if parent.parent.type not in _PYTHON_SCOPE_PARENTS:
        return False
    # A body holding only its docstring would be left empty
    statements = [c for c in parent.named_children if c.type not in COMMENT_NODE_TYPES]
    return len(statements) > 1


def _removal_range(source: bytes, start: int, end: int) -> ByteRange:
    """Widen a node's byte range to whole-line or trailing-comment removal."""
    line_start = source.rfind(b"\n", 0, start) + 1
    line_end = source.find(b"\n", end)
    if line_end == -1:
        line_end = len(source)

    before = source[line_start:start]
    after = source[end:line_end]

    if not before.strip() and not after.strip():
        return line_start, min(line_end + 1, len(source))
    if not after.strip():
        cut = line_end - 1 if after.endswith(b"\r") else line_end
        return line_start + len(before.rstrip()), cut
    return start, end


def _merge(ranges: list[ByteRange]) -> list[ByteRange]:
    merged: list[ByteRange] = []
    for start, end in sorted(ranges):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


class CommentStripper:
    """Strips comments from file content with Tree-sitter."""

    def __init__(self, parsers: ScopeFinder | None = None):
        self._parsers = parsers or ScopeFinder()

    def strip(self, content: str, language: str | None) -> str:
        """
        Remove comments (and Python docstrings) from content.

        Args:
            content: Source text
            language: Language tag of the source

        Returns:
            Stripped text; the original text when the language is unsupported
            or nothing was removed
        """
        if not content.strip():
            return content

        source = content.encode("utf-8")
        tree = self._parsers.parse(source, language)
        if tree is None:
            return content

        ranges: list[ByteRange] = []
        stack = [tree.root_node]
        while stack:
            node = stack.pop()
            if node.type in COMMENT_NODE_TYPES or (language == "python" and _is_docstring(node)):
                ranges.append(_removal_range(source, node.start_byte, node.end_byte))
                continue
            stack.extend(node.children)

        if not ranges:
            return content

        pieces = []
        last = 0
        for start, end in _merge(ranges):
            pieces.append(source[last:start])
            last = end
        pieces.append(source[last:])
        stripped = b"".join(pieces).decode("utf-8")

        logger.debug(
            f"Stripped {len(ranges)} comment blocks from {language} content",
            extra={
                "language": language,
                "removed_blocks": len(ranges),
                "original_chars": len(content),
                "stripped_chars": len(stripped),
            },
        )
        return stripped
