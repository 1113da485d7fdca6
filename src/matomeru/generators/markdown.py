"""
Markdown document generator.
"""

import logging
import re

from .base import (
    GenerateOptions,
    GeneratorInterface,
    RootDocument,
    display_path,
    format_file_size,
    format_line_ranges,
    is_multi_root,
    iter_root_files,
    rendered_content,
)
from .dependencies import DependencyGraphBuilder, render_mermaid
from .outline import render_outline

logger = logging.getLogger(__name__)

GRAPH_START_MARKER = "<!-- matomeru:auto-graph:start -->"
GRAPH_END_MARKER = "<!-- matomeru:auto-graph:end -->"

_BACKTICK_RUN = re.compile(r"`+")


def fence_for(content: str) -> str:
    """Backtick fence longer than any backtick run in content (at least three)."""
    longest = max((len(m.group(0)) for m in _BACKTICK_RUN.finditer(content)), default=0)
    return "`" * max(3, longest + 1)


class MarkdownGenerator(GeneratorInterface):
    """
    Renders scanned roots as a single Markdown document.

    Layout:
    - prefix text, if any
    - Mermaid dependency graph between marker comments, if requested
    - '# Directory Structure' outline
    - '# File Contents' with one section per file
    """

    format_name = "markdown"

    def __init__(self, graph_builder: DependencyGraphBuilder | None = None):
        self._graph_builder = graph_builder or DependencyGraphBuilder()

    def generate(self, roots: list[RootDocument], options: GenerateOptions) -> str:
        if not roots:
            return ""

        multi_root = is_multi_root(roots, options)
        parts: list[str] = []

        prefix = options.prefix_text.strip()
        if prefix:
            parts.append(prefix + "\n")

        if options.include_dependencies:
            graph_block = self._graph_block(roots, options)
            if graph_block:
                parts.append(graph_block)

        parts.append("# Directory Structure\n")
        parts.append(self._outline(roots, options, multi_root))

        parts.append("# File Contents\n")
        sections = [
            self._file_section(root, record, options, multi_root)
            for root, record in iter_root_files(roots)
        ]
        parts.append("\n".join(sections))

        document = "\n".join(parts).rstrip("\n") + "\n"
        logger.debug(
            f"Generated Markdown for {len(roots)} root(s)",
            extra={"root_count": len(roots), "section_count": len(sections)},
        )
        return document

    def _graph_block(self, roots: list[RootDocument], options: GenerateOptions) -> str:
        graph = self._graph_builder.build(roots)
        mermaid = render_mermaid(graph, options.mermaid_max_nodes)
        if not mermaid:
            return ""
        return (
            f"{GRAPH_START_MARKER}\n"
            f"```mermaid\n{mermaid}\n```\n"
            f"{GRAPH_END_MARKER}\n\n---\n"
        )

    def _outline(self, roots: list[RootDocument], options: GenerateOptions, multi_root: bool) -> str:
        if not multi_root:
            return render_outline(roots[0].node, options.outline) + "\n"

        groups = []
        for root in roots:
            outline = render_outline(root.node, options.outline, root_name=root.label)
            groups.append(f"## {root.label}\n\n{outline}\n")
        return "\n".join(groups)

    def _file_section(self, root, record, options: GenerateOptions, multi_root: bool) -> str:
        lines = [
            f"## {display_path(root, record, multi_root)}",
            "",
            f"- Size: {format_file_size(record.size_bytes)}",
            f"- Language: {record.language}",
        ]
        if record.skip_reason is not None:
            lines.append(f"- Skipped: {record.skip_reason.value}")
        if record.changed_lines:
            lines.append(f"- Changed lines: {format_line_ranges(record.changed_lines)}")

        content = rendered_content(record, options)
        if content is not None:
            if content.endswith("\n"):
                content = content[:-1]
            fence = fence_for(content)
            lines.append("")
            lines.append(f"{fence}{record.language}")
            lines.append(content)
            lines.append(fence)

        return "\n".join(lines) + "\n"
