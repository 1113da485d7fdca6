"""
YAML document generator.
"""

import logging
from typing import Any

import yaml

from matomeru.core.file_scanner.models import DirectoryNode

from .base import (
    GenerateOptions,
    GeneratorInterface,
    RootDocument,
    display_path,
    format_line_ranges,
    is_multi_root,
    iter_root_files,
    rendered_content,
)
from .dependencies import DependencyGraphBuilder

logger = logging.getLogger(__name__)


def structure_of(node: DirectoryNode) -> dict[str, Any]:
    """Nested mapping of a directory: files map to None, directories to mappings."""
    structure: dict[str, Any] = {}
    for record in sorted(node.files, key=lambda r: r.relative_path):
        structure[record.name] = None
    for child in node.sorted_children():
        structure[child.name] = structure_of(child)
    return structure


class YamlGenerator(GeneratorInterface):
    """
    Renders scanned roots as a YAML document.

    Top-level keys, in order: project_overview (only with prefix text),
    directory_structure, files, and dependencies when requested. With several
    roots the directory structure is keyed by root label.
    """

    format_name = "yaml"

    def __init__(self, graph_builder: DependencyGraphBuilder | None = None):
        self._graph_builder = graph_builder or DependencyGraphBuilder()

    def generate(self, roots: list[RootDocument], options: GenerateOptions) -> str:
        if not roots:
            return ""

        multi_root = is_multi_root(roots, options)
        document: dict[str, Any] = {}

        prefix = options.prefix_text.strip()
        if prefix:
            document["project_overview"] = prefix

        if multi_root:
            document["directory_structure"] = {
                root.label: structure_of(root.node) for root in roots
            }
        else:
            document["directory_structure"] = structure_of(roots[0].node)

        files = []
        for root, record in iter_root_files(roots):
            entry: dict[str, Any] = {
                "root": root.label,
                "path": display_path(root, record, multi_root),
                "size": record.size_bytes,
                "language": record.language,
            }
            if record.skip_reason is not None:
                entry["skipped"] = record.skip_reason.value
            if record.changed_lines:
                entry["changed_lines"] = format_line_ranges(record.changed_lines)
            if options.include_content:
                content = rendered_content(record, options)
                if content is not None:
                    entry["content"] = content
            files.append(entry)
        document["files"] = files

        if options.include_dependencies:
            document["dependencies"] = self._graph_builder.build(roots)

        logger.debug(
            f"Generated YAML for {len(roots)} root(s)",
            extra={"root_count": len(roots), "file_count": len(files)},
        )
        return yaml.safe_dump(
            document,
            sort_keys=False,
            allow_unicode=True,
            width=120,
            default_flow_style=False,
        )
