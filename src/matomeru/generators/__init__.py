"""
Document generators for matomeru.

Turns scanned directory trees into Markdown or YAML documents.
"""

from .base import (
    GenerateOptions,
    GeneratorInterface,
    RootDocument,
    format_file_size,
    format_line_ranges,
    format_token_count,
)
from .compress import CommentStripper
from .dependencies import (
    DependencyGraphBuilder,
    GoImportExtractor,
    ImportExtractorInterface,
    ImportExtractorRegistry,
    JavaScriptImportExtractor,
    NullImportExtractor,
    PythonImportExtractor,
    create_default_import_registry,
    render_mermaid,
)
from .markdown import MarkdownGenerator
from .outline import render_outline
from .yaml_generator import YamlGenerator


def create_generators() -> dict[str, GeneratorInterface]:
    """Generators keyed by output format name."""
    graph_builder = DependencyGraphBuilder()
    return {
        MarkdownGenerator.format_name: MarkdownGenerator(graph_builder),
        YamlGenerator.format_name: YamlGenerator(graph_builder),
    }


__all__ = [
    # Base
    "GeneratorInterface",
    "GenerateOptions",
    "RootDocument",
    "format_file_size",
    "format_line_ranges",
    "format_token_count",
    # Compression
    "CommentStripper",
    # Generators
    "MarkdownGenerator",
    "YamlGenerator",
    "create_generators",
    "render_outline",
    # Dependencies
    "DependencyGraphBuilder",
    "ImportExtractorInterface",
    "ImportExtractorRegistry",
    "PythonImportExtractor",
    "JavaScriptImportExtractor",
    "GoImportExtractor",
    "NullImportExtractor",
    "create_default_import_registry",
    "render_mermaid",
]
