"""
Shared types and formatting helpers for document generators.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from matomeru.core.config import OutlineConfig
from matomeru.core.file_scanner.models import DirectoryNode, FileRecord
from matomeru.diff.regions import extract_changed_regions
from matomeru.diff.scopes import ScopeFinder

from .compress import CommentStripper

_SIZE_UNITS = ("KB", "MB", "GB")


@dataclass(frozen=True)
class RootDocument:
    """A scanned root and the label that keeps its paths distinct from sibling roots."""

    label: str
    node: DirectoryNode


@dataclass
class GenerateOptions:
    """
    Options shared by all generators.

    Attributes:
        prefix_text: Free text placed at the top of the document
        include_content: Emit file content (the YAML toggle; Markdown always does)
        include_dependencies: Emit the import dependency graph
        mermaid_max_nodes: Node limit for the Mermaid graph
        context_lines: Context kept around changed regions
        outline: Directory outline markers and indentation
        scope_finder: Enables function-scoped changed regions when set
        comment_stripper: Strips comments from whole-file content when set
        multi_root: Label paths by root; None decides from the roots passed in.
            Set it to the number of requested roots so a failed sibling does
            not change the document layout.
    """

    prefix_text: str = ""
    include_content: bool = True
    include_dependencies: bool = False
    mermaid_max_nodes: int = 300
    context_lines: int = 3
    outline: OutlineConfig = field(default_factory=OutlineConfig)
    scope_finder: ScopeFinder | None = None
    comment_stripper: CommentStripper | None = None
    multi_root: bool | None = None


def is_multi_root(roots: list[RootDocument], options: GenerateOptions) -> bool:
    if options.multi_root is not None:
        return options.multi_root
    return len(roots) > 1


class GeneratorInterface(ABC):
    """Abstract interface for document generators."""

    format_name: str = ""

    @abstractmethod
    def generate(self, roots: list[RootDocument], options: GenerateOptions) -> str:
        """
        Render scanned roots into a document.

        Args:
            roots: Roots in caller order
            options: Rendering options

        Returns:
            Document text; identical trees always yield identical text
        """
        pass


def format_file_size(size_bytes: int) -> str:
    """
    Format a byte count for display.

    Bytes below 1024 are printed as an integer; larger sizes are scaled to
    KB, MB or GB with one decimal (1536 -> '1.5 KB', 1073741824 -> '1.0 GB').
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    size = float(size_bytes)
    unit = _SIZE_UNITS[0]
    for unit in _SIZE_UNITS:
        size /= 1024
        # 1048575 rounds to 1024.0 and belongs to the next unit
        if round(size, 1) < 1024:
            break
    return f"{size:.1f} {unit}"


def format_token_count(tokens: int) -> str:
    """Format a token count compactly (950 -> '950', 1500 -> '1.5K', 2300000 -> '2.3M')."""
    if tokens < 1000:
        return str(tokens)
    if tokens < 1_000_000:
        return f"{tokens / 1000:.1f}K"
    return f"{tokens / 1_000_000:.1f}M"


def format_line_ranges(lines: Iterable[int]) -> str:
    """Compress line numbers into ranges, e.g. {1, 2, 3, 7} -> '1-3, 7'."""
    parts = []
    start = end = None
    for line in sorted(set(lines)):
        if end is not None and line == end + 1:
            end = line
            continue
        if start is not None:
            parts.append(str(start) if start == end else f"{start}-{end}")
        start = end = line
    if start is not None:
        parts.append(str(start) if start == end else f"{start}-{end}")
    return ", ".join(parts)


def display_path(root: RootDocument, record: FileRecord, multi_root: bool) -> str:
    """Path shown for a file; prefixed with the root label when several roots are present."""
    if multi_root:
        return f"{root.label}/{record.relative_path}"
    return record.relative_path


def iter_root_files(roots: list[RootDocument]) -> Iterator[tuple[RootDocument, FileRecord]]:
    """Yield (root, record) pairs, roots in caller order and files sorted by path."""
    for root in roots:
        for record in sorted(root.node.iter_files(), key=lambda r: r.relative_path):
            yield root, record


def rendered_content(record: FileRecord, options: GenerateOptions) -> str | None:
    """
    Content to emit for a record.

    Records with changed lines are narrowed to their changed regions; when
    nothing can be narrowed the full content is returned. Comment stripping
    applies to full content only, since narrowed regions keep the line
    numbers of the changed lines.
    """
    if record.content is None:
        return None
    if record.changed_lines:
        narrowed = extract_changed_regions(
            record.content,
            record.changed_lines,
            context_lines=options.context_lines,
            language=record.language,
            scope_finder=options.scope_finder,
        )
        if narrowed is not None:
            return narrowed
    if options.comment_stripper is not None:
        return options.comment_stripper.strip(record.content, record.language)
    return record.content
