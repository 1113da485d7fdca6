"""
Data models for the file scanner module.

All models are created fresh per scan call and are immutable once built.
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from types import MappingProxyType


class SkipReason(str, Enum):
    """Why a discovered file carries no content."""

    SIZE = "size"
    BINARY = "binary"


class SkippedFilePolicy(str, Enum):
    """How files skipped for size or binary content appear in the tree."""

    LIST = "list"  # keep the entry, without content
    OMIT = "omit"  # drop the entry entirely


@dataclass(frozen=True)
class ScanOptions:
    """
    Per-call scan options.

    Attributes:
        max_file_size: Files larger than this (bytes) are skipped without reading
        exclude_patterns: Caller glob patterns, order preserved, duplicates removed
        use_gitignore: Merge .gitignore patterns found at or above the root
        use_vscodeignore: Merge .vscodeignore patterns found at or above the root
        include_dependencies: Emit an import dependency graph in the document
        skipped_file_policy: Whether skipped files stay in the tree
        batch_size: Number of files handed to the reader per batch
        concurrency: Maximum concurrent file reads within a batch
    """

    max_file_size: int = 1048576
    exclude_patterns: tuple[str, ...] = ()
    use_gitignore: bool = False
    use_vscodeignore: bool = False
    include_dependencies: bool = False
    skipped_file_policy: SkippedFilePolicy = SkippedFilePolicy.LIST
    batch_size: int = 100
    concurrency: int = 8

    def __post_init__(self) -> None:
        deduped = tuple(dict.fromkeys(p for p in self.exclude_patterns if p and p.strip()))
        object.__setattr__(self, "exclude_patterns", deduped)
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        if self.concurrency < 1:
            raise ValueError(f"concurrency must be positive, got {self.concurrency}")
        if not isinstance(self.skipped_file_policy, SkippedFilePolicy):
            object.__setattr__(
                self, "skipped_file_policy", SkippedFilePolicy(self.skipped_file_policy)
            )


@dataclass(frozen=True)
class FileRecord:
    """
    A file accepted by the scanner.

    Attributes:
        absolute_path: Absolute path to the file
        relative_path: POSIX path relative to the selected root
        size_bytes: File size in bytes
        content: Decoded text, or None when the file was skipped
        language: Language tag used for fenced blocks ('plaintext' if unknown)
        skip_reason: Set when content was not read or was rejected
        changed_lines: New-side line numbers touched by a diff, if any
    """

    absolute_path: Path
    relative_path: str
    size_bytes: int
    content: str | None
    language: str
    skip_reason: SkipReason | None = None
    changed_lines: frozenset[int] | None = None

    @property
    def name(self) -> str:
        return self.relative_path.rsplit("/", 1)[-1]

    @property
    def has_content(self) -> bool:
        return self.content is not None


@dataclass(frozen=True)
class DirectoryNode:
    """
    A directory in the scanned tree.

    Built bottom-up by build_tree() and never mutated afterwards.
    """

    name: str
    relative_path: str
    files: tuple[FileRecord, ...] = ()
    children: Mapping[str, "DirectoryNode"] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def iter_files(self) -> Iterator[FileRecord]:
        """Yield every file in the subtree, directories before their children, sorted."""
        yield from self.files
        for name in sorted(self.children):
            yield from self.children[name].iter_files()

    def sorted_children(self) -> list["DirectoryNode"]:
        return [self.children[name] for name in sorted(self.children)]

    @property
    def accepted_count(self) -> int:
        """Number of files present in the tree, with or without content."""
        return sum(1 for _ in self.iter_files())

    @property
    def content_count(self) -> int:
        """Number of files that carry content."""
        return sum(1 for f in self.iter_files() if f.has_content)

    @property
    def content_bytes(self) -> int:
        """Total size of content-bearing files; skipped files do not count."""
        return sum(f.size_bytes for f in self.iter_files() if f.has_content)

    def is_empty(self) -> bool:
        return not self.files and not self.children

    def with_changed_lines(self, line_map: Mapping[str, Iterable[int]]) -> "DirectoryNode":
        """
        Return a new tree whose records carry changed lines from line_map.

        Keys are paths relative to this node's root. Files missing from the
        map keep changed_lines=None and are rendered in full.
        """
        records = []
        for record in self.iter_files():
            lines = line_map.get(record.relative_path)
            if lines:
                record = replace(record, changed_lines=frozenset(lines))
            records.append(record)
        return build_tree(records, name=self.name)


def build_tree(records: Iterable[FileRecord], name: str = ".") -> DirectoryNode:
    """
    Build a DirectoryNode tree from records keyed by their relative paths.

    Args:
        records: Accepted file records
        name: Display name for the root node

    Returns:
        Root DirectoryNode with relative_path ""
    """
    entries = [(record.relative_path.split("/"), record) for record in records]
    return _build_node(name, "", entries)


def _build_node(
    name: str, relative_path: str, entries: list[tuple[list[str], FileRecord]]
) -> DirectoryNode:
    files: list[FileRecord] = []
    groups: dict[str, list[tuple[list[str], FileRecord]]] = {}

    for parts, record in entries:
        if len(parts) == 1:
            files.append(record)
        else:
            groups.setdefault(parts[0], []).append((parts[1:], record))

    children = {}
    for child_name in sorted(groups):
        child_path = f"{relative_path}/{child_name}" if relative_path else child_name
        children[child_name] = _build_node(child_name, child_path, groups[child_name])

    files.sort(key=lambda r: r.relative_path)
    return DirectoryNode(
        name=name,
        relative_path=relative_path,
        files=tuple(files),
        children=MappingProxyType(children),
    )
