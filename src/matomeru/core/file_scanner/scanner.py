"""
DirectoryScanner implementation for concurrent, bounded directory scanning.
"""

import asyncio
import logging
import os
import stat
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from matomeru.core.exclusion import ExclusionMatcher, ExclusionPolicy
from matomeru.core.ignore_loader import IgnoreFileLoader
from matomeru.errors import (
    DirectoryNotFoundError,
    RootNotDirectoryError,
    ScanCancelled,
    ScanPermissionError,
)

from .binary import SNIFF_SIZE, has_binary_extension, is_binary_content
from .interfaces import DirectoryScannerInterface
from .language_registry import LanguageRegistry
from .models import (
    DirectoryNode,
    FileRecord,
    ScanOptions,
    SkippedFilePolicy,
    SkipReason,
    build_tree,
)

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative cancellation flag checked by long-running scans."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self, path: Path | None = None) -> None:
        if self._cancelled:
            raise ScanCancelled("Scan cancelled", path=str(path) if path else None)


@dataclass(frozen=True)
class Candidate:
    """A file that survived exclusion and is waiting to be classified."""

    absolute_path: Path
    relative_path: str


def resolve_root(root_path: Path | str) -> Path:
    """
    Resolve a scan root and check that it can be enumerated.

    Raises:
        DirectoryNotFoundError: The path does not exist
        RootNotDirectoryError: The path is neither a directory nor a regular file
        ScanPermissionError: The directory cannot be listed
    """
    root = Path(root_path).expanduser()
    try:
        root = root.resolve(strict=True)
    except FileNotFoundError:
        raise DirectoryNotFoundError(f"Directory not found: {root}", path=str(root)) from None
    except OSError as e:
        raise ScanPermissionError(f"Cannot access {root}: {e}", path=str(root)) from e

    if root.is_file():
        return root
    if not root.is_dir():
        raise RootNotDirectoryError(f"Not a directory or regular file: {root}", path=str(root))
    if not os.access(root, os.R_OK | os.X_OK):
        raise ScanPermissionError(f"Permission denied: {root}", path=str(root))
    return root


class DirectoryScanner(DirectoryScannerInterface):
    """
    Concrete implementation of DirectoryScannerInterface.

    Provides:
    - A single os.walk enumeration with excluded directories pruned in place
    - Mandatory, caller and ignore-file exclusion via ExclusionPolicy
    - Size and binary gating before content is kept
    - Batched reads with a bounded number in flight
    - Language detection via LanguageRegistry

    The scanner keeps no per-scan state on the instance, so one scanner can
    serve concurrent scans of sibling roots.
    """

    def __init__(self, language_registry: LanguageRegistry | None = None):
        """
        Initialize the DirectoryScanner.

        Args:
            language_registry: Registry used for language tags. A registry
                loaded from the packaged languages.yaml is created if omitted.
        """
        self._language_registry = language_registry or LanguageRegistry()

    @property
    def language_registry(self) -> LanguageRegistry:
        return self._language_registry

    async def scan(
        self,
        root_path: Path,
        options: ScanOptions,
        cancel_token: CancellationToken | None = None,
    ) -> DirectoryNode:
        root = resolve_root(root_path)
        matcher = await asyncio.to_thread(self.build_matcher, root, options)
        candidates = await asyncio.to_thread(self.collect_candidates, root, matcher)

        logger.debug(f"Found {len(candidates)} candidate files under {root}")
        records = await self._process(candidates, options, cancel_token, root)
        tree = build_tree(records, name=root.name)

        logger.info(
            f"Scanned {root}: {tree.accepted_count} files",
            extra={
                "root": str(root),
                "candidate_count": len(candidates),
                "accepted_count": tree.accepted_count,
                "content_bytes": tree.content_bytes,
            },
        )
        return tree

    async def scan_files(
        self,
        root_path: Path,
        relative_paths: Iterable[str],
        options: ScanOptions,
        cancel_token: CancellationToken | None = None,
    ) -> DirectoryNode:
        root = resolve_root(root_path)
        matcher = await asyncio.to_thread(self.build_matcher, root, options)
        candidates = await asyncio.to_thread(
            self._candidates_from_paths, root, list(relative_paths), matcher
        )
        records = await self._process(candidates, options, cancel_token, root)
        return build_tree(records, name=root.name)

    def build_matcher(self, root: Path, options: ScanOptions) -> ExclusionMatcher:
        """Compile the exclusion policy for one root, loading ignore files if enabled."""
        ignore_root = root if root.is_dir() else root.parent
        ignore_patterns = IgnoreFileLoader(ignore_root).load(
            options.use_gitignore, options.use_vscodeignore
        )
        return ExclusionPolicy.compile(options.exclude_patterns, ignore_patterns)

    def collect_candidates(self, root: Path, matcher: ExclusionMatcher) -> list[Candidate]:
        """
        Enumerate non-excluded regular files under root.

        Runs a single os.walk; excluded directories and symlinked directories
        are removed from the walk so their subtrees are never listed.

        Raises:
            ScanPermissionError: If the root itself cannot be listed
        """
        if root.is_file():
            if matcher.is_excluded(root.name):
                return []
            return [Candidate(root, root.name)]

        try:
            os.listdir(root)
        except PermissionError as e:
            raise ScanPermissionError(f"Permission denied: {root}", path=str(root)) from e

        def on_error(error: OSError) -> None:
            logger.warning(f"Error accessing directory: {error.filename} - {error}")

        candidates: list[Candidate] = []
        for dirpath, dirnames, filenames in os.walk(root, onerror=on_error, followlinks=False):
            current = Path(dirpath)
            rel_dir = current.relative_to(root).as_posix()
            prefix = "" if rel_dir == "." else rel_dir + "/"

            kept = []
            for name in dirnames:
                if (current / name).is_symlink():
                    logger.debug(f"Skipping symlinked directory: {current / name}")
                    continue
                if matcher.is_excluded(prefix + name, is_dir=True):
                    logger.debug(f"Pruning excluded directory: {prefix}{name}")
                    continue
                kept.append(name)
            dirnames[:] = sorted(kept)

            for name in filenames:
                path = current / name
                relative = prefix + name
                if path.is_symlink():
                    logger.debug(f"Skipping symlink: {path}")
                    continue
                if matcher.is_excluded(relative, is_dir=False):
                    continue
                candidates.append(Candidate(path, relative))

        candidates.sort(key=lambda c: c.relative_path)
        return candidates

    def _candidates_from_paths(
        self, root: Path, relative_paths: list[str], matcher: ExclusionMatcher
    ) -> list[Candidate]:
        base = root if root.is_dir() else root.parent
        seen: set[str] = set()
        candidates = []
        for raw in relative_paths:
            relative = PurePosixPath(raw.replace("\\", "/")).as_posix().lstrip("/")
            if not relative or relative == "." or relative in seen:
                continue
            seen.add(relative)
            if ".." in relative.split("/"):
                logger.warning(f"Skipping path outside root: {raw}")
                continue
            if matcher.is_excluded_with_parents(relative):
                logger.debug(f"Skipping excluded path: {relative}")
                continue
            path = base / relative
            if path.is_symlink() or not path.is_file():
                logger.debug(f"Skipping missing or non-regular file: {relative}")
                continue
            candidates.append(Candidate(path, relative))

        candidates.sort(key=lambda c: c.relative_path)
        return candidates

    def classify(
        self, candidate: Candidate, options: ScanOptions, read_content: bool = True
    ) -> FileRecord | None:
        """
        Stat, gate and optionally read one candidate.

        With read_content=False only a sniff prefix is read and the returned
        record never carries content; the accept/skip decision is identical.

        Returns:
            FileRecord (content None when skipped), or None if the file could
            not be read
        """
        path = candidate.absolute_path
        language = self._language_registry.detect_from_path(path)

        try:
            st = path.stat()
            if not stat.S_ISREG(st.st_mode):
                return None
            size_bytes = st.st_size

            if size_bytes > options.max_file_size:
                logger.debug(f"Skipping large file ({size_bytes} bytes): {path}")
                return FileRecord(
                    path, candidate.relative_path, size_bytes, None, language, SkipReason.SIZE
                )

            if has_binary_extension(path):
                return FileRecord(
                    path, candidate.relative_path, size_bytes, None, language, SkipReason.BINARY
                )

            with open(path, "rb") as f:
                data = f.read() if read_content else f.read(SNIFF_SIZE)
        except PermissionError as e:
            logger.warning(f"Permission denied reading file: {path} - {e}")
            return None
        except OSError as e:
            logger.warning(f"Error reading file: {path} - {e}")
            return None

        if is_binary_content(data[:SNIFF_SIZE]):
            return FileRecord(
                path, candidate.relative_path, size_bytes, None, language, SkipReason.BINARY
            )

        content = data.decode("utf-8", errors="replace") if read_content else None
        return FileRecord(path, candidate.relative_path, size_bytes, content, language)

    async def _process(
        self,
        candidates: list[Candidate],
        options: ScanOptions,
        cancel_token: CancellationToken | None,
        root: Path,
    ) -> list[FileRecord]:
        """Classify candidates in batches with at most options.concurrency reads in flight."""
        semaphore = asyncio.Semaphore(options.concurrency)

        async def bounded(candidate: Candidate) -> FileRecord | None:
            async with semaphore:
                return await asyncio.to_thread(self.classify, candidate, options)

        records: list[FileRecord] = []
        for start in range(0, len(candidates), options.batch_size):
            if cancel_token is not None:
                cancel_token.raise_if_cancelled(root)
            batch = candidates[start:start + options.batch_size]
            results = await asyncio.gather(*(bounded(c) for c in batch))
            records.extend(apply_skip_policy(results, options))

        return records


def apply_skip_policy(
    records: Iterable[FileRecord | None], options: ScanOptions
) -> list[FileRecord]:
    """Drop unreadable files, and skipped ones too under the omit policy."""
    kept = []
    for record in records:
        if record is None:
            continue
        if record.skip_reason is not None and options.skipped_file_policy is SkippedFilePolicy.OMIT:
            continue
        kept.append(record)
    return kept
