"""
Abstract interfaces for file scanning operations.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path

from .models import DirectoryNode, ScanOptions


class DirectoryScannerInterface(ABC):
    """
    Abstract interface for directory scanning operations.

    Implementations enumerate a root, apply the exclusion policy, gate files
    on size and binary content, and return an immutable tree.
    """

    @abstractmethod
    async def scan(self, root_path: Path, options: ScanOptions, cancel_token=None) -> DirectoryNode:
        """
        Scan a directory (or a single file) into a DirectoryNode tree.

        Args:
            root_path: Root directory or file to scan
            options: Per-call scan options
            cancel_token: Optional CancellationToken checked between batches

        Returns:
            Root DirectoryNode; relative paths are relative to root_path

        Raises:
            ScanFailure: If the root cannot be enumerated

        Notes:
            - Excluded directories are never descended into
            - Per-file read errors are logged and the file is dropped
        """
        pass

    @abstractmethod
    async def scan_files(
        self,
        root_path: Path,
        relative_paths: Iterable[str],
        options: ScanOptions,
        cancel_token=None,
    ) -> DirectoryNode:
        """
        Build a tree from an explicit list of root-relative paths.

        The same exclusion and gating rules as scan() apply; paths that no
        longer exist are dropped.
        """
        pass
