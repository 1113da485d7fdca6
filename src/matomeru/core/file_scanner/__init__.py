"""
File scanner module for matomeru.

Provides concurrent, bounded directory scanning with exclusion policies,
size and binary gating, and an immutable DirectoryNode tree.
"""

from .binary import BINARY_EXTENSIONS, has_binary_extension, is_binary_content
from .interfaces import DirectoryScannerInterface
from .language_registry import UNKNOWN_LANGUAGE, LanguageRegistry
from .models import (
    DirectoryNode,
    FileRecord,
    ScanOptions,
    SkippedFilePolicy,
    SkipReason,
    build_tree,
)
from .scanner import CancellationToken, DirectoryScanner

__all__ = [
    # Main classes
    "DirectoryScanner",
    "DirectoryScannerInterface",
    "CancellationToken",
    # Models
    "DirectoryNode",
    "FileRecord",
    "ScanOptions",
    "SkippedFilePolicy",
    "SkipReason",
    "build_tree",
    # Language registry
    "LanguageRegistry",
    "UNKNOWN_LANGUAGE",
    # Binary detection
    "BINARY_EXTENSIONS",
    "has_binary_extension",
    "is_binary_content",
]
