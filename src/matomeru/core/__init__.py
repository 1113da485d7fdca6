"""
Core Layer - exclusion policy, ignore files, directory scanning, size estimation,
tokenization and configuration.
"""

from matomeru.core.config import (
    DiffConfig,
    EstimateConfig,
    LoggingConfig,
    MatomeruConfig,
    OutlineConfig,
    OutputConfig,
    ScanConfig,
    configure_logging,
    load_config,
)
from matomeru.core.exclusion import (
    MANDATORY_EXCLUDE_PATTERNS,
    ExclusionMatcher,
    ExclusionPolicy,
)
from matomeru.core.file_scanner import (
    CancellationToken,
    DirectoryNode,
    DirectoryScanner,
    DirectoryScannerInterface,
    FileRecord,
    LanguageRegistry,
    ScanOptions,
    SkippedFilePolicy,
    SkipReason,
)
from matomeru.core.ignore_loader import IgnoreFileLoader, IgnorePattern
from matomeru.core.size_estimator import SizeEstimate, SizeEstimator
from matomeru.core.tokenizer import (
    BYTES_PER_TOKEN,
    ByteRatioTokenizer,
    TiktokenTokenizer,
    TokenizerInterface,
    create_tokenizer,
    estimate_tokens_from_bytes,
    get_default_tokenizer,
)

__all__ = [
    # Config
    "MatomeruConfig",
    "ScanConfig",
    "OutputConfig",
    "OutlineConfig",
    "DiffConfig",
    "EstimateConfig",
    "LoggingConfig",
    "configure_logging",
    "load_config",
    # Exclusion
    "MANDATORY_EXCLUDE_PATTERNS",
    "ExclusionMatcher",
    "ExclusionPolicy",
    "IgnoreFileLoader",
    "IgnorePattern",
    # Scanner
    "CancellationToken",
    "DirectoryNode",
    "DirectoryScanner",
    "DirectoryScannerInterface",
    "FileRecord",
    "LanguageRegistry",
    "ScanOptions",
    "SkippedFilePolicy",
    "SkipReason",
    # Estimation and tokens
    "SizeEstimate",
    "SizeEstimator",
    "BYTES_PER_TOKEN",
    "ByteRatioTokenizer",
    "TiktokenTokenizer",
    "TokenizerInterface",
    "create_tokenizer",
    "estimate_tokens_from_bytes",
    "get_default_tokenizer",
]
