"""
Aggregation service data models.

Contains the per-root outcomes and the results returned to callers. Failures
are plain values so that no exception or stack trace crosses the service
boundary.
"""

from dataclasses import dataclass, field

from matomeru.core.file_scanner.models import DirectoryNode
from matomeru.core.size_estimator import SizeEstimate
from matomeru.core.tokenizer import TokenizerInterface
from matomeru.generators.base import format_file_size, format_token_count


@dataclass(frozen=True)
class Success:
    """A root that was scanned successfully."""

    node: DirectoryNode


@dataclass(frozen=True)
class Failure:
    """
    A structured failure.

    Attributes:
        kind: Failure category, e.g. 'DirectoryNotFound' or 'InvalidRangeToken'
        message: Human-readable description
        label: Root label when the failure belongs to one root
    """

    kind: str
    message: str
    label: str | None = None


@dataclass(frozen=True)
class RootResult:
    """Outcome of scanning one requested root."""

    label: str
    path: str
    outcome: Success | Failure

    @property
    def ok(self) -> bool:
        return isinstance(self.outcome, Success)


@dataclass(frozen=True)
class ContentMetrics:
    """Size of a generated document."""

    bytes: int = 0
    lines: int = 0
    characters: int = 0
    tokens: int = 0

    @classmethod
    def from_text(cls, text: str, tokenizer: TokenizerInterface) -> "ContentMetrics":
        if not text:
            return cls()
        return cls(
            bytes=len(text.encode("utf-8")),
            lines=text.count("\n") + (0 if text.endswith("\n") else 1),
            characters=len(text),
            tokens=tokenizer.count_tokens(text),
        )

    @property
    def formatted_size(self) -> str:
        return format_file_size(self.bytes)

    @property
    def formatted_tokens(self) -> str:
        return format_token_count(self.tokens)


@dataclass
class AggregationResult:
    """
    Result of an aggregation request.

    Attributes:
        document: Generated document ('' when nothing could be generated)
        format: Output format name
        roots: Per-root outcomes in caller order
        metrics: Size of the document
        failures: Per-root or request-level failures
        no_changes: Diff mode found no changed files
    """

    document: str = ""
    format: str = "markdown"
    roots: list[RootResult] = field(default_factory=list)
    metrics: ContentMetrics = field(default_factory=ContentMetrics)
    failures: list[Failure] = field(default_factory=list)
    no_changes: bool = False

    @property
    def ok(self) -> bool:
        """True when a document was produced or a diff legitimately had no changes."""
        if self.no_changes:
            return not self.failures
        return any(root.ok for root in self.roots)

    @property
    def partial(self) -> bool:
        """True when some roots succeeded and others failed."""
        return self.ok and bool(self.failures)


@dataclass(frozen=True)
class RootEstimate:
    """Estimate for one requested root."""

    label: str
    path: str
    estimate: SizeEstimate | None = None
    failure: Failure | None = None


@dataclass
class EstimateResult:
    """
    Result of an estimate request.

    Totals cover the roots that could be estimated. document_bytes adds a
    per-file allowance for the headers and fences a Markdown document wraps
    around each file.
    """

    roots: list[RootEstimate] = field(default_factory=list)
    file_count: int = 0
    total_bytes: int = 0
    estimated_tokens: int = 0
    skipped_count: int = 0
    document_bytes: int = 0
    failures: list[Failure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return any(root.estimate is not None for root in self.roots)

    @property
    def formatted_size(self) -> str:
        return format_file_size(self.total_bytes)

    @property
    def formatted_tokens(self) -> str:
        return format_token_count(self.estimated_tokens)
