"""
Aggregation Service for matomeru.

Scans one or more roots (or the files touched by a git diff) and renders
them into a single document. Every root is scanned as a sibling task whose
outcome is collected on its own, so a failing root never cancels the others.
"""

import asyncio
import logging
import time
from collections.abc import Sequence
from pathlib import Path

from matomeru.core.config import MatomeruConfig
from matomeru.core.file_scanner.interfaces import DirectoryScannerInterface
from matomeru.core.file_scanner.models import ScanOptions
from matomeru.core.file_scanner.scanner import CancellationToken
from matomeru.core.size_estimator import SizeEstimator
from matomeru.core.tokenizer import TokenizerInterface, estimate_tokens_from_bytes
from matomeru.diff.invoker import DiffProcessInvokerInterface
from matomeru.diff.parser import parse_name_list, parse_unified_diff
from matomeru.diff.range_validator import build_args
from matomeru.diff.scopes import ScopeFinder
from matomeru.errors import DiffError, MatomeruError, ScanFailure
from matomeru.generators.base import GenerateOptions, GeneratorInterface, RootDocument
from matomeru.generators.compress import CommentStripper
from matomeru.services.models import (
    AggregationResult,
    ContentMetrics,
    EstimateResult,
    Failure,
    RootEstimate,
    RootResult,
    Success,
)

logger = logging.getLogger(__name__)


def label_roots(paths: Sequence[Path | str]) -> list[str]:
    """
    Derive distinct labels for roots from their directory names.

    Repeated names get a numeric suffix in caller order: 'src', 'src (2)'.
    """
    labels: list[str] = []
    seen: dict[str, int] = {}
    for path in paths:
        resolved = Path(path).expanduser().resolve()
        name = resolved.name or resolved.as_posix()
        count = seen.get(name, 0) + 1
        seen[name] = count
        labels.append(name if count == 1 else f"{name} ({count})")
    return labels


def _failure_from(error: BaseException, label: str | None = None) -> Failure:
    if isinstance(error, MatomeruError):
        return Failure(kind=error.kind, message=error.message, label=label)
    return Failure(kind="ScanFailure", message=str(error) or type(error).__name__, label=label)


class AggregationService:
    """
    Service for turning roots and diffs into documents.

    All collaborators are injected; the service keeps no per-request state,
    so concurrent requests never share a mutable root or options object.
    """

    def __init__(
        self,
        scanner: DirectoryScannerInterface,
        estimator: SizeEstimator,
        invoker: DiffProcessInvokerInterface,
        generators: dict[str, GeneratorInterface],
        config: MatomeruConfig,
        tokenizer: TokenizerInterface,
        scope_finder: ScopeFinder | None = None,
    ):
        """
        Initialize the aggregation service.

        Args:
            scanner: Directory scanner used for every root
            estimator: Size estimator sharing the scanner's rules
            invoker: Runs git for diff mode
            generators: Generators keyed by format name
            config: Configuration supplying output and diff defaults
            tokenizer: Token counter for document metrics
            scope_finder: Tree-sitter scope lookup for function-scoped diffs
        """
        self._scanner = scanner
        self._estimator = estimator
        self._invoker = invoker
        self._generators = generators
        self._config = config
        self._tokenizer = tokenizer
        self._scope_finder = scope_finder
        self._comment_stripper = CommentStripper(scope_finder)

    @property
    def formats(self) -> list[str]:
        return sorted(self._generators)

    async def aggregate(
        self,
        roots: Sequence[Path | str],
        options: ScanOptions | None = None,
        output: str | None = None,
        prefix_text: str | None = None,
        cancel_token: CancellationToken | None = None,
        compress: bool | None = None,
    ) -> AggregationResult:
        """
        Scan roots concurrently and generate one document from those that succeed.

        Paths are labelled by root whenever more than one root was requested,
        even if only one of them succeeds.

        Args:
            roots: Root paths in the order they should appear
            options: Scan options (config defaults when omitted)
            output: Format name (config default when omitted)
            prefix_text: Text placed at the top of the document
            cancel_token: Cooperative cancellation for all root scans
            compress: Strip comments from file content (config default when omitted)

        Returns:
            AggregationResult; failed roots are reported in failures
        """
        start_time = time.time()
        options = options or self._config.scan.to_scan_options()
        output = output or self._config.output.format

        generator = self._generators.get(output)
        if generator is None:
            return AggregationResult(
                format=output,
                failures=[Failure("UnsupportedFormat", f"Unsupported output format: {output}")],
            )

        labels = label_roots(roots)
        outcomes = await asyncio.gather(
            *(self._scanner.scan(Path(root), options, cancel_token) for root in roots),
            return_exceptions=True,
        )

        root_results: list[RootResult] = []
        failures: list[Failure] = []
        documents: list[RootDocument] = []
        for label, root, outcome in zip(labels, roots, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                if not isinstance(outcome, ScanFailure):
                    logger.error(f"Unexpected error scanning {root}: {outcome}", exc_info=outcome)
                failure = _failure_from(outcome, label)
                failures.append(failure)
                root_results.append(RootResult(label, str(root), failure))
                logger.warning(f"Root {label} failed: {failure.kind} - {failure.message}")
            else:
                root_results.append(RootResult(label, str(root), Success(outcome)))
                documents.append(RootDocument(label, outcome))

        result = AggregationResult(format=output, roots=root_results, failures=failures)
        if documents:
            result.document = await asyncio.to_thread(
                generator.generate,
                documents,
                self._generate_options(
                    options,
                    prefix_text,
                    function_scoped=False,
                    compress=compress,
                    multi_root=len(roots) > 1,
                ),
            )
            result.metrics = ContentMetrics.from_text(result.document, self._tokenizer)

        logger.info(
            "Aggregation completed",
            extra={
                "root_count": len(roots),
                "failed_roots": len(failures),
                "document_bytes": result.metrics.bytes,
                "duration_seconds": time.time() - start_time,
            },
        )
        return result

    async def aggregate_diff(
        self,
        cwd: Path | str,
        raw_range: str | None = None,
        options: ScanOptions | None = None,
        output: str | None = None,
        function_scoped: bool | None = None,
        prefix_text: str | None = None,
        cancel_token: CancellationToken | None = None,
        compress: bool | None = None,
    ) -> AggregationResult:
        """
        Generate a document from the files changed in a git diff.

        The range is validated before git is started. Changed paths are taken
        relative to cwd, which should be the top of the working tree. In
        function-scoped mode a second zero-context diff supplies changed line
        numbers and only the enclosing declarations are emitted.

        Args:
            cwd: Working tree directory
            raw_range: Revision range such as 'HEAD~1..HEAD'; None diffs the work tree
            options: Scan options (config defaults when omitted)
            output: Format name (config default when omitted)
            function_scoped: Narrow file content to changed regions
                (config default when omitted)
            prefix_text: Text placed at the top of the document
            cancel_token: Cooperative cancellation for the scan
            compress: Strip comments from whole-file content
                (config default when omitted)

        Returns:
            AggregationResult; diff errors are reported as a single failure and
            an empty change set gives no_changes=True
        """
        options = options or self._config.scan.to_scan_options()
        output = output or self._config.output.format
        if function_scoped is None:
            function_scoped = self._config.diff.function_scoped
        if raw_range is None and self._config.diff.range:
            raw_range = self._config.diff.range

        generator = self._generators.get(output)
        if generator is None:
            return AggregationResult(
                format=output,
                failures=[Failure("UnsupportedFormat", f"Unsupported output format: {output}")],
            )

        cwd_path = Path(cwd).expanduser().resolve()
        label = label_roots([cwd_path])[0]

        try:
            name_args = build_args(raw_range)
            unified_args = build_args(raw_range, unified_zero=True) if function_scoped else None

            names = await asyncio.to_thread(self._invoker.run, cwd_path, name_args)
            changed_paths = parse_name_list(names.stdout_lines)
            if not changed_paths:
                logger.info(f"No changes found in {cwd_path}")
                return AggregationResult(format=output, no_changes=True)

            line_map = None
            if unified_args is not None:
                hunks = await asyncio.to_thread(self._invoker.run, cwd_path, unified_args)
                line_map = parse_unified_diff(hunks.stdout_lines)
        except DiffError as e:
            logger.warning(f"Diff failed: {e.kind} - {e.message}")
            return AggregationResult(format=output, failures=[_failure_from(e)])

        try:
            node = await self._scanner.scan_files(cwd_path, changed_paths, options, cancel_token)
        except ScanFailure as e:
            failure = _failure_from(e, label)
            return AggregationResult(
                format=output,
                roots=[RootResult(label, str(cwd_path), failure)],
                failures=[failure],
            )

        if line_map:
            node = node.with_changed_lines(line_map)

        result = AggregationResult(
            format=output, roots=[RootResult(label, str(cwd_path), Success(node))]
        )
        if node.is_empty():
            logger.info(f"All {len(changed_paths)} changed paths were deleted or excluded")
            result.no_changes = True
            return result

        result.document = await asyncio.to_thread(
            generator.generate,
            [RootDocument(label, node)],
            self._generate_options(
                options,
                prefix_text,
                function_scoped=function_scoped,
                compress=compress,
                multi_root=False,
            ),
        )
        result.metrics = ContentMetrics.from_text(result.document, self._tokenizer)

        logger.info(
            "Diff aggregation completed",
            extra={
                "changed_paths": len(changed_paths),
                "accepted_count": node.accepted_count,
                "function_scoped": function_scoped,
                "document_bytes": result.metrics.bytes,
            },
        )
        return result

    async def estimate(
        self,
        roots: Sequence[Path | str],
        options: ScanOptions | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> EstimateResult:
        """
        Estimate file count, content size and tokens for each root and in total.

        Failed roots are reported per root and left out of the totals.
        """
        options = options or self._config.scan.to_scan_options()
        labels = label_roots(roots)
        outcomes = await asyncio.gather(
            *(self._estimator.estimate(Path(root), options, cancel_token) for root in roots),
            return_exceptions=True,
        )

        result = EstimateResult()
        for label, root, outcome in zip(labels, roots, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                failure = _failure_from(outcome, label)
                result.failures.append(failure)
                result.roots.append(RootEstimate(label, str(root), failure=failure))
                continue

            result.roots.append(RootEstimate(label, str(root), estimate=outcome))
            result.file_count += outcome.file_count
            result.total_bytes += outcome.total_bytes
            result.skipped_count += outcome.skipped_count

        bytes_per_token = self._config.estimate.bytes_per_token
        result.estimated_tokens = estimate_tokens_from_bytes(result.total_bytes, bytes_per_token)
        result.document_bytes = (
            result.total_bytes + result.file_count * self._config.estimate.per_file_overhead_bytes
        )
        return result

    def _generate_options(
        self,
        options: ScanOptions,
        prefix_text: str | None,
        function_scoped: bool,
        compress: bool | None,
        multi_root: bool,
    ) -> GenerateOptions:
        output_config = self._config.output
        if compress is None:
            compress = output_config.compress
        return GenerateOptions(
            prefix_text=output_config.prefix_text if prefix_text is None else prefix_text,
            include_content=output_config.include_content_in_yaml,
            include_dependencies=options.include_dependencies,
            mermaid_max_nodes=output_config.mermaid_max_nodes,
            context_lines=self._config.diff.context_lines,
            outline=self._config.outline,
            scope_finder=self._scope_finder if function_scoped else None,
            comment_stripper=self._comment_stripper if compress else None,
            multi_root=multi_root,
        )
