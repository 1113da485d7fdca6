"""
Size estimation without materializing file content.

Shares enumeration, exclusion and size/binary gating with DirectoryScanner so
that an estimate and a later scan with the same options agree on the file set.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from matomeru.core.file_scanner.models import ScanOptions
from matomeru.core.file_scanner.scanner import (
    CancellationToken,
    DirectoryScanner,
    apply_skip_policy,
    resolve_root,
)
from matomeru.core.tokenizer import BYTES_PER_TOKEN, estimate_tokens_from_bytes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SizeEstimate:
    """
    Result of estimating one root.

    Attributes:
        file_count: Files a scan would place in the tree
        total_bytes: Bytes of content-bearing files only
        estimated_tokens: ceil(total_bytes / bytes_per_token)
        skipped_count: Files a scan would skip for size or binary content
    """

    file_count: int
    total_bytes: int
    estimated_tokens: int
    skipped_count: int = 0


class SizeEstimator:
    """Estimates file count, content size and token count for a root."""

    def __init__(
        self,
        scanner: DirectoryScanner | None = None,
        bytes_per_token: float = BYTES_PER_TOKEN,
    ):
        self._scanner = scanner or DirectoryScanner()
        self._bytes_per_token = bytes_per_token

    async def estimate(
        self,
        root_path: Path,
        options: ScanOptions,
        cancel_token: CancellationToken | None = None,
    ) -> SizeEstimate:
        """
        Estimate a root without retaining any file content.

        Raises:
            ScanFailure: Under the same conditions as DirectoryScanner.scan
        """
        root = resolve_root(root_path)
        matcher = await asyncio.to_thread(self._scanner.build_matcher, root, options)
        candidates = await asyncio.to_thread(self._scanner.collect_candidates, root, matcher)

        semaphore = asyncio.Semaphore(options.concurrency)

        async def bounded(candidate):
            async with semaphore:
                return await asyncio.to_thread(
                    self._scanner.classify, candidate, options, False
                )

        file_count = 0
        total_bytes = 0
        skipped_count = 0
        for start in range(0, len(candidates), options.batch_size):
            if cancel_token is not None:
                cancel_token.raise_if_cancelled(root)
            batch = candidates[start:start + options.batch_size]
            results = await asyncio.gather(*(bounded(c) for c in batch))

            skipped_count += sum(1 for r in results if r is not None and r.skip_reason is not None)
            for record in apply_skip_policy(results, options):
                file_count += 1
                if record.skip_reason is None:
                    total_bytes += record.size_bytes

        estimate = SizeEstimate(
            file_count=file_count,
            total_bytes=total_bytes,
            estimated_tokens=estimate_tokens_from_bytes(total_bytes, self._bytes_per_token),
            skipped_count=skipped_count,
        )
        logger.debug(
            f"Estimated {root}: {file_count} files, {total_bytes} bytes",
            extra={"root": str(root), "file_count": file_count, "total_bytes": total_bytes},
        )
        return estimate
