"""
Tests for SizeEstimator.
"""

import pytest

from matomeru.core.file_scanner import CancellationToken, DirectoryScanner, ScanOptions
from matomeru.core.size_estimator import SizeEstimator
from matomeru.errors import DirectoryNotFoundError, ScanCancelled
from tests.support.tree_utils import write_tree


@pytest.fixture
def project(tmp_path):
    return write_tree(
        tmp_path / "project",
        {
            "a.py": "a" * 36,
            "pkg/b.py": "b" * 36,
            "pkg/big.txt": "x" * 500,
            "pkg/image.png": b"\x89PNG\r\n\x1a\n",
            ".env": "TOKEN=1",
        },
    )


class TestSizeEstimator:
    @pytest.mark.asyncio
    async def test_counts_match_scan(self, project):
        options = ScanOptions(max_file_size=100)
        scanner = DirectoryScanner()

        estimate = await SizeEstimator(scanner).estimate(project, options)
        node = await scanner.scan(project, options)

        assert estimate.file_count == node.accepted_count == 4
        assert estimate.total_bytes == node.content_bytes == 72
        assert estimate.skipped_count == 2

    @pytest.mark.asyncio
    async def test_tokens_use_bytes_per_token(self, project):
        estimate = await SizeEstimator(bytes_per_token=36).estimate(
            project, ScanOptions(max_file_size=100)
        )
        assert estimate.estimated_tokens == 2

    @pytest.mark.asyncio
    async def test_omit_policy_excludes_skipped_files_from_count(self, project):
        options = ScanOptions(max_file_size=100, skipped_file_policy="omit")
        estimate = await SizeEstimator().estimate(project, options)

        assert estimate.file_count == 2
        assert estimate.skipped_count == 2

    @pytest.mark.asyncio
    async def test_empty_directory(self, tmp_path):
        estimate = await SizeEstimator().estimate(tmp_path, ScanOptions())
        assert (estimate.file_count, estimate.total_bytes, estimate.estimated_tokens) == (0, 0, 0)

    @pytest.mark.asyncio
    async def test_missing_root(self, tmp_path):
        with pytest.raises(DirectoryNotFoundError):
            await SizeEstimator().estimate(tmp_path / "nope", ScanOptions())

    @pytest.mark.asyncio
    async def test_cancellation(self, project):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(ScanCancelled):
            await SizeEstimator().estimate(project, ScanOptions(), cancel_token=token)
