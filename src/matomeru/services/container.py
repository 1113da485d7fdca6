"""
Services container module for matomeru.

Builds every collaborator of the aggregation service from configuration and
hands them over explicitly. Nothing here is a module-level singleton: each
container owns its own instances and releases them on close().
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from matomeru.core.config import MatomeruConfig, load_config
from matomeru.core.file_scanner import DirectoryScanner, LanguageRegistry
from matomeru.core.size_estimator import SizeEstimator
from matomeru.core.tokenizer import TokenizerInterface, create_tokenizer
from matomeru.diff.invoker import DiffProcessInvokerInterface, GitDiffInvoker
from matomeru.diff.scopes import ScopeFinder
from matomeru.generators import GeneratorInterface, create_generators
from matomeru.services.aggregation_service import AggregationService

logger = logging.getLogger(__name__)


@dataclass
class ServicesContainer:
    """
    Container holding all service instances for one session.

    Attributes:
        config: Application configuration
        scanner: Directory scanner shared by scans and estimates
        estimator: Size estimator
        invoker: git invoker for diff mode
        generators: Document generators keyed by format name
        tokenizer: Token counter for document metrics
        scope_finder: Tree-sitter scope lookup for function-scoped diffs
    """

    config: MatomeruConfig
    scanner: DirectoryScanner
    estimator: SizeEstimator
    invoker: DiffProcessInvokerInterface
    generators: dict[str, GeneratorInterface]
    tokenizer: TokenizerInterface
    scope_finder: ScopeFinder
    _service: Optional[AggregationService] = field(default=None, init=False, repr=False)

    def open(self) -> "ServicesContainer":
        """Build the aggregation service. Calling open() twice is harmless."""
        if self._service is None:
            self._service = AggregationService(
                scanner=self.scanner,
                estimator=self.estimator,
                invoker=self.invoker,
                generators=self.generators,
                config=self.config,
                tokenizer=self.tokenizer,
                scope_finder=self.scope_finder,
            )
            logger.debug("Services container opened")
        return self

    def close(self) -> None:
        """Drop the aggregation service and release loaded parsers."""
        if self._service is None:
            return
        self._service = None
        self.scope_finder.close()
        logger.debug("Services container closed")

    @property
    def is_open(self) -> bool:
        return self._service is not None

    @property
    def aggregation_service(self) -> AggregationService:
        """
        The aggregation service.

        Raises:
            RuntimeError: If the container has not been opened
        """
        if self._service is None:
            raise RuntimeError("ServicesContainer is not open; call open() first")
        return self._service

    def __enter__(self) -> "ServicesContainer":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def create_services(
    config_path: Optional[Path] = None,
    config: Optional[MatomeruConfig] = None,
    tokenizer: Optional[TokenizerInterface] = None,
) -> ServicesContainer:
    """
    Create all services from configuration.

    The returned container is not yet open; use it as a context manager or
    call open() before accessing the aggregation service.

    Args:
        config_path: Optional path to a configuration file. Ignored when
            config is given.
        config: Ready configuration, e.g. one already adjusted by the CLI
        tokenizer: Token counter overriding the configured one

    Returns:
        ServicesContainer holding fresh instances.
    """
    config = config or load_config(config_path)

    scanner = DirectoryScanner(language_registry=LanguageRegistry())
    estimator = SizeEstimator(scanner=scanner, bytes_per_token=config.estimate.bytes_per_token)
    invoker = GitDiffInvoker(
        executable=config.diff.git_executable,
        timeout=config.diff.timeout,
    )

    if tokenizer is None:
        tokenizer = create_tokenizer(
            kind=config.estimate.tokenizer,
            encoding_name=config.estimate.encoding_name,
            bytes_per_token=config.estimate.bytes_per_token,
        )

    return ServicesContainer(
        config=config,
        scanner=scanner,
        estimator=estimator,
        invoker=invoker,
        generators=create_generators(),
        tokenizer=tokenizer,
        scope_finder=ScopeFinder(),
    )
