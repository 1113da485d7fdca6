"""
matomeru - aggregate source trees and git diffs into one Markdown or YAML document.

Layers:
- core: exclusion policy, ignore files, directory scanning, size estimation
- diff: range validation, git invocation, unified diff parsing
- generators: Markdown and YAML document generation
- services: multi-root aggregation and the services container
"""

__version__ = "0.1.0"

from matomeru.services import (
    AggregationResult,
    AggregationService,
    ServicesContainer,
    create_services,
)

__all__ = [
    "__version__",
    "AggregationResult",
    "AggregationService",
    "ServicesContainer",
    "create_services",
]
