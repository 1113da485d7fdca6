"""
Services Layer - multi-root aggregation, diff mode, estimation and the
services container.
"""

from matomeru.services.aggregation_service import AggregationService, label_roots
from matomeru.services.container import ServicesContainer, create_services
from matomeru.services.models import (
    AggregationResult,
    ContentMetrics,
    EstimateResult,
    Failure,
    RootEstimate,
    RootResult,
    Success,
)

__all__ = [
    # Services
    "AggregationService",
    "label_roots",
    # Container
    "ServicesContainer",
    "create_services",
    # Results
    "AggregationResult",
    "ContentMetrics",
    "EstimateResult",
    "Failure",
    "RootEstimate",
    "RootResult",
    "Success",
]
