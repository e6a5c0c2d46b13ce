"""
Clustering module for the Keyword Cluster Processor.

1. Group keyword records by page and page type
2. Aggregate per-cluster metrics, sorted by volume
3. Wrap clusters with run metadata
4. Edit and delete clusters, recomputing metadata
"""
from clustering.models import Cluster, PayloadMetadata, ProcessedPayload
from clustering.aggregator import ClusterAggregator
from clustering.payload import (
    PayloadBuilder,
    compute_metadata,
    refresh_metadata,
    is_pillar_page
)
from clustering.mutations import ClusterEditor

__all__ = [
    # Models
    "Cluster",
    "PayloadMetadata",
    "ProcessedPayload",
    # Aggregation
    "ClusterAggregator",
    # Payload
    "PayloadBuilder",
    "compute_metadata",
    "refresh_metadata",
    "is_pillar_page",
    # Mutations
    "ClusterEditor",
]
