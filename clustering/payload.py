"""
Payload assembly and the shared metadata recompute.
"""
import logging
from typing import List, Sequence

from clustering.models import (
    Cluster,
    PayloadMetadata,
    ProcessedPayload,
    round_half_up,
    whole,
)
from config.columns import PILLAR_MARKERS

logger = logging.getLogger(__name__)


def is_pillar_page(page_type: str) -> bool:
    """Check whether a page type names a pillar (hub) page."""
    if not page_type:
        return False
    lowered = page_type.lower()
    return any(marker in lowered for marker in PILLAR_MARKERS)


def compute_metadata(
    clusters: Sequence[Cluster],
    seed_keyword: str,
    filename: str,
    processing_time_ms: int = 0
) -> PayloadMetadata:
    """
    Compute run-level metadata from a cluster list.

    Args:
        clusters: Current clusters
        seed_keyword: Seed keyword of the run
        filename: Source filename
        processing_time_ms: Duration of parse and aggregate

    Returns:
        PayloadMetadata
    """
    total_keywords = sum(c.keyword_count for c in clusters)
    total_volume = sum(c.total_volume for c in clusters)
    avg_difficulty = (
        round_half_up(sum(c.avg_difficulty for c in clusters) / len(clusters), 1)
        if clusters else 0
    )
    pillar_pages = sum(1 for c in clusters if is_pillar_page(c.page_type))

    return PayloadMetadata(
        seed_keyword=seed_keyword,
        filename=filename,
        total_clusters=len(clusters),
        total_keywords=total_keywords,
        total_volume=whole(total_volume),
        avg_difficulty=whole(avg_difficulty),
        pillar_pages=pillar_pages,
        sub_pages=len(clusters) - pillar_pages,
        processing_time_ms=processing_time_ms,
    )


def refresh_metadata(payload: ProcessedPayload) -> PayloadMetadata:
    """
    Recompute a payload's metadata from its current clusters.

    Every change to the cluster list goes through here.
    """
    payload.metadata = compute_metadata(
        payload.clusters,
        seed_keyword=payload.seed_keyword,
        filename=payload.source_filename,
        processing_time_ms=payload.metadata.processing_time_ms,
    )
    return payload.metadata


class PayloadBuilder:
    """
    Wraps aggregated clusters into a processed payload.
    """

    def build(
        self,
        clusters: List[Cluster],
        seed_keyword: str,
        filename: str = None,
        processing_time_ms: int = 0
    ) -> ProcessedPayload:
        """
        Build a payload.

        Args:
            clusters: Sorted clusters from the aggregator
            seed_keyword: Seed keyword entered for the run
            filename: Source filename
            processing_time_ms: Duration of parse and aggregate

        Returns:
            ProcessedPayload
        """
        filename = filename or "unknown.csv"
        payload = ProcessedPayload(
            seed_keyword=seed_keyword,
            source_filename=filename,
            clusters=list(clusters),
            metadata=compute_metadata(
                clusters,
                seed_keyword=seed_keyword,
                filename=filename,
                processing_time_ms=processing_time_ms,
            ),
        )
        logger.info(
            "Built payload for '%s': %d clusters, %d keywords",
            seed_keyword,
            payload.metadata.total_clusters,
            payload.metadata.total_keywords
        )
        return payload
