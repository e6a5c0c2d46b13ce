"""
Cluster aggregation.
Groups keyword records by page and page type and computes cluster metrics.
"""
import logging
from typing import List, Dict, Tuple, Iterable, Sequence

import numpy as np

from clustering.models import Cluster, round_half_up, whole
from config.columns import EMPTY_VALUE, LIST_SEPARATOR
from core.exceptions import ValidationError
from ingestion.normalizer import KeywordRecord

logger = logging.getLogger(__name__)

DEFAULT_SUPPORTING_LIMIT = 8


def join_unique(values: Iterable[str]) -> str:
    """Join distinct values in first-appearance order, or "N/A" when empty."""
    unique: List[str] = []
    for value in values:
        if value and value not in unique:
            unique.append(value)
    return LIST_SEPARATOR.join(unique) if unique else EMPTY_VALUE


class ClusterAggregator:
    """
    Aggregates keyword records into page-level clusters.
    """

    def __init__(self, supporting_keyword_limit: int = DEFAULT_SUPPORTING_LIMIT):
        """
        Initialize aggregator.

        Args:
            supporting_keyword_limit: Max supporting keywords kept per cluster
        """
        self.supporting_keyword_limit = supporting_keyword_limit

    def group(
        self,
        records: Iterable[KeywordRecord]
    ) -> Dict[Tuple[str, str], List[KeywordRecord]]:
        """
        Group records by (page, page type), in first-seen order.

        Args:
            records: Normalized keyword records

        Returns:
            Dict mapping (page, page_type) -> member records
        """
        groups: Dict[Tuple[str, str], List[KeywordRecord]] = {}
        for record in records:
            groups.setdefault(record.group_key, []).append(record)
        return groups

    def build_cluster(
        self,
        page: str,
        page_type: str,
        members: Sequence[KeywordRecord]
    ) -> Cluster:
        """
        Compute the metrics of one cluster.

        Difficulty and CPC values of 0 or less are treated as unknown
        and left out of averages and bounds; volumes always count.

        Args:
            page: Page value, used as the cluster name
            page_type: Page type of every member
            members: Records sharing this key

        Returns:
            Cluster with aggregated values
        """
        total_volume = sum(record.volume for record in members)

        difficulties = [
            record.difficulty for record in members
            if record.difficulty is not None and record.difficulty > 0
        ]
        cpcs = [
            record.cpc for record in members
            if record.cpc is not None and record.cpc > 0
        ]

        avg_difficulty = (
            round_half_up(float(np.mean(difficulties)), 1) if difficulties else 0
        )
        avg_cpc = round_half_up(float(np.mean(cpcs)), 2) if cpcs else 0

        main_keyword = page.lower()
        supporting = [
            record.keyword for record in members
            if record.keyword.lower() != main_keyword
        ][:self.supporting_keyword_limit]

        return Cluster(
            cluster_name=page,
            page_type=page_type,
            keyword_count=len(members),
            supporting_keywords=(
                LIST_SEPARATOR.join(supporting) if supporting else EMPTY_VALUE
            ),
            total_volume=whole(total_volume),
            avg_difficulty=whole(avg_difficulty),
            min_difficulty=whole(min(difficulties)) if difficulties else 0,
            max_difficulty=whole(max(difficulties)) if difficulties else 0,
            topics=join_unique(
                topic for record in members for topic in record.topics
            ),
            intent=join_unique(
                intent for record in members for intent in record.intents
            ),
            avg_cpc=whole(avg_cpc),
            seed_keywords=join_unique(
                seed for record in members for seed in record.seed_keywords
            ),
        )

    def aggregate(self, records: Sequence[KeywordRecord]) -> List[Cluster]:
        """
        Aggregate records into clusters sorted by total volume.

        Clusters with equal volume keep their first-appearance order.

        Args:
            records: Normalized keyword records

        Returns:
            Clusters, highest total volume first

        Raises:
            ValidationError: If there are no records
        """
        if not records:
            raise ValidationError("No valid keyword data found in CSV")

        groups = self.group(records)
        clusters = [
            self.build_cluster(page, page_type, members)
            for (page, page_type), members in groups.items()
        ]

        # list.sort is stable, also with reverse=True
        clusters.sort(key=lambda c: c.total_volume, reverse=True)

        logger.info(
            "Aggregated %d records into %d clusters",
            len(records),
            len(clusters)
        )
        return clusters
