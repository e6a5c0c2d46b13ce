"""
In-place edits and deletions of clusters in a processed payload.
"""
import logging
from typing import Any, Dict, Mapping

from clustering.models import (
    Cluster,
    DIFFICULTY_RANGE_PATTERN,
    ProcessedPayload,
    parse_difficulty_range,
    whole,
)
from clustering.payload import refresh_metadata
from core.exceptions import MutationError
from ingestion.normalizer import parse_leading_float, parse_leading_int

logger = logging.getLogger(__name__)

TEXT_FIELDS = (
    "cluster_name",
    "supporting_keywords",
    "topics",
    "intent",
    "seed_keywords",
)
INTEGER_FIELDS = ("keyword_count", "total_volume")
DECIMAL_FIELDS = ("avg_difficulty", "avg_cpc")
RANGE_FIELD = "min_max_difficulty"

EDITABLE_FIELDS = frozenset(
    TEXT_FIELDS + INTEGER_FIELDS + DECIMAL_FIELDS + (RANGE_FIELD,)
)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class ClusterEditor:
    """
    Edits and deletes clusters of a payload.

    Values that are missing, blank or unparseable keep the cluster's
    current value. The cluster order is never changed by an edit.
    """

    def _check_index(self, payload: ProcessedPayload, index: int) -> None:
        size = len(payload.clusters)
        if isinstance(index, bool) or not isinstance(index, int):
            raise MutationError(
                f"Cluster index must be an integer, got {index!r}",
                size=size
            )
        if index < 0 or index >= size:
            raise MutationError(
                f"Cluster index {index} out of range (0-{size - 1})"
                if size else f"Cluster index {index} out of range (no clusters)",
                index=index,
                size=size
            )

    def resolve_changes(
        self,
        changes: Mapping[str, Any]
    ) -> Dict[str, Any]:
        """
        Work out the attribute updates an edit results in.

        Args:
            changes: Field name -> submitted value

        Returns:
            Dict of attribute name -> new value, only for accepted values
        """
        updates: Dict[str, Any] = {}

        for name, value in changes.items():
            if _is_blank(value):
                continue

            if name in TEXT_FIELDS:
                updates[name] = str(value).strip() if name == "cluster_name" else str(value)
            elif name in INTEGER_FIELDS:
                number = parse_leading_int(value)
                if number is not None:
                    updates[name] = number
            elif name in DECIMAL_FIELDS:
                number = parse_leading_float(value)
                if number is not None:
                    updates[name] = whole(number)
            elif name == RANGE_FIELD:
                if isinstance(value, str) and DIFFICULTY_RANGE_PATTERN.match(value):
                    low, high = parse_difficulty_range(value)
                    updates["min_difficulty"] = low
                    updates["max_difficulty"] = high

        return updates

    def edit(
        self,
        payload: ProcessedPayload,
        index: int,
        changes: Mapping[str, Any]
    ) -> Cluster:
        """
        Overwrite fields of one cluster and refresh metadata.

        Args:
            payload: Payload holding the cluster
            index: Position of the cluster
            changes: Field name -> submitted value

        Returns:
            The edited cluster

        Raises:
            MutationError: If the index is out of range or a field
                is not editable; nothing is changed in that case
        """
        self._check_index(payload, index)

        unknown = sorted(set(changes) - EDITABLE_FIELDS)
        if unknown:
            raise MutationError(
                f"Fields not editable: {', '.join(unknown)}",
                index=index,
                size=len(payload.clusters)
            )

        cluster = payload.clusters[index]
        updates = self.resolve_changes(changes)
        for name, value in updates.items():
            setattr(cluster, name, value)

        refresh_metadata(payload)
        logger.info(
            "Edited cluster %d (%s): %s",
            index,
            cluster.cluster_name,
            ", ".join(sorted(updates)) or "no changes"
        )
        return cluster

    def delete(self, payload: ProcessedPayload, index: int) -> Cluster:
        """
        Remove one cluster and refresh metadata.

        Args:
            payload: Payload holding the cluster
            index: Position of the cluster

        Returns:
            The removed cluster

        Raises:
            MutationError: If the index is out of range
        """
        self._check_index(payload, index)

        removed = payload.clusters.pop(index)
        refresh_metadata(payload)
        logger.info(
            "Deleted cluster %d (%s), %d remaining",
            index,
            removed.cluster_name,
            len(payload.clusters)
        )
        return removed
