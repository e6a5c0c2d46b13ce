"""
Metrics display components for Streamlit.
Renders payload metrics and the cluster table.
"""
import math
import pandas as pd
import streamlit as st
from typing import List

from clustering.models import Cluster, PayloadMetadata, whole
from config.columns import EXPORT_COLUMNS
from export.csv_exporter import cluster_values


def display_summary_metrics(metadata: PayloadMetadata):
    """
    Display top-level summary metrics.

    Args:
        metadata: Payload metadata
    """
    col1, col2, col3, col4, col5 = st.columns(5)

    with col1:
        st.metric(
            label="Clusters",
            value=f"{metadata.total_clusters:,}"
        )

    with col2:
        st.metric(
            label="Total Keywords",
            value=f"{metadata.total_keywords:,}"
        )

    with col3:
        st.metric(
            label="Total Volume",
            value=f"{whole(metadata.total_volume):,}"
        )

    with col4:
        st.metric(
            label="Avg. Difficulty",
            value=f"{metadata.avg_difficulty:.1f}"
        )

    with col5:
        st.metric(
            label="Pillar / Sub",
            value=f"{metadata.pillar_pages} / {metadata.sub_pages}"
        )

    st.caption(
        f"Processed {metadata.filename} in {metadata.processing_time_ms:,} ms"
    )


def page_count(total: int, per_page: int) -> int:
    """Number of pages needed for total items (at least 1)."""
    return max(1, math.ceil(total / per_page))


def page_slice(page: int, per_page: int) -> slice:
    """Slice of the cluster list shown on a 1-based page."""
    start = (page - 1) * per_page
    return slice(start, start + per_page)


def clusters_to_dataframe(
    clusters: List[Cluster],
    start_index: int = 0
) -> pd.DataFrame:
    """
    Build a table of clusters in export column order.

    Args:
        clusters: Clusters to show
        start_index: Payload index of the first cluster

    Returns:
        DataFrame indexed by payload position
    """
    rows = []
    for cluster in clusters:
        values = cluster_values(cluster)
        row = dict(zip(EXPORT_COLUMNS, values))
        row["Page Type"] = cluster.page_type
        rows.append(row)

    df = pd.DataFrame(rows, columns=["Page Type", *EXPORT_COLUMNS])
    df.index = range(start_index, start_index + len(rows))
    df.index.name = "#"
    return df


def display_cluster_table(
    clusters: List[Cluster],
    start_index: int = 0
):
    """
    Display clusters in a data table format.

    Args:
        clusters: Clusters to show
        start_index: Payload index of the first cluster
    """
    if not clusters:
        st.info("No clusters to display.")
        return

    st.dataframe(
        clusters_to_dataframe(clusters, start_index),
        use_container_width=True,
        height=min(600, 38 * len(clusters) + 40)
    )
