"""
Visualization module for the Keyword Cluster Processor.

Provides interactive charts and metrics displays.
"""
from visualization.charts import (
    create_volume_bar,
    create_page_type_breakdown,
    create_difficulty_distribution
)
from visualization.metrics_display import (
    display_summary_metrics,
    display_cluster_table,
    clusters_to_dataframe
)

__all__ = [
    # Charts
    "create_volume_bar",
    "create_page_type_breakdown",
    "create_difficulty_distribution",
    # Metrics display
    "display_summary_metrics",
    "display_cluster_table",
    "clusters_to_dataframe",
]
