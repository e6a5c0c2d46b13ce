"""
Chart generation for cluster visualization.
Uses Plotly for interactive charts.
"""
import numpy as np
import plotly.express as px
import plotly.graph_objects as go
from typing import List

from clustering.models import Cluster, whole
from clustering.payload import is_pillar_page


def create_volume_bar(
    clusters: List[Cluster],
    top_n: int = 15
) -> go.Figure:
    """
    Create horizontal bar chart of the largest clusters by volume.

    Args:
        clusters: Clusters in payload order
        top_n: Number of clusters to show

    Returns:
        Plotly figure
    """
    top = sorted(clusters, key=lambda c: c.total_volume, reverse=True)[:top_n]

    fig = go.Figure(go.Bar(
        x=[whole(c.total_volume) for c in top],
        y=[c.cluster_name for c in top],
        orientation="h",
        marker_color=[
            "#4472C4" if is_pillar_page(c.page_type) else "#A5A5A5"
            for c in top
        ],
        customdata=[[c.page_type, c.keyword_count] for c in top],
        hovertemplate=(
            "<b>%{y}</b><br>"
            "Volume: %{x:,}<br>"
            "Page type: %{customdata[0]}<br>"
            "Keywords: %{customdata[1]}<br>"
            "<extra></extra>"
        )
    ))

    fig.update_layout(
        title=f"Top {len(top)} Clusters by Search Volume",
        xaxis_title="Total Search Volume",
        yaxis=dict(autorange="reversed"),
        template="plotly_white",
        height=max(300, 30 * len(top) + 120),
        showlegend=False
    )

    return fig


def create_page_type_breakdown(
    pillar_pages: int,
    sub_pages: int
) -> go.Figure:
    """
    Create donut chart of pillar vs sub pages.

    Args:
        pillar_pages: Number of pillar clusters
        sub_pages: Number of other clusters

    Returns:
        Plotly figure
    """
    fig = px.pie(
        names=["Pillar", "Sub"],
        values=[pillar_pages, sub_pages],
        hole=0.4,
        color_discrete_sequence=["#4472C4", "#A5A5A5"]
    )

    fig.update_traces(
        textposition="inside",
        textinfo="percent+label"
    )

    fig.update_layout(
        title="Pillar vs Sub Pages",
        template="plotly_white",
        height=400
    )

    return fig


def create_difficulty_distribution(clusters: List[Cluster]) -> go.Figure:
    """
    Create scatter plot of volume vs difficulty by cluster.

    Clusters without a known difficulty are left out.

    Args:
        clusters: Clusters in payload order

    Returns:
        Plotly figure
    """
    known = [c for c in clusters if c.avg_difficulty > 0]

    volumes = [whole(c.total_volume) for c in known]
    difficulties = [c.avg_difficulty for c in known]
    sizes = [c.keyword_count for c in known]
    names = [c.cluster_name for c in known]

    # Size scale
    max_size = max(sizes) if sizes else 1
    marker_sizes = [10 + (s / max_size) * 40 for s in sizes]

    fig = go.Figure(go.Scatter(
        x=difficulties,
        y=volumes,
        mode="markers",
        text=names,
        marker=dict(
            size=marker_sizes,
            color=difficulties,
            colorscale="RdYlGn_r",
            showscale=True,
            colorbar=dict(title="Difficulty")
        ),
        hovertemplate=(
            "<b>%{text}</b><br>"
            "Volume: %{y:,}<br>"
            "Difficulty: %{x:.1f}<br>"
            "<extra></extra>"
        )
    ))

    fig.update_layout(
        title="Cluster Opportunity Matrix",
        xaxis_title="Average Keyword Difficulty",
        yaxis_title="Total Search Volume",
        template="plotly_white",
        height=500,
        showlegend=False
    )

    if known:
        fig.add_hline(y=float(np.median(volumes)), line_dash="dash", line_color="gray")
        fig.add_vline(x=float(np.mean(difficulties)), line_dash="dash", line_color="gray")

    return fig
