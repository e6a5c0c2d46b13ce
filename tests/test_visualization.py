"""
Table and chart helper tests.
"""
from clustering.models import Cluster
from visualization.charts import (
    create_difficulty_distribution,
    create_page_type_breakdown,
    create_volume_bar,
)
from visualization.metrics_display import clusters_to_dataframe, page_count, page_slice


class TestPagination:
    """page_count / page_slice"""

    def test_page_count(self):
        """At least one page, rounded up"""
        assert page_count(0, 20) == 1
        assert page_count(20, 20) == 1
        assert page_count(21, 20) == 2

    def test_page_slice(self):
        """1-based pages map to list slices"""
        items = list(range(45))

        assert items[page_slice(1, 20)] == list(range(20))
        assert items[page_slice(3, 20)] == list(range(40, 45))


class TestClusterTable:
    """clusters_to_dataframe"""

    def test_columns_and_index(self, scenario_payload):
        """Page type first, then export columns, indexed by payload position"""
        df = clusters_to_dataframe(scenario_payload.clusters[1:], start_index=1)

        assert list(df.columns)[:3] == ["Page Type", "Cluster Name", "Keyword Count"]
        assert list(df.index) == [1]
        assert df.index.name == "#"
        assert df.loc[1, "Cluster Name"] == "running-shoes"
        assert df.loc[1, "Min-Max Difficulty"] == "20-20"

    def test_empty(self):
        """No clusters gives an empty table with headers"""
        df = clusters_to_dataframe([])

        assert df.empty
        assert "Seed Keywords" in df.columns


class TestCharts:
    """Plotly figures"""

    def test_volume_bar(self, scenario_payload):
        """Largest clusters first"""
        fig = create_volume_bar(scenario_payload.clusters, top_n=1)

        assert list(fig.data[0].y) == ["shoes"]
        assert list(fig.data[0].x) == [1500]

    def test_page_type_breakdown(self):
        """Pillar vs sub counts"""
        fig = create_page_type_breakdown(3, 5)

        assert list(fig.data[0].values) == [3, 5]

    def test_difficulty_distribution_skips_unknown(self):
        """Clusters without difficulty are not plotted"""
        clusters = [
            Cluster(cluster_name="a", avg_difficulty=30, total_volume=100, keyword_count=2),
            Cluster(cluster_name="b", avg_difficulty=0, total_volume=50, keyword_count=1),
        ]

        fig = create_difficulty_distribution(clusters)

        assert list(fig.data[0].text) == ["a"]

    def test_difficulty_distribution_empty(self):
        """An empty cluster list still gives a figure"""
        fig = create_difficulty_distribution([])

        assert len(fig.data) == 1
