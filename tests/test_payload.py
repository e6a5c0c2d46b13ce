"""
Payload assembly and metadata tests.
"""
import pytest

from clustering.models import Cluster
from clustering.payload import PayloadBuilder, compute_metadata, is_pillar_page, refresh_metadata


class TestIsPillarPage:
    """is_pillar_page"""

    @pytest.mark.parametrize("page_type,expected", [
        ("Pillar", True),
        ("pillar page", True),
        ("Main", True),
        ("Domain hub", True),
        ("Sub", False),
        ("unknown", False),
        ("", False),
        (None, False),
    ])
    def test_classification(self, page_type, expected):
        """Any page type containing 'pillar' or 'main' counts"""
        assert is_pillar_page(page_type) is expected


class TestComputeMetadata:
    """compute_metadata"""

    def test_scenario_metadata(self, scenario_payload):
        """Totals over the scenario clusters"""
        metadata = scenario_payload.metadata

        assert metadata.seed_keyword == "shoes"
        assert metadata.filename == "shoes.csv"
        assert metadata.total_clusters == 2
        assert metadata.total_keywords == 3
        assert metadata.total_volume == 1700
        assert metadata.avg_difficulty == 30
        assert metadata.pillar_pages == 1
        assert metadata.sub_pages == 1
        assert metadata.processing_time_ms == 12

    def test_average_is_over_clusters(self):
        """Clusters with unknown difficulty count as 0 in the mean"""
        clusters = [
            Cluster(cluster_name="a", page_type="Pillar", avg_difficulty=45),
            Cluster(cluster_name="b", page_type="Sub", avg_difficulty=0),
        ]

        metadata = compute_metadata(clusters, seed_keyword="x", filename="x.csv")

        assert metadata.avg_difficulty == 22.5

    def test_empty_cluster_list(self):
        """No clusters gives zeroed metadata"""
        metadata = compute_metadata([], seed_keyword="x", filename="x.csv")

        assert metadata.total_clusters == 0
        assert metadata.total_keywords == 0
        assert metadata.total_volume == 0
        assert metadata.avg_difficulty == 0
        assert metadata.pillar_pages == 0
        assert metadata.sub_pages == 0

    def test_unknown_page_types_are_sub_pages(self):
        """Everything not a pillar counts as a sub page"""
        clusters = [
            Cluster(cluster_name="a", page_type="unknown"),
            Cluster(cluster_name="b", page_type="Category"),
        ]

        metadata = compute_metadata(clusters, seed_keyword="x", filename="x.csv")

        assert metadata.pillar_pages == 0
        assert metadata.sub_pages == 2


class TestPayloadBuilder:
    """PayloadBuilder"""

    def test_default_filename(self):
        """A missing filename is recorded as unknown.csv"""
        payload = PayloadBuilder().build([Cluster(cluster_name="a")], seed_keyword="x")

        assert payload.source_filename == "unknown.csv"
        assert payload.metadata.filename == "unknown.csv"
        assert payload.project_id is None

    def test_clusters_are_copied(self):
        """The builder does not share the caller's list"""
        clusters = [Cluster(cluster_name="a")]

        payload = PayloadBuilder().build(clusters, seed_keyword="x")
        clusters.append(Cluster(cluster_name="b"))

        assert len(payload.clusters) == 1

    def test_refresh_keeps_processing_time(self, scenario_payload):
        """Refreshing recomputes totals but keeps the run duration"""
        scenario_payload.clusters[0].total_volume = 100

        metadata = refresh_metadata(scenario_payload)

        assert metadata.total_volume == 300
        assert metadata.processing_time_ms == 12
        assert scenario_payload.metadata is metadata
