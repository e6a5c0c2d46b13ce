"""
Cluster edit and delete tests.
"""
import copy

import pytest

from clustering.mutations import ClusterEditor
from core.exceptions import MutationError


@pytest.fixture
def editor():
    return ClusterEditor()


class TestEdit:
    """ClusterEditor.edit"""

    def test_edit_does_not_resort(self, editor, scenario_payload):
        """Raising a lower cluster's volume keeps the order"""
        editor.edit(scenario_payload, 1, {"total_volume": "5000"})

        assert [c.cluster_name for c in scenario_payload.clusters] == [
            "shoes", "running-shoes"
        ]
        assert scenario_payload.clusters[1].total_volume == 5000

    def test_edit_refreshes_metadata(self, editor, scenario_payload):
        """Totals follow the edited values"""
        editor.edit(scenario_payload, 0, {
            "keyword_count": "10",
            "total_volume": "2000",
            "avg_difficulty": "50",
        })

        metadata = scenario_payload.metadata
        assert metadata.total_keywords == 11
        assert metadata.total_volume == 2200
        assert metadata.avg_difficulty == 35
        assert metadata.processing_time_ms == 12

    def test_page_type_is_not_editable(self, editor, scenario_payload):
        """page_type is fixed, the edit is rejected whole"""
        before = copy.deepcopy(scenario_payload)

        with pytest.raises(MutationError, match="page_type"):
            editor.edit(scenario_payload, 0, {"page_type": "Sub", "topics": "x"})

        assert scenario_payload.clusters == before.clusters
        assert scenario_payload.metadata == before.metadata

    @pytest.mark.parametrize("index", [-1, 2, 99, "0", 1.0, True, None])
    def test_bad_index_changes_nothing(self, editor, scenario_payload, index):
        """Out-of-range and non-integer indexes are rejected"""
        before = copy.deepcopy(scenario_payload)

        with pytest.raises(MutationError):
            editor.edit(scenario_payload, index, {"cluster_name": "x"})

        assert scenario_payload.clusters == before.clusters
        assert scenario_payload.metadata == before.metadata

    def test_blank_values_keep_current(self, editor, scenario_payload):
        """Blank, missing and unparseable values are ignored"""
        cluster = editor.edit(scenario_payload, 0, {
            "cluster_name": "   ",
            "topics": "",
            "keyword_count": None,
            "total_volume": "lots",
            "avg_cpc": "free",
        })

        assert cluster.cluster_name == "shoes"
        assert cluster.topics == "N/A"
        assert cluster.keyword_count == 2
        assert cluster.total_volume == 1500
        assert cluster.avg_cpc == 0

    def test_explicit_zero_is_accepted(self, editor, scenario_payload):
        """An entered 0 replaces the current value"""
        cluster = editor.edit(scenario_payload, 0, {
            "total_volume": "0",
            "avg_difficulty": "0",
        })

        assert cluster.total_volume == 0
        assert cluster.avg_difficulty == 0
        assert scenario_payload.metadata.total_volume == 200

    def test_text_fields(self, editor, scenario_payload):
        """Text is stored as entered, names are trimmed"""
        cluster = editor.edit(scenario_payload, 1, {
            "cluster_name": "  trail-shoes ",
            "supporting_keywords": "trail shoes | hiking shoes",
            "intent": "Commercial",
            "seed_keywords": "shoes",
        })

        assert cluster.cluster_name == "trail-shoes"
        assert cluster.supporting_keywords == "trail shoes | hiking shoes"
        assert cluster.intent == "Commercial"
        assert cluster.seed_keywords == "shoes"

    def test_numeric_fields_use_leading_number(self, editor, scenario_payload):
        """Integers and decimals are read from the start of the text"""
        cluster = editor.edit(scenario_payload, 0, {
            "keyword_count": "7 keywords",
            "avg_cpc": "1.25",
            "avg_difficulty": "42.5",
        })

        assert cluster.keyword_count == 7
        assert cluster.avg_cpc == 1.25
        assert cluster.avg_difficulty == 42.5

    def test_difficulty_range(self, editor, scenario_payload):
        """Well-formed ranges set both bounds, others are ignored"""
        cluster = editor.edit(scenario_payload, 0, {"min_max_difficulty": "15-60"})
        assert cluster.difficulty_range == "15-60"

        cluster = editor.edit(scenario_payload, 0, {"min_max_difficulty": "hard"})
        assert cluster.difficulty_range == "15-60"


class TestDelete:
    """ClusterEditor.delete"""

    def test_delete_refreshes_metadata(self, editor, scenario_payload):
        """Removing a cluster updates totals"""
        removed = editor.delete(scenario_payload, 0)

        assert removed.cluster_name == "shoes"
        assert [c.cluster_name for c in scenario_payload.clusters] == ["running-shoes"]
        metadata = scenario_payload.metadata
        assert metadata.total_clusters == 1
        assert metadata.total_keywords == 1
        assert metadata.total_volume == 200
        assert metadata.pillar_pages == 0
        assert metadata.sub_pages == 1

    def test_delete_last_cluster(self, editor, scenario_payload):
        """Deleting every cluster leaves zeroed metadata"""
        editor.delete(scenario_payload, 1)
        editor.delete(scenario_payload, 0)

        metadata = scenario_payload.metadata
        assert scenario_payload.clusters == []
        assert metadata.total_clusters == 0
        assert metadata.total_keywords == 0
        assert metadata.total_volume == 0
        assert metadata.avg_difficulty == 0
        assert metadata.seed_keyword == "shoes"

    def test_delete_out_of_range(self, editor, scenario_payload):
        """Bad indexes are rejected"""
        with pytest.raises(MutationError) as exc_info:
            editor.delete(scenario_payload, 5)

        assert exc_info.value.size == 2
        assert len(scenario_payload.clusters) == 2

    def test_delete_from_empty_payload(self, editor, scenario_payload):
        """Nothing to delete once the list is empty"""
        scenario_payload.clusters.clear()

        with pytest.raises(MutationError, match="no clusters"):
            editor.delete(scenario_payload, 0)
