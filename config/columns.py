"""
Column definitions for keyword research exports and cluster exports.
"""
from typing import Dict, Tuple


# Input columns, in fallback order
KEYWORD_COLUMN = "Keyword"
PAGE_COLUMN = "Page"
PAGE_TYPE_COLUMNS: Tuple[str, ...] = ("Page type", "Page Type")
VOLUME_COLUMNS: Tuple[str, ...] = ("Volume", "volume")
DIFFICULTY_COLUMNS: Tuple[str, ...] = (
    "Keyword Difficulty", "Difficulty", "difficulty"
)
CPC_COLUMNS: Tuple[str, ...] = ("CPC (USD)", "CPC", "cpc")
TOPIC_COLUMNS: Tuple[str, ...] = ("Topic", "topic")
INTENT_COLUMNS: Tuple[str, ...] = ("Intent", "intent")
SEED_KEYWORD_COLUMNS: Tuple[str, ...] = (
    "Seed keyword", "Seed Keyword", "seed_keyword"
)

DEFAULT_PAGE_TYPE = "unknown"

# Values that never count as a topic/intent/seed keyword
PLACEHOLDER_VALUES = frozenset({"N/A", "Unknown"})
EMPTY_VALUE = "N/A"
LIST_SEPARATOR = " | "

# Page type classification
PILLAR_MARKERS: Tuple[str, ...] = ("pillar", "main")
SUB_PAGE_MARKER = "sub"

# Stored cluster_type -> page type display text
CLUSTER_TYPE_LABELS: Dict[str, str] = {
    "pillar": "Pillar",
    "sub_page": "Sub",
    "unknown": DEFAULT_PAGE_TYPE,
}

# Cluster export columns, in order
EXPORT_COLUMNS: Tuple[str, ...] = (
    "Cluster Name",
    "Keyword Count",
    "Supporting Keywords",
    "Total Volume",
    "Average Difficulty",
    "Min-Max Difficulty",
    "Topics",
    "Intent",
    "Average CPC",
    "Seed Keywords",
)

# Webhook document types
PAYLOAD_TYPE = "keyword_clusters_processed"
TEST_PAYLOAD_TYPE = "test_connection"
