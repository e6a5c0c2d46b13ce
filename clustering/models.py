"""
Data models for keyword clusters and processed payloads.
"""
import re
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Union, Any

from config.columns import DEFAULT_PAGE_TYPE, EMPTY_VALUE, PAYLOAD_TYPE

Number = Union[int, float]

DIFFICULTY_RANGE_PATTERN = re.compile(
    r"^\s*(-?\d+(?:\.\d+)?)\s*-\s*(-?\d+(?:\.\d+)?)\s*$"
)


def round_half_up(value: float, decimals: int = 0) -> float:
    """
    Round with ties going towards positive infinity.

    Python's round() rounds half to even; exported averages must
    match the browser-side rounding (2.45 -> 2.5, 0.125 -> 0.13).
    """
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


def whole(value: Any) -> Number:
    """Return value as int when it has no fractional part."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def format_number(value: Any) -> str:
    """Format a number for display without a trailing '.0'."""
    if value is None:
        return "0"
    return str(whole(value))


def parse_difficulty_range(text: Any) -> tuple:
    """
    Parse a "min-max" difficulty string.

    Returns:
        (min, max) tuple, or (0, 0) when the pattern is absent
    """
    if isinstance(text, str):
        match = DIFFICULTY_RANGE_PATTERN.match(text)
        if match:
            return whole(float(match.group(1))), whole(float(match.group(2)))
    return 0, 0


@dataclass
class Cluster:
    """A page-level group of keywords with aggregate metrics."""

    cluster_name: str
    page_type: str = DEFAULT_PAGE_TYPE
    keyword_count: int = 0
    supporting_keywords: str = EMPTY_VALUE
    total_volume: Number = 0
    avg_difficulty: Number = 0
    min_difficulty: Number = 0
    max_difficulty: Number = 0
    topics: str = EMPTY_VALUE
    intent: str = EMPTY_VALUE
    avg_cpc: Number = 0
    seed_keywords: str = EMPTY_VALUE

    @property
    def difficulty_range(self) -> str:
        return f"{format_number(self.min_difficulty)}-{format_number(self.max_difficulty)}"

    def to_dict(self) -> dict:
        """Convert to the exported cluster document."""
        return {
            "cluster_name": self.cluster_name,
            "page_type": self.page_type,
            "keyword_count": self.keyword_count,
            "supporting_keywords": self.supporting_keywords,
            "total_volume": whole(self.total_volume),
            "avg_difficulty": whole(self.avg_difficulty),
            "min_max_difficulty": self.difficulty_range,
            "topics": self.topics,
            "intent": self.intent,
            "avg_cpc": whole(self.avg_cpc),
            "seed_keywords": self.seed_keywords,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Cluster":
        """
        Create from an exported cluster document.

        Accepts either a "min_max_difficulty" string or separate
        "min_difficulty" / "max_difficulty" values.
        """
        if "min_max_difficulty" in data:
            min_difficulty, max_difficulty = parse_difficulty_range(
                data.get("min_max_difficulty")
            )
        else:
            min_difficulty = whole(data.get("min_difficulty") or 0)
            max_difficulty = whole(data.get("max_difficulty") or 0)

        return cls(
            cluster_name=data.get("cluster_name", ""),
            page_type=data.get("page_type") or DEFAULT_PAGE_TYPE,
            keyword_count=int(data.get("keyword_count") or 0),
            supporting_keywords=data.get("supporting_keywords") or EMPTY_VALUE,
            total_volume=whole(data.get("total_volume") or 0),
            avg_difficulty=whole(data.get("avg_difficulty") or 0),
            min_difficulty=min_difficulty,
            max_difficulty=max_difficulty,
            topics=data.get("topics") or EMPTY_VALUE,
            intent=data.get("intent") or EMPTY_VALUE,
            avg_cpc=whole(data.get("avg_cpc") or 0),
            seed_keywords=data.get("seed_keywords") or EMPTY_VALUE,
        )


@dataclass
class PayloadMetadata:
    """Run-level totals derived from the cluster list."""

    seed_keyword: str = ""
    filename: str = "unknown.csv"
    total_clusters: int = 0
    total_keywords: int = 0
    total_volume: Number = 0
    avg_difficulty: Number = 0
    pillar_pages: int = 0
    sub_pages: int = 0
    processing_time_ms: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "seed_keyword": self.seed_keyword,
            "filename": self.filename,
            "total_clusters": self.total_clusters,
            "total_keywords": self.total_keywords,
            "total_volume": whole(self.total_volume),
            "avg_difficulty": whole(self.avg_difficulty),
            "pillar_pages": self.pillar_pages,
            "sub_pages": self.sub_pages,
            "processing_time_ms": self.processing_time_ms,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PayloadMetadata":
        """Create from dictionary."""
        return cls(
            seed_keyword=data.get("seed_keyword", ""),
            filename=data.get("filename") or "unknown.csv",
            total_clusters=int(data.get("total_clusters") or 0),
            total_keywords=int(data.get("total_keywords") or 0),
            total_volume=whole(data.get("total_volume") or 0),
            avg_difficulty=whole(data.get("avg_difficulty") or 0),
            pillar_pages=int(data.get("pillar_pages") or 0),
            sub_pages=int(data.get("sub_pages") or 0),
            processing_time_ms=int(data.get("processing_time_ms") or 0),
        )


@dataclass
class ProcessedPayload:
    """
    Clusters of one processing run plus their metadata.

    The cluster order is significant: it drives display, pagination
    and export row order.
    """

    seed_keyword: str
    source_filename: str
    clusters: List[Cluster] = field(default_factory=list)
    metadata: PayloadMetadata = field(default_factory=PayloadMetadata)
    created_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    project_id: Optional[str] = None

    @property
    def timestamp(self) -> str:
        """ISO-8601 creation time in UTC with millisecond precision."""
        stamp = self.created_at.astimezone(timezone.utc)
        return stamp.strftime("%Y-%m-%dT%H:%M:%S.") + f"{stamp.microsecond // 1000:03d}Z"

    def to_dict(self) -> dict:
        """Convert to the wire document sent to webhooks and exported as JSON."""
        return {
            "type": PAYLOAD_TYPE,
            "timestamp": self.timestamp,
            "metadata": self.metadata.to_dict(),
            "clusters": [cluster.to_dict() for cluster in self.clusters],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProcessedPayload":
        """Create from a wire document."""
        metadata = PayloadMetadata.from_dict(data.get("metadata") or {})
        created_at = parse_timestamp(data.get("timestamp"))
        return cls(
            seed_keyword=metadata.seed_keyword,
            source_filename=metadata.filename,
            clusters=[Cluster.from_dict(c) for c in data.get("clusters") or []],
            metadata=metadata,
            created_at=created_at or datetime.now(timezone.utc),
        )


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp, accepting a trailing 'Z'."""
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
