"""
Row normalization for keyword research exports.
Turns loosely typed CSV rows into keyword records.
"""
import re
import logging
import warnings
from dataclasses import dataclass
from typing import List, Dict, Tuple, Optional, Mapping, Any, Sequence

from config.columns import (
    KEYWORD_COLUMN,
    PAGE_COLUMN,
    PAGE_TYPE_COLUMNS,
    VOLUME_COLUMNS,
    DIFFICULTY_COLUMNS,
    CPC_COLUMNS,
    TOPIC_COLUMNS,
    INTENT_COLUMNS,
    SEED_KEYWORD_COLUMNS,
    DEFAULT_PAGE_TYPE,
    PLACEHOLDER_VALUES,
)
from core.exceptions import FieldCoercionWarning, InputError, ValidationError

logger = logging.getLogger(__name__)

NON_NUMERIC = re.compile(r"[^0-9.\-]")
LEADING_DECIMAL = re.compile(r"^-?(\d+\.?\d*|\.\d+)")
LEADING_INTEGER = re.compile(r"^\s*[-+]?\d+")


def parse_number(value: Any) -> Optional[float]:
    """
    Parse a numeric cell.

    Numbers pass through. Text is stripped of everything except digits,
    '.' and '-', then its leading decimal literal is parsed
    ("1,200" -> 1200.0, "$0.45" -> 0.45, "12-15" -> 12.0).

    Returns:
        The number, or None when absent or unparseable
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        match = LEADING_DECIMAL.match(NON_NUMERIC.sub("", value))
        if match:
            return float(match.group(0))
    return None


def parse_leading_int(value: Any) -> Optional[int]:
    """Parse the leading integer of a value ("1500 visits" -> 1500)."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        match = LEADING_INTEGER.match(value)
        if match:
            return int(match.group(0))
    return None


def parse_leading_float(value: Any) -> Optional[float]:
    """Parse the leading decimal of a value without stripping characters."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        match = LEADING_DECIMAL.match(value.strip().lstrip("+"))
        if match:
            return float(match.group(0))
    return None


def cell_to_text(value: Any) -> str:
    """Render a typed cell as text, dropping '.0' from whole numbers."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def first_present(row: Mapping[str, Any], columns: Sequence[str]) -> Any:
    """
    Return the first truthy value among alias columns.

    Missing columns, None, empty strings and zero fall through
    to the next alias.
    """
    for column in columns:
        value = row.get(column)
        if value:
            return value
    return None


def collect_text_values(
    row: Mapping[str, Any],
    columns: Sequence[str]
) -> Tuple[str, ...]:
    """Collect distinct non-placeholder text values across alias columns."""
    values: List[str] = []
    for column in columns:
        value = row.get(column)
        if not value or not isinstance(value, str):
            continue
        text = value.strip()
        if text and text not in PLACEHOLDER_VALUES and text not in values:
            values.append(text)
    return tuple(values)


def _non_blank_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


@dataclass(frozen=True)
class KeywordRecord:
    """A validated keyword row."""

    keyword: str
    page: str
    page_type: str = DEFAULT_PAGE_TYPE
    volume: float = 0.0
    difficulty: Optional[float] = None
    cpc: Optional[float] = None
    topics: Tuple[str, ...] = ()
    intents: Tuple[str, ...] = ()
    seed_keywords: Tuple[str, ...] = ()

    @property
    def topic(self) -> Optional[str]:
        return self.topics[0] if self.topics else None

    @property
    def intent(self) -> Optional[str]:
        return self.intents[0] if self.intents else None

    @property
    def seed_keyword(self) -> Optional[str]:
        return self.seed_keywords[0] if self.seed_keywords else None

    @property
    def group_key(self) -> Tuple[str, str]:
        return (self.page, self.page_type)


@dataclass
class NormalizationResult:
    """Result of normalizing a batch of rows."""

    records: List[KeywordRecord]
    total_rows: int
    coerced_values: int = 0

    @property
    def valid_count(self) -> int:
        return len(self.records)

    @property
    def dropped_rows(self) -> int:
        return self.total_rows - self.valid_count

    @property
    def validity_rate(self) -> float:
        if self.total_rows == 0:
            return 0.0
        return self.valid_count / self.total_rows


class RowNormalizer:
    """
    Validates and cleans raw CSV rows.

    Rows without a text Keyword or Page are dropped silently.
    Unparseable numbers default quietly: volume to 0, difficulty
    and CPC to unknown.
    """

    def normalize(
        self,
        row: Mapping[str, Any]
    ) -> Tuple[Optional[KeywordRecord], int]:
        """
        Normalize a single row.

        Args:
            row: Mapping of column name -> typed cell

        Returns:
            Tuple of (record or None if rejected, number of coerced values)
        """
        keyword = _non_blank_text(row.get(KEYWORD_COLUMN))
        page = _non_blank_text(row.get(PAGE_COLUMN))
        if keyword is None or page is None:
            return None, 0

        page_type_value = first_present(row, PAGE_TYPE_COLUMNS)
        page_type = (
            cell_to_text(page_type_value).strip()
            if page_type_value else DEFAULT_PAGE_TYPE
        )

        coerced = 0
        numbers: Dict[str, Optional[float]] = {}
        for name, columns in (
            ("volume", VOLUME_COLUMNS),
            ("difficulty", DIFFICULTY_COLUMNS),
            ("cpc", CPC_COLUMNS),
        ):
            raw = first_present(row, columns)
            number = parse_number(raw)
            if raw is not None and number is None:
                coerced += 1
            numbers[name] = number

        record = KeywordRecord(
            keyword=keyword,
            page=page,
            page_type=page_type,
            volume=numbers["volume"] or 0.0,
            difficulty=numbers["difficulty"],
            cpc=numbers["cpc"],
            topics=collect_text_values(row, TOPIC_COLUMNS),
            intents=collect_text_values(row, INTENT_COLUMNS),
            seed_keywords=collect_text_values(row, SEED_KEYWORD_COLUMNS),
        )
        return record, coerced

    def normalize_rows(
        self,
        rows: Sequence[Mapping[str, Any]]
    ) -> NormalizationResult:
        """
        Normalize all rows of a parsed file.

        Args:
            rows: Parsed CSV rows

        Returns:
            NormalizationResult with the usable records

        Raises:
            InputError: If there are no rows at all
            ValidationError: If no row is usable
        """
        if not rows:
            raise InputError("CSV file is empty or invalid")

        records = []
        coerced_total = 0
        for row_number, row in enumerate(rows, 1):
            record, coerced = self.normalize(row)
            coerced_total += coerced
            if record is None:
                logger.debug("Dropped row %d: missing Keyword or Page", row_number)
                continue
            if coerced:
                logger.debug("Row %d: %d values defaulted", row_number, coerced)
            records.append(record)

        result = NormalizationResult(
            records=records,
            total_rows=len(rows),
            coerced_values=coerced_total
        )

        if not records:
            raise ValidationError(
                "No valid keyword data found in CSV",
                field=KEYWORD_COLUMN
            )

        if coerced_total:
            warnings.warn(
                f"{coerced_total} numeric values could not be parsed "
                "and were treated as missing",
                FieldCoercionWarning,
                stacklevel=2
            )

        logger.info(
            "Normalized %d of %d rows (%d dropped)",
            result.valid_count,
            result.total_rows,
            result.dropped_rows
        )
        return result
