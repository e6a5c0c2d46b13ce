"""
Row normalizer tests.
"""
import warnings

import pytest

from core.exceptions import FieldCoercionWarning, InputError, ValidationError
from ingestion.csv_parser import CSVParser
from ingestion.normalizer import (
    RowNormalizer,
    collect_text_values,
    first_present,
    parse_leading_float,
    parse_leading_int,
    parse_number,
)


class TestParseNumber:
    """parse_number"""

    @pytest.mark.parametrize("raw,expected", [
        (1000, 1000.0),
        (0.45, 0.45),
        ("1,200", 1200.0),
        ("$0.45", 0.45),
        ("12-15", 12.0),
        ("  42 ", 42.0),
        ("-7", -7.0),
        (".5", 0.5),
    ])
    def test_parses(self, raw, expected):
        """Digits, '.' and '-' survive, the leading decimal is parsed"""
        assert parse_number(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw", [None, "", "n/a", "abc", True, [1]])
    def test_unparseable(self, raw):
        """Non-numeric values give None"""
        assert parse_number(raw) is None


class TestLeadingParsers:
    """parse_leading_int / parse_leading_float"""

    def test_leading_int(self):
        """Trailing text is ignored"""
        assert parse_leading_int("1500 visits") == 1500
        assert parse_leading_int("  -3") == -3
        assert parse_leading_int(12.9) == 12
        assert parse_leading_int("abc") is None
        assert parse_leading_int("1,500") == 1

    def test_leading_float(self):
        """Leading decimal without stripping other characters"""
        assert parse_leading_float("42.5abc") == 42.5
        assert parse_leading_float("0") == 0.0
        assert parse_leading_float("$1.20") is None
        assert parse_leading_float(None) is None


class TestColumnHelpers:
    """Alias helpers"""

    def test_first_present_falls_through_falsy(self):
        """Empty, None and zero fall through to the next alias"""
        row = {"Keyword Difficulty": 0, "Difficulty": None, "difficulty": 35}

        assert first_present(row, ("Keyword Difficulty", "Difficulty", "difficulty")) == 35

    def test_first_present_none_when_absent(self):
        """No alias present gives None"""
        assert first_present({}, ("Volume", "volume")) is None

    def test_collect_text_values_skips_placeholders(self):
        """Placeholders and duplicates are dropped"""
        row = {"Topic": "N/A", "topic": "Running"}
        assert collect_text_values(row, ("Topic", "topic")) == ("Running",)

        row = {"Topic": "Running", "topic": "Running"}
        assert collect_text_values(row, ("Topic", "topic")) == ("Running",)

        assert collect_text_values({"Intent": "Unknown"}, ("Intent",)) == ()


class TestRowNormalizer:
    """RowNormalizer"""

    def test_normalize_full_row(self):
        """All fields are read through their aliases"""
        record, coerced = RowNormalizer().normalize({
            "Keyword": " buy shoes ",
            "Page": "shoes",
            "Page Type": "Pillar",
            "volume": "1,000",
            "Difficulty": 40,
            "CPC": "$1.20",
            "topic": "Footwear",
            "Intent": "Transactional",
            "Seed Keyword": "shoes",
        })

        assert coerced == 0
        assert record.keyword == "buy shoes"
        assert record.page_type == "Pillar"
        assert record.volume == 1000.0
        assert record.difficulty == 40.0
        assert record.cpc == pytest.approx(1.2)
        assert record.topic == "Footwear"
        assert record.intent == "Transactional"
        assert record.seed_keyword == "shoes"
        assert record.group_key == ("shoes", "Pillar")

    def test_defaults(self):
        """Missing page type and metrics take their defaults"""
        record, _ = RowNormalizer().normalize({"Keyword": "foo", "Page": "bar"})

        assert record.page_type == "unknown"
        assert record.volume == 0.0
        assert record.difficulty is None
        assert record.cpc is None
        assert record.topics == ()

    def test_numeric_page_type_is_text(self):
        """Page types typed as numbers are rendered back as text"""
        record, _ = RowNormalizer().normalize({"Keyword": "a", "Page": "b", "Page type": 2.0})

        assert record.page_type == "2"

    @pytest.mark.parametrize("row", [
        {"Page": "shoes"},
        {"Keyword": "", "Page": "shoes"},
        {"Keyword": "   ", "Page": "shoes"},
        {"Keyword": "shoes"},
        {"Keyword": 123, "Page": "shoes"},
        {"Keyword": "shoes", "Page": None},
    ])
    def test_rejects_rows_without_keyword_or_page(self, row):
        """Keyword and Page must be non-blank text"""
        record, _ = RowNormalizer().normalize(row)

        assert record is None

    def test_counts_coerced_values(self):
        """Present but unparseable metrics are counted"""
        record, coerced = RowNormalizer().normalize({
            "Keyword": "foo", "Page": "bar", "Volume": "lots", "CPC": "free"
        })

        assert coerced == 2
        assert record.volume == 0.0
        assert record.cpc is None


class TestNormalizeRows:
    """RowNormalizer.normalize_rows"""

    def test_drops_unusable_rows(self, sample_csv):
        """The row without a keyword is dropped"""
        rows = CSVParser().parse(sample_csv).rows

        result = RowNormalizer().normalize_rows(rows)

        assert result.total_rows == 4
        assert result.valid_count == 3
        assert result.dropped_rows == 1
        assert result.validity_rate == pytest.approx(0.75)
        assert [r.keyword for r in result.records] == [
            "buy shoes", "cheap shoes", "running shoes"
        ]

    def test_emits_coercion_warning(self):
        """Coerced values surface as one FieldCoercionWarning"""
        rows = [
            {"Keyword": "foo", "Page": "bar", "Volume": "lots"},
            {"Keyword": "baz", "Page": "bar", "Volume": "many"},
        ]

        with pytest.warns(FieldCoercionWarning, match="2 numeric values"):
            result = RowNormalizer().normalize_rows(rows)

        assert result.coerced_values == 2

    def test_no_warning_for_clean_rows(self, scenario_rows):
        """Clean rows produce no warnings"""
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            RowNormalizer().normalize_rows(scenario_rows)

    def test_empty_input_raises(self):
        """No rows at all is an input error"""
        with pytest.raises(InputError, match="empty or invalid"):
            RowNormalizer().normalize_rows([])

    def test_no_usable_rows_raises(self):
        """Rows that all lack a keyword are a validation error"""
        with pytest.raises(ValidationError, match="No valid keyword data") as exc_info:
            RowNormalizer().normalize_rows([{"Page": "shoes"}, {"Keyword": "", "Page": "x"}])

        assert exc_info.value.field == "Keyword"
