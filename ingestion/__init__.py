"""
Ingestion module for the Keyword Cluster Processor.
Handles CSV parsing and row normalization.
"""
from ingestion.csv_parser import CSVParser, ParseResult
from ingestion.normalizer import RowNormalizer, KeywordRecord, parse_number

__all__ = [
    "CSVParser",
    "ParseResult",
    "RowNormalizer",
    "KeywordRecord",
    "parse_number",
]
