"""
CSV parsing for keyword research exports.
Reads the whole file into memory, checks each record against the header
width and types each cell independently.
"""
import re
import csv
import math
import logging
import pandas as pd
from io import StringIO
from dataclasses import dataclass, field
from typing import List, Dict, Iterator, Optional, Tuple, Union, Any

from core.exceptions import InputError

logger = logging.getLogger(__name__)

Cell = Union[str, int, float, None]
Row = Dict[str, Cell]

INTEGER_PATTERN = re.compile(r"^\s*-?\d+\s*$")
DECIMAL_PATTERN = re.compile(r"^\s*-?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?\s*$")


@dataclass
class ParseWarning:
    """A row that was skipped or padded."""

    message: str
    fields: List[str] = field(default_factory=list)
    line: Optional[int] = None


@dataclass
class ParseResult:
    """Result of parsing a CSV file."""

    rows: List[Row]
    columns: List[str]
    warnings: List[ParseWarning] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)


def type_cell(value: Any) -> Cell:
    """
    Opportunistically type a raw cell.

    Numeric-looking text becomes int or float, empty cells become None,
    anything else is returned as text.
    """
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None

    text = str(value)
    if text == "":
        return None
    if INTEGER_PATTERN.match(text):
        return int(text)
    if DECIMAL_PATTERN.match(text):
        return float(text)
    return text


def unique_columns(header: List[str]) -> List[str]:
    """Trim header names and suffix duplicates as name.1, name.2."""
    columns: List[str] = []
    seen: Dict[str, int] = {}
    for name in header:
        name = name.strip()
        if name in seen:
            seen[name] += 1
            name = f"{name}.{seen[name]}"
        else:
            seen[name] = 0
        columns.append(name)
    return columns


class CSVParser:
    """
    Parses keyword research CSV exports into row mappings.
    Rows wider than the header are skipped and rows narrower than it
    are padded with empty cells. Both are reported as warnings.
    """

    def __init__(
        self,
        encoding: str = "utf-8",
        max_file_size: Optional[int] = None
    ):
        """
        Initialize parser.

        Args:
            encoding: File encoding (default: utf-8)
            max_file_size: Reject files larger than this many bytes
        """
        self.encoding = encoding
        self.max_file_size = max_file_size

    def parse(self, file_content: Any, filename: str = None) -> ParseResult:
        """
        Parse CSV content.

        Args:
            file_content: bytes, text, or a file-like object
            filename: Original filename, used in error messages

        Returns:
            ParseResult with typed rows, trimmed column names and warnings

        Raises:
            InputError: If the file is empty, too large, or unreadable
        """
        text = self._decode(file_content, filename)

        if not text.strip():
            raise InputError("CSV file is empty or invalid", filename=filename)

        warnings: List[ParseWarning] = []

        try:
            records = [
                (line, fields)
                for line, fields in self._read_records(text)
                if fields
            ]
        except csv.Error as e:
            raise InputError(f"Failed to parse CSV: {e}", filename=filename)

        if not records:
            raise InputError("CSV file is empty or invalid", filename=filename)

        _, header = records[0]
        columns = unique_columns(header)
        width = len(columns)

        kept: List[List[Optional[str]]] = []
        for line, fields in records[1:]:
            if len(fields) > width:
                warnings.append(ParseWarning(
                    message=(
                        f"Skipped malformed row on line {line}: "
                        f"{len(fields)} fields, expected {width}"
                    ),
                    fields=list(fields),
                    line=line
                ))
                continue
            if len(fields) < width:
                warnings.append(ParseWarning(
                    message=(
                        f"Row on line {line} has {len(fields)} of {width} fields; "
                        "missing cells left empty"
                    ),
                    fields=list(fields),
                    line=line
                ))
            kept.append(list(fields) + [None] * (width - len(fields)))

        # Built from explicit rows so pandas never infers an index column
        df = pd.DataFrame(kept, columns=columns, dtype=object)

        rows = [
            {column: type_cell(value) for column, value in record.items()}
            for record in df.to_dict("records")
        ]

        if warnings:
            logger.warning(
                "CSV parsing reported %d irregular rows in %s",
                len(warnings),
                filename or "upload"
            )
        logger.info(
            "Parsed %d rows with %d columns from %s",
            len(rows),
            len(columns),
            filename or "upload"
        )

        return ParseResult(rows=rows, columns=columns, warnings=warnings)

    @staticmethod
    def _read_records(text: str) -> Iterator[Tuple[int, List[str]]]:
        """Yield (starting line, fields) for each CSV record."""
        reader = csv.reader(StringIO(text))
        line = 1
        for fields in reader:
            yield line, fields
            line = reader.line_num + 1

    def _decode(self, file_content: Any, filename: str = None) -> str:
        """Read the content as text, enforcing the size limit."""
        if hasattr(file_content, "read"):
            if hasattr(file_content, "seek"):
                file_content.seek(0)
            file_content = file_content.read()

        if isinstance(file_content, str):
            raw = file_content.encode(self.encoding)
        elif isinstance(file_content, (bytes, bytearray)):
            raw = bytes(file_content)
        else:
            raise InputError(
                f"Unsupported file content: {type(file_content).__name__}",
                filename=filename
            )

        if self.max_file_size and len(raw) > self.max_file_size:
            raise InputError(
                f"File too large: {len(raw):,} bytes "
                f"(max {self.max_file_size:,})",
                filename=filename
            )

        # utf-8-sig drops a leading byte-order mark
        encoding = "utf-8-sig" if self.encoding.lower() in ("utf-8", "utf8") else self.encoding
        try:
            return raw.decode(encoding)
        except UnicodeDecodeError as e:
            raise InputError(
                f"Could not decode file as {self.encoding}: {e}",
                filename=filename
            )
