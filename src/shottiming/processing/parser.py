"""CSV parsing for shot-tracking exports.

Each line of an export is one sensor observation, not one shot:

    timestamp,golfer,holeNumber,strokeNumber,ballSpeed,launchAngle,apex,curve,carryDistance,totalDistance

There is no header row. Measurements stream in over several lines per swing,
so most lines carry only some of the six numeric fields; an empty field means
"not measured yet" and is kept as None rather than zero.

Parsing never raises on bad content. Malformed timestamps collapse to
midnight (0 ms) and malformed integers to 0. Numeric fields holding text that
is not a finite number become None and are reported as ParseIssue records so
the caller can surface them instead of letting NaN leak into averages.
"""

import csv
import io
import math
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from loguru import logger

# CSV column order for the six measurements (positions 4-9)
MEASUREMENT_FIELDS = (
    "ball_speed",
    "launch_angle",
    "apex",
    "curve",
    "carry_distance",
    "total_distance",
)

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass
class RawRow:
    """One CSV line, typed."""

    timestamp: str
    golfer: str
    hole_number: int
    stroke_number: int
    ball_speed: Optional[float] = None
    launch_angle: Optional[float] = None
    apex: Optional[float] = None
    curve: Optional[float] = None
    carry_distance: Optional[float] = None
    total_distance: Optional[float] = None


@dataclass
class ParseIssue:
    """A numeric field whose text could not be read as a number."""

    row_index: int
    column: str
    raw_value: str

    def describe(self) -> str:
        return f"Row {self.row_index + 1}: {self.column} value {self.raw_value!r} is not a number"


@dataclass
class ParsedCSV:
    """Result of parsing a whole export."""

    rows: List[RawRow]
    issues: List[ParseIssue]


def _parse_int(text: str) -> int:
    """Read the leading integer of a string, or 0 if there is none."""
    match = _LEADING_INT.match(text or "")
    return int(match.group(1)) if match else 0


def parse_timestamp(ts: str) -> int:
    """Convert an ``HH:MM:SS.mmm`` string to milliseconds since midnight.

    A segment that is not an integer counts as zero, and anything that does
    not split into exactly three colon-separated parts gives 0.

    >>> parse_timestamp("01:02:03.456")
    3723456
    >>> parse_timestamp("bad")
    0
    """
    parts = (ts or "").split(":")
    if len(parts) != 3:
        return 0

    hours = _parse_int(parts[0])
    minutes = _parse_int(parts[1])
    sec_parts = parts[2].split(".")
    seconds = _parse_int(sec_parts[0])
    millis = _parse_int(sec_parts[1]) if len(sec_parts) > 1 else 0

    return (hours * 3600 + minutes * 60 + seconds) * 1000 + millis


def _parse_measurement(
    text: str,
    column: str,
    row_index: int,
    issues: Optional[List[ParseIssue]],
) -> Optional[float]:
    value = text.strip()
    if not value:
        return None

    try:
        number = float(value)
    except ValueError:
        number = math.nan

    if not math.isfinite(number):
        if issues is not None:
            issues.append(ParseIssue(row_index=row_index, column=column, raw_value=text))
        return None

    return number


def parse_row(
    fields: Sequence[str],
    row_index: int = 0,
    issues: Optional[List[ParseIssue]] = None,
) -> RawRow:
    """Convert one CSV record into a RawRow.

    Args:
        fields: The record's text fields in column order.
        row_index: Position of the record in the file, used for issue reports.
        issues: If given, unreadable numeric fields are appended here.

    Returns:
        The typed row. Missing leading fields default to '' or 0, missing or
        empty measurements to None.
    """

    def field_at(index: int) -> str:
        return fields[index] if index < len(fields) and fields[index] is not None else ""

    measurements = {
        name: _parse_measurement(field_at(4 + offset), name, row_index, issues)
        for offset, name in enumerate(MEASUREMENT_FIELDS)
    }

    return RawRow(
        timestamp=field_at(0),
        golfer=field_at(1),
        hole_number=_parse_int(field_at(2)),
        stroke_number=_parse_int(field_at(3)),
        **measurements,
    )


def parse_records(records: Iterable[Sequence[str]]) -> ParsedCSV:
    """Parse already-split CSV records, skipping blank lines."""
    rows: List[RawRow] = []
    issues: List[ParseIssue] = []

    for index, record in enumerate(records):
        if not record or not any(field.strip() for field in record):
            continue
        rows.append(parse_row(record, row_index=index, issues=issues))

    if issues:
        logger.warning(f"{len(issues)} numeric fields could not be parsed and were treated as empty")
        for issue in issues[:10]:
            logger.warning(issue.describe())

    return ParsedCSV(rows=rows, issues=issues)


def parse_csv(content: str) -> ParsedCSV:
    """Parse the text of a shot-tracking export."""
    return parse_records(csv.reader(io.StringIO(content)))
