"""Shot timing transformation pipeline."""

from shottiming.processing.compare import compare_golfers, compare_matches
from shottiming.processing.parser import parse_csv, parse_row, parse_timestamp
from shottiming.processing.shots import Shot, aggregate_shots
from shottiming.processing.stats import GolferStats, flatten_shots, summarize_golfers

__all__ = [
    "GolferStats",
    "Shot",
    "aggregate_shots",
    "compare_golfers",
    "compare_matches",
    "flatten_shots",
    "parse_csv",
    "parse_row",
    "parse_timestamp",
    "summarize_golfers",
]
