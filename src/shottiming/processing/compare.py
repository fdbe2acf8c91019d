"""Compare tracking latency between two matches.

Shots are lined up by position, the (hole, stroke) pair, not by golfer. The
question being answered is "how quickly did this slot get tracked in match B
compared to match A", so two different golfers occupying the same slot are
compared directly. A slot present in only one match is reported as unmatched
and takes no part in the averages or outlier detection.

All deltas are B minus A, in seconds; negative means B was faster.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from shottiming.processing.shots import LATENCY_FIELDS, Shot
from shottiming.processing.stats import (
    AVERAGE_LATENCY_FIELDS,
    GolferStats,
    flatten_shots,
    golfer_sort_key,
    mean,
    ms_to_seconds,
)

# Total-latency deltas within +/- this many seconds count as a tie
DEAD_ZONE_SECONDS = 0.005

# A delta larger than this multiple of the field's mean absolute delta is an outlier
OUTLIER_FACTOR = 2.0

VERDICT_FASTER = "B faster"
VERDICT_SLOWER = "B slower"
VERDICT_SAME = "no significant difference"

TOTAL_FIELD = "time_to_total"

Position = Tuple[int, int]


@dataclass
class PositionComparison:
    """Both matches' shots at one (hole, stroke) slot."""

    hole_number: int
    stroke_number: int
    match_a: Optional[Shot] = None
    match_b: Optional[Shot] = None
    diffs: Dict[str, Optional[float]] = field(default_factory=dict)
    is_outlier: bool = False

    @property
    def matched(self) -> bool:
        return self.match_a is not None and self.match_b is not None

    def to_dict(self, include_gaps: bool = False) -> Dict[str, Any]:
        return {
            "hole_number": self.hole_number,
            "stroke_number": self.stroke_number,
            "match_a": self.match_a.to_dict(include_gaps=include_gaps) if self.match_a else None,
            "match_b": self.match_b.to_dict(include_gaps=include_gaps) if self.match_b else None,
            "diffs": dict(self.diffs),
            "is_outlier": self.is_outlier,
            "matched": self.matched,
        }


@dataclass
class MatchComparison:
    """Position-by-position comparison plus aggregate verdict."""

    positions: List[PositionComparison]
    mean_diffs: Dict[str, Optional[float]]
    mean_abs_diffs: Dict[str, Optional[float]]
    verdict: str
    faster_count: int = 0
    slower_count: int = 0
    tied_count: int = 0

    @property
    def matched_count(self) -> int:
        return sum(1 for p in self.positions if p.matched)

    @property
    def unmatched_count(self) -> int:
        return len(self.positions) - self.matched_count

    @property
    def outlier_count(self) -> int:
        return sum(1 for p in self.positions if p.is_outlier)

    def to_dict(self, include_gaps: bool = False) -> Dict[str, Any]:
        return {
            "positions": [p.to_dict(include_gaps=include_gaps) for p in self.positions],
            "mean_diffs": dict(self.mean_diffs),
            "mean_abs_diffs": dict(self.mean_abs_diffs),
            "verdict": self.verdict,
            "faster_count": self.faster_count,
            "slower_count": self.slower_count,
            "tied_count": self.tied_count,
            "matched_count": self.matched_count,
            "unmatched_count": self.unmatched_count,
            "outlier_count": self.outlier_count,
        }


@dataclass
class GolferComparison:
    """One golfer's average latencies in both matches."""

    golfer: str
    match_a: Optional[GolferStats] = None
    match_b: Optional[GolferStats] = None
    diffs: Dict[str, Optional[float]] = field(default_factory=dict)

    def to_dict(self, include_gaps: bool = False) -> Dict[str, Any]:
        return {
            "golfer": self.golfer,
            "match_a": self.match_a.to_dict(include_gaps=include_gaps) if self.match_a else None,
            "match_b": self.match_b.to_dict(include_gaps=include_gaps) if self.match_b else None,
            "diffs": dict(self.diffs),
        }


def diff(a: Optional[float], b: Optional[float]) -> Optional[float]:
    """B minus A, or None if either side is missing."""
    if a is None or b is None:
        return None
    return b - a


def _latency_diffs(shot_a: Optional[Shot], shot_b: Optional[Shot]) -> Dict[str, Optional[float]]:
    diffs: Dict[str, Optional[float]] = {}
    for latency in LATENCY_FIELDS.values():
        a = ms_to_seconds(getattr(shot_a, latency)) if shot_a else None
        b = ms_to_seconds(getattr(shot_b, latency)) if shot_b else None
        diffs[latency] = diff(a, b)
    return diffs


def _index_by_position(shots: Iterable[Shot]) -> Dict[Position, Shot]:
    # First shot at a slot wins if a match has several
    index: Dict[Position, Shot] = {}
    for shot in shots:
        index.setdefault(shot.position, shot)
    return index


def classify(delta: Optional[float], dead_zone: float = DEAD_ZONE_SECONDS) -> str:
    """Verdict for a single total-latency delta."""
    if delta is not None and delta < -dead_zone:
        return VERDICT_FASTER
    if delta is not None and delta > dead_zone:
        return VERDICT_SLOWER
    return VERDICT_SAME


def compare_matches(
    stats_a: Iterable[GolferStats],
    stats_b: Iterable[GolferStats],
    dead_zone: float = DEAD_ZONE_SECONDS,
    outlier_factor: float = OUTLIER_FACTOR,
) -> MatchComparison:
    """Compare two matches slot by slot.

    Args:
        stats_a: Golfer statistics of the baseline match.
        stats_b: Golfer statistics of the match being compared.
        dead_zone: Seconds within which a total delta counts as a tie.
        outlier_factor: Multiple of the mean absolute delta that marks an outlier.

    Returns:
        The comparison. Never raises for missing data; unmatched slots simply
        carry None on one side and in their diffs.
    """
    index_a = _index_by_position(flatten_shots(stats_a))
    index_b = _index_by_position(flatten_shots(stats_b))

    positions = [
        PositionComparison(
            hole_number=hole,
            stroke_number=stroke,
            match_a=index_a.get((hole, stroke)),
            match_b=index_b.get((hole, stroke)),
            diffs=_latency_diffs(index_a.get((hole, stroke)), index_b.get((hole, stroke))),
        )
        for hole, stroke in sorted(set(index_a) | set(index_b))
    ]

    matched = [p for p in positions if p.matched]

    mean_diffs = {
        latency: mean(p.diffs[latency] for p in matched)
        for latency in LATENCY_FIELDS.values()
    }
    mean_abs_diffs = {
        latency: mean(
            abs(p.diffs[latency]) for p in matched if p.diffs[latency] is not None
        )
        for latency in LATENCY_FIELDS.values()
    }

    for p in matched:
        p.is_outlier = any(
            p.diffs[latency] is not None
            and mean_abs_diffs[latency] is not None
            and abs(p.diffs[latency]) > outlier_factor * mean_abs_diffs[latency]
            for latency in LATENCY_FIELDS.values()
        )

    buckets = [classify(p.diffs[TOTAL_FIELD], dead_zone) for p in matched]

    return MatchComparison(
        positions=positions,
        mean_diffs=mean_diffs,
        mean_abs_diffs=mean_abs_diffs,
        verdict=classify(mean_diffs[TOTAL_FIELD], dead_zone),
        faster_count=buckets.count(VERDICT_FASTER),
        slower_count=buckets.count(VERDICT_SLOWER),
        tied_count=buckets.count(VERDICT_SAME),
    )


def compare_golfers(
    stats_a: Iterable[GolferStats],
    stats_b: Iterable[GolferStats],
) -> List[GolferComparison]:
    """Pair golfers by name and diff their average latencies."""
    by_name_a = {s.golfer: s for s in stats_a}
    by_name_b = {s.golfer: s for s in stats_b}

    comparisons = []
    for golfer in sorted(set(by_name_a) | set(by_name_b), key=golfer_sort_key):
        a = by_name_a.get(golfer)
        b = by_name_b.get(golfer)
        comparisons.append(
            GolferComparison(
                golfer=golfer,
                match_a=a,
                match_b=b,
                diffs={
                    avg_name: diff(
                        getattr(a, avg_name) if a else None,
                        getattr(b, avg_name) if b else None,
                    )
                    for avg_name in AVERAGE_LATENCY_FIELDS.values()
                },
            )
        )
    return comparisons
