"""Per-golfer summary statistics over completed shots."""

import unicodedata
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from shottiming.processing.parser import MEASUREMENT_FIELDS
from shottiming.processing.shots import LATENCY_FIELDS, Shot

AVERAGE_FIELDS = {name: f"avg_{name}" for name in MEASUREMENT_FIELDS}
AVERAGE_LATENCY_FIELDS = {latency: f"avg_{latency}" for latency in LATENCY_FIELDS.values()}


@dataclass
class GolferStats:
    """Summary of one golfer's completed shots.

    Measurement averages use the tracker's units; latency averages are in
    seconds.
    """

    golfer: str
    shots: List[Shot] = field(default_factory=list)
    avg_ball_speed: Optional[float] = None
    avg_launch_angle: Optional[float] = None
    avg_apex: Optional[float] = None
    avg_curve: Optional[float] = None
    avg_carry_distance: Optional[float] = None
    avg_total_distance: Optional[float] = None
    max_total_distance: Optional[float] = None
    avg_time_to_ball_speed: Optional[float] = None
    avg_time_to_launch_angle: Optional[float] = None
    avg_time_to_apex: Optional[float] = None
    avg_time_to_curve: Optional[float] = None
    avg_time_to_carry: Optional[float] = None
    avg_time_to_total: Optional[float] = None

    @property
    def shot_count(self) -> int:
        return len(self.shots)

    def to_dict(self, include_gaps: bool = False) -> Dict[str, Any]:
        data = {
            "golfer": self.golfer,
            "shot_count": self.shot_count,
            "shots": [shot.to_dict(include_gaps=include_gaps) for shot in self.shots],
        }
        for name in list(AVERAGE_FIELDS.values()) + list(AVERAGE_LATENCY_FIELDS.values()):
            data[name] = getattr(self, name)
        data["max_total_distance"] = self.max_total_distance
        return data


def mean(values: Iterable[Optional[float]]) -> Optional[float]:
    """Arithmetic mean of the non-null values, or None if there are none."""
    valid = [v for v in values if v is not None]
    if not valid:
        return None
    return sum(valid) / len(valid)


def maximum(values: Iterable[Optional[float]]) -> Optional[float]:
    valid = [v for v in values if v is not None]
    return max(valid) if valid else None


def ms_to_seconds(value: Optional[float]) -> Optional[float]:
    return value / 1000 if value is not None else None


def golfer_sort_key(name: str) -> tuple:
    """Dictionary-style ordering.

    Accents are ignored first, then case; lowercase sorts before uppercase
    when names differ only in case.
    """
    decomposed = unicodedata.normalize("NFKD", name)
    base = "".join(c for c in decomposed if not unicodedata.combining(c))
    return (base.casefold(), name.casefold(), name.swapcase())


def summarize_golfer(golfer: str, shots: List[Shot]) -> GolferStats:
    """Compute one golfer's averages and max distance."""
    stats = GolferStats(golfer=golfer, shots=list(shots))

    for name, avg_name in AVERAGE_FIELDS.items():
        setattr(stats, avg_name, mean(getattr(shot, name) for shot in shots))

    stats.max_total_distance = maximum(shot.total_distance for shot in shots)

    for latency, avg_name in AVERAGE_LATENCY_FIELDS.items():
        setattr(stats, avg_name, ms_to_seconds(mean(getattr(shot, latency) for shot in shots)))

    return stats


def summarize_golfers(shots: Iterable[Shot]) -> List[GolferStats]:
    """Group completed shots by golfer and summarize each group.

    Returns:
        One GolferStats per golfer, sorted by name.
    """
    by_golfer: Dict[str, List[Shot]] = {}
    for shot in shots:
        by_golfer.setdefault(shot.golfer, []).append(shot)

    return [
        summarize_golfer(golfer, by_golfer[golfer])
        for golfer in sorted(by_golfer, key=golfer_sort_key)
    ]


def flatten_shots(stats: Iterable[GolferStats]) -> List[Shot]:
    """Inverse of the golfer grouping: all shots as one list."""
    return [shot for golfer_stats in stats for shot in golfer_stats.shots]
