"""Group raw sensor rows into completed shots with arrival latencies.

A swing shows up as several rows sharing (golfer, hole, stroke). The tracker
fills in measurements as they become available, roughly in the order
ball speed, launch angle, apex, curve, carry, total. For every measurement we
keep two independent pieces of information:

- latency: milliseconds from the shot's first row to the first row where the
  field is non-null (first arrival wins)
- final value: the last non-null value seen for the field (last write wins)

The two can come from different rows, e.g. a ball speed that is corrected a
few hundred milliseconds after it first appears keeps its original latency.

A shot is only emitted once its total distance is known. Partitions that never
receive a total distance are dropped entirely.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger

from shottiming.processing.parser import MEASUREMENT_FIELDS, RawRow, parse_timestamp

# Measurement field -> latency field, in expected arrival order
LATENCY_FIELDS = {
    "ball_speed": "time_to_ball_speed",
    "launch_angle": "time_to_launch_angle",
    "apex": "time_to_apex",
    "curve": "time_to_curve",
    "carry_distance": "time_to_carry",
    "total_distance": "time_to_total",
}

# Latency field -> gap field for the sequential-delta variant
GAP_FIELDS = {
    "time_to_ball_speed": "gap_to_ball_speed",
    "time_to_launch_angle": "gap_to_launch_angle",
    "time_to_apex": "gap_to_apex",
    "time_to_curve": "gap_to_curve",
    "time_to_carry": "gap_to_carry",
    "time_to_total": "gap_to_total",
}

ShotKey = Tuple[str, int, int]


@dataclass
class Shot:
    """One completed swing. Latencies are in milliseconds."""

    golfer: str
    hole_number: int
    stroke_number: int
    first_timestamp: str
    ball_speed: Optional[float] = None
    launch_angle: Optional[float] = None
    apex: Optional[float] = None
    curve: Optional[float] = None
    carry_distance: Optional[float] = None
    total_distance: Optional[float] = None
    time_to_ball_speed: Optional[int] = None
    time_to_launch_angle: Optional[int] = None
    time_to_apex: Optional[int] = None
    time_to_curve: Optional[int] = None
    time_to_carry: Optional[int] = None
    time_to_total: Optional[int] = None

    @property
    def key(self) -> ShotKey:
        return (self.golfer, self.hole_number, self.stroke_number)

    @property
    def position(self) -> Tuple[int, int]:
        """(hole, stroke) slot used to line shots up across matches."""
        return (self.hole_number, self.stroke_number)

    def sequential_gaps(self) -> Dict[str, Optional[int]]:
        """Time between each field's arrival and the previous field's.

        Each gap is taken from the two per-field latencies, not accumulated,
        so a missing field only nulls the two gaps that touch it. The first
        field's gap is measured from the start of the shot.
        """
        gaps: Dict[str, Optional[int]] = {}
        previous: Optional[int] = 0
        for latency_field, gap_field in GAP_FIELDS.items():
            current = getattr(self, latency_field)
            if current is None or previous is None:
                gaps[gap_field] = None
            else:
                gaps[gap_field] = current - previous
            previous = current
        return gaps

    def to_dict(self, include_gaps: bool = False) -> Dict[str, Any]:
        data = asdict(self)
        if include_gaps:
            data.update(self.sequential_gaps())
        return data


def _group_rows(rows: List[RawRow]) -> Dict[ShotKey, List[RawRow]]:
    """Partition rows by shot key, keeping file order inside each group."""
    groups: Dict[ShotKey, List[RawRow]] = {}
    for row in rows:
        key = (row.golfer, row.hole_number, row.stroke_number)
        groups.setdefault(key, []).append(row)
    return groups


def _first_arrivals(shot_rows: List[RawRow], start_ms: int) -> Dict[str, Optional[int]]:
    """Latency reducer: delta of the first row where each field is non-null."""
    arrivals: Dict[str, Optional[int]] = {name: None for name in MEASUREMENT_FIELDS}
    for row in shot_rows:
        delta = parse_timestamp(row.timestamp) - start_ms
        for name in MEASUREMENT_FIELDS:
            if arrivals[name] is None and getattr(row, name) is not None:
                arrivals[name] = delta
    return arrivals


def _final_values(shot_rows: List[RawRow]) -> Dict[str, Optional[float]]:
    """Value reducer: last non-null observation of each field."""
    values: Dict[str, Optional[float]] = {name: None for name in MEASUREMENT_FIELDS}
    for row in shot_rows:
        for name in MEASUREMENT_FIELDS:
            value = getattr(row, name)
            if value is not None:
                values[name] = value
    return values


def build_shot(shot_rows: List[RawRow]) -> Optional[Shot]:
    """Reduce one partition of rows to a Shot.

    Args:
        shot_rows: Rows sharing a (golfer, hole, stroke) key, in file order.

    Returns:
        The shot, or None if its total distance never arrived.
    """
    if not shot_rows:
        return None

    # sorted() is stable, so rows with equal timestamps keep file order
    ordered = sorted(shot_rows, key=lambda row: parse_timestamp(row.timestamp))
    first = ordered[0]
    start_ms = parse_timestamp(first.timestamp)

    values = _final_values(ordered)
    if values["total_distance"] is None:
        return None

    arrivals = _first_arrivals(ordered, start_ms)

    return Shot(
        golfer=first.golfer,
        hole_number=first.hole_number,
        stroke_number=first.stroke_number,
        first_timestamp=first.timestamp,
        **values,
        **{LATENCY_FIELDS[name]: arrivals[name] for name in MEASUREMENT_FIELDS},
    )


def aggregate_shots(rows: List[RawRow]) -> List[Shot]:
    """Turn all rows of one upload into its completed shots.

    Shots are returned in order of their key's first appearance in the file.
    """
    groups = _group_rows(rows)

    shots = []
    for shot_rows in groups.values():
        shot = build_shot(shot_rows)
        if shot is not None:
            shots.append(shot)

    logger.debug(
        f"Aggregated {len(rows)} rows into {len(shots)} completed shots "
        f"({len(groups) - len(shots)} incomplete dropped)"
    )
    return shots
