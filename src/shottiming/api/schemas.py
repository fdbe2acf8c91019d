"""Pydantic schemas for API request/response models.

Field names are snake_case in Python and camelCase on the wire.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ShotTiming(CamelModel):
    """A completed shot with final measurements and arrival latencies."""

    golfer: str
    hole_number: int
    stroke_number: int
    first_timestamp: str = Field(..., description="Timestamp of the shot's first row (HH:MM:SS.mmm)")
    ball_speed: Optional[float] = None
    launch_angle: Optional[float] = None
    apex: Optional[float] = None
    curve: Optional[float] = None
    carry_distance: Optional[float] = None
    total_distance: Optional[float] = None
    time_to_ball_speed: Optional[int] = Field(None, description="Milliseconds from first row")
    time_to_launch_angle: Optional[int] = None
    time_to_apex: Optional[int] = None
    time_to_curve: Optional[int] = None
    time_to_carry: Optional[int] = None
    time_to_total: Optional[int] = None
    # Only filled when sequential gaps are requested
    gap_to_ball_speed: Optional[int] = Field(None, description="Milliseconds since previous field arrived")
    gap_to_launch_angle: Optional[int] = None
    gap_to_apex: Optional[int] = None
    gap_to_curve: Optional[int] = None
    gap_to_carry: Optional[int] = None
    gap_to_total: Optional[int] = None


class GolferStatsModel(CamelModel):
    """Per-golfer averages. Latency averages are in seconds."""

    golfer: str
    shot_count: int
    shots: list[ShotTiming]
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


class ParseResponse(CamelModel):
    """Result of parsing an uploaded CSV without storing it."""

    success: bool = True
    total_rows: int = Field(..., description="Non-blank CSV lines read")
    completed_shots: int = Field(..., description="Shots with a total distance")
    golfers: list[str]
    stats: list[GolferStatsModel]
    warnings: list[str] = Field(
        default_factory=list, description="Numeric fields that could not be parsed"
    )


class UploadResponse(ParseResponse):
    """Result of uploading a CSV under a match number."""

    match_number: str


class MatchSummary(CamelModel):
    """A stored match for listing."""

    match_number: str
    description: Optional[str] = None
    created_at: str
    shot_count: int = 0
    golfer_count: int = 0


class MatchListResponse(CamelModel):
    """Response for match listing endpoint."""

    matches: list[MatchSummary]
    count: int


class MatchDetail(CamelModel):
    """A stored match with statistics rebuilt from its shots."""

    match_number: str
    description: Optional[str] = None
    created_at: Optional[str] = None
    stats: list[GolferStatsModel]


class DeleteMatchResponse(CamelModel):
    status: str = "deleted"
    match_number: str


class LatencyDiffs(CamelModel):
    """Per-field latency deltas (B - A) in seconds."""

    time_to_ball_speed: Optional[float] = None
    time_to_launch_angle: Optional[float] = None
    time_to_apex: Optional[float] = None
    time_to_curve: Optional[float] = None
    time_to_carry: Optional[float] = None
    time_to_total: Optional[float] = None


class AverageLatencyDiffs(CamelModel):
    """Per-field average latency deltas (B - A) in seconds."""

    avg_time_to_ball_speed: Optional[float] = None
    avg_time_to_launch_angle: Optional[float] = None
    avg_time_to_apex: Optional[float] = None
    avg_time_to_curve: Optional[float] = None
    avg_time_to_carry: Optional[float] = None
    avg_time_to_total: Optional[float] = None


class PositionComparisonModel(CamelModel):
    """Both matches' shots at one (hole, stroke) position."""

    hole_number: int
    stroke_number: int
    match_a: Optional[ShotTiming] = None
    match_b: Optional[ShotTiming] = None
    diffs: LatencyDiffs
    is_outlier: bool = False
    matched: bool


class MatchComparisonModel(CamelModel):
    """Position-matched comparison of two matches."""

    positions: list[PositionComparisonModel]
    mean_diffs: LatencyDiffs
    mean_abs_diffs: LatencyDiffs
    verdict: str = Field(
        ..., description="'B faster', 'B slower' or 'no significant difference'"
    )
    faster_count: int
    slower_count: int
    tied_count: int
    matched_count: int
    unmatched_count: int
    outlier_count: int


class GolferComparisonModel(CamelModel):
    """One golfer's average latencies in both matches."""

    golfer: str
    match_a: Optional[GolferStatsModel] = None
    match_b: Optional[GolferStatsModel] = None
    diffs: AverageLatencyDiffs


class CompareSide(CamelModel):
    match_number: str
    description: Optional[str] = None
    stats: list[GolferStatsModel]


class CompareResponse(CamelModel):
    """Both matches' statistics plus the server-side comparison."""

    match_a: CompareSide
    match_b: CompareSide
    comparison: MatchComparisonModel
    golfer_comparison: list[GolferComparisonModel]
