"""API routes for shot timing uploads, matches and comparisons."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, Query, UploadFile
from loguru import logger

from shottiming.api.schemas import (
    CompareResponse,
    CompareSide,
    DeleteMatchResponse,
    GolferComparisonModel,
    GolferStatsModel,
    MatchComparisonModel,
    MatchDetail,
    MatchListResponse,
    MatchSummary,
    ParseResponse,
    UploadResponse,
)
from shottiming.core.config import settings
from shottiming.models.match import delete_match, get_all_matches, get_match, save_match
from shottiming.processing.compare import compare_golfers, compare_matches
from shottiming.processing.parser import ParsedCSV, parse_csv
from shottiming.processing.shots import Shot, aggregate_shots
from shottiming.processing.stats import GolferStats, summarize_golfers

router = APIRouter()


@dataclass
class ProcessedUpload:
    """Everything derived from one uploaded CSV."""

    parsed: ParsedCSV
    shots: list[Shot]
    stats: list[GolferStats]

    @property
    def warnings(self) -> list[str]:
        return [issue.describe() for issue in self.parsed.issues]


def _include_gaps(sequential: Optional[bool]) -> bool:
    """Per-request flag wins over the configured default."""
    return settings.sequential_deltas if sequential is None else sequential


def _stats_models(stats: list[GolferStats], include_gaps: bool) -> list[GolferStatsModel]:
    return [GolferStatsModel.model_validate(s.to_dict(include_gaps=include_gaps)) for s in stats]


async def _read_upload(file: Optional[UploadFile]) -> str:
    """Read an uploaded CSV as text, rejecting missing or oversized files."""
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")

    contents = await file.read()
    if len(contents) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {settings.max_upload_bytes} bytes",
        )

    # Tolerate a BOM and stray bytes from spreadsheet exports
    return contents.decode("utf-8-sig", errors="replace")


def process_csv(content: str) -> ProcessedUpload:
    """Run the full parse -> aggregate -> summarize pipeline on CSV text."""
    parsed = parse_csv(content)
    shots = aggregate_shots(parsed.rows)
    stats = summarize_golfers(shots)
    return ProcessedUpload(parsed=parsed, shots=shots, stats=stats)


@router.post("/parse", response_model=ParseResponse)
async def parse_upload(
    file: Optional[UploadFile] = File(None),
    sequential: Optional[bool] = Query(None),
):
    """Parse a CSV export and return golfer statistics without storing anything."""
    content = await _read_upload(file)

    try:
        result = process_csv(content)
    except Exception as e:
        logger.exception(f"Failed to parse CSV {file.filename}: {e}")
        raise HTTPException(status_code=500, detail="Failed to parse CSV")

    logger.info(
        f"Parsed {file.filename}: {len(result.parsed.rows)} rows, "
        f"{len(result.shots)} completed shots"
    )

    return ParseResponse(
        total_rows=len(result.parsed.rows),
        completed_shots=len(result.shots),
        golfers=[s.golfer for s in result.stats],
        stats=_stats_models(result.stats, _include_gaps(sequential)),
        warnings=result.warnings,
    )


@router.post("/upload", response_model=UploadResponse)
async def upload_match(
    file: Optional[UploadFile] = File(None),
    match_number: Optional[str] = Form(None, alias="matchNumber"),
    description: Optional[str] = Form(None),
    sequential: Optional[bool] = Query(None),
):
    """Upload a CSV export as a match.

    Uploading again under the same match number replaces the match's shots.
    """
    match_number = (match_number or "").strip()
    if not match_number:
        raise HTTPException(status_code=400, detail="Match number is required")

    content = await _read_upload(file)
    description = description.strip() if description and description.strip() else None

    try:
        result = process_csv(content)
        await save_match(match_number, result.shots, description=description)
    except Exception as e:
        logger.exception(f"Failed to process upload for match {match_number}: {e}")
        raise HTTPException(status_code=500, detail="Failed to process CSV")

    logger.info(
        f"Uploaded match {match_number} from {file.filename}: "
        f"{len(result.parsed.rows)} rows, {len(result.shots)} completed shots, "
        f"{len(result.stats)} golfers"
    )

    return UploadResponse(
        match_number=match_number,
        total_rows=len(result.parsed.rows),
        completed_shots=len(result.shots),
        golfers=[s.golfer for s in result.stats],
        stats=_stats_models(result.stats, _include_gaps(sequential)),
        warnings=result.warnings,
    )


@router.get("/matches", response_model=MatchListResponse)
async def list_matches(limit: Optional[int] = Query(None, ge=1)):
    """List stored matches with shot counts, newest first.

    All matches are returned unless a limit is given.
    """
    matches = await get_all_matches(limit=limit)

    match_list = [
        MatchSummary(
            match_number=m["match_number"],
            description=m["description"],
            created_at=m["created_at"],
            shot_count=m["shot_count"],
            golfer_count=m["golfer_count"],
        )
        for m in matches
    ]

    return MatchListResponse(matches=match_list, count=len(match_list))


async def _load_match(match_number: str) -> tuple[dict, list[GolferStats]]:
    match = await get_match(match_number)
    if not match:
        raise HTTPException(status_code=404, detail=f"Match {match_number} not found")
    return match, summarize_golfers(match["shots"])


@router.get("/matches/{match_number}", response_model=MatchDetail)
async def get_match_detail(match_number: str, sequential: Optional[bool] = Query(None)):
    """Get a stored match with statistics rebuilt from its shots."""
    match, stats = await _load_match(match_number)

    return MatchDetail(
        match_number=match["match_number"],
        description=match["description"],
        created_at=match["created_at"],
        stats=_stats_models(stats, _include_gaps(sequential)),
    )


@router.delete("/matches/{match_number}", response_model=DeleteMatchResponse)
async def delete_match_endpoint(match_number: str):
    """Delete a match and all of its shots."""
    if not await delete_match(match_number):
        raise HTTPException(status_code=404, detail="Match not found")

    logger.info(f"Deleted match {match_number}")
    return DeleteMatchResponse(match_number=match_number)


@router.get("/compare", response_model=CompareResponse)
async def compare_match_numbers(
    match_a: str = Query(..., alias="matchA"),
    match_b: str = Query(..., alias="matchB"),
    sequential: Optional[bool] = Query(None),
):
    """Compare tracking latency of two stored matches.

    Shots are paired by (hole, stroke) position; deltas are B minus A.
    """
    record_a, stats_a = await _load_match(match_a)
    record_b, stats_b = await _load_match(match_b)
    include_gaps = _include_gaps(sequential)

    comparison = compare_matches(
        stats_a,
        stats_b,
        dead_zone=settings.comparison_dead_zone,
        outlier_factor=settings.outlier_factor,
    )
    golfer_comparison = compare_golfers(stats_a, stats_b)

    logger.info(
        f"Compared {match_a} vs {match_b}: {comparison.matched_count} matched positions, "
        f"{comparison.outlier_count} outliers, verdict '{comparison.verdict}'"
    )

    return CompareResponse(
        match_a=CompareSide(
            match_number=record_a["match_number"],
            description=record_a["description"],
            stats=_stats_models(stats_a, include_gaps),
        ),
        match_b=CompareSide(
            match_number=record_b["match_number"],
            description=record_b["description"],
            stats=_stats_models(stats_b, include_gaps),
        ),
        comparison=MatchComparisonModel.model_validate(comparison.to_dict(include_gaps=include_gaps)),
        golfer_comparison=[
            GolferComparisonModel.model_validate(g.to_dict(include_gaps=include_gaps))
            for g in golfer_comparison
        ],
    )


# =============================================================================
# Database Management Endpoints
# =============================================================================


@router.get("/db/stats")
async def get_database_stats():
    """Get database statistics and health information."""
    from shottiming.core.database import get_database_stats

    stats = await get_database_stats()
    stats["checked_at"] = datetime.utcnow().isoformat()
    return stats
