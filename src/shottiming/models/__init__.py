"""Database models for match storage."""

from shottiming.models.match import (
    save_match,
    get_match,
    get_all_matches,
    delete_match,
    match_row_to_dict,
    shot_row_to_shot,
)

__all__ = [
    "save_match",
    "get_match",
    "get_all_matches",
    "delete_match",
    "match_row_to_dict",
    "shot_row_to_shot",
]
