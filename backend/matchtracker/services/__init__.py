"""Match services: the scoring engine and its pure helpers."""

from .validation import ValidationError, validate_best_of, validate_set_rows
from .catalog import ShotCatalog, load_shot_catalog
from .stats import (
    compute_streaks,
    point_streaks,
    set_breakdown,
    shot_effectiveness,
    hand_breakdown,
    lucky_shots,
    match_summary,
)
from .engine import MatchScoringEngine, Phase, ScoringEngine, SetProgress

__all__ = [
    "ValidationError",
    "validate_best_of",
    "validate_set_rows",
    "ShotCatalog",
    "load_shot_catalog",
    "compute_streaks",
    "point_streaks",
    "set_breakdown",
    "shot_effectiveness",
    "hand_breakdown",
    "lucky_shots",
    "match_summary",
    "MatchScoringEngine",
    "Phase",
    "ScoringEngine",
    "SetProgress",
]
