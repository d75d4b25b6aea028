"""Autonomous player: placement search, difficulty profiles and move scheduling."""

from .features import board_features, has_t_spin_pocket
from .profiles import DEFAULT_WEIGHTS, TUNED_WEIGHTS, Difficulty, DifficultyProfile, get_profile
from .search import Placement, PlacementSearch, piece_utility, quick_evaluate
from .scheduler import MoveScheduler

__all__ = [
    "board_features",
    "has_t_spin_pocket",
    "DEFAULT_WEIGHTS",
    "TUNED_WEIGHTS",
    "Difficulty",
    "DifficultyProfile",
    "get_profile",
    "Placement",
    "PlacementSearch",
    "piece_utility",
    "quick_evaluate",
    "MoveScheduler",
]
