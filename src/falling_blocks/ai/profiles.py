from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict


DEFAULT_WEIGHTS: Dict[str, float] = {
    "aggregate_height": -0.510066,
    "holes": -0.35663,
    "bumpiness": -0.184483,
    "lines": 0.760666,
    "wells": -0.35663,
    "blockades": -0.5,
    "height_range": -0.2,
    "center_height": -0.1,
    "edge_touch": 0.05,
    "floor_touch": 0.1,
    "perfect_clear": 10.0,
}

TUNED_WEIGHTS: Dict[str, float] = {
    **DEFAULT_WEIGHTS,
    "lines": 0.960666,
    "perfect_clear": 15.0,
}


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    IMPOSSIBLE = "impossible"


@dataclass(frozen=True)
class DifficultyProfile:
    name: str
    act_ms: float
    think_ms: float
    lookahead: bool
    weights: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))


def _scaled(weights: Dict[str, float], **factors: float) -> Dict[str, float]:
    out = dict(weights)
    for key, factor in factors.items():
        out[key] = out[key] * factor
    return out


PROFILES: Dict[Difficulty, DifficultyProfile] = {
    # Easy plays with a scaled-down line-clear weight
    Difficulty.EASY: DifficultyProfile("easy", 150, 200, False, _scaled(DEFAULT_WEIGHTS, lines=0.8)),
    Difficulty.MEDIUM: DifficultyProfile("medium", 100, 150, False, dict(DEFAULT_WEIGHTS)),
    Difficulty.HARD: DifficultyProfile("hard", 50, 100, False, dict(DEFAULT_WEIGHTS)),
    Difficulty.IMPOSSIBLE: DifficultyProfile("impossible", 30, 50, True, dict(TUNED_WEIGHTS)),
}


def get_profile(name: "str | Difficulty") -> DifficultyProfile:
    try:
        difficulty = Difficulty(name)
    except ValueError:
        choices = ", ".join(d.value for d in Difficulty)
        raise ValueError(f"Unknown difficulty {name!r}; expected one of: {choices}") from None
    profile = PROFILES[difficulty]
    # Fresh weight dict per call
    return DifficultyProfile(profile.name, profile.act_ms, profile.think_ms, profile.lookahead, dict(profile.weights))
