from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

import numpy as np

from falling_blocks.game import GameGrid, GameSnapshot, TetrominoType
from falling_blocks.game.grid import column_heights
from falling_blocks.game.pieces import rotation_count, shape_for

from .features import FEATURE_NAMES, board_features, has_t_spin_pocket
from .profiles import DEFAULT_WEIGHTS


logger = logging.getLogger(__name__)

MAX_EVALUATIONS = 200
EDGE_SLACK = 2  # columns explored beyond each wall
LOOKAHEAD_FACTOR = 0.2
HOLD_MARGIN = 2.0


@dataclass(frozen=True)
class Placement:
    rotation: int
    x: int
    y: int
    score: float
    lines_cleared: int = 0


def landing_row(grid: GameGrid, shape: np.ndarray, x: int) -> Optional[int]:
    """Row where ``shape`` comes to rest in column ``x`` when dropped from row 0."""
    y = 0
    while y < grid.height:
        if not grid.is_valid_position(shape, x, y + 1):
            return y
        y += 1
    return None


def quick_evaluate(kind: Optional[TetrominoType], grid: np.ndarray) -> float:
    """Coarse fit of the next piece to the board; not a search."""
    if kind is None:
        return 0.0
    avg_height = float(np.mean(column_heights(grid)))
    if kind == TetrominoType.I and avg_height > 10:
        return 5.0
    if kind == TetrominoType.O and avg_height < 5:
        return -2.0
    return 0.0


def piece_utility(kind: TetrominoType, grid: GameGrid) -> float:
    if kind == TetrominoType.I:
        return 5.0 if grid.max_height() > 12 else 0.0
    if kind == TetrominoType.O:
        return -1.0
    if kind == TetrominoType.T:
        return 3.0 if has_t_spin_pocket(grid.grid) else 1.0
    return 0.0


class PlacementSearch:
    """Bounded one-piece placement search with a linear board evaluator.

    Every rotation state is tried in every column from two beyond the left
    wall to two beyond the right one. Each resting position is simulated on a
    copy of the grid and scored from ``board_features``. At most
    ``max_evaluations`` placements are scored per call so a think step has a
    fixed worst-case cost.
    """

    def __init__(
        self,
        weights: Optional[Dict[str, float]] = None,
        lookahead: bool = True,
        max_evaluations: int = MAX_EVALUATIONS,
    ) -> None:
        self.weights: Dict[str, float] = dict(weights if weights is not None else DEFAULT_WEIGHTS)
        self.lookahead = lookahead
        self.max_evaluations = int(max_evaluations)

    def candidates(self, kind: TetrominoType, grid: GameGrid) -> Iterator[Tuple[int, int, int]]:
        """Yield (rotation, x, y) resting positions in enumeration order."""
        for rotation in range(rotation_count(kind)):
            shape = shape_for(kind, rotation)
            for x in range(-EDGE_SLACK, grid.width + EDGE_SLACK):
                y = landing_row(grid, shape, x)
                if y is None:
                    continue
                if not grid.is_valid_position(shape, x, y):
                    continue
                yield rotation, x, y

    def simulate(self, kind: TetrominoType, rotation: int, x: int, y: int, grid: GameGrid) -> Tuple[GameGrid, int]:
        sim = grid.copy()
        sim.lock(shape_for(kind, rotation), x, y, int(kind))
        lines = sim.clear_full_lines()
        return sim, lines

    def evaluate(
        self,
        kind: TetrominoType,
        rotation: int,
        x: int,
        y: int,
        grid: GameGrid,
        next_kind: Optional[TetrominoType] = None,
    ) -> Tuple[float, int]:
        sim, lines = self.simulate(kind, rotation, x, y, grid)
        feats = board_features(sim.grid)
        score = sum(self.weights.get(name, 0.0) * feats[name] for name in FEATURE_NAMES)
        score += self.weights.get("lines", 0.0) * lines
        if self.lookahead and next_kind is not None:
            score += LOOKAHEAD_FACTOR * quick_evaluate(next_kind, sim.grid)
        return score, lines

    def find_best_placement(
        self,
        kind: TetrominoType,
        grid: GameGrid,
        next_kind: Optional[TetrominoType] = None,
    ) -> Optional[Placement]:
        best: Optional[Placement] = None
        best_score = -math.inf
        evaluations = 0
        for rotation, x, y in self.candidates(kind, grid):
            if evaluations >= self.max_evaluations:
                break
            score, lines = self.evaluate(kind, rotation, x, y, grid, next_kind)
            evaluations += 1
            # Strictly greater: ties keep the first candidate found
            if score > best_score:
                best_score = score
                best = Placement(rotation, x, y, score, lines)
        logger.debug("Evaluated %d placements for %s, best=%s", evaluations, kind.name, best)
        return best

    def should_hold(self, snapshot: GameSnapshot) -> bool:
        if not snapshot.can_hold or snapshot.piece is None:
            return False
        if snapshot.held is not None:
            alternative: Optional[TetrominoType] = snapshot.held
        elif snapshot.queue:
            alternative = snapshot.queue[0]
        else:
            return False
        current = piece_utility(snapshot.piece.kind, snapshot.grid)
        return piece_utility(alternative, snapshot.grid) > current + HOLD_MARGIN

    def plan(self, snapshot: GameSnapshot) -> Optional[Placement]:
        if snapshot.piece is None:
            return None
        next_kind = snapshot.queue[0] if snapshot.queue else None
        return self.find_best_placement(snapshot.piece.kind, snapshot.grid, next_kind)
