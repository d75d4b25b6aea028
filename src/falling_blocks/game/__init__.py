"""Game module for Falling Blocks.

Exports the core game engine and supporting classes:
- GameGrid: Grid representation, collision and line clearing
- Piece: Tetromino piece with rotation, wall kicks and T-spin test
- TetrominoType: Enum of available piece types
- ScoringRules: Scoring, level speed and combo configuration
- FallingBlockGame: Game state machine and action surface
"""

from .grid import GameGrid
from .pieces import Piece, TetrominoType, ghost_landing, is_t_spin, try_rotate, wall_kick_offsets
from .rules import ScoringRules
from .core import Action, FallingBlockGame, GameConfig, GamePhase, GameSnapshot, GAMEPLAY_ACTIONS

__all__ = [
    "GameGrid",
    "Piece",
    "TetrominoType",
    "ghost_landing",
    "is_t_spin",
    "try_rotate",
    "wall_kick_offsets",
    "ScoringRules",
    "FallingBlockGame",
    "GameConfig",
    "GamePhase",
    "GameSnapshot",
    "Action",
    "GAMEPLAY_ACTIONS",
]
