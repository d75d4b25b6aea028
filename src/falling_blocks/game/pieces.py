from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Dict, List, Optional, Tuple

import numpy as np

from .grid import EMPTY, GameGrid


class TetrominoType(IntEnum):
    I = 1
    O = 2
    T = 3
    S = 4
    Z = 5
    J = 6
    L = 7


Shape = np.ndarray
Offset = Tuple[int, int]


def _table(*states: List[List[int]]) -> Tuple[Shape, ...]:
    shapes = []
    for state in states:
        arr = np.array(state, dtype=np.int8)
        arr.setflags(write=False)
        shapes.append(arr)
    return tuple(shapes)


_O = [[1, 1], [1, 1]]

SHAPES: Dict[TetrominoType, Tuple[Shape, ...]] = {
    TetrominoType.I: _table(
        [[0, 0, 0, 0], [1, 1, 1, 1], [0, 0, 0, 0], [0, 0, 0, 0]],
        [[0, 0, 1, 0], [0, 0, 1, 0], [0, 0, 1, 0], [0, 0, 1, 0]],
        [[0, 0, 0, 0], [0, 0, 0, 0], [1, 1, 1, 1], [0, 0, 0, 0]],
        [[0, 1, 0, 0], [0, 1, 0, 0], [0, 1, 0, 0], [0, 1, 0, 0]],
    ),
    TetrominoType.O: _table(_O, _O, _O, _O),
    TetrominoType.T: _table(
        [[0, 1, 0], [1, 1, 1], [0, 0, 0]],
        [[0, 1, 0], [0, 1, 1], [0, 1, 0]],
        [[0, 0, 0], [1, 1, 1], [0, 1, 0]],
        [[0, 1, 0], [1, 1, 0], [0, 1, 0]],
    ),
    TetrominoType.S: _table(
        [[0, 1, 1], [1, 1, 0], [0, 0, 0]],
        [[0, 1, 0], [0, 1, 1], [0, 0, 1]],
        [[0, 0, 0], [0, 1, 1], [1, 1, 0]],
        [[1, 0, 0], [1, 1, 0], [0, 1, 0]],
    ),
    TetrominoType.Z: _table(
        [[1, 1, 0], [0, 1, 1], [0, 0, 0]],
        [[0, 0, 1], [0, 1, 1], [0, 1, 0]],
        [[0, 0, 0], [1, 1, 0], [0, 1, 1]],
        [[0, 1, 0], [1, 1, 0], [1, 0, 0]],
    ),
    TetrominoType.J: _table(
        [[1, 0, 0], [1, 1, 1], [0, 0, 0]],
        [[0, 1, 1], [0, 1, 0], [0, 1, 0]],
        [[0, 0, 0], [1, 1, 1], [0, 0, 1]],
        [[0, 1, 0], [0, 1, 0], [1, 1, 0]],
    ),
    TetrominoType.L: _table(
        [[0, 0, 1], [1, 1, 1], [0, 0, 0]],
        [[0, 1, 0], [0, 1, 0], [0, 1, 1]],
        [[0, 0, 0], [1, 1, 1], [1, 0, 0]],
        [[1, 1, 0], [0, 1, 0], [0, 1, 0]],
    ),
}

# Tried in order after a raw rotation; the first one that fits wins.
I_KICKS: Tuple[Offset, ...] = ((0, 0), (-2, 0), (1, 0), (-2, -1), (1, 2))
DEFAULT_KICKS: Tuple[Offset, ...] = ((0, 0), (-1, 0), (1, 0), (0, -1), (-1, -1), (1, -1))

# Bounding-box corners of the 3x3 T box, none of which is ever part of the shape.
T_CORNERS: Tuple[Offset, ...] = ((0, 0), (2, 0), (0, 2), (2, 2))


def shape_for(kind: TetrominoType, rotation: int) -> Shape:
    states = SHAPES[kind]
    return states[rotation % len(states)]


def rotation_count(kind: TetrominoType) -> int:
    return len(SHAPES[kind])


def wall_kick_offsets(kind: TetrominoType, from_rotation: int, to_rotation: int) -> Tuple[Offset, ...]:
    """Kick candidates for a turn between two rotation states.

    The tables do not depend on the direction of the turn, only on the kind.
    """
    if kind == TetrominoType.I:
        return I_KICKS
    return DEFAULT_KICKS


@dataclass(frozen=True)
class Piece:
    kind: TetrominoType
    rotation: int = 0
    x: int = 0
    y: int = 0

    @classmethod
    def spawn(cls, kind: TetrominoType, board_width: int) -> "Piece":
        width = shape_for(kind, 0).shape[1]
        return cls(kind=kind, rotation=0, x=(board_width - width) // 2, y=0)

    @property
    def tag(self) -> int:
        return int(self.kind)

    def shape(self) -> Shape:
        return shape_for(self.kind, self.rotation)

    def rotated(self, direction: int = 1) -> "Piece":
        states = rotation_count(self.kind)
        return replace(self, rotation=(self.rotation + direction) % states)

    def moved(self, dx: int, dy: int) -> "Piece":
        return replace(self, x=self.x + dx, y=self.y + dy)

    def at(self, x: int, y: int) -> "Piece":
        return replace(self, x=x, y=y)

    def cells(self) -> List[Tuple[int, int]]:
        s = self.shape()
        h, w = s.shape
        cells: List[Tuple[int, int]] = []
        for dy in range(h):
            for dx in range(w):
                if s[dy, dx]:
                    cells.append((self.x + dx, self.y + dy))
        return cells


def ghost_landing(grid: GameGrid, shape: Shape, x: int, y: int) -> int:
    """Lowest row the shape reaches by falling straight down from ``y``."""
    landing = y
    while grid.is_valid_position(shape, x, landing + 1):
        landing += 1
    return landing


def try_rotate(grid: GameGrid, piece: Piece, direction: int = 1) -> Optional[Piece]:
    """Rotate with wall kicks; None when no kick offset fits."""
    turned = piece.rotated(direction)
    shape = turned.shape()
    for dx, dy in wall_kick_offsets(piece.kind, piece.rotation, turned.rotation):
        if grid.is_valid_position(shape, turned.x + dx, turned.y + dy):
            return turned.moved(dx, dy)
    return None


def is_t_spin(grid: GameGrid, piece: Piece) -> bool:
    if piece.kind != TetrominoType.T:
        return False
    blocked = 0
    for dx, dy in T_CORNERS:
        x, y = piece.x + dx, piece.y + dy
        if x < 0 or x >= grid.width or y >= grid.height or (y >= 0 and grid.grid[y, x] != EMPTY):
            blocked += 1
    return blocked >= 3
