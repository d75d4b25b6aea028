from __future__ import annotations

import numpy as np
import pytest

from falling_blocks.game import GameGrid, Piece, TetrominoType, ghost_landing, is_t_spin, try_rotate, wall_kick_offsets
from falling_blocks.game.pieces import SHAPES


@pytest.mark.parametrize("kind", list(TetrominoType))
def test_four_states_of_four_cells(kind):
    assert len(SHAPES[kind]) == 4
    for shape in SHAPES[kind]:
        assert int(np.count_nonzero(shape)) == 4


def test_shape_tables_are_read_only():
    with pytest.raises(ValueError):
        SHAPES[TetrominoType.T][0][0, 0] = 1


def test_rotation_wraps_both_ways():
    piece = Piece(TetrominoType.T, rotation=3)
    assert piece.rotated(1).rotation == 0
    assert Piece(TetrominoType.T).rotated(-1).rotation == 3
    # rotating returns a new piece
    assert piece.rotation == 3


def test_spawn_is_centered_on_top_row():
    assert Piece.spawn(TetrominoType.I, 10) == Piece(TetrominoType.I, 0, 3, 0)
    assert Piece.spawn(TetrominoType.O, 10) == Piece(TetrominoType.O, 0, 4, 0)
    assert Piece.spawn(TetrominoType.T, 10) == Piece(TetrominoType.T, 0, 3, 0)


def test_wall_kick_tables():
    assert wall_kick_offsets(TetrominoType.I, 0, 1) == ((0, 0), (-2, 0), (1, 0), (-2, -1), (1, 2))
    for kind in (TetrominoType.O, TetrominoType.T, TetrominoType.S, TetrominoType.Z, TetrominoType.J, TetrominoType.L):
        assert wall_kick_offsets(kind, 2, 1) == ((0, 0), (-1, 0), (1, 0), (0, -1), (-1, -1), (1, -1))


def test_ghost_landing_on_empty_board():
    grid = GameGrid()
    o = Piece.spawn(TetrominoType.O, 10)
    assert ghost_landing(grid, o.shape(), o.x, o.y) == 18
    i = Piece.spawn(TetrominoType.I, 10)
    assert ghost_landing(grid, i.shape(), i.x, i.y) == 18


def test_ghost_landing_stops_on_stack():
    grid = GameGrid()
    grid.grid[15, 4] = 1
    o = Piece.spawn(TetrominoType.O, 10)
    assert ghost_landing(grid, o.shape(), o.x, o.y) == 13


def test_rotation_kicks_off_the_wall():
    grid = GameGrid()
    piece = Piece(TetrominoType.T, rotation=1, x=-1, y=5)
    assert grid.is_valid_position(piece.shape(), piece.x, piece.y)

    rotated = try_rotate(grid, piece, 1)

    assert rotated == Piece(TetrominoType.T, rotation=2, x=0, y=5)


def test_rotation_fails_when_boxed_in():
    grid = GameGrid()
    grid.grid[:, :] = 1
    piece = Piece(TetrominoType.T, rotation=0, x=4, y=10)
    for x, y in piece.cells():
        grid.grid[y, x] = 0

    assert try_rotate(grid, piece, 1) is None
    assert try_rotate(grid, piece, -1) is None


def test_t_spin_needs_three_blocked_corners():
    grid = GameGrid()
    piece = Piece(TetrominoType.T, rotation=2, x=0, y=17)
    grid.grid[17, 0] = 1
    grid.grid[19, 0] = 1
    assert not is_t_spin(grid, piece)
    grid.grid[19, 2] = 1
    assert is_t_spin(grid, piece)


def test_t_spin_counts_walls_as_blocked():
    grid = GameGrid()
    piece = Piece(TetrominoType.T, rotation=1, x=-1, y=5)
    assert not is_t_spin(grid, piece)
    grid.grid[5, 1] = 1
    assert is_t_spin(grid, piece)


def test_t_spin_is_t_only():
    grid = GameGrid()
    grid.grid[:, :] = 1
    assert not is_t_spin(grid, Piece(TetrominoType.S, x=3, y=3))
