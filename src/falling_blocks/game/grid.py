from __future__ import annotations

from typing import List

import numpy as np


EMPTY = 0
BUFFER_ROWS = 2


def column_heights(cells: np.ndarray) -> np.ndarray:
    # Distance from the floor to the topmost filled cell, 0 for empty columns
    rows = cells.shape[0]
    occ = cells != EMPTY
    first_occ = np.where(occ.any(axis=0), np.argmax(occ, axis=0), rows)
    return rows - first_occ


class GameGrid:
    """Playfield matrix for falling pieces.

    The grid uses 0 for empty cells and positive integers for filled cells.
    Integer values are the tetromino tags used for optional coloring; the
    engine never interprets them. Row 0 is the top. The first ``BUFFER_ROWS``
    rows are the invisible spawn area.
    """

    def __init__(self, width: int = 10, height: int = 20) -> None:
        if width <= 0 or height <= BUFFER_ROWS:
            raise ValueError(f"Invalid grid size {width}x{height}")
        self.width = int(width)
        self.height = int(height)
        self.grid = np.zeros((self.height, self.width), dtype=np.int8)

    def reset(self) -> None:
        self.grid.fill(EMPTY)

    def is_valid_position(self, shape: np.ndarray, x: int, y: int) -> bool:
        """True if every filled cell of ``shape`` at origin (x, y) fits.

        Cells above the top edge (negative rows) never collide; only the
        side walls and the floor bound them.
        """
        h, w = shape.shape
        for dy in range(h):
            for dx in range(w):
                if not shape[dy, dx]:
                    continue
                bx, by = x + dx, y + dy
                if bx < 0 or bx >= self.width or by >= self.height:
                    return False
                if by >= 0 and self.grid[by, bx] != EMPTY:
                    return False
        return True

    def lock(self, shape: np.ndarray, x: int, y: int, tag: int) -> None:
        h, w = shape.shape
        for dy in range(h):
            for dx in range(w):
                if shape[dy, dx] and y + dy >= 0:
                    self.grid[y + dy, x + dx] = tag

    def full_rows(self) -> List[int]:
        return [int(r) for r in np.where(np.all(self.grid != EMPTY, axis=1))[0]]

    def clear_full_lines(self) -> int:
        full_rows = self.full_rows()
        if not full_rows:
            return 0
        num = len(full_rows)
        # Remove every full row of the snapshot at once and pad at the top
        kept = np.delete(self.grid, full_rows, axis=0)
        self.grid = np.vstack((np.zeros((num, self.width), dtype=np.int8), kept))
        return num

    def is_game_over(self) -> bool:
        return bool(np.any(self.grid[:BUFFER_ROWS] != EMPTY))

    def is_empty(self) -> bool:
        return not bool(np.any(self.grid != EMPTY))

    def column_heights(self) -> np.ndarray:
        return column_heights(self.grid)

    def max_height(self) -> int:
        non_empty_rows = np.where(np.any(self.grid != EMPTY, axis=1))[0]
        if non_empty_rows.size == 0:
            return 0
        return self.height - int(non_empty_rows[0])

    def clone_state(self) -> np.ndarray:
        return self.grid.copy()

    def copy(self) -> "GameGrid":
        new_grid = GameGrid(self.width, self.height)
        new_grid.grid = self.grid.copy()
        return new_grid
