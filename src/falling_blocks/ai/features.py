from __future__ import annotations

from typing import Dict

import numpy as np

from falling_blocks.game.grid import column_heights


FEATURE_NAMES = (
    "aggregate_height",
    "holes",
    "bumpiness",
    "wells",
    "blockades",
    "height_range",
    "center_height",
    "edge_touch",
    "floor_touch",
    "perfect_clear",
)


def count_holes(grid: np.ndarray) -> int:
    occ = grid != 0
    covered = np.logical_or.accumulate(occ, axis=0)
    return int(np.sum(covered & ~occ))


def count_wells(heights: np.ndarray, board_height: int) -> int:
    padded = np.concatenate(([board_height], heights, [board_height]))
    left, right = padded[:-2], padded[2:]
    is_well = (heights < left) & (heights < right)
    return int(np.sum(np.where(is_well, np.minimum(left, right) - heights, 0)))


def count_blockades(grid: np.ndarray) -> int:
    """Filled cells sitting above a hole, scanning each column bottom-up."""
    rows, cols = grid.shape
    blockades = 0
    for x in range(cols):
        hole_below = False
        for y in range(rows - 1, -1, -1):
            if not grid[y, x] and y < rows - 1 and grid[y + 1, x]:
                hole_below = True
            elif grid[y, x] and hole_below:
                blockades += 1
    return blockades


def board_features(grid: np.ndarray) -> Dict[str, float]:
    rows, cols = grid.shape
    heights = column_heights(grid)
    center = cols // 2
    return {
        "aggregate_height": float(np.sum(heights)),
        "holes": float(count_holes(grid)),
        "bumpiness": float(np.sum(np.abs(np.diff(heights)))),
        "wells": float(count_wells(heights, rows)),
        "blockades": float(count_blockades(grid)),
        "height_range": float(np.max(heights) - np.min(heights)),
        "center_height": float(heights[center - 1] + heights[center]) / 2.0,
        "edge_touch": float(np.count_nonzero(grid[:, 0]) + np.count_nonzero(grid[:, cols - 1])),
        "floor_touch": float(np.count_nonzero(grid[rows - 1])),
        "perfect_clear": 0.0 if np.any(grid != 0) else 1.0,
    }


def has_t_spin_pocket(grid: np.ndarray) -> bool:
    """Look for an overhang a T piece could be spun into.

    The pattern is an empty cell flanked left and right, a filled cell below
    it, and open cells diagonally below on both sides.
    """
    rows, cols = grid.shape
    occ = grid != 0
    for y in range(rows - 2):
        for x in range(1, cols - 1):
            if (
                not occ[y, x]
                and occ[y, x - 1]
                and occ[y, x + 1]
                and occ[y + 1, x]
                and not occ[y + 1, x - 1]
                and not occ[y + 1, x + 1]
            ):
                return True
    return False
