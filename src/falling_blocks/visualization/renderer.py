from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np
import pygame

from falling_blocks.game import FallingBlockGame, TetrominoType
from falling_blocks.game.grid import BUFFER_ROWS
from falling_blocks.game.pieces import shape_for


def _color_for_value(v: int) -> Tuple[int, int, int]:
    palette = {
        0: (20, 20, 26),
        1: (0, 240, 240),  # I
        2: (240, 240, 0),  # O
        3: (160, 0, 240),  # T
        4: (0, 240, 0),    # S
        5: (240, 0, 0),    # Z
        6: (0, 0, 240),    # J
        7: (240, 160, 0),  # L
    }
    return palette.get(abs(v), (200, 200, 200))


class Renderer:
    def __init__(self, cell_size: int = 30, margin: int = 20, panel_cells: int = 6) -> None:
        self.cell_size = cell_size
        self.margin = margin
        self.panel_cells = panel_cells
        self._font: Optional[pygame.font.Font] = None

    def window_size(self, game: FallingBlockGame) -> Tuple[int, int]:
        visible = game.grid.height - BUFFER_ROWS
        width = self.margin * 3 + (game.grid.width + self.panel_cells) * self.cell_size
        height = self.margin * 2 + visible * self.cell_size
        return width, height

    def _font_obj(self) -> pygame.font.Font:
        if self._font is None:
            self._font = pygame.font.SysFont(None, 24)
        return self._font

    def _cell_rect(self, x: int, y: int, ox: int = 0, oy: int = 0, size: Optional[int] = None) -> pygame.Rect:
        size = size or self.cell_size
        return pygame.Rect(ox + x * size, oy + y * size, size - 1, size - 1)

    def _grid_surface(self, game: FallingBlockGame, state: np.ndarray) -> pygame.Surface:
        h, w = state.shape
        visible = h - BUFFER_ROWS
        surf = pygame.Surface((w * self.cell_size, visible * self.cell_size))
        surf.fill((30, 30, 36))

        for y in range(BUFFER_ROWS, h):
            for x in range(w):
                v = int(state[y, x])
                pygame.draw.rect(surf, _color_for_value(v), self._cell_rect(x, y - BUFFER_ROWS))

        piece = game.current_piece
        ghost_y = game.ghost_y() if game.ghost_enabled else None
        if ghost_y is not None and piece is not None:
            for x, y in piece.at(piece.x, ghost_y).cells():
                # Outline only where neither the board nor the live piece is drawn
                if y >= BUFFER_ROWS and state[y, x] == 0:
                    pygame.draw.rect(surf, (90, 90, 110), self._cell_rect(x, y - BUFFER_ROWS), 1)
        return surf

    def _draw_mini(self, screen: pygame.Surface, kind: Optional[TetrominoType], ox: int, oy: int, dim: bool = False) -> None:
        if kind is None:
            return
        size = self.cell_size // 2
        color = _color_for_value(int(kind))
        if dim:
            color = tuple(c // 3 for c in color)
        shape = shape_for(kind, 0)
        for y, row in enumerate(shape):
            for x, v in enumerate(row):
                if v:
                    pygame.draw.rect(screen, color, self._cell_rect(x, y, ox, oy, size))

    def _draw_text(self, screen: pygame.Surface, lines: Sequence[str], ox: int, oy: int) -> None:
        font = self._font_obj()
        for i, line in enumerate(lines):
            text = font.render(line, True, (230, 230, 230))
            screen.blit(text, (ox, oy + i * 24))

    def draw(self, screen: pygame.Surface, game: FallingBlockGame, status: Sequence[str] = ()) -> None:
        screen.fill((10, 10, 14))
        screen.blit(self._grid_surface(game, game.get_state()), (self.margin, self.margin))

        panel_x = self.margin * 2 + game.grid.width * self.cell_size
        self._draw_text(screen, ["HOLD"], panel_x, self.margin)
        self._draw_mini(screen, game.held, panel_x, self.margin + 28, dim=not game.can_hold)
        self._draw_text(screen, ["NEXT"], panel_x, self.margin + 100)
        for i, kind in enumerate(game.queue):
            self._draw_mini(screen, kind, panel_x, self.margin + 128 + i * 60)

        stats = [
            f"Score {game.score}",
            f"Lines {game.lines}",
            f"Level {game.level}",
        ]
        if game.combo > 0:
            stats.append(f"{game.combo}x combo")
        self._draw_text(screen, stats + list(status), panel_x, self.margin + 320)
        pygame.display.flip()
