from __future__ import annotations

import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

import pygame
import pytest

from falling_blocks.game import TetrominoType
from falling_blocks.visualization.human_play import build_parser
from falling_blocks.visualization.renderer import Renderer


@pytest.fixture
def screen(game):
    pygame.init()
    renderer = Renderer(cell_size=10)
    surface = pygame.display.set_mode(renderer.window_size(game))
    yield surface
    pygame.quit()


def test_window_size_hides_buffer_rows(game):
    renderer = Renderer(cell_size=10, margin=5, panel_cells=6)
    assert renderer.window_size(game) == (5 * 3 + 16 * 10, 5 * 2 + 18 * 10)


def test_draw_shows_board_and_panels(game, screen):
    game.held = TetrominoType.I
    game.combo = 2
    renderer = Renderer(cell_size=10)
    renderer.draw(screen, game, ["AI: off"])
    # bottom-left cell is an empty board cell
    assert screen.get_at((renderer.margin + 1, screen.get_height() - renderer.margin - 2))[:3] == (20, 20, 26)


def test_draw_without_ghost(game, screen):
    game.ghost_enabled = False
    Renderer(cell_size=10).draw(screen, game)


def test_play_parser():
    args = build_parser().parse_args(["--difficulty", "hard", "--no-store", "--seed", "3"])
    assert args.difficulty == "hard"
    assert args.no_store
    assert args.seed == 3
