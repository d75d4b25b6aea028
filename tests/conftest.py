from __future__ import annotations

from typing import List

import pytest

from falling_blocks.game import FallingBlockGame, GameConfig
from falling_blocks.game.events import GameEvent


class FakeClock:
    def __init__(self, start_ms: float = 0.0) -> None:
        self.now_ms = start_ms

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, dt_ms: float) -> None:
        self.now_ms += dt_ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(10_000.0)


@pytest.fixture
def game(clock: FakeClock) -> FallingBlockGame:
    return FallingBlockGame(GameConfig(random_seed=7), clock=clock)


@pytest.fixture
def events(game: FallingBlockGame) -> List[GameEvent]:
    received: List[GameEvent] = []
    game.add_listener(received.append)
    return received


def fill_rows(game: FallingBlockGame, rows, skip_cols=(), tag: int = 1) -> None:
    for y in rows:
        for x in range(game.grid.width):
            if x not in skip_cols:
                game.grid.grid[y, x] = tag


def lock_by_gravity(game: FallingBlockGame) -> None:
    """Advance gravity once; a resting piece locks."""
    game.update(game.drop_interval + 1)
