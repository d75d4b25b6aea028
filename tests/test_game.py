from __future__ import annotations

from collections import deque

import numpy as np
import pytest

from falling_blocks.game import Action, FallingBlockGame, GameConfig, GamePhase, Piece, TetrominoType
from falling_blocks.game.events import (
    Combo,
    GameOver,
    GameRestarted,
    LevelUp,
    LinesCleared,
    MuteToggled,
    PhaseChanged,
    PieceLocked,
    PieceRotated,
    TSpin,
)

from conftest import fill_rows, lock_by_gravity


def _end_game(game: FallingBlockGame) -> None:
    fill_rows(game, range(2, 20), skip_cols=(9,))
    lock_by_gravity(game)


def test_initial_state(game):
    assert game.phase == GamePhase.PLAYING
    assert game.grid.is_empty()
    assert game.current_piece is not None
    assert game.current_piece.y == 0
    assert len(game.queue) == 3
    assert game.held is None and game.can_hold
    assert (game.score, game.lines, game.level) == (0, 0, 1)


def test_invalid_queue_size():
    with pytest.raises(ValueError):
        FallingBlockGame(GameConfig(queue_size=0))


def test_same_seed_same_pieces(clock):
    a = FallingBlockGame(GameConfig(random_seed=3), clock=clock)
    b = FallingBlockGame(GameConfig(random_seed=3), clock=clock)
    assert a.current_piece == b.current_piece
    assert list(a.queue) == list(b.queue)


def test_shift_into_wall_is_rejected(game):
    game.current_piece = Piece(TetrominoType.O, 0, 0, 5)
    assert not game.step(Action.SHIFT_LEFT)
    assert game.current_piece == Piece(TetrominoType.O, 0, 0, 5)
    assert game.step(Action.SHIFT_RIGHT)
    assert game.current_piece.x == 1


def test_soft_drop_scores_one_point(game):
    y = game.current_piece.y
    assert game.step(Action.SOFT_DROP)
    assert game.current_piece.y == y + 1
    assert game.score == 1


def test_hard_drop_scores_two_per_row_and_locks(game, events):
    game.current_piece = Piece.spawn(TetrominoType.O, 10)

    assert game.step(Action.HARD_DROP)

    assert game.score == 36
    assert game.pieces_locked == 1
    assert list(game.grid.grid[18, 4:6]) == [2, 2]
    assert list(game.grid.grid[19, 4:6]) == [2, 2]
    assert np.count_nonzero(game.grid.grid) == 4
    locked = [e for e in events if isinstance(e, PieceLocked)]
    assert locked == [PieceLocked(2, ((4, 18), (5, 18), (4, 19), (5, 19)))]


def test_gravity_moves_after_interval(game):
    y = game.current_piece.y
    game.update(game.drop_interval)
    assert game.current_piece.y == y
    game.update(1)
    assert game.current_piece.y == y + 1


def test_tetris_scores_800(game):
    fill_rows(game, range(16, 20), skip_cols=(0,))
    game.current_piece = Piece(TetrominoType.I, 1, -2, 16)

    lock_by_gravity(game)

    assert game.lines == 4
    assert game.score == 800
    assert game.grid.is_empty()


def test_combo_within_window(game, clock, events):
    def clear_one() -> int:
        before = game.score
        game.grid.reset()
        fill_rows(game, [19], skip_cols=(0, 1))
        game.current_piece = Piece(TetrominoType.O, 0, 0, 18)
        lock_by_gravity(game)
        return game.score - before

    assert clear_one() == 100
    clock.advance(1000)
    assert clear_one() == 150
    assert game.combo == 1
    clock.advance(3000)
    assert clear_one() == 100
    assert game.combo == 0
    assert [e for e in events if isinstance(e, Combo)] == [Combo(1)]


def test_lock_without_clear_resets_combo(game, clock):
    game.combo = 2
    game.current_piece = Piece(TetrominoType.O, 0, 0, 18)
    lock_by_gravity(game)
    assert game.combo == 0


def test_hold_once_per_piece(game):
    first = game.current_piece.kind
    upcoming = game.queue[0]

    assert game.step(Action.HOLD)
    assert game.held == first
    assert game.current_piece.kind == upcoming
    assert game.current_piece.y == 0
    assert not game.can_hold

    current = game.current_piece
    assert not game.step(Action.HOLD)
    assert game.held == first
    assert game.current_piece is current

    game.step(Action.HARD_DROP)
    assert game.can_hold
    current = game.current_piece.kind
    assert game.step(Action.HOLD)
    assert game.held == current
    assert game.current_piece.kind == first


def test_t_spin_double(game, events):
    fill_rows(game, [19], skip_cols=(4,))
    fill_rows(game, [18], skip_cols=(3, 4, 5))
    game.grid.grid[17, 3] = 1
    game.current_piece = Piece(TetrominoType.T, 1, 3, 17)

    assert game.step(Action.ROTATE_CW)
    assert game.current_piece == Piece(TetrominoType.T, 2, 3, 17)
    assert any(isinstance(e, TSpin) for e in events)
    assert [e for e in events if isinstance(e, PieceRotated)] == [PieceRotated(1, (0, 0))]

    lock_by_gravity(game)

    assert game.score == 600
    cleared = [e for e in events if isinstance(e, LinesCleared)]
    assert len(cleared) == 1
    assert cleared[0].count == 2
    assert cleared[0].rows == (18, 19)
    assert game.grid.grid[19, 3] == 1


def test_level_up_changes_speed(game, events):
    game.lines = 9
    fill_rows(game, [19], skip_cols=(0, 1))
    game.current_piece = Piece(TetrominoType.O, 0, 0, 18)

    lock_by_gravity(game)

    assert game.score == 100
    assert game.level == 2
    assert game.drop_interval == 900
    assert LevelUp(2) in events


def test_level_capped_by_speed_table(game):
    game.level = 15
    game.drop_interval = 40
    game.lines = 149
    fill_rows(game, [19], skip_cols=(0, 1))
    game.current_piece = Piece(TetrominoType.O, 0, 0, 18)

    lock_by_gravity(game)

    assert game.lines == 150
    assert game.level == 15
    assert game.score == 1500


def test_game_over_when_stack_reaches_buffer(game, clock, events):
    clock.advance(5000)
    _end_game(game)

    assert game.game_over
    over = [e for e in events if isinstance(e, GameOver)]
    assert over == [GameOver(0, 0, 1, 5)]
    assert PhaseChanged("game_over") in events

    assert not game.step(Action.SHIFT_LEFT)
    assert not game.step(Action.PAUSE)
    game.update(5000)
    assert game.game_over

    assert game.step(Action.RESTART)
    assert game.phase == GamePhase.PLAYING
    assert game.grid.is_empty()


def test_lock_with_negative_origin_ends_game(game):
    fill_rows(game, range(1, 20), skip_cols=(9,))
    game.current_piece = Piece(TetrominoType.T, 0, 3, -1)

    lock_by_gravity(game)

    assert game.game_over
    assert not np.any(game.grid.grid[0])


def test_pause_freezes_gravity_and_input(game, events):
    assert game.step(Action.PAUSE)
    assert game.phase == GamePhase.PAUSED
    y = game.current_piece.y
    game.update(10_000)
    assert game.current_piece.y == y
    assert not game.step(Action.SHIFT_LEFT)

    assert game.step(Action.PAUSE)
    assert game.phase == GamePhase.PLAYING
    assert [e for e in events if isinstance(e, PhaseChanged)] == [PhaseChanged("paused"), PhaseChanged("playing")]


def test_mute_toggles_in_any_phase(game, events):
    assert game.step(Action.MUTE)
    assert game.muted
    game.step(Action.PAUSE)
    assert game.step(Action.MUTE)
    assert not game.muted
    assert [e for e in events if isinstance(e, MuteToggled)] == [MuteToggled(True), MuteToggled(False)]


def test_restart_resets_and_notifies(game, events):
    game.step(Action.SOFT_DROP)
    game.step(Action.HOLD)

    assert game.step(Action.RESTART)

    assert game.score == 0
    assert game.held is None
    assert any(isinstance(e, GameRestarted) for e in events)
    assert events[-1] == PhaseChanged("playing")


def test_snapshot_is_detached(game):
    snap = game.snapshot()
    snap.grid.grid[19, 0] = 1
    assert game.grid.grid[19, 0] == 0
    assert snap.queue == tuple(game.queue)


def test_get_state_marks_falling_piece(game):
    game.current_piece = Piece(TetrominoType.O, 0, 4, 10)
    state = game.get_state()
    assert state[10, 4] == -2
    assert np.count_nonzero(state) == 4


def test_stats_rates(game, clock):
    game.current_piece = Piece.spawn(TetrominoType.O, 10)
    game.step(Action.HARD_DROP)
    clock.advance(30_000)
    stats = game.stats()
    assert stats["pieces"] == 1
    assert stats["elapsed_seconds"] == 30
    assert stats["pieces_per_minute"] == pytest.approx(2.0)


def test_held_swap_keeps_queue(game):
    game.held = TetrominoType.I
    game.current_piece = Piece.spawn(TetrominoType.O, 10)
    game.queue = deque([TetrominoType.T, TetrominoType.S, TetrominoType.Z])

    assert game.step(Action.HOLD)

    assert game.current_piece.kind == TetrominoType.I
    assert game.held == TetrominoType.O
    assert list(game.queue) == [TetrominoType.T, TetrominoType.S, TetrominoType.Z]


def test_pause_resets_gravity_timer(game):
    game.update(game.drop_interval - 10)
    game.step(Action.PAUSE)
    game.step(Action.PAUSE)
    y = game.current_piece.y
    game.update(20)
    assert game.current_piece.y == y
