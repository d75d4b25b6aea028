from __future__ import annotations

import logging
import random
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Callable, Deque, Dict, Optional, Tuple

import numpy as np

from falling_blocks.storage import GameResult, ScoreStore

from .events import (
    Combo,
    EventDispatcher,
    GameOver,
    GameRestarted,
    LevelUp,
    LinesCleared,
    Listener,
    MuteToggled,
    PhaseChanged,
    PieceLocked,
    PieceMoved,
    PieceRotated,
    TSpin,
)
from .grid import GameGrid
from .pieces import Piece, TetrominoType, ghost_landing, is_t_spin, try_rotate
from .rules import ScoringRules


logger = logging.getLogger(__name__)


class Action(IntEnum):
    SHIFT_LEFT = 0
    SHIFT_RIGHT = 1
    ROTATE_CW = 2
    ROTATE_CCW = 3
    SOFT_DROP = 4
    HARD_DROP = 5
    HOLD = 6
    PAUSE = 7
    RESTART = 8
    MUTE = 9


GAMEPLAY_ACTIONS: Tuple[Action, ...] = (
    Action.SHIFT_LEFT,
    Action.SHIFT_RIGHT,
    Action.ROTATE_CW,
    Action.ROTATE_CCW,
    Action.SOFT_DROP,
    Action.HARD_DROP,
    Action.HOLD,
)


class GamePhase(str, Enum):
    PLAYING = "playing"
    PAUSED = "paused"
    GAME_OVER = "game_over"


@dataclass
class GameConfig:
    width: int = 10
    height: int = 20
    queue_size: int = 3
    random_seed: Optional[int] = None


@dataclass(frozen=True)
class GameSnapshot:
    """Read-only view of the game handed to the AI."""

    grid: GameGrid
    piece: Optional[Piece]
    queue: Tuple[TetrominoType, ...]
    held: Optional[TetrominoType]
    can_hold: bool
    phase: GamePhase
    score: int
    lines: int
    level: int
    combo: int


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class FallingBlockGame:
    """Falling-block game state machine.

    Every change to the grid and the active piece goes through ``step`` (the
    action surface shared by keyboard input, the AI and the gym environment)
    or through gravity in ``update``.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        rules: Optional[ScoringRules] = None,
        store: Optional[ScoreStore] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.config = config or GameConfig()
        if self.config.queue_size < 1:
            raise ValueError("queue_size must be >= 1")
        self.rules = rules or ScoringRules()
        self.store = store
        self.clock = clock or _monotonic_ms
        self.rng = random.Random(self.config.random_seed)
        self.grid = GameGrid(self.config.width, self.config.height)
        self.events = EventDispatcher()
        self.muted = False
        self.ghost_enabled = True
        if self.store is not None:
            settings = self.store.load_settings()
            self.muted = not (settings.sound_enabled or settings.music_enabled)
            self.ghost_enabled = settings.ghost_enabled
        self.current_piece: Optional[Piece] = None
        self.queue: Deque[TetrominoType] = deque()
        self.held: Optional[TetrominoType] = None
        self.last_rank: Optional[int] = None
        self.reset()

    def reset(self, seed: Optional[int] = None) -> None:
        if seed is not None:
            self.rng.seed(seed)
        self.grid.reset()
        self.current_piece = self._spawn(self._random_kind())
        self.queue = deque(self._random_kind() for _ in range(self.config.queue_size))
        self.held = None
        self.can_hold = True
        self.score = 0
        self.lines = 0
        self.level = 1
        self.drop_interval = self.rules.drop_interval(self.level)
        self.drop_timer = 0.0
        self.combo = 0
        self.last_clear_ms: Optional[float] = None
        self.start_ms = self.clock()
        self.pieces_locked = 0
        self.actions_issued = 0
        self.phase = GamePhase.PLAYING
        self.last_rank = None
        self._spun = False

    def restart(self) -> None:
        self.reset()
        logger.info("Game restarted")
        self.events.emit(GameRestarted())
        self.events.emit(PhaseChanged(self.phase.value))

    def add_listener(self, listener: Listener) -> None:
        self.events.add_listener(listener)

    def remove_listener(self, listener: Listener) -> None:
        self.events.remove_listener(listener)

    @property
    def game_over(self) -> bool:
        return self.phase == GamePhase.GAME_OVER

    def _random_kind(self) -> TetrominoType:
        return self.rng.choice(list(TetrominoType))

    def _spawn(self, kind: TetrominoType) -> Piece:
        return Piece.spawn(kind, self.grid.width)

    def _fits(self, piece: Piece) -> bool:
        return self.grid.is_valid_position(piece.shape(), piece.x, piece.y)

    def _dequeue(self) -> TetrominoType:
        kind = self.queue.popleft()
        self.queue.append(self._random_kind())
        return kind

    # Action surface

    def step(self, action: Action, by_ai: bool = False) -> bool:
        """Apply one discrete action; True when it changed the game.

        Only actions with ``by_ai`` false count towards the human action rate.
        """
        action = Action(action)
        if action == Action.RESTART:
            self.restart()
            return True
        if action == Action.MUTE:
            self.toggle_mute()
            return True
        if self.phase == GamePhase.GAME_OVER:
            return False
        if action == Action.PAUSE:
            self.toggle_pause()
            return True
        if self.phase != GamePhase.PLAYING or self.current_piece is None:
            return False

        if not by_ai:
            self.actions_issued += 1
        if action == Action.SHIFT_LEFT:
            return self._move(-1, 0)
        if action == Action.SHIFT_RIGHT:
            return self._move(1, 0)
        if action == Action.ROTATE_CW:
            return self._rotate(1)
        if action == Action.ROTATE_CCW:
            return self._rotate(-1)
        if action == Action.SOFT_DROP:
            return self._soft_drop()
        if action == Action.HARD_DROP:
            return self._hard_drop()
        if action == Action.HOLD:
            return self._hold()
        return False

    def _move(self, dx: int, dy: int) -> bool:
        assert self.current_piece is not None
        moved = self.current_piece.moved(dx, dy)
        if not self._fits(moved):
            return False
        self.current_piece = moved
        self._spun = False
        self.events.emit(PieceMoved(dx, dy))
        return True

    def _rotate(self, direction: int) -> bool:
        assert self.current_piece is not None
        before = self.current_piece
        rotated = try_rotate(self.grid, before, direction)
        if rotated is None:
            return False
        self.current_piece = rotated
        self._spun = is_t_spin(self.grid, rotated)
        self.events.emit(PieceRotated(direction, (rotated.x - before.x, rotated.y - before.y)))
        if self._spun:
            self.events.emit(TSpin())
        return True

    def _soft_drop(self) -> bool:
        if not self._move(0, 1):
            return False
        self.score += self.rules.soft_drop_points
        return True

    def _hard_drop(self) -> bool:
        assert self.current_piece is not None
        piece = self.current_piece
        landing = ghost_landing(self.grid, piece.shape(), piece.x, piece.y)
        distance = landing - piece.y
        if distance > 0:
            self.current_piece = piece.at(piece.x, landing)
            self._spun = False
            self.score += distance * self.rules.hard_drop_points
        self._lock_piece()
        return True

    def _hold(self) -> bool:
        if not self.can_hold:
            return False
        assert self.current_piece is not None
        current_kind = self.current_piece.kind
        if self.held is None:
            self.held = current_kind
            next_kind = self._dequeue()
        else:
            next_kind, self.held = self.held, current_kind
        self.current_piece = self._spawn(next_kind)
        self._spun = False
        self.can_hold = False
        if not self._fits(self.current_piece):
            self._game_over()
        return True

    def toggle_pause(self) -> None:
        if self.phase == GamePhase.PLAYING:
            self.phase = GamePhase.PAUSED
        elif self.phase == GamePhase.PAUSED:
            self.phase = GamePhase.PLAYING
        else:
            return
        self.drop_timer = 0.0
        self.events.emit(PhaseChanged(self.phase.value))

    def toggle_mute(self) -> None:
        self.muted = not self.muted
        if self.store is not None:
            self.store.update_settings(
                sound_enabled=not self.muted,
                music_enabled=not self.muted,
                was_muted=self.muted,
            )
        self.events.emit(MuteToggled(self.muted))

    # Gravity and locking

    def update(self, dt_ms: float) -> None:
        if self.phase != GamePhase.PLAYING or self.current_piece is None:
            return
        self.drop_timer += dt_ms
        if self.drop_timer > self.drop_interval:
            if not self._move(0, 1):
                self._lock_piece()
            self.drop_timer = 0.0

    def _lock_piece(self) -> None:
        assert self.current_piece is not None
        piece = self.current_piece
        if piece.y < 0:
            self._game_over()
            return

        self.grid.lock(piece.shape(), piece.x, piece.y, piece.tag)
        if self.grid.is_game_over():
            self._game_over()
            return

        self.can_hold = True
        self.pieces_locked += 1
        self.events.emit(PieceLocked(piece.tag, tuple(c for c in piece.cells() if c[1] >= 0)))

        full_rows = self.grid.full_rows()
        tags = tuple(tuple(int(v) for v in self.grid.grid[r]) for r in full_rows)
        was_t_spin = self._spun and piece.kind == TetrominoType.T
        self._spun = False

        cleared = self.grid.clear_full_lines()
        if cleared > 0:
            self._register_clear(cleared, tuple(full_rows), tags, was_t_spin)
        else:
            self.combo = 0

        self.current_piece = self._spawn(self._dequeue())
        if not self._fits(self.current_piece):
            self._game_over()

    def _register_clear(
        self,
        cleared: int,
        rows: Tuple[int, ...],
        tags: Tuple[Tuple[int, ...], ...],
        was_t_spin: bool,
    ) -> None:
        now = self.clock()
        if self.rules.continues_combo(now, self.last_clear_ms):
            self.combo += 1
        else:
            self.combo = 0
        self.last_clear_ms = now

        self.lines += cleared
        gained = self.rules.points_for_clear(cleared, self.level, was_t_spin, self.combo)
        self.score += gained
        logger.debug(
            "Cleared %d line(s) rows=%s t_spin=%s combo=%d +%d", cleared, rows, was_t_spin, self.combo, gained
        )
        self.events.emit(LinesCleared(cleared, rows, tags))
        if self.combo > 0:
            self.events.emit(Combo(self.combo))

        new_level = self.rules.level_for_lines(self.lines)
        if new_level != self.level and self.rules.has_speed_for(new_level):
            self.level = new_level
            self.drop_interval = self.rules.drop_interval(new_level)
            logger.info("Level up: %d (drop every %d ms)", new_level, self.drop_interval)
            self.events.emit(LevelUp(new_level))

    def _game_over(self) -> None:
        if self.phase == GamePhase.GAME_OVER:
            return
        self.phase = GamePhase.GAME_OVER
        result = GameResult(self.score, self.lines, self.level, self.elapsed_seconds())
        logger.info(
            "Game over: score=%d lines=%d level=%d time=%ds",
            result.score,
            result.lines,
            result.level,
            result.elapsed_seconds,
        )
        if self.store is not None:
            self.last_rank = self.store.record_game(result)
        self.events.emit(GameOver(result.score, result.lines, result.level, result.elapsed_seconds))
        self.events.emit(PhaseChanged(self.phase.value))

    # Read-only views

    def elapsed_seconds(self) -> int:
        return int((self.clock() - self.start_ms) // 1000)

    def ghost_y(self) -> Optional[int]:
        if self.current_piece is None:
            return None
        piece = self.current_piece
        return ghost_landing(self.grid, piece.shape(), piece.x, piece.y)

    def snapshot(self) -> GameSnapshot:
        return GameSnapshot(
            grid=self.grid.copy(),
            piece=self.current_piece,
            queue=tuple(self.queue),
            held=self.held,
            can_hold=self.can_hold,
            phase=self.phase,
            score=self.score,
            lines=self.lines,
            level=self.level,
            combo=self.combo,
        )

    def stats(self) -> Dict[str, float]:
        elapsed = self.elapsed_seconds()
        per_minute = 60.0 / elapsed if elapsed > 0 else 0.0
        return {
            "score": self.score,
            "lines": self.lines,
            "level": self.level,
            "pieces": self.pieces_locked,
            "elapsed_seconds": elapsed,
            "pieces_per_minute": self.pieces_locked * per_minute,
            "actions_per_minute": self.actions_issued * per_minute,
        }

    def get_state(self) -> np.ndarray:
        # Overlay current piece on a copy of the grid for observation
        state = self.grid.clone_state()
        if self.current_piece is not None and not self.game_over:
            for x, y in self.current_piece.cells():
                if 0 <= y < self.grid.height and 0 <= x < self.grid.width:
                    # Use negative to indicate falling piece overlay
                    state[y, x] = -self.current_piece.tag
        return state
