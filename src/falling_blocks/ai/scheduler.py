from __future__ import annotations

import logging
from collections import deque
from typing import Deque, List, Optional

from falling_blocks.game import Action, FallingBlockGame, GamePhase, Piece
from falling_blocks.game.events import GameEvent, GameOver, GameRestarted, PhaseChanged
from falling_blocks.game.pieces import rotation_count

from .profiles import Difficulty, DifficultyProfile, get_profile
from .search import MAX_EVALUATIONS, Placement, PlacementSearch


logger = logging.getLogger(__name__)

MAX_ROTATIONS = 3
MAX_SHIFTS = 15
_TERMINAL_ACTIONS = (Action.HARD_DROP, Action.HOLD)


class MoveScheduler:
    """Drives a game through its action surface from placement plans.

    ``update`` is called once per tick with the current time. Thinking and
    acting run on separate cadences from the difficulty profile; a new plan is
    only computed once the previous one has been executed or discarded.
    """

    def __init__(
        self,
        game: FallingBlockGame,
        difficulty: "str | Difficulty" = Difficulty.MEDIUM,
        max_rotations: int = MAX_ROTATIONS,
        max_shifts: int = MAX_SHIFTS,
        max_evaluations: int = MAX_EVALUATIONS,
    ) -> None:
        self.game = game
        self.max_rotations = int(max_rotations)
        self.max_shifts = int(max_shifts)
        self.max_evaluations = int(max_evaluations)
        self.enabled = False
        self.plan: Optional[Placement] = None
        self.queue: Deque[Action] = deque()
        self.executing = False
        self.last_think_ms = float("-inf")
        self.last_act_ms = float("-inf")
        self._plan_lock_count = 0
        self.set_difficulty(difficulty)
        game.add_listener(self._on_event)

    @property
    def profile(self) -> DifficultyProfile:
        return self._profile

    def set_difficulty(self, difficulty: "str | Difficulty") -> None:
        self._profile = get_profile(difficulty)
        self.search = PlacementSearch(
            self._profile.weights,
            lookahead=self._profile.lookahead,
            max_evaluations=self.max_evaluations,
        )
        logger.info("AI difficulty set to %s", self._profile.name)

    def enable(self) -> None:
        self.enabled = True
        logger.info("AI player enabled (%s)", self._profile.name)

    def disable(self) -> None:
        self.enabled = False
        self.clear()
        logger.info("AI player disabled")

    def toggle(self) -> bool:
        if self.enabled:
            self.disable()
        else:
            self.enable()
        return self.enabled

    def clear(self) -> None:
        self.plan = None
        self.queue.clear()
        self.executing = False

    def _on_event(self, event: GameEvent) -> None:
        if isinstance(event, GameRestarted):
            self.clear()
        elif isinstance(event, GameOver) and self.enabled:
            self.disable()
        elif isinstance(event, PhaseChanged) and event.phase != GamePhase.PLAYING.value:
            self.clear()

    def update(self, now_ms: float) -> None:
        if not self.enabled or self.game.phase != GamePhase.PLAYING:
            return
        if not self.executing and now_ms - self.last_think_ms >= self._profile.think_ms:
            self.think()
            self.last_think_ms = now_ms
        if self.queue and now_ms - self.last_act_ms >= self._profile.act_ms:
            self.act()
            self.last_act_ms = now_ms

    def think(self) -> None:
        if self.executing:
            return
        snapshot = self.game.snapshot()
        if snapshot.piece is None or snapshot.phase != GamePhase.PLAYING:
            return
        self._plan_lock_count = self.game.pieces_locked

        if self.search.should_hold(snapshot):
            logger.debug("Holding %s", snapshot.piece.kind.name)
            self.plan = None
            self.queue = deque([Action.HOLD])
            self.executing = True
            return

        placement = self.search.plan(snapshot)
        if placement is None:
            logger.debug("No placement for %s", snapshot.piece.kind.name)
            return
        self.plan = placement
        self.queue = deque(self.lower(snapshot.piece, placement))
        self.executing = True

    def lower(self, piece: Piece, placement: Placement) -> List[Action]:
        """Turn a placement into rotations, shifts and a final hard drop."""
        actions: List[Action] = []
        delta = (placement.rotation - piece.rotation) % rotation_count(piece.kind)
        actions.extend([Action.ROTATE_CW] * min(delta, self.max_rotations))
        dx = placement.x - piece.x
        shift = Action.SHIFT_RIGHT if dx > 0 else Action.SHIFT_LEFT
        actions.extend([shift] * min(abs(dx), self.max_shifts))
        actions.append(Action.HARD_DROP)
        return actions

    def act(self) -> None:
        if not self.queue:
            self.executing = False
            return
        if self.game.pieces_locked != self._plan_lock_count:
            # Gravity locked the planned piece first
            logger.debug("Discarding stale plan %s", self.plan)
            self.clear()
            return
        action = self.queue.popleft()
        self.game.step(action, by_ai=True)
        if action in _TERMINAL_ACTIONS:
            self.plan = None
            self.queue.clear()
            self.executing = False
