"""Events emitted by the game for rendering, audio and AI collaborators.

Delivery is synchronous and fire-and-forget: the game never reads anything
back from a listener.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Tuple


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GameEvent:
    pass


@dataclass(frozen=True)
class PieceMoved(GameEvent):
    dx: int
    dy: int


@dataclass(frozen=True)
class PieceRotated(GameEvent):
    direction: int
    kick: Tuple[int, int]


@dataclass(frozen=True)
class PieceLocked(GameEvent):
    kind: int
    cells: Tuple[Tuple[int, int], ...]


@dataclass(frozen=True)
class LinesCleared(GameEvent):
    count: int
    rows: Tuple[int, ...]
    tags: Tuple[Tuple[int, ...], ...]


@dataclass(frozen=True)
class TSpin(GameEvent):
    pass


@dataclass(frozen=True)
class Combo(GameEvent):
    count: int


@dataclass(frozen=True)
class LevelUp(GameEvent):
    level: int


@dataclass(frozen=True)
class GameOver(GameEvent):
    score: int
    lines: int
    level: int
    elapsed_seconds: int


@dataclass(frozen=True)
class MuteToggled(GameEvent):
    muted: bool


@dataclass(frozen=True)
class PhaseChanged(GameEvent):
    phase: str


@dataclass(frozen=True)
class GameRestarted(GameEvent):
    pass


Listener = Callable[[GameEvent], None]


class EventDispatcher:
    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def add_listener(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, event: GameEvent) -> None:
        logger.debug("event %s", event)
        for listener in list(self._listeners):
            listener(event)
