"""High-score, stats and settings persistence.

The game core only needs the :class:`ScoreStore` protocol. ``JsonScoreStore``
keeps everything in one JSON document on disk. A missing or unreadable file is
a valid empty state and falls back to the defaults below; write failures are
logged and otherwise ignored so that storage can never stop a game.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol


logger = logging.getLogger(__name__)

MAX_HIGH_SCORES = 10
DEFAULT_PATH = os.path.join(os.path.expanduser("~"), ".falling_blocks.json")


@dataclass(frozen=True)
class GameResult:
    score: int
    lines: int
    level: int
    elapsed_seconds: int


@dataclass
class Settings:
    sound_enabled: bool = True
    music_enabled: bool = True
    ghost_enabled: bool = True
    volume: float = 0.5
    was_muted: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class Stats:
    games_played: int = 0
    total_lines: int = 0
    total_score: int = 0
    best_level: int = 0
    total_play_time: int = 0


@dataclass
class StoreData:
    high_scores: List[Dict[str, Any]] = field(default_factory=list)
    stats: Stats = field(default_factory=Stats)
    settings: Settings = field(default_factory=Settings)


class ScoreStore(Protocol):
    def record_game(self, result: GameResult) -> Optional[int]:
        ...

    def load_settings(self) -> Settings:
        ...

    def update_settings(self, **changes: Any) -> Settings:
        ...


def format_time(seconds: float) -> str:
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}:{secs:02d}"


class JsonScoreStore:
    def __init__(self, path: str = DEFAULT_PATH) -> None:
        self.path = path

    def _read(self) -> StoreData:
        if not os.path.exists(self.path):
            return StoreData()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not read %s, using defaults: %s", self.path, e)
            return StoreData()
        if not isinstance(raw, dict):
            logger.warning("Ignoring malformed store file %s", self.path)
            return StoreData()
        return StoreData(
            high_scores=self._read_high_scores(raw.get("high_scores")),
            stats=self._read_stats(raw.get("stats")),
            settings=self._read_settings(raw.get("settings")),
        )

    def _read_high_scores(self, raw: Any) -> List[Dict[str, Any]]:
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("Ignoring malformed high scores in %s", self.path)
            return []
        scores = []
        for entry in raw:
            if isinstance(entry, dict) and isinstance(entry.get("score"), int):
                scores.append(entry)
            else:
                logger.warning("Dropping malformed high score entry %r in %s", entry, self.path)
        return scores

    def _read_stats(self, raw: Any) -> Stats:
        if raw is None:
            return Stats()
        known = {f.name for f in fields(Stats)}
        if not isinstance(raw, dict) or not all(isinstance(raw[k], int) for k in known if k in raw):
            logger.warning("Ignoring malformed stats in %s", self.path)
            return Stats()
        return Stats(**{k: v for k, v in raw.items() if k in known})

    def _read_settings(self, raw: Any) -> Settings:
        if raw is None:
            return Settings()
        if not isinstance(raw, dict):
            logger.warning("Ignoring malformed settings in %s", self.path)
            return Settings()
        return Settings.from_dict(raw)

    def _write(self, data: StoreData) -> None:
        try:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(asdict(data), f, indent=2)
        except OSError as e:
            logger.warning("Could not save %s: %s", self.path, e)

    def record_game(self, result: GameResult) -> Optional[int]:
        """Add a finished game; return its rank if it made the table."""
        data = self._read()
        entry = {
            "score": result.score,
            "lines": result.lines,
            "level": result.level,
            "time": result.elapsed_seconds,
            "date": datetime.now(timezone.utc).isoformat(),
        }
        # Stable sort keeps an earlier equal score ahead of the new one
        scores = sorted(data.high_scores + [entry], key=lambda s: -int(s.get("score", 0)))
        scores = scores[:MAX_HIGH_SCORES]
        rank: Optional[int] = None
        for index, score in enumerate(scores):
            score["rank"] = index + 1
            if score is entry:
                rank = index + 1
        data.high_scores = scores

        stats = data.stats
        stats.games_played += 1
        stats.total_lines += result.lines
        stats.total_score += result.score
        stats.total_play_time += result.elapsed_seconds
        stats.best_level = max(stats.best_level, result.level)

        self._write(data)
        logger.info("Recorded game: score=%d rank=%s", result.score, rank)
        return rank

    def high_scores(self) -> List[Dict[str, Any]]:
        return self._read().high_scores

    def stats(self) -> Stats:
        return self._read().stats

    def load_settings(self) -> Settings:
        return self._read().settings

    def update_settings(self, **changes: Any) -> Settings:
        data = self._read()
        merged = asdict(data.settings)
        merged.update(changes)
        data.settings = Settings.from_dict(merged)
        self._write(data)
        return data.settings
