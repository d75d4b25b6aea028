from __future__ import annotations

import argparse
import logging
import statistics
import sys
from typing import Dict, List, Optional

from falling_blocks.ai import Difficulty, MoveScheduler
from falling_blocks.game import FallingBlockGame, GameConfig


logger = logging.getLogger(__name__)

TICK_MS = 16.0


class SimulatedClock:
    def __init__(self) -> None:
        self.now_ms = 0.0

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, dt_ms: float) -> None:
        self.now_ms += dt_ms


def play_game(
    difficulty: str = "hard",
    max_pieces: int = 500,
    seed: Optional[int] = None,
    tick_ms: float = TICK_MS,
) -> Dict[str, float]:
    """Play one headless game with the AI driving; return the final stats."""
    clock = SimulatedClock()
    game = FallingBlockGame(GameConfig(random_seed=seed), clock=clock)
    ai = MoveScheduler(game, difficulty)
    ai.enable()

    while not game.game_over and game.pieces_locked < max_pieces:
        ai.update(clock.now_ms)
        game.update(tick_ms)
        clock.advance(tick_ms)

    stats = game.stats()
    stats["game_over"] = float(game.game_over)
    return stats


def _print_progress(game_idx: int, total: int, stats: Dict[str, float]) -> None:
    width = 30
    filled = int(width * (game_idx + 1) / max(1, total))
    bar = "=" * filled + "." * (width - filled)
    msg = (
        f"\r[{bar}] {game_idx + 1}/{total}  score={int(stats['score'])}"
        f"  lines={int(stats['lines'])}  pieces={int(stats['pieces'])}"
    )
    print(msg, end="", file=sys.stdout, flush=True)


def run_autoplay(
    games: int = 3,
    difficulty: str = "hard",
    max_pieces: int = 500,
    seed: int = 0,
    progress: bool = True,
) -> List[Dict[str, float]]:
    results: List[Dict[str, float]] = []
    for i in range(games):
        stats = play_game(difficulty, max_pieces, seed + i)
        results.append(stats)
        logger.info("Game %d finished: %s", i + 1, stats)
        if progress:
            _print_progress(i, games, stats)
    if progress:
        print()
    return results


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Let the AI play headless games and report the results.")
    p.add_argument("--difficulty", choices=[d.value for d in Difficulty], default="hard")
    p.add_argument("--games", type=int, default=3)
    p.add_argument("--max-pieces", type=int, default=500)
    p.add_argument("--seed", type=int, default=0)
    p.add_argument("--log-level", default="WARNING")
    return p


def main() -> None:
    args = build_parser().parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(name)s %(message)s")
    results = run_autoplay(args.games, args.difficulty, args.max_pieces, args.seed)
    print(
        f"{args.difficulty}: mean score {statistics.mean(r['score'] for r in results):.1f}, "
        f"mean lines {statistics.mean(r['lines'] for r in results):.1f}, "
        f"mean pieces {statistics.mean(r['pieces'] for r in results):.1f}"
    )


if __name__ == "__main__":  # pragma: no cover
    main()
