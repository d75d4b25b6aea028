from __future__ import annotations

import argparse
import logging
from typing import Dict, Optional

import pygame

from falling_blocks.ai import Difficulty, MoveScheduler
from falling_blocks.game import Action, FallingBlockGame, GameConfig, GamePhase
from falling_blocks.storage import DEFAULT_PATH, JsonScoreStore, format_time
from .renderer import Renderer


logger = logging.getLogger(__name__)

KEY_TO_ACTION: Dict[int, Action] = {
    pygame.K_LEFT: Action.SHIFT_LEFT,
    pygame.K_RIGHT: Action.SHIFT_RIGHT,
    pygame.K_UP: Action.ROTATE_CW,
    pygame.K_x: Action.ROTATE_CW,
    pygame.K_z: Action.ROTATE_CCW,
    pygame.K_DOWN: Action.SOFT_DROP,
    pygame.K_SPACE: Action.HARD_DROP,
    pygame.K_c: Action.HOLD,
    pygame.K_p: Action.PAUSE,
    pygame.K_r: Action.RESTART,
    pygame.K_m: Action.MUTE,
}

KEY_TO_DIFFICULTY: Dict[int, Difficulty] = {
    pygame.K_1: Difficulty.EASY,
    pygame.K_2: Difficulty.MEDIUM,
    pygame.K_3: Difficulty.HARD,
    pygame.K_4: Difficulty.IMPOSSIBLE,
}

# Held keys repeat after DAS_MS, then every ARR_MS
REPEATABLE = (pygame.K_LEFT, pygame.K_RIGHT, pygame.K_DOWN)
DAS_MS = 150
ARR_MS = 50


def _status_lines(game: FallingBlockGame, ai: MoveScheduler) -> list:
    lines = [
        f"Time {format_time(game.elapsed_seconds())}",
        f"AI {'ON' if ai.enabled else 'OFF'} ({ai.profile.name})",
    ]
    if game.muted:
        lines.append("Muted")
    if game.phase == GamePhase.PAUSED:
        lines.append("Paused - P to resume")
    elif game.phase == GamePhase.GAME_OVER:
        rank = f" #{game.last_rank}" if game.last_rank else ""
        lines.append(f"Game over{rank} - R")
    return lines


def run(store_path: Optional[str] = DEFAULT_PATH, difficulty: str = "medium", seed: Optional[int] = None) -> None:
    pygame.init()
    try:
        clock = pygame.time.Clock()
        store = JsonScoreStore(store_path) if store_path else None
        game = FallingBlockGame(GameConfig(random_seed=seed), store=store, clock=lambda: float(pygame.time.get_ticks()))
        ai = MoveScheduler(game, difficulty)
        renderer = Renderer(cell_size=28)

        screen = pygame.display.set_mode(renderer.window_size(game))
        pygame.display.set_caption("Falling Blocks")

        held_since: Dict[int, int] = {}
        last_repeat: Dict[int, int] = {}

        running = True
        while running:
            dt = clock.tick(60)
            now = pygame.time.get_ticks()

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        running = False
                    elif event.key == pygame.K_a:
                        ai.toggle()
                    elif event.key in KEY_TO_DIFFICULTY:
                        ai.set_difficulty(KEY_TO_DIFFICULTY[event.key])
                    elif event.key in KEY_TO_ACTION:
                        game.step(KEY_TO_ACTION[event.key])
                        if event.key in REPEATABLE:
                            held_since[event.key] = now
                            last_repeat[event.key] = now
                elif event.type == pygame.KEYUP:
                    held_since.pop(event.key, None)
                    last_repeat.pop(event.key, None)

            for key, since in held_since.items():
                if now - since >= DAS_MS and now - last_repeat[key] >= ARR_MS:
                    game.step(KEY_TO_ACTION[key])
                    last_repeat[key] = now

            ai.update(now)
            game.update(dt)
            renderer.draw(screen, game, _status_lines(game, ai))
    finally:
        pygame.quit()


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Play Falling Blocks, optionally against the AI (A to toggle).")
    p.add_argument("--difficulty", choices=[d.value for d in Difficulty], default="medium")
    p.add_argument("--store", type=str, default=DEFAULT_PATH, help="JSON file for scores and settings")
    p.add_argument("--no-store", action="store_true", help="Do not read or write scores")
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--log-level", default="WARNING")
    return p


def main() -> None:
    args = build_parser().parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(name)s %(message)s")
    run(None if args.no_store else args.store, args.difficulty, args.seed)


if __name__ == "__main__":  # pragma: no cover
    main()
