from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import numpy as np
import gymnasium as gym
from gymnasium import spaces

from falling_blocks.game import GAMEPLAY_ACTIONS, FallingBlockGame, GameConfig


_KINDS = 8  # 0 = none, 1..7 = tetromino tags


def _kind_index(kind: Optional[int]) -> int:
    return int(kind) if kind is not None else 0


class FallingBlockEnv(gym.Env):
    """Single-player falling-block environment over the game's action surface.

    Each step dispatches one gameplay action and then advances gravity by
    ``tick_ms`` of simulated time, so an agent that never drops still sees
    its piece fall and lock.
    """

    metadata = {"render_modes": ["rgb_array"], "render_fps": 30}

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        render_mode: Optional[str] = None,
        tick_ms: float = 100.0,
        max_episode_steps: int = 10000,
        terminal_penalty: float = 0.0,
    ) -> None:
        super().__init__()
        self._now_ms = 0.0
        self.game = FallingBlockGame(config, clock=lambda: self._now_ms)
        self.render_mode = render_mode
        self.tick_ms = float(tick_ms)
        self.max_episode_steps = int(max_episode_steps)
        self.terminal_penalty = float(terminal_penalty)

        h, w = self.game.grid.height, self.game.grid.width
        q = self.game.config.queue_size
        # Grid cells hold locked tags (>0) and the falling piece as negative tags
        self.observation_space = spaces.Dict(
            {
                "grid": spaces.Box(low=-7, high=7, shape=(h, w), dtype=np.int8),
                "piece": spaces.Discrete(_KINDS),
                "queue": spaces.Box(low=0, high=7, shape=(q,), dtype=np.int8),
                "held": spaces.Discrete(_KINDS),
                "can_hold": spaces.Discrete(2),
            }
        )
        self.action_space = spaces.Discrete(len(GAMEPLAY_ACTIONS))

        self._last_obs: Optional[Dict[str, Any]] = None
        self._steps = 0

    def _get_obs(self) -> Dict[str, Any]:
        piece = self.game.current_piece
        obs: Dict[str, Any] = {
            "grid": self.game.get_state().astype(np.int8),
            "piece": _kind_index(piece.kind if piece is not None else None),
            "queue": np.array([int(k) for k in self.game.queue], dtype=np.int8),
            "held": _kind_index(self.game.held),
            "can_hold": int(self.game.can_hold),
        }
        return obs

    def _get_info(self) -> Dict[str, Any]:
        return {
            "score": self.game.score,
            "lines": self.game.lines,
            "level": self.game.level,
            "pieces": self.game.pieces_locked,
            "steps": self._steps,
        }

    def reset(self, *, seed: Optional[int] = None, options: Optional[dict] = None) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        super().reset(seed=seed)
        self._now_ms = 0.0
        self.game.reset(seed)
        self._steps = 0
        obs = self._get_obs()
        self._last_obs = obs
        return obs, self._get_info()

    def step(self, action: int):
        action_index = int(action)
        if not 0 <= action_index < len(GAMEPLAY_ACTIONS):
            raise ValueError(f"Invalid action {action!r}")

        score_before = self.game.score
        accepted = self.game.step(GAMEPLAY_ACTIONS[action_index])
        self._now_ms += self.tick_ms
        self.game.update(self.tick_ms)
        self._steps += 1

        terminated = bool(self.game.game_over)
        truncated = self._steps >= self.max_episode_steps and not terminated
        reward = float(self.game.score - score_before)
        if terminated:
            reward += self.terminal_penalty

        obs = self._get_obs()
        info = self._get_info()
        info["action_accepted"] = accepted
        self._last_obs = obs
        return obs, reward, terminated, truncated, info

    def render(self) -> Optional[np.ndarray]:
        if self.render_mode == "rgb_array":
            grid = self._last_obs["grid"] if self._last_obs is not None else self.game.get_state()
            cell = 12
            h, w = grid.shape
            img = np.zeros((h * cell, w * cell, 3), dtype=np.uint8)
            for y in range(h):
                for x in range(w):
                    if grid[y, x] > 0:
                        color = (70, 200, 120)
                    elif grid[y, x] < 0:
                        color = (230, 230, 240)
                    else:
                        color = (30, 30, 36)
                    img[y * cell : (y + 1) * cell, x * cell : (x + 1) * cell, :] = color
            return img
        return None

    def close(self) -> None:
        pass
