"""Gymnasium environments for Falling Blocks."""

from __future__ import annotations

from gymnasium.envs.registration import register

from .falling_block_env import FallingBlockEnv

# Register default single-player environment (7 gameplay actions)
register(
    id="FallingBlocks-v0",
    entry_point="falling_blocks.env.falling_block_env:FallingBlockEnv",
)

__all__ = ["FallingBlockEnv"]
