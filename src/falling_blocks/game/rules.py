from __future__ import annotations

import math
from dataclasses import dataclass


LEVEL_SPEEDS: tuple[int, ...] = (1000, 900, 800, 700, 600, 500, 400, 300, 200, 150, 100, 80, 60, 50, 40)


@dataclass
class ScoringRules:
    line_clear_scores: tuple[int, int, int, int] = (100, 300, 500, 800)
    soft_drop_points: int = 1
    hard_drop_points: int = 2
    t_spin_multiplier: float = 2.0
    combo_step: float = 0.5
    combo_window_ms: float = 3000.0
    lines_per_level: int = 10
    level_speeds: tuple[int, ...] = LEVEL_SPEEDS

    def score_for_lines(self, lines: int) -> int:
        if lines <= 0:
            return 0
        return self.line_clear_scores[min(lines, 4) - 1]

    def points_for_clear(self, lines: int, level: int, t_spin: bool = False, combo: int = 0) -> int:
        base: float = self.score_for_lines(lines) * level
        if t_spin:
            base *= self.t_spin_multiplier
        if combo > 0:
            base *= 1 + combo * self.combo_step
        return int(math.floor(base))

    def level_for_lines(self, total_lines: int) -> int:
        return total_lines // self.lines_per_level + 1

    def has_speed_for(self, level: int) -> bool:
        return 1 <= level <= len(self.level_speeds)

    def drop_interval(self, level: int) -> int:
        index = min(max(level, 1), len(self.level_speeds)) - 1
        return self.level_speeds[index]

    def continues_combo(self, now_ms: float, last_clear_ms: float | None) -> bool:
        if last_clear_ms is None:
            return False
        return now_ms - last_clear_ms < self.combo_window_ms
