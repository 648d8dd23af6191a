"""
scaling.py

Loop-count driven difficulty scaling.

Loops 1..N come verbatim from the authored loop_progression table; beyond
the table every field keeps moving by its fallback increment, clamped to the
fallback's floor/ceiling so the curve stays monotonic and bounded.
"""

from __future__ import annotations

from typing import Optional

from models import (
    DEFAULT_GAME_CONFIG,
    BrickDecorator,
    GameConfig,
    LayoutOptions,
    LevelsConfig,
    LoopProgressionStep,
    LoopScalingInfo,
    RandomSource,
)
from utils import clamp_float, clamp_int


class LoopScalingTable:
    def __init__(self, levels: LevelsConfig) -> None:
        self.levels = levels
        self.steps = levels.loop_progression
        self.fallback = levels.loop_fallback

    def baseline(self) -> LoopScalingInfo:
        return LoopScalingInfo(
            loop_count=0,
            speed_multiplier=1.0,
            brick_hp_multiplier=1.0,
            brick_hp_bonus=0.0,
            power_up_chance_multiplier=1.0,
            gap_scale=1.0,
            fortified_chance=0.0,
            void_column_chance=0.0,
            center_fortified_bias=0.0,
            max_void_columns=self._cap_void_columns(self.levels.max_void_columns),
        )

    def info(self, loop_count: int) -> LoopScalingInfo:
        if loop_count <= 0:
            return self.baseline()
        if loop_count <= len(self.steps):
            return self._from_step(self.steps[loop_count - 1], loop_count)
        return self._extrapolate(loop_count)

    def _cap_void_columns(self, value: int) -> int:
        return clamp_int(value, 0, self.fallback.max_void_columns_cap)

    def _from_step(self, step: LoopProgressionStep, loop_count: int) -> LoopScalingInfo:
        max_void = (
            step.max_void_columns
            if step.max_void_columns is not None
            else self.levels.max_void_columns
        )
        return LoopScalingInfo(
            loop_count=loop_count,
            speed_multiplier=step.speed_multiplier,
            brick_hp_multiplier=step.brick_hp_multiplier,
            brick_hp_bonus=step.brick_hp_bonus,
            power_up_chance_multiplier=step.power_up_chance_multiplier,
            gap_scale=step.gap_scale,
            fortified_chance=step.fortified_chance,
            void_column_chance=step.void_column_chance,
            center_fortified_bias=step.center_fortified_bias,
            max_void_columns=self._cap_void_columns(max_void),
        )

    def _extrapolate(self, loop_count: int) -> LoopScalingInfo:
        last = self.info(len(self.steps)) if self.steps else self.baseline()
        n = loop_count - len(self.steps)
        fb = self.fallback

        speed = min(fb.max_speed_multiplier, last.speed_multiplier + fb.speed_multiplier_increment * n)
        return LoopScalingInfo(
            loop_count=loop_count,
            # never drop below the last authored loop, even with a negative increment
            speed_multiplier=max(last.speed_multiplier, speed),
            brick_hp_multiplier=last.brick_hp_multiplier + fb.brick_hp_multiplier_increment * n,
            brick_hp_bonus=last.brick_hp_bonus + fb.brick_hp_bonus_increment * n,
            power_up_chance_multiplier=max(
                fb.min_power_up_chance_multiplier,
                last.power_up_chance_multiplier + fb.power_up_chance_multiplier_step * n,
            ),
            gap_scale=max(fb.min_gap_scale, last.gap_scale + fb.gap_scale_step * n),
            fortified_chance=clamp_float(
                last.fortified_chance + fb.fortified_chance_increment * n,
                0.0,
                fb.max_fortified_chance,
            ),
            void_column_chance=clamp_float(
                last.void_column_chance + fb.void_column_chance_increment * n,
                0.0,
                fb.max_void_column_chance,
            ),
            center_fortified_bias=clamp_float(
                last.center_fortified_bias + fb.center_fortified_bias_increment * n,
                0.0,
                fb.max_center_fortified_bias,
            ),
            max_void_columns=self._cap_void_columns(
                last.max_void_columns + fb.max_void_columns_increment * n
            ),
        )


def get_loop_scaling_info(loop_count: int, config: Optional[GameConfig] = None) -> LoopScalingInfo:
    """Scaling descriptor for the given number of completed preset loops."""
    cfg = config or DEFAULT_GAME_CONFIG
    return LoopScalingTable(cfg.levels).info(loop_count)


def get_gamble_chance(loop_count: int, config: Optional[GameConfig] = None) -> float:
    """Per-brick gamble chance: base plus a per-loop bonus, capped at max_chance."""
    gamble = (config or DEFAULT_GAME_CONFIG).levels.gamble
    return min(gamble.max_chance, max(0.0, gamble.base_chance + max(0, loop_count) * gamble.loop_bonus))


def get_max_gamble_bricks(config: Optional[GameConfig] = None) -> int:
    return max(0, (config or DEFAULT_GAME_CONFIG).levels.gamble.max_per_level)


def build_generation_options(
    loop_count: int,
    random: Optional[RandomSource] = None,
    decorator: Optional[BrickDecorator] = None,
    config: Optional[GameConfig] = None,
) -> LayoutOptions:
    """Layout options for a level in the given loop.

    The first pass through the presets never gets fortified bricks; void
    columns, center bias and gamble odds follow the loop's scaling.
    """
    scaling = get_loop_scaling_info(loop_count, config)
    return LayoutOptions(
        random=random,
        fortified_chance=0.0 if loop_count <= 0 else scaling.fortified_chance,
        void_column_chance=scaling.void_column_chance,
        max_void_columns=scaling.max_void_columns,
        center_fortified_bias=scaling.center_fortified_bias,
        gamble_chance=get_gamble_chance(loop_count, config),
        max_gamble_bricks=get_max_gamble_bricks(config),
        decorate_brick=decorator,
    )
