from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from models import (
    DEFAULT_LOOP_PROGRESSION,
    BrickSizeConfig,
    GambleConfig,
    GameConfig,
    LevelsConfig,
    LoopFallbackConfig,
    LoopProgressionStep,
    PlayfieldConfig,
)
from utils import as_float, as_int, deep_get, section


class ConfigError(RuntimeError):
    """Raised for configuration that cannot produce a playable game."""


def _parse_playfield(raw: Dict[str, Any]) -> PlayfieldConfig:
    default = PlayfieldConfig()
    return PlayfieldConfig(
        width=max(0.0, as_float(raw.get("width"), default.width)),
        height=max(0.0, as_float(raw.get("height"), default.height)),
    )


def _parse_brick_size(raw: Dict[str, Any]) -> BrickSizeConfig:
    """Accepts {"width": .., "height": ..} or {"size": {"width": .., "height": ..}}."""
    default = BrickSizeConfig()
    width = deep_get(raw, "size.width", raw.get("width"))
    height = deep_get(raw, "size.height", raw.get("height"))
    return BrickSizeConfig(
        width=max(1.0, as_float(width, default.width)),
        height=max(1.0, as_float(height, default.height)),
    )


def _parse_optional_int(raw: Any) -> Optional[int]:
    if raw is None:
        return None
    value = as_int(raw, -1)
    return value if value >= 0 else None


def _parse_progression_step(raw: Any) -> Optional[LoopProgressionStep]:
    if not isinstance(raw, dict):
        return None
    return LoopProgressionStep(
        speed_multiplier=as_float(raw.get("speed_multiplier"), 1.0),
        brick_hp_multiplier=as_float(raw.get("brick_hp_multiplier"), 1.0),
        brick_hp_bonus=as_float(raw.get("brick_hp_bonus"), 0.0),
        power_up_chance_multiplier=as_float(raw.get("power_up_chance_multiplier"), 1.0),
        gap_scale=as_float(raw.get("gap_scale"), 1.0),
        fortified_chance=as_float(raw.get("fortified_chance"), 0.0),
        void_column_chance=as_float(raw.get("void_column_chance"), 0.0),
        center_fortified_bias=as_float(raw.get("center_fortified_bias"), 0.0),
        max_void_columns=_parse_optional_int(raw.get("max_void_columns")),
    )


def _parse_loop_progression(raw: Any) -> Tuple[LoopProgressionStep, ...]:
    if not isinstance(raw, list):
        return DEFAULT_LOOP_PROGRESSION
    steps: List[LoopProgressionStep] = []
    for item in raw:
        step = _parse_progression_step(item)
        if step is not None:
            steps.append(step)
    return tuple(steps)


def _parse_loop_fallback(raw: Dict[str, Any]) -> LoopFallbackConfig:
    d = LoopFallbackConfig()
    return LoopFallbackConfig(
        speed_multiplier_increment=as_float(
            raw.get("speed_multiplier_increment"), d.speed_multiplier_increment
        ),
        brick_hp_multiplier_increment=as_float(
            raw.get("brick_hp_multiplier_increment"), d.brick_hp_multiplier_increment
        ),
        brick_hp_bonus_increment=as_float(
            raw.get("brick_hp_bonus_increment"), d.brick_hp_bonus_increment
        ),
        power_up_chance_multiplier_step=as_float(
            raw.get("power_up_chance_multiplier_step"), d.power_up_chance_multiplier_step
        ),
        gap_scale_step=as_float(raw.get("gap_scale_step"), d.gap_scale_step),
        fortified_chance_increment=as_float(
            raw.get("fortified_chance_increment"), d.fortified_chance_increment
        ),
        void_column_chance_increment=as_float(
            raw.get("void_column_chance_increment"), d.void_column_chance_increment
        ),
        center_fortified_bias_increment=as_float(
            raw.get("center_fortified_bias_increment"), d.center_fortified_bias_increment
        ),
        max_speed_multiplier=as_float(raw.get("max_speed_multiplier"), d.max_speed_multiplier),
        min_power_up_chance_multiplier=as_float(
            raw.get("min_power_up_chance_multiplier"), d.min_power_up_chance_multiplier
        ),
        min_gap_scale=as_float(raw.get("min_gap_scale"), d.min_gap_scale),
        max_fortified_chance=as_float(raw.get("max_fortified_chance"), d.max_fortified_chance),
        max_void_column_chance=as_float(
            raw.get("max_void_column_chance"), d.max_void_column_chance
        ),
        max_center_fortified_bias=as_float(
            raw.get("max_center_fortified_bias"), d.max_center_fortified_bias
        ),
        max_void_columns_increment=max(
            0, as_int(raw.get("max_void_columns_increment"), d.max_void_columns_increment)
        ),
        max_void_columns_cap=max(0, as_int(raw.get("max_void_columns_cap"), d.max_void_columns_cap)),
    )


def _parse_gamble(raw: Dict[str, Any]) -> GambleConfig:
    d = GambleConfig()
    return GambleConfig(
        base_chance=as_float(raw.get("base_chance"), d.base_chance),
        loop_bonus=as_float(raw.get("loop_bonus"), d.loop_bonus),
        max_chance=as_float(raw.get("max_chance"), d.max_chance),
        max_per_level=max(0, as_int(raw.get("max_per_level"), d.max_per_level)),
        prime_reset_hp=max(1, as_int(raw.get("prime_reset_hp"), d.prime_reset_hp)),
    )


def validate_loop_progression(
    steps: Tuple[LoopProgressionStep, ...], fallback: LoopFallbackConfig
) -> None:
    """Reject loop tables that would make the speed curve dip or overshoot.

    Raises:
        ConfigError: If speeds decrease between loops or exceed the
            fallback's max_speed_multiplier.
    """
    if fallback.max_speed_multiplier < 1.0:
        raise ConfigError(
            f"max_speed_multiplier must be at least 1.0, got {fallback.max_speed_multiplier}"
        )
    previous = 1.0
    for index, step in enumerate(steps, start=1):
        if step.speed_multiplier < previous:
            raise ConfigError(
                f"loop_progression[{index - 1}] speed_multiplier {step.speed_multiplier} "
                f"is lower than the previous loop ({previous})"
            )
        if step.speed_multiplier > fallback.max_speed_multiplier:
            raise ConfigError(
                f"loop_progression[{index - 1}] speed_multiplier {step.speed_multiplier} "
                f"exceeds max_speed_multiplier {fallback.max_speed_multiplier}"
            )
        previous = step.speed_multiplier


def parse_levels_config(raw: Dict[str, Any]) -> LevelsConfig:
    """Parse the "levels" section of the game config.

    Args:
        raw: Dict containing level generation settings.

    Returns:
        LevelsConfig with defaults applied.

    Raises:
        ConfigError: If the loop progression table is inconsistent.
    """
    if not isinstance(raw, dict):
        raw = {}
    d = LevelsConfig()
    fallback = _parse_loop_fallback(section(raw, "loop_fallback"))
    progression = _parse_loop_progression(raw.get("loop_progression"))
    validate_loop_progression(progression, fallback)
    min_gap = max(0.0, as_float(raw.get("min_gap"), d.min_gap))
    return LevelsConfig(
        default_gap=max(min_gap, as_float(raw.get("default_gap"), d.default_gap)),
        default_start_y=as_float(raw.get("default_start_y"), d.default_start_y),
        min_gap=min_gap,
        max_void_columns=max(0, as_int(raw.get("max_void_columns"), d.max_void_columns)),
        max_brick_hp=max(1, as_int(raw.get("max_brick_hp"), d.max_brick_hp)),
        wall_hp=max(1, as_int(raw.get("wall_hp"), d.wall_hp)),
        loop_progression=progression,
        loop_fallback=fallback,
        gamble=_parse_gamble(section(raw, "gamble")),
    )


def parse_game_config(raw: Dict[str, Any]) -> GameConfig:
    """Parse a full game config (playfield, bricks, levels) from JSON data."""
    if not isinstance(raw, dict):
        raw = {}
    return GameConfig(
        playfield=_parse_playfield(section(raw, "playfield")),
        bricks=_parse_brick_size(section(raw, "bricks")),
        levels=parse_levels_config(section(raw, "levels")),
    )
