from __future__ import annotations

import pytest

from models import GameConfig, LevelsConfig, LoopFallbackConfig
from scaling import (
    LoopScalingTable,
    build_generation_options,
    get_gamble_chance,
    get_loop_scaling_info,
    get_max_gamble_bricks,
)


def test_loop_zero_is_the_baseline() -> None:
    info = get_loop_scaling_info(0)
    assert info.loop_count == 0
    assert info.speed_multiplier == 1.0
    assert info.brick_hp_multiplier == 1.0
    assert info.brick_hp_bonus == 0.0
    assert info.power_up_chance_multiplier == 1.0
    assert info.gap_scale == 1.0
    assert info.fortified_chance == 0.0
    assert info.void_column_chance == 0.0
    assert info.center_fortified_bias == 0.0
    assert info.max_void_columns == 2
    assert get_loop_scaling_info(-4) == info


def test_authored_loops_come_from_the_table() -> None:
    first = get_loop_scaling_info(1)
    assert first.loop_count == 1
    assert first.speed_multiplier == 1.08
    assert first.brick_hp_multiplier == 1.25
    assert first.max_void_columns == 2

    third = get_loop_scaling_info(3)
    assert third.speed_multiplier == 1.24
    assert third.fortified_chance == 0.28
    assert third.max_void_columns == 3


def test_extrapolation_continues_from_last_authored_loop() -> None:
    third = get_loop_scaling_info(3)
    fourth = get_loop_scaling_info(4)

    assert fourth.speed_multiplier == pytest.approx(third.speed_multiplier + 0.06)
    assert fourth.brick_hp_multiplier == pytest.approx(third.brick_hp_multiplier + 0.2)
    assert fourth.brick_hp_bonus == pytest.approx(third.brick_hp_bonus + 0.75)
    assert fourth.power_up_chance_multiplier == pytest.approx(0.75)
    assert fourth.gap_scale == pytest.approx(0.81)
    assert fourth.fortified_chance == pytest.approx(0.33)
    assert fourth.max_void_columns == 4


def test_extrapolated_fields_are_clamped() -> None:
    far = get_loop_scaling_info(200)
    assert far.speed_multiplier == 2.0
    assert far.power_up_chance_multiplier == pytest.approx(0.55)
    assert far.gap_scale == pytest.approx(0.7)
    assert far.fortified_chance == pytest.approx(0.6)
    assert far.void_column_chance == pytest.approx(0.25)
    assert far.center_fortified_bias == pytest.approx(0.8)
    assert far.max_void_columns == 5


def test_speed_is_monotonic_and_bounded() -> None:
    speeds = [get_loop_scaling_info(n).speed_multiplier for n in range(80)]
    assert all(a <= b for a, b in zip(speeds, speeds[1:]))
    assert all(1.0 <= s <= 2.0 for s in speeds)


def test_empty_table_extrapolates_from_baseline() -> None:
    table = LoopScalingTable(LevelsConfig(loop_progression=()))
    assert table.info(2).speed_multiplier == pytest.approx(1.12)
    assert table.info(2).max_void_columns == 4


def test_negative_speed_increment_never_lowers_speed() -> None:
    levels = LevelsConfig(loop_fallback=LoopFallbackConfig(speed_multiplier_increment=-0.5))
    table = LoopScalingTable(levels)
    assert table.info(10).speed_multiplier == table.info(3).speed_multiplier


def test_void_cap_is_applied_to_authored_rows() -> None:
    levels = LevelsConfig(loop_fallback=LoopFallbackConfig(max_void_columns_cap=1))
    assert LoopScalingTable(levels).info(2).max_void_columns == 1


def test_gamble_chance_grows_per_loop_and_caps() -> None:
    assert get_gamble_chance(0) == pytest.approx(0.08)
    assert get_gamble_chance(2) == pytest.approx(0.13)
    assert get_gamble_chance(100) == pytest.approx(0.22)
    assert get_max_gamble_bricks() == 3


def test_generation_options_follow_the_loop() -> None:
    first_pass = build_generation_options(0)
    assert first_pass.fortified_chance == 0.0
    assert first_pass.void_column_chance == 0.0
    assert first_pass.random is None

    looped = build_generation_options(1, random=lambda: 0.5)
    assert looped.fortified_chance == pytest.approx(0.12)
    assert looped.void_column_chance == pytest.approx(0.05)
    assert looped.center_fortified_bias == pytest.approx(0.35)
    assert looped.max_void_columns == 2
    assert looped.gamble_chance == pytest.approx(0.105)
    assert looped.max_gamble_bricks == 3
    assert looped.random is not None


def test_custom_config_is_honored() -> None:
    config = GameConfig(levels=LevelsConfig(max_void_columns=1))
    assert get_loop_scaling_info(0, config).max_void_columns == 1
