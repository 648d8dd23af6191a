from __future__ import annotations

import pytest

from layout import generate_level_layout
from models import ConstantHp, LevelSpec, RemappedRowHp, RowHpTable, ThresholdHp
from presets import get_level_spec
from remix import orient_spec, remix_level, row_jitter
from scaling import get_loop_scaling_info
from utils import round_half_up


def test_loop_zero_returns_the_same_spec() -> None:
    base = get_level_spec(0)
    assert remix_level(base, 0) is base
    assert remix_level(base, -1) is base


def test_row_jitter_stays_in_range() -> None:
    values = {row_jitter(row, loop) for row in range(20) for loop in range(20)}
    assert values == {-1, 0, 1}


def test_remix_scales_hp_gap_and_power_ups() -> None:
    base = get_level_spec(1)
    remixed = remix_level(base, 1)
    scaling = get_loop_scaling_info(1)

    assert remixed is not base
    assert isinstance(remixed.hp_per_row, RowHpTable)
    assert remixed.row_hp_values() == (3, 1, 3, 4)
    for base_hp, hp in zip(base.row_hp_values(), remixed.row_hp_values()):
        scaled = round_half_up(base_hp * scaling.brick_hp_multiplier + scaling.brick_hp_bonus)
        assert hp >= base_hp
        assert abs(hp - scaled) <= 1

    assert remixed.gap == pytest.approx(19.0)
    assert remixed.power_up_chance_multiplier == pytest.approx(0.9)
    assert (remixed.rows, remixed.cols, remixed.start_y) == (base.rows, base.cols, base.start_y)

    assert len(generate_level_layout(remixed).bricks) == len(generate_level_layout(base).bricks)


def test_remix_is_deterministic() -> None:
    base = get_level_spec(4)
    for loop in (1, 3, 9):
        first = remix_level(base, loop)
        second = remix_level(base, loop)
        assert first == second
        assert [first.hp_for_row(r) for r in range(base.rows)] == [
            second.hp_for_row(r) for r in range(base.rows)
        ]


def test_remixed_hp_lookup_clamps_row_index() -> None:
    remixed = remix_level(get_level_spec(1), 2)
    assert remixed.hp_for_row(99) == remixed.hp_for_row(remixed.rows - 1)
    assert remixed.hp_for_row(-5) == remixed.hp_for_row(0)


def test_remix_hp_never_drops_below_one() -> None:
    spec = LevelSpec(rows=6, cols=3, hp_per_row=ConstantHp(0))
    assert all(hp >= 1 for hp in remix_level(spec, 1).row_hp_values())


def test_remix_floors_gap_and_power_up_multiplier() -> None:
    spec = LevelSpec(rows=1, cols=1, gap=8, power_up_chance_multiplier=0.5)
    remixed = remix_level(spec, 3)
    assert remixed.gap == 8
    assert remixed.power_up_chance_multiplier == pytest.approx(0.55)


def test_remix_uses_default_gap_when_spec_has_none() -> None:
    remixed = remix_level(LevelSpec(rows=2, cols=2), 1)
    assert remixed.gap == pytest.approx(19.0)


def test_portrait_swaps_wide_presets_and_remaps_hp() -> None:
    base = LevelSpec(rows=4, cols=6, hp_per_row=ThresholdHp(threshold=2))
    portrait = orient_spec(base, "portrait")

    assert (portrait.rows, portrait.cols) == (6, 4)
    assert isinstance(portrait.hp_per_row, RemappedRowHp)
    assert portrait.row_hp_values() == (1, 1, 1, 2, 2, 2)


def test_orientation_leaves_other_specs_alone() -> None:
    wide = get_level_spec(0)
    tall = LevelSpec(rows=6, cols=3)
    assert orient_spec(wide, "landscape") is wide
    assert orient_spec(tall, "portrait") is tall
    assert orient_spec(LevelSpec(rows=2, cols=5), "portrait").hp_per_row is None
