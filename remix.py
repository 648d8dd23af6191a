from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from models import DEFAULT_GAME_CONFIG, GameConfig, LevelSpec, RemappedRowHp, RowHpTable
from scaling import LoopScalingTable
from utils import round_half_up

logger = logging.getLogger(__name__)


def row_jitter(row: int, loop_count: int) -> int:
    """Deterministic -1/0/+1 wobble so remixed rows are not perfectly uniform."""
    return (loop_count * 17 + row * 13) % 3 - 1


def remix_level(spec: LevelSpec, loop_count: int, config: Optional[GameConfig] = None) -> LevelSpec:
    """Return a loop-scaled copy of a preset.

    Row HP is scaled by the loop's multiplier and bonus plus row_jitter, then
    frozen into a RowHpTable so equal inputs give equal (and comparable)
    specs. Gap and power-up multiplier shrink with the loop but never drop
    below the configured floors. Loop 0 returns the spec object unchanged.
    """
    if loop_count <= 0:
        return spec

    cfg = config or DEFAULT_GAME_CONFIG
    levels = cfg.levels
    scaling = LoopScalingTable(levels).info(loop_count)

    hp_values = tuple(
        max(
            1,
            round_half_up(
                spec.hp_for_row(row) * scaling.brick_hp_multiplier
                + scaling.brick_hp_bonus
                + row_jitter(row, loop_count)
            ),
        )
        for row in range(spec.rows)
    )
    base_gap = spec.gap if spec.gap is not None else levels.default_gap
    gap = max(levels.min_gap, base_gap * scaling.gap_scale)
    power_up = max(
        levels.loop_fallback.min_power_up_chance_multiplier,
        spec.power_up_chance_multiplier * scaling.power_up_chance_multiplier,
    )
    logger.debug(
        "remixed %dx%d spec for loop %d: hp=%s gap=%.2f power_up=%.2f",
        spec.rows,
        spec.cols,
        loop_count,
        hp_values,
        gap,
        power_up,
    )
    return replace(
        spec,
        hp_per_row=RowHpTable(hp_values),
        gap=gap,
        power_up_chance_multiplier=power_up,
    )


def orient_spec(spec: LevelSpec, orientation: str) -> LevelSpec:
    """Adapt a landscape-authored preset to a portrait playfield.

    Portrait screens are narrow, so wide presets (rows < cols) get their rows
    and columns swapped; the row HP function is stretched over the new row
    count. Landscape, or already-tall presets, are returned as-is.
    """
    if orientation != "portrait" or spec.rows >= spec.cols:
        return spec
    hp_per_row = None
    if spec.hp_per_row is not None:
        hp_per_row = RemappedRowHp(spec.hp_per_row, spec.rows, spec.cols)
    return replace(spec, rows=spec.cols, cols=spec.rows, hp_per_row=hp_per_row)
