"""
presets.py

The authored level presets and everything keyed by level index.

A level index walks the presets in order and wraps around forever; each
full pass is one "loop" and feeds the loop scaling table. The rotation
offset lets a seeded/daily run start the catalog at a different preset.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence, Tuple

from config_parsing import ConfigError
from models import (
    ALL,
    DEFAULT_GAME_CONFIG,
    ApplyPattern,
    ConstantHp,
    GameConfig,
    LevelDebugInfo,
    LevelSpec,
    LevelTransformPlan,
    RowBand,
    ShiftColumns,
    ShiftRows,
    StepDivisorHp,
    SwapBands,
    ThresholdHp,
)
from scaling import get_loop_scaling_info

logger = logging.getLogger(__name__)


class EmptyCatalogError(ConfigError):
    """The preset catalog has no levels to hand out."""


LEVEL_PRESETS: Tuple[LevelSpec, ...] = (
    # 1: simple 3x6, all 1 HP
    LevelSpec(rows=3, cols=6, hp_per_row=ConstantHp(1), start_y=100, gap=20),
    # 2: 4x6, bottom two rows 2 HP
    LevelSpec(rows=4, cols=6, hp_per_row=ThresholdHp(threshold=2), start_y=100, gap=20),
    # 3: 5x7, HP climbs every second row
    LevelSpec(
        rows=5,
        cols=7,
        hp_per_row=StepDivisorHp(divisor=2, offset=1),
        start_y=80,
        gap=18,
        power_up_chance_multiplier=1.2,
    ),
    # 4: 6x8
    LevelSpec(
        rows=6,
        cols=8,
        hp_per_row=StepDivisorHp(divisor=2, offset=1),
        start_y=80,
        gap=16,
        power_up_chance_multiplier=1.3,
    ),
    # 5: dense 7x9
    LevelSpec(
        rows=7,
        cols=9,
        hp_per_row=StepDivisorHp(divisor=1.5),
        start_y=60,
        gap=14,
        power_up_chance_multiplier=1.5,
    ),
)

# Keyed by preset index (after the rotation offset is applied).
LEVEL_TRANSFORM_PLANS: Dict[int, LevelTransformPlan] = {
    2: LevelTransformPlan(
        directives=(ShiftRows(rows=(0, 2, 4), steps=2, label="conveyor"),),
        apply_phase_index=1,
    ),
    3: LevelTransformPlan(
        directives=(
            SwapBands(first=RowBand(0, 1), second=RowBand(4, 5), label="flip-bands"),
            ApplyPattern(pattern="hollow", invert=True, label="frame"),
        ),
    ),
    4: LevelTransformPlan(
        directives=(
            ShiftColumns(columns=ALL, steps=-1),
            ApplyPattern(pattern="checker"),
        ),
        apply_phase_index=2,
    ),
}


class PresetCatalog:
    """Ordered presets plus the rotation offset that picks which one is level 0.

    The offset is only ever changed through set_offset, which wraps it into
    [0, preset_count).
    """

    def __init__(
        self,
        presets: Sequence[LevelSpec] = LEVEL_PRESETS,
        transform_plans: Optional[Dict[int, LevelTransformPlan]] = None,
        offset: int = 0,
    ) -> None:
        self.presets: Tuple[LevelSpec, ...] = tuple(presets)
        if not self.presets:
            raise EmptyCatalogError("Level preset catalog is empty.")
        self.transform_plans = (
            dict(LEVEL_TRANSFORM_PLANS) if transform_plans is None else dict(transform_plans)
        )
        self._offset = 0
        self.set_offset(offset)

    @property
    def count(self) -> int:
        return len(self.presets)

    @property
    def offset(self) -> int:
        return self._offset

    def set_offset(self, offset: int) -> int:
        self._require_presets()
        self._offset = int(offset) % self.count
        logger.debug("preset offset set to %d", self._offset)
        return self._offset

    def _require_presets(self) -> None:
        if not self.presets:
            raise EmptyCatalogError("Level preset catalog is empty.")

    def preset_index(self, level_index: int) -> int:
        self._require_presets()
        index = max(0, level_index)
        return (index % self.count + self._offset) % self.count

    def loop_count(self, level_index: int) -> int:
        self._require_presets()
        return max(0, level_index) // self.count

    def is_looped(self, level_index: int) -> bool:
        return self.loop_count(level_index) > 0

    def level_spec(self, level_index: int) -> LevelSpec:
        return self.presets[self.preset_index(level_index)]

    def transform_plan(self, level_index: int) -> Optional[LevelTransformPlan]:
        return self.transform_plans.get(self.preset_index(level_index))


DEFAULT_CATALOG = PresetCatalog()


def _catalog(catalog: Optional[PresetCatalog]) -> PresetCatalog:
    return catalog if catalog is not None else DEFAULT_CATALOG


def get_level_spec(level_index: int, catalog: Optional[PresetCatalog] = None) -> LevelSpec:
    """Preset for a zero-based level index, wrapping around the catalog."""
    return _catalog(catalog).level_spec(level_index)


def get_preset_level_count(catalog: Optional[PresetCatalog] = None) -> int:
    return _catalog(catalog).count


def is_looped_level(level_index: int, catalog: Optional[PresetCatalog] = None) -> bool:
    return _catalog(catalog).is_looped(level_index)


def set_level_preset_offset(offset: int, catalog: Optional[PresetCatalog] = None) -> int:
    return _catalog(catalog).set_offset(offset)


def get_level_preset_offset(catalog: Optional[PresetCatalog] = None) -> int:
    return _catalog(catalog).offset


def get_level_transform_plan(
    level_index: int, catalog: Optional[PresetCatalog] = None
) -> Optional[LevelTransformPlan]:
    return _catalog(catalog).transform_plan(level_index)


def get_level_difficulty_multiplier(
    level_index: int,
    catalog: Optional[PresetCatalog] = None,
    config: Optional[GameConfig] = None,
) -> float:
    """Ball speed multiplier for the loop the level index falls in."""
    loop_count = _catalog(catalog).loop_count(level_index)
    return get_loop_scaling_info(loop_count, config).speed_multiplier


def get_level_debug_info(
    level_index: int,
    catalog: Optional[PresetCatalog] = None,
    config: Optional[GameConfig] = None,
) -> LevelDebugInfo:
    cat = _catalog(catalog)
    cfg = config or DEFAULT_GAME_CONFIG
    loop_count = cat.loop_count(level_index)
    scaling = get_loop_scaling_info(loop_count, cfg)
    return LevelDebugInfo(
        level_index=level_index,
        preset_index=cat.preset_index(level_index),
        is_looped=loop_count > 0,
        loop_count=loop_count,
        difficulty_multiplier=scaling.speed_multiplier,
        spec=cat.level_spec(level_index),
        scaling=scaling,
    )
