from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, FrozenSet, Iterable, List, Optional, Protocol, Tuple, Union

import pygame

RandomSource = Callable[[], float]
RowHp = Callable[[int], int]


class BrickTrait(str, Enum):
    FORTIFIED = "fortified"
    GAMBLE = "gamble"
    WALL = "wall"


class BrickForm(str, Enum):
    RECTANGLE = "rectangle"
    DIAMOND = "diamond"
    CIRCLE = "circle"


# ----------------------------
# Row HP functions
# ----------------------------


@dataclass(frozen=True)
class ConstantHp:
    hp: int = 1

    def __call__(self, row: int) -> int:
        return self.hp


@dataclass(frozen=True)
class ThresholdHp:
    """`high` from `threshold` onwards, `low` above it."""

    threshold: int
    low: int = 1
    high: int = 2

    def __call__(self, row: int) -> int:
        return self.high if row >= self.threshold else self.low


@dataclass(frozen=True)
class StepDivisorHp:
    """max(minimum, offset + floor(row / divisor))."""

    divisor: float
    offset: int = 0
    minimum: int = 1

    def __call__(self, row: int) -> int:
        return max(self.minimum, self.offset + int(math.floor(row / self.divisor)))


@dataclass(frozen=True)
class RowHpTable:
    """Precomputed per-row HP; rows outside the table use the nearest entry."""

    values: Tuple[int, ...]

    def __call__(self, row: int) -> int:
        if not self.values:
            return 1
        index = max(0, min(len(self.values) - 1, row))
        return self.values[index]


@dataclass(frozen=True)
class RemappedRowHp:
    """Stretches a row function authored for `source_rows` over `target_rows`."""

    source: RowHp
    source_rows: int
    target_rows: int

    def __call__(self, row: int) -> int:
        max_source = max(0, self.source_rows - 1)
        if self.target_rows <= 1:
            return self.source(min(max_source, row))
        clamped = max(0, min(self.target_rows - 1, row))
        mapped = int(math.floor(clamped / (self.target_rows - 1) * max_source + 0.5))
        return self.source(max(0, min(max_source, mapped)))


# ----------------------------
# Level and brick specs
# ----------------------------


@dataclass(frozen=True)
class LevelSpec:
    rows: int
    cols: int
    hp_per_row: Optional[RowHp] = None
    start_y: Optional[float] = None
    gap: Optional[float] = None
    power_up_chance_multiplier: float = 1.0

    def hp_for_row(self, row: int) -> int:
        return self.hp_per_row(row) if self.hp_per_row is not None else 1

    def row_hp_values(self) -> Tuple[int, ...]:
        return tuple(self.hp_for_row(row) for row in range(self.rows))


@dataclass(frozen=True)
class BrickSpec:
    row: int
    col: int
    x: float
    y: float
    hp: int
    traits: FrozenSet[BrickTrait] = frozenset()
    form: BrickForm = BrickForm.RECTANGLE
    breakable: bool = True
    is_sensor: bool = False

    @property
    def center(self) -> pygame.Vector2:
        return pygame.Vector2(self.x, self.y)

    def rect(self, width: float, height: float) -> pygame.Rect:
        """Axis-aligned bounds of the brick body, rounded to whole pixels."""
        left = int(math.floor(self.x - width / 2.0 + 0.5))
        top = int(math.floor(self.y - height / 2.0 + 0.5))
        return pygame.Rect(left, top, int(round(width)), int(round(height)))

    def has_trait(self, trait: BrickTrait) -> bool:
        return trait in self.traits

    def as_wall(self, wall_hp: int) -> "BrickSpec":
        return replace(
            self,
            traits=self.traits | {BrickTrait.WALL},
            breakable=False,
            hp=wall_hp,
        )


def count_breakable(bricks: Iterable[BrickSpec]) -> int:
    return sum(1 for brick in bricks if brick.breakable is not False)


@dataclass(frozen=True)
class LevelLayout:
    bricks: Tuple[BrickSpec, ...]
    breakable_count: int
    spec: LevelSpec

    @classmethod
    def from_bricks(cls, bricks: Iterable[BrickSpec], spec: LevelSpec) -> "LevelLayout":
        items = tuple(bricks)
        return cls(bricks=items, breakable_count=count_breakable(items), spec=spec)

    @classmethod
    def empty(cls, spec: LevelSpec) -> "LevelLayout":
        return cls(bricks=(), breakable_count=0, spec=spec)

    def rows(self) -> List[int]:
        return sorted({brick.row for brick in self.bricks})

    def columns(self) -> List[int]:
        return sorted({brick.col for brick in self.bricks})


# ----------------------------
# Loop scaling
# ----------------------------


@dataclass(frozen=True)
class LoopScalingInfo:
    loop_count: int
    speed_multiplier: float
    brick_hp_multiplier: float
    brick_hp_bonus: float
    power_up_chance_multiplier: float
    gap_scale: float
    fortified_chance: float
    void_column_chance: float
    center_fortified_bias: float
    max_void_columns: int


# ----------------------------
# Brick decoration
# ----------------------------


@dataclass(frozen=True)
class BrickDecorationContext:
    row: int
    col: int
    slot_index: int
    slot_count: int
    spec: LevelSpec
    traits: FrozenSet[BrickTrait] = frozenset()
    random: Optional[RandomSource] = None


@dataclass(frozen=True)
class BrickDecorationResult:
    form: Optional[BrickForm] = None
    traits: Tuple[BrickTrait, ...] = ()
    breakable: Optional[bool] = None
    is_sensor: Optional[bool] = None
    hp: Optional[float] = None


class BrickDecorator(Protocol):
    def decorate(self, context: BrickDecorationContext) -> Optional[BrickDecorationResult]:
        ...


@dataclass(frozen=True)
class LayoutOptions:
    """Knobs for a single generate_level_layout call.

    Every randomized feature stays off unless both a random source and a
    non-zero chance are given.
    """

    random: Optional[RandomSource] = None
    fortified_chance: float = 0.0
    void_column_chance: float = 0.0
    max_void_columns: Optional[int] = None
    center_fortified_bias: float = 0.0
    gamble_chance: float = 0.0
    max_gamble_bricks: Optional[int] = None
    decorate_brick: Optional[BrickDecorator] = None


# ----------------------------
# Layout transforms
# ----------------------------

ALL = "all"
Targets = Union[str, Tuple[int, ...]]


@dataclass(frozen=True)
class RowBand:
    """Inclusive row range."""

    start: int
    end: int

    def rows(self) -> List[int]:
        lo, hi = min(self.start, self.end), max(self.start, self.end)
        return list(range(lo, hi + 1))


@dataclass(frozen=True)
class ShiftRows:
    rows: Targets = ALL
    steps: int = 1
    label: Optional[str] = None


@dataclass(frozen=True)
class ShiftColumns:
    columns: Targets = ALL
    steps: int = 1
    label: Optional[str] = None


@dataclass(frozen=True)
class SwapBands:
    first: RowBand
    second: RowBand
    label: Optional[str] = None


@dataclass(frozen=True)
class ApplyPattern:
    pattern: str = "checker"  # checker|hollow
    invert: bool = False
    label: Optional[str] = None


LayoutTransformDirective = Union[ShiftRows, ShiftColumns, SwapBands, ApplyPattern]


@dataclass(frozen=True)
class PhaseMetadata:
    phase: str
    index: int
    total: int


@dataclass(frozen=True)
class TransformingLayoutPhase:
    layout: LevelLayout
    metadata: PhaseMetadata

    @property
    def bricks(self) -> Tuple[BrickSpec, ...]:
        return self.layout.bricks

    @property
    def breakable_count(self) -> int:
        return self.layout.breakable_count


@dataclass(frozen=True)
class LevelTransformPlan:
    directives: Tuple[LayoutTransformDirective, ...]
    apply_phase_index: Optional[int] = None


@dataclass(frozen=True)
class LevelDebugInfo:
    level_index: int
    preset_index: int
    is_looped: bool
    loop_count: int
    difficulty_multiplier: float
    spec: LevelSpec
    scaling: LoopScalingInfo


# ----------------------------
# Game configuration
# ----------------------------


@dataclass(frozen=True)
class PlayfieldConfig:
    width: float = 1280.0
    height: float = 720.0


@dataclass(frozen=True)
class BrickSizeConfig:
    width: float = 100.0
    height: float = 40.0


@dataclass(frozen=True)
class LoopProgressionStep:
    speed_multiplier: float
    brick_hp_multiplier: float
    brick_hp_bonus: float
    power_up_chance_multiplier: float
    gap_scale: float
    fortified_chance: float
    void_column_chance: float
    center_fortified_bias: float
    max_void_columns: Optional[int] = None


@dataclass(frozen=True)
class LoopFallbackConfig:
    speed_multiplier_increment: float = 0.06
    brick_hp_multiplier_increment: float = 0.2
    brick_hp_bonus_increment: float = 0.75
    power_up_chance_multiplier_step: float = -0.05
    gap_scale_step: float = -0.04
    fortified_chance_increment: float = 0.05
    void_column_chance_increment: float = 0.03
    center_fortified_bias_increment: float = 0.05
    max_speed_multiplier: float = 2.0
    min_power_up_chance_multiplier: float = 0.55
    min_gap_scale: float = 0.7
    max_fortified_chance: float = 0.6
    max_void_column_chance: float = 0.25
    max_center_fortified_bias: float = 0.8
    max_void_columns_increment: int = 1
    max_void_columns_cap: int = 5


@dataclass(frozen=True)
class GambleConfig:
    base_chance: float = 0.08
    loop_bonus: float = 0.025
    max_chance: float = 0.22
    max_per_level: int = 3
    prime_reset_hp: int = 1


DEFAULT_LOOP_PROGRESSION: Tuple[LoopProgressionStep, ...] = (
    LoopProgressionStep(
        speed_multiplier=1.08,
        brick_hp_multiplier=1.25,
        brick_hp_bonus=0.5,
        power_up_chance_multiplier=0.9,
        gap_scale=0.95,
        fortified_chance=0.12,
        void_column_chance=0.05,
        center_fortified_bias=0.35,
        max_void_columns=2,
    ),
    LoopProgressionStep(
        speed_multiplier=1.16,
        brick_hp_multiplier=1.4,
        brick_hp_bonus=1.0,
        power_up_chance_multiplier=0.85,
        gap_scale=0.9,
        fortified_chance=0.2,
        void_column_chance=0.08,
        center_fortified_bias=0.45,
        max_void_columns=3,
    ),
    LoopProgressionStep(
        speed_multiplier=1.24,
        brick_hp_multiplier=1.6,
        brick_hp_bonus=1.5,
        power_up_chance_multiplier=0.8,
        gap_scale=0.85,
        fortified_chance=0.28,
        void_column_chance=0.12,
        center_fortified_bias=0.5,
        max_void_columns=3,
    ),
)


@dataclass(frozen=True)
class LevelsConfig:
    default_gap: float = 20.0
    default_start_y: float = 100.0
    min_gap: float = 8.0
    max_void_columns: int = 2
    max_brick_hp: int = 2
    wall_hp: int = 9999
    loop_progression: Tuple[LoopProgressionStep, ...] = DEFAULT_LOOP_PROGRESSION
    loop_fallback: LoopFallbackConfig = field(default_factory=LoopFallbackConfig)
    gamble: GambleConfig = field(default_factory=GambleConfig)


@dataclass(frozen=True)
class GameConfig:
    playfield: PlayfieldConfig = field(default_factory=PlayfieldConfig)
    bricks: BrickSizeConfig = field(default_factory=BrickSizeConfig)
    levels: LevelsConfig = field(default_factory=LevelsConfig)


DEFAULT_GAME_CONFIG = GameConfig()
