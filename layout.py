"""
layout.py

Turns a LevelSpec into a concrete grid of bricks.

Stages, in order:
- ColumnGapResolver: fit the requested columns (and gap) into the field width
- VoidColumnSelector: drop a few whole columns (randomized difficulty only)
- WallSlotPlanner: per row, choose sparse non-adjacent slots for wall bricks
- TraitAssigner: fortified / gamble traits, decoration hook, HP clamping

A row is decorated in full before its planned walls are applied, so a
planned wall never lands next to a wall the decorator already placed.

All stages share one optional random source, a `() -> float` in [0, 1).
The same spec, options and seeded random source always produce the same
layout.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Set

from models import (
    DEFAULT_GAME_CONFIG,
    BrickDecorationContext,
    BrickDecorationResult,
    BrickForm,
    BrickSpec,
    BrickTrait,
    GameConfig,
    LayoutOptions,
    LevelLayout,
    LevelsConfig,
    LevelSpec,
    RandomSource,
)
from utils import clamp01, clamp_int, is_finite_number, round_half_up

logger = logging.getLogger(__name__)

WIDTH_TOLERANCE_PX = 0.5
FORTIFIED_HP_RATIO = 0.35
WALL_EDGE_PREFERENCE = 0.18


def _pick_index(count: int, random: Optional[RandomSource]) -> int:
    if random is None:
        return count // 2
    return clamp_int(int(random() * count), 0, count - 1)


# ----------------------------
# Columns and gap
# ----------------------------


@dataclass(frozen=True)
class ColumnGrid:
    slot_count: int
    gap: float
    first_column_index: int
    start_x: float
    trimmed_for_width: bool

    def slot_x(self, slot: int, brick_width: float) -> float:
        return self.start_x + slot * (brick_width + self.gap)


class ColumnGapResolver:
    """Largest column count (and gap) that fits the field, centered."""

    def __init__(self, min_gap: float) -> None:
        self.min_gap = max(0.0, min_gap)

    def resolve(
        self,
        requested_cols: int,
        brick_width: float,
        brick_height: float,
        field_width: float,
        desired_gap: float,
    ) -> Optional[ColumnGrid]:
        # brick_height does not constrain columns; it is accepted so callers
        # can pass the full brick size through one place.
        if requested_cols <= 0 or brick_width <= 0 or brick_width > field_width:
            return None

        desired_gap = max(self.min_gap, desired_gap)
        cols = requested_cols
        while True:
            gap = self._gap_for(cols, brick_width, field_width, desired_gap)
            total = cols * brick_width + (cols - 1) * gap
            if total <= field_width + WIDTH_TOLERANCE_PX:
                break
            if cols == 1:
                return None
            cols -= 1

        first = clamp_int((requested_cols - cols) // 2, 0, requested_cols - cols)
        start_x = (field_width - total) / 2.0 + brick_width / 2.0
        trimmed = cols < requested_cols
        if trimmed:
            logger.debug(
                "trimmed %d requested columns to %d (field=%.1f, brick=%.1f, gap=%.2f)",
                requested_cols,
                cols,
                field_width,
                brick_width,
                gap,
            )
        return ColumnGrid(
            slot_count=cols,
            gap=gap,
            first_column_index=first,
            start_x=start_x,
            trimmed_for_width=trimmed,
        )

    def _gap_for(self, cols: int, brick_width: float, field_width: float, desired_gap: float) -> float:
        if cols <= 1:
            return desired_gap
        max_gap = (field_width - cols * brick_width) / (cols - 1)
        return max(self.min_gap, min(desired_gap, max_gap))


# ----------------------------
# Walls
# ----------------------------


class WallSlotPlanner:
    """Picks sparse wall slots for a row: edges first, never two side by side.

    Rows under MIN_SLOTS never get walls so a wall can never close a row.
    Rows that kept their full width are left mostly open; width-trimmed rows
    always get their edges walled.
    """

    MIN_SLOTS = 3
    UNTRIMMED_MIN_SLOTS = 7
    UNTRIMMED_EDGE_SLOTS = 9

    def __init__(self, random: Optional[RandomSource]) -> None:
        self.random = random

    def _budget(self, slot_count: int, trimmed_for_width: bool) -> int:
        if trimmed_for_width:
            return 3 if slot_count >= 9 else 2
        return 2 if slot_count >= 10 else 1

    def plan(self, slot_count: int, trimmed_for_width: bool) -> FrozenSet[int]:
        if slot_count < self.MIN_SLOTS:
            return frozenset()
        if not trimmed_for_width and slot_count < self.UNTRIMMED_MIN_SLOTS:
            return frozenset()

        edge_pool: List[int] = [0, slot_count - 1]
        interior_pool: List[int] = list(range(1, slot_count - 1))
        walls: Set[int] = set()

        def place(slot: int) -> None:
            walls.add(slot)
            for blocked in (slot - 1, slot, slot + 1):
                if blocked in edge_pool:
                    edge_pool.remove(blocked)
                if blocked in interior_pool:
                    interior_pool.remove(blocked)

        if trimmed_for_width or slot_count >= self.UNTRIMMED_EDGE_SLOTS:
            for edge in (0, slot_count - 1):
                if edge in edge_pool:
                    place(edge)

        budget = self._budget(slot_count, trimmed_for_width)
        while budget > 0 and (edge_pool or interior_pool):
            use_edge = not interior_pool or (
                bool(edge_pool)
                and self.random is not None
                and self.random() < WALL_EDGE_PREFERENCE
            )
            pool = edge_pool if use_edge else interior_pool
            place(pool[_pick_index(len(pool), self.random)])
            budget -= 1

        return frozenset(walls)


# ----------------------------
# Void columns
# ----------------------------


class VoidColumnSelector:
    def __init__(self, random: Optional[RandomSource]) -> None:
        self.random = random

    def select(self, slot_count: int, chance: float, max_void_columns: int) -> FrozenSet[int]:
        if slot_count <= 1 or chance <= 0 or self.random is None:
            return frozenset()
        limit = clamp_int(max_void_columns, 0, slot_count - 1)
        voided: List[int] = []
        for slot in range(slot_count):
            if len(voided) >= limit:
                break
            if self.random() < chance:
                voided.append(slot)
        if voided and len(voided) >= slot_count:
            voided.pop(0)
        if voided:
            logger.debug("voided slots %s of %d", voided, slot_count)
        return frozenset(voided)


# ----------------------------
# Traits and HP
# ----------------------------


@dataclass
class BrickDraft:
    """A brick whose traits and decoration are settled but not its wall state."""

    row: int
    slot: int
    col: int
    hp: int
    traits: Set[BrickTrait]
    result: Optional[BrickDecorationResult]

    @property
    def decorated_wall(self) -> bool:
        return self.result is not None and self.result.breakable is False


def settle_wall_slots(planned: FrozenSet[int], decorated: FrozenSet[int]) -> FrozenSet[int]:
    """Drop planned walls that would sit next to a wall the decorator placed."""
    kept = frozenset(
        slot
        for slot in planned
        if slot in decorated or (slot - 1 not in decorated and slot + 1 not in decorated)
    )
    if kept != planned:
        logger.debug("dropped planned walls %s next to decorated walls", sorted(planned - kept))
    return kept


class TraitAssigner:
    """Decides traits, form, breakability and HP for one brick at a time.

    Holds the level-wide gamble counter, so use one instance per layout.
    """

    def __init__(
        self,
        spec: LevelSpec,
        options: LayoutOptions,
        levels: LevelsConfig,
        slot_count: int,
    ) -> None:
        self.spec = spec
        self.options = options
        self.levels = levels
        self.slot_count = slot_count
        self.random = options.random
        self.gamble_count = 0
        self.max_gamble = (
            options.max_gamble_bricks if options.max_gamble_bricks is not None else float("inf")
        )

    def _normalized_center_distance(self, slot: int) -> float:
        if self.slot_count <= 1:
            return 0.0
        center = (self.slot_count - 1) / 2.0
        return min(1.0, abs(slot - center) / max(1.0, center))

    def _roll_fortified(self, slot: int) -> bool:
        chance = self.options.fortified_chance
        if self.random is None or chance <= 0:
            return False
        bias = self.options.center_fortified_bias
        adjusted = clamp01(chance * (1.0 + bias * (1.0 - self._normalized_center_distance(slot))))
        return self.random() < adjusted

    def _roll_gamble(self, row_has_gamble: bool) -> bool:
        chance = self.options.gamble_chance
        if self.random is None or chance <= 0 or row_has_gamble:
            return False
        if self.gamble_count >= self.max_gamble:
            return False
        return self.random() < chance

    def _decorate(self, context: BrickDecorationContext) -> Optional[BrickDecorationResult]:
        decorator = self.options.decorate_brick
        if decorator is None:
            return None
        decorate = getattr(decorator, "decorate", decorator)
        return decorate(context)

    def _decoration_hp(self, result: Optional[BrickDecorationResult]) -> Optional[int]:
        if result is None or result.hp is None:
            return None
        if not is_finite_number(result.hp) or result.hp <= 0:
            logger.warning("ignoring decoration hp override %r", result.hp)
            return None
        return max(1, round_half_up(result.hp))

    def draft(self, row: int, slot: int, col: int, row_has_gamble: bool) -> BrickDraft:
        """Roll traits and run the decoration hook for one slot."""
        hp = self.spec.hp_for_row(row)
        traits: Set[BrickTrait] = set()

        if self._roll_fortified(slot):
            hp += max(1, round_half_up(hp * FORTIFIED_HP_RATIO))
            traits.add(BrickTrait.FORTIFIED)

        if BrickTrait.FORTIFIED not in traits and self._roll_gamble(row_has_gamble):
            traits.add(BrickTrait.GAMBLE)
            self.gamble_count += 1
            hp = self.levels.gamble.prime_reset_hp

        result = self._decorate(
            BrickDecorationContext(
                row=row,
                col=col,
                slot_index=slot,
                slot_count=self.slot_count,
                spec=self.spec,
                traits=frozenset(traits),
                random=self.random,
            )
        )
        return BrickDraft(row=row, slot=slot, col=col, hp=hp, traits=traits, result=result)

    def finish(self, draft: BrickDraft, x: float, y: float, planned_wall: bool) -> BrickSpec:
        """Resolve breakability, form and HP; the decoration wins over the wall plan."""
        slot, hp, result = draft.slot, draft.hp, draft.result
        traits = set(draft.traits)

        form: Optional[BrickForm] = None
        breakable: Optional[bool] = None
        is_sensor = False
        if result is not None:
            traits.update(result.traits)
            form = result.form
            breakable = result.breakable
            if result.is_sensor is not None:
                is_sensor = result.is_sensor
        hp_override = self._decoration_hp(result)
        if hp_override is not None:
            hp = hp_override

        if breakable is None:
            breakable = not (planned_wall and BrickTrait.GAMBLE not in traits)

        if not breakable:
            traits.add(BrickTrait.WALL)
            if form is None:
                form = BrickForm.DIAMOND if slot % 2 == 0 else BrickForm.CIRCLE
            if hp_override is None:
                hp = self.levels.wall_hp
        else:
            hp = clamp_int(hp, 1, self.levels.max_brick_hp)

        return BrickSpec(
            row=draft.row,
            col=draft.col,
            x=x,
            y=y,
            hp=hp,
            traits=frozenset(traits),
            form=form or BrickForm.RECTANGLE,
            breakable=breakable,
            is_sensor=is_sensor,
        )


# ----------------------------
# Orchestration
# ----------------------------


class LevelLayoutGenerator:
    def __init__(self, config: Optional[GameConfig] = None) -> None:
        self.config = config or DEFAULT_GAME_CONFIG
        self.levels = self.config.levels
        self.resolver = ColumnGapResolver(self.levels.min_gap)

    def generate(
        self,
        spec: LevelSpec,
        brick_width: float,
        brick_height: float,
        field_width: float,
        options: Optional[LayoutOptions] = None,
    ) -> LevelLayout:
        options = options or LayoutOptions()
        desired_gap = spec.gap if spec.gap is not None else self.levels.default_gap
        start_y = spec.start_y if spec.start_y is not None else self.levels.default_start_y

        grid = self.resolver.resolve(spec.cols, brick_width, brick_height, field_width, desired_gap)
        if grid is None or spec.rows <= 0:
            logger.debug("no room for a %dx%d layout in %.1fpx", spec.rows, spec.cols, field_width)
            return LevelLayout.empty(spec)

        max_void = (
            options.max_void_columns
            if options.max_void_columns is not None
            else self.levels.max_void_columns
        )
        voids = VoidColumnSelector(options.random).select(
            grid.slot_count, options.void_column_chance, max_void
        )
        planner = WallSlotPlanner(options.random)
        assigner = TraitAssigner(spec, options, self.levels, grid.slot_count)

        # rows keep the unsqueezed gap; only the width is constrained
        row_gap = max(self.levels.min_gap, desired_gap)

        bricks: List[BrickSpec] = []
        for row in range(spec.rows):
            planned = planner.plan(grid.slot_count, grid.trimmed_for_width)
            y = start_y + row * (brick_height + row_gap)

            drafts: List[BrickDraft] = []
            row_has_gamble = False
            for slot in range(grid.slot_count):
                if slot in voids:
                    continue
                draft = assigner.draft(
                    row, slot, grid.first_column_index + slot, row_has_gamble
                )
                row_has_gamble = row_has_gamble or BrickTrait.GAMBLE in draft.traits
                drafts.append(draft)

            decorated = frozenset(d.slot for d in drafts if d.decorated_wall)
            wall_slots = settle_wall_slots(planned, decorated)
            for draft in drafts:
                bricks.append(
                    assigner.finish(
                        draft,
                        x=grid.slot_x(draft.slot, brick_width),
                        y=y,
                        planned_wall=draft.slot in wall_slots,
                    )
                )

        return LevelLayout.from_bricks(bricks, spec)


def generate_level_layout(
    spec: LevelSpec,
    brick_width: Optional[float] = None,
    brick_height: Optional[float] = None,
    field_width: Optional[float] = None,
    options: Optional[LayoutOptions] = None,
    config: Optional[GameConfig] = None,
) -> LevelLayout:
    """Generate the brick layout for a spec.

    Brick size and field width default to the game config. Returns an empty
    layout (no error) when not even one brick fits.
    """
    cfg = config or DEFAULT_GAME_CONFIG
    return LevelLayoutGenerator(cfg).generate(
        spec,
        brick_width if brick_width is not None else cfg.bricks.width,
        brick_height if brick_height is not None else cfg.bricks.height,
        field_width if field_width is not None else cfg.playfield.width,
        options,
    )
