"""
transforms.py

Derives an ordered sequence of layout phases from a base layout.

Phase 0 is always the untransformed base. Each directive then contributes
its own phases, each one cloned from the phase before it, so the effects
accumulate:
- ShiftRows / ShiftColumns: |steps| one-step conveyor rotations of the
  breakable bricks inside each targeted row / column (walls stay put)
- SwapBands: rows of two bands trade places index-for-index
- ApplyPattern: checker or hollow wall overlay
"""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from layout import generate_level_layout
from models import (
    ALL,
    DEFAULT_GAME_CONFIG,
    ApplyPattern,
    BrickSpec,
    GameConfig,
    LayoutOptions,
    LayoutTransformDirective,
    LevelLayout,
    LevelSpec,
    PhaseMetadata,
    ShiftColumns,
    ShiftRows,
    SwapBands,
    Targets,
    TransformingLayoutPhase,
)

logger = logging.getLogger(__name__)

PATTERNS = ("checker", "hollow")


def _shift_steps(steps: object) -> int:
    """Integer step count, or 0 for zero/non-finite/non-numeric steps."""
    if isinstance(steps, bool) or not isinstance(steps, (int, float)):
        return 0
    if not math.isfinite(steps):
        return 0
    return int(steps)


def directive_phase_count(directive: LayoutTransformDirective) -> int:
    if isinstance(directive, ShiftRows) or isinstance(directive, ShiftColumns):
        return abs(_shift_steps(directive.steps))
    if isinstance(directive, SwapBands):
        return 1
    if isinstance(directive, ApplyPattern):
        return 1
    raise TypeError(f"Unsupported layout transform directive: {directive!r}")


def _targeted(value: int, targets: Targets) -> bool:
    if targets == ALL:
        return True
    return value in targets


def _rotate_groups(
    bricks: List[BrickSpec],
    group_key: Callable[[BrickSpec], int],
    order_key: Callable[[BrickSpec], Tuple[int, float]],
    targets: Targets,
    direction: int,
    assign: Callable[[BrickSpec, Tuple[int, float]], BrickSpec],
) -> List[BrickSpec]:
    groups: Dict[int, List[int]] = {}
    for index, brick in enumerate(bricks):
        if not brick.breakable:
            continue
        key = group_key(brick)
        if _targeted(key, targets):
            groups.setdefault(key, []).append(index)

    result = list(bricks)
    for members in groups.values():
        if len(members) < 2:
            continue
        members.sort(key=lambda i: order_key(bricks[i]))
        slots = [order_key(bricks[i]) for i in members]
        n = len(members)
        for position, index in enumerate(members):
            result[index] = assign(bricks[index], slots[(position + direction) % n])
    return result


def shift_rows_once(bricks: Sequence[BrickSpec], targets: Targets, direction: int) -> List[BrickSpec]:
    """Move every breakable brick of each targeted row one slot along the row."""
    return _rotate_groups(
        list(bricks),
        group_key=lambda b: b.row,
        order_key=lambda b: (b.col, b.x),
        targets=targets,
        direction=direction,
        assign=lambda b, slot: replace(b, col=slot[0], x=slot[1]),
    )


def shift_columns_once(bricks: Sequence[BrickSpec], targets: Targets, direction: int) -> List[BrickSpec]:
    """Move every breakable brick of each targeted column one slot along the column."""
    return _rotate_groups(
        list(bricks),
        group_key=lambda b: b.col,
        order_key=lambda b: (b.row, b.y),
        targets=targets,
        direction=direction,
        assign=lambda b, slot: replace(b, row=slot[0], y=slot[1]),
    )


def swap_bands(bricks: Sequence[BrickSpec], directive: SwapBands) -> List[BrickSpec]:
    row_y: Dict[int, float] = {}
    for brick in bricks:
        row_y.setdefault(brick.row, brick.y)

    first = [r for r in directive.first.rows() if r in row_y]
    second = [r for r in directive.second.rows() if r in row_y]

    mapping: Dict[int, int] = {}
    for a, b in zip(first, second):
        if a == b or a in mapping or b in mapping:
            continue
        mapping[a] = b
        mapping[b] = a

    return [
        replace(brick, row=mapping[brick.row], y=row_y[mapping[brick.row]])
        if brick.row in mapping
        else brick
        for brick in bricks
    ]


def apply_pattern(bricks: Sequence[BrickSpec], directive: ApplyPattern, wall_hp: int) -> List[BrickSpec]:
    if directive.pattern not in PATTERNS:
        logger.debug("unknown pattern %r, phase left unchanged", directive.pattern)
        return list(bricks)
    if not bricks:
        return []

    if directive.pattern == "checker":
        parity = 1 if directive.invert else 0

        def is_wall(b: BrickSpec) -> bool:
            return (b.row + b.col) % 2 == parity

    else:
        rows = [b.row for b in bricks]
        cols = [b.col for b in bricks]
        edge_rows = {min(rows), max(rows)}
        edge_cols = {min(cols), max(cols)}

        def is_wall(b: BrickSpec) -> bool:
            edge = b.row in edge_rows or b.col in edge_cols
            return edge if directive.invert else not edge

    return [brick.as_wall(wall_hp) if is_wall(brick) else brick for brick in bricks]


def _default_label(directive: LayoutTransformDirective, step: int, count: int) -> str:
    if isinstance(directive, ShiftRows):
        return f"shift-rows {step}/{count}"
    if isinstance(directive, ShiftColumns):
        return f"shift-columns {step}/{count}"
    if isinstance(directive, SwapBands):
        return "swap-bands"
    return f"pattern-{directive.pattern}{'-inverted' if directive.invert else ''}"


class LayoutTransformPipeline:
    def __init__(self, config: Optional[GameConfig] = None) -> None:
        self.config = config or DEFAULT_GAME_CONFIG

    def _steps(
        self, directive: LayoutTransformDirective, bricks: List[BrickSpec]
    ) -> Iterator[List[BrickSpec]]:
        """Yield the brick list after each phase this directive contributes."""
        if isinstance(directive, ShiftRows) or isinstance(directive, ShiftColumns):
            steps = _shift_steps(directive.steps)
            if steps == 0:
                logger.debug("skipping %r: zero or invalid steps", directive)
                return
            direction = 1 if steps > 0 else -1
            for _ in range(abs(steps)):
                if isinstance(directive, ShiftRows):
                    bricks = shift_rows_once(bricks, directive.rows, direction)
                else:
                    bricks = shift_columns_once(bricks, directive.columns, direction)
                yield bricks
        elif isinstance(directive, SwapBands):
            yield swap_bands(bricks, directive)
        elif isinstance(directive, ApplyPattern):
            yield apply_pattern(bricks, directive, self.config.levels.wall_hp)
        else:
            raise TypeError(f"Unsupported layout transform directive: {directive!r}")

    def run(
        self, base: LevelLayout, directives: Sequence[LayoutTransformDirective]
    ) -> List[TransformingLayoutPhase]:
        total = 1 + sum(directive_phase_count(d) for d in directives)
        phases = [TransformingLayoutPhase(base, PhaseMetadata("base", 0, total))]

        bricks = list(base.bricks)
        for directive in directives:
            count = directive_phase_count(directive)
            for step, stepped in enumerate(self._steps(directive, bricks), start=1):
                bricks = stepped
                label = directive.label or _default_label(directive, step, count)
                if directive.label and count > 1:
                    label = f"{directive.label} {step}/{count}"
                phases.append(
                    TransformingLayoutPhase(
                        LevelLayout.from_bricks(bricks, base.spec),
                        PhaseMetadata(label, len(phases), total),
                    )
                )
        return phases


def generate_transforming_layouts(
    spec: LevelSpec,
    directives: Sequence[LayoutTransformDirective],
    options: Optional[LayoutOptions] = None,
    brick_width: Optional[float] = None,
    brick_height: Optional[float] = None,
    field_width: Optional[float] = None,
    config: Optional[GameConfig] = None,
) -> List[TransformingLayoutPhase]:
    """Generate the base layout for spec, then one phase per directive step."""
    base = generate_level_layout(spec, brick_width, brick_height, field_width, options, config)
    return LayoutTransformPipeline(config).run(base, directives)
