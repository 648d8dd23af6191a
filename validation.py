from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Tuple

from models import BrickSpec, BrickTrait, LevelLayout, count_breakable


class LayoutValidator:
    """Structural checks for a generated layout.

    Bodies are compared as pygame Rects; bricks that only touch along an edge
    do not count as overlapping.
    """

    def __init__(self, brick_width: float, brick_height: float, field_width: float) -> None:
        self.brick_width = brick_width
        self.brick_height = brick_height
        self.field_width = field_width

    def problems(self, layout: LevelLayout, check_wall_adjacency: bool = True) -> List[str]:
        found: List[str] = []
        found.extend(self._overlaps(layout.bricks))
        found.extend(self._out_of_field(layout.bricks))
        expected = count_breakable(layout.bricks)
        if layout.breakable_count != expected:
            found.append(f"breakable_count {layout.breakable_count} != {expected}")
        for brick in layout.bricks:
            if brick.breakable and brick.hp < 1:
                found.append(f"brick ({brick.row}, {brick.col}) has hp {brick.hp}")
        if check_wall_adjacency:
            found.extend(self._adjacent_walls(layout.bricks))
        return found

    def is_valid(self, layout: LevelLayout, check_wall_adjacency: bool = True) -> bool:
        return not self.problems(layout, check_wall_adjacency)

    def _overlaps(self, bricks: Tuple[BrickSpec, ...]) -> List[str]:
        rects = [b.rect(self.brick_width, self.brick_height) for b in bricks]
        found: List[str] = []
        for i, rect in enumerate(rects):
            for j in rect.collidelistall(rects[i + 1 :]):
                other = bricks[i + 1 + j]
                found.append(
                    f"bricks ({bricks[i].row}, {bricks[i].col}) and ({other.row}, {other.col}) overlap"
                )
        return found

    def _out_of_field(self, bricks: Tuple[BrickSpec, ...]) -> List[str]:
        found: List[str] = []
        for brick in bricks:
            rect = brick.rect(self.brick_width, self.brick_height)
            if rect.left < 0 or rect.right > self.field_width + 1:
                found.append(f"brick ({brick.row}, {brick.col}) leaves the field")
        return found

    def _adjacent_walls(self, bricks: Tuple[BrickSpec, ...]) -> List[str]:
        wall_cols: Dict[int, List[int]] = defaultdict(list)
        for brick in bricks:
            if brick.has_trait(BrickTrait.WALL):
                wall_cols[brick.row].append(brick.col)
        found: List[str] = []
        for row, cols in wall_cols.items():
            cols.sort()
            for a, b in zip(cols, cols[1:]):
                if b - a == 1:
                    found.append(f"row {row} has adjacent walls at columns {a} and {b}")
        return found
