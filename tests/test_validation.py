from __future__ import annotations

from layout import generate_level_layout
from models import BrickSpec, BrickTrait, LevelLayout, LevelSpec
from validation import LayoutValidator


def test_generated_layout_is_valid() -> None:
    layout = generate_level_layout(LevelSpec(rows=3, cols=10), 100, 40, 1000)
    assert LayoutValidator(100, 40, 1000).is_valid(layout)


def test_brick_rect_is_centered() -> None:
    rect = BrickSpec(row=0, col=0, x=50, y=100, hp=1).rect(100, 40)
    assert (rect.left, rect.top, rect.width, rect.height) == (0, 80, 100, 40)
    assert BrickSpec(row=0, col=0, x=50, y=100, hp=1).center.x == 50


def test_overlaps_and_counts_are_reported() -> None:
    spec = LevelSpec(rows=1, cols=2)
    bricks = (
        BrickSpec(row=0, col=0, x=50, y=100, hp=1),
        BrickSpec(row=0, col=1, x=120, y=100, hp=1),
    )
    layout = LevelLayout(bricks=bricks, breakable_count=1, spec=spec)
    problems = LayoutValidator(100, 40, 460).problems(layout)

    assert any("overlap" in p for p in problems)
    assert any("breakable_count" in p for p in problems)


def test_touching_bricks_do_not_overlap() -> None:
    bricks = (
        BrickSpec(row=0, col=0, x=50, y=100, hp=1),
        BrickSpec(row=0, col=1, x=150, y=100, hp=1),
    )
    layout = LevelLayout.from_bricks(bricks, LevelSpec(rows=1, cols=2))
    assert LayoutValidator(100, 40, 200).is_valid(layout)


def test_adjacent_walls_and_field_bounds() -> None:
    wall = frozenset({BrickTrait.WALL})
    bricks = (
        BrickSpec(row=0, col=0, x=50, y=100, hp=9999, traits=wall, breakable=False),
        BrickSpec(row=0, col=1, x=170, y=100, hp=9999, traits=wall, breakable=False),
    )
    layout = LevelLayout.from_bricks(bricks, LevelSpec(rows=1, cols=2))
    validator = LayoutValidator(100, 40, 200)

    problems = validator.problems(layout)
    assert any("adjacent walls" in p for p in problems)
    assert any("leaves the field" in p for p in problems)
    assert not any("adjacent" in p for p in validator.problems(layout, check_wall_adjacency=False))
