from __future__ import annotations

from decorators import LandscapeBrickDecorator, PortraitBrickDecorator, create_brick_decorator
from layout import generate_level_layout
from models import BrickDecorationContext, BrickForm, BrickTrait, LayoutOptions, LevelSpec


def _context(row: int, slot: int, slot_count: int = 5, traits=frozenset(), random=None):
    return BrickDecorationContext(
        row=row,
        col=slot,
        slot_index=slot,
        slot_count=slot_count,
        spec=LevelSpec(rows=4, cols=slot_count),
        traits=frozenset(traits),
        random=random,
    )


def test_factory_picks_decorator_by_orientation() -> None:
    assert isinstance(create_brick_decorator("portrait"), PortraitBrickDecorator)
    assert isinstance(create_brick_decorator("landscape"), LandscapeBrickDecorator)


def test_portrait_top_corners_become_circle_walls() -> None:
    result = PortraitBrickDecorator().decorate(_context(row=0, slot=4))
    assert result is not None
    assert result.form is BrickForm.CIRCLE
    assert result.breakable is False


def test_portrait_center_circle_every_third_row() -> None:
    result = PortraitBrickDecorator().decorate(_context(row=3, slot=2))
    assert result is not None
    assert result.form is BrickForm.CIRCLE
    assert result.breakable is None


def test_decorators_leave_trait_bricks_alone() -> None:
    for decorator in (PortraitBrickDecorator(), LandscapeBrickDecorator()):
        assert decorator.decorate(_context(0, 0, traits={BrickTrait.GAMBLE})) is None
        assert decorator.decorate(_context(0, 0, traits={BrickTrait.FORTIFIED})) is None


def test_landscape_diagonals() -> None:
    decorator = LandscapeBrickDecorator()
    diamond = decorator.decorate(_context(row=1, slot=2))
    assert diamond is not None and diamond.form is BrickForm.DIAMOND

    circle = decorator.decorate(_context(row=0, slot=1))
    assert circle is not None and circle.form is BrickForm.CIRCLE

    assert decorator.decorate(_context(row=0, slot=1, random=lambda: 0.1)) is None
    assert decorator.decorate(_context(row=0, slot=2)) is None


def test_portrait_decorator_in_a_generated_layout() -> None:
    spec = LevelSpec(rows=2, cols=5)
    layout = generate_level_layout(
        spec, 100, 40, 1280, LayoutOptions(decorate_brick=PortraitBrickDecorator())
    )
    walls = {(b.row, b.col) for b in layout.bricks if not b.breakable}
    assert walls == {(0, 0), (0, 4), (1, 0), (1, 4)}
    assert layout.breakable_count == 6
    assert all(b.hp == 9999 for b in layout.bricks if not b.breakable)
