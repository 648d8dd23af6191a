from __future__ import annotations

from typing import Optional

from models import (
    BrickDecorationContext,
    BrickDecorationResult,
    BrickDecorator,
    BrickForm,
    BrickTrait,
    RandomSource,
)


def _noop_random() -> float:
    return 0.5


def _rng(context: BrickDecorationContext) -> RandomSource:
    return context.random if context.random is not None else _noop_random


def _keeps_default_shape(context: BrickDecorationContext) -> bool:
    # gamble and fortified bricks need the plain rectangle to read clearly
    return BrickTrait.GAMBLE in context.traits or BrickTrait.FORTIFIED in context.traits


class PortraitBrickDecorator:
    """Shape pattern for tall, narrow playfields.

    Outer slots of the top two rows become circular walls; near-center slots
    on every third row are circles; the rest alternate diamonds and circles
    along diagonals.
    """

    def decorate(self, context: BrickDecorationContext) -> Optional[BrickDecorationResult]:
        if _keeps_default_shape(context):
            return None

        row, slot = context.row, context.slot_index
        center = (context.slot_count - 1) / 2.0
        distance = 0.0 if context.slot_count <= 1 else abs(slot - center) / max(1.0, center)

        if distance >= 0.95 and row <= 1:
            return BrickDecorationResult(form=BrickForm.CIRCLE, breakable=False)
        if distance < 0.3 and row % 3 == 0:
            return BrickDecorationResult(form=BrickForm.CIRCLE)
        if (row + slot) % 4 == 0:
            return BrickDecorationResult(form=BrickForm.DIAMOND)
        if (row + slot) % 4 == 2 and _rng(context)() > 0.35:
            return BrickDecorationResult(form=BrickForm.CIRCLE)
        return None


class LandscapeBrickDecorator:
    def decorate(self, context: BrickDecorationContext) -> Optional[BrickDecorationResult]:
        if _keeps_default_shape(context):
            return None

        diagonal = (context.row + context.slot_index) % 3
        if diagonal == 0:
            return BrickDecorationResult(form=BrickForm.DIAMOND)
        if diagonal == 1 and _rng(context)() > 0.4:
            return BrickDecorationResult(form=BrickForm.CIRCLE)
        return None


def create_brick_decorator(orientation: str) -> BrickDecorator:
    if orientation == "portrait":
        return PortraitBrickDecorator()
    return LandscapeBrickDecorator()
