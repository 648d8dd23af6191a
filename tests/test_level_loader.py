from __future__ import annotations

import json
import random
from pathlib import Path

import pytest

from layout import generate_level_layout
from level_loader import (
    layout_from_dict,
    layout_to_dict,
    load_level_file,
    phase_from_dict,
    phase_to_dict,
)
from models import BrickTrait, LayoutOptions, RowHpTable, ShiftRows
from presets import get_level_spec
from remix import remix_level
from transforms import generate_transforming_layouts


def test_layout_survives_json() -> None:
    spec = remix_level(get_level_spec(3), 2)
    options = LayoutOptions(random=random.Random(5).random, fortified_chance=0.5, gamble_chance=0.3)
    layout = generate_level_layout(spec, options=options)

    restored = layout_from_dict(json.loads(json.dumps(layout_to_dict(layout))))

    assert restored.bricks == layout.bricks
    assert restored.breakable_count == layout.breakable_count
    assert isinstance(restored.spec.hp_per_row, RowHpTable)
    assert restored.spec.row_hp_values() == spec.row_hp_values()
    assert restored.spec.gap == spec.gap


def test_traits_are_stored_as_sorted_names() -> None:
    spec = get_level_spec(0)
    layout = generate_level_layout(spec, options=LayoutOptions(random=lambda: 0.0, gamble_chance=1.0))
    data = layout_to_dict(layout)
    assert data["bricks"][0]["traits"] == [BrickTrait.GAMBLE.value]
    assert data["bricks"][0]["form"] == "rectangle"


def test_phase_metadata_round_trips() -> None:
    phases = generate_transforming_layouts(get_level_spec(0), [ShiftRows(steps=1)])
    restored = phase_from_dict(phase_to_dict(phases[1]))
    assert restored.metadata == phases[1].metadata
    assert restored.bricks == phases[1].bricks


def test_load_level_file_errors(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_level_file(tmp_path / "nope.json")

    path = tmp_path / "empty.json"
    path.write_text("{}", encoding="utf-8")
    with pytest.raises(ValueError):
        load_level_file(path)
