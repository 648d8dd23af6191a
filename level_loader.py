from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from models import (
    BrickForm,
    BrickSpec,
    BrickTrait,
    LevelLayout,
    LevelSpec,
    PhaseMetadata,
    RowHpTable,
    TransformingLayoutPhase,
)


def spec_to_dict(spec: LevelSpec) -> Dict[str, Any]:
    """Serialize a spec; the row HP function is stored as its per-row values."""
    return {
        "rows": spec.rows,
        "cols": spec.cols,
        "hp_per_row": list(spec.row_hp_values()),
        "start_y": spec.start_y,
        "gap": spec.gap,
        "power_up_chance_multiplier": spec.power_up_chance_multiplier,
    }


def spec_from_dict(raw: Dict[str, Any]) -> LevelSpec:
    hp_values = raw.get("hp_per_row")
    hp_per_row = None
    if isinstance(hp_values, list) and hp_values:
        hp_per_row = RowHpTable(tuple(int(v) for v in hp_values))
    start_y = raw.get("start_y")
    gap = raw.get("gap")
    return LevelSpec(
        rows=int(raw["rows"]),
        cols=int(raw["cols"]),
        hp_per_row=hp_per_row,
        start_y=float(start_y) if start_y is not None else None,
        gap=float(gap) if gap is not None else None,
        power_up_chance_multiplier=float(raw.get("power_up_chance_multiplier", 1.0)),
    )


def brick_to_dict(brick: BrickSpec) -> Dict[str, Any]:
    return {
        "row": brick.row,
        "col": brick.col,
        "x": brick.x,
        "y": brick.y,
        "hp": brick.hp,
        "traits": sorted(t.value for t in brick.traits),
        "form": brick.form.value,
        "breakable": brick.breakable,
        "is_sensor": brick.is_sensor,
    }


def brick_from_dict(raw: Dict[str, Any]) -> BrickSpec:
    return BrickSpec(
        row=int(raw["row"]),
        col=int(raw["col"]),
        x=float(raw["x"]),
        y=float(raw["y"]),
        hp=int(raw["hp"]),
        traits=frozenset(BrickTrait(t) for t in raw.get("traits", [])),
        form=BrickForm(raw.get("form", BrickForm.RECTANGLE.value)),
        breakable=bool(raw.get("breakable", True)),
        is_sensor=bool(raw.get("is_sensor", False)),
    )


def layout_to_dict(layout: LevelLayout) -> Dict[str, Any]:
    return {
        "spec": spec_to_dict(layout.spec),
        "breakable_count": layout.breakable_count,
        "bricks": [brick_to_dict(b) for b in layout.bricks],
    }


def layout_from_dict(raw: Dict[str, Any]) -> LevelLayout:
    """Rebuild a layout; breakable_count is recomputed from the bricks."""
    spec = spec_from_dict(raw["spec"])
    return LevelLayout.from_bricks((brick_from_dict(b) for b in raw.get("bricks", [])), spec)


def phase_to_dict(phase: TransformingLayoutPhase) -> Dict[str, Any]:
    return {
        "metadata": {
            "phase": phase.metadata.phase,
            "index": phase.metadata.index,
            "total": phase.metadata.total,
        },
        "layout": layout_to_dict(phase.layout),
    }


def phase_from_dict(raw: Dict[str, Any]) -> TransformingLayoutPhase:
    meta = raw["metadata"]
    return TransformingLayoutPhase(
        layout=layout_from_dict(raw["layout"]),
        metadata=PhaseMetadata(
            phase=str(meta["phase"]), index=int(meta["index"]), total=int(meta["total"])
        ),
    )


def find_level_file(levels_dir: Path, index: int) -> Optional[Path]:
    """Return levels_dir/level{index}/level{index}.json if it exists."""
    candidate = levels_dir / f"level{index}" / f"level{index}.json"
    return candidate if candidate.exists() else None


def load_level_file(path: Path) -> Dict[str, Any]:
    """Read a generated level file.

    Returns:
        Dict with "layout" (LevelLayout), "phases" (list of phases, possibly
        empty) and "apply_phase_index" (int or None).

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file has no layout.
    """
    if not path.exists():
        raise FileNotFoundError(f"Level file not found: {path}")
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict) or "layout" not in data:
        raise ValueError(f"{path} does not contain a level layout.")
    phases: List[TransformingLayoutPhase] = [
        phase_from_dict(p) for p in data.get("phases", []) if isinstance(p, dict)
    ]
    return {
        "layout": layout_from_dict(data["layout"]),
        "phases": phases,
        "apply_phase_index": data.get("apply_phase_index"),
    }
