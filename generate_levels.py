#!/usr/bin/env python3
"""
generate_levels.py

Generates brick-breaker level layouts from the preset catalog.

Per generated level k:
- Creates:  levels/level{k}/
- Writes:   levels/level{k}/level{k}.json

Key properties:
- Preset picked by level index (wrapping, with optional rotation offset)
- Looped levels are remixed and scaled by the loop scaling table
- Void columns, fortified and gamble bricks come from one seeded rng per level
- Presets with a transform plan also get their derived layout phases
- Every layout is structurally validated before it is written
"""

from __future__ import annotations

import argparse
import json
import logging
import random
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from config_io import load_game_config
from decorators import create_brick_decorator
from layout import generate_level_layout
from level_loader import layout_to_dict, phase_to_dict
from models import DEFAULT_GAME_CONFIG, GameConfig, LevelLayout, TransformingLayoutPhase
from presets import PresetCatalog
from remix import orient_spec, remix_level
from scaling import build_generation_options
from transforms import LayoutTransformPipeline
from validation import LayoutValidator

LEVEL_DIR_RE = re.compile(r"^level(\d+)$", re.IGNORECASE)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LevelPaths:
    folder: Path
    json_path: Path


@dataclass
class GeneratedLevel:
    index: int
    preset_index: int
    loop_count: int
    layout: LevelLayout
    phases: List[TransformingLayoutPhase]
    apply_phase_index: Optional[int]


# ----------------------------
# Index
# ----------------------------


class LevelIndexScanner:
    def __init__(self, levels_root: Path) -> None:
        self.levels_root = levels_root

    def last_level_index(self) -> int:
        """Highest k with an existing levels/level{k} folder, or -1 if none."""
        if not self.levels_root.exists():
            return -1
        indices: List[int] = []
        for child in self.levels_root.iterdir():
            if not child.is_dir():
                continue
            m = LEVEL_DIR_RE.match(child.name)
            if not m:
                continue
            try:
                indices.append(int(m.group(1)))
            except ValueError:
                continue
        return max(indices) if indices else -1


# ----------------------------
# Writer
# ----------------------------


class LevelWriter:
    def __init__(self, levels_root: Path) -> None:
        self.levels_root = levels_root

    def paths_for(self, idx: int) -> LevelPaths:
        folder = self.levels_root / f"level{idx}"
        return LevelPaths(folder=folder, json_path=folder / f"level{idx}.json")

    def write(self, level: GeneratedLevel) -> None:
        paths = self.paths_for(level.index)
        paths.folder.mkdir(parents=True, exist_ok=False)

        payload = {
            "level_index": level.index,
            "preset_index": level.preset_index,
            "loop_count": level.loop_count,
            "layout": layout_to_dict(level.layout),
            "phases": [phase_to_dict(p) for p in level.phases],
            "apply_phase_index": level.apply_phase_index,
        }
        paths.json_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


# ----------------------------
# Generator orchestration
# ----------------------------


class LevelGenerator:
    def __init__(
        self,
        levels_root: Path,
        rng: random.Random,
        config: GameConfig = DEFAULT_GAME_CONFIG,
        orientation: str = "landscape",
        preset_offset: int = 0,
    ) -> None:
        self.levels_root = levels_root
        self.rng = rng
        self.config = config
        self.orientation = orientation

        self.catalog = PresetCatalog(offset=preset_offset)
        self.decorator = create_brick_decorator(orientation)
        self.pipeline = LayoutTransformPipeline(config)
        self.scanner = LevelIndexScanner(levels_root)
        self.writer = LevelWriter(levels_root)
        self.validator = LayoutValidator(
            config.bricks.width, config.bricks.height, config.playfield.width
        )

    def generate(self, count: int) -> None:
        self.levels_root.mkdir(parents=True, exist_ok=True)

        last_idx = self.scanner.last_level_index()
        for i in range(count):
            idx = last_idx + 1 + i
            level = self.build(idx)
            self.writer.write(level)

            print(
                f"Generated level{idx}: preset={level.preset_index} loop={level.loop_count} "
                f"| bricks={len(level.layout.bricks)} breakable={level.layout.breakable_count} "
                f"phases={len(level.phases)}"
            )

    def build(self, idx: int) -> GeneratedLevel:
        loop_count = self.catalog.loop_count(idx)
        spec = orient_spec(self.catalog.level_spec(idx), self.orientation)
        spec = remix_level(spec, loop_count, self.config)

        # one rng per level so a single level can be replayed from the run seed
        layout_rng = random.Random(self.rng.getrandbits(32))
        options = build_generation_options(
            loop_count, layout_rng.random, self.decorator, self.config
        )
        layout = generate_level_layout(spec, options=options, config=self.config)

        problems = self.validator.problems(layout)
        if problems:
            raise RuntimeError(f"Generated an invalid layout for level{idx}: {problems}")

        phases: List[TransformingLayoutPhase] = []
        apply_phase_index: Optional[int] = None
        plan = self.catalog.transform_plan(idx)
        if plan is not None:
            phases = self.pipeline.run(layout, plan.directives)
            apply_phase_index = plan.apply_phase_index
            logger.debug("level%d: %d transform phases", idx, len(phases))

        return GeneratedLevel(
            index=idx,
            preset_index=self.catalog.preset_index(idx),
            loop_count=loop_count,
            layout=layout,
            phases=phases,
            apply_phase_index=apply_phase_index,
        )


# ----------------------------
# CLI
# ----------------------------


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Generate brick-breaker level layouts.")
    p.add_argument("count", type=int, help="How many new levels to generate.")
    p.add_argument(
        "--levels-root",
        type=str,
        default="levels",
        help="Levels folder (default: levels)",
    )
    p.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Optional RNG seed for reproducible generation.",
    )
    p.add_argument(
        "--config",
        type=str,
        default=None,
        help="Optional game config JSON (playfield, bricks, levels).",
    )
    p.add_argument(
        "--orientation",
        choices=("landscape", "portrait"),
        default="landscape",
        help="Playfield orientation (default: landscape)",
    )
    p.add_argument(
        "--preset-offset",
        type=int,
        default=0,
        help="Rotate which preset is used for level 0.",
    )
    p.add_argument("--verbose", action="store_true", help="Log generation details.")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    if args.count <= 0:
        raise SystemExit("count must be > 0")
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    config = load_game_config(Path(args.config)) if args.config else DEFAULT_GAME_CONFIG
    rng = random.Random(args.seed)
    LevelGenerator(
        Path(args.levels_root),
        rng,
        config=config,
        orientation=args.orientation,
        preset_offset=args.preset_offset,
    ).generate(args.count)


if __name__ == "__main__":
    main()
