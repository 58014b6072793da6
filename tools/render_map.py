#!/usr/bin/env python3
"""
Render a WAD map to a PNG.

Draws the same grid, linedefs and things as the editor canvas, scaled so the
whole map fits the image.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Tuple

sys.path.append(str(Path(__file__).resolve().parents[1]))

from mapregions.interaction import EditorSession
from mapregions.level import load_map_file
from mapregions.logging_config import setup_logging
from mapregions.render import render_snapshot
from mapregions.viewport import Viewport


def _parse_size(text: str) -> Tuple[int, int]:
    try:
        width, height = (int(part) for part in text.lower().split("x", 1))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Size must look like 1280x720, not {text!r}")
    if width <= 0 or height <= 0:
        raise argparse.ArgumentTypeError("Size must be positive")
    return width, height


def render_map(wad_path: Path, map_name: str, output_path: Path, size: Tuple[int, int]) -> bool:
    map_data, error = load_map_file(wad_path, map_name)
    if error is not None:
        print(f"Error: {error}")
        return False
    if not map_data.loaded:
        print(f"Error: no map lump labelled {map_name} in {wad_path}")
        return False

    viewport = Viewport(work_size=(float(size[0]), float(size[1])))
    viewport.fit(map_data.bounds())
    session = EditorSession(viewport=viewport, map_data=map_data)

    image = render_snapshot(session, size)
    image.save(output_path)
    print(f"Saved {map_name} ({len(map_data.linedefs)} linedefs, {len(map_data.things)} things) to {output_path}")
    return True


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Render a WAD map to a PNG image.")
    parser.add_argument("wad", type=Path, help="IWAD/PWAD file")
    parser.add_argument("--map", default="MAP01", help="Map lump name (default: MAP01)")
    parser.add_argument("--output", type=Path, default=Path("/tmp/map.png"), help="PNG to write")
    parser.add_argument("--size", type=_parse_size, default=(1280, 720), help="Image size, WxH")
    args = parser.parse_args(argv)

    setup_logging("WARNING")
    return 0 if render_map(args.wad, args.map, args.output, args.size) else 1


if __name__ == "__main__":
    sys.exit(main())
