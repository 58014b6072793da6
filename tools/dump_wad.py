#!/usr/bin/env python3
"""Dump a WAD directory and the record counts of one map."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Dict, List

sys.path.append(str(Path(__file__).resolve().parents[1]))

from mapregions.level import load_map
from mapregions.logging_config import setup_logging
from mapregions.wad import WadArchive


def describe_archive(archive: WadArchive) -> Dict[str, object]:
    lumps: List[Dict[str, object]] = [
        {"index": index, "name": entry.name, "offset": entry.offset, "size": entry.size}
        for index, entry in enumerate(archive.directory)
    ]
    return {
        "path": archive.name,
        "valid": archive.valid,
        "error": str(archive.error) if archive.error else None,
        "kind": archive.header.kind if archive.header else None,
        "lumps": lumps,
    }


def _format_rows(lumps: List[Dict[str, object]]) -> str:
    lines = []
    for lump in lumps:
        lines.append(f"  [{lump['index']:>4}] {lump['name']:<8} offset={lump['offset']:<10} size={lump['size']}")
    return "\n".join(lines)


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="List the lumps of a WAD and decode one map.")
    parser.add_argument("wad", type=Path, help="IWAD/PWAD file to inspect")
    parser.add_argument("--map", default=None, help="Map lump name to decode (e.g. MAP01, E1M1)")
    parser.add_argument("--json", action="store_true", help="Emit JSON instead of text")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    setup_logging("DEBUG" if args.verbose else "WARNING")

    with WadArchive.open(args.wad) as archive:
        report = describe_archive(archive)
        if args.map:
            map_data = load_map(archive, args.map)
            report["map"] = {
                "name": map_data.name,
                "loaded": map_data.loaded,
                "counts": map_data.record_counts(),
                "bounds": map_data.bounds(),
            }

    if args.json:
        print(json.dumps(report, indent=2))
        return 0 if report["valid"] else 1

    if not report["valid"]:
        print(f"{args.wad}: not a usable WAD ({report['error']})")
        return 1

    print(f"{args.wad}: {report['kind']}, {len(report['lumps'])} lumps")
    print(_format_rows(report["lumps"]))
    if "map" in report:
        info = report["map"]
        print()
        if not info["loaded"]:
            print(f"Map {info['name']}: not found")
        else:
            print(f"Map {info['name']}:")
            for name, count in info["counts"].items():
                print(f"  {name:<9} {count}")
            print(f"  bounds    {info['bounds']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
