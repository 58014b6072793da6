"""Locate a map inside a WAD and decode its record lumps."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple, Type, Union

from mapregions.records import Linedef, MapRecord, Sector, Sidedef, Thing, Vertex, decode_records
from mapregions.wad import LumpBoundsError, WadArchive, WadError

logger = logging.getLogger(__name__)

# THINGS, LINEDEFS, SIDEDEFS, VERTEXES, SEGS, SSECTORS, NODES, SECTORS, REJECT, BLOCKMAP
MAP_LUMP_LOOKAHEAD = 10

# lump keyword -> (MapData attribute, record type)
MAP_LUMPS: Dict[str, Tuple[str, Type[MapRecord]]] = {
    "THINGS": ("things", Thing),
    "LINEDEFS": ("linedefs", Linedef),
    "SIDEDEFS": ("sidedefs", Sidedef),
    "VERTEXES": ("vertexes", Vertex),
    "SECTORS": ("sectors", Sector),
}


class MapNotFoundError(WadError):
    """No directory entry carries the requested map name."""


@dataclass
class MapData:
    name: str
    loaded: bool = False
    things: List[Thing] = field(default_factory=list)
    linedefs: List[Linedef] = field(default_factory=list)
    sidedefs: List[Sidedef] = field(default_factory=list)
    vertexes: List[Vertex] = field(default_factory=list)
    sectors: List[Sector] = field(default_factory=list)

    def record_counts(self) -> Dict[str, int]:
        return {keyword: len(getattr(self, attr)) for keyword, (attr, _kind) in MAP_LUMPS.items()}

    def bounds(self) -> Optional[Tuple[int, int, int, int]]:
        """Vertex bounding box as ``(min_x, min_y, max_x, max_y)``, or None without vertexes."""
        if not self.vertexes:
            return None
        xs = [vertex.x for vertex in self.vertexes]
        ys = [vertex.y for vertex in self.vertexes]
        return min(xs), min(ys), max(xs), max(ys)


def find_map_marker(archive: WadArchive, map_name: str) -> int:
    """Return the directory index of the first lump named ``map_name``."""
    index = archive.find_lump(map_name)
    if index is None:
        raise MapNotFoundError(f"No map lump labelled {map_name}")
    logger.debug("Map marker %s at lump %d", map_name, index)
    return index


def load_map(archive: WadArchive, map_name: str, lookahead: int = MAP_LUMP_LOOKAHEAD) -> MapData:
    """
    Decode the map called ``map_name`` from ``archive``.

    Only the first marker counts. The ``lookahead`` entries after it are
    classified by name; the first lump of each kind is decoded and a repeated
    kind closes the window. Failures leave ``loaded`` False with every record
    list empty.
    """
    result = MapData(name=map_name)
    if not archive.valid:
        logger.warning("Tried to load map %s from invalid WAD %s", map_name, archive.name)
        return result

    try:
        marker = find_map_marker(archive, map_name)
    except MapNotFoundError as exc:
        logger.warning("%s", exc)
        return result

    seen: Set[str] = set()
    last = min(marker + lookahead, len(archive.directory) - 1)
    for index in range(marker + 1, last + 1):
        entry = archive.directory[index]
        target = MAP_LUMPS.get(entry.name)
        if target is None:
            logger.debug("Skipping lump %s (not a map record lump)", entry.name)
            continue
        if entry.name in seen:
            logger.debug("Lump %s repeats; map lump group ends at index %d", entry.name, index)
            break
        seen.add(entry.name)

        attr, record_type = target
        try:
            data = archive.read_lump(entry)
        except LumpBoundsError as exc:
            logger.warning("Skipping %s: %s", entry.name, exc)
            continue
        records = decode_records(record_type, data)
        setattr(result, attr, records)
        logger.info("Loaded lump %s (%d records)", entry.name, len(records))

    result.loaded = True
    logger.info("Map %s successfully loaded", map_name)
    return result


def load_map_file(
    path: Union[str, Path], map_name: str, lookahead: int = MAP_LUMP_LOOKAHEAD
) -> Tuple[MapData, Optional[WadError]]:
    """Open ``path``, load ``map_name`` and close the archive again."""
    with WadArchive.open(path) as archive:
        data = load_map(archive, map_name, lookahead=lookahead)
        return data, archive.error
