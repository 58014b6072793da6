from __future__ import annotations

from typing import Dict, List, Tuple

import pytest

from mapregions.records import Linedef, Sector, Sidedef, Thing, Vertex, encode_records
from mapregions.wad import build_wad

SAMPLE_THINGS = [Thing(32, 32, 90, 1, 7), Thing(-96, 64, 0, 3001, 4)]
SAMPLE_VERTEXES = [Vertex(0, 0), Vertex(128, 0), Vertex(128, -128), Vertex(0, -128)]
SAMPLE_LINEDEFS = [
    Linedef(0, 1, 1, 0, 0, 0, -1),
    Linedef(1, 2, 1, 0, 0, 0, -1),
    Linedef(2, 3, 0, 11, 0, 0, -1),
    Linedef(3, 0, 1, 0, 0, 0, -1),
]
SAMPLE_SIDEDEFS = [Sidedef(0, 0, "-", "-", "STARTAN3", 0)]
SAMPLE_SECTORS = [Sector(0, 128, "FLOOR4_8", "CEIL3_5", 160, 0, 0)]


def sample_map_lumps(name: str = "MAP01") -> List[Tuple[str, bytes]]:
    """A map lump group in the usual order, including the lumps the loader skips."""
    return [
        (name, b""),
        ("THINGS", encode_records(SAMPLE_THINGS)),
        ("LINEDEFS", encode_records(SAMPLE_LINEDEFS)),
        ("SIDEDEFS", encode_records(SAMPLE_SIDEDEFS)),
        ("VERTEXES", encode_records(SAMPLE_VERTEXES)),
        ("SEGS", b""),
        ("SSECTORS", b""),
        ("NODES", b""),
        ("SECTORS", encode_records(SAMPLE_SECTORS)),
        ("REJECT", b""),
        ("BLOCKMAP", b""),
    ]


@pytest.fixture
def sample_wad_bytes() -> bytes:
    return build_wad(sample_map_lumps())


@pytest.fixture
def sample_wad_path(tmp_path, sample_wad_bytes):
    path = tmp_path / "MAP01.wad"
    path.write_bytes(sample_wad_bytes)
    return path


@pytest.fixture
def sample_records() -> Dict[str, list]:
    return {
        "things": SAMPLE_THINGS,
        "linedefs": SAMPLE_LINEDEFS,
        "sidedefs": SAMPLE_SIDEDEFS,
        "vertexes": SAMPLE_VERTEXES,
        "sectors": SAMPLE_SECTORS,
    }
