"""Map loader: marker lookup, lookahead window, record decoding."""

from __future__ import annotations

import struct

import pytest

from conftest import sample_map_lumps
from mapregions.level import MAP_LUMP_LOOKAHEAD, MapNotFoundError, find_map_marker, load_map, load_map_file
from mapregions.records import Linedef, Sector, Sidedef, Thing, Vertex, decode_records, encode_records
from mapregions.wad import ArchiveOpenError, WadArchive, build_wad

RECORD_LISTS = ("things", "linedefs", "sidedefs", "vertexes", "sectors")


def _assert_empty(map_data):
    for attr in RECORD_LISTS:
        assert getattr(map_data, attr) == []


def test_full_lump_group_is_decoded(sample_wad_bytes, sample_records):
    map_data = load_map(WadArchive.from_bytes(sample_wad_bytes), "MAP01")
    assert map_data.loaded
    for attr, expected in sample_records.items():
        assert getattr(map_data, attr) == expected
    assert map_data.sidedefs[0].middle_texture == "STARTAN3"
    assert map_data.sectors[0].ceiling_texture == "CEIL3_5"
    assert map_data.linedefs[0].impassable
    assert not map_data.linedefs[2].impassable


def test_record_counts_use_truncating_division():
    lumps = [
        ("MAP01", b""),
        ("THINGS", b"\x00" * 25),  # 10-byte records
        ("LINEDEFS", b"\x00" * 27),  # 14-byte records
        ("SIDEDEFS", b"\x00" * 61),  # 30-byte records
        ("VERTEXES", b"\x00" * 9),  # 4-byte records
        ("SECTORS", b"\x00" * 25),  # 26-byte records
    ]
    map_data = load_map(WadArchive.from_bytes(build_wad(lumps)), "MAP01")
    assert map_data.loaded
    assert map_data.record_counts() == {
        "THINGS": 2,
        "LINEDEFS": 1,
        "SIDEDEFS": 2,
        "VERTEXES": 2,
        "SECTORS": 0,
    }


def test_missing_map_returns_empty_unloaded(sample_wad_bytes):
    archive = WadArchive.from_bytes(sample_wad_bytes)
    map_data = load_map(archive, "MAP02")
    assert not map_data.loaded
    _assert_empty(map_data)
    with pytest.raises(MapNotFoundError):
        find_map_marker(archive, "MAP02")


def test_map_marker_is_the_first_lump_with_the_map_name():
    lumps = [("E1M1", b""), ("THINGS", b""), ("MAP01   ".encode("latin1"), b""), ("MAP01", b"")]
    archive = WadArchive.from_bytes(build_wad(lumps))
    assert find_map_marker(archive, "MAP01") == 2
    assert find_map_marker(archive, "E1M1") == archive.find_lump("E1M1") == 0


def test_invalid_archive_returns_empty_unloaded():
    archive = WadArchive.from_bytes(b"JUNKJUNKJUNKJUNK")
    map_data = load_map(archive, "MAP01")
    assert not map_data.loaded
    _assert_empty(map_data)


def test_lone_empty_marker_loads_with_no_records():
    map_data = load_map(WadArchive.from_bytes(build_wad([("MAP01", b"")])), "MAP01")
    assert map_data.loaded
    _assert_empty(map_data)


def test_lumps_past_the_lookahead_window_are_ignored():
    things = encode_records([Thing(1, 2, 3, 4, 5)])
    fillers = [(f"FILL{i}", b"") for i in range(MAP_LUMP_LOOKAHEAD)]
    data = build_wad([("MAP01", b"")] + fillers + [("THINGS", things)])

    assert load_map(WadArchive.from_bytes(data), "MAP01").things == []
    wider = load_map(WadArchive.from_bytes(data), "MAP01", lookahead=MAP_LUMP_LOOKAHEAD + 1)
    assert wider.things == [Thing(1, 2, 3, 4, 5)]


def test_first_marker_wins():
    first = encode_records([Vertex(1, 1)])
    second = encode_records([Vertex(2, 2), Vertex(3, 3)])
    data = build_wad([("MAP01", b""), ("VERTEXES", first), ("MAP01", b""), ("VERTEXES", second)])
    map_data = load_map(WadArchive.from_bytes(data), "MAP01")
    assert map_data.vertexes == [Vertex(1, 1)]


def test_repeated_lump_kind_closes_the_window():
    ours = encode_records([Thing(1, 1, 0, 1, 0)])
    theirs = encode_records([Thing(9, 9, 0, 2, 0)])
    lines = encode_records([Linedef(0, 1, 0, 0, 0, 0, -1)])
    data = build_wad(
        [("MAP01", b""), ("THINGS", ours), ("MAP02", b""), ("THINGS", theirs), ("LINEDEFS", lines)]
    )
    map_data = load_map(WadArchive.from_bytes(data), "MAP01")
    assert map_data.things == [Thing(1, 1, 0, 1, 0)]
    assert map_data.linedefs == []


def test_marker_name_is_compared_exactly():
    data = build_wad([("MAP010", b""), ("THINGS", encode_records([Thing(0, 0, 0, 1, 0)]))])
    assert not load_map(WadArchive.from_bytes(data), "MAP01").loaded


def test_out_of_range_lump_is_skipped():
    data = (
        struct.pack("<4sii", b"PWAD", 3, 12)
        + struct.pack("<ii8s", 12, 0, b"MAP01")
        + struct.pack("<ii8s", 5000, 10, b"THINGS")
        + struct.pack("<ii8s", 12, 8, b"VERTEXES")
    )
    map_data = load_map(WadArchive.from_bytes(data), "MAP01")
    assert map_data.loaded
    assert map_data.things == []
    # The VERTEXES lump points back into the header/directory bytes; it still decodes.
    assert len(map_data.vertexes) == 2


def test_load_map_file_reports_open_errors(tmp_path):
    map_data, error = load_map_file(tmp_path / "nothing.wad", "MAP01")
    assert isinstance(error, ArchiveOpenError)
    assert not map_data.loaded


def test_load_map_file_from_disk(sample_wad_path):
    map_data, error = load_map_file(sample_wad_path, "MAP01")
    assert error is None
    assert map_data.loaded
    assert map_data.bounds() == (0, -128, 128, 0)


def test_decode_records_ignores_partial_tail():
    raw = struct.pack("<hh", -5, 7) + b"\x01"
    assert decode_records(Vertex, raw) == [Vertex(-5, 7)]


def test_texture_names_are_trimmed():
    raw = struct.pack("<hh8s8s8sh", 1, 2, b"BIGDOOR2", b"-\x00garbag", b"", 3)
    assert decode_records(Sidedef, raw) == [Sidedef(1, 2, "BIGDOOR2", "-", "", 3)]
    raw = struct.pack("<hh8s8shhh", -8, 72, b"FLAT1", b"F_SKY1", 255, 9, 4)
    assert decode_records(Sector, raw) == [Sector(-8, 72, "FLAT1", "F_SKY1", 255, 9, 4)]


def test_bounds_without_vertexes():
    map_data = load_map(WadArchive.from_bytes(build_wad(sample_map_lumps()[:2])), "MAP01")
    assert map_data.bounds() is None
