"""Scene drawing, Pillow snapshots and the command-line tools."""

from __future__ import annotations

import json

import pytest
from PIL import Image

from conftest import SAMPLE_LINEDEFS, SAMPLE_THINGS, SAMPLE_VERTEXES
from mapregions.interaction import EditorSession
from mapregions.level import MapData
from mapregions.records import Linedef
from mapregions.regions import Region, RegionList
from mapregions.render import (
    BACKGROUND,
    ImageSurface,
    draw_map,
    draw_regions,
    draw_scene,
    region_colours,
    render_snapshot,
)
from mapregions.viewport import Viewport
from tools import dump_wad, render_map


class RecordingSurface:
    def __init__(self):
        self.calls = []

    def draw_line(self, p0, p1, colour, width=1.0):
        self.calls.append(("line", p0, p1, colour))

    def draw_filled_rect(self, p0, p1, colour):
        self.calls.append(("filled_rect", p0, p1, colour))

    def draw_rect(self, p0, p1, colour):
        self.calls.append(("rect", p0, p1, colour))

    def draw_filled_circle(self, centre, radius, colour):
        self.calls.append(("circle", centre, radius, colour))

    def draw_text(self, pos, colour, text):
        self.calls.append(("text", pos, colour, text))

    def of_kind(self, kind):
        return [call for call in self.calls if call[0] == kind]


def _map_data(linedefs=SAMPLE_LINEDEFS) -> MapData:
    return MapData(
        name="MAP01",
        loaded=True,
        things=list(SAMPLE_THINGS),
        linedefs=list(linedefs),
        vertexes=list(SAMPLE_VERTEXES),
    )


def _session(**kwargs) -> EditorSession:
    viewport = Viewport(work_pos=(0.0, 0.0), work_size=(800.0, 600.0), zoom=0.5)
    return EditorSession(viewport=viewport, **kwargs)


def test_linedef_alpha_follows_impassable_flag():
    surface = RecordingSurface()
    draw_map(surface, _session(map_data=_map_data()))
    lines = surface.of_kind("line")
    assert [call[3][3] for call in lines] == [200, 200, 100, 200]
    first = lines[0]
    assert first[1] == (400.0, 300.0)
    assert first[2] == (528.0, 300.0)


def test_linedefs_with_missing_vertexes_are_skipped():
    linedefs = list(SAMPLE_LINEDEFS) + [Linedef(0, 99, 1, 0, 0, 0, -1), Linedef(-1, 0, 1, 0, 0, 0, -1)]
    surface = RecordingSurface()
    draw_map(surface, _session(map_data=_map_data(linedefs)))
    assert len(surface.of_kind("line")) == len(SAMPLE_LINEDEFS)


def test_things_are_drawn_as_circles_scaled_by_zoom():
    surface = RecordingSurface()
    draw_map(surface, _session(map_data=_map_data()))
    circles = surface.of_kind("circle")
    assert len(circles) == len(SAMPLE_THINGS)
    assert circles[0][1] == (432.0, 268.0)
    assert circles[0][2] == pytest.approx(8.0)


def test_unloaded_map_draws_nothing():
    surface = RecordingSurface()
    draw_map(surface, _session())
    assert surface.calls == []


def test_region_colours():
    region = Region(color=(1.0, 0.0, 0.0))
    assert region_colours(region, False) == ((204, 0, 0, 100), (204, 0, 0, 200))
    assert region_colours(region, True) == ((255, 127, 127, 100), (255, 127, 127, 200))


def test_regions_drawn_in_list_order_with_titles():
    regions = RegionList()
    regions.create_region("low")
    regions.create_region("high")
    session = _session(regions=regions)
    surface = RecordingSurface()
    draw_regions(surface, session, highlighted=[1])
    assert [call[3] for call in surface.of_kind("text")] == ["low", "high"]
    fills = surface.of_kind("filled_rect")
    assert fills[0][1] == (336.0, 236.0)
    assert fills[0][2] == (464.0, 364.0)
    assert fills[0][3] == region_colours(regions[0], False)[0]
    assert fills[1][3] == region_colours(regions[1], True)[0]


def test_scene_draws_map_over_regions():
    regions = RegionList()
    regions.create_region()
    surface = RecordingSurface()
    draw_scene(surface, _session(regions=regions, map_data=_map_data()))
    kinds = [call[0] for call in surface.calls]
    assert kinds.index("filled_rect") < kinds.index("circle")
    assert kinds.index("line") < kinds.index("filled_rect")


def test_image_surface_blends_onto_background():
    surface = ImageSurface((20, 20))
    assert surface.size == (20, 20)
    assert surface.image.getpixel((5, 5)) == BACKGROUND
    surface.draw_filled_rect((15, 15), (2, 2), (255, 0, 0, 255))
    assert surface.image.getpixel((5, 5)) == (255, 0, 0)
    surface.draw_filled_circle((10, 10), 0.0, (0, 0, 255, 255))


def test_snapshot_shows_regions_and_restores_work_area():
    regions = RegionList()
    regions.create_region()
    session = _session(regions=regions)
    image = render_snapshot(session, (200, 200))
    assert image.size == (200, 200)
    assert image.getpixel((120, 120)) != BACKGROUND
    assert image.getpixel((2, 2)) == BACKGROUND
    assert session.viewport.work_size == (800.0, 600.0)
    assert session.viewport.work_pos == (0.0, 0.0)


def test_render_map_tool_writes_png(sample_wad_path, tmp_path):
    output = tmp_path / "map.png"
    assert render_map.main([str(sample_wad_path), "--output", str(output), "--size", "64x48"]) == 0
    with Image.open(output) as image:
        assert image.size == (64, 48)


def test_render_map_tool_reports_missing_map(sample_wad_path, tmp_path, capsys):
    output = tmp_path / "map.png"
    assert render_map.main([str(sample_wad_path), "--map", "E1M1", "--output", str(output)]) == 1
    assert "E1M1" in capsys.readouterr().out
    assert not output.exists()


def test_dump_wad_json(sample_wad_path, capsys):
    assert dump_wad.main([str(sample_wad_path), "--map", "MAP01", "--json"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["valid"] is True
    assert report["kind"] == "PWAD"
    assert [lump["name"] for lump in report["lumps"]][:3] == ["MAP01", "THINGS", "LINEDEFS"]
    assert report["map"]["counts"]["THINGS"] == 2
    assert report["map"]["counts"]["VERTEXES"] == 4
    assert report["map"]["bounds"] == [0, -128, 128, 0]


def test_dump_wad_text(sample_wad_path, capsys):
    assert dump_wad.main([str(sample_wad_path), "--map", "MAP01"]) == 0
    out = capsys.readouterr().out
    assert "11 lumps" in out
    assert "LINEDEFS" in out


def test_dump_wad_rejects_garbage(tmp_path, capsys):
    path = tmp_path / "junk.wad"
    path.write_bytes(b"JUNKJUNKJUNKJUNK")
    assert dump_wad.main([str(path)]) == 1
    assert "not a usable WAD" in capsys.readouterr().out
