"""Scene drawing on top of a small set of 2D primitives.

Anything that can draw lines, rectangles, filled circles and text in screen
pixels can show the editor. :class:`ImageSurface` renders off-screen with
Pillow; the tkinter canvas adapter lives in ``region_editor.py``.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Iterable, Optional, Protocol, Sequence, Tuple, Union

from PIL import Image, ImageDraw

from mapregions.interaction import BORDER_SIZE, GRID_STEP, EditorSession
from mapregions.level import MapData
from mapregions.records import lookup_vertex
from mapregions.regions import GRID_MAX, GRID_MIN, Region
from mapregions.viewport import ZOOM_BASE

Point = Tuple[float, float]
RGBA = Tuple[int, int, int, int]

BACKGROUND: Tuple[int, int, int] = (13, 13, 13)
WHITE: RGBA = (255, 255, 255, 255)
GRID_COLOUR: RGBA = (200, 200, 200, 40)
LINE_COLOUR: Tuple[int, int, int] = (200, 200, 200)
THING_COLOUR: RGBA = (200, 200, 200, 200)
THING_RADIUS = 8.0  # map units
LINE_WIDTH = 1.0


class Surface(Protocol):
    def draw_line(self, p0: Point, p1: Point, colour: RGBA, width: float = 1.0) -> None: ...

    def draw_filled_rect(self, p0: Point, p1: Point, colour: RGBA) -> None: ...

    def draw_rect(self, p0: Point, p1: Point, colour: RGBA) -> None: ...

    def draw_filled_circle(self, centre: Point, radius: float, colour: RGBA) -> None: ...

    def draw_text(self, pos: Point, colour: RGBA, text: str) -> None: ...


def region_colours(region: Region, highlight: bool) -> Tuple[RGBA, RGBA]:
    """Fill and outline colours: the region colour dimmed to 80%, brightened when hovered."""
    channels = [c * 0.8 for c in region.color]
    if highlight:
        channels = [min(c + 0.5, 1.0) for c in channels]
    r, g, b = (int(255 * c) for c in channels)
    return (r, g, b, 100), (r, g, b, 200)


def _grid_range(low: float, high: float) -> Iterable[float]:
    """Grid coordinates in [low, high], clipped to the map grid."""
    start = max(GRID_MIN, math.floor(low / GRID_STEP) * GRID_STEP)
    stop = min(GRID_MAX, high)
    value = start
    while value <= stop:
        yield value
        value += GRID_STEP


def draw_grid(surface: Surface, session: EditorSession) -> None:
    viewport = session.viewport
    min_x, min_y, max_x, max_y = viewport.visible_map_bounds()
    width = LINE_WIDTH * 0.5
    for x in _grid_range(min_x, max_x):
        surface.draw_line(
            viewport.map_to_screen((x, max(GRID_MIN, min_y))),
            viewport.map_to_screen((x, min(GRID_MAX, max_y))),
            GRID_COLOUR,
            width,
        )
    for y in _grid_range(min_y, max_y):
        surface.draw_line(
            viewport.map_to_screen((max(GRID_MIN, min_x), y)),
            viewport.map_to_screen((min(GRID_MAX, max_x), y)),
            GRID_COLOUR,
            width,
        )


def draw_map(surface: Surface, session: EditorSession, map_data: Optional[MapData] = None) -> None:
    map_data = map_data if map_data is not None else session.map_data
    if not map_data.loaded:
        return
    viewport = session.viewport
    for line in map_data.linedefs:
        vertex_a = lookup_vertex(map_data.vertexes, line.vertex_a)
        vertex_b = lookup_vertex(map_data.vertexes, line.vertex_b)
        if vertex_a is None or vertex_b is None:
            continue
        alpha = 200 if line.impassable else 100
        surface.draw_line(
            viewport.map_to_screen((vertex_a.x, vertex_a.y)),
            viewport.map_to_screen((vertex_b.x, vertex_b.y)),
            (*LINE_COLOUR, alpha),
            LINE_WIDTH,
        )
    radius = THING_RADIUS * viewport.zoom * ZOOM_BASE
    for thing in map_data.things:
        surface.draw_filled_circle(viewport.map_to_screen((thing.x, thing.y)), radius, THING_COLOUR)


def draw_regions(surface: Surface, session: EditorSession, highlighted: Sequence[int] = ()) -> None:
    for index, region in enumerate(session.regions):
        left, top, right, bottom = session.region_screen_rect(region)
        fill, outline = region_colours(region, index in highlighted)
        surface.draw_filled_rect((left, top), (right, bottom), fill)
        surface.draw_rect((left, top), (right, bottom), outline)
        surface.draw_text((left + BORDER_SIZE * 0.5, top + BORDER_SIZE * 0.5), WHITE, region.title)


def draw_scene(surface: Surface, session: EditorSession, map_data: Optional[MapData] = None) -> None:
    """Grid, then regions (last in the list on top), then map geometry over them."""
    draw_grid(surface, session)
    draw_regions(surface, session, session.highlighted)
    draw_map(surface, session, map_data)


class ImageSurface:
    """Pillow-backed surface; alpha is blended onto an RGB image."""

    def __init__(self, size: Tuple[int, int], background: Tuple[int, int, int] = BACKGROUND) -> None:
        self.image = Image.new("RGB", size, background)
        self._draw = ImageDraw.Draw(self.image, "RGBA")

    @property
    def size(self) -> Tuple[int, int]:
        return self.image.size

    def draw_line(self, p0: Point, p1: Point, colour: RGBA, width: float = 1.0) -> None:
        self._draw.line([p0, p1], fill=colour, width=max(1, int(round(width))))

    def draw_filled_rect(self, p0: Point, p1: Point, colour: RGBA) -> None:
        self._draw.rectangle(_box(p0, p1), fill=colour)

    def draw_rect(self, p0: Point, p1: Point, colour: RGBA) -> None:
        self._draw.rectangle(_box(p0, p1), outline=colour)

    def draw_filled_circle(self, centre: Point, radius: float, colour: RGBA) -> None:
        radius = max(radius, 0.5)
        x, y = centre
        self._draw.ellipse([x - radius, y - radius, x + radius, y + radius], fill=colour)

    def draw_text(self, pos: Point, colour: RGBA, text: str) -> None:
        self._draw.text(pos, text, fill=colour)

    def save(self, path: Union[str, Path]) -> None:
        self.image.save(path)


def _box(p0: Point, p1: Point) -> Tuple[float, float, float, float]:
    return min(p0[0], p1[0]), min(p0[1], p1[1]), max(p0[0], p1[0]), max(p0[1], p1[1])


def render_snapshot(
    session: EditorSession,
    size: Tuple[int, int],
    map_data: Optional[MapData] = None,
) -> Image.Image:
    """Draw the session into a new image of ``size`` using a copy of the viewport's scroll and zoom."""
    surface = ImageSurface(size)
    viewport = session.viewport
    saved = viewport.work_pos, viewport.work_size
    viewport.set_work_area((0.0, 0.0), (float(size[0]), float(size[1])))
    try:
        draw_scene(surface, session, map_data)
    finally:
        viewport.set_work_area(*saved)
    return surface.image
