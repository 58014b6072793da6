"""Map space <-> screen space transform with scroll and zoom."""

from __future__ import annotations

from typing import Optional, Tuple

ZOOM_MIN = 0.01
ZOOM_MAX = 1.0
ZOOM_BASE = 2.0  # fixed magnification on top of the adjustable zoom
ZOOM_DEFAULT = 0.5
ZOOM_SCROLL_FACTOR = 1.0 / 8.0

Point = Tuple[float, float]


def clamp_zoom(zoom: float) -> float:
    return max(ZOOM_MIN, min(ZOOM_MAX, zoom))


class Viewport:
    """
    Screen position of a map point::

        screen = work_pos + work_size / 2 + scroll * zoom + (x, -y) * zoom * ZOOM_BASE

    Map "up" is +y while screen "down" is +y. ``scroll`` is kept in
    screen-oriented units so panning reads the same at every zoom level.
    """

    def __init__(
        self,
        work_pos: Point = (0.0, 0.0),
        work_size: Point = (1280.0, 720.0),
        zoom: float = ZOOM_DEFAULT,
    ) -> None:
        self.work_pos = (float(work_pos[0]), float(work_pos[1]))
        self.work_size = (float(work_size[0]), float(work_size[1]))
        self.scroll: Point = (0.0, 0.0)
        self.zoom = clamp_zoom(zoom)

    def set_work_area(self, work_pos: Point, work_size: Point) -> None:
        self.work_pos = (float(work_pos[0]), float(work_pos[1]))
        self.work_size = (float(work_size[0]), float(work_size[1]))

    @property
    def map_scale(self) -> float:
        """Screen pixels per map unit."""
        return self.zoom * ZOOM_BASE

    def _origin(self) -> Point:
        return (
            self.work_pos[0] + self.work_size[0] * 0.5 + self.scroll[0] * self.zoom,
            self.work_pos[1] + self.work_size[1] * 0.5 + self.scroll[1] * self.zoom,
        )

    def map_to_screen(self, point: Point) -> Point:
        ox, oy = self._origin()
        scale = self.map_scale
        return ox + point[0] * scale, oy - point[1] * scale

    def screen_to_map(self, point: Point) -> Point:
        ox, oy = self._origin()
        scale = self.map_scale
        return (point[0] - ox) / scale, -(point[1] - oy) / scale

    def apply_wheel(self, ticks: float) -> float:
        """Zoom by a fixed fraction of the current zoom per wheel tick."""
        if ticks:
            self.zoom = clamp_zoom(self.zoom + ticks * ZOOM_SCROLL_FACTOR * self.zoom)
        return self.zoom

    def pan(self, dx: float, dy: float) -> None:
        """Scroll by a screen-space pointer delta."""
        self.scroll = (self.scroll[0] + dx / self.zoom, self.scroll[1] + dy / self.zoom)

    def visible_map_bounds(self) -> Tuple[float, float, float, float]:
        """Map-space ``(min_x, min_y, max_x, max_y)`` covered by the work area."""
        x0, y0 = self.screen_to_map(self.work_pos)
        x1, y1 = self.screen_to_map(
            (self.work_pos[0] + self.work_size[0], self.work_pos[1] + self.work_size[1])
        )
        return min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1)

    def fit(self, bounds: Optional[Tuple[float, float, float, float]], margin: float = 0.05) -> None:
        """Centre ``bounds`` and pick the largest zoom that shows all of it."""
        if bounds is None:
            return
        min_x, min_y, max_x, max_y = bounds
        width = max(max_x - min_x, 1.0)
        height = max(max_y - min_y, 1.0)
        usable_w = self.work_size[0] * (1.0 - 2 * margin)
        usable_h = self.work_size[1] * (1.0 - 2 * margin)
        self.zoom = clamp_zoom(min(usable_w / width, usable_h / height) / ZOOM_BASE)
        centre_x = (min_x + max_x) * 0.5
        centre_y = (min_y + max_y) * 0.5
        # Put the centre at the middle of the work area: scroll * zoom == -(x, -y) * zoom * base
        self.scroll = (-centre_x * ZOOM_BASE, centre_y * ZOOM_BASE)
