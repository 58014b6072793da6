"""Pointer handling for the region editor: grab handles, dragging, selection.

One call to :meth:`EditorSession.step` processes one frame of input. Only one
consumer sees a given pointer event per step: resizing the selected region
comes first, then region selection, then viewport zoom/pan.
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from mapregions.level import MapData
from mapregions.regions import Region, RegionList
from mapregions.viewport import Viewport

logger = logging.getLogger(__name__)

GRID_STEP = 64.0
BORDER_SIZE = GRID_STEP * 0.25  # screen pixels around a region that still grab it
HANDLE_THRESHOLD = 0.85  # fraction of the half extent where edges start
DRAG_THRESHOLD = 6.0  # pixels before a held button counts as dragging

Point = Tuple[float, float]
ScreenRect = Tuple[float, float, float, float]  # left, top, right, bottom


class GrabHandle(enum.IntFlag):
    NONE = 0
    TOP = 1 << 0
    LEFT = 1 << 1
    BOTTOM = 1 << 2
    RIGHT = 1 << 3
    ALL = TOP | LEFT | BOTTOM | RIGHT


class CursorHint(enum.Enum):
    ARROW = "arrow"
    HAND = "hand"
    RESIZE_NS = "resize_ns"
    RESIZE_EW = "resize_ew"
    RESIZE_NWSE = "resize_nwse"
    RESIZE_NESW = "resize_nesw"
    RESIZE_ALL = "resize_all"


_HANDLE_CURSORS = {
    GrabHandle.TOP: CursorHint.RESIZE_NS,
    GrabHandle.BOTTOM: CursorHint.RESIZE_NS,
    GrabHandle.LEFT: CursorHint.RESIZE_EW,
    GrabHandle.RIGHT: CursorHint.RESIZE_EW,
    GrabHandle.TOP | GrabHandle.LEFT: CursorHint.RESIZE_NWSE,
    GrabHandle.BOTTOM | GrabHandle.RIGHT: CursorHint.RESIZE_NWSE,
    GrabHandle.TOP | GrabHandle.RIGHT: CursorHint.RESIZE_NESW,
    GrabHandle.BOTTOM | GrabHandle.LEFT: CursorHint.RESIZE_NESW,
    GrabHandle.ALL: CursorHint.RESIZE_ALL,
}


def cursor_for_handle(handle: GrabHandle) -> Optional[CursorHint]:
    return _HANDLE_CURSORS.get(GrabHandle(handle))


class MouseButton(enum.IntEnum):
    LEFT = 0
    RIGHT = 1
    MIDDLE = 2


class InputState:
    """
    Pointer state accumulated between frames.

    The UI feeds raw events (:meth:`move`, :meth:`press`, :meth:`release`,
    :meth:`scroll`); the editor reads the snapshot during :meth:`EditorSession.step`
    and :meth:`end_step` clears the per-frame parts.
    """

    def __init__(self, drag_threshold: float = DRAG_THRESHOLD) -> None:
        self.drag_threshold = drag_threshold
        self.pos: Point = (0.0, 0.0)
        self.motion: Point = (0.0, 0.0)
        self.wheel = 0.0
        self.captured = False
        count = len(MouseButton)
        self.down = [False] * count
        self.clicked = [False] * count
        self._press_pos: List[Point] = [(0.0, 0.0)] * count
        self._delta_origin: List[Point] = [(0.0, 0.0)] * count
        self._drag_distance = [0.0] * count

    def move(self, x: float, y: float) -> None:
        self.motion = (self.motion[0] + x - self.pos[0], self.motion[1] + y - self.pos[1])
        self.pos = (float(x), float(y))
        for button in MouseButton:
            if self.down[button]:
                px, py = self._press_pos[button]
                distance = math.hypot(x - px, y - py)
                self._drag_distance[button] = max(self._drag_distance[button], distance)

    def press(self, button: MouseButton, x: Optional[float] = None, y: Optional[float] = None) -> None:
        if x is not None and y is not None:
            self.move(x, y)
        self.down[button] = True
        self.clicked[button] = True
        self._press_pos[button] = self.pos
        self._delta_origin[button] = self.pos
        self._drag_distance[button] = 0.0

    def release(self, button: MouseButton, x: Optional[float] = None, y: Optional[float] = None) -> None:
        if x is not None and y is not None:
            self.move(x, y)
        self.down[button] = False
        self._drag_distance[button] = 0.0

    def scroll(self, ticks: float) -> None:
        self.wheel += ticks

    def is_dragging(self, button: MouseButton) -> bool:
        return self.down[button] and self._drag_distance[button] >= self.drag_threshold

    def drag_delta(self, button: MouseButton) -> Point:
        if not self.is_dragging(button):
            return 0.0, 0.0
        ox, oy = self._delta_origin[button]
        return self.pos[0] - ox, self.pos[1] - oy

    def reset_drag_delta(self, button: MouseButton) -> None:
        self._delta_origin[button] = self.pos

    def end_step(self) -> None:
        self.clicked = [False] * len(MouseButton)
        self.motion = (0.0, 0.0)
        self.wheel = 0.0
        self.captured = False


def normalise_rect(p0: Point, p1: Point) -> ScreenRect:
    return min(p0[0], p1[0]), min(p0[1], p1[1]), max(p0[0], p1[0]), max(p0[1], p1[1])


def point_in_rect(rect: ScreenRect, point: Point, margin: float = 0.0) -> bool:
    left, top, right, bottom = rect
    x, y = point
    return left - margin <= x <= right + margin and top - margin <= y <= bottom + margin


def _axis_offset(offset: float, half_extent: float) -> float:
    if half_extent > 0:
        return offset / half_extent
    if offset == 0:
        return 0.0
    return math.copysign(math.inf, offset)


def detect_grab_handle(
    rect: ScreenRect,
    pointer: Point,
    border: float = BORDER_SIZE,
    threshold: float = HANDLE_THRESHOLD,
) -> GrabHandle:
    """
    Work out which part of ``rect`` the pointer would grab.

    Outside the rectangle grown by ``border``: nothing. Strictly inside the
    rectangle: the whole region. In between, each axis is judged on its own by
    the pointer's offset from the centre relative to the half extent.
    """
    if not point_in_rect(rect, pointer, border):
        return GrabHandle.NONE

    left, top, right, bottom = rect
    x, y = pointer
    if left < x < right and top < y < bottom:
        return GrabHandle.ALL

    centre_x = (left + right) * 0.5
    centre_y = (top + bottom) * 0.5
    nx = _axis_offset(x - centre_x, (right - left) * 0.5)
    ny = _axis_offset(y - centre_y, (bottom - top) * 0.5)

    handle = GrabHandle.NONE
    if nx < -threshold:
        handle |= GrabHandle.LEFT
    elif nx > threshold:
        handle |= GrabHandle.RIGHT
    if ny < -threshold:
        handle |= GrabHandle.TOP
    elif ny > threshold:
        handle |= GrabHandle.BOTTOM
    return handle


def apply_handle_drag(region: Region, handle: GrabHandle, delta: Point, viewport: Viewport) -> None:
    """
    Move the edges named by ``handle`` by a screen-space ``delta``.

    Each bit moves whichever corner currently forms that edge on screen, so a
    rectangle dragged past itself simply turns inside out.
    """
    scale = viewport.map_scale
    dx = delta[0] / scale
    dy = -delta[1] / scale

    (ax, ay), (bx, by) = region.corner_a, region.corner_b
    a_is_left = ax <= bx
    a_is_top = ay >= by

    if handle & GrabHandle.LEFT:
        if a_is_left:
            ax += dx
        else:
            bx += dx
    if handle & GrabHandle.RIGHT:
        if a_is_left:
            bx += dx
        else:
            ax += dx
    if handle & GrabHandle.TOP:
        if a_is_top:
            ay += dy
        else:
            by += dy
    if handle & GrabHandle.BOTTOM:
        if a_is_top:
            by += dy
        else:
            ay += dy

    region.corner_a = (ax, ay)
    region.corner_b = (bx, by)


@dataclass
class StepResult:
    handle: GrabHandle
    cursor: CursorHint
    highlighted: List[int] = field(default_factory=list)
    consumed: bool = False
    selection_changed: bool = False


class EditorSession:
    """Everything one editing session owns: regions, viewport, loaded map and grab state."""

    def __init__(
        self,
        regions: Optional[RegionList] = None,
        viewport: Optional[Viewport] = None,
        map_data: Optional[MapData] = None,
    ) -> None:
        self.regions = regions if regions is not None else RegionList()
        self.viewport = viewport if viewport is not None else Viewport()
        self.map_data = map_data if map_data is not None else MapData(name="")
        self.handle = GrabHandle.NONE
        self.cursor = CursorHint.ARROW
        self.highlighted: List[int] = []

    def region_screen_rect(self, region: Region) -> ScreenRect:
        return normalise_rect(
            self.viewport.map_to_screen(region.corner_a),
            self.viewport.map_to_screen(region.corner_b),
        )

    def regions_at(self, point: Point) -> List[int]:
        """Indices of the regions whose grab area contains ``point``, topmost first."""
        return [
            index
            for index in range(len(self.regions) - 1, -1, -1)
            if point_in_rect(self.region_screen_rect(self.regions[index]), point, BORDER_SIZE)
        ]

    def step(self, inp: InputState) -> StepResult:
        consumed = inp.captured
        regions = self.regions

        selected = regions.selected_region
        if not consumed and selected is not None:
            rect = self.region_screen_rect(selected)
            if inp.is_dragging(MouseButton.LEFT) and self.handle != GrabHandle.NONE:
                apply_handle_drag(selected, self.handle, inp.drag_delta(MouseButton.LEFT), self.viewport)
                inp.reset_drag_delta(MouseButton.LEFT)
                consumed = True
            elif point_in_rect(rect, inp.pos, BORDER_SIZE):
                self.handle = detect_grab_handle(rect, inp.pos)
                consumed = True
            else:
                self.handle = GrabHandle.NONE
        else:
            self.handle = GrabHandle.NONE

        cursor = cursor_for_handle(self.handle)

        highlighted: List[int] = []
        selection_changed = False
        for index in self.regions_at(inp.pos):
            if index != regions.selected_index and consumed:
                continue
            highlighted.append(index)
            if consumed:
                continue
            if self.handle == GrabHandle.NONE:
                cursor = CursorHint.HAND
            if inp.clicked[MouseButton.LEFT]:
                regions.select(index)
                selection_changed = True
                consumed = True
                logger.debug("Selected region %d (%s)", index, regions[index].title)

        if not consumed:
            if inp.wheel:
                self.viewport.apply_wheel(inp.wheel)
                consumed = True
            if inp.is_dragging(MouseButton.RIGHT):
                self.viewport.pan(*inp.motion)
                consumed = True

        inp.captured = consumed
        self.cursor = cursor or CursorHint.ARROW
        self.highlighted = highlighted
        return StepResult(
            handle=self.handle,
            cursor=self.cursor,
            highlighted=highlighted,
            consumed=consumed,
            selection_changed=selection_changed,
        )
