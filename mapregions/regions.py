"""User-defined map regions: rectangles with a title, a colour and rule flags."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_REGION_TITLE = "Untitled region"
DEFAULT_CORNER_A: Tuple[float, float] = (-64.0, -64.0)
DEFAULT_CORNER_B: Tuple[float, float] = (64.0, 64.0)

# Map coordinates are signed 16-bit
GRID_MIN = -32768.0
GRID_MAX = 32767.0

Point = Tuple[float, float]
Colour = Tuple[float, float, float]


def random_region_color(rng: Optional[random.Random] = None) -> Colour:
    """
    Pick a region colour.

    One channel is uniform in [0, 1], one is 1.0 and one is 0.0, in an order
    chosen by a Fisher-Yates shuffle. This keeps colours saturated without a
    real HSV conversion.
    """
    rng = rng or random
    channels = [rng.random(), 1.0, 0.0]
    for i in (2, 1):
        j = rng.randrange(i + 1)
        channels[i], channels[j] = channels[j], channels[i]
    return channels[0], channels[1], channels[2]


def _clamp(value: float) -> float:
    return max(GRID_MIN, min(GRID_MAX, float(value)))


@dataclass
class Region:
    title: str = DEFAULT_REGION_TITLE
    rules: Dict[str, bool] = field(default_factory=dict)
    corner_a: Point = DEFAULT_CORNER_A
    corner_b: Point = DEFAULT_CORNER_B
    color: Colour = (1.0, 1.0, 1.0)

    def bounds(self) -> Tuple[float, float, float, float]:
        """Normalised ``(min_x, min_y, max_x, max_y)``; the corners themselves are unordered."""
        (ax, ay), (bx, by) = self.corner_a, self.corner_b
        return min(ax, bx), min(ay, by), max(ax, bx), max(ay, by)

    def set_rule(self, name: str, enabled: bool = True) -> None:
        name = name.strip()
        if not name:
            raise ValueError("Rule name must not be empty")
        self.rules[name] = bool(enabled)

    def remove_rule(self, name: str) -> None:
        self.rules.pop(name, None)


class RegionList:
    """Ordered regions plus the index of the selected one (or None)."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self.regions: List[Region] = []
        self.selected_index: Optional[int] = None
        self._rng = rng or random.Random()

    def __len__(self) -> int:
        return len(self.regions)

    def __iter__(self):
        return iter(self.regions)

    def __getitem__(self, index: int) -> Region:
        return self.regions[index]

    def titles(self) -> List[str]:
        return [region.title for region in self.regions]

    # ------------------------------------------------------------------#
    # Selection
    # ------------------------------------------------------------------#
    @property
    def selected_region(self) -> Optional[Region]:
        if self.selected_index is None or not 0 <= self.selected_index < len(self.regions):
            return None
        return self.regions[self.selected_index]

    def select(self, index: Optional[int]) -> None:
        if index is not None and not 0 <= index < len(self.regions):
            raise IndexError(f"No region at index {index}")
        self.selected_index = index

    # ------------------------------------------------------------------#
    # Editing
    # ------------------------------------------------------------------#
    def create_region(self, title_seed: str = DEFAULT_REGION_TITLE) -> Region:
        region = Region(
            title=title_seed or DEFAULT_REGION_TITLE,
            corner_a=DEFAULT_CORNER_A,
            corner_b=DEFAULT_CORNER_B,
            color=random_region_color(self._rng),
        )
        self.regions.append(region)
        region.title = self.unique_title(region.title, len(self.regions) - 1)
        logger.debug("Created region %r", region.title)
        return region

    def unique_title(self, title: str, index: int) -> str:
        """
        Return ``title`` or the first ``"title (N)"``, N >= 2, unused by any
        region other than ``index``.

        Every collision bumps N, and only ``len(regions) - 1`` other titles
        exist, so the loop ends within ``len(regions)`` passes.
        """
        candidate = title
        suffix = 1
        valid = False
        while not valid:
            valid = True
            for other_index, other in enumerate(self.regions):
                if other_index == index:
                    continue
                if other.title == candidate:
                    suffix += 1
                    candidate = f"{title} ({suffix})"
                    valid = False
                    break
        return candidate

    def rename(self, index: int, new_title: str) -> str:
        """Retitle region ``index``; an empty title leaves it unchanged. Returns the applied title."""
        region = self.regions[index]
        if new_title:
            region.title = self.unique_title(new_title, index)
        return region.title

    def reorder(self, i: int, j: int) -> None:
        """Swap regions ``i`` and ``j``; the selection stays on the same region."""
        if not (0 <= i < len(self.regions) and 0 <= j < len(self.regions)):
            raise IndexError(f"Cannot swap regions {i} and {j}")
        self.regions[i], self.regions[j] = self.regions[j], self.regions[i]
        if self.selected_index == i:
            self.selected_index = j
        elif self.selected_index == j:
            self.selected_index = i

    def move(self, index: int, step: int) -> int:
        """Swap region ``index`` with its neighbour ``step`` places away; returns its new index."""
        target = index + step
        if not 0 <= target < len(self.regions):
            return index
        self.reorder(index, target)
        return target

    def delete(self, index: int) -> Region:
        region = self.regions.pop(index)
        if self.selected_index is not None:
            if self.selected_index == index:
                self.selected_index = None
            elif self.selected_index > index:
                self.selected_index -= 1
        logger.debug("Deleted region %r", region.title)
        return region

    def set_bounds(self, index: int, ax: float, ay: float, bx: float, by: float) -> None:
        """Set both corners, clamped to the signed 16-bit map grid."""
        region = self.regions[index]
        region.corner_a = (_clamp(ax), _clamp(ay))
        region.corner_b = (_clamp(bx), _clamp(by))
