"""Fixed-size map lump records.

Every record is a run of signed little-endian 16-bit words, with 8-byte texture
names in sidedefs and sectors. Layouts are spelled out as ``struct`` formats
with an explicit ``<`` so host padding never leaks in.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, fields as dataclass_fields
from typing import ClassVar, List, Optional, Tuple, Type, TypeVar

from mapregions.wad import canonical_name

# Linedef flag bit 0: blocks players and monsters
LINEDEF_IMPASSABLE = 0x0001

R = TypeVar("R", bound="MapRecord")


class MapRecord:
    LAYOUT: ClassVar[struct.Struct]

    @classmethod
    def record_size(cls) -> int:
        return cls.LAYOUT.size

    @classmethod
    def from_fields(cls: Type[R], fields: Tuple) -> R:
        return cls(*fields)  # type: ignore[call-arg]


@dataclass(frozen=True)
class Thing(MapRecord):
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<5h")

    x: int
    y: int
    angle: int
    type_id: int
    flags: int


@dataclass(frozen=True)
class Linedef(MapRecord):
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<7h")

    vertex_a: int
    vertex_b: int
    flags: int
    action: int
    tag: int
    side_front: int
    side_back: int

    @property
    def impassable(self) -> bool:
        return bool(self.flags & LINEDEF_IMPASSABLE)


@dataclass(frozen=True)
class Sidedef(MapRecord):
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<hh8s8s8sh")

    x_offset: int
    y_offset: int
    upper_texture: str
    lower_texture: str
    middle_texture: str
    sector_id: int

    @classmethod
    def from_fields(cls, fields: Tuple) -> "Sidedef":
        x_offset, y_offset, upper, lower, middle, sector_id = fields
        return cls(
            x_offset=x_offset,
            y_offset=y_offset,
            upper_texture=canonical_name(upper),
            lower_texture=canonical_name(lower),
            middle_texture=canonical_name(middle),
            sector_id=sector_id,
        )


@dataclass(frozen=True)
class Vertex(MapRecord):
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<2h")

    x: int
    y: int


@dataclass(frozen=True)
class Sector(MapRecord):
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<hh8s8shhh")

    floor_height: int
    ceiling_height: int
    floor_texture: str
    ceiling_texture: str
    light: int
    special: int
    tag: int

    @classmethod
    def from_fields(cls, fields: Tuple) -> "Sector":
        floor_height, ceiling_height, floor_tex, ceiling_tex, light, special, tag = fields
        return cls(
            floor_height=floor_height,
            ceiling_height=ceiling_height,
            floor_texture=canonical_name(floor_tex),
            ceiling_texture=canonical_name(ceiling_tex),
            light=light,
            special=special,
            tag=tag,
        )


def decode_records(record_type: Type[R], data: bytes) -> List[R]:
    """Decode ``len(data) // record_size`` records; a trailing partial record is ignored."""
    layout = record_type.LAYOUT
    count = len(data) // layout.size
    usable = data[: count * layout.size]
    return [record_type.from_fields(fields) for fields in layout.iter_unpack(usable)]


def encode_records(records: List[MapRecord]) -> bytes:
    """Pack records back to lump bytes (texture names are NUL padded)."""
    parts: List[bytes] = []
    for record in records:
        values = []
        for value in _field_values(record):
            if isinstance(value, str):
                value = value.encode("latin1", errors="replace")[:8]
            values.append(value)
        parts.append(record.LAYOUT.pack(*values))
    return b"".join(parts)


def _field_values(record: MapRecord) -> List[object]:
    return [getattr(record, item.name) for item in dataclass_fields(record)]  # type: ignore[arg-type]


def lookup_vertex(vertexes: List[Vertex], index: int) -> Optional[Vertex]:
    if 0 <= index < len(vertexes):
        return vertexes[index]
    return None
