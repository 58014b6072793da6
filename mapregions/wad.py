"""Reader for WAD archives (IWAD/PWAD lump containers)."""

from __future__ import annotations

import io
import logging
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

WAD_MAGICS = (b"IWAD", b"PWAD")
LUMP_NAME_LEN = 8
NAME_ENCODING = "latin1"

HEADER_STRUCT = struct.Struct("<4sii")  # tag, lump count, directory offset
DIRECTORY_STRUCT = struct.Struct("<ii8s")  # offset, size, name


class WadError(Exception):
    """Base class for archive and map loading failures."""


class ArchiveOpenError(WadError):
    """The byte source could not be opened or read."""


class ArchiveFormatError(WadError):
    """The header is not a usable WAD header."""


class LumpBoundsError(WadError):
    """A lump's byte range falls outside the archive."""


def canonical_name(raw: Union[bytes, str]) -> str:
    """
    Return the comparable form of a lump or texture name.

    Names are stored in 8 bytes and are not guaranteed to be NUL-terminated.
    Everything from the first NUL onwards is dropped, as is trailing space
    padding.
    """
    if isinstance(raw, str):
        raw = raw.encode(NAME_ENCODING, errors="replace")
    raw = raw[:LUMP_NAME_LEN]
    end = raw.find(b"\x00")
    if end != -1:
        raw = raw[:end]
    return raw.rstrip(b" ").decode(NAME_ENCODING, errors="replace")


def names_match(raw: Union[bytes, str], wanted: Union[bytes, str]) -> bool:
    return canonical_name(raw) == canonical_name(wanted)


@dataclass(frozen=True)
class WadHeader:
    tag: bytes
    lump_count: int
    directory_offset: int

    @property
    def kind(self) -> str:
        return self.tag.decode(NAME_ENCODING, errors="replace")


@dataclass(frozen=True)
class LumpEntry:
    """A directory record: where a lump lives and what it is called."""

    offset: int
    size: int
    raw_name: bytes

    @property
    def name(self) -> str:
        return canonical_name(self.raw_name)

    def matches(self, wanted: Union[bytes, str]) -> bool:
        return names_match(self.raw_name, wanted)


class WadArchive:
    """
    An opened WAD archive.

    Construction never raises: use :meth:`open` or :meth:`from_bytes` and
    check :attr:`valid`. An invalid archive has no directory, keeps the
    failure in :attr:`error` and has already released its byte source.
    """

    def __init__(
        self,
        source: Optional[BinaryIO],
        header: Optional[WadHeader] = None,
        directory: Optional[List[LumpEntry]] = None,
        error: Optional[WadError] = None,
        name: str = "<memory>",
    ) -> None:
        self._source = source
        self.header = header
        self.directory: List[LumpEntry] = directory if directory is not None else []
        self.error = error
        self.name = name
        self.valid = error is None and header is not None
        self._source_size = 0
        if source is not None:
            source.seek(0, io.SEEK_END)
            self._source_size = source.tell()

    # ------------------------------------------------------------------#
    # Construction
    # ------------------------------------------------------------------#
    @classmethod
    def open(cls, path: Union[str, Path]) -> "WadArchive":
        path = Path(path)
        logger.info("Attempting to open file: %s", path)
        try:
            source = path.open("rb")
        except OSError as exc:
            logger.error("Cannot open file: %s (%s)", path, exc)
            return cls(None, error=ArchiveOpenError(f"Cannot open {path}: {exc}"), name=str(path))
        return cls._from_source(source, name=str(path))

    @classmethod
    def from_bytes(cls, data: bytes, name: str = "<memory>") -> "WadArchive":
        return cls._from_source(io.BytesIO(bytes(data)), name=name)

    @classmethod
    def _from_source(cls, source: BinaryIO, name: str) -> "WadArchive":
        archive: Optional[WadArchive] = None
        try:
            source_size = source.seek(0, io.SEEK_END)
            source.seek(0)
            header = _read_header(source)
            directory = _read_directory(source, header, source_size)
            archive = cls(source, header=header, directory=directory, name=name)
        except WadError as exc:
            logger.warning("%s: %s", name, exc)
            return cls(None, error=exc, name=name)
        except OSError as exc:
            logger.error("%s: read failed (%s)", name, exc)
            return cls(None, error=ArchiveOpenError(f"Read failed for {name}: {exc}"), name=name)
        finally:
            if archive is None:
                source.close()
        logger.info("Finished opening WAD %s (%s, %d lumps)", name, header.kind, len(directory))
        return archive

    # ------------------------------------------------------------------#
    # Lifetime
    # ------------------------------------------------------------------#
    def close(self) -> None:
        if self._source is not None:
            self._source.close()
            self._source = None

    @property
    def closed(self) -> bool:
        return self._source is None

    def __enter__(self) -> "WadArchive":
        return self

    def __exit__(self, *_exc) -> None:
        self.close()

    # ------------------------------------------------------------------#
    # Directory access
    # ------------------------------------------------------------------#
    def __len__(self) -> int:
        return len(self.directory)

    def __iter__(self) -> Iterator[LumpEntry]:
        return iter(self.directory)

    def lump_names(self) -> List[str]:
        return [entry.name for entry in self.directory]

    def find_lump(self, name: Union[bytes, str], start: int = 0) -> Optional[int]:
        """Index of the first entry at or after ``start`` named ``name``."""
        for index in range(max(start, 0), len(self.directory)):
            if self.directory[index].matches(name):
                return index
        return None

    def read_lump(self, entry: LumpEntry) -> bytes:
        """Return the bytes of ``entry`` after checking its range against the source."""
        if self._source is None:
            raise ArchiveOpenError(f"{self.name} is closed")
        if entry.offset < 0 or entry.size < 0 or entry.offset + entry.size > self._source_size:
            raise LumpBoundsError(
                f"Lump {entry.name!r} range {entry.offset}+{entry.size} "
                f"outside archive of {self._source_size} bytes"
            )
        self._source.seek(entry.offset)
        return self._source.read(entry.size)


def _read_header(source: BinaryIO) -> WadHeader:
    blob = source.read(HEADER_STRUCT.size)
    if len(blob) < HEADER_STRUCT.size:
        raise ArchiveFormatError("File is too short for a WAD header")
    tag, lump_count, directory_offset = HEADER_STRUCT.unpack(blob)
    if tag not in WAD_MAGICS:
        raise ArchiveFormatError(f"File is not a WAD (tag {tag!r})")
    if lump_count <= 0:
        raise ArchiveFormatError("File has no lumps")
    if directory_offset < 0:
        raise ArchiveFormatError(f"Negative directory offset {directory_offset}")
    return WadHeader(tag=tag, lump_count=lump_count, directory_offset=directory_offset)


def _read_directory(source: BinaryIO, header: WadHeader, source_size: int) -> List[LumpEntry]:
    """Read the directory, keeping only the whole entries that fit in the file."""
    available = max(0, source_size - header.directory_offset) // DIRECTORY_STRUCT.size
    count = min(header.lump_count, available)
    source.seek(header.directory_offset)
    blob = source.read(count * DIRECTORY_STRUCT.size)
    complete = len(blob) // DIRECTORY_STRUCT.size
    if complete < header.lump_count:
        logger.warning(
            "Directory truncated: expected %d entries, found %d",
            header.lump_count,
            complete,
        )
    if complete == 0:
        raise ArchiveFormatError("Directory holds no complete entries")
    directory: List[LumpEntry] = []
    for offset, size, raw_name in DIRECTORY_STRUCT.iter_unpack(blob[: complete * DIRECTORY_STRUCT.size]):
        entry = LumpEntry(offset=offset, size=size, raw_name=raw_name)
        logger.debug("Lump %d: %s", len(directory), entry.name)
        directory.append(entry)
    return directory


def build_wad(lumps: Sequence[Tuple[Union[str, bytes], bytes]], tag: bytes = b"PWAD") -> bytes:
    """
    Assemble a WAD image from ``(name, data)`` pairs.

    Lump data is laid out straight after the header and the directory goes
    last, the way most lump editors write files.
    """
    body = bytearray()
    directory = bytearray()
    cursor = HEADER_STRUCT.size
    for name, data in lumps:
        raw_name = name.encode(NAME_ENCODING) if isinstance(name, str) else bytes(name)
        directory.extend(DIRECTORY_STRUCT.pack(cursor, len(data), raw_name[:LUMP_NAME_LEN].ljust(LUMP_NAME_LEN, b"\x00")))
        body.extend(data)
        cursor += len(data)
    header = HEADER_STRUCT.pack(tag, len(lumps), cursor)
    return bytes(header + body + directory)
