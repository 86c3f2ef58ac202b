"""Memory sources used to populate a region snapshot."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol


class MemorySource(Protocol):
    """Read ``length`` bytes at ``address``.

    Sources may return fewer bytes than requested when part of the range is
    unmapped.  Raising signals that the source itself is unavailable.
    """

    def read(self, address: int, length: int) -> bytes:
        ...


class BytesMemorySource:
    """Serve reads from an in-memory image mapped at ``load_address``."""

    def __init__(self, data: bytes, load_address: int = 0) -> None:
        self.data = bytes(data)
        self.load_address = load_address

    def read(self, address: int, length: int) -> bytes:
        offset = address - self.load_address
        if offset < 0 or length <= 0:
            return b""
        return self.data[offset : offset + length]


class FileMemorySource:
    """Serve reads from a raw memory dump on disk.

    The dump is read lazily on every request so large images are never held in
    memory twice.  Reads past the end of the file come back short.
    """

    def __init__(self, path: Path, load_address: int = 0) -> None:
        self.path = path
        self.load_address = load_address

    @property
    def size(self) -> int:
        return self.path.stat().st_size

    def read(self, address: int, length: int) -> bytes:
        offset = address - self.load_address
        if offset < 0 or length <= 0:
            return b""
        with self.path.open("rb") as handle:
            handle.seek(offset)
            return handle.read(length)
