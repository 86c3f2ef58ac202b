"""Local snapshot of the analysed memory region."""

from __future__ import annotations

import logging
from typing import Optional

from .memory import MemorySource

logger = logging.getLogger(__name__)

# Longest x86 encoding is 15 bytes; one spare byte keeps the last in-region
# instruction decodable.
DECODE_SLACK = 16


class RegionBuffer:
    """Owned copy of ``[base, base + size)`` plus trailing decode slack."""

    def __init__(self, base: int, size: int, data: bytes, *, slack: int = DECODE_SLACK) -> None:
        if base < 0:
            raise ValueError("Region base must be non-negative")
        if size < 0:
            raise ValueError("Region size must be non-negative")
        if slack < 0:
            raise ValueError("Decode slack must be non-negative")
        self.base = base
        self.size = size
        self.slack = slack
        buffer = bytearray(size + slack)
        chunk = bytes(data[:size])
        buffer[: len(chunk)] = chunk
        self._data = bytes(buffer)

    @classmethod
    def load(
        cls,
        source: MemorySource,
        base: int,
        size: int,
        *,
        slack: int = DECODE_SLACK,
    ) -> "RegionBuffer":
        data = source.read(base, size) if size else b""
        if data is None:
            data = b""
        if len(data) < size:
            logger.warning(
                "short read at 0x%X: got %d of %d byte(s), zero-filling the rest",
                base,
                len(data),
                size,
            )
        return cls(base, size, data, slack=slack)

    @property
    def end(self) -> int:
        return self.base + self.size

    def contains(self, address: int) -> bool:
        return self.base <= address < self.base + self.size

    def translate(self, address: int) -> Optional[memoryview]:
        """Return a read-only view starting at ``address`` or ``None``."""

        if not self.contains(address):
            return None
        return memoryview(self._data)[address - self.base :]

    def __len__(self) -> int:  # pragma: no cover - trivial container API
        return self.size

    def __repr__(self) -> str:
        return f"RegionBuffer(base=0x{self.base:X}, size=0x{self.size:X})"
