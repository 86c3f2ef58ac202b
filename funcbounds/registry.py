"""Function range registries and the boundary exporter."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Protocol

from .candidates import Candidate

logger = logging.getLogger(__name__)


class RegistryError(RuntimeError):
    """Raised when a registry cannot be read or written."""


@dataclass(frozen=True)
class FunctionRange:
    start: int
    end: int
    manual: bool = False

    def to_json(self) -> dict:
        return {"start": self.start, "end": self.end, "manual": self.manual}


class FunctionRegistry(Protocol):
    def remove_range(self, start: int, end: int) -> None:
        """Forget every recorded range lying fully inside ``[start, end)``."""

    def add_range(self, start: int, end: int, heuristic: bool = True) -> None:
        """Record ``[start, end)`` as a function."""


class InMemoryFunctionRegistry:
    """Registry holding ranges in a sorted list."""

    def __init__(self, ranges: Iterable[FunctionRange] = ()) -> None:
        self._ranges: List[FunctionRange] = sorted(ranges, key=lambda item: (item.start, item.end))

    def remove_range(self, start: int, end: int) -> None:
        kept = [item for item in self._ranges if not (start <= item.start and item.end <= end)]
        removed = len(self._ranges) - len(kept)
        if removed:
            logger.debug("removed %d range(s) inside [0x%X, 0x%X)", removed, start, end)
        self._ranges = kept

    def add_range(self, start: int, end: int, heuristic: bool = True) -> None:
        if end < start:
            raise ValueError(f"invalid function range [0x{start:X}, 0x{end:X})")
        self._ranges.append(FunctionRange(start, end, manual=not heuristic))
        self._ranges.sort(key=lambda item: (item.start, item.end))

    def ranges(self) -> List[FunctionRange]:
        return list(self._ranges)

    def __len__(self) -> int:
        return len(self._ranges)


class JsonFunctionRegistry(InMemoryFunctionRegistry):
    """Registry persisted as a JSON document next to the analysed dump."""

    VERSION = 1

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(self._load())

    def _load(self) -> List[FunctionRange]:
        if not self.path.exists():
            return []
        try:
            payload = json.loads(self.path.read_text("utf-8"))
        except (OSError, ValueError) as exc:
            raise RegistryError(f"failed to read function registry {self.path}") from exc
        if not isinstance(payload, dict) or payload.get("version") != self.VERSION:
            raise RegistryError(f"function registry {self.path} has incompatible version")
        try:
            return [
                FunctionRange(int(entry["start"]), int(entry["end"]), bool(entry.get("manual", False)))
                for entry in payload.get("functions", [])
            ]
        except (KeyError, TypeError, ValueError) as exc:
            raise RegistryError(f"function registry {self.path} contains invalid entries") from exc

    def save(self) -> None:
        payload = {
            "version": self.VERSION,
            "functions": [item.to_json() for item in self._ranges],
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload, indent=2, sort_keys=True), "utf-8")
        except OSError as exc:
            raise RegistryError(f"failed to write function registry {self.path}") from exc


def export_boundaries(
    registry: FunctionRegistry,
    base: int,
    size: int,
    candidates: Iterable[Candidate],
) -> int:
    """Replace the ranges recorded for ``[base, base + size)``.

    Returns the number of ranges installed.  Unresolved candidates are skipped.
    """

    registry.remove_range(base, base + size)
    installed = 0
    for candidate in candidates:
        if candidate.end is None:
            continue
        registry.add_range(candidate.start, candidate.end, heuristic=True)
        installed += 1
    return installed
