"""Function-start candidates and their normalised, ordered collection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence


@dataclass
class Candidate:
    """A hypothesised function start; ``end`` stays ``None`` until resolved."""

    start: int
    end: Optional[int] = None

    @property
    def resolved(self) -> bool:
        return self.end is not None


class CandidateSet(Sequence[Candidate]):
    """Sorted, duplicate-free candidates over a region.

    The collection is fixed once built: entries are never inserted, removed or
    reordered, so the upper bound of entry ``i`` (the start of entry ``i + 1``)
    stays valid while ends are being resolved.  Ends are written through
    :meth:`resolve` only.
    """

    def __init__(self, candidates: Iterable[Candidate], region_end: int) -> None:
        self._region_end = region_end
        self._candidates = self._normalise(candidates)

    @classmethod
    def from_starts(cls, starts: Iterable[int], region_end: int) -> "CandidateSet":
        return cls((Candidate(start) for start in starts), region_end)

    @staticmethod
    def _normalise(candidates: Iterable[Candidate]) -> List[Candidate]:
        ordered = sorted(candidates, key=lambda candidate: candidate.start)
        unique: List[Candidate] = []
        for candidate in ordered:
            if unique and unique[-1] == candidate:
                continue
            unique.append(candidate)
        return unique

    def __len__(self) -> int:
        return len(self._candidates)

    def __getitem__(self, index: int) -> Candidate:  # type: ignore[override]
        return self._candidates[index]

    def __iter__(self) -> Iterator[Candidate]:
        return iter(self._candidates)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CandidateSet):
            return NotImplemented
        return self._region_end == other._region_end and self._candidates == other._candidates

    def __repr__(self) -> str:
        return f"CandidateSet({self._candidates!r})"

    def upper_bound(self, index: int) -> int:
        """Exclusive search limit for candidate ``index``."""

        if index + 1 < len(self._candidates):
            return self._candidates[index + 1].start
        return self._region_end

    def resolve(self, index: int, end: int) -> None:
        candidate = self._candidates[index]
        if candidate.end is not None:
            raise ValueError(f"candidate 0x{candidate.start:X} is already resolved")
        candidate.end = end

    def starts(self) -> List[int]:
        return [candidate.start for candidate in self._candidates]

    def iter_resolved(self) -> Iterator[Candidate]:
        for candidate in self._candidates:
            if candidate.end is not None:
                yield candidate

    def describe(self) -> List[dict]:
        return [
            {"start": candidate.start, "end": candidate.end, "bound": self.upper_bound(idx)}
            for idx, candidate in enumerate(self._candidates)
        ]
