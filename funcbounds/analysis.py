"""Function boundary analysis over a single memory region."""

from __future__ import annotations

import logging
import time

from .candidates import CandidateSet
from .end_finder import FunctionEndFinder
from .instruction import InstructionDecoder
from .memory import MemorySource
from .references import ReferenceScanner
from .region import DECODE_SLACK, RegionBuffer
from .registry import FunctionRegistry, RegistryError
from .registry import export_boundaries as _export_boundaries

logger = logging.getLogger(__name__)


class AnalysisError(RuntimeError):
    """An upstream capability failed and the analysis cannot continue."""


class FunctionAnalysis:
    """Discover function ranges inside ``[base, base + size)``.

    The region is snapshotted once on construction.  :meth:`analyze` runs the
    reference scan followed by the end search for every candidate, and
    :meth:`export_boundaries` installs the result into a registry.
    """

    def __init__(
        self,
        source: MemorySource,
        decoder: InstructionDecoder,
        base: int,
        size: int,
        *,
        slack: int = DECODE_SLACK,
    ) -> None:
        if base < 0 or size < 0:
            raise ValueError(f"invalid region base=0x{base:X} size={size}")
        self.decoder = decoder
        self.base = base
        self.size = size
        try:
            self.region = RegionBuffer.load(source, base, size, slack=slack)
        except Exception as exc:
            raise AnalysisError(
                f"memory source failed for region [0x{base:X}, 0x{base + size:X})"
            ) from exc
        self.scanner = ReferenceScanner(self.region, decoder)
        self.end_finder = FunctionEndFinder(self.region, decoder)

    def populate_references(self) -> CandidateSet:
        return self.scanner.collect()

    def analyse_functions(self, candidates: CandidateSet) -> CandidateSet:
        for index, candidate in enumerate(candidates):
            if candidate.resolved:
                continue
            maxaddr = candidates.upper_bound(index)
            end = self.end_finder.find_end(candidate.start, maxaddr)
            if end is None:
                logger.debug("0x%X: no end found before 0x%X", candidate.start, maxaddr)
                continue
            candidates.resolve(index, end)
        return candidates

    def analyze(self) -> CandidateSet:
        logger.info("analysis started...")
        start_time = time.perf_counter()

        candidates = self.populate_references()
        logger.info("%d called functions populated", len(candidates))
        self.analyse_functions(candidates)

        elapsed = (time.perf_counter() - start_time) * 1000
        logger.info("analysis finished in %.0fms!", elapsed)
        return candidates

    def export_boundaries(self, registry: FunctionRegistry, candidates: CandidateSet) -> int:
        installed = export_boundaries(registry, self.base, self.size, candidates)
        logger.info("%d function range(s) recorded", installed)
        return installed


def analyze(
    source: MemorySource,
    decoder: InstructionDecoder,
    base: int,
    size: int,
    *,
    slack: int = DECODE_SLACK,
) -> CandidateSet:
    return FunctionAnalysis(source, decoder, base, size, slack=slack).analyze()


def export_boundaries(
    registry: FunctionRegistry,
    base: int,
    size: int,
    candidates: CandidateSet,
) -> int:
    """Install ``candidates`` for ``[base, base + size)`` into ``registry``."""

    try:
        return _export_boundaries(registry, base, size, candidates)
    except (RegistryError, OSError) as exc:
        raise AnalysisError(
            f"function registry failed for region [0x{base:X}, 0x{base + size:X})"
        ) from exc
