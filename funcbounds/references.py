"""Linear sweep for immediate references into the analysed region."""

from __future__ import annotations

from typing import Iterator, List

from .candidates import Candidate, CandidateSet
from .instruction import DecodedInstruction, InstructionDecoder
from .region import RegionBuffer


class ReferenceScanner:
    """Collect in-region immediates (``call``, ``push``, ``mov`` operands).

    Jump operands are ignored: their targets are basic-block labels inside a
    function, not entry points.  Decode failures resynchronise one byte later.
    """

    def __init__(self, region: RegionBuffer, decoder: InstructionDecoder) -> None:
        self.region = region
        self.decoder = decoder

    def iter_instructions(self) -> Iterator[DecodedInstruction]:
        address = self.region.base
        end = self.region.end
        while address < end:
            view = self.region.translate(address)
            instruction = self.decoder.decode(address, view) if view is not None else None
            if instruction is None or instruction.length <= 0:
                address += 1
                continue
            yield instruction
            address += instruction.length

    def references(self, instruction: DecodedInstruction) -> List[int]:
        if instruction.is_jump:
            return []
        return [value for value in instruction.immediates() if self.region.contains(value)]

    def scan(self) -> List[Candidate]:
        """Return the raw, unsorted candidate list."""

        found: List[Candidate] = []
        for instruction in self.iter_instructions():
            found.extend(Candidate(value) for value in self.references(instruction))
        return found

    def collect(self) -> CandidateSet:
        return CandidateSet(self.scan(), self.region.end)
