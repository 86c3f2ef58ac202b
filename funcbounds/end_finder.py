"""Heuristic search for the end of a function."""

from __future__ import annotations

import logging
from typing import Optional

from .instruction import DecodedInstruction, InstructionDecoder
from .region import RegionBuffer

logger = logging.getLogger(__name__)


class FunctionEndFinder:
    """Walk forward from a candidate start and guess where the function ends.

    The walk is linear and stops at ``maxaddr`` (the next candidate or the end
    of the region).  A ``ret`` ends the function unless a forward branch seen
    earlier lands beyond it; an unconditional jump back before the last
    ``ret`` pushes the end out to the jump itself.
    """

    def __init__(self, region: RegionBuffer, decoder: InstructionDecoder) -> None:
        self.region = region
        self.decoder = decoder

    def _decode(self, address: int) -> Optional[DecodedInstruction]:
        view = self.region.translate(address)
        if view is None:
            return None
        instruction = self.decoder.decode(address, view)
        if instruction is None or instruction.length <= 0:
            return None
        return instruction

    def is_import_stub(self, start: int) -> bool:
        first = self._decode(start)
        return first is not None and first.is_indirect_jump()

    def find_end(self, start: int, maxaddr: int) -> Optional[int]:
        # jmp [address] is an import thunk
        first = self._decode(start)
        if first is not None and first.is_indirect_jump():
            logger.debug("0x%X: import stub (%s)", start, first.mnemonic)
            return None

        end: Optional[int] = None
        jumpback: Optional[int] = None
        fardest = 0
        address = start
        while address < maxaddr:
            instruction = self._decode(address)
            if instruction is None:
                address += 1
                continue
            if instruction.end > maxaddr:
                break

            dest = instruction.jump_target()
            if dest is not None:
                if dest >= maxaddr:
                    # jumps across the function boundary are not used yet
                    pass
                elif dest > address and dest > fardest:
                    fardest = dest
                elif end is not None and dest < end and instruction.unconditional:
                    jumpback = address
            elif instruction.is_return:
                end = address
                if fardest < address:
                    logger.debug("0x%X: end at 0x%X (%s)", start, address, instruction.mnemonic)
                    break

            address += instruction.length

        if jumpback is not None and (end is None or jumpback > end):
            return jumpback
        return end
