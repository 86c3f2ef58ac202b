"""Decoded instruction model and the decoder capability contract."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, Tuple


class FlowGroup(Enum):
    """Control-flow classification used by the boundary heuristics."""

    NONE = "none"
    JUMP = "jump"
    CALL = "call"
    RETURN = "return"
    OTHER = "other"


class OperandKind(Enum):
    IMMEDIATE = "immediate"
    MEMORY = "memory"
    REGISTER = "register"
    OTHER = "other"


@dataclass(frozen=True)
class Operand:
    kind: OperandKind
    value: int = 0


@dataclass(frozen=True)
class DecodedInstruction:
    """A single decoded instruction.

    Only the properties needed to classify control flow survive decoding: the
    length used to advance the scan, the flow group, the operand list and
    whether a jump is the plain unconditional form.  ``mnemonic`` is kept for
    log output only.
    """

    address: int
    length: int
    group: FlowGroup = FlowGroup.NONE
    operands: Tuple[Operand, ...] = ()
    unconditional: bool = False
    mnemonic: str = ""

    @property
    def end(self) -> int:
        return self.address + self.length

    @property
    def is_jump(self) -> bool:
        return self.group is FlowGroup.JUMP

    @property
    def is_return(self) -> bool:
        return self.group is FlowGroup.RETURN

    def immediates(self) -> Tuple[int, ...]:
        return tuple(
            operand.value for operand in self.operands if operand.kind is OperandKind.IMMEDIATE
        )

    def jump_target(self) -> Optional[int]:
        """Return the immediate destination of a jump, if it has one."""

        if not self.is_jump or not self.operands:
            return None
        first = self.operands[0]
        if first.kind is not OperandKind.IMMEDIATE:
            return None
        return first.value

    def is_indirect_jump(self) -> bool:
        """``jmp [address]``: a jump whose sole operand is a memory operand."""

        return (
            self.is_jump
            and len(self.operands) == 1
            and self.operands[0].kind is OperandKind.MEMORY
        )


class InstructionDecoder(Protocol):
    """Decode exactly one instruction.

    ``data`` is a read-only view starting at ``address``; it may extend past the
    logical end of the region by the decode slack.  Implementations return
    ``None`` for invalid or truncated encodings and never raise for bad bytes.
    """

    def decode(self, address: int, data: memoryview) -> Optional[DecodedInstruction]:
        ...
