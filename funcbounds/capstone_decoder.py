"""x86 instruction decoder backed by capstone."""

from __future__ import annotations

from typing import List, Optional

from capstone import (
    CS_ARCH_X86,
    CS_GRP_CALL,
    CS_GRP_INT,
    CS_GRP_IRET,
    CS_GRP_JUMP,
    CS_GRP_RET,
    CS_MODE_32,
    CS_MODE_64,
    Cs,
    CsError,
)
from capstone.x86 import X86_INS_JMP, X86_OP_IMM, X86_OP_MEM, X86_OP_REG

from .instruction import DecodedInstruction, FlowGroup, Operand, OperandKind
from .region import DECODE_SLACK

_MODES = {32: CS_MODE_32, 64: CS_MODE_64}


class CapstoneDecoder:
    """Decode one x86 or x86-64 instruction at a time."""

    def __init__(self, bits: int = 32) -> None:
        if bits not in _MODES:
            raise ValueError(f"unsupported address width: {bits}")
        self.bits = bits
        self.mask = (1 << bits) - 1
        self._md = Cs(CS_ARCH_X86, _MODES[bits])
        self._md.detail = True

    def decode(self, address: int, data: memoryview) -> Optional[DecodedInstruction]:
        code = bytes(data[:DECODE_SLACK])
        if not code:
            return None
        try:
            insn = next(self._md.disasm(code, address, count=1), None)
        except CsError:
            return None
        if insn is None:
            return None
        return DecodedInstruction(
            address=address,
            length=insn.size,
            group=self._group(insn),
            operands=tuple(self._operands(insn)),
            unconditional=insn.id == X86_INS_JMP,
            mnemonic=f"{insn.mnemonic} {insn.op_str}".strip(),
        )

    @staticmethod
    def _group(insn) -> FlowGroup:
        if insn.group(CS_GRP_JUMP):
            return FlowGroup.JUMP
        if insn.group(CS_GRP_CALL):
            return FlowGroup.CALL
        if insn.group(CS_GRP_RET):
            return FlowGroup.RETURN
        if insn.group(CS_GRP_INT) or insn.group(CS_GRP_IRET):
            return FlowGroup.OTHER
        return FlowGroup.NONE

    def _operands(self, insn) -> List[Operand]:
        operands: List[Operand] = []
        for op in insn.operands:
            if op.type == X86_OP_IMM:
                operands.append(Operand(OperandKind.IMMEDIATE, op.imm & self.mask))
            elif op.type == X86_OP_MEM:
                operands.append(Operand(OperandKind.MEMORY, op.mem.disp & self.mask))
            elif op.type == X86_OP_REG:
                operands.append(Operand(OperandKind.REGISTER, op.reg))
            else:
                operands.append(Operand(OperandKind.OTHER))
        return operands
