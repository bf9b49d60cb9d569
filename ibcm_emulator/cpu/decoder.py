"""
IBCM Emulator — Instruction Codec

Pure mapping between a 16-bit word and a typed Instruction. No state.

Word layout:
  bits 15-12  opcode group
  bits 11-10  variant selector (groups 1 and 2 only)
  bits 11-0   address (load/store/arith/logic/jumps)
  bits 3-0    shift amount (group 2)

Addressing modes:
  INH   Inherent, whole low 12 bits unused    halt, not, nop
  SEL   Inherent, selected by bits 11-10      readH, readC, printH, printC
  SHF   Selected, 4-bit shift amount          shiftL, shiftR, rotL, rotR
  ADR   12-bit address                        load ... xor, jmp ... brl

Bits an instruction does not use are kept in Instruction.spare so that
encode(decode(w)) == w for every word. spare never takes part in equality.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

__all__ = [
    'Op', 'Instruction', 'OPCODES', 'INH', 'SEL', 'SHF', 'ADR',
    'decode', 'encode', 'name', 'lookup', 'has_address', 'is_control_flow',
]


# ──────────────────────────────────────────────
# Addressing mode constants
# ──────────────────────────────────────────────

INH = 'INH'
SEL = 'SEL'
SHF = 'SHF'
ADR = 'ADR'

# Unused-bit mask per mode
_SPARE_MASK = {
    INH: 0x0FFF,
    SEL: 0x03FF,
    SHF: 0x03F0,
    ADR: 0x0000,
}

ADDR_MASK = 0x0FFF
SHIFT_MASK = 0x000F


class Op(Enum):
    """IBCM operations. Values are the assembler mnemonics."""
    HALT = 'halt'
    READ_H = 'readH'
    READ_C = 'readC'
    PRINT_H = 'printH'
    PRINT_C = 'printC'
    SHIFT_L = 'shiftL'
    SHIFT_R = 'shiftR'
    ROT_L = 'rotL'
    ROT_R = 'rotR'
    LOAD = 'load'
    STORE = 'store'
    ADD = 'add'
    SUB = 'sub'
    AND = 'and'
    OR = 'or'
    XOR = 'xor'
    NOT = 'not'
    NOP = 'nop'
    JMP = 'jmp'
    JMPE = 'jmpe'
    JMPL = 'jmpl'
    BRL = 'brl'


# ──────────────────────────────────────────────
# Opcode table
# ──────────────────────────────────────────────
# Format: Op -> (group, selector, addressing_mode)

OPCODES: Dict[Op, Tuple[int, int, str]] = {}
_BY_CODE: Dict[Tuple[int, int], Op] = {}


def _op(op: Op, group: int, mode: str, selector: int = 0):
    OPCODES[op] = (group, selector, mode)
    _BY_CODE[(group, selector)] = op


_op(Op.HALT,    0x0, INH)

# ── I/O (group 1) ──
_op(Op.READ_H,  0x1, SEL, 0)
_op(Op.READ_C,  0x1, SEL, 1)
_op(Op.PRINT_H, 0x1, SEL, 2)
_op(Op.PRINT_C, 0x1, SEL, 3)

# ── Shifts (group 2) ──
_op(Op.SHIFT_L, 0x2, SHF, 0)
_op(Op.SHIFT_R, 0x2, SHF, 1)
_op(Op.ROT_L,   0x2, SHF, 2)
_op(Op.ROT_R,   0x2, SHF, 3)

# ── Memory / arithmetic / logic ──
_op(Op.LOAD,    0x3, ADR)
_op(Op.STORE,   0x4, ADR)
_op(Op.ADD,     0x5, ADR)
_op(Op.SUB,     0x6, ADR)
_op(Op.AND,     0x7, ADR)
_op(Op.OR,      0x8, ADR)
_op(Op.XOR,     0x9, ADR)
_op(Op.NOT,     0xA, INH)
_op(Op.NOP,     0xB, INH)

# ── Control flow ──
_op(Op.JMP,     0xC, ADR)
_op(Op.JMPE,    0xD, ADR)
_op(Op.JMPL,    0xE, ADR)
_op(Op.BRL,     0xF, ADR)

CONTROL_FLOW = frozenset({Op.JMP, Op.JMPE, Op.JMPL, Op.BRL})

_BY_MNEMONIC: Dict[str, Op] = {op.value: op for op in Op}


def mode_of(op: Op) -> str:
    return OPCODES[op][2]


# ──────────────────────────────────────────────
# Instruction value
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Instruction:
    """One decoded IBCM instruction.

    operand is the address for ADR instructions, the shift amount for
    SHF instructions and 0 otherwise.
    """
    op: Op
    operand: int = 0
    spare: int = field(default=0, compare=False, repr=False)

    @property
    def mode(self) -> str:
        return mode_of(self.op)

    def __str__(self) -> str:
        mode = self.mode
        if mode == ADR:
            return f"{self.op.value} {self.operand:03x}"
        if mode == SHF:
            return f"{self.op.value} {self.operand}"
        return self.op.value


# ──────────────────────────────────────────────
# Codec
# ──────────────────────────────────────────────

def decode(word: int) -> Instruction:
    """Decode a 16-bit word. Total: every word is some instruction."""
    word &= 0xFFFF
    group = word >> 12
    if group in (0x1, 0x2):
        op = _BY_CODE[(group, (word >> 10) & 0b11)]
    else:
        op = _BY_CODE[(group, 0)]

    mode = mode_of(op)
    if mode == ADR:
        operand = word & ADDR_MASK
    elif mode == SHF:
        operand = word & SHIFT_MASK
    else:
        operand = 0
    return Instruction(op, operand, word & _SPARE_MASK[mode])


def encode(instr: Instruction) -> int:
    """Encode an Instruction back to its word. Out-of-range fields are masked."""
    group, selector, mode = OPCODES[instr.op]
    word = (group << 12) | (instr.spare & _SPARE_MASK[mode])
    if mode in (SEL, SHF):
        word |= selector << 10
    if mode == ADR:
        word |= instr.operand & ADDR_MASK
    elif mode == SHF:
        word |= instr.operand & SHIFT_MASK
    return word


def name(instr: Instruction) -> str:
    """Canonical mnemonic of an instruction."""
    return instr.op.value


def lookup(mnemonic: str) -> Optional[Op]:
    """Mnemonic -> Op, or None if unknown. Case-sensitive."""
    return _BY_MNEMONIC.get(mnemonic)


def has_address(instr: Instruction) -> Optional[int]:
    """Target address of an address-taking instruction, else None."""
    if instr.mode == ADR:
        return instr.operand
    return None


def is_control_flow(instr: Instruction) -> bool:
    return instr.op in CONTROL_FLOW
