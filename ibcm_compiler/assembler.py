"""
IBCM Two-Pass Assembler.

Assembles IBCM assembly text into 16-bit machine words.

Input:  Assembly text, one statement per line
Output: Program (word tuple + label table), hex listing, or listing text

Source format:
  [label:] mnemonic [operand]   // comment

  label     any run of non-whitespace, non-colon characters
  mnemonic  one of the 22 IBCM mnemonics (case-sensitive) or `dw`
  operand   a label name (address instructions), a decimal shift amount
            (shiftL/shiftR/rotL/rotR) or a hex word (dw)

Labels bind to the index of the next statement, so `loop: add one` and a
bare `loop:` line followed by `add one` mean the same thing.

How the two-pass algorithm works:
  Pass 1: Scan all lines, register labels at the current statement index,
          check arity and shift amounts, and record address operands as
          unresolved label references.
  Pass 2: Now that every label is known, resolve the references, parse the
          dw data words, and encode each statement to a word.
"""

from __future__ import annotations
from typing import Dict, List, Mapping, Optional, Tuple, Union
from dataclasses import dataclass, field
import logging
import re
from types import MappingProxyType

from ibcm_emulator.cpu.decoder import (
    ADDR_MASK, INH, SEL, SHF, Instruction, Op, encode, lookup, mode_of,
)
from ibcm_emulator.errors import AssemblerError, ProgramTooLong
from ibcm_emulator.mem.memory import MEMORY_SIZE, decode_text, source_lines

__all__ = ['Assembler', 'AssemblerError', 'Program', 'assemble', 'assemble_to_hex']

logger = logging.getLogger(__name__)

MAX_STATEMENTS = 0xFFFF
DATA_DIRECTIVE = 'dw'

_DATA_WORD = re.compile(r'^[0-9a-fA-F]{1,4}$')
_SHIFT_AMOUNT = re.compile(r'^[0-9]+$')


# ──────────────────────────────────────────────
# Statements
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class LabelRef:
    """Address operand not yet resolved (Pass 1 output)."""
    name: str


@dataclass
class InstrStmt:
    op: Op
    operand: Union[int, LabelRef, None] = None
    line_num: int = 0
    raw: str = ""


@dataclass
class DataStmt:
    text: str
    line_num: int = 0
    raw: str = ""


Statement = Union[InstrStmt, DataStmt]


@dataclass(frozen=True)
class Program:
    """Assembled program: words in statement order plus the label table."""
    words: Tuple[int, ...]
    labels: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))

    def __len__(self):
        return len(self.words)

    def to_hex(self) -> str:
        return ''.join(f"{w:04x}\n" for w in self.words)


# ──────────────────────────────────────────────
# Line Parser
# ──────────────────────────────────────────────

@dataclass
class AsmLine:
    """Parsed assembly source line."""
    label: Optional[str] = None
    mnemonic: Optional[str] = None
    operand: Optional[str] = None
    extra: Optional[str] = None       # first surplus token, if any
    comment: Optional[str] = None
    line_num: int = 0
    raw: str = ""


def _parse_line(line: str, line_num: int) -> AsmLine:
    """Split one line into label, mnemonic, operand and comment."""
    result = AsmLine(line_num=line_num, raw=line)

    text = line
    pos = text.find('//')
    if pos >= 0:
        result.comment = text[pos + 2:].strip()
        text = text[:pos]

    parts = text.split()
    if not parts:
        return result

    first = parts.pop(0)
    colon = first.find(':')
    if colon >= 0:
        result.label = first[:colon]
        if not result.label:
            raise AssemblerError("found empty label", line_num, line)
        rest = first[colon + 1:]
        if rest:
            parts.insert(0, rest)
        if not parts:
            return result
        first = parts.pop(0)

    result.mnemonic = first
    if parts:
        result.operand = parts.pop(0)
    if parts:
        result.extra = parts[0]
    return result


def _shift_amount(operand: Optional[str], line_num: int) -> int:
    if operand is None:
        raise AssemblerError("must specify amount to shift", line_num)
    if not _SHIFT_AMOUNT.match(operand):
        raise AssemblerError("invalid shift amount", line_num)
    amount = int(operand)
    if amount >= 16:
        raise AssemblerError(
            "invalid shift amount (must be between 0 and 15, inclusive)", line_num)
    return amount


# ──────────────────────────────────────────────
# The Assembler
# ──────────────────────────────────────────────

class Assembler:
    """Two-pass IBCM assembler.

    Usage:
        asm = Assembler()
        program = asm.assemble(source_text)
        print(asm.get_listing())
    """

    def __init__(self):
        self.labels: Dict[str, int] = {}       # name -> statement index
        self.statements: List[Statement] = []
        self.words: List[int] = []
        self._lines: List[AsmLine] = []

    def assemble(self, source: Union[str, bytes]) -> Program:
        """Assemble source text into a Program.

        Raises AssemblerError (with the offending line) or ProgramTooLong, and
        MachineIOError for bytes that are not UTF-8.
        Nothing is returned on failure.
        """
        source = decode_text(source)
        self.labels = {}
        self.statements = []
        self.words = []
        self._lines = []

        self._pass1(source)
        self._pass2()

        logger.debug("Assembled %d statement(s), %d label(s)",
                     len(self.words), len(self.labels))
        return Program(tuple(self.words), MappingProxyType(dict(self.labels)))

    def _pass1(self, source: str):
        """Pass 1: register labels and build statements. Stops at the first error."""
        for i, raw in enumerate(source_lines(source), 1):
            line = _parse_line(raw, i)
            self._lines.append(line)
            self._pass1_line(line)
        logger.debug("Pass 1: %d statement(s)", len(self.statements))

    def _pass1_line(self, line: AsmLine):
        if line.label is not None:
            if line.label in self.labels:
                raise AssemblerError(
                    f"found duplicate label: '{line.label}'", line.line_num, line.raw)
            self.labels[line.label] = len(self.statements)

        mnem = line.mnemonic
        if mnem is None:
            return

        if len(self.statements) >= MAX_STATEMENTS:
            raise ProgramTooLong(
                f"program too long: more than {MAX_STATEMENTS} statements")
        if line.extra is not None:
            raise AssemblerError(
                f"unexpected argument {line.extra}", line.line_num, line.raw)

        # ── Directives ──
        if mnem == DATA_DIRECTIVE:
            if line.operand is None:
                raise AssemblerError(
                    "expected data declaration after 'dw'", line.line_num, line.raw)
            self.statements.append(DataStmt(line.operand, line.line_num, line.raw))
            return

        op = lookup(mnem)
        if op is None:
            raise AssemblerError(f"unknown instruction '{mnem}'", line.line_num, line.raw)

        mode = mode_of(op)
        if mode in (INH, SEL):
            if line.operand is not None:
                raise AssemblerError(
                    f"unexpected argument to '{mnem}'", line.line_num, line.raw)
            operand = None
        elif mode == SHF:
            operand = _shift_amount(line.operand, line.line_num)
        else:
            if line.operand is None:
                raise AssemblerError(
                    f"expected argument to '{mnem}'", line.line_num, line.raw)
            operand = LabelRef(line.operand)

        self.statements.append(InstrStmt(op, operand, line.line_num, line.raw))

    def _pass2(self):
        """Pass 2: resolve labels, parse data words, emit."""
        for stmt in self.statements:
            if isinstance(stmt, DataStmt):
                self.words.append(self._assemble_data(stmt))
            else:
                self.words.append(self._assemble_instr(stmt))

    def _assemble_data(self, stmt: DataStmt) -> int:
        if not _DATA_WORD.match(stmt.text):
            raise AssemblerError(
                "invalid data declaration (must be a hexadecimal word)",
                stmt.line_num, stmt.raw)
        return int(stmt.text, 16)

    def _assemble_instr(self, stmt: InstrStmt) -> int:
        operand = stmt.operand
        if isinstance(operand, LabelRef):
            operand = self._resolve_label(operand, stmt)
        return encode(Instruction(stmt.op, operand or 0))

    def _resolve_label(self, ref: LabelRef, stmt: InstrStmt) -> int:
        addr = self.labels.get(ref.name)
        if addr is None:
            raise AssemblerError(
                f"label '{ref.name}' is undefined", stmt.line_num, stmt.raw)
        if addr > ADDR_MASK:
            raise AssemblerError(
                f"label '{ref.name}' is at {addr:#x}, outside the {MEMORY_SIZE}-word "
                f"address space", stmt.line_num, stmt.raw)
        return addr

    def get_listing(self) -> str:
        """Return a human-readable listing showing address, word, and source."""
        lines = []
        lines.append(f"{'ADDR':>4}  {'WORD':<4}  SOURCE")
        lines.append("-" * 60)

        emitted = {stmt.line_num: (idx, self.words[idx])
                   for idx, stmt in enumerate(self.statements)
                   if idx < len(self.words)}
        for asmline in self._lines:
            raw = asmline.raw.strip()
            if asmline.line_num in emitted:
                addr, word = emitted[asmline.line_num]
                lines.append(f"{addr:03x}   {word:04x}  {raw}")
            elif raw:
                lines.append(f"{'':4}  {'':4}  {raw}")

        return '\n'.join(lines)


# ──────────────────────────────────────────────
# Convenience functions
# ──────────────────────────────────────────────

def assemble(source: Union[str, bytes]) -> Program:
    """Assemble source text, return the Program."""
    return Assembler().assemble(source)


def assemble_to_hex(source: Union[str, bytes]) -> str:
    """Assemble source text, return a hex listing (one word per line)."""
    return assemble(source).to_hex()
