"""
IBCM Emulator — Main Simulator Class

Integrates:
  - CPU registers (regs.py)
  - Memory image (memory.py)
  - Instruction codec (decoder.py)
  - ALU operations (alu.py)

Execution model (one step):
  1. Fail with Halted if the machine already executed halt
  2. Fail with OutOfBounds if PC is outside memory (PC is not advanced)
  3. Fetch the word at PC into IR, advance PC
  4. Decode and execute

A runtime fault (bad input, closed stream) propagates from step() after PC
has been advanced; registers and memory stay as they were at the fault so
the machine can be inspected.

I/O:
  readH/readC read one line each from the input stream. With show_prompt
  set, a prompt is written to the output stream first.
  printH/printC write one line each.
"""

import io
import logging
import re
import sys
from pathlib import Path
from typing import Iterable, List, Optional, TextIO, Union

from .cpu.regs import Registers
from .cpu.decoder import Instruction, Op, decode
from .cpu import alu
from .mem.memory import Memory, MEMORY_SIZE
from .errors import Halted, MachineIOError, OutOfBounds, UserInputError

logger = logging.getLogger(__name__)

HEX_PROMPT = "Enter hexadecimal word: "
CHAR_PROMPT = "Enter ASCII character: "

_HEX_INPUT = re.compile(r'^[0-9a-fA-F]+$')


class Simulator:
    """IBCM machine: 4096 words of memory plus ACC, IR and PC.

    Usage:
        sim = Simulator.from_hex(open('prog.hex').read())
        sim.set_input(io.StringIO('12ab\\n'))
        sim.set_output(out, show_prompt=False)
        steps = sim.run()
    """

    def __init__(self, memory: Optional[Memory] = None):
        self.regs = Registers()
        self.mem = memory if memory is not None else Memory()
        self.halted = False

        self._input: TextIO = sys.stdin
        self._output: TextIO = sys.stdout
        self.show_prompt = True

        # Trace output
        self._trace = False
        self._trace_output: List[str] = []

        # Instruction dispatch table (built in _build_dispatch)
        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    @classmethod
    def from_words(cls, words: Iterable[int]) -> 'Simulator':
        return cls(Memory.from_words(words))

    @classmethod
    def from_program(cls, program) -> 'Simulator':
        """Load an assembled Program (anything with a `words` sequence)."""
        return cls.from_words(program.words)

    @classmethod
    def from_binary(cls, path_or_data: Union[str, Path, bytes]) -> 'Simulator':
        if isinstance(path_or_data, (str, Path)):
            data = Path(path_or_data).read_bytes()
        else:
            data = bytes(path_or_data)
        return cls(Memory.from_binary(data))

    @classmethod
    def from_hex(cls, text: Union[str, bytes]) -> 'Simulator':
        return cls(Memory.from_hex(text))

    def reset(self):
        """Clear registers and the halted flag. Memory is untouched."""
        self.regs.reset()
        self.halted = False
        self._trace_output = []

    # ══════════════════════════════════════════════
    # I/O configuration
    # ══════════════════════════════════════════════

    def set_input(self, stream: Union[TextIO, str]):
        """Use `stream` (or the lines of a string) for readH/readC."""
        if isinstance(stream, str):
            stream = io.StringIO(stream)
        self._input = stream

    def set_output(self, stream: TextIO, show_prompt: bool = True):
        self._output = stream
        self.show_prompt = show_prompt

    # ══════════════════════════════════════════════
    # Inspection
    # ══════════════════════════════════════════════

    @property
    def memory(self) -> tuple:
        return self.mem.words

    def regs_tuple(self) -> tuple:
        """(acc as signed, ir, pc)."""
        return self.regs.snapshot()

    def is_halted(self) -> bool:
        return self.halted

    def instruction_at(self, addr: int) -> Instruction:
        return decode(self.mem.read(addr))

    def current_instruction(self) -> Instruction:
        if self.regs.pc >= MEMORY_SIZE:
            raise OutOfBounds(self.regs.pc)
        return self.instruction_at(self.regs.pc)

    def to_hex(self) -> str:
        return self.mem.to_hex()

    def to_binary(self) -> bytes:
        return self.mem.to_binary()

    def dump(self, amount: int) -> List[str]:
        return self.mem.dump(amount)

    def enable_trace(self, enabled: bool = True):
        self._trace = enabled

    def get_trace(self) -> List[str]:
        return list(self._trace_output)

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> bool:
        """Execute one instruction. Returns True once the machine is halted."""
        if self.halted:
            raise Halted()
        pc = self.regs.pc
        ins = self.current_instruction()
        self.regs.ir = self.mem.read(pc)
        self.regs.pc = pc + 1

        if self._trace:
            line = f"{pc:03x}: {str(ins):<10} {self.regs.display()}"
            self._trace_output.append(line)
            logger.debug(line)

        self._dispatch[ins.op](ins.operand)
        return self.halted

    def run(self, max_steps: Optional[int] = None) -> int:
        """Step until halt. Returns the number of steps executed, halt included.

        With max_steps set, stops early once that many steps have run.
        """
        steps = 0
        while max_steps is None or steps < max_steps:
            halted = self.step()
            steps += 1
            if halted:
                logger.debug("Machine halted after %d step(s)", steps)
                break
        return steps

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Handler signature: handler(operand)
    # operand is the address, the shift amount, or 0

    def _build_dispatch(self) -> dict:
        """Build Op -> handler dispatch table."""
        return {
            Op.HALT:    self._op_halt,

            # ── I/O ──
            Op.READ_H:  self._op_read_h,
            Op.READ_C:  self._op_read_c,
            Op.PRINT_H: self._op_print_h,
            Op.PRINT_C: self._op_print_c,

            # ── Shifts ──
            Op.SHIFT_L: self._op_shift_l,
            Op.SHIFT_R: self._op_shift_r,
            Op.ROT_L:   self._op_rot_l,
            Op.ROT_R:   self._op_rot_r,

            # ── Memory / arithmetic / logic ──
            Op.LOAD:    self._op_load,
            Op.STORE:   self._op_store,
            Op.ADD:     self._op_add,
            Op.SUB:     self._op_sub,
            Op.AND:     self._op_and,
            Op.OR:      self._op_or,
            Op.XOR:     self._op_xor,
            Op.NOT:     self._op_not,
            Op.NOP:     self._op_nop,

            # ── Control flow ──
            Op.JMP:     self._op_jmp,
            Op.JMPE:    self._op_jmpe,
            Op.JMPL:    self._op_jmpl,
            Op.BRL:     self._op_brl,
        }

    def _op_halt(self, operand):
        self.halted = True

    def _op_read_h(self, operand):
        text = self._read_line(HEX_PROMPT)
        if not 1 <= len(text) <= 4:
            raise UserInputError(
                f"'{text}' is not a valid hexadecimal word "
                f"(should be at most 4 hexadecimal digits)")
        if not _HEX_INPUT.match(text):
            raise UserInputError(f"'{text}' is not a valid hexadecimal word")
        self.regs.acc = int(text, 16)

    def _op_read_c(self, operand):
        text = self._read_line(CHAR_PROMPT)
        data = text.encode('utf-8')
        if len(data) != 1:
            raise UserInputError(f"expected a single ASCII character; got '{text}'")
        self.regs.acc = data[0]

    def _op_print_h(self, operand):
        self._write(f"{self.regs.acc:04x}\n")

    def _op_print_c(self, operand):
        self._write(f"{chr(self.regs.acc & 0xFF)}\n")

    def _op_shift_l(self, n):
        self.regs.acc = alu.shift_left(self.regs.acc, n)

    def _op_shift_r(self, n):
        self.regs.acc = alu.shift_right(self.regs.acc, n)

    def _op_rot_l(self, n):
        self.regs.acc = alu.rotate_left(self.regs.acc, n)

    def _op_rot_r(self, n):
        self.regs.acc = alu.rotate_right(self.regs.acc, n)

    def _op_load(self, addr):
        self.regs.acc = self.mem.read(addr)

    def _op_store(self, addr):
        self.mem.write(addr, self.regs.acc)

    def _op_add(self, addr):
        self.regs.acc = alu.add16(self.regs.acc, self.mem.read(addr))

    def _op_sub(self, addr):
        self.regs.acc = alu.sub16(self.regs.acc, self.mem.read(addr))

    def _op_and(self, addr):
        self.regs.acc = alu.and16(self.regs.acc, self.mem.read(addr))

    def _op_or(self, addr):
        self.regs.acc = alu.or16(self.regs.acc, self.mem.read(addr))

    def _op_xor(self, addr):
        self.regs.acc = alu.xor16(self.regs.acc, self.mem.read(addr))

    def _op_not(self, operand):
        self.regs.acc = alu.not16(self.regs.acc)

    def _op_nop(self, operand):
        pass

    def _op_jmp(self, addr):
        self.regs.pc = addr

    def _op_jmpe(self, addr):
        if self.regs.acc == 0:
            self.regs.pc = addr

    def _op_jmpl(self, addr):
        if alu.is_negative(self.regs.acc):
            self.regs.pc = addr

    def _op_brl(self, addr):
        # PC already points past the brl
        self.regs.acc = self.regs.pc & alu.WORD_MASK
        self.regs.pc = addr

    # ══════════════════════════════════════════════
    # Stream helpers
    # ══════════════════════════════════════════════

    def _read_line(self, prompt: str) -> str:
        if self.show_prompt:
            self._write(prompt)
            self._flush()
        try:
            line = self._input.readline()
        except (OSError, ValueError) as e:
            raise MachineIOError("could not read user input", e) from e
        if not line:
            raise MachineIOError("could not read user input: end of input")
        return line.strip()

    def _write(self, text: str):
        try:
            self._output.write(text)
        except (OSError, ValueError) as e:
            raise MachineIOError("could not write to output", e) from e

    def _flush(self):
        try:
            self._output.flush()
        except (OSError, ValueError) as e:
            raise MachineIOError("could not display prompt", e) from e
