# IBCM Emulator: Itty Bitty Computing Machine simulator
# Part of the IBCM toolkit
#
# Layout:
#   errors.py        exception taxonomy shared with the assembler
#   cpu/decoder.py   word <-> Instruction codec
#   cpu/alu.py       16-bit wrapping arithmetic, shifts, rotates
#   cpu/regs.py      ACC / IR / PC
#   mem/memory.py    4096-word image, hex and binary formats
#   emu.py           fetch/decode/execute loop and I/O
#   debugger.py      command interpreter over a Simulator

from .errors import (
    IBCMError, AssemblerError, ProgramTooLong, OutOfBounds, Halted,
    UserInputError, MachineIOError, DebugError,
)
from .cpu.decoder import Instruction, Op, decode, encode
from .mem.memory import Memory, MEMORY_SIZE
from .emu import Simulator
from .debugger import Debugger

__version__ = "0.1.0"
