"""
IBCM Toolkit — Error Taxonomy

Every failure raised by the assembler, the simulator and the debugger
derives from IBCMError so front ends can catch one type.

Static errors (assembly) carry a 1-based source line number.
Dynamic errors (execution) do not; the machine state at the fault is
left in place for inspection.
"""

from typing import Optional


class IBCMError(Exception):
    """Base class for all IBCM toolkit errors."""


class AssemblerError(IBCMError):
    """Raised on assembly errors."""
    def __init__(self, message: str, line_num: int = 0, line_text: str = ""):
        self.message = message
        self.line_num = line_num
        self.line_text = line_text
        super().__init__(f"Line {line_num}: {message}" if line_num else message)


class ProgramTooLong(IBCMError):
    """Program does not fit: > 4096 words in memory or > 65535 statements."""
    def __init__(self, message: str = "program too long"):
        super().__init__(message)


class OutOfBounds(IBCMError):
    """Program counter left the 4096-word address space."""
    def __init__(self, pc: int):
        self.pc = pc
        super().__init__(f"program counter out of bounds: {pc:#x}")


class Halted(IBCMError):
    """Step attempted on a machine that already executed halt."""
    def __init__(self):
        super().__init__("machine is halted")


class UserInputError(IBCMError):
    """Malformed word typed for readH/readC, or a bad hex listing line."""


class MachineIOError(IBCMError):
    """Input/output stream failure, including end of input."""
    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class DebugError(IBCMError):
    """Bad debugger command or arguments."""
