"""
IBCM Emulator — CPU Register Set

Register model:
  ACC — 16-bit accumulator, stored as a raw bit pattern
  IR  — 16-bit instruction register, last fetched word
  PC  — program counter, index of the next word to fetch
"""

from .alu import to_signed


class Registers:
    """IBCM CPU register set."""

    __slots__ = ('acc', 'ir', 'pc')

    def __init__(self):
        self.acc: int = 0
        self.ir: int = 0
        self.pc: int = 0

    @property
    def acc_signed(self) -> int:
        return to_signed(self.acc)

    def reset(self):
        self.acc = 0
        self.ir = 0
        self.pc = 0

    def snapshot(self) -> tuple:
        """(acc signed, ir, pc)."""
        return (self.acc_signed, self.ir, self.pc)

    def display(self) -> str:
        return f"PC={self.pc:03X} ACC={self.acc:04X} IR={self.ir:04X}"

    def __repr__(self):
        return f"Registers({self.display()})"
