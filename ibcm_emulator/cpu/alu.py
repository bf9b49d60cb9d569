"""
IBCM Emulator — ALU Operations

All values are 16-bit unsigned bit patterns (0..0xFFFF). The IBCM has no
flags register: overflow wraps silently and the only signed interpretation
is the sign test done by jmpl.

shiftR is a logical (unsigned) shift even though jmpl treats the
accumulator as signed.
"""

WORD_MASK = 0xFFFF
SIGN_BIT = 0x8000


def to_signed(value: int) -> int:
    """Two's complement view of a 16-bit pattern."""
    value &= WORD_MASK
    return value - 0x10000 if value & SIGN_BIT else value


def is_negative(value: int) -> bool:
    return bool(value & SIGN_BIT)


# ══════════════════════════════════════════════
# Arithmetic / logic
# ══════════════════════════════════════════════

def add16(a: int, b: int) -> int:
    return (a + b) & WORD_MASK


def sub16(a: int, b: int) -> int:
    return (a - b) & WORD_MASK


def and16(a: int, b: int) -> int:
    return a & b & WORD_MASK


def or16(a: int, b: int) -> int:
    return (a | b) & WORD_MASK


def xor16(a: int, b: int) -> int:
    return (a ^ b) & WORD_MASK


def not16(a: int) -> int:
    return ~a & WORD_MASK


# ══════════════════════════════════════════════
# Shifts and rotates (amount 0..15)
# ══════════════════════════════════════════════

def shift_left(a: int, n: int) -> int:
    return (a << n) & WORD_MASK


def shift_right(a: int, n: int) -> int:
    """Logical right shift: vacated high bits are zero."""
    return (a & WORD_MASK) >> n


def rotate_left(a: int, n: int) -> int:
    a &= WORD_MASK
    n &= 0xF
    return ((a << n) | (a >> (16 - n))) & WORD_MASK


def rotate_right(a: int, n: int) -> int:
    a &= WORD_MASK
    n &= 0xF
    return ((a >> n) | (a << (16 - n))) & WORD_MASK
