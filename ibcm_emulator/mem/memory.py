"""
IBCM Emulator — 4096-Word Memory Image

Memory map:
  $000–$FFF  4096 16-bit words, all readable and writable

Besides the words themselves the image tracks `length`, the number of words
produced by assembly or loading. length only bounds serialization
(to_hex/to_binary); execution may touch any of the 4096 words.

Formats:
  hex listing  one word per line, 4 hex digits; blank and `//` lines ignored
  binary       little-endian byte pairs, no header, at most 8192 bytes
"""

import logging
import re
from typing import Iterable, List, Union

from ..errors import MachineIOError, ProgramTooLong, UserInputError

logger = logging.getLogger(__name__)

MEMORY_SIZE = 4096
WORD_MASK = 0xFFFF
DUMP_WIDTH = 8

_HEX_WORD = re.compile(r'^[0-9a-fA-F]{4}$')


def decode_text(data: Union[str, bytes]) -> str:
    """UTF-8 decode program text. Undecodable input is an I/O failure."""
    if isinstance(data, str):
        return data
    try:
        return data.decode('utf-8')
    except UnicodeDecodeError as e:
        raise MachineIOError(f"could not read line: {e}", e) from e


def source_lines(text: str) -> List[str]:
    """Split on \\n only (a trailing \\r is dropped).

    Form feeds and Unicode line separators stay inside their line.
    """
    if not text:
        return []
    lines = text.split('\n')
    if lines[-1] == '':
        lines.pop()
    return [line[:-1] if line.endswith('\r') else line for line in lines]


class Memory:
    """Flat 4096-word memory with a live program length."""

    def __init__(self, words: Iterable[int] = ()):
        self._mem: List[int] = [0] * MEMORY_SIZE
        self.length: int = 0
        self.load_words(words)

    # ──────────────────────────────────────────────
    # Loading
    # ──────────────────────────────────────────────

    def load_words(self, words: Iterable[int]):
        """Replace the image with `words` starting at address 0."""
        words = list(words)
        if len(words) > MEMORY_SIZE:
            raise ProgramTooLong(
                f"program too long: {len(words)} words (maximum {MEMORY_SIZE})")
        self._mem = [w & WORD_MASK for w in words] + [0] * (MEMORY_SIZE - len(words))
        self.length = len(words)

    @classmethod
    def from_words(cls, words: Iterable[int]) -> 'Memory':
        return cls(words)

    @classmethod
    def from_binary(cls, data: bytes) -> 'Memory':
        """Load little-endian byte pairs.

        An odd trailing byte fills the low half of one last word, which is
        not counted in length.
        """
        data = bytes(data)
        if len(data) > MEMORY_SIZE * 2:
            raise ProgramTooLong(
                f"program too long: {len(data)} bytes (maximum {MEMORY_SIZE * 2})")
        mem = cls()
        for i in range(0, len(data) - 1, 2):
            mem._mem[i // 2] = data[i] | (data[i + 1] << 8)
        if len(data) % 2:
            mem._mem[len(data) // 2] = data[-1]
        mem.length = len(data) // 2
        logger.debug("Loaded %d words from %d bytes of binary", mem.length, len(data))
        return mem

    @classmethod
    def from_hex(cls, text: Union[str, bytes]) -> 'Memory':
        """Load a hex listing: the first 4 characters of each line are a word."""
        words = []
        for raw in source_lines(decode_text(text)):
            line = raw.strip()
            if not line or line.startswith('//'):
                continue
            if not _HEX_WORD.match(line[:4]):
                raise UserInputError(
                    f"expected hexadecimal word at start of line: '{line}'")
            if len(words) >= MEMORY_SIZE:
                raise ProgramTooLong(
                    f"program too long: more than {MEMORY_SIZE} words")
            words.append(int(line[:4], 16))
        logger.debug("Loaded %d words from hex listing", len(words))
        return cls(words)

    # ──────────────────────────────────────────────
    # Access
    # ──────────────────────────────────────────────

    def read(self, addr: int) -> int:
        return self._mem[addr]

    def write(self, addr: int, value: int):
        self._mem[addr] = value & WORD_MASK

    def __getitem__(self, addr):
        return self._mem[addr]

    def __len__(self):
        return MEMORY_SIZE

    @property
    def words(self) -> tuple:
        """Read-only copy of all 4096 words."""
        return tuple(self._mem)

    # ──────────────────────────────────────────────
    # Serialization
    # ──────────────────────────────────────────────

    def to_binary(self) -> bytes:
        out = bytearray()
        for w in self._mem[:self.length]:
            out.append(w & 0xFF)
            out.append((w >> 8) & 0xFF)
        return bytes(out)

    def to_hex(self) -> str:
        return ''.join(f"{w:04x}\n" for w in self._mem[:self.length])

    def dump(self, amount: int) -> List[str]:
        """Format the first `amount` words, 8 per line: '010: 1234 0000 ...'"""
        amount = max(0, min(amount, MEMORY_SIZE))
        lines = []
        for base in range(0, amount, DUMP_WIDTH):
            chunk = self._mem[base:min(base + DUMP_WIDTH, amount)]
            lines.append(f"{base:03x}:" + ''.join(f" {w:04x}" for w in chunk))
        return lines
