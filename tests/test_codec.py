"""
Instruction Codec Tests.

Word <-> Instruction mapping for every opcode group, plus the helper
predicates the assembler and debugger rely on.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from ibcm_emulator.cpu.decoder import (
    Instruction, Op, decode, encode, name, lookup, has_address, is_control_flow,
)


class TestDecode:
    """Decoding picks the right group, selector and operand fields."""

    def test_group_table(self):
        cases = [
            (0x0000, Op.HALT),
            (0x1000, Op.READ_H),
            (0x1400, Op.READ_C),
            (0x1800, Op.PRINT_H),
            (0x1C00, Op.PRINT_C),
            (0x2000, Op.SHIFT_L),
            (0x2400, Op.SHIFT_R),
            (0x2800, Op.ROT_L),
            (0x2C00, Op.ROT_R),
            (0x3000, Op.LOAD),
            (0x4000, Op.STORE),
            (0x5000, Op.ADD),
            (0x6000, Op.SUB),
            (0x7000, Op.AND),
            (0x8000, Op.OR),
            (0x9000, Op.XOR),
            (0xA000, Op.NOT),
            (0xB000, Op.NOP),
            (0xC000, Op.JMP),
            (0xD000, Op.JMPE),
            (0xE000, Op.JMPL),
            (0xF000, Op.BRL),
        ]
        for word, op in cases:
            assert decode(word).op == op, f"{word:04x}: expected {op}"

    def test_address_field(self):
        assert decode(0x3ABC) == Instruction(Op.LOAD, 0xABC)
        assert decode(0xCFFF) == Instruction(Op.JMP, 0xFFF)

    def test_shift_amount_is_low_nibble(self):
        assert decode(0x2003) == Instruction(Op.SHIFT_L, 3)
        assert decode(0x240F) == Instruction(Op.SHIFT_R, 15)
        # bits 9-4 are ignored
        assert decode(0x2BF5) == Instruction(Op.ROT_L, 5)

    def test_unused_bits_do_not_affect_equality(self):
        assert decode(0x0123) == Instruction(Op.HALT)
        assert decode(0x1BFF) == Instruction(Op.PRINT_H)
        assert decode(0xA00F) == decode(0xA000)


class TestEncode:
    """Encoding masks fields and restores every word exactly."""

    def test_every_word_round_trips(self):
        for word in range(0x10000):
            assert encode(decode(word)) == word

    def test_fresh_instructions(self):
        assert encode(Instruction(Op.LOAD, 2)) == 0x3002
        assert encode(Instruction(Op.PRINT_C)) == 0x1C00
        assert encode(Instruction(Op.ROT_R, 4)) == 0x2C04
        assert encode(Instruction(Op.HALT)) == 0x0000

    def test_out_of_range_fields_are_masked(self):
        assert encode(Instruction(Op.JMP, 0x1234)) == 0xC234
        assert encode(Instruction(Op.SHIFT_L, 0x13)) == 0x2003

    def test_decode_of_encode_for_in_range_fields(self):
        for op in Op:
            instr = Instruction(op, 0)
            assert decode(encode(instr)) == instr
        assert decode(encode(Instruction(Op.BRL, 0x7FF))) == Instruction(Op.BRL, 0x7FF)


class TestHelpers:

    def test_names(self):
        assert name(decode(0x1000)) == "readH"
        assert name(decode(0x2C01)) == "rotR"
        assert name(decode(0x7000)) == "and"

    @pytest.mark.parametrize("mnemonic", [op.value for op in Op])
    def test_lookup_round_trip(self, mnemonic):
        assert lookup(mnemonic).value == mnemonic

    def test_lookup_is_case_sensitive(self):
        assert lookup("LOAD") is None
        assert lookup("readh") is None
        assert lookup("dw") is None

    def test_has_address(self):
        assert has_address(decode(0x4123)) == 0x123
        assert has_address(decode(0xF010)) == 0x010
        assert has_address(decode(0x2003)) is None
        assert has_address(decode(0xA000)) is None

    def test_control_flow(self):
        jumps = {Op.JMP, Op.JMPE, Op.JMPL, Op.BRL}
        for op in Op:
            assert is_control_flow(Instruction(op, 0)) == (op in jumps)

    def test_display(self):
        assert str(decode(0x3002)) == "load 002"
        assert str(decode(0x2003)) == "shiftL 3"
        assert str(decode(0x0000)) == "halt"
