"""
Assembler Tests for the IBCM toolkit.

Tests the two-pass assembler against hand-encoded IBCM words and checks
every diagnostic carries the right line number.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from ibcm_compiler.assembler import Assembler, AssemblerError, assemble, assemble_to_hex
from ibcm_emulator.errors import MachineIOError, ProgramTooLong


COPY_PROGRAM = """\
jmp init
src: dw 1234
dest: dw 0000
init:
load src
store dest
halt
"""


def _words(source: str) -> list:
    return list(assemble(source).words)


def _error(source: str) -> AssemblerError:
    with pytest.raises(AssemblerError) as info:
        assemble(source)
    return info.value


class TestEncoding:
    """Individual statements encode to the expected words."""

    def test_operandless_instructions(self):
        cases = [
            ("halt",   0x0000),
            ("readH",  0x1000),
            ("readC",  0x1400),
            ("printH", 0x1800),
            ("printC", 0x1C00),
            ("not",    0xA000),
            ("nop",    0xB000),
        ]
        for src, expected in cases:
            assert _words(src) == [expected], src

    def test_shifts(self):
        cases = [
            ("shiftL 1",  0x2001),
            ("shiftR 15", 0x240F),
            ("rotL 0",    0x2800),
            ("rotR 8",    0x2C08),
        ]
        for src, expected in cases:
            assert _words(src) == [expected], src

    def test_address_instructions(self):
        mnemonics = ["load", "store", "add", "sub", "and", "or", "xor",
                     "jmp", "jmpe", "jmpl", "brl"]
        for group, mnem in zip([3, 4, 5, 6, 7, 8, 9, 0xC, 0xD, 0xE, 0xF], mnemonics):
            words = _words(f"{mnem} here\nhere: halt")
            assert words == [(group << 12) | 1, 0x0000], mnem

    def test_data_words(self):
        assert _words("dw 1234\ndw ffff\ndw 0000\ndw 7") == [0x1234, 0xFFFF, 0x0000, 0x0007]

    def test_copy_program(self):
        assert _words(COPY_PROGRAM) == [0xC003, 0x1234, 0x0000, 0x3001, 0x4002, 0x0000]


class TestLabels:

    def test_forward_and_backward_references(self):
        src = "top: jmp end\nnop\nend: jmp top"
        assert _words(src) == [0xC002, 0xB000, 0xC000]

    def test_label_table(self):
        program = assemble(COPY_PROGRAM)
        assert program.labels == {"src": 1, "dest": 2, "init": 3}

    def test_label_table_is_read_only(self):
        program = assemble(COPY_PROGRAM)
        with pytest.raises(TypeError):
            program.labels["src"] = 7

    def test_label_with_mnemonic_in_same_token(self):
        assert _words("a:nop\njmp a") == [0xB000, 0xC000]

    def test_label_only_line_binds_to_next_statement(self):
        program = assemble("nop\nmark:\n\n// comment\nhalt")
        assert program.labels["mark"] == 1

    def test_label_at_end_of_program(self):
        program = assemble("jmp end\nend:")
        assert program.words == (0xC001,)
        assert program.labels["end"] == 1

    def test_unicode_label(self):
        assert _words("jmp ünïcødé\nünïcødé: halt") == [0xC001, 0x0000]

    def test_duplicate_label_cites_second_line(self):
        err = _error("x: nop\nnop\nx: halt")
        assert err.line_num == 3
        assert "duplicate label" in str(err)
        assert str(err).startswith("Line 3:")

    def test_empty_label(self):
        err = _error("nop\n: halt")
        assert err.line_num == 2
        assert "empty label" in str(err)

    def test_undefined_label_cites_line_of_use(self):
        err = _error("nop\nnop\nload nowhere")
        assert err.line_num == 3
        assert "label 'nowhere' is undefined" in str(err)


class TestSyntax:

    def test_comments_and_whitespace(self):
        src = "   // header\n\tload   x   // trailing\n\nx:\tdw\t00ff  //data\n"
        assert _words(src) == [0x3001, 0x00FF]

    def test_empty_source(self):
        program = assemble("")
        assert program.words == ()
        assert program.labels == {}

    def test_bytes_input(self):
        assert _words(b"halt") == [0x0000]

    def test_invalid_utf8_is_io_error(self):
        with pytest.raises(MachineIOError, match="could not read line"):
            assemble(b"halt // \xff\xfe\n")

    def test_only_newlines_end_a_line(self):
        assert _words("nop // page\x0cbreak\nhalt") == [0xB000, 0x0000]
        assert _words("nop // a\u2028b\x85c\r\nhalt\r\n") == [0xB000, 0x0000]

    def test_line_numbers_ignore_form_feeds(self):
        err = _error("nop // one\x0ctwo\x0bthree\nbogus")
        assert err.line_num == 2

    def test_deterministic(self):
        assert assemble(COPY_PROGRAM) == assemble(COPY_PROGRAM)

    def test_unknown_instruction(self):
        err = _error("nop\nfrobnicate x")
        assert err.line_num == 2
        assert "unknown instruction 'frobnicate'" in str(err)

    def test_mnemonics_are_case_sensitive(self):
        err = _error("HALT")
        assert "unknown instruction" in str(err)

    def test_too_many_tokens(self):
        err = _error("load a b\na: halt")
        assert err.line_num == 1
        assert "unexpected argument b" in str(err)

    def test_argument_to_operandless_instruction(self):
        err = _error("halt now")
        assert "unexpected argument to 'halt'" in str(err)

    def test_missing_address(self):
        err = _error("nop\nstore")
        assert err.line_num == 2
        assert "expected argument to 'store'" in str(err)

    def test_missing_data(self):
        err = _error("dw")
        assert "expected data declaration after 'dw'" in str(err)

    @pytest.mark.parametrize("operand", ["xyz", "12345", "-1", "0x12"])
    def test_invalid_data(self, operand):
        err = _error(f"dw {operand}")
        assert "invalid data declaration" in str(err)

    def test_missing_shift_amount(self):
        assert "must specify amount to shift" in str(_error("shiftL"))

    def test_invalid_shift_amount(self):
        assert "invalid shift amount" in str(_error("rotR x"))

    def test_shift_amount_out_of_range(self):
        err = _error("nop\nshiftR 16")
        assert err.line_num == 2
        assert "between 0 and 15" in str(err)

    def test_first_pass_error_wins_over_undefined_label(self):
        err = _error("load nowhere\nbogus")
        assert err.line_num == 2


class TestLimits:

    def test_label_beyond_address_space(self):
        src = "jmp far\n" + "nop\n" * 4096 + "far: halt\n"
        err = _error(src)
        assert err.line_num == 1

    def test_statement_limit(self):
        with pytest.raises(ProgramTooLong):
            assemble("nop\n" * 0x10000)

    def test_statement_limit_boundary(self):
        program = assemble("nop\n" * 0xFFFF)
        assert len(program) == 0xFFFF


class TestOutput:

    def test_hex_listing(self):
        assert assemble_to_hex("load x\nx: dw beef") == "3001\nbeef\n"

    def test_listing(self):
        asm = Assembler()
        asm.assemble(COPY_PROGRAM)
        listing = asm.get_listing()
        assert "000   c003  jmp init" in listing
        assert "003   3001  load src" in listing
        assert "init:" in listing
