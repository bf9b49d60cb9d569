"""
Whole-Program Tests.

Runs the sample programs under tests/programs through the assembler and
the simulator and checks their printed results.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import io
from pathlib import Path

import pytest
from ibcm_compiler import assemble
from ibcm_emulator import Simulator

PROGRAMS = Path(__file__).parent / "programs"


def _run(sim: Simulator, stdin: str) -> str:
    out = io.StringIO()
    sim.set_input(io.StringIO(stdin))
    sim.set_output(out, show_prompt=False)
    sim.run()
    return out.getvalue()


def _asm_sim(name: str) -> Simulator:
    return Simulator.from_program(assemble((PROGRAMS / name).read_text()))


class TestSum:

    @pytest.mark.parametrize("n", [5, 10, 15, 20])
    def test_hex_listing(self, n):
        sim = Simulator.from_hex((PROGRAMS / "sum.hex").read_text())
        assert _run(sim, f"{n:04x}\n").strip() == f"{sum(range(1, n + 1)):04x}"

    @pytest.mark.parametrize("n", [4, 8, 12, 16])
    def test_assembly(self, n):
        out = _run(_asm_sim("sum.ibcm"), f"{n:04x}\n")
        assert out.strip() == f"{sum(range(1, n + 1)):04x}"

    def test_assembly_matches_hex_listing(self):
        program = assemble((PROGRAMS / "sum.ibcm").read_text())
        listing = Simulator.from_hex((PROGRAMS / "sum.hex").read_text())
        assert program.to_hex() == listing.to_hex()

    def test_zero(self):
        assert _run(_asm_sim("sum.ibcm"), "0\n") == "0000\n"


class TestMult:

    @pytest.mark.parametrize("a,b", [(3, 4), (6, 9), (10, 15), (30, 45)])
    def test_assembly(self, a, b):
        out = _run(_asm_sim("mult.ibcm"), f"{a:04x}\n{b:04x}\n")
        assert out.strip() == f"{a * b:04x}"

    def test_product_wraps(self):
        out = _run(_asm_sim("mult.ibcm"), "0100\n0101\n")
        assert out.strip() == f"{(0x100 * 0x101) & 0xFFFF:04x}"


class TestEcho:

    def test_echo_until_dot(self):
        out = _run(_asm_sim("echo.ibcm"), "h\ni\n.\nnot read\n")
        assert out.splitlines() == ["h", "i", "."]
