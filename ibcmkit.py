#!/usr/bin/env python3
"""
ibcmkit — IBCM Toolkit
======================

One CLI for everything:
    ibcmkit compile  — Assemble IBCM source (or re-encode a hex listing)
    ibcmkit execute  — Run a program on the simulator
    ibcmkit debug    — Load a program into the interactive debugger
    ibcmkit parse    — Run the IBCMC front end and print the AST

Usage:
    python ibcmkit.py <command> [options]
    python ibcmkit.py --help
    python ibcmkit.py <command> --help

Examples:
    python ibcmkit.py compile sum.ibcm -o sum.hex
    python ibcmkit.py compile sum.ibcm -b -o sum.bin
    python ibcmkit.py compile sum.ibcm --listing
    python ibcmkit.py execute sum.hex
    python ibcmkit.py execute -s sum.ibcm
    python ibcmkit.py debug -b sum.bin
    python ibcmkit.py parse prog.ibc --tokens
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from ibcm_compiler import (
    Assembler, LexerError, ParseError, format_tree, parse_source, tokenize_source,
)
from ibcm_emulator import Debugger, IBCMError, Simulator
from ibcm_emulator.errors import AssemblerError
from ibcm_emulator.mem.memory import decode_text

__version__ = "0.1.0"

logger = logging.getLogger("ibcmkit")

DEFAULT_OUTPUT = "ibcm.out"
LOGGER_NAMES = ("ibcmkit", "ibcm_compiler", "ibcm_emulator")


# ═════════════════════════════════════════════════════════════════════════════
# LOGGING
# ═════════════════════════════════════════════════════════════════════════════

def setup_logging(console_level: int = logging.WARNING,
                  log_file: Optional[Path] = None) -> logging.Logger:
    """Attach a rich console handler (stderr) and an optional file handler.

    The file handler captures everything at DEBUG.
    """
    handlers = []

    ch = RichHandler(
        level=console_level,
        console=Console(stderr=True),
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    ch.setLevel(console_level)
    handlers.append(ch)

    if log_file is not None:
        file_fmt = logging.Formatter(
            "%(asctime)s | %(levelname)-7s | %(name)s | %(funcName)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        fh = logging.FileHandler(str(log_file), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(file_fmt)
        handlers.append(fh)

    for name in LOGGER_NAMES:
        lg = logging.getLogger(name)
        lg.handlers.clear()
        lg.setLevel(logging.DEBUG if log_file is not None else console_level)
        lg.propagate = False
        for h in handlers:
            lg.addHandler(h)

    logger.debug("Logging initialized (console level %s)",
                 logging.getLevelName(console_level))
    return logger


def _console_level(verbose: int, quiet: bool) -> int:
    if quiet:
        return logging.ERROR
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING


# ═════════════════════════════════════════════════════════════════════════════
# ARGUMENTS
# ═════════════════════════════════════════════════════════════════════════════

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ibcmkit",
        description="IBCM Toolkit — assemble, run and debug IBCM programs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""commands:
  compile    Assemble IBCM source to a hex listing or binary
  execute    Run a program on the simulator
  debug      Load a program into the interactive debugger
  parse      Parse IBCMC source and print the AST
""",
    )
    parser.add_argument("--version", action="version", version=f"ibcmkit {__version__}")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="More console logging (-v info, -vv debug)")
    parser.add_argument("-q", "--quiet", action="store_true",
                        help="Only log errors")
    parser.add_argument("--log-file", type=Path, default=None,
                        help="Also write a DEBUG log to this file")
    sub = parser.add_subparsers(dest="command", metavar="command")

    # ── compile ──────────────────────────────────────────────────────────
    p_cc = sub.add_parser("compile", help="Assemble IBCM source")
    p_cc.add_argument("input", help="Input assembly file (or hex listing with -x)")
    p_cc.add_argument("-o", "--output", default=DEFAULT_OUTPUT,
                      help=f"Output file (default: {DEFAULT_OUTPUT})")
    p_cc.add_argument("-b", "--binary", action="store_true",
                      help="Write little-endian binary instead of a hex listing")
    p_cc.add_argument("-x", "--hex", action="store_true",
                      help="Input is already a hex listing")
    p_cc.add_argument("--listing", action="store_true",
                      help="Print an address/word/source listing to stdout")

    # ── execute ──────────────────────────────────────────────────────────
    p_ex = sub.add_parser("execute", help="Run a program on the simulator")
    _add_load_args(p_ex)
    p_ex.add_argument("--no-prompt", action="store_true",
                      help="Do not prompt before readH/readC")
    p_ex.add_argument("--trace", action="store_true",
                      help="Log every executed instruction (needs -vv or --log-file)")

    # ── debug ────────────────────────────────────────────────────────────
    p_dbg = sub.add_parser("debug", help="Load a program into the debugger")
    _add_load_args(p_dbg)

    # ── parse ────────────────────────────────────────────────────────────
    p_parse = sub.add_parser("parse", help="Parse IBCMC source and print the AST")
    p_parse.add_argument("input", help="Input IBCMC source file")
    p_parse.add_argument("--tokens", action="store_true",
                         help="Print the token stream instead of the AST")

    return parser


def _add_load_args(p: argparse.ArgumentParser):
    p.add_argument("input", help="Program file (hex listing by default)")
    fmt = p.add_mutually_exclusive_group()
    fmt.add_argument("-s", "--asm", action="store_true",
                     help="Input is IBCM assembly")
    fmt.add_argument("-b", "--binary", action="store_true",
                     help="Input is little-endian binary")


# ═════════════════════════════════════════════════════════════════════════════
# COMMAND IMPLEMENTATIONS
# ═════════════════════════════════════════════════════════════════════════════

def _load_simulator(args) -> Simulator:
    path = Path(args.input)
    if args.binary:
        sim = Simulator.from_binary(path.read_bytes())
    elif args.asm:
        program = Assembler().assemble(path.read_bytes())
        sim = Simulator.from_program(program)
    else:
        sim = Simulator.from_hex(path.read_bytes())
    logger.info("Loaded %d word(s) from %s", sim.mem.length, path)
    return sim


# ── compile ──────────────────────────────────────────────────────────────
def cmd_compile(args):
    source = Path(args.input).read_bytes()

    if args.hex:
        sim = Simulator.from_hex(source)
    else:
        asm = Assembler()
        program = asm.assemble(source)
        if args.listing:
            print(asm.get_listing())
        sim = Simulator.from_program(program)

    out = Path(args.output)
    if args.binary:
        out.write_bytes(sim.to_binary())
    else:
        out.write_text(sim.to_hex(), encoding="utf-8")
    logger.info("Wrote %d word(s) -> %s", sim.mem.length, out)


# ── execute ──────────────────────────────────────────────────────────────
def cmd_execute(args):
    sim = _load_simulator(args)
    sim.set_output(sys.stdout, show_prompt=not args.no_prompt)
    if args.trace:
        sim.enable_trace()
    steps = sim.run()
    logger.info("Machine halted after %d step(s)", steps)


# ── debug ────────────────────────────────────────────────────────────────
def cmd_debug(args):
    sim = _load_simulator(args)
    print("IBCM debugger. Type 'help' for a list of commands.")
    Debugger(sim).repl(sys.stdin)


# ── parse ────────────────────────────────────────────────────────────────
def cmd_parse(args):
    source = decode_text(Path(args.input).read_bytes())
    if args.tokens:
        for tok in tokenize_source(source):
            print(repr(tok))
        return
    print(format_tree(parse_source(source)))


COMMANDS = {
    "compile": cmd_compile,
    "execute": cmd_execute,
    "debug": cmd_debug,
    "parse": cmd_parse,
}


# ═════════════════════════════════════════════════════════════════════════════
# MAIN
# ═════════════════════════════════════════════════════════════════════════════

def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    setup_logging(_console_level(args.verbose, args.quiet), args.log_file)

    handler = COMMANDS[args.command]
    try:
        handler(args)
    except AssemblerError as e:
        print(f"Assembly error: {e}", file=sys.stderr)
        return 1
    except (LexerError, ParseError) as e:
        print(f"{e}", file=sys.stderr)
        return 1
    except IBCMError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("", file=sys.stderr)
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
