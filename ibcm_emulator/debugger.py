"""
IBCM Emulator — Interactive Debugger

Wraps a Simulator and interprets debugger commands:

  quit            leave the debugger
  help            print the command summary
  dump <amt>      show the first <amt> memory words
  run             run until halt
  status          registers, halted flag, current instruction and the
                  chain of jump targets it leads to
  step [n]        execute up to n instructions (default 1)

Bad commands raise DebugError. Simulator errors raised by run/step pass
through unchanged. repl() reports both and keeps going.
"""

import logging
import shlex
import sys
from typing import List, Optional, Sequence, TextIO

from .cpu.decoder import has_address, is_control_flow
from .emu import Simulator
from .errors import DebugError, IBCMError
from .mem.memory import MEMORY_SIZE

logger = logging.getLogger(__name__)

PROMPT = "(ibcm) "

HELP = """The following commands are recognized:
quit            Exit the debugger.
help            Print this message.
dump <amt>      Display the contents of the first <amt>
                memory locations.
run             Run the program until it halts.
status          Output the content of all registers and print
                the current instruction.
step <n>        Execute the next <n> instructions."""


def _parse_count(text: str, what: str) -> int:
    try:
        value = int(text, 10)
    except ValueError:
        raise DebugError(f"invalid {what}") from None
    if value < 0:
        raise DebugError(f"invalid {what}")
    return value


class Debugger:
    """Command interpreter over a Simulator."""

    def __init__(self, sim: Simulator, out: Optional[TextIO] = None):
        self.sim = sim
        self.out = out if out is not None else sys.stdout
        self._commands = {
            'quit': self._cmd_quit,
            'help': self._cmd_help,
            'dump': self._cmd_dump,
            'run': self._cmd_run,
            'status': self._cmd_status,
            'step': self._cmd_step,
        }

    def _print(self, text: str = ""):
        print(text, file=self.out)

    def execute_command(self, command: str, args: Sequence[str] = ()) -> bool:
        """Run one command. Returns True if the debugger should quit."""
        handler = self._commands.get(command)
        if handler is None:
            raise DebugError(f"unknown command '{command}'")
        logger.debug("debugger command %s %s", command, list(args))
        return handler(list(args))

    def execute_line(self, line: str) -> bool:
        """Split a command line and run it. Blank lines do nothing."""
        try:
            parts = shlex.split(line)
        except ValueError as e:
            raise DebugError(f"could not parse command: {e}") from e
        if not parts:
            return False
        return self.execute_command(parts[0], parts[1:])

    def repl(self, stream: Optional[TextIO] = None, prompt: str = PROMPT):
        """Read commands until quit or end of input.

        Errors are printed and the loop continues.
        """
        stream = stream if stream is not None else sys.stdin
        while True:
            self.out.write(prompt)
            self.out.flush()
            line = stream.readline()
            if not line:
                self._print()
                break
            try:
                if self.execute_line(line):
                    break
            except IBCMError as e:
                self._print(f"error: {e}")

    # ──────────────────────────────────────────────
    # Commands
    # ──────────────────────────────────────────────

    def _cmd_quit(self, args: List[str]) -> bool:
        return True

    def _cmd_help(self, args: List[str]) -> bool:
        self._print(HELP)
        return False

    def _cmd_dump(self, args: List[str]) -> bool:
        if len(args) != 1:
            raise DebugError("must specify amount of memory to dump")
        amount = _parse_count(args[0], "amount to dump")
        if amount > MEMORY_SIZE:
            raise DebugError(f"invalid amount to dump (must be at most {MEMORY_SIZE})")
        for line in self.sim.dump(amount):
            self._print(line)
        return False

    def _cmd_run(self, args: List[str]) -> bool:
        if args:
            raise DebugError("did not expect any arguments")
        if self.sim.is_halted():
            raise DebugError("machine is halted")
        # The halting step is not counted
        steps = 0
        while not self.sim.step():
            steps += 1
        self._print(f"machine halted after {steps} step(s)")
        return False

    def _cmd_status(self, args: List[str]) -> bool:
        if args:
            raise DebugError("did not expect any arguments")
        acc, ir, pc = self.sim.regs_tuple()
        self._print(f"acc:    {acc}")
        self._print(f"ir:     {ir}")
        self._print(f"pc:     {pc}")
        self._print(f"halted? {str(self.sim.is_halted()).lower()}")

        ins = self.sim.current_instruction()
        self._print(f"current instruction: {ins}")
        seen = {pc}
        while is_control_flow(ins):
            addr = has_address(ins)
            if addr in seen:
                break
            seen.add(addr)
            ins = self.sim.instruction_at(addr)
            self._print(f"--> (@ {addr:04x}) {ins}")
        return False

    def _cmd_step(self, args: List[str]) -> bool:
        if len(args) > 1:
            raise DebugError("expected no more than 1 argument")
        n = _parse_count(args[0], "number of steps") if args else 1
        if self.sim.is_halted():
            raise DebugError("machine is halted")
        for i in range(n):
            if self.sim.step():
                self._print(f"halted after {i + 1} step(s)")
                return False
        self._print(f"executed {n} step(s)")
        return False
