"""Interactive line-based debugger invoked at node boundaries."""
from __future__ import annotations

import sys
from typing import Callable, Set, TextIO

from crtz.domain.program import Program

InputFn = Callable[[str], str]

_HELP_LINES = (
    "Debugger commands:",
    "  step (s):           Execute the next node.",
    "  continue (c):       Continue execution until the next breakpoint.",
    "  print (p) <var>:    Print the value of a variable.",
    "  variables (v):      List all variables.",
    "  break <line>:       Set a breakpoint at the specified line.",
    "  delete <line>:      Remove a breakpoint at the specified line.",
    "  breakpoints (b):    List all breakpoints.",
    "  help (h):           Show this help message.",
)


class Debugger:
    """Pauses before a node when stepping or when the node's line is a breakpoint.

    The debugger only reads program state; it never mutates it.
    """

    def __init__(self, *, out: TextIO | None = None, input_fn: InputFn | None = None) -> None:
        self._out = out
        self._input = input_fn or input
        self._breakpoints: Set[int] = set()
        self.stepping = False

    @property
    def breakpoints(self) -> list[int]:
        return sorted(self._breakpoints)

    def add_breakpoint(self, line: int) -> None:
        self._breakpoints.add(line)

    def remove_breakpoint(self, line: int) -> None:
        self._breakpoints.discard(line)

    def step(self) -> None:
        self.stepping = True

    def continue_execution(self) -> None:
        self.stepping = False

    def check(self, line: int, program: Program) -> None:
        """Run the command loop if execution should pause at ``line``."""
        if not self.stepping and line not in self._breakpoints:
            return
        self._print(f"Breakpoint at line {line}. Type 'help' for commands.")
        while True:
            try:
                command = self._input("> ").strip()
            except EOFError:
                self.continue_execution()
                return
            if self._handle(command, program):
                return

    def _handle(self, command: str, program: Program) -> bool:
        """Execute one command; return True when execution should resume."""
        verb, _, argument = command.partition(" ")
        argument = argument.strip()
        if verb in ("step", "s"):
            self.step()
            return True
        if verb in ("continue", "c"):
            self.continue_execution()
            return True
        if verb in ("print", "p"):
            if argument:
                self._print_variable(argument, program)
            else:
                self._print("Usage: print <variable>")
        elif verb in ("variables", "v"):
            self._list_variables(program)
        elif verb in ("help", "h"):
            for line in _HELP_LINES:
                self._print(line)
        elif verb in ("breakpoints", "b") and not argument:
            self._list_breakpoints()
        elif verb in ("break", "b"):
            self._change_breakpoint(argument, "break", add=True)
        elif verb == "delete":
            self._change_breakpoint(argument, "delete", add=False)
        else:
            self._print("Unknown command. Type 'help' for available commands.")
        return False

    def _change_breakpoint(self, argument: str, verb: str, *, add: bool) -> None:
        if not argument:
            self._print(f"Usage: {verb} <line>")
            return
        try:
            line = int(argument)
        except ValueError:
            self._print("Invalid line number")
            return
        if add:
            self.add_breakpoint(line)
            self._print(f"Breakpoint added at line {line}")
        else:
            self.remove_breakpoint(line)
            self._print(f"Breakpoint removed at line {line}")

    def _print_variable(self, name: str, program: Program) -> None:
        value = program.lookup_variable(name)
        if value is None:
            self._print("Variable not found.")
        else:
            self._print(f"{name} = {value}")

    def _list_variables(self, program: Program) -> None:
        self._print("Integer variables:")
        for name in sorted(program.int_vars):
            self._print(f"  {name} = {program.int_vars[name]}")
        self._print("Boolean variables:")
        for name in sorted(program.bool_vars):
            self._print(f"  {name} = {'true' if program.bool_vars[name] else 'false'}")
        self._print("String variables:")
        for name in sorted(program.string_vars):
            self._print(f"  {name} = {program.string_vars[name]}")
        self._print("Object fields:")
        for instance in sorted(program.objects):
            for field_name, value in sorted(program.objects[instance].items()):
                self._print(f"  {instance}.{field_name} = {value}")

    def _list_breakpoints(self) -> None:
        if not self._breakpoints:
            self._print("No breakpoints set.")
        else:
            self._print("Breakpoints at lines: " + " ".join(str(line) for line in self.breakpoints))

    def _print(self, text: str) -> None:
        print(text, file=self._out or sys.stdout)
