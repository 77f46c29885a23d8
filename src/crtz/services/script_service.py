"""High-level entry points for loading, checking and running scripts."""
from __future__ import annotations

import sys
from pathlib import Path
from typing import List, TextIO

from crtz.data.errors import ScriptLoadError
from crtz.data.script_loader import load_script
from crtz.language.diagnostics import report_diagnostics
from crtz.language.parser import ParseResult, parse_source
from crtz.services.debugger import Debugger
from crtz.services.graph_check import Issue, validate_program
from crtz.services.interpreter import InputFn, Interpreter, RunOutcome

DEFAULT_PLAYER_NAME = "Andrew"


def run_source(
    source: str,
    player_name: str = DEFAULT_PLAYER_NAME,
    *,
    debug: bool = False,
    out: TextIO | None = None,
    err: TextIO | None = None,
    input_fn: InputFn | None = None,
) -> RunOutcome:
    """Parse and interpret ``source``.

    Diagnostics never stop the run; they are written to ``err`` and the
    interpreter starts on whatever the parser managed to build.
    """
    result = parse_source(source)
    report_diagnostics(result.diagnostics, err or sys.stderr)
    debugger = None
    if debug:
        debugger = Debugger(out=out, input_fn=input_fn)
        debugger.step()
    interpreter = Interpreter(
        result.program,
        player_name,
        out=out,
        err=err,
        input_fn=input_fn,
        debugger=debugger,
    )
    return interpreter.run()


def run_script(
    path: Path | str,
    player_name: str = DEFAULT_PLAYER_NAME,
    *,
    debug: bool = False,
    out: TextIO | None = None,
    err: TextIO | None = None,
    input_fn: InputFn | None = None,
) -> bool:
    """Run the script at ``path``; return False when it could not be read."""
    try:
        source = load_script(path)
    except ScriptLoadError:
        print(f"Could not open {path}", file=err or sys.stderr)
        return False
    run_source(source, player_name, debug=debug, out=out, err=err, input_fn=input_fn)
    return True


def parse_script(path: Path | str) -> ParseResult:
    """Load and parse a script; raises ScriptLoadError when unreadable."""
    return parse_source(load_script(path))


def check_script(path: Path | str) -> tuple[ParseResult, List[Issue]]:
    """Parse a script and run the static graph checks over it."""
    result = parse_script(path)
    return result, validate_program(result.program)
