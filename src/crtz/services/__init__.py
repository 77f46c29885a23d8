"""Service layer exports."""

from .debugger import Debugger
from .errors import InputClosedError, InterpreterError
from .graph_check import Issue, format_issue, has_errors, validate_program
from .interpreter import Frame, Interpreter, RunOutcome
from .script_service import (
    DEFAULT_PLAYER_NAME,
    check_script,
    parse_script,
    run_script,
    run_source,
)

__all__ = [
    "DEFAULT_PLAYER_NAME",
    "Debugger",
    "Frame",
    "InputClosedError",
    "Interpreter",
    "InterpreterError",
    "Issue",
    "RunOutcome",
    "check_script",
    "format_issue",
    "has_errors",
    "parse_script",
    "run_script",
    "run_source",
    "validate_program",
]
