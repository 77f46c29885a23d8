"""Parse diagnostics collected instead of raising."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, TextIO


@dataclass(frozen=True, slots=True)
class Diagnostic:
    line: int
    message: str


def format_diagnostic(diagnostic: Diagnostic) -> str:
    return f"Error at line {diagnostic.line}: {diagnostic.message}"


def report_diagnostics(diagnostics: Iterable[Diagnostic], stream: TextIO) -> None:
    """Write every diagnostic to ``stream``, one per line."""
    for diagnostic in diagnostics:
        print(format_diagnostic(diagnostic), file=stream)
