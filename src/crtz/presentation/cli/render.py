"""Shared CLI rendering helpers."""
from __future__ import annotations

import os
from typing import Iterable, TextIO

from crtz.language.diagnostics import Diagnostic, format_diagnostic
from crtz.services.graph_check import Issue, format_issue


def debug_enabled() -> bool:
    """Return True only when CRTZ_DEBUG is explicitly set to '1'."""
    return os.getenv("CRTZ_DEBUG") == "1"


def render_heading(title: str, stream: TextIO | None = None) -> None:
    """Print a consistent section heading."""
    print(f"\n=== {title} ===", file=stream)


def render_check_report(
    diagnostics: Iterable[Diagnostic],
    issues: Iterable[Issue],
    stream: TextIO | None = None,
) -> int:
    """Print parse diagnostics and graph issues; return how many lines were printed."""
    lines = [format_diagnostic(diagnostic) for diagnostic in diagnostics]
    lines.extend(format_issue(issue) for issue in issues)
    render_heading("Check", stream)
    if not lines:
        print("No problems found.", file=stream)
        return 0
    for line in lines:
        print(line, file=stream)
    return len(lines)
