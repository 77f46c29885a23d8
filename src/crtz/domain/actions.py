"""Tagged actions executed by nodes and methods.

Statements are classified once by the parser; the interpreter dispatches on the
action type and never re-parses text.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from crtz.language.expressions import Expression


@dataclass(slots=True)
class Action:
    """Base class for node and method actions."""


@dataclass(slots=True)
class SetAction(Action):
    target: str
    expr: Expression

    @property
    def is_field_path(self) -> bool:
        instance, dot, field_name = self.target.partition(".")
        return bool(dot and instance and field_name)


@dataclass(slots=True)
class SignalAction(Action):
    name: str
    expr: Expression


@dataclass(slots=True)
class IfAction(Action):
    condition: Expression
    target: str
    else_target: str | None = None


@dataclass(slots=True)
class GotoAction(Action):
    target: str


@dataclass(slots=True)
class EndAction(Action):
    pass


@dataclass(slots=True)
class ShowAction(Action):
    template: str


@dataclass(slots=True)
class StmtAction(Action):
    """Free-form statement; ``raw`` keeps the source text for diagnostics."""

    raw: str


@dataclass(slots=True)
class MethodCallStmt(StmtAction):
    instance: str
    method: str
    args: List[Expression] = field(default_factory=list)


@dataclass(slots=True)
class NewStmt(StmtAction):
    class_name: str
    instance_name: str


@dataclass(slots=True)
class PrintStmt(StmtAction):
    literal: str | None = None
    expr: Expression | None = None


@dataclass(slots=True)
class UnknownStmt(StmtAction):
    """Statement with no runtime meaning; executed as a no-op."""
