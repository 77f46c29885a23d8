"""Domain model for parsed CRTZ programs."""

from .actions import (
    Action,
    EndAction,
    GotoAction,
    IfAction,
    MethodCallStmt,
    NewStmt,
    PrintStmt,
    SetAction,
    ShowAction,
    SignalAction,
    StmtAction,
    UnknownStmt,
)
from .program import Choice, ClassDef, Node, PictureDecl, Program, Room

__all__ = [
    "Action",
    "Choice",
    "ClassDef",
    "EndAction",
    "GotoAction",
    "IfAction",
    "MethodCallStmt",
    "NewStmt",
    "Node",
    "PictureDecl",
    "PrintStmt",
    "Program",
    "Room",
    "SetAction",
    "ShowAction",
    "SignalAction",
    "StmtAction",
    "UnknownStmt",
]
