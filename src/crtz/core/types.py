"""Shared type aliases for the core and language layers."""
from typing import Literal

TokenKind = Literal["eof", "ident", "number", "string", "string_dec", "symbol", "bool", "keyword"]
RunStatus = Literal["ended", "fell_off", "unknown_node", "input_closed", "empty"]
Severity = Literal["ERROR", "WARN"]

__all__ = ["RunStatus", "Severity", "TokenKind"]
