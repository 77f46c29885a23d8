"""Language front end: lexer and expression engine.

The parser lives in ``crtz.language.parser``; it depends on the domain model,
which in turn depends on the expression engine exported here.
"""

from .diagnostics import Diagnostic, format_diagnostic
from .expressions import Expression, eval_rpn, evaluate, infix_to_rpn, tokenize_expr
from .lexer import Lexer, Token, tokenize

__all__ = [
    "Diagnostic",
    "Expression",
    "Lexer",
    "Token",
    "eval_rpn",
    "evaluate",
    "format_diagnostic",
    "infix_to_rpn",
    "tokenize",
    "tokenize_expr",
]
