"""Integer expression engine: tokenizer, shunting-yard conversion and evaluator.

Expressions are permissive by contract: unknown names evaluate to 0 and so does
division by zero. Arithmetic uses wrapped 64-bit intermediates and the final
value is narrowed to a signed 32-bit integer.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Sequence, Tuple

IntVars = Mapping[str, int]
BoolVars = Mapping[str, bool]
Objects = Mapping[str, Mapping[str, int]]

PRECEDENCE: Dict[str, int] = {
    "==": 1,
    "!=": 1,
    "<": 1,
    "<=": 1,
    ">": 1,
    ">=": 1,
    "+": 2,
    "-": 2,
    "*": 3,
    "/": 3,
}
_COMPARISONS = ("<=", ">=", "==", "!=")
_SINGLE_CHARS = "+-*/()<>"


def is_operator(token: str) -> bool:
    return token in PRECEDENCE


def is_digit(char: str) -> bool:
    """True only for ``0`` to ``9``; other Unicode digits are not numbers here."""
    return char.isascii() and char.isdigit()


def _all_digits(text: str) -> bool:
    return bool(text) and all(is_digit(char) for char in text)


def tokenize_expr(text: str) -> List[str]:
    """Split an expression string into operator, paren, number and name tokens."""
    out: List[str] = []
    i = 0
    size = len(text)
    while i < size:
        char = text[i]
        if char.isspace():
            i += 1
            continue
        two = text[i:i + 2]
        if two in _COMPARISONS:
            out.append(two)
            i += 2
            continue
        if char in "+-" and i + 1 < size and is_digit(text[i + 1]) and _expects_operand(out):
            j = i + 1
            while j < size and is_digit(text[j]):
                j += 1
            out.append(text[i:j])
            i = j
            continue
        if char in _SINGLE_CHARS:
            out.append(char)
            i += 1
            continue
        if is_digit(char):
            j = i + 1
            while j < size and is_digit(text[j]):
                j += 1
            out.append(text[i:j])
            i = j
            continue
        if char.isalpha() or char == "_":
            j = i + 1
            while j < size and (text[j].isalnum() or text[j] in "_."):
                j += 1
            out.append(text[i:j])
            i = j
            continue
        i += 1
    return out


def _expects_operand(previous: Sequence[str]) -> bool:
    if not previous:
        return True
    last = previous[-1]
    return is_operator(last) or last == "("


def infix_to_rpn(tokens: Sequence[str]) -> List[str]:
    """Convert infix tokens to postfix order (shunting-yard)."""
    out: List[str] = []
    stack: List[str] = []
    for token in tokens:
        if not token:
            continue
        if is_operator(token):
            while stack and is_operator(stack[-1]) and PRECEDENCE[stack[-1]] >= PRECEDENCE[token]:
                out.append(stack.pop())
            stack.append(token)
        elif token == "(":
            stack.append(token)
        elif token == ")":
            while stack and stack[-1] != "(":
                out.append(stack.pop())
            if stack and stack[-1] == "(":
                stack.pop()
        else:
            out.append(token)
    while stack:
        token = stack.pop()
        if token != "(":
            out.append(token)
    return out


def eval_rpn(
    rpn: Sequence[str],
    int_vars: IntVars,
    bool_vars: BoolVars,
    objects: Objects,
) -> int:
    """Evaluate postfix tokens against the given variable and object state."""
    stack: List[int] = []
    for token in rpn:
        if is_operator(token):
            if len(stack) < 2:
                return 0
            right = stack.pop()
            left = stack.pop()
            stack.append(_wrap(_apply(token, left, right), 64))
        else:
            stack.append(_operand_value(token, int_vars, bool_vars, objects))
    return _wrap(stack[-1], 32) if stack else 0


def _apply(operator: str, left: int, right: int) -> int:
    if operator == "+":
        return left + right
    if operator == "-":
        return left - right
    if operator == "*":
        return left * right
    if operator == "/":
        if right == 0:
            return 0
        quotient = abs(left) // abs(right)
        return quotient if (left < 0) == (right < 0) else -quotient
    if operator == "==":
        return int(left == right)
    if operator == "!=":
        return int(left != right)
    if operator == "<":
        return int(left < right)
    if operator == "<=":
        return int(left <= right)
    if operator == ">":
        return int(left > right)
    return int(left >= right)


def _operand_value(token: str, int_vars: IntVars, bool_vars: BoolVars, objects: Objects) -> int:
    if _is_number(token):
        return int(token)
    if token == "true":
        return 1
    if token == "false":
        return 0
    instance, dot, field = token.partition(".")
    if dot and field:
        return int(objects.get(instance, {}).get(field, 0))
    if token in bool_vars:
        return 1 if bool_vars[token] else 0
    return int(int_vars.get(token, 0))


def _is_number(token: str) -> bool:
    if token[:1] in ("-", "+"):
        return len(token) > 1 and _all_digits(token[1:])
    return _all_digits(token)


def _wrap(value: int, bits: int) -> int:
    mask = (1 << bits) - 1
    value &= mask
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


@dataclass(frozen=True, slots=True)
class Expression:
    """Expression compiled to postfix once and evaluated many times."""

    text: str
    rpn: Tuple[str, ...]

    @classmethod
    def compile(cls, text: str) -> Expression:
        return cls(text=text, rpn=tuple(infix_to_rpn(tokenize_expr(text))))

    def evaluate(self, int_vars: IntVars, bool_vars: BoolVars, objects: Objects) -> int:
        return eval_rpn(self.rpn, int_vars, bool_vars, objects)


def evaluate(
    text: str,
    int_vars: IntVars | None = None,
    bool_vars: BoolVars | None = None,
    objects: Objects | None = None,
) -> int:
    """Tokenize, convert and evaluate ``text`` in one call."""
    return Expression.compile(text).evaluate(int_vars or {}, bool_vars or {}, objects or {})
