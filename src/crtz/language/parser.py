"""Recursive-descent parser producing a ``Program``.

The grammar is forgiving: malformed constructs are reported as line-tagged
diagnostics and parsing carries on with the next token.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Sequence

from crtz.domain.actions import (
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
from crtz.domain.program import Choice, ClassDef, Node, PictureDecl, Program, Room
from crtz.language.diagnostics import Diagnostic
from crtz.language.expressions import Expression, evaluate
from crtz.language.lexer import Lexer, Token

_STRING_KINDS = ("string", "string_dec")


@dataclass(slots=True)
class ParseResult:
    program: Program
    diagnostics: List[Diagnostic] = field(default_factory=list)


class Parser:
    """Single-token-lookahead parser over the lexer's token stream."""

    def __init__(self, source: str) -> None:
        self._lexer = Lexer(source)
        self.tk: Token = self._lexer.next()
        self.program = Program()
        self.diagnostics: List[Diagnostic] = []

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    def consume(self) -> Token:
        token = self.tk
        self.tk = self._lexer.next()
        return token

    def expect_symbol(self, symbol: str) -> bool:
        if self.tk.is_symbol(symbol):
            self.consume()
            return True
        self._error(f"Expected symbol '{symbol}' but got '{self.tk.text}'")
        return False

    def _error(self, message: str) -> None:
        self.diagnostics.append(Diagnostic(line=self.tk.line, message=message))

    def _at(self, symbol: str) -> bool:
        return self.tk.is_symbol(symbol)

    def _at_eof(self) -> bool:
        return self.tk.kind == "eof"

    def _skip_statement(self) -> None:
        while not self._at(";") and not self._at("}") and not self._at_eof():
            self.consume()
        if self._at(";"):
            self.consume()

    def _collect_until(self, *stops: str) -> str:
        tokens: List[Token] = []
        while not self._at_eof() and not any(self._at(stop) for stop in stops):
            tokens.append(self.consume())
        return _join_tokens(tokens)

    def _collect_parenthesized(self) -> str:
        tokens: List[Token] = []
        depth = 0
        while not self._at_eof():
            if self._at(")"):
                if depth == 0:
                    break
                depth -= 1
            elif self._at("("):
                depth += 1
            tokens.append(self.consume())
        return _join_tokens(tokens)

    # ------------------------------------------------------------------
    # Top level
    # ------------------------------------------------------------------

    def parse(self) -> ParseResult:
        handlers: Dict[str, Callable[[], None]] = {
            "npc": self._parse_npc,
            "desc": self._parse_desc,
            "int": self._parse_var_decl,
            "string": self._parse_var_decl,
            "match": self._parse_var_decl,
            "node": self._parse_node,
            "class": self._parse_class,
            "new": self._parse_new_instance,
            "room": self._parse_room,
        }
        while not self._at_eof():
            if self.tk.kind == "keyword" and self.tk.text == "picture":
                self._parse_picture()
            elif self.tk.kind == "ident":
                handler = handlers.get(self.tk.text)
                if handler is None:
                    self._error(f"Unknown top-level keyword: {self.tk.text}")
                    self.consume()
                else:
                    handler()
            else:
                self.consume()
        return ParseResult(program=self.program, diagnostics=list(self.diagnostics))

    def _parse_npc(self) -> None:
        self.consume()
        if self.tk.kind != "string":
            self._error("npc requires string")
            return
        self.program.npc = self.consume().text
        self.expect_symbol(";")

    def _parse_desc(self) -> None:
        self.consume()
        if self.tk.kind != "string":
            self._error("desc requires string")
            return
        self.program.desc = self.consume().text
        self.expect_symbol(";")

    def _parse_var_decl(self) -> None:
        type_name = self.consume().text
        if self.tk.kind != "ident":
            self._error(f"{type_name} expects identifier")
            return
        name = self.consume().text
        program = self.program
        if not self._at("="):
            if type_name == "string":
                program.string_vars[name] = ""
            elif type_name == "match":
                program.bool_vars[name] = False
            else:
                program.int_vars[name] = 0
            self.expect_symbol(";")
            return

        self.consume()
        if type_name == "string":
            if self.tk.kind not in _STRING_KINDS:
                self._error("String variable requires string literal")
                self._skip_statement()
                return
            program.string_vars[name] = self.consume().text
            self.expect_symbol(";")
        elif type_name == "match" and self.tk.kind == "bool":
            program.bool_vars[name] = self.consume().text == "true"
            self.expect_symbol(";")
        else:
            expr = self._collect_until(";")
            self.expect_symbol(";")
            value = evaluate(expr, program.int_vars, program.bool_vars)
            if type_name == "match":
                program.bool_vars[name] = value != 0
            else:
                program.int_vars[name] = value

    def _parse_new_instance(self) -> None:
        self.consume()
        if self.tk.kind != "ident":
            self._error("new expects class name")
            return
        class_name = self.consume().text
        if self.tk.kind != "ident":
            self._error("new expects instance name")
            return
        instance_name = self.consume().text
        self.expect_symbol(";")
        if not self.program.instantiate(class_name, instance_name):
            self._error(f"Unknown class {class_name} for new")

    def _parse_room(self) -> None:
        self.consume()
        if self.tk.kind != "ident":
            self._error("room expects a name")
            return
        room = Room(name=self.consume().text)
        if not self._at("{"):
            self._error("expected '{' after room name")
            return
        self.consume()
        while not self._at("}") and not self._at_eof():
            if self.tk.is_ident("desc"):
                self.consume()
                if self.tk.kind == "string":
                    room.description = self.consume().text
                    self.expect_symbol(";")
            elif self.tk.is_ident("exit"):
                self.consume()
                if self.tk.kind == "ident":
                    direction = self.consume().text
                    if self.tk.kind == "ident":
                        room.exits[direction] = self.consume().text
                        self.expect_symbol(";")
            elif self.tk.is_ident("item") or self.tk.is_ident("npc"):
                bucket = room.items if self.consume().text == "item" else room.npcs
                if self.tk.kind == "ident":
                    bucket.append(self.consume().text)
                    self.expect_symbol(";")
            else:
                self.consume()
        self.expect_symbol("}")
        self.program.rooms[room.name] = room
        if not self.program.current_room:
            self.program.current_room = room.name

    def _parse_picture(self) -> None:
        line = self.tk.line
        self.consume()
        if self.tk.kind != "ident":
            self._error("picture expects an identifier")
            return
        name = self.consume().text
        if not self._at("["):
            self._error("expected '[' after picture name")
            return
        self.consume()
        if self.tk.kind != "number":
            self._error("expected number for array size")
            return
        size = self.consume().number
        if not self._at("]"):
            self._error("expected ']' after array size")
            return
        self.consume()
        if not self._at("="):
            self._error("expected '=' after array declaration")
            return
        self.consume()
        if not (self.tk.kind == "keyword" and self.tk.text == "load"):
            self._error("expected 'load' keyword")
            return
        self.consume()
        if not self._at("("):
            self._error("expected '(' after load")
            return
        self.consume()
        if self.tk.kind != "string":
            self._error("expected string for folder path")
            return
        path = self.consume().text
        if not self._at(")"):
            self._error("expected ')' after folder path")
            return
        self.consume()
        self.expect_symbol(";")
        self.program.pictures[name] = PictureDecl(name=name, size=size, path=path, line=line)

    # ------------------------------------------------------------------
    # Classes
    # ------------------------------------------------------------------

    def _parse_class(self) -> None:
        self.consume()
        if self.tk.kind != "ident":
            self._error("class expects a name")
            return
        class_def = ClassDef(name=self.consume().text)
        if not self._at("{"):
            self._error("expected '{' after class name")
            return
        self.consume()
        while not self._at("}") and not self._at_eof():
            if self.tk.is_ident("int"):
                self._parse_field(class_def)
            elif self.tk.is_ident("void"):
                self._parse_method(class_def)
            elif self.tk.kind == "ident":
                self._error(f"Unknown class member: {self.tk.text}")
                self.consume()
            else:
                self.consume()
        self.expect_symbol("}")
        self.program.classes[class_def.name] = class_def

    def _parse_field(self, class_def: ClassDef) -> None:
        self.consume()
        if self.tk.kind != "ident":
            self._error("field expects identifier")
            self.consume()
            return
        name = self.consume().text
        value = 0
        if self._at("="):
            self.consume()
            expr = self._collect_until(";")
            value = evaluate(expr, self.program.int_vars, self.program.bool_vars)
        self.expect_symbol(";")
        class_def.fields[name] = value

    def _parse_method(self, class_def: ClassDef) -> None:
        self.consume()
        if self.tk.kind != "ident":
            self._error("method expects a name")
            return
        name = self.consume().text
        params = self._parse_params()
        if not self._at("{"):
            self._error("expected '{' for method body")
            return
        self.consume()
        actions: List[Action] = []
        while not self._at("}") and not self._at_eof():
            if self.tk.kind == "ident":
                self._parse_statement(actions, None)
            else:
                self.consume()
        self.expect_symbol("}")
        class_def.methods[name] = actions
        class_def.method_params[name] = params

    def _parse_params(self) -> List[str]:
        if not self._at("("):
            self._error("expected '(' after method name")
            return []
        self.consume()
        params: List[str] = []
        group: List[str] = []
        while not self._at(")") and not self._at_eof():
            token = self.consume()
            if token.kind == "ident":
                group.append(token.text)
            elif token.is_symbol(","):
                if group:
                    params.append(group[-1])
                group = []
        if group:
            params.append(group[-1])
        self.expect_symbol(")")
        return params

    # ------------------------------------------------------------------
    # Nodes and statements
    # ------------------------------------------------------------------

    def _parse_node(self) -> None:
        line = self.tk.line
        self.consume()
        if self.tk.kind != "ident":
            self._error("node expects name")
            self.consume()
            return
        name = self.consume().text
        if not self._at("{"):
            self._error("expected '{' after node name")
            return
        self.consume()
        node = Node(name=name, line=line)
        while not self._at("}") and not self._at_eof():
            if self.tk.kind == "ident":
                self._parse_statement(node.actions, node)
            else:
                self.consume()
        self.expect_symbol("}")
        if name in self.program.nodes:
            self.diagnostics.append(Diagnostic(line=line, message=f"Duplicate node '{name}' replaces earlier definition"))
        self.program.nodes[name] = node
        if not self.program.entry:
            self.program.entry = name

    def _parse_statement(self, actions: List[Action], node: Node | None) -> None:
        """Parse one statement into ``actions``; ``node`` is None inside methods."""
        keyword = self.tk.text
        if keyword in ("line", "choice"):
            if node is None:
                self._error(f"{keyword} is not allowed in a method body")
                self._skip_statement()
            elif keyword == "line":
                self._parse_line(node)
            else:
                self._parse_choice(node)
        elif keyword == "show":
            self._parse_show(actions)
        elif keyword == "set":
            self._parse_set(actions)
        elif keyword == "signal":
            self._parse_signal(actions)
        elif keyword == "if":
            self._parse_if(actions)
        elif keyword == "goto":
            self.consume()
            if self.tk.kind != "ident":
                self._error("goto target expected")
                return
            actions.append(GotoAction(target=self.consume().text))
            self.expect_symbol(";")
        elif keyword == "end":
            self.consume()
            self.expect_symbol(";")
            actions.append(EndAction())
        else:
            tokens: List[Token] = []
            while not self._at(";") and not self._at("}") and not self._at_eof():
                tokens.append(self.consume())
            if self._at(";"):
                self.consume()
            if tokens:
                actions.append(classify_statement(tokens))

    def _parse_line(self, node: Node) -> None:
        self.consume()
        if self.tk.kind == "string":
            node.text = self.consume().text
        self.expect_symbol(";")

    def _parse_show(self, actions: List[Action]) -> None:
        self.consume()
        if self.tk.kind != "string":
            self._error("show requires string literal")
            self._skip_statement()
            return
        texts = [self.consume().text]
        while self._at(","):
            self.consume()
            if self.tk.kind != "string":
                self._error("show expects string after comma")
                break
            texts.append(self.consume().text)
        self.expect_symbol(";")
        actions.extend(ShowAction(template=text) for text in texts)

    def _parse_choice(self, node: Node) -> None:
        self.consume()
        if self.tk.kind != "number":
            self._error("choice id expected")
            self.consume()
            return
        choice_id = self.consume().number
        self.expect_symbol(":")
        if self.tk.kind != "string":
            self._error("choice text string expected")
            return
        text = self.consume().text
        if self._at("->"):
            self.consume()
        elif self._at("-"):
            self.consume()
            if self._at(">"):
                self.consume()
        if self.tk.kind != "ident":
            self._error("choice target expected")
            return
        target = self.consume().text
        self.expect_symbol(";")
        node.choices.append(Choice(id=choice_id, text=text, target=target))

    def _parse_set(self, actions: List[Action]) -> None:
        self.consume()
        target = ""
        if self.tk.kind == "ident":
            target = self.consume().text
        else:
            self._error("set expected identifier")
        while self._at(".") and target:
            self.consume()
            if self.tk.kind != "ident":
                break
            target += "." + self.consume().text
        if self._at("="):
            self.consume()
        else:
            self._error("expected '=' after set var")
        expr = self._collect_until(";")
        self.expect_symbol(";")
        if target:
            actions.append(SetAction(target=target, expr=Expression.compile(expr)))

    def _parse_signal(self, actions: List[Action]) -> None:
        self.consume()
        if self.tk.kind != "ident":
            self._error("signal name expected")
            return
        name = self.consume().text
        if self._at("="):
            self.consume()
        expr = self._collect_until(";")
        self.expect_symbol(";")
        actions.append(SignalAction(name=name, expr=Expression.compile(expr)))

    def _parse_if(self, actions: List[Action]) -> None:
        self.consume()
        if self._at("("):
            self.consume()
        else:
            self._error("if requires (")
        condition = self._collect_parenthesized()
        self.expect_symbol(")")
        if self.tk.is_ident("goto"):
            self.consume()
        else:
            self._error("if expects goto")
        if self.tk.kind != "ident":
            self._error("goto target expected")
            return
        target = self.consume().text
        else_target = None
        if self.tk.is_ident("else"):
            self.consume()
            if self.tk.is_ident("goto"):
                self.consume()
            else:
                self._error("else expects goto")
            if self.tk.kind == "ident":
                else_target = self.consume().text
            else:
                self._error("else goto target expected")
        self.expect_symbol(";")
        actions.append(IfAction(condition=Expression.compile(condition), target=target, else_target=else_target))


def classify_statement(tokens: Sequence[Token]) -> StmtAction:
    """Turn a free-form statement into a method call, ``new``, ``print`` or no-op."""
    raw = _join_tokens(tokens)
    head = tokens[0]
    has_call_parens = len(tokens) > 1 and tokens[1].is_symbol("(")
    if head.kind == "ident" and "." in head.text and has_call_parens:
        instance, _, method = head.text.partition(".")
        args = [Expression.compile(arg) for arg in _split_args(tokens[2:])]
        return MethodCallStmt(raw=raw, instance=instance, method=method, args=args)
    if head.is_ident("new") and len(tokens) >= 3 and tokens[1].kind == "ident" and tokens[2].kind == "ident":
        return NewStmt(raw=raw, class_name=tokens[1].text, instance_name=tokens[2].text)
    if head.is_ident("print") and has_call_parens:
        inner = _strip_closing_paren(tokens[2:])
        if len(inner) == 1 and inner[0].kind in _STRING_KINDS:
            return PrintStmt(raw=raw, literal=inner[0].text)
        return PrintStmt(raw=raw, expr=Expression.compile(_join_tokens(inner)))
    return UnknownStmt(raw=raw)


def _split_args(tokens: Sequence[Token]) -> List[str]:
    args: List[str] = []
    current: List[Token] = []
    depth = 0
    for token in _strip_closing_paren(tokens):
        if token.is_symbol("("):
            depth += 1
        elif token.is_symbol(")"):
            depth -= 1
        elif token.is_symbol(",") and depth == 0:
            args.append(_join_tokens(current))
            current = []
            continue
        current.append(token)
    args.append(_join_tokens(current))
    return [arg for arg in args if arg]


def _strip_closing_paren(tokens: Sequence[Token]) -> List[Token]:
    for index in range(len(tokens) - 1, -1, -1):
        if tokens[index].is_symbol(")"):
            return list(tokens[:index])
    return list(tokens)


def _token_source(token: Token) -> str:
    if token.kind == "string":
        return '"' + token.text.replace('"', '\\"') + '"'
    if token.kind == "string_dec":
        return "'" + token.text + "'"
    return token.text


def _join_tokens(tokens: Sequence[Token]) -> str:
    return " ".join(_token_source(token) for token in tokens).strip()


def parse_source(source: str) -> ParseResult:
    """Parse ``source`` into a program plus any diagnostics."""
    return Parser(source).parse()
