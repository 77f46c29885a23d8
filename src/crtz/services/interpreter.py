"""Runtime that walks a parsed program's node graph."""
from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Sequence, Set, TextIO

from crtz.core.types import RunStatus
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
)
from crtz.domain.program import Node, Program
from crtz.language.expressions import Expression
from crtz.services.debugger import Debugger
from crtz.services.errors import InputClosedError

InputFn = Callable[[str], str]

PLAYER_PLACEHOLDER = "[@You]"
END_MESSAGE = "[Dialogue ended]"
FELL_OFF_MESSAGE = "[End of Conversation]"


@dataclass(slots=True)
class Frame:
    """Variable and object state visible to one executing action list.

    The node-level frame aliases the program's own maps; method frames hold
    copies that are written back when the method returns. ``fields`` names the
    entries of ``int_vars`` that stand for fields of ``receiver`` rather than
    globals; writes through either name keep both views equal.
    """

    int_vars: Dict[str, int]
    bool_vars: Dict[str, bool]
    string_vars: Dict[str, str]
    objects: Dict[str, Dict[str, int]]
    fields: Set[str] = field(default_factory=set)
    receiver: str | None = None

    @classmethod
    def for_program(cls, program: Program) -> Frame:
        return cls(
            int_vars=program.int_vars,
            bool_vars=program.bool_vars,
            string_vars=program.string_vars,
            objects=program.objects,
        )

    def evaluate(self, expr: Expression) -> int:
        return expr.evaluate(self.int_vars, self.bool_vars, self.objects)

    def lookup_text(self, name: str) -> str:
        """Resolve a ``${name}`` placeholder to its display text."""
        instance, dot, field_name = name.partition(".")
        if dot and field_name in self.objects.get(instance, {}):
            return str(self.objects[instance][field_name])
        if name in self.string_vars:
            return self.string_vars[name]
        if name in self.bool_vars:
            return "true" if self.bool_vars[name] else "false"
        if name in self.int_vars:
            return str(self.int_vars[name])
        return "0"


@dataclass(slots=True)
class RunOutcome:
    """Summary of a finished interpreter run."""

    status: RunStatus
    visited_nodes: List[str] = field(default_factory=list)

    @property
    def last_node(self) -> str | None:
        return self.visited_nodes[-1] if self.visited_nodes else None


def substitute_player(text: str, player_name: str) -> str:
    return text.replace(PLAYER_PLACEHOLDER, f"[{player_name}]")


def interpolate(template: str, frame: Frame) -> str:
    """Replace every ``${name}`` in ``template``; an unclosed ``${`` is left as-is."""
    parts: List[str] = []
    pos = 0
    while True:
        start = template.find("${", pos)
        if start == -1:
            break
        end = template.find("}", start + 2)
        if end == -1:
            break
        parts.append(template[pos:start])
        parts.append(frame.lookup_text(template[start + 2:end]))
        pos = end + 1
    parts.append(template[pos:])
    return "".join(parts)


class Interpreter:
    """Executes a program node by node, reading choices from ``input_fn``."""

    def __init__(
        self,
        program: Program,
        player_name: str,
        *,
        out: TextIO | None = None,
        err: TextIO | None = None,
        input_fn: InputFn | None = None,
        debugger: Debugger | None = None,
    ) -> None:
        self.program = program
        self.player_name = player_name
        self._out = out
        self._err = err
        self._input = input_fn or input
        self._debugger = debugger
        self._globals = Frame.for_program(program)
        self._halted = False

    def run(self) -> RunOutcome:
        """Interpret from the entry node until the dialogue ends."""
        self._halted = False
        program = self.program
        if program.npc:
            self._print(f"Npc: {program.npc}")
        if program.desc:
            self._print(f"Description: {program.desc}\n")
        if not program.entry:
            self._error("Program has no nodes to run.")
            return RunOutcome(status="empty")

        visited: List[str] = []
        current = program.entry
        while True:
            node = program.nodes.get(current)
            if node is None:
                self._error(f"Unknown node: {current}")
                return RunOutcome(status="unknown_node", visited_nodes=visited)
            visited.append(node.name)
            if self._debugger is not None:
                self._debugger.check(node.line, program)

            if node.text:
                self._print(interpolate(substitute_player(node.text, self.player_name), self._globals))

            if node.choices:
                try:
                    current = self._prompt_choice(node)
                except InputClosedError:
                    self._error("Input closed while waiting for a choice.")
                    return RunOutcome(status="input_closed", visited_nodes=visited)
                continue

            target = self._execute_actions(node.actions, self._globals)
            if self._halted:
                return RunOutcome(status="ended", visited_nodes=visited)
            if target is not None:
                current = target
                continue
            self._print(FELL_OFF_MESSAGE)
            return RunOutcome(status="fell_off", visited_nodes=visited)

    def _prompt_choice(self, node: Node) -> str:
        for choice in node.choices:
            self._print(f"[{choice.id}] {substitute_player(choice.text, self.player_name)}")
        while True:
            try:
                raw = self._input("Choose: ")
            except EOFError as exc:
                raise InputClosedError(node.name) from exc
            try:
                selected = int(raw.strip())
            except ValueError:
                self._print("Invalid")
                continue
            for choice in node.choices:
                if choice.id == selected:
                    return choice.target
            self._print("Invalid choice")

    def _execute_actions(self, actions: Sequence[Action], frame: Frame) -> str | None:
        """Run ``actions`` in order and return the jump target, if any.

        END sets the interpreter-wide halt flag and stops immediately.
        """
        for action in actions:
            if isinstance(action, SetAction):
                self._assign(action, frame)
            elif isinstance(action, SignalAction):
                self._print(f"[SIGNAL] {action.name} = {frame.evaluate(action.expr)}")
            elif isinstance(action, IfAction):
                if frame.evaluate(action.condition):
                    return action.target
                if action.else_target is not None:
                    return action.else_target
            elif isinstance(action, GotoAction):
                return action.target
            elif isinstance(action, EndAction):
                self._print(END_MESSAGE)
                self._halted = True
                return None
            elif isinstance(action, ShowAction):
                self._print(interpolate(action.template, frame))
            elif isinstance(action, MethodCallStmt):
                args = [frame.evaluate(arg) for arg in action.args]
                self.execute_method(action.instance, action.method, args, frame)
                if self._halted:
                    return None
            elif isinstance(action, NewStmt):
                self._instantiate(action, frame)
            elif isinstance(action, PrintStmt):
                if action.literal is not None:
                    self._print(action.literal)
                elif action.expr is not None:
                    self._print(str(frame.evaluate(action.expr)))
        return None

    def _assign(self, action: SetAction, frame: Frame) -> None:
        value = frame.evaluate(action.expr)
        if action.is_field_path:
            instance, _, field_name = action.target.partition(".")
            frame.objects.setdefault(instance, {})[field_name] = value
            if instance == frame.receiver and field_name in frame.fields:
                frame.int_vars[field_name] = value
        elif action.target in frame.bool_vars:
            frame.bool_vars[action.target] = value != 0
        else:
            frame.int_vars[action.target] = value
            if frame.receiver is not None and action.target in frame.fields:
                frame.objects.setdefault(frame.receiver, {})[action.target] = value

    def _instantiate(self, action: NewStmt, frame: Frame) -> None:
        class_def = self.program.classes.get(action.class_name)
        if class_def is None:
            self._error(f"Unknown class in inline new: {action.class_name}")
            return
        frame.objects[action.instance_name] = dict(class_def.fields)
        self.program.instance_classes[action.instance_name] = action.class_name

    def execute_method(self, instance: str, method: str, args: Sequence[int], frame: Frame) -> None:
        """Call ``instance.method(args)`` against ``frame`` and write results back into it."""
        class_name = self.program.instance_classes.get(instance)
        if class_name is None:
            self._error(f"Runtime: unknown instance '{instance}'")
            return
        class_def = self.program.classes.get(class_name)
        if class_def is None:
            self._error(f"Runtime: unknown class '{class_name}' for instance '{instance}'")
            return
        actions = class_def.methods.get(method)
        if actions is None:
            self._error(f"Runtime: class '{class_name}' has no method '{method}'")
            return

        local = _method_frame(frame, class_def.method_params.get(method, []), args)
        local.receiver = instance
        local.objects.setdefault(instance, dict(class_def.fields))
        for field_name, value in local.objects[instance].items():
            if field_name not in local.int_vars:
                local.int_vars[field_name] = value
                local.fields.add(field_name)

        # A jump target only cuts the method short; methods cannot branch.
        self._execute_actions(actions, local)

        frame.objects.clear()
        frame.objects.update(local.objects)
        instance_fields = frame.objects.setdefault(instance, {})
        for field_name in class_def.fields:
            if field_name in local.int_vars:
                instance_fields[field_name] = local.int_vars[field_name]
        for name in list(frame.int_vars):
            if name in local.int_vars and name not in frame.fields and name not in local.fields:
                frame.int_vars[name] = local.int_vars[name]
        for name in list(frame.bool_vars):
            if name in local.bool_vars:
                frame.bool_vars[name] = local.bool_vars[name]
        if frame.receiver is not None:
            receiver_fields = frame.objects.get(frame.receiver, {})
            for name in frame.fields:
                if name in receiver_fields:
                    frame.int_vars[name] = receiver_fields[name]

    def _print(self, text: str) -> None:
        print(text, file=self._out or sys.stdout)

    def _error(self, text: str) -> None:
        print(text, file=self._err or sys.stderr)


def _method_frame(frame: Frame, params: Sequence[str], args: Sequence[int]) -> Frame:
    int_vars = {name: value for name, value in frame.int_vars.items() if name not in frame.fields}
    for name, value in zip(params, args):
        int_vars[name] = value
    return Frame(
        int_vars=int_vars,
        bool_vars=dict(frame.bool_vars),
        string_vars=frame.string_vars,
        objects={name: dict(fields) for name, fields in frame.objects.items()},
    )
