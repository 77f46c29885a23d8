"""Static checks over a parsed program's node graph.

The runtime never calls these; a dangling goto is only an error once reached.
The checks exist so authors can lint a script before playing it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Set

from crtz.core.types import Severity
from crtz.domain.actions import Action, GotoAction, IfAction, MethodCallStmt, NewStmt
from crtz.domain.program import Node, Program


@dataclass(frozen=True, slots=True)
class Issue:
    severity: Severity
    code: str
    message: str
    context: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class NodeInfo:
    node_id: str
    targets: list[tuple[str, str]]


def format_issue(issue: Issue) -> str:
    context = " ".join(f"{key}={value}" for key, value in issue.context.items())
    suffix = f" ({context})" if context else ""
    return f"[{issue.severity}] {issue.code}: {issue.message}{suffix}"


def has_errors(issues: Iterable[Issue]) -> bool:
    return any(issue.severity == "ERROR" for issue in issues)


def validate_program(program: Program) -> list[Issue]:
    """Return every issue found in ``program``, errors and warnings alike."""
    issues: list[Issue] = []
    if not program.nodes:
        issues.append(Issue(severity="ERROR", code="NO_NODES", message="Program declares no nodes."))
        return issues

    node_infos = {name: _build_node_info(node) for name, node in program.nodes.items()}
    node_ids = set(node_infos)
    for node_info in node_infos.values():
        _validate_node_references(node_info, node_ids, issues)
    _validate_reachability(node_infos, program.entry, issues)

    known_instances = set(program.instance_classes) | _inline_instances(program)
    for node in program.nodes.values():
        _validate_statements(program, node.actions, known_instances, {"node_id": node.name}, issues)
    for class_def in program.classes.values():
        for method_name, actions in class_def.methods.items():
            context = {"class": class_def.name, "method": method_name}
            _validate_statements(program, actions, known_instances, context, issues)
    return issues


def _build_node_info(node: Node) -> NodeInfo:
    targets: list[tuple[str, str]] = []
    for index, choice in enumerate(node.choices):
        targets.append((f"choices[{index}]", choice.target))
    for index, action in enumerate(node.actions):
        if isinstance(action, GotoAction):
            targets.append((f"actions[{index}].goto", action.target))
        elif isinstance(action, IfAction):
            targets.append((f"actions[{index}].if", action.target))
            if action.else_target is not None:
                targets.append((f"actions[{index}].else", action.else_target))
    return NodeInfo(node_id=node.name, targets=targets)


def _validate_node_references(node_info: NodeInfo, node_ids: Set[str], issues: list[Issue]) -> None:
    for field_path, target in node_info.targets:
        if target not in node_ids:
            issues.append(
                Issue(
                    severity="WARN",
                    code="MISSING_NODE_REF",
                    message="Transfer references a node that does not exist.",
                    context={
                        "node_id": node_info.node_id,
                        "field_path": field_path,
                        "referenced_id": target,
                    },
                )
            )


def _validate_reachability(node_infos: Mapping[str, NodeInfo], entry: str, issues: list[Issue]) -> None:
    node_ids = set(node_infos)
    reachable: set[str] = set()
    stack = [entry] if entry in node_ids else []
    while stack:
        node_id = stack.pop()
        if node_id in reachable:
            continue
        reachable.add(node_id)
        for _, target in node_infos[node_id].targets:
            if target in node_ids:
                stack.append(target)
    for node_id in sorted(node_ids - reachable):
        issues.append(
            Issue(
                severity="WARN",
                code="UNREACHABLE_NODE",
                message="Node is unreachable from the entry node.",
                context={"node_id": node_id},
            )
        )


def _inline_instances(program: Program) -> Set[str]:
    names: Set[str] = set()
    for actions in _all_action_lists(program):
        names.update(action.instance_name for action in actions if isinstance(action, NewStmt))
    return names


def _all_action_lists(program: Program) -> List[List[Action]]:
    lists = [node.actions for node in program.nodes.values()]
    for class_def in program.classes.values():
        lists.extend(class_def.methods.values())
    return lists


def _validate_statements(
    program: Program,
    actions: List[Action],
    known_instances: Set[str],
    context: dict[str, str],
    issues: list[Issue],
) -> None:
    for action in actions:
        if isinstance(action, NewStmt) and action.class_name not in program.classes:
            issues.append(
                Issue(
                    severity="WARN",
                    code="UNKNOWN_CLASS",
                    message="Inline new references an undeclared class.",
                    context={**context, "class_name": action.class_name},
                )
            )
        if not isinstance(action, MethodCallStmt):
            continue
        if action.instance not in known_instances:
            issues.append(
                Issue(
                    severity="WARN",
                    code="UNKNOWN_INSTANCE",
                    message="Method call on an instance that is never created.",
                    context={**context, "call": action.raw},
                )
            )
            continue
        class_name = program.instance_classes.get(action.instance) or _inline_class(program, action.instance)
        class_def = program.classes.get(class_name or "")
        if class_def is not None and action.method not in class_def.methods:
            issues.append(
                Issue(
                    severity="WARN",
                    code="UNKNOWN_METHOD",
                    message="Method call names a method the class does not define.",
                    context={**context, "call": action.raw},
                )
            )


def _inline_class(program: Program, instance: str) -> str | None:
    for actions in _all_action_lists(program):
        for action in actions:
            if isinstance(action, NewStmt) and action.instance_name == instance:
                return action.class_name
    return None
