"""Parsed program model shared by the parser, runtime and debugger."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from crtz.domain.actions import Action


@dataclass(slots=True)
class Choice:
    """Numbered option shown to the player."""

    id: int
    text: str
    target: str


@dataclass(slots=True)
class Node:
    """Named unit of dialogue."""

    name: str
    text: str = ""
    choices: List[Choice] = field(default_factory=list)
    actions: List[Action] = field(default_factory=list)
    line: int = 0


@dataclass(slots=True)
class ClassDef:
    name: str
    fields: Dict[str, int] = field(default_factory=dict)
    methods: Dict[str, List[Action]] = field(default_factory=dict)
    method_params: Dict[str, List[str]] = field(default_factory=dict)


@dataclass(slots=True)
class Room:
    """Explorable location. Parsed and stored but never visited by the runtime."""

    name: str
    description: str = ""
    exits: Dict[str, str] = field(default_factory=dict)
    items: List[str] = field(default_factory=list)
    npcs: List[str] = field(default_factory=list)


@dataclass(slots=True)
class PictureDecl:
    """``picture NAME[size] = load("path");`` declaration, kept for tooling only."""

    name: str
    size: int
    path: str
    line: int = 0


@dataclass
class Program:
    """Aggregate root built by the parser and mutated in place by the runtime."""

    npc: str = ""
    desc: str = ""
    int_vars: Dict[str, int] = field(default_factory=dict)
    bool_vars: Dict[str, bool] = field(default_factory=dict)
    string_vars: Dict[str, str] = field(default_factory=dict)
    nodes: Dict[str, Node] = field(default_factory=dict)
    entry: str = ""
    classes: Dict[str, ClassDef] = field(default_factory=dict)
    objects: Dict[str, Dict[str, int]] = field(default_factory=dict)
    instance_classes: Dict[str, str] = field(default_factory=dict)
    rooms: Dict[str, Room] = field(default_factory=dict)
    current_room: str = ""
    pictures: Dict[str, PictureDecl] = field(default_factory=dict)

    def instantiate(self, class_name: str, instance_name: str) -> bool:
        """Create (or reset) an instance seeded from the class defaults."""
        class_def = self.classes.get(class_name)
        if class_def is None:
            return False
        self.objects[instance_name] = dict(class_def.fields)
        self.instance_classes[instance_name] = class_name
        return True

    def lookup_variable(self, name: str) -> str | None:
        """Return a printable value for a variable or ``instance.field``."""
        if name in self.int_vars:
            return str(self.int_vars[name])
        if name in self.bool_vars:
            return "true" if self.bool_vars[name] else "false"
        if name in self.string_vars:
            return self.string_vars[name]
        instance, dot, field_name = name.partition(".")
        if dot and field_name in self.objects.get(instance, {}):
            return str(self.objects[instance][field_name])
        return None
