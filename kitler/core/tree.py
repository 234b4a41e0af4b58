"""Abstract syntax tree for the kt language.

Every node owns its children exclusively: the tree is never shared and never cyclic. Function values created at
runtime borrow their parameter list and body from their FuncDecl instead of copying them.

Positions (line, column) are plain attributes set by the parser rather than dataclass fields, so that two trees with
the same structure compare equal regardless of where they were parsed from.

The class, event, project space, switch/case and new-instance nodes are reserved: the parser never produces them and
the evaluator evaluates them to null.
"""

from dataclasses import dataclass, field, fields
from typing import List, Optional, Union


class Node:
    """Superclass for all AST nodes."""
    line = 0
    column = 0

    def children(self):
        """Direct child nodes, in source order."""
        result = []
        for attr in fields(self):
            value = getattr(self, attr.name)
            if isinstance(value, Node):
                result.append(value)
            elif isinstance(value, list):
                result.extend(item for item in value if isinstance(item, Node))
            elif isinstance(value, dict):
                result.extend(item for item in value.values() if isinstance(item, Node))
        return result

    def display(self, indents=0):
        """Recursively displays tree with readable format.

        Format:
        <Node>(<attr>=<value>, nodes=[
            <Node>(<attr>=<value>, nodes=[
                ...
                <Node>(<attr>=<value>)  # <-- if there are no child nodes
            ])
        ])
        """
        attrs = []
        for attr in fields(self):
            value = getattr(self, attr.name)
            if not isinstance(value, (Node, list, dict)):
                attrs.append(f"{attr.name}={value!r}")
            elif isinstance(value, list) and not any(isinstance(item, Node) for item in value):
                attrs.append(f"{attr.name}={value!r}")
            elif isinstance(value, dict):
                attrs.append(f"keys={list(value)!r}")

        result = f"{'    ' * indents}{type(self).__name__}({', '.join(attrs)}"
        nodes = self.children()
        if nodes:
            result += (", " if attrs else "") + "nodes=["
            for node in nodes:
                result += "\n" + node.display(indents + 1) + ","
            result = result[:-1] + f"\n{'    ' * indents}]"
        return result + ")"


@dataclass
class Block(Node):
    statements: List[Node] = field(default_factory=list)


@dataclass
class Program(Block):
    pass


@dataclass
class IncludeDirective(Node):
    library: str
    is_priority: bool = False


@dataclass
class ProjectSpace(Node):
    name: str
    members: List[Node] = field(default_factory=list)


@dataclass
class VarDecl(Node):
    name: str
    initializer: Optional[Node] = None


@dataclass
class FuncDecl(Node):
    name: str
    params: List[str]
    body: Block
    is_async: bool = False


@dataclass
class ClassDecl(Node):
    name: str
    members: List[Node] = field(default_factory=list)


@dataclass
class EventDecl(Node):
    name: str
    params: List[str] = field(default_factory=list)


@dataclass
class If(Node):
    condition: Node
    then_branch: Block
    else_branch: Optional[Block] = None


@dataclass
class While(Node):
    condition: Node
    body: Block


@dataclass
class For(Node):
    iterator: str
    iterable: Node
    body: Block


@dataclass
class Case(Node):
    value: Node
    body: Block


@dataclass
class Switch(Node):
    expression: Node
    cases: List[Case] = field(default_factory=list)
    default: Optional[Block] = None


@dataclass
class Return(Node):
    value: Optional[Node] = None


@dataclass
class Break(Node):
    pass


@dataclass
class Assign(Node):
    target: Node
    value: Node


@dataclass
class BinaryOp(Node):
    operator: str
    left: Node
    right: Node


@dataclass
class UnaryOp(Node):
    operator: str
    operand: Node


@dataclass
class Call(Node):
    callee: Node
    args: List[Node] = field(default_factory=list)


@dataclass
class MemberAccess(Node):
    obj: Node
    member: str


@dataclass
class IndexAccess(Node):
    obj: Node
    index: Node


@dataclass
class Literal(Node):
    value: Union[float, str, bool, None]


@dataclass
class Identifier(Node):
    name: str


@dataclass
class ListLiteral(Node):
    elements: List[Node] = field(default_factory=list)


@dataclass
class MapLiteral(Node):
    entries: dict = field(default_factory=dict)  # str: Node


@dataclass
class NewInstance(Node):
    class_name: str
    args: List[Node] = field(default_factory=list)


RESERVED = (ProjectSpace, ClassDecl, EventDecl, Switch, Case, NewInstance)
