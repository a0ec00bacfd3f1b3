"""
Expression tree produced by the parser.

Nodes are immutable and discriminated by ``NodeType``. The variant names and
field names follow ESTree (the shape jsep emits), so a tree can be dumped to
and rebuilt from plain dicts:

    node = parse("a && b.c")
    data = node.to_json()       # {"type": "LogicalExpression", ...}
    assert from_json(data) == node
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple


class NodeType(str, Enum):
    """Discriminant for every supported node variant."""
    LITERAL = "Literal"
    IDENTIFIER = "Identifier"
    THIS = "ThisExpression"
    MEMBER = "MemberExpression"
    UNARY = "UnaryExpression"
    BINARY = "BinaryExpression"
    LOGICAL = "LogicalExpression"
    CONDITIONAL = "ConditionalExpression"
    CALL = "CallExpression"
    ARRAY = "ArrayExpression"
    COMPOUND = "Compound"


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

class Node:
    """Base class for all expression nodes."""

    type: NodeType

    def to_json(self) -> dict:
        """Serialize to an ESTree-shaped dict."""
        raise NotImplementedError

    def __repr__(self):
        return f"{self.__class__.__name__}({self.to_json()})"


# ---------------------------------------------------------------------------
# Leaf nodes
# ---------------------------------------------------------------------------

@dataclass(frozen=True, repr=False)
class Literal(Node):
    """A constant: number, string, boolean or null."""
    value: Any
    raw: str = None

    type = NodeType.LITERAL

    def to_json(self) -> dict:
        d = {"type": self.type.value, "value": self.value}
        if self.raw is not None:
            d["raw"] = self.raw
        return d


@dataclass(frozen=True, repr=False)
class Identifier(Node):
    """A bare name, looked up in the evaluation context."""
    name: str

    type = NodeType.IDENTIFIER

    def to_json(self) -> dict:
        return {"type": self.type.value, "name": self.name}


@dataclass(frozen=True, repr=False)
class ThisExpression(Node):
    """``this`` — the evaluation context itself."""

    type = NodeType.THIS

    def to_json(self) -> dict:
        return {"type": self.type.value}


# ---------------------------------------------------------------------------
# Composite nodes
# ---------------------------------------------------------------------------

@dataclass(frozen=True, repr=False)
class MemberExpression(Node):
    """``object.property`` or, when computed, ``object[property]``."""
    object: Node
    property: Node
    computed: bool = False

    type = NodeType.MEMBER

    def to_json(self) -> dict:
        return {
            "type": self.type.value,
            "computed": self.computed,
            "object": self.object.to_json(),
            "property": self.property.to_json(),
        }


@dataclass(frozen=True, repr=False)
class UnaryExpression(Node):
    """Prefix operator applied to one argument."""
    operator: str
    argument: Node
    prefix: bool = True

    type = NodeType.UNARY

    def to_json(self) -> dict:
        return {
            "type": self.type.value,
            "operator": self.operator,
            "argument": self.argument.to_json(),
            "prefix": self.prefix,
        }


@dataclass(frozen=True, repr=False)
class BinaryExpression(Node):
    """left operator right."""
    operator: str
    left: Node
    right: Node

    type = NodeType.BINARY

    def to_json(self) -> dict:
        return {
            "type": self.type.value,
            "operator": self.operator,
            "left": self.left.to_json(),
            "right": self.right.to_json(),
        }


@dataclass(frozen=True, repr=False)
class LogicalExpression(BinaryExpression):
    """``||`` and ``&&``. Same shape as a binary expression."""

    type = NodeType.LOGICAL


@dataclass(frozen=True, repr=False)
class ConditionalExpression(Node):
    """test ? consequent : alternate"""
    test: Node
    consequent: Node
    alternate: Node

    type = NodeType.CONDITIONAL

    def to_json(self) -> dict:
        return {
            "type": self.type.value,
            "test": self.test.to_json(),
            "consequent": self.consequent.to_json(),
            "alternate": self.alternate.to_json(),
        }


@dataclass(frozen=True, repr=False)
class CallExpression(Node):
    """callee(arguments...)"""
    callee: Node
    arguments: Tuple[Node, ...] = ()

    type = NodeType.CALL

    def to_json(self) -> dict:
        return {
            "type": self.type.value,
            "callee": self.callee.to_json(),
            "arguments": [a.to_json() for a in self.arguments],
        }


@dataclass(frozen=True, repr=False)
class ArrayExpression(Node):
    """[elements...]"""
    elements: Tuple[Node, ...] = ()

    type = NodeType.ARRAY

    def to_json(self) -> dict:
        return {
            "type": self.type.value,
            "elements": [e.to_json() for e in self.elements],
        }


@dataclass(frozen=True, repr=False)
class Compound(Node):
    """Comma-separated statements; evaluates to the last one."""
    body: Tuple[Node, ...] = ()

    type = NodeType.COMPOUND

    def to_json(self) -> dict:
        return {
            "type": self.type.value,
            "body": [b.to_json() for b in self.body],
        }


# ---------------------------------------------------------------------------
# Deserialization
# ---------------------------------------------------------------------------

def from_json(data) -> Node:
    """Rebuild a node tree from an ESTree-shaped dict (or its JSON text)."""
    if isinstance(data, str):
        data = json.loads(data)

    node_type = data.get("type")

    if node_type == "Literal":
        return Literal(data.get("value"), data.get("raw"))

    if node_type == "Identifier":
        return Identifier(data["name"])

    if node_type == "ThisExpression":
        return ThisExpression()

    if node_type == "MemberExpression":
        return MemberExpression(
            from_json(data["object"]),
            from_json(data["property"]),
            bool(data.get("computed", False)),
        )

    if node_type == "UnaryExpression":
        return UnaryExpression(data["operator"], from_json(data["argument"]), data.get("prefix", True))

    if node_type == "BinaryExpression":
        return BinaryExpression(data["operator"], from_json(data["left"]), from_json(data["right"]))

    if node_type == "LogicalExpression":
        return LogicalExpression(data["operator"], from_json(data["left"]), from_json(data["right"]))

    if node_type == "ConditionalExpression":
        return ConditionalExpression(
            from_json(data["test"]),
            from_json(data["consequent"]),
            from_json(data["alternate"]),
        )

    if node_type == "CallExpression":
        return CallExpression(from_json(data["callee"]), tuple(from_json(a) for a in data["arguments"]))

    if node_type == "ArrayExpression":
        return ArrayExpression(tuple(from_json(e) for e in data["elements"]))

    if node_type == "Compound":
        return Compound(tuple(from_json(b) for b in data["body"]))

    raise ValueError(f"Unknown expression type: {node_type}")
