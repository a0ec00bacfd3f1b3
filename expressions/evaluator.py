"""
Evaluates expression trees against a context mapping.

Evaluation is eager: both operands of every binary and logical operator,
and both branches of a conditional, are evaluated before the operator is
applied. ``a && f()`` therefore calls ``f`` even when ``a`` is falsy.

Identifiers and member accesses resolve to a path of keys which is then
looked up segment by segment; a missing segment yields None instead of
raising.
"""

import math
import operator
from collections.abc import Mapping, Sequence

from expressions.errors import EvaluationError
from expressions.nodes import Node, NodeType
from expressions.parser import parse
from expressions.values import (
    strict_equals, loose_equals, is_truthy, is_primitive, to_js_string, to_number, to_int32, to_uint32,
)


# ---------------------------------------------------------------------------
# Operator tables
# ---------------------------------------------------------------------------

def _add(a, b):
    if isinstance(a, str) or isinstance(b, str) or not is_primitive(a) or not is_primitive(b):
        return to_js_string(a) + to_js_string(b)
    return to_number(a) + to_number(b)


def _numeric(op):
    def apply(a, b):
        return op(to_number(a), to_number(b))
    return apply


def _divide(a, b):
    a, b = to_number(a), to_number(b)
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.inf if (a > 0) == (math.copysign(1, b) > 0) else -math.inf
    return a / b


def _remainder(a, b):
    a, b = to_number(a), to_number(b)
    if b == 0 or math.isnan(a) or math.isnan(b) or math.isinf(a):
        return math.nan
    if math.isinf(b):
        return a
    if isinstance(a, int) and isinstance(b, int):
        # JS keeps the sign of the dividend
        r = abs(a) % abs(b)
        return r if a >= 0 else -r
    return math.fmod(a, b)


def _power(a, b):
    a, b = to_number(a), to_number(b)
    if math.isnan(b):
        return math.nan
    if isinstance(a, int) and isinstance(b, int) and b >= 0:
        return a ** b
    if a == 0 and b < 0:
        return math.inf
    try:
        return math.pow(a, b)
    except ValueError:
        return math.nan
    except OverflowError:
        return math.inf


def _relational(op):
    def compare(a, b):
        if isinstance(a, str) and isinstance(b, str):
            return op(a, b)
        if a is None or b is None:
            return False
        x, y = to_number(a), to_number(b)
        if math.isnan(x) or math.isnan(y):
            return False
        return op(x, y)
    return compare


BINARY_OPERATORS = {
    "===": strict_equals,
    "!==": lambda a, b: not strict_equals(a, b),
    "==": loose_equals,
    "!=": lambda a, b: not loose_equals(a, b),
    ">": _relational(operator.gt),
    "<": _relational(operator.lt),
    ">=": _relational(operator.ge),
    "<=": _relational(operator.le),
    "+": _add,
    "-": _numeric(operator.sub),
    "*": _numeric(operator.mul),
    "/": _divide,
    "%": _remainder,
    "**": _power,
    "&": lambda a, b: to_int32(a) & to_int32(b),
    "|": lambda a, b: to_int32(a) | to_int32(b),
    "^": lambda a, b: to_int32(a) ^ to_int32(b),
    "<<": lambda a, b: to_int32(to_int32(a) << (to_uint32(b) & 31)),
    ">>": lambda a, b: to_int32(a) >> (to_uint32(b) & 31),
    ">>>": lambda a, b: to_uint32(a) >> (to_uint32(b) & 31),
    # operands are already evaluated, these only pick one
    "||": lambda a, b: a if is_truthy(a) else b,
    "&&": lambda a, b: b if is_truthy(a) else a,
}

UNARY_OPERATORS = {
    "!": lambda a: not is_truthy(a),
    "~": lambda a: ~to_int32(a),
    "+": to_number,
    "-": lambda a: -to_number(a),
    "++": lambda a: to_number(a) + 1,
    "--": lambda a: to_number(a) - 1,
}

CALLABLE_NODE_TYPES = (NodeType.IDENTIFIER, NodeType.MEMBER)


# ---------------------------------------------------------------------------
# Path resolution
# ---------------------------------------------------------------------------

def _path_of(node, context) -> tuple:
    """Resolve an Identifier / MemberExpression to a tuple of lookup keys."""
    node_type = _type_of(node)
    if node_type is NodeType.IDENTIFIER:
        return (node.name,)
    if node_type is not NodeType.MEMBER:
        raise EvaluationError(f"Invalid parameter path node type: {node_type.value}", node)

    obj = node.object
    obj_type = _type_of(obj)
    if obj_type is NodeType.THIS:
        prefix = ()
    elif obj_type in (NodeType.MEMBER, NodeType.IDENTIFIER):
        prefix = _path_of(obj, context)
    else:
        raise EvaluationError(f"Invalid object type: {obj_type.value}", node)

    if node.computed:
        return prefix + (_normalize_key(evaluate(node.property, context)),)
    if _type_of(node.property) is not NodeType.IDENTIFIER:
        raise EvaluationError("Invalid property type", node)
    return prefix + (node.property.name,)


def _normalize_key(key):
    if isinstance(key, float) and key.is_integer():
        return int(key)
    if not is_primitive(key):
        return to_js_string(key)
    return key


def _index_of(key):
    """Integer index for ``key`` (``1`` or ``"1"``), else None."""
    if isinstance(key, int) and not isinstance(key, bool):
        return key
    if isinstance(key, str) and key.isdecimal() and str(int(key)) == key:
        return int(key)
    return None


def lookup(context, path):
    """Follow ``path`` from ``context``. Missing segments give None."""
    current = context
    for key in path:
        if current is None:
            return None
        current = _lookup_one(current, key)
    return current


def _lookup_one(container, key):
    if isinstance(container, Mapping):
        if key in container:
            return container[key]
        # JS property keys are strings: a[0] and a["0"] name the same slot
        index = _index_of(key)
        if index is None:
            return None
        alternate = str(index) if isinstance(key, int) else index
        return container.get(alternate)
    if isinstance(container, (Sequence, str)):
        if key == "length":
            return len(container)
        index = _index_of(key)
        if index is not None and 0 <= index < len(container):
            return container[index]
        return None
    if isinstance(key, str) and not key.startswith("_"):
        return getattr(container, key, None)
    return None


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

def _type_of(node) -> NodeType:
    if node is None:
        raise EvaluationError("Node missing")
    node_type = getattr(node, "type", None)
    if not isinstance(node, Node) or not isinstance(node_type, NodeType):
        raise EvaluationError(f"invalid node type {node_type!r}", node)
    return node_type


def evaluate(node, context):
    """Evaluate ``node`` against ``context`` and return its value."""
    node_type = _type_of(node)

    if node_type is NodeType.LITERAL:
        return node.value

    if node_type is NodeType.THIS:
        return context

    if node_type is NodeType.COMPOUND:
        result = None
        for statement in node.body:
            result = evaluate(statement, context)
        return result

    if node_type is NodeType.ARRAY:
        return [evaluate(el, context) for el in node.elements]

    if node_type is NodeType.UNARY:
        fn = UNARY_OPERATORS.get(node.operator)
        if fn is None:
            raise EvaluationError(f"Invalid unary operator: {node.operator}", node)
        return fn(evaluate(node.argument, context))

    if node_type is NodeType.BINARY or node_type is NodeType.LOGICAL:
        fn = BINARY_OPERATORS.get(node.operator)
        if fn is None:
            raise EvaluationError(f"Invalid binary operator: {node.operator}", node)
        left = evaluate(node.left, context)
        right = evaluate(node.right, context)
        return fn(left, right)

    if node_type is NodeType.CONDITIONAL:
        test = evaluate(node.test, context)
        consequent = evaluate(node.consequent, context)
        alternate = evaluate(node.alternate, context)
        return consequent if is_truthy(test) else alternate

    if node_type is NodeType.CALL:
        if _type_of(node.callee) not in CALLABLE_NODE_TYPES:
            raise EvaluationError("Invalid function callee type", node)
        path = _path_of(node.callee, context)
        callee = lookup(context, path)
        args = [evaluate(arg, context) for arg in node.arguments]
        if not callable(callee):
            raise EvaluationError(f"{'.'.join(map(str, path))} is not a function", node)
        return callee(*args)

    if node_type is NodeType.IDENTIFIER or node_type is NodeType.MEMBER:
        return lookup(context, _path_of(node, context))

    raise EvaluationError(f"Unsupported node type: {node_type.value}", node)


def evaluate_expression(expression: str, context):
    """Parse and evaluate an expression string in one go."""
    return evaluate(parse(expression), context)
