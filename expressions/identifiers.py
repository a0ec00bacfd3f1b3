"""
Static discovery of the state keys an expression reads.

Property names of a member chain are not dependencies, its root is:
``b.c`` depends on ``b`` and ``this.x`` depends on ``x``. Computed
properties are expressions of their own, so ``a[b]`` depends on ``a`` and
``b``. Callees are context functions, not state, so ``f(x)`` depends on
``x`` only.
"""

from expressions.nodes import NodeType
from expressions.parser import parse

# Names that are constants or bindings, never state keys.
LITERAL_KEYWORDS = frozenset({"true", "false", "null", "undefined", "this"})


def free_variables(node) -> list:
    """Return the free variable names of ``node`` in order of first use."""
    names = []
    _collect(node, names)
    return list(dict.fromkeys(names))


def get_variables_from_expression(expression: str) -> list:
    """Parse ``expression`` and return its free variables."""
    return free_variables(parse(expression))


def _collect(node, acc):
    node_type = node.type

    if node_type is NodeType.IDENTIFIER:
        if node.name not in LITERAL_KEYWORDS:
            acc.append(node.name)
    elif node_type is NodeType.MEMBER:
        _collect_member_root(node, acc)
    elif node_type is NodeType.UNARY:
        _collect(node.argument, acc)
    elif node_type is NodeType.BINARY or node_type is NodeType.LOGICAL:
        for side in (node.left, node.right):
            if side.type is not NodeType.LITERAL:
                _collect(side, acc)
    elif node_type is NodeType.CALL:
        for arg in node.arguments:
            _collect(arg, acc)
    elif node_type is NodeType.CONDITIONAL:
        _collect(node.test, acc)
        _collect(node.consequent, acc)
        _collect(node.alternate, acc)
    elif node_type is NodeType.ARRAY:
        for el in node.elements:
            _collect(el, acc)
    elif node_type is NodeType.COMPOUND:
        for statement in node.body:
            _collect(statement, acc)


def _collect_member_root(node, acc):
    """Record the root of a member chain, then its computed properties."""
    computed = []
    while True:
        if node.computed:
            computed.append(node.property)
        if node.object.type is not NodeType.MEMBER:
            break
        node = node.object

    obj = node.object
    if obj.type is NodeType.THIS:
        if not node.computed:
            acc.append(node.property.name)
    else:
        _collect(obj, acc)

    # innermost first, i.e. in source order
    for prop in reversed(computed):
        _collect(prop, acc)
