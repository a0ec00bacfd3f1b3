"""
JavaScript-flavoured expressions for control runtimes.

parse() turns a string into an immutable node tree (lark grammar),
evaluate() walks it against a context, free_variables() lists the state
keys it reads.
"""

from expressions.nodes import (
    Node, NodeType, Literal, Identifier, ThisExpression, MemberExpression,
    UnaryExpression, BinaryExpression, LogicalExpression, ConditionalExpression,
    CallExpression, ArrayExpression, Compound, from_json,
)
from expressions.errors import ExpressionError, ExpressionSyntaxError, EvaluationError, CascadeDepthExceeded
from expressions.parser import parse
from expressions.evaluator import evaluate, evaluate_expression, lookup
from expressions.identifiers import free_variables, get_variables_from_expression
