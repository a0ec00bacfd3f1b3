"""
Parser for the JavaScript expression subset used by control runtimes.

Built on a lark LALR grammar. Operator precedence matches jsep (lowest
first): ``||``, ``&&``, ``|``, ``^``, ``&``, equality, relational, shift,
additive, multiplicative, ``**`` (right associative), unary, member/call.

    parse("button1 && !button2")
    → LogicalExpression(&&, Identifier(button1), UnaryExpression(!, ...))
"""

import ast
import functools

from lark import Lark, Transformer
from lark.exceptions import LarkError, UnexpectedInput

from expressions.errors import ExpressionSyntaxError
from expressions.nodes import (
    Literal, Identifier, ThisExpression, MemberExpression, UnaryExpression,
    BinaryExpression, LogicalExpression, ConditionalExpression, CallExpression,
    ArrayExpression, Compound,
)


GRAMMAR = r"""
?start: sequence

?sequence: conditional
         | conditional ("," conditional)+                -> compound

?conditional: logical_or
            | logical_or "?" conditional ":" conditional -> ternary

?logical_or: logical_and
           | logical_or or_op logical_and                -> logical
?logical_and: bit_or
            | logical_and and_op bit_or                  -> logical
?bit_or: bit_xor
       | bit_or bor_op bit_xor                           -> binary
?bit_xor: bit_and
        | bit_xor xor_op bit_and                         -> binary
?bit_and: equality
        | bit_and band_op equality                       -> binary
?equality: relational
         | equality eq_op relational                     -> binary
?relational: shift
           | relational rel_op shift                     -> binary
?shift: additive
      | shift shift_op additive                          -> binary
?additive: multiplicative
         | additive add_op multiplicative                -> binary
?multiplicative: exponent
               | multiplicative mul_op exponent          -> binary
?exponent: unary
         | unary pow_op exponent                         -> binary

?unary: postfix
      | unary_op unary                                   -> unary_expr

?postfix: primary
        | postfix "." NAME                               -> member
        | postfix "[" sequence "]"                       -> computed_member
        | postfix "(" [arguments] ")"                    -> call

arguments: conditional ("," conditional)*

?primary: NUMBER                                         -> number
        | HEX_NUMBER                                     -> hex_number
        | STRING                                         -> string
        | NAME                                           -> name
        | "[" [arguments] "]"                            -> array
        | "(" sequence ")"

!or_op: "||"
!and_op: "&&"
!bor_op: "|"
!xor_op: "^"
!band_op: "&"
!eq_op: "===" | "!==" | "==" | "!="
!rel_op: "<=" | ">=" | "<" | ">"
!shift_op: ">>>" | "<<" | ">>"
!add_op: "+" | "-"
!mul_op: "*" | "/" | "%"
!pow_op: "**"
!unary_op: "!" | "~" | "++" | "--" | "+" | "-"

HEX_NUMBER.2: /0[xX][0-9a-fA-F]+/
NUMBER: /(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?/
STRING: /"(?:[^"\\\n]|\\.)*"|'(?:[^'\\\n]|\\.)*'/
NAME: /[A-Za-z_$][A-Za-z0-9_$]*/

%import common.WS
%ignore WS
"""

# Names the grammar reads as NAME but that denote constants.
LITERAL_NAMES = {
    "true": True,
    "false": False,
    "null": None,
    "undefined": None,
}


class _TreeToNode(Transformer):
    """Turns lark parse-tree callbacks into expression nodes."""

    def number(self, children):
        text = str(children[0])
        if text.isdigit():
            return Literal(int(text), text)
        return Literal(float(text), text)

    def hex_number(self, children):
        text = str(children[0])
        return Literal(int(text, 16), text)

    def string(self, children):
        text = str(children[0])
        return Literal(ast.literal_eval(text), text)

    def name(self, children):
        text = str(children[0])
        if text in LITERAL_NAMES:
            return Literal(LITERAL_NAMES[text], text)
        if text == "this":
            return ThisExpression()
        return Identifier(text)

    def array(self, children):
        elements = children[0] if children else None
        return ArrayExpression(tuple(elements or ()))

    def arguments(self, children):
        return list(children)

    def member(self, children):
        obj, name = children
        return MemberExpression(obj, Identifier(str(name)), False)

    def computed_member(self, children):
        obj, prop = children
        return MemberExpression(obj, prop, True)

    def call(self, children):
        callee, *rest = children
        arguments = rest[0] if rest else None
        return CallExpression(callee, tuple(arguments or ()))

    def unary_expr(self, children):
        operator, argument = children
        return UnaryExpression(operator, argument)

    def binary(self, children):
        left, operator, right = children
        return BinaryExpression(operator, left, right)

    def logical(self, children):
        left, operator, right = children
        return LogicalExpression(operator, left, right)

    def ternary(self, children):
        test, consequent, alternate = children
        return ConditionalExpression(test, consequent, alternate)

    def compound(self, children):
        return Compound(tuple(children))

    def _operator(self, children):
        return str(children[0])

    or_op = and_op = bor_op = xor_op = band_op = _operator
    eq_op = rel_op = shift_op = add_op = mul_op = pow_op = unary_op = _operator


_PARSER = Lark(GRAMMAR, parser="lalr", transformer=_TreeToNode())


@functools.lru_cache(maxsize=1024)
def parse(text: str):
    """Parse an expression string into an immutable node tree.

    Raises ExpressionSyntaxError when the text is not a valid expression.
    """
    if not isinstance(text, str):
        raise TypeError(f"Expression must be a string, got {type(text).__name__}")
    try:
        return _PARSER.parse(text)
    except UnexpectedInput as exc:
        raise ExpressionSyntaxError(text, exc.line, exc.column, str(exc).splitlines()[0]) from exc
    except (LarkError, ValueError, SyntaxError) as exc:
        raise ExpressionSyntaxError(text, detail=str(exc)) from exc
