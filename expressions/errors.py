"""
Errors raised while parsing or evaluating expressions.

Reading a key that does not exist is not an error: it resolves to None.
"""


class ExpressionError(Exception):
    """Base class for every expression failure."""


class ExpressionSyntaxError(ExpressionError):
    """Raised when an expression string cannot be parsed."""

    def __init__(self, expression, line=None, column=None, detail=""):
        self.expression = expression
        self.line = line
        self.column = column
        self.detail = detail
        where = f" at line {line}, column {column}" if line is not None else ""
        super().__init__(f"Cannot parse expression {expression!r}{where}. {detail}".rstrip())


class EvaluationError(ExpressionError):
    """Raised when a tree is structurally invalid for evaluation.

    Unknown or missing node types, callee kinds that cannot be called and
    operators missing from the operator tables all end up here.
    """

    def __init__(self, message, node=None):
        self.node = node
        super().__init__(message)


class CascadeDepthExceeded(ExpressionError):
    """Raised when assignment cascades nest deeper than the configured limit."""

    def __init__(self, key, depth):
        self.key = key
        self.depth = depth
        super().__init__(
            f"Assignment cascade exceeded depth {depth} while updating '{key}'. "
            f"Check for cyclic assignments."
        )
