"""
JavaScript-flavoured value helpers shared by the evaluator and the store.

None plays the part of both ``null`` and ``undefined``.
"""

import math
from collections.abc import Mapping

_NUMBER_TYPES = (int, float)


def is_number(value) -> bool:
    """bool is a separate kind in JS, so it is not a number here."""
    return isinstance(value, _NUMBER_TYPES) and not isinstance(value, bool)


def is_primitive(value) -> bool:
    return value is None or isinstance(value, (bool, int, float, str))


def strict_equals(a, b) -> bool:
    """``a === b``: primitives by kind and value, everything else by identity."""
    if is_number(a) and is_number(b):
        # NaN is unequal even to itself
        return a == b
    if a is b:
        return True
    if is_primitive(a) and is_primitive(b):
        if type(a) is not type(b):
            return False
        return a == b
    return False


def loose_equals(a, b) -> bool:
    """``a == b``: strict within a kind, numeric comparison across kinds."""
    if a is None or b is None:
        return a is None and b is None
    if is_primitive(a) and is_primitive(b):
        if _same_kind(a, b):
            return strict_equals(a, b)
        return to_number(a) == to_number(b)
    # a container meets a primitive through its string form
    if is_primitive(a):
        return loose_equals(a, to_js_string(b))
    if is_primitive(b):
        return loose_equals(to_js_string(a), b)
    return a is b


def _same_kind(a, b) -> bool:
    if is_number(a) and is_number(b):
        return True
    return type(a) is type(b)


def is_truthy(value) -> bool:
    """None, False, 0, NaN and "" are falsy. Empty containers are truthy."""
    if value is None or value is False:
        return False
    if value is True:
        return True
    if is_number(value):
        return not (value == 0 or math.isnan(value))
    if isinstance(value, str):
        return value != ""
    return True


def to_js_string(value) -> str:
    """String coercion used by ``+`` when one side is a string."""
    if value is None:
        return "undefined"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join("" if v is None else to_js_string(v) for v in value)
    if isinstance(value, Mapping):
        return "[object Object]"
    return str(value)


def to_number(value):
    """Unary ``+``."""
    if value is None:
        return math.nan
    if isinstance(value, bool):
        return int(value)
    if is_number(value):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            return int(text)
        except ValueError:
            try:
                return float(text)
            except ValueError:
                return math.nan
    return math.nan


def to_int32(value) -> int:
    n = int(to_number(value)) if not _is_nan_or_inf(value) else 0
    n &= 0xFFFFFFFF
    return n - 0x100000000 if n & 0x80000000 else n


def to_uint32(value) -> int:
    n = int(to_number(value)) if not _is_nan_or_inf(value) else 0
    return n & 0xFFFFFFFF


def _is_nan_or_inf(value) -> bool:
    n = to_number(value)
    return isinstance(n, float) and (math.isnan(n) or math.isinf(n))
