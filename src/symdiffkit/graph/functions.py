"""Function builders for the operators that have no Python operator syntax.

Every builder accepts nodes or plain numbers and returns the canonical node
from the operands' context (or ``context=`` when given).
"""

from __future__ import annotations

from typing import Any

from symdiffkit.graph.context import GraphContext, make_operation
from symdiffkit.graph.node import Node
from symdiffkit.graph.operators import Operator

__all__ = [
    "sqrt", "exp", "log", "sin", "cos", "tan", "asin", "acos", "atan", "atan2",
    "sinh", "cosh", "tanh", "absolute", "sign", "maximum", "minimum",
    "lt", "le", "gt", "ge", "eq", "ne", "if_else",
]


def sqrt(x: Any, *, context: GraphContext | None = None) -> Node:
    return make_operation(Operator.SQRT, x, context=context)


def exp(x: Any, *, context: GraphContext | None = None) -> Node:
    return make_operation(Operator.EXP, x, context=context)


def log(x: Any, *, context: GraphContext | None = None) -> Node:
    """Natural logarithm."""
    return make_operation(Operator.LOG, x, context=context)


def sin(x: Any, *, context: GraphContext | None = None) -> Node:
    return make_operation(Operator.SIN, x, context=context)


def cos(x: Any, *, context: GraphContext | None = None) -> Node:
    return make_operation(Operator.COS, x, context=context)


def tan(x: Any, *, context: GraphContext | None = None) -> Node:
    return make_operation(Operator.TAN, x, context=context)


def asin(x: Any, *, context: GraphContext | None = None) -> Node:
    return make_operation(Operator.ASIN, x, context=context)


def acos(x: Any, *, context: GraphContext | None = None) -> Node:
    return make_operation(Operator.ACOS, x, context=context)


def atan(x: Any, *, context: GraphContext | None = None) -> Node:
    return make_operation(Operator.ATAN, x, context=context)


def atan2(y: Any, x: Any, *, context: GraphContext | None = None) -> Node:
    """Four-quadrant arctangent of ``y / x``."""
    return make_operation(Operator.ATAN2, y, x, context=context)


def sinh(x: Any, *, context: GraphContext | None = None) -> Node:
    return make_operation(Operator.SINH, x, context=context)


def cosh(x: Any, *, context: GraphContext | None = None) -> Node:
    return make_operation(Operator.COSH, x, context=context)


def tanh(x: Any, *, context: GraphContext | None = None) -> Node:
    return make_operation(Operator.TANH, x, context=context)


def absolute(x: Any, *, context: GraphContext | None = None) -> Node:
    """Absolute value; the builtin ``abs(node)`` builds the same node."""
    return make_operation(Operator.ABS, x, context=context)


def sign(x: Any, *, context: GraphContext | None = None) -> Node:
    """Sign function; evaluates to 0.0 at 0."""
    return make_operation(Operator.SIGN, x, context=context)


def maximum(a: Any, b: Any, *, context: GraphContext | None = None) -> Node:
    return make_operation(Operator.MAX, a, b, context=context)


def minimum(a: Any, b: Any, *, context: GraphContext | None = None) -> Node:
    return make_operation(Operator.MIN, a, b, context=context)


def lt(a: Any, b: Any, *, context: GraphContext | None = None) -> Node:
    """``a < b`` as 1.0 / 0.0."""
    return make_operation(Operator.LT, a, b, context=context)


def le(a: Any, b: Any, *, context: GraphContext | None = None) -> Node:
    """``a <= b`` as 1.0 / 0.0."""
    return make_operation(Operator.LE, a, b, context=context)


def gt(a: Any, b: Any, *, context: GraphContext | None = None) -> Node:
    """``a > b`` as 1.0 / 0.0."""
    return make_operation(Operator.GT, a, b, context=context)


def ge(a: Any, b: Any, *, context: GraphContext | None = None) -> Node:
    """``a >= b`` as 1.0 / 0.0."""
    return make_operation(Operator.GE, a, b, context=context)


def eq(a: Any, b: Any, *, context: GraphContext | None = None) -> Node:
    """``a == b`` as 1.0 / 0.0 (numeric equality, not node identity)."""
    return make_operation(Operator.EQ, a, b, context=context)


def ne(a: Any, b: Any, *, context: GraphContext | None = None) -> Node:
    """``a != b`` as 1.0 / 0.0."""
    return make_operation(Operator.NE, a, b, context=context)


def if_else(condition: Any, if_true: Any, if_false: Any, *, context: GraphContext | None = None) -> Node:
    """Selects ``if_true`` where ``condition`` is non-zero, else ``if_false``.

    Both branches are part of the graph and are evaluated; only the result
    is selected.
    """
    return make_operation(Operator.IF_ELSE, condition, if_true, if_false, context=context)
