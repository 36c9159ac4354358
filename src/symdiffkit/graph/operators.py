"""The closed set of operators that may appear in an expression graph.

Every operator has a fixed arity and a NumPy evaluation function. The set is
deliberately closed: derivative rules and both compile backends match on it
exhaustively, so adding an operator means adding a row to every table.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable

import numpy as np

__all__ = [
    "Operator",
    "ARITY",
    "COMMUTATIVE",
    "NUMPY_FUNCTIONS",
    "evaluate_operator",
]


class Operator(str, Enum):
    """Operator tags for operation nodes."""

    # Arithmetic
    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    DIV = "div"
    POW = "pow"
    NEG = "neg"

    # Transcendental
    SQRT = "sqrt"
    EXP = "exp"
    LOG = "log"
    SIN = "sin"
    COS = "cos"
    TAN = "tan"
    ASIN = "asin"
    ACOS = "acos"
    ATAN = "atan"
    ATAN2 = "atan2"
    SINH = "sinh"
    COSH = "cosh"
    TANH = "tanh"

    # Piecewise
    ABS = "abs"
    SIGN = "sign"
    MAX = "max"
    MIN = "min"

    # Comparisons evaluate to 1.0 or 0.0
    LT = "lt"
    LE = "le"
    GT = "gt"
    GE = "ge"
    EQ = "eq"
    NE = "ne"

    # if_else(cond, a, b) is a where cond != 0, otherwise b
    IF_ELSE = "if_else"

    def __str__(self) -> str:
        return self.value


_UNARY = {
    Operator.NEG, Operator.SQRT, Operator.EXP, Operator.LOG, Operator.SIN,
    Operator.COS, Operator.TAN, Operator.ASIN, Operator.ACOS, Operator.ATAN,
    Operator.SINH, Operator.COSH, Operator.TANH, Operator.ABS, Operator.SIGN,
}

ARITY: dict[Operator, int] = {
    op: (1 if op in _UNARY else 3 if op is Operator.IF_ELSE else 2)
    for op in Operator
}

# Operand order of these does not matter; the context sorts them before keying.
COMMUTATIVE = frozenset(
    {Operator.ADD, Operator.MUL, Operator.MAX, Operator.MIN, Operator.EQ, Operator.NE}
)


def _lt(a, b):
    return np.float64(a < b)


def _le(a, b):
    return np.float64(a <= b)


def _gt(a, b):
    return np.float64(a > b)


def _ge(a, b):
    return np.float64(a >= b)


def _eq(a, b):
    return np.float64(a == b)


def _ne(a, b):
    return np.float64(a != b)


def _if_else(cond, a, b):
    return a if cond != 0 else b


NUMPY_FUNCTIONS: dict[Operator, Callable[..., np.float64]] = {
    Operator.ADD: np.add,
    Operator.SUB: np.subtract,
    Operator.MUL: np.multiply,
    Operator.DIV: np.divide,
    Operator.POW: np.power,
    Operator.NEG: np.negative,
    Operator.SQRT: np.sqrt,
    Operator.EXP: np.exp,
    Operator.LOG: np.log,
    Operator.SIN: np.sin,
    Operator.COS: np.cos,
    Operator.TAN: np.tan,
    Operator.ASIN: np.arcsin,
    Operator.ACOS: np.arccos,
    Operator.ATAN: np.arctan,
    Operator.ATAN2: np.arctan2,
    Operator.SINH: np.sinh,
    Operator.COSH: np.cosh,
    Operator.TANH: np.tanh,
    Operator.ABS: np.abs,
    Operator.SIGN: np.sign,
    Operator.MAX: np.maximum,
    Operator.MIN: np.minimum,
    Operator.LT: _lt,
    Operator.LE: _le,
    Operator.GT: _gt,
    Operator.GE: _ge,
    Operator.EQ: _eq,
    Operator.NE: _ne,
    Operator.IF_ELSE: _if_else,
}


def evaluate_operator(op: Operator, *values: float) -> np.float64:
    """Evaluates ``op`` on already computed operand values.

    Args:
        op: Operator to apply.
        *values: Operand values, in operand order.

    Returns:
        The result as a NumPy scalar. Numeric failures follow NumPy
        semantics (``inf``/``nan`` plus a ``RuntimeWarning``).
    """
    return np.float64(NUMPY_FUNCTIONS[op](*values))
