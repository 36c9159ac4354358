"""Local derivative rules, one per operator.

Each rule returns the partial derivative of an operation node with respect to
one of its operands, as a new graph node. The engine combines these with the
chain rule. Rules are looked up in a table keyed by :class:`Operator`; the
table is checked for completeness at import time.

Conventions at non-smooth points:

- ``abs``: the derivative is ``sign(a)``, i.e. 0 at ``a == 0``.
- ``sign`` and all comparisons: derivative 0 everywhere.
- ``max(a, b)``: the derivative goes to ``a`` where ``a >= b`` and to ``b``
  where ``a < b``. ``a`` is the operand created first, since commutative
  operands are stored in creation order.
- ``min(a, b)``: the derivative goes to ``a`` where ``a <= b`` and to ``b``
  where ``a > b``.
- ``if_else``: the condition has derivative 0; the engine differentiates
  the branches and selects between the results.
"""

from __future__ import annotations

from typing import Callable

from symdiffkit.graph import functions as fn
from symdiffkit.graph.context import GraphContext
from symdiffkit.graph.node import Node
from symdiffkit.graph.operators import Operator

__all__ = ["local_partial"]

Rule = Callable[[Node, int, GraphContext], Node]


def _one(node: Node, i: int, ctx: GraphContext) -> Node:
    return ctx.constant(1.0)


def _zero(node: Node, i: int, ctx: GraphContext) -> Node:
    return ctx.constant(0.0)


def _sub(node: Node, i: int, ctx: GraphContext) -> Node:
    return ctx.constant(1.0 if i == 0 else -1.0)


def _mul(node: Node, i: int, ctx: GraphContext) -> Node:
    return node.operands[1 - i]


def _div(node: Node, i: int, ctx: GraphContext) -> Node:
    a, b = node.operands
    if i == 0:
        return 1.0 / b
    return -node / b


def _pow(node: Node, i: int, ctx: GraphContext) -> Node:
    a, b = node.operands
    if i == 1:
        return node * fn.log(a)
    if b.is_constant:
        # Constant exponent: no log(a) term, so negative bases stay finite.
        return b.value * a ** (b.value - 1.0)
    return b * a ** (b - 1.0)


def _neg(node: Node, i: int, ctx: GraphContext) -> Node:
    return ctx.constant(-1.0)


def _sqrt(node: Node, i: int, ctx: GraphContext) -> Node:
    return 0.5 / node


def _exp(node: Node, i: int, ctx: GraphContext) -> Node:
    return node


def _log(node: Node, i: int, ctx: GraphContext) -> Node:
    return 1.0 / node.operands[0]


def _sin(node: Node, i: int, ctx: GraphContext) -> Node:
    return fn.cos(node.operands[0])


def _cos(node: Node, i: int, ctx: GraphContext) -> Node:
    return -fn.sin(node.operands[0])


def _tan(node: Node, i: int, ctx: GraphContext) -> Node:
    return 1.0 + node**2


def _asin(node: Node, i: int, ctx: GraphContext) -> Node:
    a = node.operands[0]
    return 1.0 / fn.sqrt(1.0 - a**2)


def _acos(node: Node, i: int, ctx: GraphContext) -> Node:
    a = node.operands[0]
    return -1.0 / fn.sqrt(1.0 - a**2)


def _atan(node: Node, i: int, ctx: GraphContext) -> Node:
    a = node.operands[0]
    return 1.0 / (1.0 + a**2)


def _atan2(node: Node, i: int, ctx: GraphContext) -> Node:
    y, x = node.operands
    r2 = x**2 + y**2
    if i == 0:
        return x / r2
    return -y / r2


def _sinh(node: Node, i: int, ctx: GraphContext) -> Node:
    return fn.cosh(node.operands[0])


def _cosh(node: Node, i: int, ctx: GraphContext) -> Node:
    return fn.sinh(node.operands[0])


def _tanh(node: Node, i: int, ctx: GraphContext) -> Node:
    return 1.0 - node**2


def _abs(node: Node, i: int, ctx: GraphContext) -> Node:
    return fn.sign(node.operands[0])


def _max(node: Node, i: int, ctx: GraphContext) -> Node:
    a, b = node.operands
    return fn.ge(a, b) if i == 0 else fn.lt(a, b)


def _min(node: Node, i: int, ctx: GraphContext) -> Node:
    a, b = node.operands
    return fn.le(a, b) if i == 0 else fn.gt(a, b)


def _if_else(node: Node, i: int, ctx: GraphContext) -> Node:
    cond = node.operands[0]
    if i == 0:
        return ctx.constant(0.0)
    return fn.if_else(cond, 1.0, 0.0) if i == 1 else fn.if_else(cond, 0.0, 1.0)


_RULES: dict[Operator, Rule] = {
    Operator.ADD: _one,
    Operator.SUB: _sub,
    Operator.MUL: _mul,
    Operator.DIV: _div,
    Operator.POW: _pow,
    Operator.NEG: _neg,
    Operator.SQRT: _sqrt,
    Operator.EXP: _exp,
    Operator.LOG: _log,
    Operator.SIN: _sin,
    Operator.COS: _cos,
    Operator.TAN: _tan,
    Operator.ASIN: _asin,
    Operator.ACOS: _acos,
    Operator.ATAN: _atan,
    Operator.ATAN2: _atan2,
    Operator.SINH: _sinh,
    Operator.COSH: _cosh,
    Operator.TANH: _tanh,
    Operator.ABS: _abs,
    Operator.SIGN: _zero,
    Operator.MAX: _max,
    Operator.MIN: _min,
    Operator.LT: _zero,
    Operator.LE: _zero,
    Operator.GT: _zero,
    Operator.GE: _zero,
    Operator.EQ: _zero,
    Operator.NE: _zero,
    Operator.IF_ELSE: _if_else,
}

_missing = set(Operator) - set(_RULES)
if _missing:
    raise RuntimeError(f"No derivative rule for operator(s): {sorted(map(str, _missing))}.")


def local_partial(node: Node, i: int) -> Node:
    """Returns the partial derivative of ``node`` with respect to operand ``i``.

    Args:
        node: An operation node.
        i: Operand position.

    Returns:
        The partial derivative node, built in ``node``'s context.
    """
    return _RULES[node.op](node, i, node.context)
