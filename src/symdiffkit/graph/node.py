"""Immutable nodes of the expression DAG.

Nodes are never constructed directly; they are created (or looked up) by a
:class:`symdiffkit.graph.context.GraphContext`, which guarantees that two
structurally identical expressions resolve to the same node instance. Because
of that, node equality is object identity and nodes are safe dictionary keys.

Arithmetic operators are overloaded so expressions read naturally::

    >>> from symdiffkit import make_variables, sin
    >>> x, y = make_variables("x y")
    >>> f = x**2 * y + sin(x)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from symdiffkit.graph.operators import Operator

if TYPE_CHECKING:
    from symdiffkit.graph.context import GraphContext

__all__ = ["Node", "NodeKind"]


class NodeKind(Enum):
    """The three node variants."""

    VARIABLE = "variable"
    CONSTANT = "constant"
    OPERATION = "operation"


@dataclass(frozen=True, eq=False, repr=False, slots=True)
class Node:
    """A single immutable element of an expression graph.

    Attributes:
        kind: Which variant this node is.
        index: Position in the owning context's arena. Operands always have
            a smaller index than the operation that uses them.
        epoch: Epoch of the owning context when the node was created.
        context: The owning graph context.
        op: Operator tag (operations only).
        operands: Operand nodes (operations only).
        value: Literal value (constants only).
        name: Display name (variables only).
        uid: Process-wide unique id (variables only).
    """

    kind: NodeKind
    index: int
    epoch: int
    context: "GraphContext"
    op: Operator | None = None
    operands: tuple["Node", ...] = ()
    value: float | None = None
    name: str | None = None
    uid: int | None = None

    # NumPy scalars on the left defer to the reflected operators below.
    __array_ufunc__ = None

    @property
    def is_variable(self) -> bool:
        return self.kind is NodeKind.VARIABLE

    @property
    def is_constant(self) -> bool:
        return self.kind is NodeKind.CONSTANT

    @property
    def is_operation(self) -> bool:
        return self.kind is NodeKind.OPERATION

    def is_constant_value(self, value: float) -> bool:
        """Returns True if this node is the constant ``value``."""
        return self.kind is NodeKind.CONSTANT and self.value == value

    @property
    def is_zero(self) -> bool:
        return self.is_constant_value(0.0)

    @property
    def is_one(self) -> bool:
        return self.is_constant_value(1.0)

    def __repr__(self) -> str:
        if self.kind is NodeKind.VARIABLE:
            return str(self.name)
        if self.kind is NodeKind.CONSTANT:
            return repr(self.value)
        args = ", ".join(_short(o) for o in self.operands)
        return f"{self.op}({args})"

    def _apply(self, op: Operator, *operands: Any) -> "Node":
        return self.context.operation(op, *operands)

    def __add__(self, other: Any) -> "Node":
        return self._apply(Operator.ADD, self, other)

    def __radd__(self, other: Any) -> "Node":
        return self._apply(Operator.ADD, other, self)

    def __sub__(self, other: Any) -> "Node":
        return self._apply(Operator.SUB, self, other)

    def __rsub__(self, other: Any) -> "Node":
        return self._apply(Operator.SUB, other, self)

    def __mul__(self, other: Any) -> "Node":
        return self._apply(Operator.MUL, self, other)

    def __rmul__(self, other: Any) -> "Node":
        return self._apply(Operator.MUL, other, self)

    def __truediv__(self, other: Any) -> "Node":
        return self._apply(Operator.DIV, self, other)

    def __rtruediv__(self, other: Any) -> "Node":
        return self._apply(Operator.DIV, other, self)

    def __pow__(self, other: Any) -> "Node":
        return self._apply(Operator.POW, self, other)

    def __rpow__(self, other: Any) -> "Node":
        return self._apply(Operator.POW, other, self)

    def __neg__(self) -> "Node":
        return self._apply(Operator.NEG, self)

    def __pos__(self) -> "Node":
        return self

    def __abs__(self) -> "Node":
        return self._apply(Operator.ABS, self)


def _short(node: Node) -> str:
    if node.kind is NodeKind.OPERATION:
        return f"#{node.index}"
    return repr(node)
