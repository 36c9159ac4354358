"""Symbolic differentiation of expression graphs.

The engine walks a graph from a root down to its leaves and applies the chain
rule bottom-up::

    d op(a_0, ..., a_k) = sum_i  (d op / d a_i) * d a_i

Partials come from :mod:`symdiffkit.differentiation.rules`. Every derivative
node is built through the graph context, so derivative graphs share structure
with the function graph and with each other.

A :class:`DerivativeEngine` memoises ``(node, variable) -> derivative`` for its
whole lifetime. Shared subexpressions are therefore differentiated once, and
an engine that is reused across calls (e.g. by the Jacobian assembler) never
recomputes an entry it already holds. The memo is separate from the context's
CSE table and is discarded with the engine.

The engine also records, for each visited node, the set of variables the node
depends on, so whole subgraphs that do not contain the variable are skipped.
"""

from __future__ import annotations

from typing import Any

import numpy as np

from symdiffkit.differentiation.rules import local_partial
from symdiffkit.graph.context import GraphContext
from symdiffkit.graph.node import Node
from symdiffkit.graph.operators import Operator
from symdiffkit.utils.validate import as_node_array, infer_context, require_variables

__all__ = ["DerivativeEngine", "derivative"]


class DerivativeEngine:
    """Memoising symbolic differentiator bound to one graph context."""

    def __init__(self, context: GraphContext):
        """Creates an engine with an empty memo.

        Args:
            context: The context derivative nodes are built in. Every node
                passed to the engine must belong to it and be live.
        """
        self.context = context
        self.epoch = context.epoch
        self._memo: dict[tuple[Node, Node], Node] = {}
        self._deps: dict[Node, frozenset[int]] = {}

    def __len__(self) -> int:
        return len(self._memo)

    def depends_on(self, node: Node) -> frozenset[int]:
        """Returns the ids of the variables ``node`` depends on."""
        cached = self._deps.get(node)
        if cached is not None:
            return cached
        stack = [node]
        while stack:
            n = stack[-1]
            if n in self._deps:
                stack.pop()
                continue
            pending = [o for o in n.operands if o not in self._deps]
            if pending:
                stack.extend(pending)
                continue
            stack.pop()
            if n.is_variable:
                self._deps[n] = frozenset((n.uid,))
            elif n.is_constant:
                self._deps[n] = frozenset()
            else:
                self._deps[n] = frozenset().union(*(self._deps[o] for o in n.operands))
        return self._deps[node]

    def differentiate(self, node: Node, variable: Node) -> Node:
        """Returns the node for d ``node`` / d ``variable``.

        Args:
            node: Expression to differentiate.
            variable: A variable node.

        Returns:
            The derivative node (constant 0 when ``node`` does not depend on
            ``variable``).

        Raises:
            InvalidDifferentiationTarget: If ``variable`` is not a variable.
            StaleNodeError: If a node is stale, foreign, or the context was
                cleared since the engine was created.
        """
        (variable,) = require_variables([variable], where="derivative", context=self.context)
        node = self.context.as_node(node)
        if self.context.epoch != self.epoch:
            # Memo entries from the previous epoch would be stale.
            self._memo.clear()
            self._deps.clear()
            self.epoch = self.context.epoch

        memo = self._memo
        zero = self.context.constant(0.0)
        uid = variable.uid

        stack = [node]
        while stack:
            n = stack[-1]
            key = (n, variable)
            if key in memo:
                stack.pop()
                continue
            if uid not in self.depends_on(n):
                memo[key] = zero
                stack.pop()
                continue
            if n.is_variable:
                # Only the variable itself depends on its own id.
                memo[key] = self.context.constant(1.0)
                stack.pop()
                continue
            pending = [o for o in n.operands if (o, variable) not in memo]
            if pending:
                stack.extend(pending)
                continue
            stack.pop()
            memo[key] = self._chain_rule(n, variable)
        return memo[(node, variable)]

    def _chain_rule(self, node: Node, variable: Node) -> Node:
        ctx = self.context
        grads = [self._memo[(o, variable)] for o in node.operands]
        if node.op is Operator.IF_ELSE:
            return ctx.operation(Operator.IF_ELSE, node.operands[0], grads[1], grads[2])
        total: Node | None = None
        for i, d in enumerate(grads):
            if d.is_zero:
                continue
            term = ctx.operation(Operator.MUL, local_partial(node, i), d)
            total = term if total is None else ctx.operation(Operator.ADD, total, term)
        return ctx.constant(0.0) if total is None else total


def derivative(
    expr: Any,
    variable: Node,
    *more_variables: Node,
    context: GraphContext | None = None,
    engine: DerivativeEngine | None = None,
) -> Any:
    """Differentiates an expression, or an array of expressions, symbolically.

    With more than one variable the derivatives are taken in order, e.g.
    ``derivative(f, x, y)`` is d/dy (d f / dx).

    Args:
        expr: A node, a number, or a (nested) sequence / object array of them.
        variable: First differentiation variable.
        *more_variables: Further variables for higher-order derivatives.
        context: Context to build in. Defaults to the context of ``expr``
            (or of ``variable``).
        engine: An engine whose memo should be shared with other calls.

    Returns:
        A node when ``expr`` is a single node or number, otherwise an object
        array of the same shape as ``expr``.

    Raises:
        InvalidDifferentiationTarget: If a variable argument is not a variable.
    """
    variables = require_variables([variable, *more_variables], where="derivative")
    if engine is not None:
        ctx = engine.context
    else:
        ctx = infer_context([expr], context) or variables[0].context
        engine = DerivativeEngine(ctx)
    arr = as_node_array(expr, ctx)
    for v in variables:
        out = np.empty(arr.shape, dtype=object)
        for idx, node in np.ndenumerate(arr):
            out[idx] = engine.differentiate(node, v)
        arr = out
    if arr.ndim == 0:
        return arr[()]
    return arr
