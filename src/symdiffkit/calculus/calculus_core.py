"""Core utilities shared by the Jacobian, Hessian and vector-product builders.

Every builder starts the same way: find the graph context, validate the
differentiation variables, flatten the outputs to a vector of live nodes and
pick the :class:`~symdiffkit.differentiation.engine.DerivativeEngine` whose
memo the whole assembly shares.
"""

from __future__ import annotations

from typing import Any, NamedTuple, Sequence

import numpy as np
from numpy.typing import NDArray

from symdiffkit.differentiation.engine import DerivativeEngine
from symdiffkit.graph.context import GraphContext, resolve_context
from symdiffkit.graph.node import Node
from symdiffkit.graph.operators import Operator
from symdiffkit.utils.validate import as_node_array, infer_context, require_variables

__all__ = [
    "Assembly",
    "prepare_assembly",
    "scalar_output",
    "sum_of_products",
    "object_array",
]


class Assembly(NamedTuple):
    """Validated inputs of an assembly call."""

    context: GraphContext
    engine: DerivativeEngine
    outputs: list[Node]
    variables: list[Node]


def prepare_assembly(
    outputs: Any,
    variables: Sequence[Node],
    *,
    where: str,
    context: GraphContext | None = None,
    engine: DerivativeEngine | None = None,
) -> Assembly:
    """Validates and normalises the arguments of an assembly call.

    Args:
        outputs: A node or a 1D sequence of nodes (numbers become constants).
        variables: Differentiation variables.
        where: Caller name used in error messages.
        context: Explicit context. Ignored when ``engine`` is given.
        engine: Engine to share; its context wins.

    Returns:
        The resolved context, engine, output vector and variable list.

    Raises:
        InvalidDifferentiationTarget: If an entry of ``variables`` is not a
            variable.
        ValueError: If ``outputs`` has more than one dimension.
        StaleNodeError: If a node is stale or foreign.
    """
    if engine is not None:
        ctx = engine.context
    else:
        ctx = infer_context([outputs], context)
        if ctx is None:
            ctx = infer_context([variables]) or resolve_context(None)
        engine = DerivativeEngine(ctx)
    vars_ = require_variables(variables, where=where, context=ctx)
    arr = as_node_array(outputs, ctx)
    if arr.ndim > 1:
        raise ValueError(f"{where}: outputs must be a node or a 1D sequence; got shape {arr.shape}.")
    return Assembly(ctx, engine, list(arr.ravel()), vars_)


def scalar_output(f: Any, *, where: str) -> Any:
    """Returns ``f`` if it holds exactly one expression.

    Raises:
        ValueError: If ``f`` is a sequence with more than one entry.
    """
    if isinstance(f, Node):
        return f
    arr = np.asarray(f, dtype=object)
    if arr.size != 1:
        raise ValueError(f"{where} expects a scalar expression; got {arr.size} entries.")
    return arr.ravel()[0]


def sum_of_products(context: GraphContext, pairs: Sequence[tuple[Node, Node]]) -> Node:
    """Builds ``sum(a * b for a, b in pairs)``, skipping pairs with a zero factor."""
    total: Node | None = None
    for a, b in pairs:
        if a.is_zero or b.is_zero:
            continue
        term = context.operation(Operator.MUL, a, b)
        total = term if total is None else context.operation(Operator.ADD, total, term)
    return context.constant(0.0) if total is None else total


def object_array(items: Sequence[Any], shape: tuple[int, ...] | None = None) -> NDArray[np.object_]:
    """Packs nodes into an object array without NumPy unpacking them."""
    out = np.empty(len(items), dtype=object)
    for i, item in enumerate(items):
        out[i] = item
    return out if shape is None else out.reshape(shape)
