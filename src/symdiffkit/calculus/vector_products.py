"""Matrix-free Jacobian-vector, Jacobian-transpose-vector and Hessian-vector products.

Each builder introduces fresh *seed* variables that carry the vector operand
through the graph and returns them alongside the product nodes. Append the
seeds to the input list when compiling::

    >>> from symdiffkit import compile_graph, jacobian_times_v, make_variables, sin
    >>> x, y = make_variables("x y")
    >>> jv, seeds = jacobian_times_v([x * y, sin(x)], [x, y])
    >>> f = compile_graph(jv, [x, y, *seeds])
    >>> f([1.0, 2.0, 1.0, 0.0])  # J @ [1, 0]
    array([2.        , 0.54030231])

Every partial is taken once through a shared engine and multiplied by its
seed straight away; the ``(m, n)`` Jacobian container is never built.
"""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np
from numpy.typing import NDArray

from symdiffkit.calculus.calculus_core import (
    object_array,
    prepare_assembly,
    scalar_output,
    sum_of_products,
)
from symdiffkit.differentiation.engine import DerivativeEngine
from symdiffkit.graph.context import GraphContext
from symdiffkit.graph.node import Node
from symdiffkit.logger import symdiffkit_logger

__all__ = [
    "jacobian_times_v",
    "jacobian_transpose_v",
    "hessian_times_v",
]

ProductGraph = tuple[NDArray[np.object_], NDArray[np.object_]]


def jacobian_times_v(
    outputs: Any,
    variables: Sequence[Node],
    *,
    context: GraphContext | None = None,
    engine: DerivativeEngine | None = None,
) -> ProductGraph:
    """Builds ``J @ v`` with one seed variable per input variable.

    ``products[i] = sum_j d outputs[i] / d variables[j] * seeds[j]``.

    Args:
        outputs: A node or a 1D sequence of ``m`` nodes.
        variables: The ``n`` differentiation variables.
        context: Graph context; inferred if None.
        engine: Engine whose memo is shared with other calls.

    Returns:
        ``(products, seeds)``: object arrays of shape ``(m,)`` and ``(n,)``.
        ``seeds[j]`` is named ``seed_<name of variables[j]>``.
    """
    asm = prepare_assembly(
        outputs, variables, where="jacobian_times_v", context=context, engine=engine
    )
    ctx, eng = asm.context, asm.engine
    _warn_if_empty("jacobian_times_v", asm.outputs, asm.variables)

    seeds = [ctx.variable(f"seed_{v.name}") for v in asm.variables]
    products = []
    for o in asm.outputs:
        deps = eng.depends_on(o)
        pairs = [
            (eng.differentiate(o, v), s)
            for v, s in zip(asm.variables, seeds)
            if v.uid in deps
        ]
        products.append(sum_of_products(ctx, pairs))
    _log_products("J @ v", products, len(ctx))
    return object_array(products), object_array(seeds)


def jacobian_transpose_v(
    outputs: Any,
    variables: Sequence[Node],
    *,
    context: GraphContext | None = None,
    engine: DerivativeEngine | None = None,
) -> ProductGraph:
    """Builds ``J.T @ r`` with one seed variable per output.

    ``products[j] = sum_i d outputs[i] / d variables[j] * seeds[i]``.

    Args:
        outputs: A node or a 1D sequence of ``m`` nodes.
        variables: The ``n`` differentiation variables.
        context: Graph context; inferred if None.
        engine: Engine whose memo is shared with other calls.

    Returns:
        ``(products, seeds)``: object arrays of shape ``(n,)`` and ``(m,)``.
        ``seeds[i]`` is named ``seed_out<i>``.
    """
    asm = prepare_assembly(
        outputs, variables, where="jacobian_transpose_v", context=context, engine=engine
    )
    ctx, eng = asm.context, asm.engine
    _warn_if_empty("jacobian_transpose_v", asm.outputs, asm.variables)

    seeds = [ctx.variable(f"seed_out{i}") for i in range(len(asm.outputs))]
    deps = [eng.depends_on(o) for o in asm.outputs]
    products = []
    for v in asm.variables:
        pairs = [
            (eng.differentiate(o, v), s)
            for o, s, d in zip(asm.outputs, seeds, deps)
            if v.uid in d
        ]
        products.append(sum_of_products(ctx, pairs))
    _log_products("J.T @ r", products, len(ctx))
    return object_array(products), object_array(seeds)


def hessian_times_v(
    f: Any,
    variables: Sequence[Node],
    *,
    context: GraphContext | None = None,
    engine: DerivativeEngine | None = None,
) -> ProductGraph:
    """Builds ``H @ v`` for a scalar expression as the gradient of ``grad(f) . v``.

    Args:
        f: A scalar expression.
        variables: The ``n`` differentiation variables.
        context: Graph context; inferred if None.
        engine: Engine whose memo is shared with other calls.

    Returns:
        ``(products, seeds)``: object arrays of shape ``(n,)`` and ``(n,)``.
    """
    f = scalar_output(f, where="hessian_times_v")
    asm = prepare_assembly([f], variables, where="hessian_times_v", context=context, engine=engine)
    ctx, eng = asm.context, asm.engine
    _warn_if_empty("hessian_times_v", asm.outputs, asm.variables)

    (root,) = asm.outputs
    seeds = [ctx.variable(f"seed_{v.name}") for v in asm.variables]
    directional = sum_of_products(
        ctx, [(eng.differentiate(root, v), s) for v, s in zip(asm.variables, seeds)]
    )
    products = [eng.differentiate(directional, v) for v in asm.variables]
    _log_products("H @ v", products, len(ctx))
    return object_array(products), object_array(seeds)


def _warn_if_empty(where: str, outputs: list[Node], variables: list[Node]) -> None:
    if not outputs or not variables:
        symdiffkit_logger.warning(
            "%s called with %d outputs and %d variables; the product is empty.",
            where, len(outputs), len(variables),
        )


def _log_products(label: str, products: list[Node], n_nodes: int) -> None:
    symdiffkit_logger.debug(
        "Built %s with %d entries (%d identically zero); context holds %d nodes.",
        label, len(products), sum(1 for p in products if p.is_zero), n_nodes,
    )
