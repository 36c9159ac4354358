"""Contains functions used in constructing the symbolic Hessian of a scalar expression."""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np
from numpy.typing import NDArray

from symdiffkit.calculus.calculus_core import object_array, prepare_assembly, scalar_output
from symdiffkit.calculus.jacobian import jacobian
from symdiffkit.differentiation.engine import DerivativeEngine
from symdiffkit.graph.context import GraphContext
from symdiffkit.graph.node import Node

__all__ = [
    "hessian",
    "hessian_diag",
]


def hessian(
    f: Any,
    variables: Sequence[Node],
    *,
    context: GraphContext | None = None,
    engine: DerivativeEngine | None = None,
) -> NDArray[np.object_]:
    """Returns the full Hessian of a scalar expression.

    Built as the Jacobian of the gradient with one shared engine, so the
    second derivatives reuse every first derivative. The result is
    symmetric in value, but ``H[i, j]`` and ``H[j, i]`` are generally
    different nodes because they are differentiated in different orders.

    Args:
        f: The expression to be differentiated.
        variables: The differentiation variables.
        context: Graph context; inferred if None.
        engine: Engine whose memo is shared with other calls.

    Returns:
        An object array of shape ``(n, n)``.

    Raises:
        ValueError: If ``f`` holds more than one expression.
    """
    f = scalar_output(f, where="hessian")
    asm = prepare_assembly([f], variables, where="hessian", context=context, engine=engine)
    grad = jacobian(asm.outputs, asm.variables, engine=asm.engine)[0, :]
    return jacobian(grad, asm.variables, engine=asm.engine)


def hessian_diag(
    f: Any,
    variables: Sequence[Node],
    *,
    context: GraphContext | None = None,
    engine: DerivativeEngine | None = None,
) -> NDArray[np.object_]:
    """Returns the diagonal of the Hessian of a scalar expression.

    Only the second derivatives ``d2f/dx_i2`` are built; mixed partials are
    never differentiated.

    Args:
        f: The expression to be differentiated.
        variables: The differentiation variables.
        context: Graph context; inferred if None.
        engine: Engine whose memo is shared with other calls.

    Returns:
        An object array of shape ``(n,)``.
    """
    f = scalar_output(f, where="hessian_diag")
    asm = prepare_assembly([f], variables, where="hessian_diag", context=context, engine=engine)
    (root,) = asm.outputs
    diag = [
        asm.engine.differentiate(asm.engine.differentiate(root, v), v) for v in asm.variables
    ]
    return object_array(diag)
