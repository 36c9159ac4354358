"""Contains functions used to construct the symbolic gradient of scalar expressions."""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np
from numpy.typing import NDArray

from symdiffkit.calculus.calculus_core import scalar_output
from symdiffkit.calculus.jacobian import jacobian
from symdiffkit.differentiation.engine import DerivativeEngine
from symdiffkit.graph.context import GraphContext
from symdiffkit.graph.node import Node

__all__ = ["gradient"]


def gradient(
    f: Any,
    variables: Sequence[Node],
    *,
    context: GraphContext | None = None,
    engine: DerivativeEngine | None = None,
) -> NDArray[np.object_]:
    """Returns the gradient of a scalar expression.

    Args:
        f: A node (or a number, whose gradient is all zeros).
        variables: The differentiation variables.
        context: Graph context; inferred if None.
        engine: Engine whose memo is shared with other calls.

    Returns:
        An object array of shape ``(n,)``.

    Raises:
        ValueError: If ``f`` holds more than one expression.
    """
    f = scalar_output(f, where="gradient")
    return jacobian([f], variables, context=context, engine=engine)[0, :]
