"""Sparse assembly of symbolic Jacobians and Hessians.

Large Jacobians are often mostly zero. The sparse builders skip every entry
whose output does not depend on the variable (read from the engine's
dependency sets, without differentiating) and keep only entries that are not
the constant 0 after differentiation. The result can be compiled straight
into a ``scipy.sparse`` matrix with :func:`symdiffkit.compile_sparse`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np
from numpy.typing import NDArray

from symdiffkit.calculus.calculus_core import object_array, prepare_assembly, scalar_output
from symdiffkit.differentiation.engine import DerivativeEngine
from symdiffkit.graph.context import GraphContext
from symdiffkit.graph.node import Node
from symdiffkit.logger import symdiffkit_logger

__all__ = [
    "SparseNodeMatrix",
    "sparse_jacobian",
    "sparse_hessian",
]


@dataclass(frozen=True)
class SparseNodeMatrix:
    """Coordinate-format matrix of derivative nodes.

    Attributes:
        rows: Row index of each stored entry.
        cols: Column index of each stored entry.
        entries: The stored nodes, none of them the constant 0.
        shape: ``(n_rows, n_cols)``.
        context: Context the entries belong to.
    """

    rows: tuple[int, ...]
    cols: tuple[int, ...]
    entries: tuple[Node, ...]
    shape: tuple[int, int]
    context: GraphContext

    @property
    def nnz(self) -> int:
        """Number of stored entries."""
        return len(self.entries)

    @property
    def density(self) -> float:
        size = self.shape[0] * self.shape[1]
        return self.nnz / size if size else 0.0

    def to_dense(self) -> NDArray[np.object_]:
        """Returns the dense object array, with constant 0 nodes in the gaps."""
        zero = self.context.constant(0.0)
        dense = object_array([zero] * (self.shape[0] * self.shape[1]), self.shape)
        for r, c, e in zip(self.rows, self.cols, self.entries):
            dense[r, c] = e
        return dense


def sparse_jacobian(
    outputs: Any,
    variables: Sequence[Node],
    *,
    context: GraphContext | None = None,
    engine: DerivativeEngine | None = None,
) -> SparseNodeMatrix:
    """Builds the structurally non-zero entries of the Jacobian.

    Args:
        outputs: A node or a 1D sequence of nodes.
        variables: The differentiation variables.
        context: Graph context; inferred if None.
        engine: Engine whose memo is shared with other calls.

    Returns:
        The sparse matrix of shape ``(len(outputs), len(variables))``, with
        entries in row-major order.
    """
    asm = prepare_assembly(
        outputs, variables, where="sparse_jacobian", context=context, engine=engine
    )
    eng = asm.engine
    rows: list[int] = []
    cols: list[int] = []
    entries: list[Node] = []
    for i, o in enumerate(asm.outputs):
        deps = eng.depends_on(o)
        for j, v in enumerate(asm.variables):
            if v.uid not in deps:
                continue
            d = eng.differentiate(o, v)
            if d.is_zero:
                continue
            rows.append(i)
            cols.append(j)
            entries.append(d)

    shape = (len(asm.outputs), len(asm.variables))
    matrix = SparseNodeMatrix(tuple(rows), tuple(cols), tuple(entries), shape, asm.context)
    if not entries:
        symdiffkit_logger.warning("sparse_jacobian of shape %s has no non-zero entries.", shape)
    symdiffkit_logger.debug(
        "Assembled sparse Jacobian of shape %s with %d stored entries (density %.3g).",
        shape, matrix.nnz, matrix.density,
    )
    return matrix


def sparse_hessian(
    f: Any,
    variables: Sequence[Node],
    *,
    context: GraphContext | None = None,
    engine: DerivativeEngine | None = None,
) -> SparseNodeMatrix:
    """Builds the structurally non-zero entries of the Hessian of ``f``.

    Args:
        f: A scalar expression.
        variables: The differentiation variables.
        context: Graph context; inferred if None.
        engine: Engine whose memo is shared with other calls.

    Returns:
        The sparse matrix of shape ``(n, n)``.
    """
    f = scalar_output(f, where="sparse_hessian")
    asm = prepare_assembly([f], variables, where="sparse_hessian", context=context, engine=engine)
    (root,) = asm.outputs
    grad = [asm.engine.differentiate(root, v) for v in asm.variables]
    return sparse_jacobian(grad, asm.variables, engine=asm.engine)
