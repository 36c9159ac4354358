"""Contains functions used to construct the symbolic Jacobian matrix."""

from __future__ import annotations

from numbers import Integral
from typing import Any, Sequence

import numpy as np
from numpy.typing import NDArray

from symdiffkit.calculus.calculus_core import object_array, prepare_assembly
from symdiffkit.differentiation.engine import DerivativeEngine
from symdiffkit.graph.context import GraphContext
from symdiffkit.graph.node import Node
from symdiffkit.logger import symdiffkit_logger

__all__ = ["jacobian", "resolve_columns"]


def jacobian(
    outputs: Any,
    variables: Sequence[Node],
    columns: Sequence[Node | int] | None = None,
    *,
    context: GraphContext | None = None,
    engine: DerivativeEngine | None = None,
) -> NDArray[np.object_]:
    """Builds the matrix of derivative nodes ``J[i, j] = d outputs[i] / d columns[j]``.

    Each column in the Jacobian is the derivative with respect to one
    variable. All entries are differentiated through one engine, so
    subexpressions shared between outputs or columns are differentiated once.

    Args:
        outputs: A node or a 1D sequence of ``m`` nodes.
        variables: The differentiation variables.
        columns: Optional subset/reordering of the columns. Entries are
            variables from ``variables`` or integer positions into it
            (negative positions count from the end). Repeats are allowed.
            None means all of ``variables`` in order.
        context: Graph context; inferred from the nodes if None.
        engine: Engine whose memo is shared with other calls, e.g. to build
            several column subsets without recomputing any entry.

    Returns:
        An object array of shape ``(m, k)`` where ``k`` is the number of
        selected columns.

    Raises:
        InvalidDifferentiationTarget: If an entry of ``variables`` is not a
            variable.
        ValueError: If a column is not one of ``variables`` or is out of range.
    """
    asm = prepare_assembly(outputs, variables, where="jacobian", context=context, engine=engine)
    cols = resolve_columns(asm.variables, columns)
    m, k = len(asm.outputs), len(cols)
    if m == 0 or k == 0:
        symdiffkit_logger.warning(
            "jacobian called with %d outputs and %d columns; returning an empty matrix.", m, k
        )

    memo_before = len(asm.engine)
    entries = [asm.engine.differentiate(o, v) for o in asm.outputs for v in cols]
    jac = object_array(entries, (m, k))
    symdiffkit_logger.debug(
        "Assembled %dx%d Jacobian: %d zero entries, %d new memo entries, context holds %d nodes.",
        m, k, sum(1 for e in entries if e.is_zero), len(asm.engine) - memo_before, len(asm.context),
    )
    return jac


def resolve_columns(variables: Sequence[Node], columns: Sequence[Node | int] | None) -> list[Node]:
    """Maps a column selection to variables.

    Args:
        variables: The differentiation variables.
        columns: Variables or integer positions, or None for all variables.

    Returns:
        The selected variables, in the requested order.

    Raises:
        ValueError: If a column is not one of ``variables`` or is out of range.
    """
    if columns is None:
        return list(variables)
    if isinstance(columns, (Node, Integral)):
        columns = [columns]
    known = set(variables)
    out: list[Node] = []
    for c in columns:
        if isinstance(c, Node):
            if c not in known:
                raise ValueError(f"Column {c!r} is not one of the differentiation variables.")
            out.append(c)
        elif isinstance(c, Integral) and not isinstance(c, bool):
            i = int(c)
            if not -len(variables) <= i < len(variables):
                raise ValueError(
                    f"Column index {i} out of range for {len(variables)} variables."
                )
            out.append(variables[i])
        else:
            raise ValueError(f"Columns must be variables or integer positions; got {c!r}.")
    return out
