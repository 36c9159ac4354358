"""Validation utilities shared by the assembler and the compiler."""

from __future__ import annotations

from typing import Any, Callable, Iterable, Sequence

import numpy as np
from numpy.typing import NDArray

from symdiffkit.errors import InvalidDifferentiationTarget
from symdiffkit.graph.context import GraphContext, constant_value
from symdiffkit.graph.node import Node

__all__ = [
    "as_node_array",
    "as_output_array",
    "infer_context",
    "require_variables",
]


def infer_context(items: Iterable[Any], context: GraphContext | None = None) -> GraphContext | None:
    """Returns ``context`` or the context of the first node found in ``items``.

    Args:
        items: Nodes, numbers, or (nested) arrays of them.
        context: Explicit context; returned unchanged when given.

    Returns:
        The context to build in, or None if ``items`` holds no node.
    """
    if context is not None:
        return context
    for item in items:
        if isinstance(item, Node):
            return item.context
        if isinstance(item, np.ndarray) or isinstance(item, (list, tuple)):
            found = infer_context(np.asarray(item, dtype=object).ravel(), None)
            if found is not None:
                return found
    return None


def as_node_array(values: Any, context: GraphContext) -> NDArray[np.object_]:
    """Converts a node, a sequence of nodes, or a nested sequence to an object array.

    Numbers are coerced to constant nodes of ``context``; nodes are checked
    for staleness.

    Args:
        values: A node, a number, a (nested) sequence, or an object array.
        context: Context used for coercion and liveness checks.

    Returns:
        An object array of nodes with the shape of ``values`` (``()`` for a
        single node).

    Raises:
        ValueError: If ``values`` is ragged.
        StaleNodeError: If a node is stale or foreign.
    """
    return _object_array(values, context.as_node)


def as_output_array(values: Any, context: GraphContext) -> NDArray[np.object_]:
    """Like :func:`as_node_array`, but leaves numbers as floats.

    Nothing is added to ``context``, so compiling stays a read-only use of
    the graph.

    Raises:
        ValueError: If ``values`` is ragged or holds a non-finite number.
        TypeError: If an entry is neither a node nor a real number.
        StaleNodeError: If a node is stale or foreign.
    """

    def coerce(item: Any) -> Node | float:
        if isinstance(item, Node):
            return context.as_node(item)
        return constant_value(item)

    return _object_array(values, coerce)


def _object_array(values: Any, coerce: Callable[[Any], Any]) -> NDArray[np.object_]:
    if isinstance(values, Node):
        arr = np.empty((), dtype=object)
        arr[()] = coerce(values)
        return arr
    try:
        raw = np.asarray(values, dtype=object)
    except ValueError as exc:
        raise ValueError("Outputs must form a rectangular array of nodes.") from exc
    out = np.empty(raw.shape, dtype=object)
    for idx, item in np.ndenumerate(raw):
        if isinstance(item, (list, tuple)):
            raise ValueError("Outputs must form a rectangular array of nodes.")
        out[idx] = coerce(item)
    return out


def require_variables(
    variables: Sequence[Any] | NDArray[np.object_],
    *,
    where: str,
    context: GraphContext | None = None,
) -> list[Node]:
    """Checks that every entry is a variable node.

    Args:
        variables: Candidate variables.
        where: Caller name used in error messages.
        context: When given, variables are also checked for staleness.

    Returns:
        The variables as a list.

    Raises:
        InvalidDifferentiationTarget: If an entry is not a variable node.
    """
    if isinstance(variables, Node):
        variables = [variables]
    out: list[Node] = []
    for i, v in enumerate(np.asarray(variables, dtype=object).ravel()):
        if not isinstance(v, Node) or not v.is_variable:
            raise InvalidDifferentiationTarget(
                f"{where}: entry {i} ({v!r}) is not a variable; "
                "derivatives can only be taken with respect to variables."
            )
        if context is not None:
            context.as_node(v)
        out.append(v)
    return out
