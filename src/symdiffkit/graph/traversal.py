"""Graph traversal helpers."""

from __future__ import annotations

from typing import Iterable

from symdiffkit.graph.node import Node

__all__ = [
    "topological_order",
    "variables_of",
    "count_operations",
]


def topological_order(roots: Iterable[Node]) -> list[Node]:
    """Returns every ancestor of ``roots`` (roots included) in topological order.

    Operands always precede the operations that use them. Nodes that are not
    reachable from ``roots`` are never visited. The traversal is iterative, so
    deep graphs do not hit the recursion limit.

    Args:
        roots: Nodes to start from. Duplicates are allowed.

    Returns:
        Distinct nodes, operands before users. Among independent nodes the
        order follows a depth-first walk of ``roots`` left to right.
    """
    order: list[Node] = []
    visited: set[Node] = set()
    for root in roots:
        if root in visited:
            continue
        stack: list[tuple[Node, int]] = [(root, 0)]
        while stack:
            node, i = stack.pop()
            if i == 0 and node in visited:
                continue
            if i < len(node.operands):
                stack.append((node, i + 1))
                child = node.operands[i]
                if child not in visited:
                    stack.append((child, 0))
            else:
                visited.add(node)
                order.append(node)
    return order


def variables_of(roots: Iterable[Node]) -> list[Node]:
    """Returns the variables ``roots`` depend on, in order of first appearance."""
    return [n for n in topological_order(roots) if n.is_variable]


def count_operations(roots: Iterable[Node]) -> int:
    """Returns the number of distinct operation nodes reachable from ``roots``."""
    return sum(1 for n in topological_order(roots) if n.is_operation)
