"""Expression graph: nodes, operators and the hash-consing context."""

from .context import (
    CacheInfo,
    GraphContext,
    clear_cache,
    get_default_context,
    make_constant,
    make_operation,
    make_variable,
    make_variables,
)
from .node import Node, NodeKind
from .operators import Operator
from .traversal import count_operations, topological_order, variables_of

__all__ = [
    "CacheInfo",
    "GraphContext",
    "Node",
    "NodeKind",
    "Operator",
    "clear_cache",
    "count_operations",
    "get_default_context",
    "make_constant",
    "make_operation",
    "make_variable",
    "make_variables",
    "topological_order",
    "variables_of",
]
