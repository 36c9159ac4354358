"""Provides all symdiffkit methods."""

from importlib.metadata import PackageNotFoundError, version

from symdiffkit.calculus import (
    SparseNodeMatrix,
    gradient,
    hessian,
    hessian_diag,
    hessian_times_v,
    jacobian,
    jacobian_times_v,
    jacobian_transpose_v,
    sparse_hessian,
    sparse_jacobian,
)
from symdiffkit.compiler import compile_graph, compile_sparse, eval_points
from symdiffkit.config import CompileOptions
from symdiffkit.differentiation import DerivativeEngine, derivative
from symdiffkit.errors import (
    BackendUnavailable,
    InvalidDifferentiationTarget,
    MissingInputVariable,
    ShapeMismatch,
    StaleNodeError,
    SymDiffKitError,
)
from symdiffkit.graph import (
    GraphContext,
    Node,
    Operator,
    clear_cache,
    count_operations,
    get_default_context,
    make_constant,
    make_operation,
    make_variable,
    make_variables,
    topological_order,
    variables_of,
)
from symdiffkit.graph.functions import (
    absolute,
    acos,
    asin,
    atan,
    atan2,
    cos,
    cosh,
    eq,
    exp,
    ge,
    gt,
    if_else,
    le,
    log,
    lt,
    maximum,
    minimum,
    ne,
    sign,
    sin,
    sinh,
    sqrt,
    tan,
    tanh,
)
from symdiffkit.symbolic_kit import SymbolicKit
from symdiffkit.utils.thread_safety import synchronized

try:
    __version__ = version("symdiffkit")
except PackageNotFoundError:
    pass

__all__ = [
    "BackendUnavailable",
    "CompileOptions",
    "DerivativeEngine",
    "GraphContext",
    "InvalidDifferentiationTarget",
    "MissingInputVariable",
    "Node",
    "Operator",
    "ShapeMismatch",
    "SparseNodeMatrix",
    "StaleNodeError",
    "SymDiffKitError",
    "SymbolicKit",
    "absolute",
    "acos",
    "asin",
    "atan",
    "atan2",
    "clear_cache",
    "compile_graph",
    "compile_sparse",
    "cos",
    "cosh",
    "count_operations",
    "derivative",
    "eq",
    "eval_points",
    "exp",
    "ge",
    "get_default_context",
    "gradient",
    "gt",
    "hessian",
    "hessian_diag",
    "hessian_times_v",
    "if_else",
    "jacobian",
    "jacobian_times_v",
    "jacobian_transpose_v",
    "le",
    "log",
    "lt",
    "make_constant",
    "make_operation",
    "make_variable",
    "make_variables",
    "maximum",
    "minimum",
    "ne",
    "sign",
    "sin",
    "sinh",
    "sparse_hessian",
    "sparse_jacobian",
    "sqrt",
    "synchronized",
    "tan",
    "tanh",
    "topological_order",
    "variables_of",
]
