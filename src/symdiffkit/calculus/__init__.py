"""Calculus utilities.

Provides constructors for symbolic gradient, Jacobian, and Hessian
matrices, their sparse variants, and matrix-free vector products.
"""

from .gradient import gradient
from .hessian import hessian, hessian_diag
from .jacobian import jacobian
from .sparsity import SparseNodeMatrix, sparse_hessian, sparse_jacobian
from .vector_products import hessian_times_v, jacobian_times_v, jacobian_transpose_v

__all__ = [
    "SparseNodeMatrix",
    "gradient",
    "hessian",
    "hessian_diag",
    "hessian_times_v",
    "jacobian",
    "jacobian_times_v",
    "jacobian_transpose_v",
    "sparse_hessian",
    "sparse_jacobian",
]
