"""Compiles expression graphs into callable evaluators.

Typical usage:

>>> from symdiffkit import compile_graph, make_variables, sqrt
>>> x, y = make_variables("x y")
>>> f = compile_graph([x**2 * y**2, sqrt(x * y)], [x, y])
>>> f([1.0, 2.0])
array([4.        , 1.41421356])

Compilation reads the graph but never modifies it, so independent
``compile_graph`` calls may run concurrently.
"""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np
import scipy.sparse as sp
from numpy.typing import ArrayLike

from symdiffkit.calculus.sparsity import SparseNodeMatrix
from symdiffkit.compiler.evaluators import (
    ArrayEvaluator,
    Evaluator,
    InPlaceArrayEvaluator,
    TupleEvaluator,
)
from symdiffkit.compiler.program import Program, build_program
from symdiffkit.config import CompileOptions
from symdiffkit.graph.context import GraphContext, resolve_context
from symdiffkit.graph.node import Node
from symdiffkit.logger import symdiffkit_logger
from symdiffkit.utils.validate import as_output_array, infer_context

__all__ = [
    "compile_graph",
    "compile_sparse",
    "SparseEvaluator",
]


def compile_graph(
    outputs: Any,
    inputs: Sequence[Node],
    options: CompileOptions | None = None,
    *,
    in_place: bool | None = None,
    container: str | None = None,
    backend: str | None = None,
    context: GraphContext | None = None,
) -> Evaluator:
    """Compiles ``outputs`` as a function of ``inputs``.

    Args:
        outputs: A node (scalar output), a sequence of nodes (vector output),
            or a nested sequence / 2D object array of nodes (matrix output,
            e.g. the result of :func:`symdiffkit.jacobian`). Numbers are
            allowed and become constants.
        inputs: Variables, in the order the evaluator reads them from its
            input container. Variables not used by ``outputs`` are allowed.
        options: Compile options; the keyword arguments below override
            individual fields.
        in_place: See :class:`~symdiffkit.config.CompileOptions`.
        container: See :class:`~symdiffkit.config.CompileOptions`.
        backend: See :class:`~symdiffkit.config.CompileOptions`.
        context: Context of the graph; inferred from ``outputs`` if None.

    Returns:
        The evaluator. Out-of-place evaluators are called as ``f(x)``,
        in-place ones as ``f(x, out)``.

    Raises:
        MissingInputVariable: If ``outputs`` depend on a variable that is not
            in ``inputs``.
        TypeError: If an entry of ``inputs`` is not a variable.
        ValueError: If ``inputs`` contains a variable twice, or the options
            are inconsistent.
        StaleNodeError: If a node is stale or foreign.
        BackendUnavailable: If ``backend="jax"`` and JAX is not installed.
    """
    opts = CompileOptions.resolve(
        options, in_place=in_place, container=container, backend=backend
    )
    program = _lower(outputs, inputs, context)

    if opts.backend == "jax":
        from symdiffkit.compiler.jax_backend import JaxEvaluator

        return JaxEvaluator(program, in_place=opts.in_place)
    if opts.container == "fixed":
        return TupleEvaluator(program)
    if opts.in_place:
        return InPlaceArrayEvaluator(program)
    return ArrayEvaluator(program)


def _lower(outputs: Any, inputs: Sequence[Node], context: GraphContext | None) -> Program:
    input_list = _check_inputs(inputs)
    ctx = resolve_context(
        infer_context([outputs], context)
        or (input_list[0].context if input_list else None)
    )
    for v in input_list:
        ctx.as_node(v)
    arr = as_output_array(outputs, ctx)
    program = build_program(list(arr.ravel()), arr.shape, input_list)
    symdiffkit_logger.debug(
        "Compiled graph with output shape %s: %d operations, %d input reads, "
        "%d constants, %d slots (context holds %d nodes).",
        program.output_shape, program.n_operations,
        program.n_steps - program.n_operations, len(program.constants),
        program.n_slots, len(ctx),
    )
    return program


def _check_inputs(inputs: Sequence[Node]) -> list[Node]:
    if isinstance(inputs, Node):
        inputs = [inputs]
    out = list(np.asarray(inputs, dtype=object).ravel()) if len(inputs) else []
    seen: set[Node] = set()
    for i, v in enumerate(out):
        if not isinstance(v, Node) or not v.is_variable:
            raise TypeError(f"compile_graph: inputs[{i}] ({v!r}) is not a variable.")
        if v in seen:
            raise ValueError(f"compile_graph: variable {v!r} appears more than once in inputs.")
        seen.add(v)
    return out


class SparseEvaluator:
    """Evaluates a :class:`SparseNodeMatrix` into a ``scipy.sparse.csc_array``.

    The sparsity pattern is fixed at compile time; structurally non-zero
    entries that evaluate to 0.0 are stored as explicit zeros.
    """

    def __init__(self, matrix: SparseNodeMatrix, values: Evaluator):
        self.shape = matrix.shape
        self.rows = np.asarray(matrix.rows, dtype=np.intp)
        self.cols = np.asarray(matrix.cols, dtype=np.intp)
        self._values = values

    @property
    def nnz(self) -> int:
        return int(self.rows.size)

    def __call__(self, x: ArrayLike) -> sp.csc_array:
        data = self._values(x)
        return sp.csc_array((data, (self.rows, self.cols)), shape=self.shape)


def compile_sparse(
    matrix: SparseNodeMatrix,
    inputs: Sequence[Node],
    *,
    backend: str | None = None,
    context: GraphContext | None = None,
) -> SparseEvaluator:
    """Compiles a sparse node matrix (e.g. from :func:`symdiffkit.sparse_jacobian`).

    Args:
        matrix: The sparse matrix of nodes.
        inputs: Input variables, in order.
        backend: ``"numpy"`` or ``"jax"``; see :class:`~symdiffkit.config.CompileOptions`.
        context: Context of the graph; inferred if None.

    Returns:
        A callable mapping an input vector to a ``scipy.sparse.csc_array``.
    """
    values = compile_graph(
        list(matrix.entries), inputs, backend=backend, container="dynamic",
        in_place=False, context=context,
    )
    return SparseEvaluator(matrix, values)
