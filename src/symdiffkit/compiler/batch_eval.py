"""Batch evaluation of compiled evaluators."""

from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import ArrayLike, NDArray

from symdiffkit.compiler.evaluators import Evaluator
from symdiffkit.errors import ShapeMismatch
from symdiffkit.utils.concurrency import cap_workers, parallel_execute

__all__ = ["eval_points"]


def eval_points(
    evaluator: Evaluator,
    points: ArrayLike,
    n_workers: int | None = None,
) -> NDArray[np.floating]:
    """Evaluates a compiled graph at many input points.

    Args:
        evaluator: An evaluator from :func:`symdiffkit.compile_graph`.
            In-place evaluators get a fresh output array per point.
        points: Array of shape ``(n_points, n_inputs)``.
        n_workers: Number of threads. If None or <=1, runs serially.
            If greater than the number of points, capped to that number.

    Returns:
        Array of shape ``(n_points, *evaluator.output_shape)``.

    Raises:
        ShapeMismatch: If ``points`` is not a 2D array with ``n_inputs``
            columns.
    """
    pts = np.asarray(points, dtype=float)
    if pts.ndim != 2 or pts.shape[1] != evaluator.n_inputs:
        raise ShapeMismatch("points", ("n_points", evaluator.n_inputs), pts.shape)

    shape = evaluator.output_shape
    if pts.shape[0] == 0:
        return np.empty((0, *shape), dtype=float)

    worker = _point_worker(evaluator)
    workers = cap_workers(n_workers, pts.shape[0])
    vals = parallel_execute(worker, [(row,) for row in pts], workers=workers)
    return np.asarray(vals, dtype=float).reshape((pts.shape[0], *shape))


def _point_worker(evaluator: Evaluator):
    """Adapts an evaluator of any variant to ``row -> array``."""
    shape = evaluator.output_shape

    if evaluator.in_place:
        def run(row: NDArray[np.floating]) -> Any:
            out = np.empty(shape, dtype=float)
            evaluator(row, out)
            return out
    elif evaluator.container == "fixed":
        def run(row: NDArray[np.floating]) -> Any:
            return np.asarray(evaluator(tuple(row)), dtype=float)
    else:
        def run(row: NDArray[np.floating]) -> Any:
            return np.asarray(evaluator(row), dtype=float)
    return run
