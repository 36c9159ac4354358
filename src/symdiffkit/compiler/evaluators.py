"""Callable evaluators produced by the graph compiler.

All evaluators share one interface: they are called with an input container
ordered like the compile-time ``inputs`` and either return a new output
container or, for in-place evaluators, fill the one passed as ``out``.

Evaluators hold no mutable state. Allocating evaluators may be called from
several threads at once; in-place evaluators may too, provided every caller
passes its own output array.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

from symdiffkit.compiler.program import Program
from symdiffkit.errors import ShapeMismatch
from symdiffkit.graph.operators import NUMPY_FUNCTIONS

__all__ = [
    "Evaluator",
    "ArrayEvaluator",
    "InPlaceArrayEvaluator",
    "TupleEvaluator",
    "check_output_array",
]

_Plan = tuple[tuple[int, Callable[..., Any] | None, tuple[int, ...]], ...]


class Evaluator(ABC):
    """Common base of compiled evaluators.

    Attributes:
        program: The compiled program.
        in_place: Whether the evaluator fills a caller-supplied output.
        container: ``"dynamic"`` or ``"fixed"``.
    """

    in_place: bool = False
    container: str = "dynamic"

    def __init__(self, program: Program):
        self.program = program

    @property
    def n_inputs(self) -> int:
        return self.program.n_inputs

    @property
    def output_shape(self) -> tuple[int, ...]:
        return self.program.output_shape

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(n_inputs={self.n_inputs}, "
            f"output_shape={self.output_shape}, steps={self.program.n_steps})"
        )

    @abstractmethod
    def __call__(self, x: Any, *args: Any) -> Any:
        """Evaluates the compiled graph at ``x``."""


class _NumpyEvaluator(Evaluator):
    """Interprets a program step by step on NumPy scalars."""

    def __init__(self, program: Program):
        super().__init__(program)
        self._plan: _Plan = tuple(
            (s.slot, None if s.op is None else NUMPY_FUNCTIONS[s.op], s.args)
            for s in program.steps
        )
        self._template = program.slot_template()
        self._out_index = tuple(np.ndindex(*program.output_shape))

    def _run(self, x: Sequence[float] | NDArray[np.floating]) -> list[Any]:
        slots = list(self._template)
        for slot, func, args in self._plan:
            if func is None:
                slots[slot] = x[args[0]]
            else:
                slots[slot] = func(*[slots[a] for a in args])
        return slots

    def _as_input_array(self, x: ArrayLike) -> NDArray[np.floating]:
        arr = np.asarray(x, dtype=float)
        if arr.shape != (self.n_inputs,):
            raise ShapeMismatch("input", (self.n_inputs,), arr.shape)
        return arr


class ArrayEvaluator(_NumpyEvaluator):
    """Dynamic-container evaluator that allocates its result: ``y = f(x)``."""

    def __call__(self, x: ArrayLike) -> NDArray[np.floating] | np.float64:
        """Evaluates at ``x``.

        Args:
            x: 1D array-like of length ``n_inputs``.

        Returns:
            A new array of shape ``output_shape``, or a NumPy scalar when the
            graph was compiled from a single node.

        Raises:
            ShapeMismatch: If ``x`` has the wrong shape.
        """
        slots = self._run(self._as_input_array(x))
        values = [slots[s] for s in self.program.output_slots]
        if not self.output_shape:
            return np.float64(values[0])
        return np.asarray(values, dtype=float).reshape(self.output_shape)


class InPlaceArrayEvaluator(_NumpyEvaluator):
    """Dynamic-container evaluator that fills a caller-supplied array: ``f(x, out)``."""

    in_place = True

    def __call__(self, x: ArrayLike, out: NDArray[np.floating]) -> NDArray[np.floating]:
        """Evaluates at ``x`` and writes the result into ``out``.

        Args:
            x: 1D array-like of length ``n_inputs``.
            out: Writable floating-point array of shape ``output_shape``.

        Returns:
            ``out``.

        Raises:
            ShapeMismatch: If ``x`` or ``out`` has the wrong shape.
            TypeError: If ``out`` is not a floating-point NumPy array.
            ValueError: If ``out`` is read-only.
        """
        check_output_array(out, self.output_shape)
        slots = self._run(self._as_input_array(x))
        for idx, s in zip(self._out_index, self.program.output_slots):
            out[idx] = slots[s]
        return out


class TupleEvaluator(_NumpyEvaluator):
    """Fixed-size evaluator: tuples in, tuples out.

    Vector outputs come back as a tuple, matrix outputs as a tuple of row
    tuples, and a single-node output as a float.
    """

    container = "fixed"

    def __call__(self, x: Sequence[float]) -> tuple[Any, ...] | float:
        """Evaluates at ``x``.

        Args:
            x: Sequence of exactly ``n_inputs`` numbers.

        Returns:
            Tuple (or nested tuple, or float) shaped like the outputs.

        Raises:
            ShapeMismatch: If ``x`` does not have exactly ``n_inputs`` entries.
        """
        if np.ndim(x) != 1 or len(x) != self.n_inputs:
            raise ShapeMismatch("input", (self.n_inputs,), np.shape(x))
        xs = tuple(float(v) for v in x)
        slots = self._run(xs)
        values = [float(slots[s]) for s in self.program.output_slots]
        shape = self.output_shape
        if not shape:
            return values[0]
        if len(shape) == 1:
            return tuple(values)
        return _nest(values, shape)


def _nest(values: list[float], shape: tuple[int, ...]) -> tuple[Any, ...]:
    if len(shape) == 1:
        return tuple(values)
    step = len(values) // shape[0] if shape[0] else 0
    return tuple(_nest(values[i * step:(i + 1) * step], shape[1:]) for i in range(shape[0]))


def check_output_array(out: Any, shape: tuple[int, ...]) -> None:
    """Validates a caller-supplied output array for in-place evaluation.

    Raises:
        TypeError: If ``out`` is not a floating-point NumPy array.
        ShapeMismatch: If ``out.shape != shape``.
        ValueError: If ``out`` is read-only.
    """
    if not isinstance(out, np.ndarray):
        raise TypeError(
            f"In-place evaluation needs a NumPy array as output; got {type(out).__name__}."
        )
    if not np.issubdtype(out.dtype, np.floating):
        raise TypeError(f"Output array must have a floating dtype; got {out.dtype}.")
    if out.shape != tuple(shape):
        raise ShapeMismatch("output", tuple(shape), out.shape)
    if not out.flags.writeable:
        raise ValueError("Output array is read-only.")
