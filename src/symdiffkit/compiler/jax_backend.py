r"""Optional JAX backend for compiled programs.

The backend lowers a :class:`~symdiffkit.compiler.program.Program` into a
function over ``jax.numpy`` arrays and ``jax.jit``-compiles it, so the
straight-line program becomes one XLA computation.

JAX is not a required dependency. Install it with ``pip install
"symdiffkit[jax]"``. JAX computes in single precision unless
``jax.config.update("jax_enable_x64", True)`` has been called; enable it when
results must match the NumPy backend to double precision.
"""

from __future__ import annotations

from typing import Any, Callable

import numpy as np
from numpy.typing import ArrayLike, NDArray

from symdiffkit.compiler.evaluators import Evaluator, check_output_array
from symdiffkit.compiler.program import Program
from symdiffkit.errors import BackendUnavailable, ShapeMismatch
from symdiffkit.graph.operators import Operator

try:
    import jax
    import jax.numpy as jnp
except ImportError:
    jax = None
    jnp = None
    _HAS_JAX = False
else:
    _HAS_JAX = True

has_jax: bool = _HAS_JAX

__all__ = [
    "has_jax",
    "require_jax",
    "lower_to_jax",
    "JaxEvaluator",
]


def require_jax() -> None:
    """Raises if JAX is not available.

    Raises:
        BackendUnavailable: If JAX is not installed.
    """
    if not _HAS_JAX:
        raise BackendUnavailable(
            "The jax backend requires `jax` + `jaxlib`.\n"
            'Install with `pip install "symdiffkit[jax]"` '
            "(or follow JAX's official install instructions for GPU)."
        )


def _jax_functions() -> dict[Operator, Callable[..., Any]]:
    def as_float(x):
        return jnp.asarray(x, dtype=jnp.result_type(float))

    return {
        Operator.ADD: jnp.add,
        Operator.SUB: jnp.subtract,
        Operator.MUL: jnp.multiply,
        Operator.DIV: jnp.divide,
        Operator.POW: jnp.power,
        Operator.NEG: jnp.negative,
        Operator.SQRT: jnp.sqrt,
        Operator.EXP: jnp.exp,
        Operator.LOG: jnp.log,
        Operator.SIN: jnp.sin,
        Operator.COS: jnp.cos,
        Operator.TAN: jnp.tan,
        Operator.ASIN: jnp.arcsin,
        Operator.ACOS: jnp.arccos,
        Operator.ATAN: jnp.arctan,
        Operator.ATAN2: jnp.arctan2,
        Operator.SINH: jnp.sinh,
        Operator.COSH: jnp.cosh,
        Operator.TANH: jnp.tanh,
        Operator.ABS: jnp.abs,
        Operator.SIGN: jnp.sign,
        Operator.MAX: jnp.maximum,
        Operator.MIN: jnp.minimum,
        Operator.LT: lambda a, b: as_float(a < b),
        Operator.LE: lambda a, b: as_float(a <= b),
        Operator.GT: lambda a, b: as_float(a > b),
        Operator.GE: lambda a, b: as_float(a >= b),
        Operator.EQ: lambda a, b: as_float(a == b),
        Operator.NE: lambda a, b: as_float(a != b),
        Operator.IF_ELSE: lambda c, a, b: jnp.where(c != 0, a, b),
    }


def lower_to_jax(program: Program) -> Callable[[Any], Any]:
    """Builds a jitted JAX function equivalent to ``program``.

    Args:
        program: Program to lower.

    Returns:
        A function mapping a 1D JAX array of inputs to a JAX array of shape
        ``program.output_shape``.

    Raises:
        BackendUnavailable: If JAX is not installed.
    """
    require_jax()
    table = _jax_functions()
    plan = tuple(
        (s.slot, None if s.op is None else table[s.op], s.args) for s in program.steps
    )
    constants = program.constants
    output_slots = program.output_slots
    shape = program.output_shape
    n_slots = program.n_slots

    def run(x):
        slots: list[Any] = [None] * n_slots
        for slot, value in constants:
            slots[slot] = jnp.asarray(value, dtype=x.dtype)
        for slot, func, args in plan:
            if func is None:
                slots[slot] = x[args[0]]
            else:
                slots[slot] = func(*[slots[a] for a in args])
        if not output_slots:
            return jnp.zeros(shape, dtype=x.dtype)
        return jnp.stack([slots[s] for s in output_slots]).reshape(shape)

    return jax.jit(run)


class JaxEvaluator(Evaluator):
    """Dynamic-container evaluator running a jitted JAX lowering of the program.

    Returns NumPy arrays like :class:`~symdiffkit.compiler.evaluators.ArrayEvaluator`.
    In in-place mode the result is copied into ``out``.
    """

    def __init__(self, program: Program, *, in_place: bool = False):
        super().__init__(program)
        self.in_place = in_place
        self._fn = lower_to_jax(program)

    def __call__(self, x: ArrayLike, out: NDArray[np.floating] | None = None):
        """Evaluates at ``x``; see the NumPy evaluators for the contract."""
        if self.in_place:
            if out is None:
                raise TypeError("In-place evaluator requires an output array: f(x, out).")
            check_output_array(out, self.output_shape)
        elif out is not None:
            raise TypeError("This evaluator allocates its result; compile with in_place=True.")

        arr = np.asarray(x, dtype=float)
        if arr.shape != (self.n_inputs,):
            raise ShapeMismatch("input", (self.n_inputs,), arr.shape)
        result = np.asarray(self._fn(jnp.asarray(arr)), dtype=float)

        if self.in_place:
            np.copyto(out, result.reshape(self.output_shape))
            return out
        if not self.output_shape:
            return np.float64(result)
        return result
