"""Configuration for graph compilation.

:class:`CompileOptions` bundles the choices :func:`symdiffkit.compile_graph`
makes when turning a graph into an evaluator. The default backend can be set
process-wide with the ``SYMDIFFKIT_BACKEND`` environment variable (``numpy``
or ``jax``); unset or unknown values fall back to ``numpy``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Any

__all__ = [
    "BACKENDS",
    "CONTAINERS",
    "CompileOptions",
    "default_backend",
]

BACKENDS = ("numpy", "jax")
CONTAINERS = ("dynamic", "fixed")


def _str_env(name: str, choices: tuple[str, ...]) -> str | None:
    """Reads a lower-cased choice from an environment variable, or None if unset/invalid.

    Args:
        name: Environment variable name.
        choices: Accepted values.

    Returns:
        The value if it is one of ``choices``, otherwise None.
    """
    v = os.getenv(name)
    if not v:
        return None
    v = v.strip().lower()
    return v if v in choices else None


def default_backend() -> str:
    """Returns the backend named by ``SYMDIFFKIT_BACKEND``, or ``"numpy"``."""
    return _str_env("SYMDIFFKIT_BACKEND", BACKENDS) or "numpy"


@dataclass(frozen=True)
class CompileOptions:
    """Options controlling the evaluator produced by the graph compiler.

    Attributes:
        in_place:
            If ``True`` the evaluator writes into a caller-supplied output
            array, ``evaluator(x, out)``, and allocates no output. If
            ``False`` it returns a newly allocated container,
            ``evaluator(x)``.
        container:
            ``"dynamic"``: NumPy arrays in and out; inputs may be any 1D
            array-like of the right length.
            ``"fixed"``: tuples in and out (nested tuples for matrix
            outputs), with lengths fixed at compile time. Tuples are
            immutable, so ``"fixed"`` cannot be combined with ``in_place``.
        backend:
            ``"numpy"`` interprets the compiled steps on NumPy scalars.
            ``"jax"`` lowers them to ``jax.numpy`` and ``jax.jit``-compiles
            the result; it supports dynamic containers only.
    """

    in_place: bool = False
    container: str = "dynamic"
    backend: str = field(default_factory=default_backend)

    def __post_init__(self):
        """Validates the combination of options."""
        if self.container not in CONTAINERS:
            raise ValueError(
                f"container must be one of {CONTAINERS}; got {self.container!r}."
            )
        if self.backend not in BACKENDS:
            raise ValueError(f"backend must be one of {BACKENDS}; got {self.backend!r}.")
        if self.container == "fixed" and self.in_place:
            raise ValueError(
                "Fixed-size containers are immutable tuples; use container='dynamic' "
                "for in-place evaluation."
            )
        if self.container == "fixed" and self.backend == "jax":
            raise ValueError("The jax backend supports container='dynamic' only.")

    @classmethod
    def resolve(cls, options: "CompileOptions | None" = None, **overrides: Any) -> "CompileOptions":
        """Returns ``options`` (or the defaults) with ``overrides`` applied.

        Overrides whose value is None are ignored.
        """
        base = options if options is not None else cls()
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(base, **changes) if changes else base
