"""Structured error types raised by graph building, differentiation and compilation."""

from __future__ import annotations

from typing import Sequence

__all__ = [
    "SymDiffKitError",
    "InvalidDifferentiationTarget",
    "MissingInputVariable",
    "ShapeMismatch",
    "StaleNodeError",
    "BackendUnavailable",
]


class SymDiffKitError(Exception):
    """Base class for structured symdiffkit errors."""


class InvalidDifferentiationTarget(SymDiffKitError, TypeError):
    """Raised when differentiating with respect to a node that is not a variable."""


class MissingInputVariable(SymDiffKitError, ValueError):
    """Raised at compile time when the graph reads a variable absent from ``inputs``.

    Attributes:
        missing: Display names of the missing variables, in graph order.
    """

    def __init__(self, missing: Sequence[str]):
        self.missing = tuple(missing)
        names = ", ".join(self.missing)
        super().__init__(
            f"Graph references variable(s) not present in inputs: {names}."
        )


class ShapeMismatch(SymDiffKitError, ValueError):
    """Raised when an evaluator is called with a wrongly shaped container.

    Attributes:
        what: Which container was wrong (``"input"`` or ``"output"``).
        expected: The shape the evaluator was compiled for.
        got: The shape that was supplied.
    """

    def __init__(self, what: str, expected: tuple[int, ...], got: tuple[int, ...]):
        self.what = what
        self.expected = tuple(expected)
        self.got = tuple(got)
        super().__init__(
            f"{what} container has shape {self.got}; expected {self.expected}."
        )


class StaleNodeError(SymDiffKitError, RuntimeError):
    """Raised when a node from a cleared (or different) graph context is reused."""


class BackendUnavailable(SymDiffKitError, RuntimeError):
    """Raised when an optional compile backend is not installed."""
