"""Symbolic differentiation of expression graphs."""

from .engine import DerivativeEngine, derivative
from .rules import local_partial

__all__ = [
    "DerivativeEngine",
    "derivative",
    "local_partial",
]
