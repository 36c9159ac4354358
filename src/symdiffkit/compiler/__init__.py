"""Compilation of expression graphs into callable evaluators."""

from .batch_eval import eval_points
from .evaluators import ArrayEvaluator, Evaluator, InPlaceArrayEvaluator, TupleEvaluator
from .graph_compiler import SparseEvaluator, compile_graph, compile_sparse
from .program import Program, Step, build_program

__all__ = [
    "ArrayEvaluator",
    "Evaluator",
    "InPlaceArrayEvaluator",
    "Program",
    "SparseEvaluator",
    "Step",
    "TupleEvaluator",
    "build_program",
    "compile_graph",
    "compile_sparse",
    "eval_points",
]
