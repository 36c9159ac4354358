"""Provides the SymbolicKit class.

A light wrapper around the calculus and compiler helpers that binds a set of
output expressions to their variables and shares one derivative engine
across every request, so nothing is differentiated twice.

Typical usage examples:

>>> from symdiffkit import SymbolicKit, cos, make_variables, sin
>>> x, y = make_variables("x y")
>>> kit = SymbolicKit([cos(x) * y, sin(y) * x], [x, y])
>>> jac = kit.jacobian()
>>> f = kit.compile_jacobian()
>>> f([1.0, 2.0]).round(5)
array([[-1.68294,  0.5403 ],
       [ 0.9093 , -0.41615]])
"""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np
from numpy.typing import NDArray

from symdiffkit.calculus import (
    gradient,
    hessian,
    jacobian,
    jacobian_times_v,
    jacobian_transpose_v,
)
from symdiffkit.calculus.calculus_core import prepare_assembly
from symdiffkit.compiler.evaluators import Evaluator
from symdiffkit.compiler.graph_compiler import compile_graph
from symdiffkit.differentiation.engine import derivative
from symdiffkit.graph.context import GraphContext
from symdiffkit.graph.node import Node


class SymbolicKit:
    """Provides derivatives and compiled evaluators of a set of expressions."""

    def __init__(
        self,
        outputs: Any,
        variables: Sequence[Node],
        context: GraphContext | None = None,
    ):
        """Initialise with output expressions and their variables.

        Args:
            outputs: A node or a 1D sequence of nodes.
            variables: The variables the outputs are differentiated with
                respect to, and the default compile inputs.
            context: Graph context; inferred from the nodes if None.
        """
        asm = prepare_assembly(outputs, variables, where="SymbolicKit", context=context)
        self.context = asm.context
        self.engine = asm.engine
        self.outputs = asm.outputs
        self.variables = asm.variables
        self._scalar = isinstance(outputs, Node)

    def __repr__(self) -> str:
        return f"SymbolicKit(outputs={len(self.outputs)}, variables={len(self.variables)})"

    def derivative(self, *variables: Node) -> Any:
        """Returns the (higher-order) derivative of the outputs w.r.t. ``variables``."""
        outs = self.outputs[0] if self._scalar else self.outputs
        return derivative(outs, *variables, engine=self.engine)

    def gradient(self) -> NDArray[np.object_]:
        """Returns the gradient of a scalar output."""
        return gradient(self._only_output("gradient"), self.variables, engine=self.engine)

    def jacobian(self, columns: Sequence[Node | int] | None = None) -> NDArray[np.object_]:
        """Returns the Jacobian, optionally restricted to ``columns``."""
        return jacobian(self.outputs, self.variables, columns, engine=self.engine)

    def hessian(self) -> NDArray[np.object_]:
        """Returns the Hessian of a scalar output."""
        return hessian(self._only_output("hessian"), self.variables, engine=self.engine)

    def jacobian_times_v(self) -> tuple[NDArray[np.object_], NDArray[np.object_]]:
        """Returns ``(J @ v, seeds)``; see :func:`symdiffkit.jacobian_times_v`."""
        return jacobian_times_v(self.outputs, self.variables, engine=self.engine)

    def jacobian_transpose_v(self) -> tuple[NDArray[np.object_], NDArray[np.object_]]:
        """Returns ``(J.T @ r, seeds)``; see :func:`symdiffkit.jacobian_transpose_v`."""
        return jacobian_transpose_v(self.outputs, self.variables, engine=self.engine)

    def compile(self, inputs: Sequence[Node] | None = None, **options: Any) -> Evaluator:
        """Compiles the outputs; ``inputs`` defaults to the kit's variables.

        Keyword arguments are forwarded to :func:`symdiffkit.compile_graph`.
        """
        outs = self.outputs[0] if self._scalar else self.outputs
        return compile_graph(outs, self._inputs(inputs), context=self.context, **options)

    def compile_jacobian(
        self,
        columns: Sequence[Node | int] | None = None,
        inputs: Sequence[Node] | None = None,
        **options: Any,
    ) -> Evaluator:
        """Compiles the Jacobian (optionally restricted to ``columns``) into an evaluator."""
        return compile_graph(
            self.jacobian(columns), self._inputs(inputs), context=self.context, **options
        )

    def _inputs(self, inputs: Sequence[Node] | None) -> list[Node]:
        return list(self.variables) if inputs is None else list(inputs)

    def _only_output(self, what: str) -> Node:
        if len(self.outputs) != 1:
            raise ValueError(
                f"{what} needs a single scalar output; this kit has {len(self.outputs)}."
            )
        return self.outputs[0]
