"""Straight-line evaluation programs lowered from expression graphs.

A :class:`Program` is the backend-independent result of compiling a graph:
a slot for every reachable node, the constants preloaded into their slots,
and one :class:`Step` per variable (read from the input container) and per
operation (apply the operator to earlier slots), in topological order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Sequence

from symdiffkit.errors import MissingInputVariable
from symdiffkit.graph.node import Node
from symdiffkit.graph.operators import Operator
from symdiffkit.graph.traversal import topological_order

__all__ = ["Step", "Program", "build_program"]


class Step(NamedTuple):
    """One instruction of a program.

    Attributes:
        slot: Slot the result is written to.
        op: Operator to apply, or None for an input read.
        args: Operand slots for an operation; ``(position,)`` into the input
            container for an input read.
    """

    slot: int
    op: Operator | None
    args: tuple[int, ...]


@dataclass(frozen=True)
class Program:
    """A compiled, immutable evaluation plan.

    Attributes:
        n_slots: Number of value slots.
        n_inputs: Length of the input container.
        constants: ``(slot, value)`` pairs preloaded before any step runs.
        steps: Input reads and operations in topological order.
        output_slots: Slots of the outputs, flattened in C order.
        output_shape: Shape of the output container.
        input_names: Display names of the inputs, in order.
    """

    n_slots: int
    n_inputs: int
    constants: tuple[tuple[int, float], ...]
    steps: tuple[Step, ...]
    output_slots: tuple[int, ...]
    output_shape: tuple[int, ...]
    input_names: tuple[str, ...] = ()

    @property
    def n_steps(self) -> int:
        return len(self.steps)

    @property
    def n_operations(self) -> int:
        return sum(1 for s in self.steps if s.op is not None)

    def slot_template(self) -> list[float]:
        """Returns a fresh slot list with the constants filled in."""
        slots = [0.0] * self.n_slots
        for slot, value in self.constants:
            slots[slot] = value
        return slots


def build_program(
    outputs: Sequence[Node | float],
    output_shape: tuple[int, ...],
    inputs: Sequence[Node],
) -> Program:
    """Lowers a graph into a :class:`Program`.

    Only ancestors of ``outputs`` are visited, so unreachable subgraphs are
    dropped and variables they use need not appear in ``inputs``. The graph
    is only read.

    Args:
        outputs: Output nodes or plain numbers, flattened in C order.
        output_shape: Shape to restore the outputs to.
        inputs: Input variables; their order defines input positions.

    Returns:
        The program.

    Raises:
        MissingInputVariable: If a reachable variable is not in ``inputs``.
    """
    position = {v: i for i, v in enumerate(inputs)}
    order = topological_order(o for o in outputs if isinstance(o, Node))

    missing = [n.name for n in order if n.is_variable and n not in position]
    if missing:
        raise MissingInputVariable(missing)

    slot_of: dict[Node | str, int] = {}
    constants: list[tuple[int, float]] = []
    steps: list[Step] = []
    for node in order:
        slot = len(slot_of)
        slot_of[node] = slot
        if node.is_constant:
            constants.append((slot, node.value))
        elif node.is_variable:
            steps.append(Step(slot, None, (position[node],)))
        else:
            steps.append(Step(slot, node.op, tuple(slot_of[o] for o in node.operands)))

    output_slots = []
    for o in outputs:
        if not isinstance(o, Node):
            # Plain numbers get a preloaded slot per distinct value.
            o = float(o).hex()
            if o not in slot_of:
                slot_of[o] = len(slot_of)
                constants.append((slot_of[o], float.fromhex(o)))
        output_slots.append(slot_of[o])

    return Program(
        n_slots=len(slot_of),
        n_inputs=len(inputs),
        constants=tuple(constants),
        steps=tuple(steps),
        output_slots=tuple(output_slots),
        output_shape=tuple(output_shape),
        input_names=tuple(str(v.name) for v in inputs),
    )
