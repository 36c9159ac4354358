"""Graph contexts: the node arena and the common-subexpression cache.

A :class:`GraphContext` owns every node built through it. Operation nodes are
hash-consed: the context keeps a table from a structural key
``(operator, operand indices)`` to the node, so building the same expression
twice returns the same object. Constants are interned the same way.

The cache grows without bound; memory is traded for reuse. The only way to
reclaim it is :meth:`GraphContext.clear`, which empties the arena and bumps
the context epoch. Nodes built before a clear are *stale*: passing one into
any further graph-building call raises :class:`StaleNodeError` instead of
silently producing a wrong canonicalization.

Thread safety:
    Graph construction is single-threaded by contract. Only arena appends are
    locked, so arena indices stay unique, but concurrent building on the same
    context may still miss sharing and must be serialised by the caller, e.g.
    with :meth:`GraphContext.exclusive`. ``clear()`` must never run while
    another thread is building. Compiling only reads the graph.

Most code uses the process-wide default context through the module-level
helpers (:func:`make_variable`, :func:`make_operation`, :func:`clear_cache`);
an explicit context can be passed to every building function instead.
"""

from __future__ import annotations

import itertools
import math
import re
import threading
from contextlib import contextmanager
from numbers import Real
from typing import Any, Iterable, Iterator, NamedTuple

import numpy as np

from symdiffkit.errors import StaleNodeError
from symdiffkit.graph.node import Node, NodeKind
from symdiffkit.graph.operators import ARITY, COMMUTATIVE, Operator, evaluate_operator
from symdiffkit.logger import symdiffkit_logger

__all__ = [
    "CacheInfo",
    "GraphContext",
    "get_default_context",
    "resolve_context",
    "make_variable",
    "make_variables",
    "make_constant",
    "make_operation",
    "clear_cache",
    "constant_value",
]

# Variable ids are never reused during a process run, not even across
# contexts or cache clears.
_variable_ids = itertools.count()


def constant_value(value: Any) -> float:
    """Validates a constant and returns it as a float.

    Raises:
        TypeError: If ``value`` is not a real number.
        ValueError: If ``value`` is not finite.
    """
    if isinstance(value, np.ndarray) and value.ndim == 0:
        value = value.item()
    if isinstance(value, (complex, np.complexfloating)) or not isinstance(
        value, (Real, np.number)
    ):
        raise TypeError(f"Constants must be real numbers; got {type(value).__name__}.")
    val = float(value)
    if not math.isfinite(val):
        raise ValueError(f"Constants must be finite; got {val!r}.")
    return val


class CacheInfo(NamedTuple):
    """Statistics about a context's CSE table."""

    hits: int
    misses: int
    currsize: int
    epoch: int


class GraphContext:
    """Arena of nodes plus the canonicalization table that deduplicates them.

    Example:
        >>> from symdiffkit.graph.context import GraphContext
        >>> ctx = GraphContext()
        >>> x, y = ctx.variables("x y")
        >>> (x * y) is (y * x)
        True
    """

    def __init__(self, name: str = "context"):
        """Creates an empty context.

        Args:
            name: Label used in log messages and ``repr``.
        """
        self.name = name
        self._nodes: list[Node] = []
        self._table: dict[tuple[Any, ...], Node] = {}
        self._epoch = 0
        self._hits = 0
        self._misses = 0
        self._lock = threading.RLock()

    def __repr__(self) -> str:
        return f"GraphContext(name={self.name!r}, nodes={len(self._nodes)}, epoch={self._epoch})"

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def epoch(self) -> int:
        """Number of times this context has been cleared."""
        return self._epoch

    def cache_info(self) -> CacheInfo:
        """Returns hit/miss counters, the number of live nodes and the epoch."""
        return CacheInfo(self._hits, self._misses, len(self._nodes), self._epoch)

    def clear(self) -> None:
        """Drops every cached node and starts a new epoch.

        All node references obtained before the call become stale. The call is
        idempotent and always succeeds.
        """
        dropped = len(self._nodes)
        self._nodes = []
        self._table = {}
        self._hits = 0
        self._misses = 0
        self._epoch += 1
        symdiffkit_logger.info(
            "Cleared graph context %r: dropped %d nodes, now at epoch %d.",
            self.name, dropped, self._epoch,
        )

    @contextmanager
    def exclusive(self) -> Iterator["GraphContext"]:
        """Holds this context's re-entrant lock for the duration of the block.

        Use it to serialise graph building when several threads share one
        context. Building functions only lock around arena appends.

        Yields:
            This context.
        """
        with self._lock:
            yield self

    def variable(self, name: str) -> Node:
        """Declares a fresh variable.

        Args:
            name: Display name. Names need not be unique; identity never is
                shared between two declarations.

        Returns:
            A new variable node.
        """
        uid = next(_variable_ids)
        node = self._append(NodeKind.VARIABLE, name=str(name), uid=uid)
        self._table[(NodeKind.VARIABLE, uid)] = node
        return node

    def variables(self, *names: str | Iterable[str]) -> list[Node]:
        """Declares several variables at once.

        Accepts either separate names or a single string with names split by
        whitespace or commas, e.g. ``ctx.variables("x y z")``.

        Returns:
            The new variables, in order.
        """
        flat: list[str] = []
        for item in names:
            if isinstance(item, str):
                flat.extend(s for s in re.split(r"[\s,]+", item) if s)
            else:
                flat.extend(str(s) for s in item)
        return [self.variable(n) for n in flat]

    def constant(self, value: Any) -> Node:
        """Returns the interned constant node for ``value``.

        Args:
            value: A finite real number.

        Returns:
            The canonical constant node.

        Raises:
            TypeError: If ``value`` is not a real number.
            ValueError: If ``value`` is not finite.
        """
        val = constant_value(value)
        key = (NodeKind.CONSTANT, val.hex())
        node = self._table.get(key)
        if node is not None:
            self._hits += 1
            return node
        self._misses += 1
        node = self._append(NodeKind.CONSTANT, value=val)
        self._table[key] = node
        return node

    def as_node(self, value: Any) -> Node:
        """Coerces a number to a constant node and validates a node.

        Raises:
            StaleNodeError: If ``value`` is a node from another context or
                from before the last :meth:`clear`.
            TypeError: If ``value`` is neither a node nor a real number.
        """
        if isinstance(value, Node):
            self._check_live(value)
            return value
        if isinstance(value, np.ndarray) and value.ndim == 0:
            value = value.item()
        return self.constant(value)

    def operation(self, op: Operator | str, *operands: Any) -> Node:
        """Returns the canonical node for ``op`` applied to ``operands``.

        Operands may be nodes of this context or real numbers. Local identity
        rules (constant folding, ``x + 0``, ``x * 1``, ...) are applied before
        the table lookup, so the returned node may be an operand or a constant
        rather than a new operation.

        Args:
            op: Operator tag or its string value (e.g. ``"mul"``).
            *operands: Operands in order.

        Returns:
            The canonical node.

        Raises:
            ValueError: If the number of operands does not match the arity.
            StaleNodeError: If an operand is stale or foreign.
        """
        op = Operator(op)
        if len(operands) != ARITY[op]:
            raise ValueError(
                f"Operator {op} takes {ARITY[op]} operand(s); got {len(operands)}."
            )
        args = tuple(self.as_node(a) for a in operands)
        if op in COMMUTATIVE:
            args = tuple(sorted(args, key=lambda n: n.index))

        simplified = self._simplify(op, args)
        if simplified is not None:
            return simplified

        key = (op, tuple(a.index for a in args))
        node = self._table.get(key)
        if node is not None:
            self._hits += 1
            return node
        self._misses += 1
        node = self._append(NodeKind.OPERATION, op=op, operands=args)
        self._table[key] = node
        return node

    def _append(self, kind: NodeKind, **fields: Any) -> Node:
        # Arena indices are cache keys and must stay unique.
        with self._lock:
            node = Node(kind=kind, index=len(self._nodes), epoch=self._epoch, context=self, **fields)
            self._nodes.append(node)
        return node

    def _check_live(self, node: Node) -> None:
        if node.context is not self:
            raise StaleNodeError(
                f"Node {node!r} belongs to {node.context!r}, not {self!r}."
            )
        if node.epoch != self._epoch:
            raise StaleNodeError(
                f"Node {node!r} was built in epoch {node.epoch} of {self.name!r}, "
                f"which was cleared (current epoch {self._epoch})."
            )

    def _simplify(self, op: Operator, args: tuple[Node, ...]) -> Node | None:
        """Applies constant folding and identity rules; None means build the node."""
        if all(a.is_constant for a in args):
            with np.errstate(all="ignore"):
                folded = float(evaluate_operator(op, *(a.value for a in args)))
            # Non-finite results stay symbolic so evaluation reproduces them.
            if math.isfinite(folded):
                return self.constant(folded)

        if op is Operator.ADD:
            a, b = args
            if a.is_zero:
                return b
            if b.is_zero:
                return a
        elif op is Operator.SUB:
            a, b = args
            if b.is_zero:
                return a
            if a.is_zero:
                return self.operation(Operator.NEG, b)
            if a is b:
                return self.constant(0.0)
        elif op is Operator.MUL:
            a, b = args
            if a.is_zero or b.is_zero:
                return self.constant(0.0)
            if a.is_one:
                return b
            if b.is_one:
                return a
            if a.is_constant_value(-1.0):
                return self.operation(Operator.NEG, b)
            if b.is_constant_value(-1.0):
                return self.operation(Operator.NEG, a)
        elif op is Operator.DIV:
            a, b = args
            if a.is_zero:
                return self.constant(0.0)
            if b.is_one:
                return a
            if b.is_constant_value(-1.0):
                return self.operation(Operator.NEG, a)
        elif op is Operator.POW:
            a, b = args
            if b.is_zero:
                return self.constant(1.0)
            if b.is_one:
                return a
        elif op is Operator.NEG:
            (a,) = args
            if a.op is Operator.NEG:
                return a.operands[0]
        elif op is Operator.IF_ELSE:
            cond, a, b = args
            if cond.is_constant:
                return a if cond.value != 0 else b
            if a is b:
                return a
        return None


_default_context = GraphContext(name="default")


def get_default_context() -> GraphContext:
    """Returns the process-wide default context."""
    return _default_context


def resolve_context(context: GraphContext | None) -> GraphContext:
    """Returns ``context`` or the default context when it is None."""
    return _default_context if context is None else context


def make_variable(name: str, *, context: GraphContext | None = None) -> Node:
    """Declares a fresh variable in ``context`` (default context if None)."""
    return resolve_context(context).variable(name)


def make_variables(*names: str | Iterable[str], context: GraphContext | None = None) -> list[Node]:
    """Declares several fresh variables; see :meth:`GraphContext.variables`."""
    return resolve_context(context).variables(*names)


def make_constant(value: Any, *, context: GraphContext | None = None) -> Node:
    """Returns the interned constant node for ``value``."""
    return resolve_context(context).constant(value)


def make_operation(op: Operator | str, *operands: Any, context: GraphContext | None = None) -> Node:
    """Returns the canonical node for ``op(*operands)``.

    When ``context`` is None, the context of the first node operand is used,
    falling back to the default context for all-numeric operands.
    """
    if context is None:
        context = next((o.context for o in operands if isinstance(o, Node)), _default_context)
    return context.operation(op, *operands)


def clear_cache(*, context: GraphContext | None = None) -> None:
    """Clears ``context`` (the default context if None); see :meth:`GraphContext.clear`."""
    resolve_context(context).clear()
