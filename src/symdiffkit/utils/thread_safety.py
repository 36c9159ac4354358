"""Thread safety utilities."""

from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from symdiffkit.graph.context import GraphContext, resolve_context

__all__ = ["synchronized"]

T = TypeVar("T")


def synchronized(fn: Callable[..., T], context: GraphContext | None = None) -> Callable[..., T]:
    """Wraps ``fn`` so every call holds the lock of ``context``.

    Graph building does not lock by itself; wrapping the functions that build
    into a shared context serialises them against each other and against
    blocks run under :meth:`GraphContext.exclusive`.

    Args:
        fn: Callable to wrap.
        context: Context whose lock is taken (default context if None).

    Returns:
        The wrapped callable.
    """
    ctx = resolve_context(context)

    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any) -> T:
        with ctx.exclusive():
            return fn(*args, **kwargs)

    return wrapped
