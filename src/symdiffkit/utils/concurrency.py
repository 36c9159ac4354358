"""Thread-pool helpers for evaluating compiled graphs at many points."""

from __future__ import annotations

import contextvars
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Sequence, Tuple

__all__ = [
    "parallel_execute",
    "normalize_workers",
    "cap_workers",
    "max_workers",
]


def _int_env(name: str) -> int | None:
    """Reads a positive integer from an environment variable, or None if unset/invalid.

    Args:
        name: Environment variable name.

    Returns:
        Positive integer value, or None.
    """
    v = os.getenv(name)
    if not v:
        return None
    try:
        i = int(v)
        return i if i > 0 else None
    except ValueError:
        return None


def max_workers() -> int:
    """Upper bound on worker threads.

    ``SYMDIFFKIT_MAX_WORKERS`` caps the value; otherwise the number of CPUs.
    """
    cap = _int_env("SYMDIFFKIT_MAX_WORKERS")
    hw = os.cpu_count() or 1
    return max(1, min(hw, cap) if cap else hw)


def parallel_execute(
    worker: Callable[..., Any],
    arg_tuples: Sequence[Tuple[Any, ...]],
    *,
    workers: int = 1,
) -> list[Any]:
    """Runs ``worker(*args)`` for each tuple in ``arg_tuples``.

    Results are returned in the order of ``arg_tuples``. With ``workers > 1``
    the calls run on a thread pool; each task sees a copy of the caller's
    context variables. The first exception raised by a task propagates.
    """
    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as ex:
            futures = []
            for args in arg_tuples:
                ctx = contextvars.copy_context()
                futures.append(ex.submit(ctx.run, worker, *args))
            return [f.result() for f in futures]
    return [worker(*args) for args in arg_tuples]


def normalize_workers(n_workers: Any) -> int:
    """Ensures n_workers is a positive integer, defaulting to 1.

    Args:
        n_workers: Input number of workers (can be None, float, negative, etc.)

    Returns:
        int: A positive integer number of workers (at least 1).
    """
    try:
        n = int(n_workers)
    except (TypeError, ValueError):
        n = 1
    return 1 if n < 1 else n


def cap_workers(n_workers: Any, n_tasks: int) -> int:
    """Caps a worker count by the number of tasks and :func:`max_workers`."""
    n = normalize_workers(n_workers)
    if n_tasks <= 0:
        return 1
    return max(1, min(n, int(n_tasks), max_workers()))
