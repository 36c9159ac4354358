"""Utility helpers shared across symdiffkit."""

from symdiffkit.utils.concurrency import normalize_workers, parallel_execute
from symdiffkit.utils.thread_safety import synchronized

__all__ = [
    "normalize_workers",
    "parallel_execute",
    "synchronized",
]
