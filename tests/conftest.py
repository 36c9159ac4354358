"""Pytest configuration: a clean default context per test and shared helpers."""

from concurrent.futures import ThreadPoolExecutor, TimeoutError

import numpy as np
import pytest

from symdiffkit import GraphContext, clear_cache

__all__ = ["extra_threads_ok"]


@pytest.fixture(autouse=True)
def _fresh_default_context():
    """Clears the process-wide default context before each test."""
    clear_cache()
    yield


@pytest.fixture
def ctx():
    """A private graph context."""
    return GraphContext(name="test")


@pytest.fixture
def rng():
    """Random number generator with fixed seed (42) for reproducibility."""
    return np.random.default_rng(seed=42)


@pytest.fixture(scope="session")
def threads_ok():
    """Return a callable that checks thread-spawning capability.

    The returned function has signature `check(n=2, timeout=1.0) -> bool` and
    returns True if at least `n` threads can be started and joined within `timeout`.
    """
    def _can_spawn(n: int = 2, timeout: float = 1.0) -> bool:
        try:
            with ThreadPoolExecutor(max_workers=n) as ex:
                futs = [ex.submit(lambda: None) for _ in range(n)]
                for f in futs:
                    f.result(timeout=timeout)
            return True
        except (RuntimeError, MemoryError, OSError, TimeoutError):
            return False
    return _can_spawn


@pytest.fixture(scope="session")
def extra_threads_ok(threads_ok):
    """Convenience: True iff we can start >= 2 threads (common case)."""
    return threads_ok(2)
