"""Tests for the optional JAX compile backend."""

import numpy as np
import pytest

from symdiffkit import (
    BackendUnavailable,
    compile_graph,
    cos,
    gt,
    hessian,
    if_else,
    jacobian,
    log,
    make_variables,
    maximum,
    sin,
    sqrt,
)
from symdiffkit.compiler import jax_backend


def test_missing_jax_raises(monkeypatch):
    """Tests that the jax backend reports a missing installation."""
    monkeypatch.setattr(jax_backend, "_HAS_JAX", False)
    x = make_variables("x")[0]
    with pytest.raises(BackendUnavailable):
        compile_graph([x], [x], backend="jax")


def test_fixed_container_rejected_for_jax():
    """Tests that the jax backend supports dynamic containers only."""
    x = make_variables("x")[0]
    with pytest.raises(ValueError):
        compile_graph([x], [x], backend="jax", container="fixed")


class TestJaxBackend:
    """Tests that need JAX installed."""

    @pytest.fixture(autouse=True)
    def _jax(self):
        jax = pytest.importorskip("jax")
        jax.config.update("jax_enable_x64", True)

    def test_matches_numpy_backend(self, rng):
        """Tests that both backends agree on a Jacobian."""
        x, y, z = make_variables("x y z")
        jac = jacobian([sin(x * y) + z, log(1.0 + z**2) * x, maximum(x, y)], [x, y, z])
        f_np = compile_graph(jac, [x, y, z])
        f_jax = compile_graph(jac, [x, y, z], backend="jax")
        assert isinstance(f_jax, jax_backend.JaxEvaluator)
        for theta in rng.normal(size=(10, 3)):
            out = f_jax(theta)
            assert isinstance(out, np.ndarray)
            assert np.allclose(out, f_np(theta), rtol=1e-12, atol=1e-12)

    def test_round_trip_values(self):
        """Tests [x^2 y^2, sqrt(x y)] at (1, 2) on jax."""
        x, y = make_variables("x y")
        f = compile_graph([x**2 * y**2, sqrt(x * y)], [x, y], backend="jax")
        assert np.allclose(f([1.0, 2.0]), [4.0, 1.41421356], atol=1e-8)

    def test_in_place_and_scalar(self):
        """Tests in-place evaluation and scalar outputs on jax."""
        x, y = make_variables("x y")
        f = compile_graph(hessian(x**2 * cos(y), [x, y]), [x, y], backend="jax", in_place=True)
        out = np.empty((2, 2))
        assert f([1.0, 0.0], out) is out
        assert np.allclose(out, [[2.0, 0.0], [0.0, -1.0]])
        s = compile_graph(if_else(gt(x, y), x, y), [x, y], backend="jax")
        assert float(s([1.0, 3.0])) == 3.0

    def test_constant_only_outputs(self):
        """Tests outputs that need no operations."""
        x = make_variables("x")[0]
        f = compile_graph([2.0, x], [x], backend="jax")
        assert np.allclose(f([5.0]), [2.0, 5.0])
