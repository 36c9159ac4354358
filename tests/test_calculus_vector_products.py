"""Tests for matrix-free Jv, Jᵗv and Hv products and sparse assembly."""

import numpy as np
import pytest
import scipy.sparse as sp

from symdiffkit import (
    compile_graph,
    compile_sparse,
    cos,
    exp,
    hessian,
    hessian_times_v,
    jacobian,
    jacobian_times_v,
    jacobian_transpose_v,
    make_variables,
    sin,
    sparse_hessian,
    sparse_jacobian,
    tanh,
)


def random_system():
    """A 4-output, 3-input map with some structural zeros."""
    x, y, z = make_variables("x y z")
    outputs = [x * y + sin(z), x**2 + cos(y), exp(z) * y, tanh(x)]
    return outputs, [x, y, z]


def test_jacobian_times_v_matches_dense(rng):
    """Tests that J @ v equals the dense Jacobian times v at random points."""
    outputs, variables = random_system()
    products, seeds = jacobian_times_v(outputs, variables)
    assert products.shape == (4,)
    assert seeds.shape == (3,)
    jv = compile_graph(products, [*variables, *seeds])
    jf = compile_graph(jacobian(outputs, variables), variables)
    for _ in range(20):
        theta, v = rng.normal(size=3), rng.normal(size=3)
        assert np.allclose(jv(np.concatenate([theta, v])), jf(theta) @ v, atol=1e-12)


def test_jacobian_transpose_v_matches_dense(rng):
    """Tests that J.T @ r equals the dense transpose product at random points."""
    outputs, variables = random_system()
    products, seeds = jacobian_transpose_v(outputs, variables)
    assert products.shape == (3,)
    assert seeds.shape == (4,)
    jtv = compile_graph(products, [*variables, *seeds])
    jf = compile_graph(jacobian(outputs, variables), variables)
    for _ in range(20):
        theta, r = rng.normal(size=3), rng.normal(size=4)
        assert np.allclose(jtv(np.concatenate([theta, r])), jf(theta).T @ r, atol=1e-12)


def test_hessian_times_v_matches_dense(rng):
    """Tests that H @ v equals the dense Hessian times v."""
    x, y, z = make_variables("x y z")
    f = exp(x * y) * sin(z) + x**2 * z
    products, seeds = hessian_times_v(f, [x, y, z])
    hv = compile_graph(products, [x, y, z, *seeds])
    hf = compile_graph(hessian(f, [x, y, z]), [x, y, z])
    for _ in range(20):
        theta, v = rng.normal(size=3), rng.normal(size=3)
        assert np.allclose(hv(np.concatenate([theta, v])), hf(theta) @ v, atol=1e-10)


def test_seeds_are_fresh_variables():
    """Tests that seeds are new, distinct variables with readable names."""
    outputs, variables = random_system()
    _, seeds_a = jacobian_times_v(outputs, variables)
    _, seeds_b = jacobian_times_v(outputs, variables)
    _, out_seeds = jacobian_transpose_v(outputs, variables)
    assert all(s.is_variable for s in seeds_a)
    assert not set(seeds_a) & set(seeds_b)
    assert [s.name for s in seeds_a] == ["seed_x", "seed_y", "seed_z"]
    assert [s.name for s in out_seeds] == ["seed_out0", "seed_out1", "seed_out2", "seed_out3"]


def test_product_needs_seeds_as_inputs():
    """Tests that compiling a product without its seeds reports them missing."""
    from symdiffkit import MissingInputVariable

    outputs, variables = random_system()
    products, _ = jacobian_times_v(outputs, variables)
    with pytest.raises(MissingInputVariable) as info:
        compile_graph(products, variables)
    assert "seed_x" in info.value.missing


def test_structurally_zero_products():
    """Tests that outputs independent of every variable give a zero product."""
    x, y = make_variables("x y")
    (c,) = make_variables("c")
    products, _ = jacobian_times_v([c * 2.0, x * y], [x, y])
    assert products[0].is_zero
    assert not products[1].is_zero


def test_empty_product_warns(caplog):
    """Tests that an empty product request logs a warning."""
    x, y = make_variables("x y")
    with caplog.at_level("WARNING", logger="symdiffkit"):
        products, seeds = jacobian_transpose_v([], [x, y])
    assert products.shape == (2,)
    assert seeds.shape == (0,)
    assert all(p.is_zero for p in products)
    assert any("empty" in r.message for r in caplog.records)


def test_sparse_jacobian_pattern_and_values(rng):
    """Tests the sparsity pattern of a sparse Jacobian and its compiled values."""
    outputs, variables = random_system()
    sj = sparse_jacobian(outputs, variables)
    assert sj.shape == (4, 3)
    assert set(zip(sj.rows, sj.cols)) == {
        (0, 0), (0, 1), (0, 2), (1, 0), (1, 1), (2, 1), (2, 2), (3, 0)
    }
    assert sj.nnz == 8
    assert all(not e.is_zero for e in sj.entries)

    dense = sj.to_dense()
    full = jacobian(outputs, variables)
    assert all(dense[i, j] is full[i, j] for i in range(4) for j in range(3))

    f = compile_sparse(sj, variables)
    jf = compile_graph(full, variables)
    theta = rng.normal(size=3)
    mat = f(theta)
    assert isinstance(mat, sp.csc_array)
    assert mat.shape == (4, 3)
    assert np.allclose(mat.toarray(), jf(theta))


def test_sparse_hessian_of_separable_function():
    """Tests that a separable function has a diagonal sparse Hessian."""
    x, y, z = make_variables("x y z")
    f = sin(x) + y**3 + exp(z)
    sh = sparse_hessian(f, [x, y, z])
    assert list(zip(sh.rows, sh.cols)) == [(0, 0), (1, 1), (2, 2)]
    mat = compile_sparse(sh, [x, y, z])([0.5, 2.0, 0.0])
    assert np.allclose(mat.diagonal(), [-np.sin(0.5), 12.0, 1.0])


def test_sparse_jacobian_of_constants_warns(caplog):
    """Tests that an all-zero sparse Jacobian logs a warning."""
    x, y = make_variables("x y")
    with caplog.at_level("WARNING", logger="symdiffkit"):
        sj = sparse_jacobian([1.0, 2.0], [x, y])
    assert sj.nnz == 0
    assert sj.density == 0.0
    assert all(e.is_zero for e in sj.to_dense().ravel())
    assert caplog.records
