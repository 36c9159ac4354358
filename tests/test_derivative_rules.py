"""Tests for symbolic derivatives of every operator against finite differences."""

import numpy as np
import pytest

from symdiffkit import (
    Operator,
    absolute,
    acos,
    asin,
    atan,
    atan2,
    compile_graph,
    cos,
    cosh,
    derivative,
    eq,
    exp,
    ge,
    gt,
    if_else,
    le,
    log,
    lt,
    make_variables,
    maximum,
    minimum,
    ne,
    sign,
    sin,
    sinh,
    sqrt,
    tan,
    tanh,
)

N_POINTS = 100
STEP = 1e-6

# (label, builder(x, y), x range, y range)
CASES = [
    ("add", lambda x, y: x + y, (-2, 2), (-2, 2)),
    ("sub", lambda x, y: x - y, (-2, 2), (-2, 2)),
    ("mul", lambda x, y: x * y, (-2, 2), (-2, 2)),
    ("div", lambda x, y: x / y, (-2, 2), (0.5, 2)),
    ("pow", lambda x, y: x**y, (0.5, 2), (-2, 2)),
    ("pow_const", lambda x, y: x**3 * y**2.5, (-2, 2), (0.5, 2)),
    ("rpow", lambda x, y: 2.0**(x * y), (-1, 1), (-1, 1)),
    ("neg", lambda x, y: -(x * y), (-2, 2), (-2, 2)),
    ("sqrt", lambda x, y: sqrt(x * y), (0.5, 2), (0.5, 2)),
    ("exp", lambda x, y: exp(x - y), (-2, 2), (-2, 2)),
    ("log", lambda x, y: log(x + y), (0.5, 2), (0.5, 2)),
    ("sin", lambda x, y: sin(x * y), (-2, 2), (-2, 2)),
    ("cos", lambda x, y: cos(x * y), (-2, 2), (-2, 2)),
    ("tan", lambda x, y: tan(x - y), (-0.6, 0.6), (-0.6, 0.6)),
    ("asin", lambda x, y: asin(x * y), (-0.9, 0.9), (-0.9, 0.9)),
    ("acos", lambda x, y: acos(x * y), (-0.9, 0.9), (-0.9, 0.9)),
    ("atan", lambda x, y: atan(x * y), (-2, 2), (-2, 2)),
    ("atan2", lambda x, y: atan2(y, x), (0.5, 2), (-2, 2)),
    ("sinh", lambda x, y: sinh(x + y), (-2, 2), (-2, 2)),
    ("cosh", lambda x, y: cosh(x - y), (-2, 2), (-2, 2)),
    ("tanh", lambda x, y: tanh(x * y), (-2, 2), (-2, 2)),
    ("abs", lambda x, y: absolute(x - y) * y, (-2, 2), (-2, 2)),
    ("sign", lambda x, y: sign(x - y) * x, (-2, 2), (-2, 2)),
    ("max", lambda x, y: maximum(x, y) * x, (-2, 2), (-2, 2)),
    ("min", lambda x, y: minimum(x, y) * y, (-2, 2), (-2, 2)),
    ("lt", lambda x, y: lt(x, y) * x, (-2, 2), (-2, 2)),
    ("le", lambda x, y: le(x, y) * y, (-2, 2), (-2, 2)),
    ("gt", lambda x, y: gt(x, y) * x * y, (-2, 2), (-2, 2)),
    ("ge", lambda x, y: ge(x, y) + x, (-2, 2), (-2, 2)),
    ("eq", lambda x, y: eq(x, y) + x * y, (-2, 2), (-2, 2)),
    ("ne", lambda x, y: ne(x, y) * x, (-2, 2), (-2, 2)),
    ("if_else", lambda x, y: if_else(gt(x, y), x * y**2, sin(x)), (-2, 2), (-2, 2)),
]


def test_cases_cover_every_operator():
    """Tests that the finite-difference table exercises every operator."""
    x, y = make_variables("x y")
    seen = set()
    for _, build, _, _ in CASES:
        stack = [build(x, y)]
        while stack:
            n = stack.pop()
            if n.is_operation:
                seen.add(n.op)
                stack.extend(n.operands)
    assert seen == set(Operator)


@pytest.mark.parametrize("label, build, xr, yr", CASES, ids=[c[0] for c in CASES])
def test_derivative_matches_central_difference(label, build, xr, yr, rng):
    """Tests d/dx and d/dy of each operator against central differences at 100 points."""
    x, y = make_variables("x y")
    f = build(x, y)
    fn = compile_graph([f, derivative(f, x), derivative(f, y)], [x, y])

    checked = 0
    draws = 0
    while checked < N_POINTS:
        draws += 1
        assert draws <= 10 * N_POINTS, label
        px, py = rng.uniform(*xr), rng.uniform(*yr)
        if abs(px - py) < 1e-3 or abs(px) < 1e-3:
            continue  # stay away from kinks of the piecewise cases
        _, dfx, dfy = fn([px, py])
        num_x = (fn([px + STEP, py])[0] - fn([px - STEP, py])[0]) / (2 * STEP)
        num_y = (fn([px, py + STEP])[0] - fn([px, py - STEP])[0]) / (2 * STEP)
        assert np.isclose(dfx, num_x, rtol=1e-5, atol=1e-5), (label, px, py)
        assert np.isclose(dfy, num_y, rtol=1e-5, atol=1e-5), (label, px, py)
        checked += 1


def test_second_derivatives_match_central_difference(rng):
    """Tests a mixed second derivative against differences of the first derivative."""
    x, y = make_variables("x y")
    f = exp(x * y) * sin(x) + log(1.0 + y**2)
    dfx = derivative(f, x)
    fn = compile_graph([dfx, derivative(f, x, y), derivative(f, y, x)], [x, y])
    for px, py in rng.uniform(-1, 1, size=(N_POINTS, 2)):
        _, dxy, dyx = fn([px, py])
        num = (fn([px, py + STEP])[0] - fn([px, py - STEP])[0]) / (2 * STEP)
        assert np.isclose(dxy, num, rtol=1e-5, atol=1e-5)
        assert np.isclose(dxy, dyx, rtol=1e-12, atol=1e-12)
