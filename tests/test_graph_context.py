"""Tests for node canonicalization, identity rules and cache lifecycle."""

import numpy as np
import pytest

from symdiffkit import (
    GraphContext,
    Node,
    Operator,
    StaleNodeError,
    clear_cache,
    count_operations,
    get_default_context,
    make_constant,
    make_operation,
    make_variable,
    make_variables,
    maximum,
    sin,
    topological_order,
    variables_of,
)


def test_structurally_equal_expressions_share_one_node():
    """Tests that building the same expression twice returns the same node."""
    x, y = make_variables("x y")
    a = sin(x * y) + x
    b = sin(x * y) + x
    assert a is b


def test_commutative_operands_are_canonicalized():
    """Tests that x*y and y*x, x+y and y+x resolve to one node each."""
    x, y = make_variables("x y")
    assert x * y is y * x
    assert x + y is y + x
    assert maximum(x, y) is maximum(y, x)


def test_non_commutative_operands_keep_order():
    """Tests that x-y and y-x, x/y and y/x are distinct nodes."""
    x, y = make_variables("x y")
    assert x - y is not y - x
    assert x / y is not y / x
    assert x**y is not y**x


def test_variables_with_equal_names_never_alias():
    """Tests that two declarations of the same name are distinct variables."""
    a = make_variable("x")
    b = make_variable("x")
    assert a is not b
    assert a.uid != b.uid
    assert a + 1 is not b + 1


def test_variable_ids_are_not_reused_after_clear():
    """Tests that variable ids keep increasing across clears and contexts."""
    a = make_variable("x")
    clear_cache()
    b = make_variable("x")
    c = GraphContext().variable("x")
    assert len({a.uid, b.uid, c.uid}) == 3


def test_rebuilding_after_clear_gives_a_new_node():
    """Tests that the same operation built before and after a clear is two nodes."""
    x, y = make_variables("x y")
    before = x * y
    clear_cache()
    x2, y2 = make_variables("x y")
    after = x2 * y2
    assert after is not before
    assert after is x2 * y2
    assert after.epoch == before.epoch + 1


def test_constants_are_interned():
    """Tests that equal constants are one node and numbers are coerced."""
    x = make_variable("x")
    assert make_constant(2.5) is make_constant(2.5)
    assert make_constant(np.float32(0.5)) is make_constant(0.5)
    assert (x + 2) is (x + 2.0)


@pytest.mark.parametrize("value", [np.inf, -np.inf, np.nan])
def test_non_finite_constant_raises(value):
    """Tests that non-finite constants are rejected."""
    with pytest.raises(ValueError):
        make_constant(value)


@pytest.mark.parametrize("value", [1 + 2j, "1.0", None])
def test_non_real_constant_raises(value):
    """Tests that non-real constants are rejected."""
    with pytest.raises(TypeError):
        make_constant(value)


def test_identity_rules():
    """Tests the local rewrite rules applied before lookup."""
    x = make_variable("x")
    zero, one = make_constant(0.0), make_constant(1.0)
    assert x + 0 is x
    assert 0 + x is x
    assert x - 0 is x
    assert (0 - x) is -x
    assert (x - x) is zero
    assert x * 0 is zero
    assert x * 1 is x
    assert 1 * x is x
    assert x * -1 is -x
    assert 0 / x is zero
    assert x / 1 is x
    assert x**1 is x
    assert x**0 is one
    assert -(-x) is x


def test_constant_folding():
    """Tests that operations on constants fold to a constant node."""
    c = make_constant(2.0) * 3.0 + 1.0
    assert c.is_constant
    assert c.value == 7.0
    s = sin(make_constant(0.0))
    assert s is make_constant(0.0)


def test_non_finite_folding_stays_symbolic():
    """Tests that 1/0 is not folded, so evaluation reproduces inf."""
    node = make_operation(Operator.DIV, 1.0, 0.0)
    assert node.is_operation


def test_arity_is_checked():
    """Tests that a wrong operand count raises ValueError."""
    x = make_variable("x")
    with pytest.raises(ValueError):
        make_operation(Operator.SIN, x, x)
    with pytest.raises(ValueError):
        make_operation("add", x)


def test_operator_accepts_string_tag():
    """Tests that operators may be given by their string value."""
    x, y = make_variables("x y")
    assert make_operation("mul", x, y) is x * y


def test_numpy_scalar_on_left_builds_node():
    """Tests that numpy scalars defer to the node's reflected operators."""
    x = make_variable("x")
    node = np.float64(2.0) * x
    assert isinstance(node, Node)
    assert node is 2.0 * x


def test_operands_precede_users():
    """Tests that operands always have a smaller arena index."""
    x, y = make_variables("x y")
    f = sin(x * y) / (x + y) ** 2
    for node in topological_order([f]):
        for o in node.operands:
            assert o.index < node.index


def test_clear_makes_nodes_stale():
    """Tests that nodes from before a clear raise StaleNodeError."""
    x = make_variable("x")
    f = x * 2
    clear_cache()
    with pytest.raises(StaleNodeError):
        _ = f + 1
    with pytest.raises(StaleNodeError):
        sin(x)
    # New nodes work after the clear.
    y = make_variable("y")
    assert (y * 2).is_operation


def test_clear_is_idempotent_and_bumps_epoch():
    """Tests that repeated clears succeed and advance the epoch."""
    ctx = get_default_context()
    e0 = ctx.epoch
    clear_cache()
    clear_cache()
    assert ctx.epoch == e0 + 2
    assert len(ctx) == 0


def test_clear_logs_at_info(caplog):
    """Tests that clearing a context is logged at INFO."""
    with caplog.at_level("INFO", logger="symdiffkit"):
        clear_cache()
    assert any("Cleared graph context" in r.message for r in caplog.records)


def test_foreign_context_node_raises(ctx):
    """Tests that mixing nodes from two contexts raises StaleNodeError."""
    x = make_variable("x")
    y = ctx.variable("y")
    with pytest.raises(StaleNodeError):
        ctx.operation(Operator.ADD, x, y)


def test_explicit_context_is_isolated(ctx):
    """Tests that a private context does not touch the default one."""
    before = len(get_default_context())
    x, y = ctx.variables("x, y")
    f = x * y + 1
    assert f.context is ctx
    assert len(get_default_context()) == before
    assert len(ctx) == 5


def test_cache_info_counts_hits(ctx):
    """Tests that repeated construction is reported as cache hits."""
    x, y = ctx.variables("x y")
    _ = x * y
    info0 = ctx.cache_info()
    _ = y * x
    info1 = ctx.cache_info()
    assert info1.hits == info0.hits + 1
    assert info1.currsize == info0.currsize
    assert info1.epoch == ctx.epoch


def test_graph_queries():
    """Tests variables_of, count_operations and topological_order."""
    x, y, z = make_variables("x y z")
    f = sin(x * y) + x
    assert variables_of([f]) == [x, y]
    assert count_operations([f]) == 3
    order = topological_order([f, f])
    assert order[-1] is f
    assert len(order) == len(set(order))
    assert z not in order


def test_deep_graph_does_not_recurse():
    """Tests that traversal of a very deep chain works iteratively."""
    x = make_variable("x")
    f = x
    for _ in range(5000):
        f = sin(f)
    assert count_operations([f]) == 5000


def test_repr_is_readable():
    """Tests the readable repr of nodes."""
    x = make_variable("x")
    assert repr(x) == "x"
    assert repr(make_constant(2.0)) == "2.0"
    assert repr(sin(x)).startswith("sin(")


def test_exclusive_serialises_threads(ctx, extra_threads_ok):
    """Tests that building under exclusive() from threads yields canonical nodes."""
    if not extra_threads_ok:
        pytest.skip("cannot spawn extra threads")
    from concurrent.futures import ThreadPoolExecutor

    x, y = ctx.variables("x y")

    def build(_):
        with ctx.exclusive():
            return sin(x * y) + x

    with ThreadPoolExecutor(max_workers=4) as ex:
        nodes = list(ex.map(build, range(32)))
    assert all(n is nodes[0] for n in nodes)
