import numpy as np
import pytest

from regtreepy import RegressionTree, RegressionTreeMT
from regtreepy.builder import MeanLeaf, RegressionLeaf
from regtreepy.linear import fit_no_intercept
from regtreepy.node import find_leaf, leaves


def _linear_dataset():
    """y = 2*x0 - x1 exactly, x0 trending, x1 cycling through 0..4."""
    x0 = np.arange(1.0, 21.0)
    x1 = np.arange(20) % 5.0
    X = np.column_stack([x0, x1])
    return X, 2.0 * x0 - x1


def test_model_tree_leaves_hold_coefficients():
    X, y = _linear_dataset()
    mt = RegressionTreeMT(max_depth=1).fit(X, y)
    assert mt.get_n_leaves() == 2
    for leaf in leaves(mt.tree_):
        assert leaf.params.shape == (2,)
        np.testing.assert_allclose(leaf.params, [2.0, -1.0], atol=1e-8)
    np.testing.assert_allclose(mt.predict(X), y, atol=1e-8)


def test_model_tree_splits_like_regression_tree():
    X, y = _linear_dataset()
    mt = RegressionTreeMT(max_depth=2).fit(X, y)
    rt = RegressionTree(max_depth=2).fit(X, y)
    assert mt.tree_.feature == rt.tree_.feature
    assert mt.tree_.threshold == rt.tree_.threshold
    assert mt.get_n_leaves() == rt.get_n_leaves()


def test_model_tree_prediction_is_dot_product():
    rng = np.random.default_rng(3)
    X = rng.uniform(0.0, 5.0, size=(60, 2))
    y = np.where(X[:, 0] > 2.5, 4.0 * X[:, 1], X[:, 0] + X[:, 1]) + 0.05 * rng.normal(size=60)
    mt = RegressionTreeMT(max_depth=2).fit(X, y)
    z = X[7]
    leaf = find_leaf(mt.tree_, z)
    expected = leaf.params[0] if leaf.params.shape[0] == 1 else float(leaf.params @ z)
    assert mt.predict(z) == pytest.approx(expected)


def test_regression_leaf_falls_back_to_mean():
    x = np.array([[1.0, 2.0], [3.0, 4.0]])
    y = np.array([1.0, 5.0])
    np.testing.assert_allclose(RegressionLeaf()(x, y), [3.0])
    np.testing.assert_allclose(MeanLeaf()(x, y), [3.0])


def test_regression_leaf_single_column_uses_mean():
    x = np.array([[1.0], [2.0], [3.0]])
    y = np.array([2.0, 4.0, 6.0])
    np.testing.assert_allclose(RegressionLeaf()(x, y), [4.0])


def test_regression_leaf_uses_solver():
    x = np.array([[1.0, 0.0], [2.0, 1.0], [3.0, 0.0], [4.0, 1.0]])
    y = 2.0 * x[:, 0] + 3.0 * x[:, 1]
    np.testing.assert_allclose(RegressionLeaf()(x, y), [2.0, 3.0], atol=1e-10)
    calls = []

    def solver(a, b):
        calls.append(a.shape)
        return np.array([9.0, 8.0])

    assert RegressionLeaf(solver)(x, y).tolist() == [9.0, 8.0]
    assert calls == [(4, 2)]


def test_fit_no_intercept_matches_lstsq():
    rng = np.random.default_rng(11)
    x = rng.normal(size=(30, 3))
    y = rng.normal(size=30)
    expected, *_ = np.linalg.lstsq(x, y, rcond=None)
    np.testing.assert_allclose(fit_no_intercept(x, y), expected, atol=1e-8)
