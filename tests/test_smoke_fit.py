import numpy as np
from regtreepy import RegressionTree, RegressionTreeMT


def test_regressor_smoke():
    X = np.array([[1.0, 0.5], [2.0, 0.1], [3.0, 0.9], [4.0, 0.3], [5.0, 0.7]])
    y = np.array([1.0, 1.5, 2.0, 2.5, 3.0])
    regr = RegressionTree(max_depth=2, feature_names=['a', 'b'])
    regr.fit(X, y)
    _ = regr.predict(X)
    _ = regr.export_rules()


def test_model_tree_smoke():
    X = np.arange(1.0, 13.0).reshape(-1, 1)
    y = 3.0 * X[:, 0]
    mt = RegressionTreeMT(max_depth=2).fit(X, y)
    _ = mt.predict(X)
    _ = mt.test()
