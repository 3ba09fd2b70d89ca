import numpy as np
import pytest
from regtreepy import RegressionTree, RegressionTreeMT, rescaled


def _tiny_reg_dataset():
    X = np.arange(1.0, 11.0).reshape(-1, 1)
    y = np.array([5.56, 5.70, 5.91, 6.40, 6.80, 7.05, 8.90, 8.70, 9.00, 9.05])
    return X, y


def test_print_tree_preorder(capsys):
    X, y = _tiny_reg_dataset()
    RegressionTree(max_depth=1, feature_names=['x']).fit(X, y).print_tree()
    out = capsys.readouterr().out
    assert "RegressionTree: leaves = 2" in out
    assert "[ Root (feature = x0, threshold = 6.5) ]" in out
    assert out.count("\t[ Leaf (branch = ") == 2


def test_print_tree_bfs_levels(capsys):
    X, y = _tiny_reg_dataset()
    RegressionTree(max_depth=2).fit(X, y).print_tree_bfs()
    lines = capsys.readouterr().out.splitlines()
    assert sum(1 for ln in lines if ln.startswith("\t\t[ Leaf")) == 4
    assert sum(1 for ln in lines if ln.startswith("\t[ Node")) == 2


def test_rules_cover_all_leaves():
    X, y = _tiny_reg_dataset()
    regr = RegressionTree(max_depth=2, feature_names=['x']).fit(X, y)
    rules = regr.export_rules()
    assert len(rules) == regr.get_n_leaves()
    assert all('=>' in r and 'value=' in r for r in rules)
    assert rules[0].startswith("x <= 6.5 AND x <= 3.5")


def test_predict_rule():
    X, y = _tiny_reg_dataset()
    regr = RegressionTree(max_depth=1).fit(X, y)
    traced = regr.predict_rule(X[[0, 9]], feature_names=['x'])
    assert traced == ["x <= 6.5", "x > 6.5"]


def test_model_tree_rules_show_coefficients():
    X, y = _tiny_reg_dataset()
    X2 = np.column_stack([X[:, 0], np.arange(10) % 3.0])
    rules = RegressionTreeMT(max_depth=1).fit(X2, y).export_rules()
    assert len(rules) == 2
    assert all('b=[' in r for r in rules)


def test_apply_returns_terminal_nodes():
    X, y = _tiny_reg_dataset()
    regr = RegressionTree(max_depth=1).fit(X, y)
    nodes = regr.apply(X)
    assert len({id(nd) for nd in nodes}) == 2
    assert all(nd.is_leaf for nd in nodes)


def test_graphviz_export(tmp_path):
    pytest.importorskip("graphviz")
    X, y = _tiny_reg_dataset()
    regr = RegressionTree(max_depth=2).fit(X, y)
    out_path = regr.export_graphviz(str(tmp_path / "reg_tree"), format="dot")
    assert out_path.endswith('.dot')
    text = open(out_path).read()
    assert "x0 <= 6.5" in text


def test_rescaled_pipeline():
    X, y = _tiny_reg_dataset()
    pipe = rescaled(RegressionTree(max_depth=2)).fit(X, y)
    assert pipe.predict(X).shape == y.shape
    assert pipe.score(X, y) > 0.9


def test_dataframe_feature_names():
    pd = pytest.importorskip("pandas")
    X, y = _tiny_reg_dataset()
    df = pd.DataFrame({"speed": X[:, 0]})
    regr = RegressionTree(max_depth=1).fit(df, y)
    assert regr.export_rules()[0].startswith("speed <= 6.5")
