import logging
import pandas as pd, numpy as np
from time import perf_counter
from sklearn.datasets import load_diabetes
from sklearn.model_selection import train_test_split
from regtreepy import RegressionTree, RegressionTreeMT, QoF

logging.basicConfig(level=logging.WARNING)

data = load_diabetes(as_frame=True)
Xdf, y = data.data, data.target.values
feats = list(Xdf.columns)
X_tr, X_te, y_tr, y_te = train_test_split(Xdf, y, test_size=0.25, random_state=42)

for cls in (RegressionTree, RegressionTreeMT):
    reg = cls(max_depth=4, feature_names=feats)
    t0 = perf_counter(); reg.fit(X_tr, y_tr); print(f"{cls.__name__} fit: {perf_counter()-t0:.3f} s")
    _, qof = reg.test()
    print(reg.fit_.report(qof, cls.__name__))
    _, qof = reg.test(X_te.values, y_te)
    print(f"holdout rSq = {qof[QoF.rSq]:.4f}, rmse = {qof[QoF.rmse]:.4f}, leaves = {reg.get_n_leaves()}")

try:
    reg.export_graphviz("diabetes_tree", feature_names=feats, format="dot")
except RuntimeError as e:
    print(f"Skipping Graphviz export: {e}")
reg.print_tree()

rules = pd.DataFrame({"rule": reg.predict_rule(X_te.values[:5]), "pred": reg.predict(X_te.values[:5]), "y": y_te[:5]})
print(rules.to_string(index=False))
