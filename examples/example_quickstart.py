import numpy as np
from regtreepy import RegressionTree, DEFAULT_HPARAMS

# one feature; the largest jump in y lies between x=6 and x=7
X = np.arange(1.0, 11.0).reshape(-1, 1)
y = np.array([5.56, 5.70, 5.91, 6.40, 6.80, 7.05, 8.90, 8.70, 9.00, 9.05])

for depth in (1, 2):
    reg = RegressionTree.from_hparams(dict(DEFAULT_HPARAMS, maxDepth=depth), feature_names=["x"])
    reg.fit(X, y)
    reg.print_tree()
    reg.print_tree_bfs()
    for r in reg.export_rules():
        print(r)
    yp, qof = reg.test()
    print(reg.fit_.report(qof, f"RegressionTree(max_depth={depth})"))
    print("predict(x=3.0) =", reg.predict(np.array([3.0])))
