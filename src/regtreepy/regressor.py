"""Regression trees and regression model trees (scikit-learn style).

This module exposes the two estimators of the package.  Both grow the same
binary tree by exact sse-minimising threshold search; they differ in what a
leaf stores.
"""
from __future__ import annotations
from typing import Any, List, Mapping, Optional, Tuple
import logging
import numpy as np
from sklearn.base import BaseEstimator, RegressorMixin
from sklearn.pipeline import Pipeline, make_pipeline
from sklearn.preprocessing import StandardScaler

from ._params import tree_params
from .builder import MeanLeaf, RegressionLeaf, TreeBuilder
from .fit import Fit
from .node import LEFT, LeafCounter, TreeNode, find_leaf, iter_bfs, iter_preorder, predict_row

logger = logging.getLogger(__name__)

# ----------------------------- Helpers -----------------------------

def _as_float_array(a) -> np.ndarray:
    return np.asarray(a, dtype=float)

def _feature_name(j: int, fn: Optional[List[str]]) -> str:
    return fn[j] if (fn is not None and 0 <= j < len(fn)) else f"x{j}"

def _leaf_label(node: TreeNode) -> str:
    if node.params.shape[0] == 1:
        return f"value={node.params[0]:.6g}"
    return "b=[" + ", ".join(f"{v:.6g}" for v in node.params) + "]"


def rescaled(estimator: "RegressionTree") -> Pipeline:
    """Standardise every column before it reaches ``estimator``."""
    return make_pipeline(StandardScaler(), estimator)

# ----------------------------- Regressor -----------------------------

class RegressionTree(RegressorMixin, BaseEstimator):
    r"""
    RegressionTree(max_depth=5, tol=1e-6, feature_names=None)

    A regression tree that recursively partitions ``(X, y)`` by choosing, at
    each node, the feature and threshold minimising ``sseL + sseR``.

    **Core behavior**

    - **Split search**: for every column the rows are sorted once and every
      midpoint between distinct consecutive values is scored from running
      sums, so a node costs O(n log n) per column.  Among equally good
      thresholds the smallest wins; among equally good columns the lowest
      index wins.
    - **Self-check**: each column's sse is recomputed directly; a column whose
      two values disagree (or that cannot be split at all) sits out that
      split decision.  Disagreements are logged as flaws on the ``regtreepy``
      logger.
    - **Stopping**: children of a node at depth ``max_depth - 1`` are leaves,
      as are children with no more rows than columns.  A partition that no
      column can split becomes a leaf.
    - **Leaves**: hold the mean of their rows.  :class:`RegressionTreeMT`
      stores a local linear model instead.

    Parameters
    ----------
    max_depth : int, default=5
        Depth limit; leaves are at most ``max_depth`` deep.
    tol : float, default=1e-6
        Absolute tolerance when checking a column's sse.
    feature_names : sequence of str, optional
        Column names used in printed trees and exported rules.

    Attributes
    ----------
    tree_ : TreeNode
        Root of the fitted tree.
    leaves_ : LeafCounter
        Number of leaves created by the last fit.
    fit_ : Fit
        Diagnostics with degrees of freedom ``(leaves, m - leaves)``.
    n_features_in_ : int
        Number of columns seen during fit.
    """

    model_name = "RegressionTree"

    def __init__(self, max_depth: int = 5, tol: float = 1e-6,
                 feature_names: Optional[List[str]] = None):
        self.max_depth = max_depth
        self.tol = tol
        self.feature_names = feature_names

    @classmethod
    def from_hparams(cls, hparam: Mapping[str, Any], **kwargs) -> "RegressionTree":
        """Create an estimator from a ``{"maxDepth": ..., "threshold": ...}`` map."""
        return cls(**tree_params(hparam), **kwargs)

    def _leaf_fitter(self):
        return MeanLeaf()

    # ----------------------------- Public API -----------------------------

    def fit(self, X, y):
        """
        Build the tree from data matrix ``X`` and response vector ``y``.

        Raises
        ------
        ValueError
            If the shapes disagree, values are not finite, ``X`` has
            fewer rows than columns, or ``max_depth < 1``.
        """
        names = [str(c) for c in X.columns] if hasattr(X, "columns") else None
        X = _as_float_array(X)
        y = _as_float_array(y)
        if X.ndim != 2:
            raise ValueError(f"X must be 2-dimensional, got shape {X.shape}")
        if y.ndim != 1:
            raise ValueError(f"y must be 1-dimensional, got shape {y.shape}")
        m, n = X.shape
        if y.shape[0] != m:
            raise ValueError(f"y has {y.shape[0]} values but X has {m} rows")
        if m < n:
            raise ValueError(f"X must have at least as many rows as columns (got {m} x {n})")
        if not (np.all(np.isfinite(X)) and np.all(np.isfinite(y))):
            raise ValueError("X and y must not contain NaN or infinite values")
        if isinstance(self.max_depth, bool) or int(self.max_depth) != self.max_depth or self.max_depth < 1:
            raise ValueError("max_depth must be an integer >= 1")
        if self.feature_names is not None and len(self.feature_names) != n:
            raise ValueError("feature_names length must match X.shape[1]")
        self.feature_names_ = list(self.feature_names) if self.feature_names is not None else names

        logger.debug("fit: %s (%d) on %d x %d", self.model_name, self.max_depth, m, n)
        self.leaves_ = LeafCounter()
        builder = TreeBuilder(int(self.max_depth), self._leaf_fitter(), tol=float(self.tol),
                              leaves=self.leaves_)
        self.tree_ = builder.build(X, y)
        self.n_features_in_ = n

        # model dof is only known once the leaves are counted
        self.fit_ = Fit(dfm=n - 1, df=m - n)
        k = self.leaves_.get()
        self.fit_.reset_df(k, m - k)
        self.X_train_, self.y_train_ = X, y
        return self

    def fit_combined(self, xy, col: int = -1):
        """Fit from a combined matrix whose column ``col`` holds the response."""
        xy = _as_float_array(xy)
        if xy.ndim != 2 or xy.shape[1] < 2:
            raise ValueError("xy must be 2-dimensional with at least two columns")
        col = col % xy.shape[1]
        return self.fit(np.delete(xy, col, axis=1), xy[:, col])

    def predict(self, X):
        """
        Predict by following the splits from the root to a terminal node.

        A 1-D input is treated as one row and yields a float; a 2-D input
        yields one prediction per row.
        """
        self._check_fitted()
        X = _as_float_array(X)
        if X.ndim == 1:
            self._check_width(X.shape[0])
            return predict_row(self.tree_, X)
        if X.ndim != 2:
            raise ValueError(f"X must be 1- or 2-dimensional, got shape {X.shape}")
        self._check_width(X.shape[1])
        out = np.empty(X.shape[0], dtype=float)
        for i, z in enumerate(X):
            out[i] = predict_row(self.tree_, z)
        return out

    def test(self, X=None, y=None) -> Tuple[np.ndarray, np.ndarray]:
        """
        Predict ``X`` and diagnose against ``y`` (defaults to the training data).

        Model degrees of freedom are the number of leaves, error degrees of
        freedom ``len(y)`` minus that.

        Returns
        -------
        (ndarray, ndarray)
            Predictions and the QoF vector indexed by :class:`~regtreepy.fit.QoF`.
        """
        self._check_fitted()
        if (X is None) != (y is None):
            raise ValueError("pass both X and y, or neither")
        if X is None:
            X, y = self.X_train_, self.y_train_
        y = _as_float_array(y)
        yp = self.predict(_as_float_array(X))
        k = self.get_n_leaves()
        self.fit_.reset_df(k, y.shape[0] - k)
        return yp, self.fit_.diagnose(y, yp)

    def get_n_leaves(self) -> int:
        self._check_fitted()
        return self.leaves_.get()

    def get_depth(self) -> int:
        self._check_fitted()
        return max(node.depth for node, _ in iter_preorder(self.tree_))

    def _check_fitted(self):
        if getattr(self, 'tree_', None) is None:
            raise ValueError("Estimator not fitted. Call fit(...) first.")

    def _check_width(self, n: int):
        if n != self.n_features_in_:
            raise ValueError(f"X has {n} features, but {self.model_name} was fitted with {self.n_features_in_}")

    # ----------------------------- Pretty / Rules / Graphviz -----------------------------

    def _maybe_feature_names(self, feature_names):
        return feature_names if feature_names is not None else getattr(self, "feature_names_", None)

    def tree_string(self, bfs: bool = False) -> str:
        """Textual tree: pre-order with one tab per level, or level by level."""
        self._check_fitted()
        lines = [f"{self.model_name}: leaves = {self.get_n_leaves()}",
                 f"fname = {self._maybe_feature_names(None)}"]
        if bfs:
            for level, nodes in enumerate(iter_bfs(self.tree_)):
                lines.extend("\t" * level + f"[ {nd} ]" for nd in nodes)
                lines.append("")
        else:
            lines.extend("\t" * level + f"[ {nd} ]" for nd, level in iter_preorder(self.tree_))
        return "\n".join(lines)

    def print_tree(self) -> None:
        """Print the fitted tree in pre-order to ``stdout``."""
        print(self.tree_string())
        print()

    def print_tree_bfs(self) -> None:
        """Print the fitted tree breadth first, one block per level."""
        print(self.tree_string(bfs=True))

    def export_rules(self, feature_names: Optional[List[str]] = None) -> List[str]:
        """
        Export one rule per terminal node.

        Returns
        -------
        list[str]
            Strings of the form ``"<antecedent> => value=<mean> (N=<rows>)"``;
            model-tree leaves report ``b=[...]`` instead of ``value``.
        """
        self._check_fitted()
        fn = self._maybe_feature_names(feature_names)
        rules: List[str] = []
        self._collect_rules(self.tree_, [], rules, fn)
        return rules

    def _collect_rules(self, node: TreeNode, parts: List[str], rules: List[str], fn=None):
        if len(node.children) < 2:
            antecedent = " AND ".join(parts) if parts else "<root>"
            rules.append(f"{antecedent} => {_leaf_label(node)} (N={node.n_samples})")
            return
        name = _feature_name(node.feature, fn)
        for ch in node.children:
            op = "<=" if ch.branch == LEFT else ">"
            self._collect_rules(ch, parts + [f"{name} {op} {node.threshold:.6g}"], rules, fn)

    def predict_rule(self, X, feature_names: Optional[List[str]] = None) -> List[str]:
        """Return the antecedent of the rule used for each row of ``X``."""
        self._check_fitted()
        X = np.atleast_2d(_as_float_array(X))
        self._check_width(X.shape[1])
        fn = self._maybe_feature_names(feature_names)
        return [self._trace_rule(z, fn) for z in X]

    def _trace_rule(self, z: np.ndarray, fn=None) -> str:
        parts = []
        nd = self.tree_
        while len(nd.children) >= 2:
            name = _feature_name(nd.feature, fn)
            if z[nd.feature] <= nd.threshold:
                parts.append(f"{name} <= {nd.threshold:.6g}")
                nd = nd.children[0]
            else:
                parts.append(f"{name} > {nd.threshold:.6g}")
                nd = nd.children[1]
        return " AND ".join(parts) if parts else "<root>"

    def apply(self, X) -> List[TreeNode]:
        """Terminal node reached by each row of ``X``."""
        self._check_fitted()
        X = np.atleast_2d(_as_float_array(X))
        self._check_width(X.shape[1])
        return [find_leaf(self.tree_, z) for z in X]

    def export_graphviz(self, filename: str = "regression_tree", feature_names: Optional[List[str]] = None,
                        format: str = "png") -> str:
        """
        Export the tree to Graphviz.

        With ``format='dot'`` the DOT source is written without calling the
        ``dot`` binary.  For other formats rendering is attempted and a
        ``.dot`` file is written instead if it fails.

        Returns
        -------
        str
            Path of the written file.

        Raises
        ------
        RuntimeError
            If the ``graphviz`` Python package is not installed.
        """
        self._check_fitted()
        fn = self._maybe_feature_names(feature_names)
        try:
            from graphviz import Digraph
        except ImportError as e:
            raise RuntimeError("Please install the 'graphviz' Python package.") from e
        dot = Digraph(comment=self.model_name, format=format)
        self._add_graph_nodes(dot, self.tree_, "root", fn)
        if format.lower() == "dot":
            path = f"{filename}.dot"
            dot.save(path)
            return path
        try:
            dot.render(filename, cleanup=True)
            return f"{filename}.{format}"
        except Exception:
            logger.info("export_graphviz: rendering failed, writing DOT source instead")
            fallback_path = f"{filename}.dot"
            dot.save(fallback_path)
            return fallback_path

    def _add_graph_nodes(self, dot, node: TreeNode, node_id: str, fn=None):
        if not node.children:
            dot.node(node_id, f"Leaf\n{_leaf_label(node)}\nN={node.n_samples}")
            return
        name = _feature_name(node.feature, fn)
        dot.node(node_id, f"{name} <= {node.threshold:.6g}\nN={node.n_samples}")
        for ch in node.children:
            child_id = node_id + ("L" if ch.branch == LEFT else "R")
            dot.edge(node_id, child_id, label="True" if ch.branch == LEFT else "False")
            self._add_graph_nodes(dot, ch, child_id, fn)


class RegressionTreeMT(RegressionTree):
    """
    Regression model tree: a :class:`RegressionTree` whose leaves hold a
    no-intercept least-squares model of their rows.

    Leaves with no more rows than columns fall back to the mean.  Prediction
    at a leaf with coefficients ``b`` is ``b @ z``.
    """

    model_name = "RegressionTreeMT"

    def _leaf_fitter(self):
        return RegressionLeaf()
