"""Recursive construction of regression trees.

:class:`TreeBuilder` grows a tree depth first.  At each partition every
column is scored with :func:`~regtreepy.splitting.fast_threshold`, the score
is confirmed with :func:`~regtreepy.splitting.check_split`, and the column
with the lowest total sse splits the rows.  Leaves are fitted by a pluggable
policy, which is the only difference between a regression tree and a
regression model tree.
"""
from __future__ import annotations
from typing import Callable, Optional, Tuple
import logging
import numpy as np

from .linear import fit_no_intercept
from .node import LEFT, RIGHT, ROOT, LeafCounter, TreeNode
from .splitting import NA_THRESHOLD, check_split, fast_threshold, split_rows

logger = logging.getLogger(__name__)

# ----------------------------- Leaf policies -----------------------------

class MeanLeaf:
    """Leaf parameters ``[mean(y)]``."""

    def __call__(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        return np.array([float(np.mean(y))])

    def __repr__(self) -> str:
        return "MeanLeaf()"


class RegressionLeaf:
    """Leaf parameters from a no-intercept linear fit of the partition.

    Falls back to the mean when the partition has no more rows than columns,
    and for single-column data, where a one-element parameter vector would
    be read back as a mean.
    """

    def __init__(self, solver: Callable[[np.ndarray, np.ndarray], np.ndarray] = fit_no_intercept):
        self.solver = solver

    def __call__(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        m, n = x.shape
        if m <= n or n == 1:
            return np.array([float(np.mean(y))])
        return np.asarray(self.solver(x, y), dtype=float)

    def __repr__(self) -> str:
        return f"RegressionLeaf(solver={getattr(self.solver, '__name__', self.solver)!r})"

# ----------------------------- Builder -----------------------------

class TreeBuilder:
    """
    Grow a regression tree.

    Parameters
    ----------
    max_depth : int
        Children of a node at depth ``max_depth - 1`` are always leaves.
    leaf_fitter : callable
        ``leaf_fitter(x, y) -> params`` for the rows reaching a leaf.
    tol : float, default=1e-6
        Absolute tolerance of the sse check.
    leaves : LeafCounter, optional
        Counter incremented once per leaf.  A new one is created if omitted.
    """

    def __init__(self, max_depth: int, leaf_fitter: Callable[[np.ndarray, np.ndarray], np.ndarray],
                 tol: float = 1e-6, leaves: Optional[LeafCounter] = None):
        if int(max_depth) < 1:
            raise ValueError("max_depth must be >= 1")
        self.max_depth = int(max_depth)
        self.leaf_fitter = leaf_fitter
        self.tol = float(tol)
        self.leaves = leaves if leaves is not None else LeafCounter()

    def build(self, x: np.ndarray, y: np.ndarray) -> TreeNode:
        """Build the tree for the full training data and return its root."""
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        m, n = x.shape
        if y.shape[0] != m:
            raise ValueError(f"y has {y.shape[0]} values but x has {m} rows")
        if m < n:
            raise ValueError(f"need at least as many rows as columns to build a tree (got {m} x {n})")
        return self._grow(x, y, depth=0, branch=ROOT, parent_feature=-1, parent_threshold=-1.0)

    def score_columns(self, x: np.ndarray, y: np.ndarray, depth: int = 0) -> Tuple[np.ndarray, np.ndarray]:
        """
        Best threshold and total sse for every column of a partition.

        Columns whose candidate fails :func:`check_split` get the threshold
        ``-0.0`` and an infinite score, which keeps them out of this split
        decision only.
        """
        n = x.shape[1]
        thresholds = np.empty(n, dtype=float)
        scores = np.empty(n, dtype=float)
        ssy = float(y @ y)
        for j in range(n):
            xj = x[:, j]
            thr, sse_t, splittable = fast_threshold(xj, y, ssy)
            if check_split(xj, y, thr, ssy, sse_t, depth=depth, feature=j,
                           splittable=splittable, tol=self.tol):
                thresholds[j] = thr
                scores[j] = sse_t
            else:
                thresholds[j] = NA_THRESHOLD
                scores[j] = np.inf
        return thresholds, scores

    def _grow(self, x: np.ndarray, y: np.ndarray, depth: int, branch: int,
              parent_feature: int, parent_threshold: float) -> TreeNode:
        thresholds, scores = self.score_columns(x, y, depth)
        j = int(np.argmin(scores))
        thr = float(thresholds[j])
        logger.debug("train: optimal (variable, score) = (%d, %r)", j, scores[j])

        if not np.isfinite(scores[j]):
            # no column can split these rows; a leaf shows its parent split
            self.leaves.inc()
            if parent_feature >= 0:
                j, thr = parent_feature, parent_threshold
                logger.warning("[flaw] buildTree: no valid split for %d rows at depth %d, forced leaf",
                               x.shape[0], depth)
            node = TreeNode(j, branch, self.leaf_fitter(x, y), thr, depth,
                            parent_threshold, parent_feature, is_leaf=True, n_samples=x.shape[0])
            logger.debug("buildTree: --> forced leaf %s", node)
            return node

        node = TreeNode(j, branch, [float(np.mean(y))], thr, depth, parent_threshold, parent_feature,
                        n_samples=x.shape[0])
        logger.debug("buildTree: --> Add root = %s", node)

        for side, rows in zip((LEFT, RIGHT), split_rows(x[:, j], thr)):
            if rows.size == 0:
                continue
            xx, yy = x[rows], y[rows]
            if depth == self.max_depth - 1 or xx.shape[0] <= xx.shape[1]:
                self.leaves.inc()
                child = TreeNode(j, side, self.leaf_fitter(xx, yy), thr, depth + 1,
                                 thr, j, is_leaf=True, n_samples=xx.shape[0])
            else:
                child = self._grow(xx, yy, depth + 1, side, j, thr)
            node.children.append(child)
            logger.debug("buildTree: --> Add child = %s", child)
        return node
