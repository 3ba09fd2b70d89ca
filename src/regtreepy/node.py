"""Tree nodes, the shared leaf counter and tree traversal."""
from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from typing import Iterator, List, Tuple
import numpy as np

# branch tags
ROOT, LEFT, RIGHT = -1, 0, 1

# ----------------------------- Leaf counter -----------------------------

class LeafCounter:
    """Mutable leaf count shared by every recursive call of one tree build.

    Not thread-safe: a parallel build would have to sum per-subtree counts
    after the subtrees finish instead of sharing one instance.
    """

    def __init__(self, start: int = 0):
        self._count = int(start)

    def inc(self) -> int:
        self._count += 1
        return self._count

    def get(self) -> int:
        return self._count

    def __int__(self) -> int:
        return self._count

    def __repr__(self) -> str:
        return f"LeafCounter({self._count})"

# ----------------------------- Node -----------------------------

@dataclass(eq=False)
class TreeNode:
    """
    One node of a regression tree.

    Parameters
    ----------
    feature : int
        Column used to split at this node.  A leaf keeps its parent's feature
        for display.
    branch : int
        ``ROOT`` (-1), ``LEFT`` (0) or ``RIGHT`` (1): the side of the parent
        split that produced this node.
    params : ndarray
        Length 1 holds the mean prediction; longer vectors hold the
        coefficients of a leaf-local linear model.
    threshold : float
        Split boundary for ``feature``; a leaf copies its parent's threshold.
    depth : int
        Distance from the root (root = 0).
    parent_threshold, parent_feature
        Parent split, -1 for the root.
    is_leaf : bool
        Whether the node is terminal.
    n_samples : int
        Number of training rows that reached the node.
    children : list of TreeNode
        Zero, one or two children, left before right.  A side that received
        no training rows has no child.
    """
    feature: int
    branch: int
    params: np.ndarray
    threshold: float
    depth: int
    parent_threshold: float = -1.0
    parent_feature: int = -1
    is_leaf: bool = False
    n_samples: int = 0
    children: List['TreeNode'] = field(default_factory=list)

    def __post_init__(self):
        self.params = np.atleast_1d(np.asarray(self.params, dtype=float))

    @property
    def n_leaves(self) -> int:
        if self.is_leaf:
            return 1
        return sum(ch.n_leaves for ch in self.children)

    def value(self, z: np.ndarray) -> float:
        """Prediction of this node for row ``z`` (mean or linear model)."""
        if self.params.shape[0] == 1:
            return float(self.params[0])
        return float(np.dot(self.params, z))

    def __str__(self) -> str:
        if not self.children:
            return f"Leaf (branch = {self.branch}, feature = x{self.feature}, b = {_fmt_params(self.params)})"
        if self.depth == 0:
            return f"Root (feature = x{self.feature}, threshold = {self.threshold:.6g})"
        return f"Node (branch = {self.branch}, feature = x{self.feature}, threshold = {self.threshold:.6g})"


def _fmt_params(b: np.ndarray) -> str:
    return "[" + ", ".join(f"{v:.6g}" for v in b) + "]"

# ----------------------------- Traversal -----------------------------

def iter_preorder(root: TreeNode) -> Iterator[Tuple[TreeNode, int]]:
    """Yield ``(node, level)`` in pre-order."""
    stack = [(root, 0)]
    while stack:
        node, level = stack.pop()
        yield node, level
        for ch in reversed(node.children):
            stack.append((ch, level + 1))


def iter_bfs(root: TreeNode) -> Iterator[List[TreeNode]]:
    """Yield the nodes of each level, root level first."""
    queue = deque([root])
    while queue:
        level = list(queue)
        queue.clear()
        yield level
        for node in level:
            queue.extend(node.children)


def leaves(root: TreeNode) -> List[TreeNode]:
    return [node for node, _ in iter_preorder(root) if node.is_leaf]

# ----------------------------- Prediction -----------------------------

def find_leaf(root: TreeNode, z: np.ndarray) -> TreeNode:
    """Follow the splits from ``root`` to the terminal node for row ``z``.

    Only nodes with two children are descended, so a node that lost one side
    during training is terminal for prediction.
    """
    nd = root
    while len(nd.children) >= 2:
        nd = nd.children[0] if z[nd.feature] <= nd.threshold else nd.children[1]
    return nd


def predict_row(root: TreeNode, z: np.ndarray) -> float:
    return find_leaf(root, z).value(z)
