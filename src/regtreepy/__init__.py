# regtreepy/__init__.py
"""
regtreepy: regression trees and regression model trees (scikit-learn style).

Exports:
    - RegressionTree
    - RegressionTreeMT
    - TreeNode, LeafCounter
    - Fit, QoF
    - DEFAULT_HPARAMS
"""
import logging

from ._params import DEFAULT_HPARAMS
from .fit import Fit, QoF
from .node import LeafCounter, TreeNode
from .regressor import RegressionTree, RegressionTreeMT, rescaled

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = ["RegressionTree", "RegressionTreeMT", "TreeNode", "LeafCounter",
           "Fit", "QoF", "DEFAULT_HPARAMS", "rescaled"]
__version__ = "0.1.0"
