"""
Hyperparameter map shared by the regression tree family.

The map keeps the option names of the wider tree family, ensemble options
included, so a map written for a forest or boosted model can also configure
a single tree; options a single tree has no use for are ignored.  A single tree
splits according to ``maxDepth`` only; ``threshold`` is the parent threshold
shown on child nodes, which the builder takes from the actual parent split::

    hp = dict(DEFAULT_HPARAMS, maxDepth=3)
    model = RegressionTree.from_hparams(hp)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

logger = logging.getLogger(__name__)

DEFAULT_HPARAMS: Dict[str, Any] = {
    "maxDepth": 5,          # depth limit
    "threshold": 0.1,       # parent threshold shown on child nodes (informational)
    "cutoff": 0.01,         # ensemble wrappers only
    "bRatio": 0.7,
    "fbRatio": 0.7,
    "nTrees": 9,
    "iterations": 9,
}

TREE_KEYS = ("maxDepth", "threshold")


def tree_params(hparam: Mapping[str, Any]) -> Dict[str, Any]:
    """Translate an hparam map into estimator keyword arguments.

    Raises ``ValueError`` for keys outside :data:`DEFAULT_HPARAMS` and for a
    ``maxDepth`` that is not an integer >= 1.
    """
    unknown = [k for k in hparam if k not in DEFAULT_HPARAMS]
    if unknown:
        raise ValueError(f"Unknown hyperparameter(s): {unknown}")
    ignored = sorted(k for k in hparam if k not in TREE_KEYS)
    if ignored:
        logger.debug("tree_params: ignoring ensemble options %s", ignored)

    max_depth = hparam.get("maxDepth", DEFAULT_HPARAMS["maxDepth"])
    if isinstance(max_depth, bool) or int(max_depth) != max_depth or int(max_depth) < 1:
        raise ValueError("maxDepth must be an integer >= 1")
    if not isinstance(hparam.get("threshold", 0.0), (int, float)):
        raise ValueError("threshold must be a real number")
    return {"max_depth": int(max_depth)}
