"""Exact threshold selection, split checking and row partitioning.

These are the building blocks used by :class:`regtreepy.builder.TreeBuilder`
at every partition: score each column with :func:`fast_threshold`, confirm
the score with :func:`check_split` and divide the rows of the winning column
with :func:`split_rows`.
"""
from __future__ import annotations
from typing import NamedTuple, Tuple
import logging
import numpy as np

logger = logging.getLogger(__name__)

# threshold stored for a column whose candidate failed the check
NA_THRESHOLD = -0.0

# ----------------------------- Helpers -----------------------------

def _safe_div(a: float, b: float, default: float = 0.0) -> float:
    return a / b if b != 0.0 else default


class Threshold(NamedTuple):
    """Result of a threshold search on one column.

    ``splittable`` is False when no split point exists (every value in the
    column is the same, the partition holds a single row, or no candidate
    improves on the unsplit score); ``threshold`` is then 0.0 and ``sse``
    equals ``ssy``.
    """
    threshold: float
    sse: float
    splittable: bool

# ----------------------------- Threshold selection -----------------------------

def fast_threshold(xj: np.ndarray, y: np.ndarray, ssy: float) -> Threshold:
    """
    Find the split point of column ``xj`` minimising the total sse in O(n log n).

    Rows are ordered by ``xj`` and moved one at a time from the right side to
    the left side.  Wherever two consecutive sorted values differ, the split
    score ``sL**2/nL + sR**2/nR`` is evaluated; the threshold is the midpoint
    of the two values at the best score.  Among equal best scores the first
    (lowest) split point is kept.

    Parameters
    ----------
    xj : ndarray of shape (n,)
        One feature column of the current partition.
    y : ndarray of shape (n,)
        Response values aligned with ``xj``.
    ssy : float
        Sum of squared responses ``y @ y`` (shared by all columns).

    Returns
    -------
    Threshold
        ``(threshold, sse, splittable)`` where ``sse = ssy - best_score``.
    """
    xj = np.asarray(xj, dtype=float)
    y = np.asarray(y, dtype=float)
    n = xj.shape[0]
    if n < 2:
        return Threshold(0.0, float(ssy), False)

    order = np.argsort(xj, kind="mergesort")
    v = xj[order]

    # prefix sums: position i has rows 0..i on the left
    s_left = np.cumsum(y[order])[:-1]
    s_right = float(y.sum()) - s_left
    n_left = np.arange(1, n, dtype=float)
    n_right = n - n_left

    # no trial where consecutive values are equal
    boundaries = np.nonzero(v[1:] > v[:-1])[0]
    if boundaries.size == 0:
        return Threshold(0.0, float(ssy), False)

    scores = (s_left[boundaries] ** 2 / n_left[boundaries]
              + s_right[boundaries] ** 2 / n_right[boundaries])
    k = int(np.argmax(scores))                      # first maximal score wins
    hi_score = float(scores[k])
    if not hi_score > 0.0:
        return Threshold(0.0, float(ssy), False)

    i = boundaries[k]
    thr = 0.5 * (float(v[i]) + float(v[i + 1]))
    logger.debug("fast_threshold: (thr, sse) = (%r, %r)", thr, ssy - hi_score)
    return Threshold(thr, float(ssy) - hi_score, True)

# ----------------------------- Checking -----------------------------

def sse_lr(xj: np.ndarray, y: np.ndarray, thr: float, ssy: float) -> float:
    """Total sse of splitting ``xj`` at ``thr``, computed directly in O(n)."""
    xj = np.asarray(xj, dtype=float)
    y = np.asarray(y, dtype=float)
    left = xj <= thr
    n_l = int(left.sum())
    n_r = xj.shape[0] - n_l
    s_l = float(y[left].sum())
    s_r = float(y[~left].sum())
    return float(ssy) - _safe_div(s_l * s_l, n_l) - _safe_div(s_r * s_r, n_r)


def check_split(xj: np.ndarray, y: np.ndarray, thr: float, ssy: float, sse_t: float,
                depth: int = 0, feature: int = 0, splittable: bool = True,
                tol: float = 1e-6) -> bool:
    """
    Verify a threshold and its sse against a direct recomputation.

    A threshold outside ``[min(xj), max(xj)]`` is reported as a flaw but does
    not fail the check; only agreement of ``sse_t`` with :func:`sse_lr`
    (absolute tolerance ``tol``) decides.  A candidate flagged as not
    ``splittable`` always fails.

    Returns
    -------
    bool
        True when column ``feature`` may compete for the current split.
    """
    if not splittable:
        logger.debug("check (d = %d) x%d has no split point", depth, feature)
        return False
    xj = np.asarray(xj, dtype=float)
    lo, hi = float(xj.min()), float(xj.max())
    if thr < lo or hi < thr:
        logger.warning("[flaw] check: thr = %r outside range of x%d [%r, %r]", thr, feature, lo, hi)

    sse_direct = sse_lr(xj, y, thr, ssy)
    logger.debug("check (d = %d) x%d with threshold %r <= thr = %r <= %r, sse_t = %r, sse_lr = %r",
                 depth, feature, lo, thr, hi, sse_t, sse_direct)
    okay = abs(sse_t - sse_direct) < tol
    if not okay:
        logger.warning("[flaw] check: sse mismatch for x%d at depth %d (%r vs %r)",
                       feature, depth, sse_t, sse_direct)
    return okay

# ----------------------------- Partitioning -----------------------------

def split_rows(xj: np.ndarray, thr: float) -> Tuple[np.ndarray, np.ndarray]:
    """Row indices going left (``xj <= thr``) and right (``xj > thr``)."""
    xj = np.asarray(xj, dtype=float)
    left = xj <= thr
    return np.flatnonzero(left), np.flatnonzero(~left)
