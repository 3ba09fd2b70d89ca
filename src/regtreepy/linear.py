"""Least-squares solver used to fit model-tree leaves."""
from __future__ import annotations
import numpy as np
from sklearn.linear_model import LinearRegression


def fit_no_intercept(x: np.ndarray, y: np.ndarray) -> np.ndarray:
    """Coefficients of the ordinary least squares fit of ``y`` on ``x`` without intercept."""
    reg = LinearRegression(fit_intercept=False)
    reg.fit(np.asarray(x, dtype=float), np.asarray(y, dtype=float))
    return np.asarray(reg.coef_, dtype=float).ravel()
