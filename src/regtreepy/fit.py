"""Quality-of-fit (QoF) diagnostics for fitted regression models.

:class:`Fit` turns actual and predicted responses into a QoF vector whose
entries are indexed by :class:`QoF`.  Tree models only know their model
degrees of freedom (the number of leaves) after the tree is built, so they
call :meth:`Fit.reset_df` before diagnosing.
"""
from __future__ import annotations
from enum import IntEnum
from typing import Dict
import logging
import math
import numpy as np
from scipy import stats
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score

logger = logging.getLogger(__name__)

PIC = 2.0   # penalty multiplier for the sMAPE information criterion


class QoF(IntEnum):
    rSq = 0
    rSqBar = 1
    sst = 2
    sse = 3
    sde = 4
    mse0 = 5
    rmse = 6
    mae = 7
    smape = 8
    m = 9
    dfm = 10
    df = 11
    fStat = 12
    aic = 13
    bic = 14
    mape = 15
    mase = 16
    smapeIC = 17
    p_fS = 18


QOF_HELP = {
    "rSq": "coefficient of determination, R^2",
    "rSqBar": "R^2 adjusted for degrees of freedom",
    "sst": "sum of squares total",
    "sse": "sum of squares for error",
    "sde": "standard deviation of the errors",
    "mse0": "raw mean squared error (sse / m)",
    "rmse": "root mean squared error",
    "mae": "mean absolute error",
    "smape": "symmetric mean absolute percentage error",
    "m": "number of instances",
    "dfm": "degrees of freedom taken by the model",
    "df": "degrees of freedom left for the errors",
    "fStat": "F statistic",
    "aic": "Akaike information criterion",
    "bic": "Bayesian information criterion",
    "mape": "mean absolute percentage error",
    "mase": "mean absolute scaled error",
    "smapeIC": "sMAPE information criterion",
    "p_fS": "p-value of the F statistic",
}


def smape(y: np.ndarray, yp: np.ndarray) -> float:
    den = np.abs(y) + np.abs(yp)
    ratio = np.divide(np.abs(y - yp), den, out=np.zeros_like(den), where=den != 0)
    return float(200.0 * ratio.mean())


def mase(y: np.ndarray, yp: np.ndarray, h: int = 1) -> float:
    """
    MAE of ``yp`` relative to the MAE of the one-step naive forecast of ``y``.

    ``yp[t - h]`` is compared with ``y[t]``, so ``h`` is the forecasting
    horizon; ``h = 0`` compares aligned responses, as a regression model does.
    """
    y = np.asarray(y, dtype=float)
    yp = np.asarray(yp, dtype=float)
    if h < 0:
        raise ValueError("h must be >= 0")
    naive = float(np.mean(np.abs(np.diff(y)))) if y.shape[0] > 1 else 0.0
    if naive == 0.0:
        return float("nan")
    err = float(np.abs(y[h:] - yp[:yp.shape[0] - h]).sum()) / yp.shape[0]
    return err / naive


def mape(y: np.ndarray, yp: np.ndarray) -> float:
    ay = np.abs(y)
    if np.any(ay == 0.0):
        return float("inf")
    return float(100.0 * np.mean(np.abs(y - yp) / ay))


class Fit:
    """
    Degrees-of-freedom-aware QoF diagnostics.

    Parameters
    ----------
    dfm : float
        Degrees of freedom taken by the model.
    df : float
        Degrees of freedom left for the errors.
    """

    def __init__(self, dfm: float, df: float):
        self.reset_df(dfm, df)

    def reset_df(self, dfm: float, df: float) -> None:
        """Replace the degrees of freedom once they are known."""
        self.dfm = float(dfm)
        self.df = float(df)
        df_t = self.dfm + self.df
        # ratio total / error, guarded for less than one error dof
        self.r_df = df_t / self.df if self.df > 1.0 else self.dfm + 1.0
        logger.debug("reset_df: dfm = %r, df = %r", self.dfm, self.df)

    def diagnose(self, y, yp) -> np.ndarray:
        """Return the QoF vector for actual ``y`` and predicted ``yp``."""
        y = np.asarray(y, dtype=float).ravel()
        yp = np.asarray(yp, dtype=float).ravel()
        m = y.shape[0]
        if yp.shape[0] != m:
            raise ValueError(f"yp has {yp.shape[0]} values but y has {m}")
        if m < 2:
            logger.warning("[flaw] diagnose: requires at least 2 responses, m = %d", m)
        if self.dfm < 0 or self.df < 0:
            logger.warning("[flaw] diagnose: degrees of freedom dfm = %r and df = %r must be non-negative",
                           self.dfm, self.df)

        e = y - yp
        sse = float(e @ e)
        sst = float(np.sum((y - y.mean()) ** 2))
        ssr = sst - sse
        mse0 = mean_squared_error(y, yp)
        r_sq = float(r2_score(y, yp)) if m >= 2 else float("nan")

        dfm, df = self.dfm, self.df
        msr = 0.0 if dfm == 0 else ssr / dfm
        mse = sse / df if df > 0 else float("nan")
        f_stat = msr / mse if mse > 0 else float("nan")
        p_fs = float(stats.f.sf(f_stat, dfm, df)) if dfm > 0 and df > 0 and np.isfinite(f_stat) else float("nan")

        sig2e = float(np.var(e))
        k = dfm + 1.0                      # + 1 for the error variance
        if sig2e > 0.0:
            ll = -m / 2.0 * (math.log(2.0 * math.pi) + math.log(sig2e) + mse0 / sig2e)
            aic = -2.0 * ll + 2.0 * k
            bic = aic + k * (math.log(m) - 2.0)
        else:
            aic = bic = float("nan")

        sm = smape(y, yp)
        qof = np.empty(len(QoF), dtype=float)
        qof[QoF.rSq] = r_sq
        qof[QoF.rSqBar] = 1.0 - (1.0 - r_sq) * self.r_df
        qof[QoF.sst] = sst
        qof[QoF.sse] = sse
        qof[QoF.sde] = float(np.std(e, ddof=1)) if m > 1 else 0.0
        qof[QoF.mse0] = mse0
        qof[QoF.rmse] = math.sqrt(mse0)
        qof[QoF.mae] = mean_absolute_error(y, yp)
        qof[QoF.smape] = sm
        qof[QoF.m] = m
        qof[QoF.dfm] = dfm
        qof[QoF.df] = df
        qof[QoF.fStat] = f_stat
        qof[QoF.p_fS] = p_fs
        qof[QoF.aic] = aic
        qof[QoF.bic] = bic
        qof[QoF.mape] = mape(y, yp)
        qof[QoF.mase] = mase(y, yp, h=0)
        qof[QoF.smapeIC] = sm + PIC * k / m
        return qof

    @staticmethod
    def fit_map(qof: np.ndarray) -> Dict[str, float]:
        return {q.name: float(qof[q]) for q in QoF}

    def report(self, qof: np.ndarray, model_name: str = "model") -> str:
        lines = [f"REPORT  {model_name}", "-" * 60]
        for q in QoF:
            lines.append(f"{q.name:>8} = {qof[q]:<14.6g} {QOF_HELP[q.name]}")
        return "\n".join(lines)
