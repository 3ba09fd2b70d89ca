import logging
import numpy as np
import pytest

from regtreepy import Fit, QoF
from regtreepy.fit import mase


def test_diagnose_known_values():
    y = np.array([1.0, 2.0, 3.0, 4.0])
    yp = np.array([1.0, 2.0, 3.0, 5.0])
    qof = Fit(dfm=1, df=2).diagnose(y, yp)
    assert qof[QoF.sse] == pytest.approx(1.0)
    assert qof[QoF.sst] == pytest.approx(5.0)
    assert qof[QoF.rSq] == pytest.approx(0.8)
    assert qof[QoF.rSqBar] == pytest.approx(0.7)
    assert qof[QoF.mse0] == pytest.approx(0.25)
    assert qof[QoF.rmse] == pytest.approx(0.5)
    assert qof[QoF.mae] == pytest.approx(0.25)
    assert qof[QoF.fStat] == pytest.approx(8.0)
    assert 0.0 < qof[QoF.p_fS] < 1.0
    assert qof[QoF.m] == 4


def test_reset_df_changes_adjusted_r2():
    y = np.array([1.0, 2.0, 3.0, 4.0, 6.0, 5.0])
    yp = np.array([1.5, 2.0, 2.5, 4.0, 5.5, 5.5])
    fit = Fit(dfm=0, df=5)
    before = fit.diagnose(y, yp)
    fit.reset_df(3, 3)
    after = fit.diagnose(y, yp)
    assert before[QoF.rSq] == pytest.approx(after[QoF.rSq])
    assert after[QoF.rSqBar] < before[QoF.rSqBar]
    assert after[QoF.dfm] == 3


def test_negative_dof_is_a_flaw(caplog):
    fit = Fit(dfm=5, df=-2)
    with caplog.at_level(logging.WARNING, logger="regtreepy"):
        qof = fit.diagnose([1.0, 2.0, 3.0], [1.0, 2.5, 3.0])
    assert "degrees of freedom" in caplog.text
    assert qof[QoF.sse] == pytest.approx(0.25)


def test_perfect_fit():
    y = np.array([1.0, 2.0, 4.0])
    qof = Fit(dfm=1, df=1).diagnose(y, y)
    assert qof[QoF.rSq] == pytest.approx(1.0)
    assert qof[QoF.sse] == 0.0
    assert np.isnan(qof[QoF.aic])


def test_length_mismatch_raises():
    with pytest.raises(ValueError):
        Fit(1, 1).diagnose([1.0, 2.0], [1.0])


def test_report_and_map():
    fit = Fit(dfm=1, df=2)
    qof = fit.diagnose([1.0, 2.0, 3.0, 4.0], [1.0, 2.0, 3.0, 5.0])
    mapping = fit.fit_map(qof)
    assert set(mapping) == {q.name for q in QoF}
    text = fit.report(qof, "RegressionTree")
    assert "rSq" in text and "RegressionTree" in text


def test_qof_order():
    assert QoF.fStat == 12
    assert QoF.aic == 13
    assert QoF.smapeIC == 17
    assert QoF.p_fS == 18
    assert len(QoF) == 19


def test_mase_horizon():
    y = np.array([1.0, 2.0, 4.0])
    assert mase(y, y, h=0) == 0.0
    # lagged by one: (|2 - 1| + |4 - 2|) / 3 over the naive mae 1.5
    assert mase(y, y) == pytest.approx(2.0 / 3.0)
    with pytest.raises(ValueError):
        mase(y, y, h=-1)
