from __future__ import annotations

from rppg_core.framerate import FrameRateEstimator


def test_frame_rate_estimator_reports_per_window() -> None:
    est = FrameRateEstimator(period_ms=2000.0)
    rates = [est.tick(i * 40.0) for i in range(60)]  # 25 fps
    reported = [r for r in rates if r is not None]
    assert reported == [25]
    assert rates.index(25) == 51  # first tick beyond 2000 ms


def test_frame_rate_estimator_restarts_window() -> None:
    est = FrameRateEstimator(period_ms=1000.0)
    rates = [est.tick(i * 100.0) for i in range(40)]  # 10 fps
    assert [r for r in rates if r is not None] == [11, 10, 10]


def test_frame_rate_estimator_reset() -> None:
    est = FrameRateEstimator(period_ms=1000.0)
    for i in range(5):
        est.tick(i * 100.0)
    est.reset()
    assert est.tick(10_000.0) is None
    assert est.tick(10_500.0) is None
