from __future__ import annotations

import numpy as np

from rppg_core.preprocess import (
    FilterState,
    bandpass,
    biquad_step,
    butterworth_bandpass,
    detrend,
    detrend_moving_average,
    filter_signal,
    normalize,
)


def test_detrend_removes_linear_ramp() -> None:
    rng = np.random.RandomState(0)
    n = 300
    x = 0.5 * np.arange(n) + 10.0 + 0.1 * rng.randn(n)
    y = detrend(x)
    slope, intercept = np.polyfit(np.arange(n), y, 1)
    assert abs(slope) < 1e-9
    assert abs(intercept) < 1e-6


def test_detrend_short_signal_is_copied() -> None:
    x = np.array([3.0])
    y = detrend(x)
    assert np.array_equal(y, x)
    assert y is not x


def test_detrend_moving_average() -> None:
    x = np.ones(50) * 7.0
    assert np.allclose(detrend_moving_average(x, 9), 0.0)
    # Interior of a ramp equals its centered mean
    ramp = np.arange(50, dtype=np.float64)
    y = detrend_moving_average(ramp, 9)
    assert np.allclose(y[4:-4], 0.0)
    # Clipped window at the left edge: mean of [0..4] = 2
    assert np.isclose(y[0], -2.0)


def test_normalize_zero_mean_unit_variance() -> None:
    x = np.random.RandomState(1).randn(200) * 3.0 + 5.0
    y = normalize(x)
    assert abs(y.mean()) < 1e-12
    assert abs(y.std() - 1.0) < 1e-12


def test_normalize_flat_signal_is_zero() -> None:
    y = normalize(np.full(64, 42.0))
    assert y.shape == (64,)
    assert np.all(y == 0.0)
    assert normalize(np.zeros(0)).size == 0


def test_butterworth_coefficients() -> None:
    c = butterworth_bandpass(0.7, 4.0, 30.0)
    assert c.b1 == 0.0
    assert np.isclose(c.b2, -c.b0)
    # Poles inside the unit circle
    poles = np.roots([1.0, c.a1, c.a2])
    assert np.all(np.abs(poles) < 1.0)


def test_streaming_matches_batch() -> None:
    x = np.random.RandomState(2).randn(256)
    coeffs = butterworth_bandpass(0.7, 4.0, 30.0)
    state = FilterState()
    streamed = np.array([biquad_step(float(v), coeffs, state) for v in x])
    assert np.allclose(streamed, filter_signal(x, coeffs), atol=1e-12)
    assert state.x1 == x[-1] and state.x2 == x[-2]


def test_bandpass_preserves_inband_and_attenuates_outband() -> None:
    fs = 30.0
    t = np.arange(0, 30.0, 1 / fs)
    tail = slice(t.size // 2, None)  # skip the start-up transient

    inband = np.sin(2 * np.pi * 1.5 * t)
    y_in = bandpass(inband, fs=fs, fmin=0.7, fmax=4.0)
    gain_in = np.std(y_in[tail]) / np.std(inband[tail])
    assert 0.8 < gain_in < 1.1

    outband = np.sin(2 * np.pi * 12.0 * t)
    y_out = bandpass(outband, fs=fs, fmin=0.7, fmax=4.0)
    gain_out = np.std(y_out[tail]) / np.std(outband[tail])
    assert gain_out < 0.35


def test_bandpass_is_stable_on_noise() -> None:
    x = np.random.RandomState(3).uniform(-1.0, 1.0, 5000)
    y = bandpass(x, fs=30.0)
    assert np.isfinite(y).all()
    assert np.max(np.abs(y)) < 5.0
