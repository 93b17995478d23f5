from __future__ import annotations

import dataclasses

import pytest

from rppg_core.buffers import MotionTracker, RGBSample, ROICenter, SampleBuffer


def _s(i: int) -> RGBSample:
    return RGBSample(100.0, 100.0 + i, 100.0, float(i))


def test_sample_is_immutable() -> None:
    with pytest.raises(dataclasses.FrozenInstanceError):
        _s(0).r = 1.0  # type: ignore[misc]


def test_sample_buffer_evicts_oldest() -> None:
    buf = SampleBuffer(sample_rate=30.0, seconds=15.0)
    assert buf.capacity == 450
    for i in range(1000):
        buf.add(_s(i))
        assert len(buf) <= 450
    assert buf.samples()[0].timestamp == 550.0
    assert buf.as_array().shape == (450, 3)


def test_rate_change_applies_on_next_trim() -> None:
    buf = SampleBuffer(sample_rate=30.0)
    for i in range(450):
        buf.add(_s(i))
    buf.set_sample_rate(10.0)
    assert len(buf) == 450
    buf.add(_s(450))
    assert len(buf) == 150
    assert buf.samples()[-1].timestamp == 450.0


def test_motion_tracker_capacity() -> None:
    mt = MotionTracker(capacity=60)
    for i in range(200):
        mt.add(ROICenter(float(i), 0.0))
    assert len(mt) == 60
    assert mt.recent(3) == [ROICenter(197.0, 0.0), ROICenter(198.0, 0.0), ROICenter(199.0, 0.0)]
    mt.clear()
    assert len(mt) == 0
