from __future__ import annotations

import pytest

from rppg_core.buffers import RGBSample
from synthetic import make_pulse_samples


@pytest.fixture
def pulse_samples() -> list[RGBSample]:
    return make_pulse_samples()
