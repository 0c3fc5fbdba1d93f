import math

import pytest

from ridereplay.config import PlaybackConfig


def test_defaults():
    config = PlaybackConfig()
    assert config.base_speed_kmh == 60.0
    assert config.base_speed_mps == pytest.approx(60 / 3.6)
    assert config.speed_presets == (1, 2, 5, 10)
    assert config.restart_threshold == 0.99


@pytest.mark.parametrize(
    "presets",
    [(), (1, 0), (-2,), (1, math.nan), (math.inf, 2)],
)
def test_rejects_bad_speed_presets(presets):
    with pytest.raises(ValueError):
        PlaybackConfig(speed_presets=presets)


def test_accepts_fractional_presets():
    config = PlaybackConfig(speed_presets=(0.5, 1, 4))
    assert config.speed_presets == (0.5, 1, 4)


@pytest.mark.parametrize("value", [0.0, -1.0, math.nan, math.inf])
def test_rejects_bad_base_speed(value):
    with pytest.raises(ValueError):
        PlaybackConfig(base_speed_kmh=value)


@pytest.mark.parametrize("value", [0.0, -0.1, math.nan])
def test_rejects_bad_frame_interval(value):
    with pytest.raises(ValueError):
        PlaybackConfig(frame_interval=value)
