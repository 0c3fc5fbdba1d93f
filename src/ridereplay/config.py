from dataclasses import dataclass
from typing import Tuple
import math

DEFAULT_BASE_SPEED_KMH = 60.0
DEFAULT_BASE_SPEED_MPS = DEFAULT_BASE_SPEED_KMH * 1000 / 3600


@dataclass
class PlaybackConfig:
    """Configuration for route playback."""

    base_speed_kmh: float = DEFAULT_BASE_SPEED_KMH
    restart_threshold: float = 0.99
    speed_presets: Tuple[float, ...] = (1, 2, 5, 10)
    frame_interval: float = 1 / 60
    log_level: str = "INFO"
    metrics: bool = False

    def __post_init__(self):
        if not math.isfinite(self.base_speed_kmh) or self.base_speed_kmh <= 0:
            raise ValueError(
                f"Base speed must be a positive number, got {self.base_speed_kmh}"
            )
        if not self.speed_presets:
            raise ValueError("At least one speed preset is required")
        for preset in self.speed_presets:
            if not math.isfinite(preset) or preset <= 0:
                raise ValueError(
                    f"Speed presets must be positive numbers, got {preset}"
                )
        if not math.isfinite(self.frame_interval) or self.frame_interval <= 0:
            raise ValueError(
                f"Frame interval must be a positive number, got {self.frame_interval}"
            )

    @property
    def base_speed_mps(self) -> float:
        """Base playback speed in meters per second."""
        return self.base_speed_kmh * 1000 / 3600
