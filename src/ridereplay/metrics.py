"""
Module for collecting and logging metrics about a playback run.
"""

import argparse
import logging
from typing import List, NamedTuple, Tuple

from .playback import PlaybackState

logger = logging.getLogger(__name__)

# (simulated travel seconds to the frame's distance, state at that time)
Frame = Tuple[float, PlaybackState]


class PlaybackMetrics(NamedTuple):
    """Container for playback metrics data."""

    frame_count: int
    total_distance: float
    simulated_duration: float
    heading_changes: int
    max_heading_step: float


def heading_difference(heading1: float, heading2: float) -> float:
    """Smallest angle between two headings, in degrees [0, 180]."""
    diff = abs(heading1 - heading2) % 360.0
    return min(diff, 360.0 - diff)


def collect_metrics(frames: List[Frame], total_distance: float) -> PlaybackMetrics:
    """
    Collect metrics from the recorded frames of a playback run.

    Heading changes count the frames where the marker heading differs from the
    previous frame. Headings follow route segments, so each change is a step
    at a waypoint; max_heading_step shows how abrupt the largest one is.

    Args:
        frames: Recorded (time, state) pairs in order
        total_distance: Route length in meters

    Returns:
        PlaybackMetrics for the run
    """
    heading_changes = 0
    max_heading_step = 0.0

    for (_, previous), (_, current) in zip(frames, frames[1:]):
        step = heading_difference(previous.current_heading, current.current_heading)
        if step > 0:
            heading_changes += 1
            max_heading_step = max(max_heading_step, step)

    return PlaybackMetrics(
        frame_count=len(frames),
        total_distance=total_distance,
        simulated_duration=frames[-1][0] - frames[0][0] if frames else 0.0,
        heading_changes=heading_changes,
        max_heading_step=max_heading_step,
    )


def log_metrics(metrics: PlaybackMetrics, args: argparse.Namespace) -> None:
    """
    Log detailed metrics after the playback map is written.

    Args:
        metrics: PlaybackMetrics for the run
        args: argparse.Namespace object containing settings like metrics flag
    """
    if not args.metrics:
        return

    logger.debug("=== RIDEREPLAY_METRICS ===")
    logger.debug(f"frame_count={metrics.frame_count}")
    logger.debug(f"total_distance_m={metrics.total_distance:.1f}")
    logger.debug(f"simulated_duration_s={metrics.simulated_duration:.2f}")
    logger.debug(f"heading_changes={metrics.heading_changes}")
    logger.debug(f"max_heading_step_deg={metrics.max_heading_step:.1f}")
    logger.debug("=== END_RIDEREPLAY_METRICS ===")
