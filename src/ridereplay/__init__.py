#!/usr/bin/env python3
"""
Ridereplay - A playback engine for recorded GPS routes.

This package reconstructs a smooth, time-driven traversal of a recorded route
so a map can animate a marker retracing the trip, with play, pause, seek and
speed controls.
"""
import importlib.metadata

__version__ = importlib.metadata.version("ridereplay")

# Import main classes for public API
from .config import PlaybackConfig
from .geometry import (
    Position,
    calculate_bearing,
    haversine_distance,
    interpolate_position,
)
from .playback import PlaybackController, PlaybackState, frame_state
from .profile import (
    ResolvedPosition,
    RouteProfile,
    build_route_profile,
    position_at_distance,
)
from .route import Route
from .scheduler import (
    AsyncioFrameScheduler,
    FrameScheduler,
    ManualClock,
    ManualFrameScheduler,
)

__all__ = [
    "PlaybackConfig",
    "Position",
    "calculate_bearing",
    "haversine_distance",
    "interpolate_position",
    "PlaybackController",
    "PlaybackState",
    "frame_state",
    "ResolvedPosition",
    "RouteProfile",
    "build_route_profile",
    "position_at_distance",
    "Route",
    "AsyncioFrameScheduler",
    "FrameScheduler",
    "ManualClock",
    "ManualFrameScheduler",
]
