#!/usr/bin/env python3
"""
Playback clock and controller.

A PlaybackController animates a marker along a Route. Play, pause, seek and
speed changes are synchronous; movement happens in frame callbacks requested
from a FrameScheduler. Each frame converts wall-clock time since the current
anchor into distance travelled and resolves that distance to a position and
heading on the route.
"""

from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, List, NamedTuple, Optional, Sequence, Union
import logging
import math
import time

from .config import DEFAULT_BASE_SPEED_MPS, PlaybackConfig
from .geometry import Position, calculate_bearing
from .profile import ResolvedPosition, RouteProfile, position_at_distance
from .route import Route
from .scheduler import AsyncioFrameScheduler, FrameScheduler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlaybackState:
    """Snapshot of everything a renderer needs to draw the marker."""

    is_playing: bool
    progress: float
    speed_multiplier: float
    current_position: Optional[Position]
    current_heading: float


class FrameResult(NamedTuple):
    """Outcome of one animation frame."""

    distance: float
    progress: float
    resolved: Optional[ResolvedPosition]
    finished: bool


Observer = Callable[[PlaybackState], None]


def frame_state(
    coords: Sequence[Position],
    profile: RouteProfile,
    elapsed: float,
    speed_multiplier: float,
    start_distance: float = 0.0,
    base_speed_mps: float = DEFAULT_BASE_SPEED_MPS,
) -> FrameResult:
    """
    Compute where playback is after elapsed seconds of the current run.

    Args:
        coords: Route positions
        profile: Profile built from coords
        elapsed: Seconds since the run was anchored
        speed_multiplier: Playback rate relative to base_speed_mps
        start_distance: Distance already covered when the run was anchored
        base_speed_mps: Travel speed at multiplier 1, in meters per second

    Returns:
        FrameResult. A zero-length route is finished on its first frame.
    """
    total = profile.total_distance
    distance = start_distance + max(0.0, elapsed) * base_speed_mps * speed_multiplier

    if distance >= total:
        return FrameResult(
            distance=total,
            progress=1.0,
            resolved=position_at_distance(coords, profile, total),
            finished=True,
        )

    return FrameResult(
        distance=distance,
        progress=distance / total,
        resolved=position_at_distance(coords, profile, distance),
        finished=False,
    )


class PlaybackController:
    """Plays back one route. Create one controller per playback session."""

    def __init__(
        self,
        route: Union[Route, Sequence[Position]],
        config: Optional[PlaybackConfig] = None,
        scheduler: Optional[FrameScheduler] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or PlaybackConfig()
        self.scheduler = scheduler or AsyncioFrameScheduler(self.config.frame_interval)
        self.clock = clock

        self._observers: List[Observer] = []
        self._is_playing = False
        self._speed_multiplier = 1.0
        self._frame_handle: Any = None
        # Bumped whenever playback stops so stale frame callbacks do nothing
        self._run_id = 0
        self._anchor_time: Optional[float] = None
        self._anchor_distance = 0.0

        self._load_route(route)

    # Read-only state

    @property
    def is_playing(self) -> bool:
        return self._is_playing

    @property
    def progress(self) -> float:
        return self._progress

    @property
    def speed_multiplier(self) -> float:
        return self._speed_multiplier

    @property
    def current_position(self) -> Optional[Position]:
        return self._current_position

    @property
    def current_heading(self) -> float:
        return self._current_heading

    @property
    def current_distance(self) -> float:
        """Distance along the route in meters."""
        return self._distance

    @property
    def total_distance(self) -> float:
        return self.route.total_distance

    @property
    def speed_mps(self) -> float:
        """Current simulated travel speed in meters per second."""
        return self.config.base_speed_mps * self._speed_multiplier

    @property
    def elapsed_time(self) -> float:
        """Simulated travel time to the current position, in seconds."""
        return self._distance / self.speed_mps

    @property
    def total_time(self) -> float:
        """Simulated travel time for the whole route at the current speed, in seconds."""
        return self.total_distance / self.speed_mps

    @property
    def state(self) -> PlaybackState:
        return PlaybackState(
            is_playing=self._is_playing,
            progress=self._progress,
            speed_multiplier=self._speed_multiplier,
            current_position=self._current_position,
            current_heading=self._current_heading,
        )

    # Observers

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """
        Register a callback that receives a PlaybackState after every change.

        Returns:
            A function that removes the observer again
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.state
        for observer in list(self._observers):
            observer(snapshot)

    # Controls

    def play(self) -> None:
        """Start or resume playback. Playing a finished route restarts it."""
        if self._is_playing:
            return

        if self._progress >= self.config.restart_threshold:
            logger.debug("Playback finished, restarting from the beginning")
            self._reset_to_start()

        self._reset_anchor()
        # Stays idle if the scheduler cannot take the frame
        self._request_frame()
        self._is_playing = True
        logger.debug(
            f"Playing from {self._distance:.1f} m at {self._speed_multiplier}x"
        )
        self._notify()

    def pause(self) -> None:
        """Stop playback, keeping the current position."""
        if not self._is_playing:
            return

        self._is_playing = False
        self._cancel_frame()
        logger.debug(f"Paused at {self._distance:.1f} m")
        self._notify()

    def toggle(self) -> None:
        """Pause if playing, otherwise play."""
        if self._is_playing:
            self.pause()
        else:
            self.play()

    def seek(self, progress: float) -> None:
        """
        Jump to a fraction of the route distance.

        Args:
            progress: Target fraction; values outside [0, 1] are clamped

        Raises:
            ValueError: If progress is NaN or infinite
        """
        if not math.isfinite(progress):
            raise ValueError(f"Seek progress must be a finite number, got {progress}")

        progress = max(0.0, min(1.0, float(progress)))
        self._progress = progress
        self._distance = progress * self.total_distance
        self._apply(position_at_distance(self.route.coords, self.route.profile, self._distance))
        self._reset_anchor()
        logger.debug(f"Seeked to {progress:.3f} ({self._distance:.1f} m)")
        self._notify()

    def seek_to_position(self, position: Position) -> None:
        """
        Seek to the point on the route nearest to an arbitrary position.

        Raises:
            ValueError: If the route has fewer than two positions
        """
        self.seek(self.route.progress_at_position(position))

    def set_speed(self, multiplier: float) -> None:
        """
        Change the playback rate without moving the marker.

        Raises:
            ValueError: If multiplier is not a positive finite number
        """
        if not math.isfinite(multiplier) or multiplier <= 0:
            raise ValueError(
                f"Speed multiplier must be a positive number, got {multiplier}"
            )

        self._speed_multiplier = float(multiplier)
        self._reset_anchor()
        logger.debug(f"Speed set to {self._speed_multiplier}x")
        self._notify()

    def cycle_speed(self) -> float:
        """
        Switch to the next configured speed preset, wrapping around.

        Returns:
            The new speed multiplier
        """
        presets = self.config.speed_presets
        try:
            index = presets.index(self._speed_multiplier)
        except ValueError:
            index = -1
        multiplier = presets[(index + 1) % len(presets)]
        self.set_speed(multiplier)
        return self._speed_multiplier

    def set_route(self, route: Union[Route, Sequence[Position]]) -> None:
        """Replace the route. Playback stops and returns to the new start."""
        self._is_playing = False
        self._cancel_frame()
        self._load_route(route)
        self._notify()

    def close(self) -> None:
        """End the session: cancel any pending frame and drop all observers."""
        self._is_playing = False
        self._cancel_frame()
        self._observers.clear()

    # Internals

    def _load_route(self, route: Union[Route, Sequence[Position]]) -> None:
        self.route = route if isinstance(route, Route) else Route(route)
        logger.debug(
            f"Loaded route with {len(self.route)} points, {self.total_distance:.1f} m"
        )
        self._reset_to_start()
        self._reset_anchor()

    def _reset_to_start(self) -> None:
        coords = self.route.coords
        self._progress = 0.0
        self._distance = 0.0
        self._current_position = coords[0] if coords else None
        self._current_heading = (
            calculate_bearing(coords[0], coords[1]) if len(coords) > 1 else 0.0
        )

    def _reset_anchor(self) -> None:
        # The next frame re-anchors at the distance already covered
        self._anchor_time = None
        self._anchor_distance = self._distance

    def _apply(self, resolved: Optional[ResolvedPosition]) -> None:
        if resolved is not None:
            self._current_position = resolved.position
            self._current_heading = resolved.heading

    def _request_frame(self) -> None:
        self._frame_handle = self.scheduler.request_frame(
            partial(self._on_frame, self._run_id)
        )

    def _cancel_frame(self) -> None:
        self._run_id += 1
        if self._frame_handle is not None:
            self.scheduler.cancel_frame(self._frame_handle)
            self._frame_handle = None

    def _on_frame(self, run_id: int) -> None:
        if run_id != self._run_id or not self._is_playing:
            return
        self._frame_handle = None

        now = self.clock()
        if self._anchor_time is None:
            self._anchor_time = now

        result = frame_state(
            self.route.coords,
            self.route.profile,
            elapsed=now - self._anchor_time,
            speed_multiplier=self._speed_multiplier,
            start_distance=self._anchor_distance,
            base_speed_mps=self.config.base_speed_mps,
        )

        self._distance = result.distance
        self._progress = result.progress
        self._apply(result.resolved)

        if result.finished:
            self._is_playing = False
            self._run_id += 1
            logger.debug("Playback reached the end of the route")
        else:
            self._request_frame()

        self._notify()
