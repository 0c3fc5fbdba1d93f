#!/usr/bin/env python3
"""
Ride Replay Tool
This script replays a recorded GPX trace at a chosen playback speed and
generates an interactive HTML map with a marker retracing the trip.

Requirements:
    pip install gpxpy folium shapely pyproj

"""

from typing import List, Optional
import webbrowser
import argparse
import logging
import sys
import os
from gpxpy import gpx

from . import __version__
from . import visualization
from .config import PlaybackConfig
from .file_utils import generate_output_filename
from .metrics import Frame, collect_metrics, log_metrics
from .playback import PlaybackController
from .route import Route
from .scheduler import ManualClock, ManualFrameScheduler

# Configure logging
logger = logging.getLogger("ridereplay")

DEFAULT_MAX_FRAMES = 1_000_000


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Build the parser for the ridereplay command line.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        description="Replay a recorded GPX ride on an animated map",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "filename",
        type=str,
        nargs="?",
        help="GPX file to replay",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="HTML file for the replay map (default: \"<input> replay.html\" next to the GPX file)",
    )
    parser.add_argument(
        "--speed",
        type=float,
        default=1.0,
        help="Playback speed multiplier (default: 1.0)",
    )
    parser.add_argument(
        "--fps",
        type=float,
        default=1.0,
        help="Recorded frames per simulated second (default: 1.0)",
    )
    parser.add_argument(
        "--base-speed-kmh",
        type=float,
        default=60.0,
        help="Travel speed at 1x playback in km/h (default: 60)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set logging level (default: WARNING)",
    )
    parser.add_argument(
        "--no-open",
        action="store_true",
        help="Write the replay map without opening it in a browser",
    )
    parser.add_argument(
        "--metrics",
        action="store_true",
        help="Log frame and heading metrics of the replay at DEBUG level",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"ridereplay {__version__}",
    )
    return parser


def determine_output_filename(input_filename: str, output_arg: Optional[str]) -> str:
    """
    Determine the output filename to use.

    Args:
        input_filename: Path to the input GPX file
        output_arg: Value from --output argument (None if not specified)

    Returns:
        Output filename to use

    Raises:
        RuntimeError: If auto-generation fails
        ValueError: If constructed filename would be illegal
    """
    if output_arg is not None:
        return output_arg

    try:
        return generate_output_filename(input_filename)
    except (RuntimeError, ValueError) as e:
        logger.error(f"Failed to generate output filename: {e}")
        raise


def open_file_in_browser(filename: str) -> None:
    """
    Show the finished replay map in the default browser.

    Args:
        filename: Path to the file to open
    """
    abs_path = os.path.abspath(filename)
    try:
        webbrowser.open(f"file://{abs_path}")
        logger.debug(f"Opening {abs_path} in your default browser...")
    except webbrowser.Error as e:
        logger.warning(f"Could not automatically open browser: {e}")
        logger.warning(f"Please manually open {abs_path}")


def setup_logging(args: argparse.Namespace) -> None:
    """Setup logging configuration."""
    level = getattr(logging, args.log_level)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    # Configure the root logger so all modules inherit the configuration
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)


def create_config(args: argparse.Namespace) -> PlaybackConfig:
    """
    Build the playback configuration from command-line arguments.

    Raises:
        ValueError: If fps or base speed are not positive
    """
    if not args.fps > 0:
        raise ValueError(f"Frames per second must be positive, got {args.fps}")
    return PlaybackConfig(
        base_speed_kmh=args.base_speed_kmh,
        frame_interval=1.0 / args.fps,
        log_level=args.log_level,
        metrics=args.metrics,
    )


def replay_headless(
    route: Route,
    config: PlaybackConfig,
    speed_multiplier: float = 1.0,
    max_frames: int = DEFAULT_MAX_FRAMES,
) -> List[Frame]:
    """
    Play the route from start to finish on a simulated clock.

    The clock advances by config.frame_interval per frame, so the result is
    the same on every run regardless of how fast this machine is. Each frame
    is stamped with the travel time to its distance at the chosen speed, so
    the first frame (which only anchors the clock) sits at 0 and the last at
    exactly total distance / speed.

    Args:
        route: Route to replay
        config: Playback configuration
        speed_multiplier: Playback rate
        max_frames: Upper bound on frames before giving up

    Returns:
        (simulated seconds, state) pairs, starting with the initial state

    Raises:
        ValueError: If speed_multiplier is not a positive finite number
        RuntimeError: If playback has not finished after max_frames frames
    """
    clock = ManualClock()
    scheduler = ManualFrameScheduler(clock=clock, interval=config.frame_interval)
    controller = PlaybackController(route, config, scheduler=scheduler, clock=clock)
    controller.set_speed(speed_multiplier)

    frames: List[Frame] = [(0.0, controller.state)]
    controller.play()

    steps = 0
    while scheduler.pending:
        if steps >= max_frames:
            controller.close()
            raise RuntimeError(f"Playback not finished after {max_frames} frames")
        scheduler.step()
        steps += 1
        frames.append((controller.elapsed_time, controller.state))

    controller.close()
    logger.debug(
        f"Recorded {len(frames)} frames over {frames[-1][0]:.1f} simulated s"
    )
    return frames


def main():
    """
    Parses command-line arguments, loads the GPX file,
    replays it and generates an interactive map.
    """
    parser = create_argument_parser()
    args = parser.parse_args()

    if not args.filename:
        parser.print_help()
        sys.exit(1)

    setup_logging(args)

    try:
        config = create_config(args)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    try:
        output_filename = determine_output_filename(args.filename, args.output)
        logger.debug(f"Output filename: {output_filename}")
    except (RuntimeError, ValueError):
        sys.exit(1)

    try:
        route = Route.from_file(args.filename)
    except FileNotFoundError:
        logger.error(f"GPX file not found: {args.filename}")
        sys.exit(1)
    except PermissionError:
        logger.error(f"Cannot read GPX file (permission denied): {args.filename}")
        sys.exit(1)
    except gpx.GPXException as e:
        logger.error(f"Invalid GPX file: {e}")
        sys.exit(1)

    if not route:
        logger.error(f"GPX file contains no track points: {args.filename}")
        sys.exit(1)

    logger.info(f"Loaded GPX route with {len(route)} points")
    logger.info(f"Total route distance: {route.total_distance / 1000:.2f} km")

    try:
        frames = replay_headless(route, config, args.speed)
    except (ValueError, RuntimeError) as e:
        logger.error(f"Playback failed: {e}")
        sys.exit(1)

    metrics = collect_metrics(frames, route.total_distance)

    print(
        f"{visualization.format_distance_km(route.total_distance)} in "
        f"{visualization.format_duration(metrics.simulated_duration)} at {args.speed:g}x"
    )

    try:
        visualization.create_playback_map(
            route,
            output_filename,
            frames,
            metrics,
            speed_multiplier=args.speed,
            frame_interval=config.frame_interval,
        )
    except (OSError, ValueError) as e:
        logger.error(f"Failed to create map: {e}")
        sys.exit(1)

    log_metrics(metrics, args)

    if not args.no_open:
        open_file_in_browser(output_filename)


if __name__ == "__main__":
    main()
