#!/usr/bin/env python3
"""
Filename utilities for generating output filenames.
"""

import os
import logging

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 180


def _reserve(candidate: str) -> bool:
    """Create candidate exclusively. Returns False if it already exists."""
    try:
        with open(candidate, "x"):
            pass
        return True
    except FileExistsError:
        return False
    except OSError as e:
        logger.error(f"Cannot create file {candidate}: {e}")
        raise ValueError(f"Cannot create file: {e}")


def generate_output_filename(input_filename: str) -> str:
    """
    Generates an output HTML filename and reserves it by creating an empty file.

    Strategy:
    1. If input ends with .gpx (case-insensitive), drop it
    2. Append " replay.html"
    3. If that exists, try " replay (1).html", " replay (2).html", etc.
    4. Stop after MAX_ATTEMPTS numbered variants

    Exclusive creation (`open(path, 'x')`) reserves the name without racing
    another process for it.

    Args:
        input_filename: Path to the input GPX file

    Returns:
        Filename that has been created as an empty file

    Raises:
        RuntimeError: If no available filename found after MAX_ATTEMPTS attempts
        ValueError: If a filename cannot be created (permissions, invalid name)
    """
    input_dir = os.path.dirname(input_filename)
    input_base = os.path.basename(input_filename)

    if input_base.lower().endswith(".gpx"):
        base_name = input_base[:-4]
    else:
        base_name = input_base

    base_output = os.path.join(input_dir, base_name + " replay")

    candidate = base_output + ".html"
    if _reserve(candidate):
        return candidate

    for i in range(1, MAX_ATTEMPTS + 1):
        candidate = f"{base_output} ({i}).html"
        if _reserve(candidate):
            return candidate

    logger.error(
        f"Could not find an available filename after {MAX_ATTEMPTS} attempts. "
        f"Please clean up your output directory or specify --output explicitly."
    )
    raise RuntimeError(f"No available filename found after {MAX_ATTEMPTS} attempts")
