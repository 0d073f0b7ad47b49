#!/usr/bin/env python3
"""
Stream Probe Script
===================

Standalone script to check a running vi-stream server from the outside.

This script:
    1. Requests the animation as a terminal client (curl user agent)
    2. Reads the stream until the server closes it or --duration passes
    3. Counts frames and color changes
    4. Reports a final summary

Prerequisites:
    - vi-stream must be running at the configured URL
    - Install dependencies: pip install -e ".[scripts]"

Usage:
    python scripts/stream_probe.py
    python scripts/stream_probe.py --url http://localhost:8000 --flip --duration 10
"""

import argparse
import logging
import os
import sys
import time

import requests


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)

CLEAR_SEQUENCE = b"\x1b[2J\x1b[3J\x1b[H"
RESET = b"\x1b[0m"


def split_unit(unit: bytes):
    """Split one unit into (color token, frame bytes)."""
    color, _, rest = unit.partition(b"m")
    return color, rest[: -len(RESET) - 1]


def run_probe(url: str, flip: bool, duration: float) -> dict:
    """
    Read the stream and collect statistics.

    Args:
        url: Base URL of the vi-stream server
        flip: Request reversed frames
        duration: Maximum seconds to read

    Returns:
        Summary metrics dict
    """
    logger.info("=" * 60)
    logger.info("vi-stream probe")
    logger.info("=" * 60)
    logger.info(f"URL: {url}")
    logger.info(f"Flip: {flip}")
    logger.info(f"Duration: {duration} seconds")
    logger.info("=" * 60)

    params = {"flip": "true"} if flip else {}
    headers = {"User-Agent": "curl/8.5.0 (vi-stream probe)"}

    start_time = time.time()
    buffer = b""
    total_bytes = 0
    frames = []
    repeated_colors = 0
    last_color = None

    with requests.get(url, params=params, headers=headers, stream=True, timeout=10) as response:
        logger.info(f"Status: {response.status_code}")
        logger.info(f"Content-Type: {response.headers.get('content-type')}")
        response.raise_for_status()

        for chunk in response.iter_content(chunk_size=None):
            total_bytes += len(chunk)
            buffer += chunk

            # Every complete unit ends right before the next clear sequence
            *units, buffer = buffer.split(CLEAR_SEQUENCE)
            for unit in units:
                if not unit:
                    continue
                color, frame = split_unit(unit)
                frames.append(frame)
                if color == last_color:
                    repeated_colors += 1
                last_color = color

            if time.time() - start_time >= duration:
                logger.info(f"Probe duration ({duration}s) reached")
                break

    # Last unit has no clear sequence after it
    if buffer.endswith(RESET + b"\n"):
        color, frame = split_unit(buffer)
        frames.append(frame)
        if color == last_color:
            repeated_colors += 1

    total_time = time.time() - start_time
    distinct = len(set(frames))
    avg_fps = len(frames) / total_time if total_time > 0 else 0

    logger.info("=" * 60)
    logger.info("FINAL SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Total runtime: {total_time:.1f} seconds")
    logger.info(f"Bytes received: {total_bytes}")
    logger.info(f"Frames received: {len(frames)}")
    logger.info(f"Distinct frames: {distinct}")
    logger.info(f"Average FPS: {avg_fps:.1f}")
    logger.info(f"Repeated colors: {repeated_colors}")
    logger.info("=" * 60)

    if frames and repeated_colors == 0:
        logger.info("PROBE PASSED - frames received, no repeated colors")
    else:
        logger.error("PROBE FAILED")

    return {
        "duration": total_time,
        "bytes": total_bytes,
        "frames_received": len(frames),
        "distinct_frames": distinct,
        "repeated_colors": repeated_colors,
    }


def main():
    parser = argparse.ArgumentParser(
        description="Probe a running vi-stream server as a terminal client"
    )
    parser.add_argument(
        "--url",
        type=str,
        default=os.environ.get("VI_STREAM_URL", "http://localhost:8000/"),
        help="Base URL of vi-stream",
    )
    parser.add_argument(
        "--flip",
        action="store_true",
        help="Request reversed frames",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=10.0,
        help="Maximum seconds to read (default: 10)",
    )

    args = parser.parse_args()

    try:
        result = run_probe(url=args.url, flip=args.flip, duration=args.duration)
    except requests.RequestException as e:
        logger.error(f"Request failed: {e}")
        sys.exit(1)

    sys.exit(0 if result["frames_received"] > 0 and result["repeated_colors"] == 0 else 1)


if __name__ == "__main__":
    main()
