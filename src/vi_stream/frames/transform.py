"""
Frame Transforms
================

Stateless transforms applied to a frame set per request.

Reversal is a raw character reversal: embedded newlines move along with
every other character, so the picture is rotated by 180 degrees rather
than mirrored line by line.
"""

from typing import Iterable, Tuple


def reverse_frame(frame: str) -> str:
    """Return the frame with its characters in reverse order."""
    return frame[::-1]


def reverse(frames: Iterable[str]) -> Tuple[str, ...]:
    """Reverse every frame, returning a new tuple."""
    return tuple(reverse_frame(frame) for frame in frames)


def prepare_frames(frames: Tuple[str, ...], flip: bool) -> Tuple[str, ...]:
    """Apply the per-request transform selected by the flip flag."""
    if flip:
        return reverse(frames)
    return frames
