"""
Frames Module
=============

Frame asset loading and per-request transforms.

    - FrameStore: Compute-once, never-empty frame cache
    - reverse / prepare_frames: Character-order reversal for ?flip=true
"""

from vi_stream.frames.store import FrameSet, FrameStore, SENTINEL_FRAME
from vi_stream.frames.transform import prepare_frames, reverse, reverse_frame


__all__ = [
    "FrameSet",
    "FrameStore",
    "SENTINEL_FRAME",
    "prepare_frames",
    "reverse",
    "reverse_frame",
]
