"""
Frame Store
===========

Loads and caches the ordered text frames of the animation.

Design Rules:
    - Loaded at most once per process (first result is pinned)
    - Never returns an empty frame set
    - Load failures are recovered here and never reach the request
    - The returned tuple is immutable and shared read-only by all sessions
"""

import logging
import threading
from pathlib import Path
from typing import Optional, Tuple, Union


logger = logging.getLogger(__name__)

FrameSet = Tuple[str, ...]

SENTINEL_FRAME = "Something's not legal :')"


class FrameStore:
    """
    Compute-once cache of the animation's frame set.

    Resolves the frame directory (primary first, then fallback), reads every
    eligible file in file-name order and normalizes line endings. Any failure,
    or finding no eligible file, yields a single sentinel frame.

    Attributes:
        primary_dir: Preferred frame directory
        fallback_dir: Directory used when primary_dir does not exist
        extension: File suffix that marks a frame asset

    Example:
        store = FrameStore("frames", "/opt/vi/frames")
        frames = store.load()   # reads disk
        frames = store.load()   # cached
    """

    def __init__(
        self,
        primary_dir: Union[str, Path],
        fallback_dir: Union[str, Path],
        extension: str = ".txt",
    ) -> None:
        self.primary_dir = Path(primary_dir)
        self.fallback_dir = Path(fallback_dir)
        self.extension = extension

        self._frames: Optional[FrameSet] = None
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        """Whether the frame set has been built."""
        return self._frames is not None

    @property
    def frame_count(self) -> int:
        """Number of cached frames (0 before the first load)."""
        return len(self._frames) if self._frames is not None else 0

    def load(self) -> FrameSet:
        """
        Return the frame set, building it on first call.

        Safe to call from several threads; the frames are read exactly once.

        Returns:
            Non-empty tuple of frame texts
        """
        frames = self._frames
        if frames is not None:
            return frames

        with self._lock:
            if self._frames is None:
                self._frames = self._read_frames()
            return self._frames

    def resolve_directory(self) -> Path:
        """Pick the primary directory if it exists, otherwise the fallback."""
        if self.primary_dir.exists():
            return self.primary_dir
        return self.fallback_dir

    def _read_frames(self) -> FrameSet:
        directory = self.resolve_directory()

        try:
            paths = sorted(
                (
                    p for p in directory.iterdir()
                    if p.name.endswith(self.extension) and p.is_file()
                ),
                key=lambda p: p.name,
            )
            frames = tuple(
                p.read_bytes().decode("utf-8").replace("\r\n", "\n")
                for p in paths
            )
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to load frames from {directory}: {e}")
            return (SENTINEL_FRAME,)

        if not frames:
            logger.warning(
                f"No '{self.extension}' frames found in {directory}, "
                f"using sentinel frame"
            )
            return (SENTINEL_FRAME,)

        logger.info(f"Loaded {len(frames)} frames from {directory}")
        return frames
