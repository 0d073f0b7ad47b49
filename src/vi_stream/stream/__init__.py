"""
Stream Module
=============

Frame streaming engine for terminal clients.

This module provides the output side of vi-stream:
    - ColorCycler: Random color selection without immediate repeats
    - protocol: Clear-screen and color encoding of each tick
    - ChunkQueueWriter: Bounded chunk queue feeding an HTTP response
    - AnimationLoop: Per-session tick scheduler

Example:
    from vi_stream.stream import AnimationLoop, ChunkQueueWriter

    writer = ChunkQueueWriter(maxsize=8)
    loop = AnimationLoop(frames, writer)
    task = asyncio.create_task(loop.run())

    async for chunk in writer.chunks():
        send(chunk)
"""

from vi_stream.stream.colors import ColorCycler, DEFAULT_PALETTE
from vi_stream.stream.loop import AnimationLoop
from vi_stream.stream.writer import ChunkQueueWriter, SinkError, StreamWriter


__all__ = [
    "AnimationLoop",
    "ChunkQueueWriter",
    "ColorCycler",
    "DEFAULT_PALETTE",
    "SinkError",
    "StreamWriter",
]
