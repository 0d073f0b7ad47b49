"""
Stream Writers
==============

Output sinks the AnimationLoop writes encoded bytes to.

Design Rules:
    - Any write failure raises SinkError and ends the session
    - close() is idempotent: budget expiry and cancellation may both close
    - Writers never retry
"""

import asyncio
import logging
from typing import AsyncIterator, Optional, Protocol


logger = logging.getLogger(__name__)


class SinkError(Exception):
    """Raised when a sink can no longer accept data."""


class StreamWriter(Protocol):
    """
    Protocol for stream sinks.

    Implementations may additionally provide `error(exc)`, which the loop
    calls after a failed write to propagate the failure downstream.
    """

    async def write(self, data: bytes) -> None:
        """
        Write one chunk.

        Raises:
            SinkError: If the sink is closed or broken
        """
        ...

    def close(self) -> None:
        ...


# Marks end of stream in the chunk queue
_EOF = None


class ChunkQueueWriter:
    """
    Bounded chunk queue between an AnimationLoop and an HTTP response.

    The loop is the producer (write/close/error); the response body is the
    consumer (chunks/abort). A full queue makes write() wait, which slows
    the loop down to the client's pace.

    Attributes:
        chunks_written: Chunks accepted by write()
        bytes_written: Bytes accepted by write()

    Example:
        writer = ChunkQueueWriter(maxsize=8)

        # Producer
        await writer.write(b"...")
        writer.close()

        # Consumer
        async for chunk in writer.chunks():
            send(chunk)
    """

    def __init__(self, maxsize: int = 8) -> None:
        """
        Initialize chunk queue writer.

        Args:
            maxsize: Maximum chunks to buffer. Must be >= 1.
        """
        if maxsize < 1:
            raise ValueError("maxsize must be >= 1")

        self._queue: asyncio.Queue[Optional[bytes]] = asyncio.Queue(maxsize=maxsize)
        self._closed: bool = False
        self._aborted: bool = False
        self._error: Optional[BaseException] = None
        self.chunks_written: int = 0
        self.bytes_written: int = 0

    @property
    def closed(self) -> bool:
        """Whether the writer rejects further writes."""
        return self._closed

    @property
    def aborted(self) -> bool:
        """Whether the consumer went away."""
        return self._aborted

    @property
    def exception(self) -> Optional[BaseException]:
        """Error signalled by the producer, if any."""
        return self._error

    async def write(self, data: bytes) -> None:
        """
        Queue a chunk, waiting while the queue is full.

        Raises:
            SinkError: If the writer was closed or aborted
        """
        if self._closed:
            raise SinkError(
                "client disconnected" if self._aborted else "writer is closed"
            )

        await self._queue.put(data)
        self.chunks_written += 1
        self.bytes_written += len(data)

    def close(self) -> None:
        """End the stream. Calls after the first are no-ops."""
        if self._closed:
            return
        self._closed = True

        try:
            self._queue.put_nowait(_EOF)
        except asyncio.QueueFull:
            # Consumer is not waiting; it stops once the queue drains
            pass

    def error(self, exc: BaseException) -> None:
        """Record a producer-side failure and end the stream."""
        if self._error is None:
            self._error = exc
        self.close()

    def abort(self) -> None:
        """Mark the consumer as gone so later writes fail fast."""
        self._aborted = True
        self._closed = True

    async def chunks(self) -> AsyncIterator[bytes]:
        """Yield queued chunks until the stream is closed and drained."""
        while True:
            if self._closed and self._queue.empty():
                break

            chunk = await self._queue.get()
            if chunk is _EOF:
                break
            yield chunk

        if self._error is not None:
            logger.warning(f"Stream ended after sink error: {self._error}")

