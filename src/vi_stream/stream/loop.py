"""
Animation Loop
==============

Drives one stream session: on every tick it clears the client's screen,
writes the next frame in a fresh color and advances circularly through
the frame set.

State Machine:
    IDLE -> STREAMING -> COMPLETED   (budget exhausted, sink closed)
                      -> ERRORED     (sink write failed)
                      -> CANCELLED   (cancel() or task cancellation)

Design Rules:
    - The budget is measured from session start, never reset
    - Every sink write is bounded by the remaining budget
    - Cancellation is checked at the top of every tick
    - Nothing is retried after a terminal state
    - The frame set is read-only; the loop never mutates it
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, Sequence

from vi_stream.models.session import LoopState, StreamSession
from vi_stream.models.termination import TerminationReason
from vi_stream.stream.colors import ColorCycler
from vi_stream.stream.protocol import encode_clear, encode_frame
from vi_stream.stream.writer import SinkError, StreamWriter


logger = logging.getLogger(__name__)

DEFAULT_FRAME_DELAY_MS = 70
DEFAULT_MAX_STREAM_MS = 5000


class _BudgetExhausted(Exception):
    """The session budget ran out while waiting on the sink."""


class AnimationLoop:
    """
    Cooperative tick loop for a single stream.

    Each instance owns its StreamSession and runs exactly once.

    Attributes:
        frames: Frames to cycle through (already transformed)
        writer: Sink receiving encoded chunks
        cycler: Color source
        frame_delay_ms: Sleep between ticks
        max_stream_ms: Wall-clock budget from session start
        session: State of this run

    Example:
        loop = AnimationLoop(frames, writer)
        task = asyncio.create_task(loop.run())

        # On client disconnect
        loop.cancel()
    """

    def __init__(
        self,
        frames: Sequence[str],
        writer: StreamWriter,
        cycler: Optional[ColorCycler] = None,
        frame_delay_ms: int = DEFAULT_FRAME_DELAY_MS,
        max_stream_ms: int = DEFAULT_MAX_STREAM_MS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize animation loop.

        Args:
            frames: Non-empty frame sequence
            writer: Output sink
            cycler: Color cycler (defaults to the full ANSI palette)
            frame_delay_ms: Delay between ticks in milliseconds
            max_stream_ms: Session budget in milliseconds
            clock: Monotonic clock returning seconds
            sleep: Coroutine used to wait between ticks
        """
        if not frames:
            raise ValueError("frames must not be empty")

        self.frames = frames
        self.writer = writer
        self.cycler = cycler or ColorCycler()
        self.frame_delay_ms = frame_delay_ms
        self.max_stream_ms = max_stream_ms
        self.session = StreamSession()

        self._clock = clock
        self._sleep = sleep
        self._cancel_event = asyncio.Event()

    @property
    def state(self) -> LoopState:
        return self.session.state

    @property
    def cancelled(self) -> bool:
        """Whether cancellation was requested."""
        return self._cancel_event.is_set()

    def cancel(self) -> None:
        """Request cancellation; observed before the next tick."""
        self._cancel_event.set()

    def elapsed_ms(self) -> float:
        """Milliseconds since the session started."""
        return (self._clock() - self.session.started_at) * 1000.0

    def remaining_ms(self) -> float:
        """Milliseconds left before the budget is exhausted."""
        return self.max_stream_ms - self.elapsed_ms()

    async def run(self) -> StreamSession:
        """
        Stream ticks until the budget runs out, the sink fails or the
        loop is cancelled.

        Returns:
            The terminated session

        Raises:
            RuntimeError: If the loop already ran
            asyncio.CancelledError: Re-raised after recording cancellation
        """
        session = self.session
        if session.state != LoopState.IDLE:
            raise RuntimeError("AnimationLoop can only run once")

        session.started_at = self._clock()
        session.state = LoopState.STREAMING
        logger.debug(
            f"Stream started: frames={len(self.frames)}, "
            f"delay={self.frame_delay_ms}ms, budget={self.max_stream_ms}ms"
        )

        try:
            while True:
                if self.cancelled:
                    self._mark_cancelled("cancel requested")
                    break

                if self.remaining_ms() <= 0:
                    self._complete()
                    break

                try:
                    await self._tick()
                except _BudgetExhausted:
                    self._complete()
                    break
                except SinkError as e:
                    session.finish(LoopState.ERRORED, TerminationReason.SINK_FAILURE)
                    self._signal_error(e)
                    logger.warning(
                        f"Sink failed after {session.ticks} ticks, stopping stream: {e}"
                    )
                    break

                await self._sleep(self.frame_delay_ms / 1000.0)

        except asyncio.CancelledError:
            self._mark_cancelled("task cancelled")
            raise

        return session

    async def _tick(self) -> None:
        """Write one clear + colorized frame unit and advance."""
        session = self.session
        index = session.frame_index

        await self._write(encode_clear())

        color, color_index = self.cycler.next(session.color_index)
        session.color_index = color_index

        await self._write(encode_frame(self.frames[index], color))

        session.frame_history.append(index)
        session.color_history.append(color_index)
        session.ticks += 1
        session.frame_index = (index + 1) % len(self.frames)

    async def _write(self, data: bytes) -> None:
        """Write one chunk, giving up once the session budget runs out."""
        remaining_ms = self.remaining_ms()
        if remaining_ms <= 0:
            raise _BudgetExhausted()

        try:
            await asyncio.wait_for(self.writer.write(data), timeout=remaining_ms / 1000.0)
        except asyncio.TimeoutError:
            raise _BudgetExhausted() from None

    def _complete(self) -> None:
        self.session.finish(LoopState.COMPLETED, TerminationReason.BUDGET_EXHAUSTED)
        self.writer.close()
        logger.info(f"Stream completed after {self.session.ticks} ticks")

    def _signal_error(self, exc: SinkError) -> None:
        error = getattr(self.writer, "error", None)
        if callable(error):
            error(exc)

    def _mark_cancelled(self, detail: str) -> None:
        if self.session.closed:
            return
        self.session.finish(LoopState.CANCELLED, TerminationReason.CLIENT_CANCELLED)
        logger.info(f"Stream cancelled ({detail}) after {self.session.ticks} ticks")
