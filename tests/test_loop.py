"""
Animation Loop Tests
====================

Timing is driven by FakeClock so tick counts are deterministic.
"""

import asyncio
import random

import pytest

from conftest import FakeClock, RecordingWriter
from vi_stream.models import LoopState, TerminationReason
from vi_stream.stream import AnimationLoop, ColorCycler, DEFAULT_PALETTE
from vi_stream.stream.protocol import CLEAR_SEQUENCE, RESET, encode_clear
from vi_stream.stream.writer import ChunkQueueWriter


def make_loop(frames, writer, clock, palette=DEFAULT_PALETTE, **kwargs):
    return AnimationLoop(
        frames,
        writer,
        cycler=ColorCycler(palette=palette, rng=random.Random(42)),
        clock=clock,
        sleep=clock.sleep,
        **kwargs,
    )


def split_units(writes):
    """Pair up (clear, frame) writes and return decoded frame chunks."""
    assert len(writes) % 2 == 0
    clears = writes[0::2]
    bodies = [chunk.decode("utf-8") for chunk in writes[1::2]]
    assert all(c == encode_clear() for c in clears)
    return bodies


def unwrap(body, palette=DEFAULT_PALETTE):
    """Split a colorized frame chunk into (color, frame text)."""
    assert body.endswith(RESET + "\n")
    for color in palette:
        if body.startswith(color):
            return color, body[len(color):-len(RESET) - 1]
    raise AssertionError(f"unknown color prefix in {body!r}")


class TestAnimationLoop:
    """Tests for tick order, colors and termination."""

    def test_three_tick_scenario(self, fake_clock, recording_writer):
        """Budget of 200ms at 70ms cadence allows exactly three ticks."""
        frames = ("AA\nBB", "CC\nDD")
        loop = make_loop(frames, recording_writer, fake_clock, max_stream_ms=200)

        session = asyncio.run(loop.run())

        assert session.state == LoopState.COMPLETED
        assert session.reason == TerminationReason.BUDGET_EXHAUSTED
        assert session.ticks == 3
        assert recording_writer.close_calls == 1

        units = [unwrap(body) for body in split_units(recording_writer.writes)]
        assert [text for _, text in units] == ["AA\nBB", "CC\nDD", "AA\nBB"]

        colors = [color for color, _ in units]
        assert all(a != b for a, b in zip(colors, colors[1:]))

    def test_frame_order_is_circular(self, fake_clock, recording_writer):
        frames = ("0", "1", "2")
        loop = make_loop(
            frames, recording_writer, fake_clock,
            frame_delay_ms=10, max_stream_ms=105,
        )

        session = asyncio.run(loop.run())

        assert session.ticks == 11
        assert session.frame_history == [i % 3 for i in range(11)]
        assert session.frame_index == 11 % 3

    def test_colors_never_repeat(self, fake_clock, recording_writer):
        loop = make_loop(
            ("x",), recording_writer, fake_clock,
            frame_delay_ms=2, max_stream_ms=999,
        )

        session = asyncio.run(loop.run())

        history = session.color_history
        assert len(history) == 500
        assert all(a != b for a, b in zip(history, history[1:]))

    def test_single_color_palette(self, fake_clock, recording_writer):
        loop = make_loop(
            ("x",), recording_writer, fake_clock,
            palette=("\x1b[32m",), max_stream_ms=300,
        )

        session = asyncio.run(loop.run())

        assert session.color_history == [0] * session.ticks
        bodies = split_units(recording_writer.writes)
        assert all(body == "\x1b[32mx\x1b[0m\n" for body in bodies)

    def test_flipped_single_frame(self, fake_clock, recording_writer):
        """A reversed single frame is emitted identically every tick."""
        from vi_stream.frames import prepare_frames

        frames = prepare_frames(("AB",), flip=True)
        loop = make_loop(frames, recording_writer, fake_clock, max_stream_ms=300)

        asyncio.run(loop.run())

        texts = [unwrap(body)[1] for body in split_units(recording_writer.writes)]
        assert texts and all(text == "BA" for text in texts)

    def test_unit_layout(self, fake_clock, recording_writer):
        """Each tick is a clear chunk followed by color + frame + reset + newline."""
        loop = make_loop(("hi",), recording_writer, fake_clock, max_stream_ms=1)

        asyncio.run(loop.run())

        assert recording_writer.writes[0] == CLEAR_SEQUENCE.encode("utf-8")
        assert CLEAR_SEQUENCE == "\x1b[2J\x1b[3J\x1b[H"
        color, text = unwrap(recording_writer.writes[1].decode("utf-8"))
        assert text == "hi"

    def test_budget_measured_from_start(self):
        """No tick starts at or after start + budget, however slow ticks are."""
        clock = FakeClock(start=0.0)
        tick_starts = []

        class SlowWriter(RecordingWriter):
            async def write(self, data):
                if data == encode_clear():
                    tick_starts.append(clock.now)
                await super().write(data)
                clock.now += 0.05

        writer = SlowWriter()
        loop = make_loop(("x",), writer, clock, max_stream_ms=1000)

        session = asyncio.run(loop.run())

        assert session.state == LoopState.COMPLETED
        assert tick_starts
        assert all(t < 1.0 for t in tick_starts)
        # Each tick takes 100ms of writes plus 70ms of sleep
        assert session.ticks == 6

    def test_sleep_uses_frame_delay(self, fake_clock, recording_writer):
        loop = make_loop(("x",), recording_writer, fake_clock, max_stream_ms=200)

        asyncio.run(loop.run())

        assert fake_clock.sleeps == [0.07, 0.07, 0.07]


class TestAnimationLoopFailures:
    """Tests for sink failure and cancellation."""

    def test_sink_failure_on_second_write(self, fake_clock):
        """A failing frame write stops the loop after exactly two attempts."""
        writer = RecordingWriter(fail_on_write=2)
        loop = make_loop(("x", "y"), writer, fake_clock)

        session = asyncio.run(loop.run())

        assert writer.attempts == 2
        assert session.state == LoopState.ERRORED
        assert session.reason == TerminationReason.SINK_FAILURE
        assert session.ticks == 0
        assert len(writer.errors) == 1
        assert writer.close_calls == 0
        assert fake_clock.sleeps == []

    def test_sink_failure_on_clear_write(self, fake_clock):
        writer = RecordingWriter(fail_on_write=3)
        loop = make_loop(("x",), writer, fake_clock)

        session = asyncio.run(loop.run())

        assert writer.attempts == 3
        assert session.ticks == 1
        assert session.state == LoopState.ERRORED

    def test_cancel_before_run_writes_nothing(self, fake_clock, recording_writer):
        loop = make_loop(("x",), recording_writer, fake_clock)
        loop.cancel()

        session = asyncio.run(loop.run())

        assert session.state == LoopState.CANCELLED
        assert session.reason == TerminationReason.CLIENT_CANCELLED
        assert recording_writer.attempts == 0
        assert recording_writer.close_calls == 0

    def test_cancel_mid_stream_stops_next_tick(self, recording_writer):
        clock = FakeClock()
        loop = None

        async def cancelling_sleep(seconds):
            await clock.sleep(seconds)
            if loop.session.ticks == 2:
                loop.cancel()

        loop = AnimationLoop(
            ("a", "b", "c"),
            recording_writer,
            clock=clock,
            sleep=cancelling_sleep,
        )

        session = asyncio.run(loop.run())

        assert session.state == LoopState.CANCELLED
        assert session.ticks == 2
        assert recording_writer.attempts == 4

    def test_task_cancellation_is_recorded(self, recording_writer):
        """Cancelling the task mid-sleep marks the session cancelled and re-raises."""
        loop = AnimationLoop(
            ("x",),
            recording_writer,
            frame_delay_ms=1000,
            max_stream_ms=60000,
        )

        async def scenario():
            task = asyncio.create_task(loop.run())
            await asyncio.sleep(0.01)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(scenario())

        assert loop.state == LoopState.CANCELLED
        assert loop.session.ticks == 1
        assert recording_writer.attempts == 2

    def test_runs_only_once(self, fake_clock, recording_writer):
        loop = make_loop(("x",), recording_writer, fake_clock, max_stream_ms=1)
        asyncio.run(loop.run())

        with pytest.raises(RuntimeError):
            asyncio.run(loop.run())

    def test_empty_frames_rejected(self, recording_writer):
        with pytest.raises(ValueError):
            AnimationLoop((), recording_writer)


class TestBudgetCap:
    """The budget ends the session even when the sink stops draining."""

    def test_stalled_reader_completes_at_budget(self):
        """A full queue nobody reads from does not outlive the budget."""
        writer = ChunkQueueWriter(maxsize=2)
        loop = AnimationLoop(("x",), writer, frame_delay_ms=10, max_stream_ms=100)

        session = asyncio.run(asyncio.wait_for(loop.run(), timeout=2.0))

        assert session.state == LoopState.COMPLETED
        assert session.reason == TerminationReason.BUDGET_EXHAUSTED
        assert session.ticks == 1
        assert writer.closed
        assert writer.chunks_written == 2

    def test_no_write_starts_after_budget(self):
        """A tick that runs past the budget stops before its next write."""
        clock = FakeClock(start=0.0)

        class SlowWriter(RecordingWriter):
            async def write(self, data):
                await super().write(data)
                clock.now += 0.2

        writer = SlowWriter()
        loop = make_loop(("x",), writer, clock, max_stream_ms=100)

        session = asyncio.run(loop.run())

        assert session.state == LoopState.COMPLETED
        assert session.reason == TerminationReason.BUDGET_EXHAUSTED
        assert writer.attempts == 1
        assert session.ticks == 0
        assert writer.close_calls == 1
