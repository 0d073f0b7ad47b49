"""
Test Configuration
==================

Pytest fixtures and test doubles for vi-stream.
"""

from typing import List, Optional

import pytest

from vi_stream.stream.writer import SinkError


class FakeClock:
    """Deterministic clock whose sleep() advances time instantly."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class RecordingWriter:
    """StreamWriter that records writes and can fail on the n-th attempt."""

    def __init__(self, fail_on_write: Optional[int] = None) -> None:
        self.fail_on_write = fail_on_write
        self.writes: List[bytes] = []
        self.attempts = 0
        self.close_calls = 0
        self.errors: List[BaseException] = []

    async def write(self, data: bytes) -> None:
        self.attempts += 1
        if self.fail_on_write is not None and self.attempts >= self.fail_on_write:
            raise SinkError("broken pipe")
        self.writes.append(data)

    def close(self) -> None:
        self.close_calls += 1

    def error(self, exc: BaseException) -> None:
        self.errors.append(exc)


@pytest.fixture
def fake_clock():
    """Provide a FakeClock starting at t=100s."""
    return FakeClock()


@pytest.fixture
def recording_writer():
    """Provide a RecordingWriter that never fails."""
    return RecordingWriter()


@pytest.fixture
def frames_dir(tmp_path):
    """Provide a directory with three frames written out of order."""
    directory = tmp_path / "frames"
    directory.mkdir()
    (directory / "b.txt").write_text("second", encoding="utf-8")
    (directory / "a.txt").write_text("first", encoding="utf-8")
    (directory / "c.txt").write_text("third", encoding="utf-8")
    return directory
