"""
Stream Session Models
=====================

Per-request state for the animation loop.

Core Concepts:
    - LoopState: Lifecycle of one AnimationLoop run
    - StreamSession: Mutable state owned by exactly one loop
    - SessionMetrics: Process-wide counters aggregated across sessions

Lifecycle:
    IDLE -> STREAMING -> {COMPLETED, ERRORED, CANCELLED}

    Terminal states are final. A new request always starts a fresh
    StreamSession from IDLE.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from vi_stream.models.termination import TerminationReason


class LoopState(str, Enum):
    """
    Lifecycle states of an AnimationLoop.

    Attributes:
        IDLE: Created, not yet started
        STREAMING: Emitting ticks
        COMPLETED: Budget exhausted, sink closed cleanly
        ERRORED: Sink write failed
        CANCELLED: Client went away or the loop was cancelled
    """

    IDLE = "IDLE"
    STREAMING = "STREAMING"
    COMPLETED = "COMPLETED"
    ERRORED = "ERRORED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (LoopState.COMPLETED, LoopState.ERRORED, LoopState.CANCELLED)


@dataclass(slots=True)
class StreamSession:
    """
    Ephemeral state of a single stream.

    Attributes:
        frame_index: Index of the next frame to emit
        color_index: Index of the last selected color (None before the first tick)
        started_at: Clock value captured on IDLE -> STREAMING (seconds)
        state: Current lifecycle state
        ticks: Number of fully written ticks
        reason: Why the session terminated (None while running)
        frame_history: Frame index emitted by each tick
        color_history: Color index selected by each tick
    """

    frame_index: int = 0
    color_index: Optional[int] = None
    started_at: float = 0.0
    state: LoopState = LoopState.IDLE
    ticks: int = 0
    reason: Optional[TerminationReason] = None
    frame_history: List[int] = field(default_factory=list)
    color_history: List[int] = field(default_factory=list)

    @property
    def closed(self) -> bool:
        """Whether the session reached a terminal state."""
        return self.state.is_terminal

    def finish(self, state: LoopState, reason: TerminationReason) -> None:
        """Move to a terminal state. Later calls are ignored."""
        if self.closed:
            return
        self.state = state
        self.reason = reason


class SessionMetrics:
    """Process-wide counters for stream sessions."""

    __slots__ = (
        "started",
        "active",
        "completed",
        "errored",
        "cancelled",
        "ticks_emitted",
        "redirects",
    )

    def __init__(self) -> None:
        self.started: int = 0
        self.active: int = 0
        self.completed: int = 0
        self.errored: int = 0
        self.cancelled: int = 0
        self.ticks_emitted: int = 0
        self.redirects: int = 0

    def session_started(self) -> None:
        self.started += 1
        self.active += 1

    def session_finished(self, session: StreamSession) -> None:
        """Record a session that has left the STREAMING state."""
        self.active = max(0, self.active - 1)
        self.ticks_emitted += session.ticks
        if session.state == LoopState.COMPLETED:
            self.completed += 1
        elif session.state == LoopState.ERRORED:
            self.errored += 1
        elif session.state == LoopState.CANCELLED:
            self.cancelled += 1

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "sessions_started": self.started,
            "sessions_active": self.active,
            "sessions_completed": self.completed,
            "sessions_errored": self.errored,
            "sessions_cancelled": self.cancelled,
            "ticks_emitted": self.ticks_emitted,
            "redirects": self.redirects,
        }
