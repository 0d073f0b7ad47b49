"""
Data Models
===========

Session state and termination codes for vi-stream.

Models:
    - LoopState: Lifecycle of an AnimationLoop run
    - StreamSession: Per-request loop state
    - SessionMetrics: Process-wide session counters
    - TerminationReason: Why a session ended
"""

from vi_stream.models.session import LoopState, SessionMetrics, StreamSession
from vi_stream.models.termination import TerminationReason

__all__ = [
    "LoopState",
    "StreamSession",
    "SessionMetrics",
    "TerminationReason",
]
