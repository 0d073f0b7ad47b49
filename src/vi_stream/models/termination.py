"""
Termination Reasons
===================

Fixed set of machine-readable codes explaining why a stream session ended.

Each terminated session carries exactly ONE reason.

Rules:
    - Cancellation is a normal outcome, not an error
    - Sink failures end only the session they occur in
"""

from enum import Enum


class TerminationReason(str, Enum):
    """
    Why an AnimationLoop stopped.

    Attributes:
        BUDGET_EXHAUSTED: Wall-clock budget reached, sink closed cleanly
        SINK_FAILURE: A write to the sink failed
        CLIENT_CANCELLED: Client disconnected or the loop was cancelled
    """

    BUDGET_EXHAUSTED = "BUDGET_EXHAUSTED"
    SINK_FAILURE = "SINK_FAILURE"
    CLIENT_CANCELLED = "CLIENT_CANCELLED"
