"""
Terminal Stream Protocol
========================

Byte-level encoding of the animation stream.

Each tick of the stream is one unit:

    CLEAR_SEQUENCE + <color-on> + <frame text> + RESET + "\\n"

The clear sequence and the colorized frame are written as two separate
chunks so a failing sink is detected as early as possible.
"""

ESC = "\x1b"

# Clear screen, clear scrollback, move cursor home
CLEAR_SEQUENCE = f"{ESC}[2J{ESC}[3J{ESC}[H"

RESET = f"{ESC}[0m"

CONTENT_TYPE = "text/plain; charset=utf-8"
CACHE_CONTROL = "no-cache, no-transform"
NO_FRAMES_BODY = "No frames available"

_ENCODING = "utf-8"
_CLEAR_BYTES = CLEAR_SEQUENCE.encode(_ENCODING)


def encode_clear() -> bytes:
    """Encoded clear-screen and home-cursor sequence."""
    return _CLEAR_BYTES


def colorize(frame: str, color: str) -> str:
    """Wrap a frame in a color token, a reset and a newline."""
    return f"{color}{frame}{RESET}\n"


def encode_frame(frame: str, color: str) -> bytes:
    """Encode a frame wrapped in its color and a trailing reset + newline."""
    return colorize(frame, color).encode(_ENCODING)

