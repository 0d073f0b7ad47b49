"""
Color Cycler
============

Random ANSI color selection that never picks the same color twice in a row.

The cycler keeps no state of its own: callers pass the index they got
from the previous call and store the new one.
"""

import random
from typing import Optional, Sequence, Tuple

from vi_stream.stream.protocol import ESC


RED = f"{ESC}[31m"
YELLOW = f"{ESC}[33m"
GREEN = f"{ESC}[32m"
BLUE = f"{ESC}[34m"
MAGENTA = f"{ESC}[35m"
CYAN = f"{ESC}[36m"
WHITE = f"{ESC}[37m"

DEFAULT_PALETTE: Tuple[str, ...] = (RED, YELLOW, GREEN, BLUE, MAGENTA, CYAN, WHITE)


class ColorCycler:
    """
    Picks color tokens from a fixed palette.

    With a single-entry palette the same token is returned every time.
    Otherwise the new index is drawn uniformly from the N-1 indices that
    differ from the previous one, so selection always takes one draw.

    Attributes:
        palette: Ordered, non-empty tuple of color-on tokens

    Example:
        cycler = ColorCycler()
        token, idx = cycler.next(None)
        token, idx = cycler.next(idx)   # guaranteed different token
    """

    def __init__(
        self,
        palette: Sequence[str] = DEFAULT_PALETTE,
        rng: Optional[random.Random] = None,
    ) -> None:
        """
        Initialize color cycler.

        Args:
            palette: Color tokens to choose from. Must not be empty.
            rng: Random source (defaults to a fresh random.Random)
        """
        if not palette:
            raise ValueError("palette must contain at least one color")

        self.palette: Tuple[str, ...] = tuple(palette)
        self._rng = rng or random.Random()

    def __len__(self) -> int:
        return len(self.palette)

    def next(self, previous_index: Optional[int]) -> Tuple[str, int]:
        """
        Select the next color.

        Args:
            previous_index: Index returned by the previous call, or None

        Returns:
            (color token, its palette index)
        """
        n = len(self.palette)
        if n == 1:
            return self.palette[0], 0

        if previous_index is None or not 0 <= previous_index < n:
            index = self._rng.randrange(n)
        else:
            index = self._rng.randrange(n - 1)
            if index >= previous_index:
                index += 1

        return self.palette[index], index
