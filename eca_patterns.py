"""
Seed patterns for the infinite ECA.

Patterns are written as 0/1 strings and turned into initial-state
functions that repeat a left pattern forever to the left, lay a finite
centre pattern at position 0, and repeat a right pattern forever to the
right. The Rule 110 presets below place "A" gliders in the periodic ether
background.
"""

from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np
from numpy.typing import NDArray

from eca import InitialState

Pattern = tuple[bool, ...]


def pattern_from_string(s: str) -> Pattern:
    """'1' is alive; anything else is dead."""
    return tuple(c == "1" for c in s)


def pattern_to_string(pattern: Iterable[bool]) -> str:
    return "".join("1" if v else "0" for v in pattern)


def replicate(pattern: Sequence[bool], n: int) -> Pattern:
    return tuple(pattern) * n


def periodic_initial_state(
    left: Sequence[bool], center: Sequence[bool], right: Sequence[bool]
) -> InitialState:
    """
    Build x -> bool from three patterns.

      x < 0             left, repeating, with left[-1] at x = -1
      0 <= x < len(c)   center[x]
      x >= len(c)       right, repeating from right[0]

    An empty left or right pattern leaves that whole side dead.
    """
    pat_l, pat_c, pat_r = tuple(left), tuple(center), tuple(right)
    n_l, n_c, n_r = len(pat_l), len(pat_c), len(pat_r)

    def initial(x: int) -> bool:
        if x < 0:
            return n_l > 0 and pat_l[x % n_l]
        if x < n_c:
            return pat_c[x]
        return n_r > 0 and pat_r[(x - n_c) % n_r]

    return initial


def find_occurrences(row: Sequence[bool] | NDArray[np.bool_], pattern: Sequence[bool]) -> list[int]:
    """Start offsets of every (possibly overlapping) match of pattern in row."""
    r = np.asarray(row, dtype=np.bool_)
    p = np.asarray(pattern, dtype=np.bool_)
    m = p.size
    if m == 0 or m > r.size:
        return []
    windows = np.lib.stride_tricks.sliding_window_view(r, m)
    return np.flatnonzero((windows == p).all(axis=1)).tolist()


# ═══════════════════════════════════════════════════════════════════════
#  Rule 110 presets
# ═══════════════════════════════════════════════════════════════════════

ETHER: Pattern = pattern_from_string("11111000100110")
GLIDER_A: Pattern = pattern_from_string("1110")
GLIDER_A4: Pattern = pattern_from_string("1110111011101110")

PATTERNS: dict[str, Pattern] = {
    "ether": ETHER,
    "A": GLIDER_A,
}


def ether_with_gliders() -> InitialState:
    """Two A gliders separated by ether, on an ether background."""
    core = (
        replicate(ETHER, 5) + GLIDER_A
        + replicate(ETHER, 5) + GLIDER_A
        + replicate(ETHER, 5)
    )
    return periodic_initial_state(ETHER, core, ETHER)


def glider_bands() -> Pattern:
    """Three packs of four A4 glider groups, spaced by long ether runs."""
    a4pack = (
        GLIDER_A4 + replicate(ETHER, 27)
        + GLIDER_A4 + replicate(ETHER, 23)
        + GLIDER_A4 + replicate(ETHER, 25)
        + GLIDER_A4
    )
    return (
        a4pack + replicate(ETHER, 649)
        + a4pack + replicate(ETHER, 649)
        + a4pack
    )


def glider_bands_initial() -> InitialState:
    return periodic_initial_state(ETHER, glider_bands(), ETHER)
