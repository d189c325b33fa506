from __future__ import annotations

from typing import Callable

import pytest


def simulate(
    rule: int, initial: Callable[[int], bool], x0: int, x1: int, generations: int
) -> list[list[bool]]:
    """
    Reference simulator: generations 0..`generations` over [x0, x1).

    Starts from a window widened by one cell per generation on each side and
    shrinks it every step, so no cell ever sees a made-up neighbour.
    """
    lo, hi = x0 - generations, x1 + generations
    row = [bool(initial(x)) for x in range(lo, hi)]
    width = x1 - x0
    history = [row[generations : generations + width]]
    for g in range(1, generations + 1):
        row = [
            bool((rule >> (row[i - 1] * 4 + row[i] * 2 + row[i + 1])) & 1)
            for i in range(1, len(row) - 1)
        ]
        off = generations - g
        history.append(row[off : off + width])
    return history


class FakeClock:
    """Advances one second every time it is read."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        self.now += 1.0
        return self.now


@pytest.fixture
def brute_force():
    return simulate


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
