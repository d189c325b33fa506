"""
Infinite, deferred elementary cellular automaton.

The space-time diagram of a Wolfram-style rule (Rule 110 by default) is
split into square tiles of ``tile_size`` cells x ``tile_size`` generations.
A tile is computed on demand from the last rows of the three tiles above
it, or from the initial-state function for the first tile row, and is then
kept forever (until the initial state changes).

Work per call is bounded by a Tracker: once its deadline passes the request
answers PENDING and the caller simply asks again on its next frame.
Sub-tiles that finished before the deadline stay cached, so each retry
picks up where the last one stopped.

No drawing code here.
"""

from __future__ import annotations

import logging
import math
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, NamedTuple, Sequence, Union

import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════
#  Constants
# ═══════════════════════════════════════════════════════════════════════

DEFAULT_RULE: int = 110
DEFAULT_TILE_SIZE: int = 200
DEFAULT_FRAME_BUDGET: float = 0.1  # seconds of work per redraw tick

# Neighbourhood weights: left=4, center=2, right=1
N_NEIGHBORHOODS: int = 8

InitialState = Callable[[int], bool]
Tile = NDArray[np.bool_]


def single_cell(x: int) -> bool:
    """Default seed: one live cell at the origin."""
    return x == 0


# ═══════════════════════════════════════════════════════════════════════
#  Rule
# ═══════════════════════════════════════════════════════════════════════

def rule_table(number: int) -> NDArray[np.bool_]:
    """Lookup table for a rule number, indexed by the encoded neighbourhood."""
    if not 0 <= number <= 255:
        raise ValueError(f"rule number must be in [0, 255], got {number}")
    return np.array([(number >> i) & 1 for i in range(N_NEIGHBORHOODS)], dtype=np.bool_)


@dataclass(frozen=True)
class Rule:
    """An elementary CA rule. Immutable; shared freely between engines."""

    number: int
    table: NDArray[np.bool_] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        table = rule_table(self.number)
        table.flags.writeable = False
        object.__setattr__(self, "table", table)

    def lookup(self, left: bool, center: bool, right: bool) -> bool:
        return bool(self.table[(left << 2) | (center << 1) | right])

    def step(self, state: Sequence[bool] | NDArray[np.bool_]) -> NDArray[np.bool_]:
        """
        Next generation of a finite circular state.

        The first and last cells are treated as neighbours, so only cells at
        least k positions from either end are exact after k steps.
        """
        s = np.asarray(state, dtype=np.uint8)
        if s.ndim != 1 or s.size == 0:
            raise ValueError("state must be a non-empty 1-D sequence")
        left = np.roll(s, 1)
        right = np.roll(s, -1)
        return self.table[(left << 2) | (s << 1) | right]


def as_rule(rule: Rule | int) -> Rule:
    return rule if isinstance(rule, Rule) else Rule(int(rule))


# ═══════════════════════════════════════════════════════════════════════
#  Budget
# ═══════════════════════════════════════════════════════════════════════

class Tracker:
    """
    Deadline shared by one top-level request and every tile it computes.

    Build one per frame and pass the same instance to every get_tile call made
    for that frame; the deadline bounds their combined work.
    """

    def __init__(
        self, duration: float, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self._clock = clock
        self.timeout: float = clock() + duration

    @classmethod
    def unlimited(cls) -> Tracker:
        return cls(math.inf)

    def should_run(self) -> bool:
        return self._clock() < self.timeout

    def remaining(self) -> float:
        return max(0.0, self.timeout - self._clock())


# ═══════════════════════════════════════════════════════════════════════
#  Results and keys
# ═══════════════════════════════════════════════════════════════════════

class Pending:
    """Result of a request that ran out of budget. Retry on a later frame."""

    _instance: Pending | None = None

    def __new__(cls) -> Pending:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "PENDING"


PENDING = Pending()

TileResult = Union[Tile, Pending]


class TileKey(NamedTuple):
    """Tile coordinate: columns [x*n, (x+1)*n), generations [t*n, (t+1)*n)."""

    x: int
    t: int


# ═══════════════════════════════════════════════════════════════════════
#  Tile engine
# ═══════════════════════════════════════════════════════════════════════

class TileEngine:
    """
    Lazily evaluated, memoised space-time diagram of an infinite ECA.

    To compute tile (x, t) we only need the last rows of (x-1, t-1),
    (x, t-1) and (x+1, t-1). e.g. tile_size = 3

        |+++|+++|+++|
        -------------
        |-++|+++|++-|
        |--+|+++|+--|
        |---|+++|---|

    The outer thirds are stepped along with the centre so its edge cells
    see correct neighbours, then thrown away.
    """

    def __init__(
        self,
        rule: Rule | int = DEFAULT_RULE,
        tile_size: int = DEFAULT_TILE_SIZE,
        max_tiles: int | None = None,
    ) -> None:
        if tile_size < 1:
            raise ValueError(f"tile_size must be positive, got {tile_size}")
        if max_tiles is not None and max_tiles < 1:
            raise ValueError(f"max_tiles must be positive, got {max_tiles}")
        self.rule: Rule = as_rule(rule)
        self.initial: InitialState = single_cell
        self._tile_size: int = tile_size
        self.max_tiles: int | None = max_tiles
        self._tiles: OrderedDict[TileKey, Tile] = OrderedDict()

        # Instrumentation
        self.rule_steps: int = 0
        self.tiles_computed: int = 0
        self.tiles_evicted: int = 0

    # ── Configuration ───────────────────────────────────────────────

    @property
    def tile_size(self) -> int:
        return self._tile_size

    def get_tile_size(self) -> int:
        return self._tile_size

    def set_rule(self, rule: Rule | int) -> None:
        """Swap the rule. Cached tiles are kept; call reset() if they must go."""
        self.rule = as_rule(rule)

    def set_initial_state(self, initial: InitialState) -> None:
        self.initial = initial
        self.reset()

    def reset(self) -> None:
        if self._tiles:
            logger.debug("dropping %d cached tiles", len(self._tiles))
        self._tiles = OrderedDict()

    # ── Cache inspection ────────────────────────────────────────────

    @property
    def cached_tiles(self) -> int:
        return len(self._tiles)

    def is_cached(self, tile_x: int, tile_time: int) -> bool:
        return TileKey(tile_x, tile_time) in self._tiles

    # ── Tiles ───────────────────────────────────────────────────────

    def get_tile(self, tile_x: int, tile_time: int, tracker: Tracker) -> TileResult:
        """Return tile (tile_x, tile_time), or PENDING if the tracker ran out."""
        if tile_time < 0:
            raise ValueError(f"tile_time must be >= 0, got {tile_time}")
        key = TileKey(tile_x, tile_time)
        tile = self._lookup(key)
        if tile is not None:
            return tile
        return self._resolve(key, tracker)

    def _lookup(self, key: TileKey) -> Tile | None:
        tile = self._tiles.get(key)
        if tile is not None and self.max_tiles is not None:
            self._tiles.move_to_end(key)
        return tile

    def _resolve(self, key: TileKey, tracker: Tracker) -> TileResult:
        """
        Fill in the missing part of key's light cone, oldest tile row first.

        The walk up from key stops at the first row whose needed tiles are all
        cached. Tiles are then built from the deepest missing row downwards,
        checking the tracker before each one and caching each as it finishes,
        so the stack depth does not grow with tile_time.
        """
        missing: dict[int, list[int]] = {key.t: [key.x]}
        # Parent rows are held here rather than re-read from the cache, which
        # may evict them while the rows below are being stored.
        known: dict[int, dict[int, Tile]] = {key.t: {}}
        t = key.t
        while t > 0:
            wanted = sorted({x + dx for x in missing[t] for dx in (-1, 0, 1)})
            row_known: dict[int, Tile] = {}
            row_missing: list[int] = []
            for x in wanted:
                tile = self._lookup(TileKey(x, t - 1))
                if tile is None:
                    row_missing.append(x)
                else:
                    row_known[x] = tile
            known[t - 1] = row_known
            if not row_missing:
                break
            missing[t - 1] = row_missing
            t -= 1

        for row_t in range(t, key.t + 1):
            above = known.pop(row_t - 1, None)
            row = known[row_t]
            for x in missing[row_t]:
                if not tracker.should_run():
                    return PENDING
                tile = self._compute_tile(TileKey(x, row_t), above)
                self._store(TileKey(x, row_t), tile)
                row[x] = tile
        return known[key.t][key.x]

    def _compute_tile(self, key: TileKey, above: dict[int, Tile] | None) -> Tile:
        n = self._tile_size
        rows = np.empty((n, n), dtype=np.bool_)
        if above is None:
            state = self._sample_initial((key.x - 1) * n, (key.x + 2) * n)
            for i in range(n):
                rows[i] = state[n : 2 * n]
                if i + 1 < n:
                    state = self._step(state)
        else:
            state = np.concatenate([above[key.x + dx][n - 1] for dx in (-1, 0, 1)])
            for i in range(n):
                state = self._step(state)
                rows[i] = state[n : 2 * n]

        rows.flags.writeable = False
        self.tiles_computed += 1
        logger.debug("computed tile (%d, %d)", key.x, key.t)
        return rows

    def _sample_initial(self, x0: int, x1: int) -> NDArray[np.bool_]:
        return np.fromiter(
            (bool(self.initial(x)) for x in range(x0, x1)),
            dtype=np.bool_,
            count=x1 - x0,
        )

    def _step(self, state: NDArray[np.bool_]) -> NDArray[np.bool_]:
        self.rule_steps += 1
        return self.rule.step(state)

    def _store(self, key: TileKey, tile: Tile) -> None:
        self._tiles[key] = tile
        if self.max_tiles is None:
            return
        while len(self._tiles) > self.max_tiles:
            old_key, _ = self._tiles.popitem(last=False)
            self.tiles_evicted += 1
            logger.debug("evicted tile (%d, %d)", old_key.x, old_key.t)

    # ── Absolute coordinates ────────────────────────────────────────

    def cell(self, x: int, t: int, tracker: Tracker) -> bool | Pending:
        """State of cell x at generation t."""
        n = self._tile_size
        tile = self.get_tile(x // n, t // n, tracker)
        if tile is PENDING:
            return PENDING
        return bool(tile[t % n, x % n])

    def row(self, t: int, x0: int, x1: int, tracker: Tracker) -> NDArray[np.bool_] | Pending:
        """Generation t over positions [x0, x1), stitched across tiles."""
        if x1 < x0:
            raise ValueError(f"reversed range [{x0}, {x1})")
        if x1 == x0:
            return np.zeros(0, dtype=np.bool_)
        n = self._tile_size
        tile_t, offset = divmod(t, n)
        first, last = x0 // n, (x1 - 1) // n
        parts: list[NDArray[np.bool_]] = []
        for tile_x in range(first, last + 1):
            tile = self.get_tile(tile_x, tile_t, tracker)
            if tile is PENDING:
                return PENDING
            parts.append(tile[offset])
        joined = np.concatenate(parts)
        start = x0 - first * n
        return joined[start : start + (x1 - x0)]
