"""
Doubling evaluator for elementary CA segments.

A segment of 2^L cells at one instant is held as a binary tree of
HashCellNodes. step() advances the centre half of the segment by one
generation by stepping two overlapping half-size segments, recursively,
down to 4-cell windows.

Nodes are not canonicalised: identical sub-patterns in different parts of
the tree are separate objects and are stepped separately.
"""

from __future__ import annotations

from typing import Sequence, cast

from eca import InitialState, Rule, as_rule


class HashCell:
    """The rule a tree of nodes evolves under."""

    def __init__(self, rule: Rule | int) -> None:
        self.rule: Rule = as_rule(rule)

    def step(self, state: Sequence[bool]) -> tuple[bool, ...]:
        return tuple(bool(v) for v in self.rule.step(state))

    def __repr__(self) -> str:
        return f"HashCell({self.rule.number})"


class HashCellNode:
    """Immutable node representing a 2^level slice of the universe."""

    __slots__ = ("hashcell", "level", "left", "right", "value", "pattern")

    def __init__(
        self,
        hashcell: HashCell,
        level: int,
        left: HashCellNode | None = None,
        right: HashCellNode | None = None,
        value: bool = False,
        pattern: tuple[bool, ...] | None = None,
    ) -> None:
        set_slot = object.__setattr__
        set_slot(self, "hashcell", hashcell)
        set_slot(self, "level", level)
        set_slot(self, "left", left)
        set_slot(self, "right", right)
        set_slot(self, "value", value)
        set_slot(self, "pattern", pattern)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"HashCellNode is immutable; cannot set {name!r}")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"HashCellNode is immutable; cannot delete {name!r}")

    # ── Construction ────────────────────────────────────────────────

    @classmethod
    def leaf(cls, hashcell: HashCell, value: bool) -> HashCellNode:
        v = bool(value)
        return cls(hashcell, 0, value=v, pattern=(v,))

    @classmethod
    def join(cls, left: HashCellNode, right: HashCellNode) -> HashCellNode:
        if left.level != right.level:
            raise ValueError(
                f"cannot join nodes of level {left.level} and {right.level}"
            )
        if left.hashcell is not right.hashcell:
            raise ValueError("cannot join nodes built for different rules")
        level = left.level + 1
        pattern = None
        if level <= 2:
            pattern = left.pattern + right.pattern  # type: ignore[operator]
        return cls(left.hashcell, level, left=left, right=right, pattern=pattern)

    @classmethod
    def from_cells(cls, hashcell: HashCell, cells: Sequence[bool]) -> HashCellNode:
        """Build a tree from a sequence whose length is a power of two."""
        n = len(cells)
        if n == 0 or n & (n - 1):
            raise ValueError(f"length must be a power of two, got {n}")
        nodes = [cls.leaf(hashcell, v) for v in cells]
        while len(nodes) > 1:
            nodes = [cls.join(nodes[i], nodes[i + 1]) for i in range(0, len(nodes), 2)]
        return nodes[0]

    @classmethod
    def from_initial(
        cls, hashcell: HashCell, initial: InitialState, x0: int, level: int
    ) -> HashCellNode:
        """Sample positions [x0, x0 + 2^level) of an initial-state function."""
        if level < 0:
            raise ValueError(f"level must be >= 0, got {level}")
        return cls.from_cells(
            hashcell, [bool(initial(x)) for x in range(x0, x0 + (1 << level))]
        )

    # ── Inspection ──────────────────────────────────────────────────

    @property
    def size(self) -> int:
        return 1 << self.level

    def cells(self) -> tuple[bool, ...]:
        if self.pattern is not None:
            return self.pattern
        out: list[bool] = []
        stack: list[HashCellNode] = [self]
        while stack:
            node = stack.pop()
            if node.pattern is not None:
                out.extend(node.pattern)
            else:
                left, right = _halves(node)
                stack.append(right)
                stack.append(left)
        return tuple(out)

    def __repr__(self) -> str:
        bits = "".join("1" if v else "0" for v in self.cells()[:64])
        more = "..." if self.size > 64 else ""
        return f"HashCellNode(level={self.level}, {bits}{more})"

    # ── Evolution ───────────────────────────────────────────────────

    def step(self) -> HashCellNode:
        """
        Return the centre half after one generation.

            this = |* *|* *|
            ret  =   |+ +|
        """
        if self.level < 2:
            raise ValueError(f"step() needs level >= 2, got {self.level}")
        hc = self.hashcell
        if self.level == 2:
            new_pattern = hc.step(self.pattern)  # type: ignore[arg-type]
            return HashCellNode.join(
                HashCellNode.leaf(hc, new_pattern[1]),
                HashCellNode.leaf(hc, new_pattern[2]),
            )

        # this = |0 1 2 3|4 5 6 7|
        # ret  =     |a b c d|
        #
        # |a b| = |1 2 3 4|.step
        # |c d| = |3 4 5 6|.step
        l, r = _halves(self)
        ll, lr = _halves(l)
        rl, rr = _halves(r)
        e1 = _halves(ll)[1]
        e2, e3 = _halves(lr)
        e4, e5 = _halves(rl)
        e6 = _halves(rr)[0]

        l_part = HashCellNode.join(e1, e2)
        center = HashCellNode.join(e3, e4)
        r_part = HashCellNode.join(e5, e6)

        l_shifted = HashCellNode.join(l_part, center)
        r_shifted = HashCellNode.join(center, r_part)
        return HashCellNode.join(l_shifted.step(), r_shifted.step())

    def advance(self, generations: int) -> HashCellNode:
        """Step `generations` times; each step halves the segment."""
        if generations < 0:
            raise ValueError(f"generations must be >= 0, got {generations}")
        if self.level < generations + 1:
            raise ValueError(
                f"level {self.level} node cannot advance {generations} generations"
            )
        node = self
        for _ in range(generations):
            node = node.step()
        return node


def _halves(node: HashCellNode) -> tuple[HashCellNode, HashCellNode]:
    """Children of an internal node (level >= 1)."""
    return cast("tuple[HashCellNode, HashCellNode]", (node.left, node.right))
