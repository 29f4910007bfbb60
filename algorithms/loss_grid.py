"""Immutable 2-D cost map for the crucible search.

Grid coordinates are integer indices (x=col, y=row).  Each cell holds the cost
paid when a path *enters* it; the origin cell is never charged.  The text
format is one line per row, one ASCII digit per cell.
"""
from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

import numpy as np

Coord = Tuple[int, int]

DIGITS = "0123456789"


class MalformedGrid(ValueError):
    """Raised when grid input is empty, ragged, non-numeric or negative."""


class OutOfBounds(IndexError):
    """Raised when a coordinate lies outside the grid."""


class LossGrid:
    def __init__(self, rows: Sequence[Sequence[int]]):
        """rows[y][x] == cost of entering cell (x, y)"""
        if isinstance(rows, str) or len(rows) == 0:
            raise MalformedGrid("grid has no rows")
        width = None
        for y, row in enumerate(rows):
            if isinstance(row, str) or not isinstance(row, (Sequence, np.ndarray)):
                raise MalformedGrid(f"row {y} is not a sequence of costs")
            if width is None:
                width = len(row)
                if width == 0:
                    raise MalformedGrid("grid rows are empty")
            if len(row) != width:
                raise MalformedGrid(f"row {y} has length {len(row)}, expected {width}")
            for x, cost in enumerate(row):
                # bool is an int subclass but never a cost
                if isinstance(cost, bool) or not isinstance(cost, (int, np.integer)):
                    raise MalformedGrid(f"cost at ({x}, {y}) is not an integer: {cost!r}")

        try:
            costs = np.array(rows, dtype=np.int64)
        except OverflowError as e:
            raise MalformedGrid(f"grid cost out of range: {e}") from None
        if costs.ndim != 2:
            raise MalformedGrid(f"grid must be 2-D, got {costs.ndim} dimensions")
        if (costs < 0).any():
            raise MalformedGrid("grid costs must be non-negative")
        costs.setflags(write=False)
        self._costs = costs
        self.h, self.w = costs.shape

    # --------------------------------------------------
    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> "LossGrid":
        """Parse digit lines; trailing blank lines left by the loader are ignored."""
        raw: List[str] = [line.rstrip("\r\n") for line in lines]
        while raw and raw[-1] == "":
            raw.pop()
        rows: List[List[int]] = []
        for y, line in enumerate(raw):
            for x, ch in enumerate(line):
                if ch not in DIGITS:
                    raise MalformedGrid(f"non-digit character {ch!r} at ({x}, {y})")
            rows.append([int(ch) for ch in line])
        return cls(rows)

    @classmethod
    def from_text(cls, text: str) -> "LossGrid":
        return cls.from_lines(text.split("\n"))

    # --------------------------------------------------
    @property
    def width(self) -> int:
        return self.w

    @property
    def height(self) -> int:
        return self.h

    @property
    def goal(self) -> Coord:
        return self.w - 1, self.h - 1

    @property
    def costs(self) -> np.ndarray:
        """Read-only view of the cost array, indexed [y, x]."""
        return self._costs

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.w and 0 <= y < self.h

    def cost_at(self, x: int, y: int) -> int:
        if not self.in_bounds(x, y):
            raise OutOfBounds(f"({x}, {y}) outside {self.w}x{self.h} grid")
        return int(self._costs[y, x])

    def path_cost(self, path: Sequence[Coord]) -> int:
        """Sum of entry costs along *path*, excluding its first cell."""
        return sum(self.cost_at(x, y) for x, y in path[1:])

    def __repr__(self) -> str:
        return f"LossGrid({self.w}x{self.h})"
