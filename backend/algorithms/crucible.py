"""Run-constrained best-first search ("crucible" search) on a weighted grid.

A path starts at the top-left cell and must reach the bottom-right cell.  Every
move enters a neighbouring cell (4-neighbourhood) and pays that cell's cost.
Moves are constrained by *run-length*: the number of consecutive moves made in
the same direction.

* A path may never reverse direction.
* A run may not exceed ``max_moves`` straight moves; the path must turn.
* A run must reach ``min_moves`` before the path may turn or stop at the goal.
  The very first move away from the origin is exempt.

The search space is therefore (x, y, direction, run_length).  States are
expanded cheapest-first (Dijkstra; all costs are non-negative), and a settled
set prevents re-expansion.  When a state with ``run_length >= min_moves`` is
settled, every longer run at the same cell and direction is settled with it:
such states can only be reached at equal or higher cost, and they have a
subset of its moves available.

The same engine solves both the standard variant ``(0, 3)`` and the committed
variant ``(4, 10)``; only the :class:`SearchParameters` differ.
"""
from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from algorithms.loss_grid import Coord, LossGrid, OutOfBounds


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class FrontierEmpty(IndexError):
    """pop_min() called on an empty frontier."""


class NoPathFound(RuntimeError):
    """The frontier ran dry before an acceptable goal state was popped."""


class SearchLimitExceeded(RuntimeError):
    """The optional expansion guard tripped."""


# ---------------------------------------------------------------------------
# Directions and the move table
# ---------------------------------------------------------------------------

class Direction(Enum):
    NONE = (0, 0)  # origin only
    UP = (0, -1)
    DOWN = (0, 1)
    LEFT = (-1, 0)
    RIGHT = (1, 0)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dy(self) -> int:
        return self.value[1]


MOVE_DIRS: Tuple[Direction, ...] = (Direction.UP, Direction.DOWN, Direction.LEFT, Direction.RIGHT)

OPPOSITE: Dict[Direction, Direction] = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}


class Turn(Enum):
    START = "start"        # first move away from the origin
    STRAIGHT = "straight"
    TURN = "turn"
    REVERSE = "reverse"


def _classify(current: Direction, candidate: Direction) -> Turn:
    if current is Direction.NONE:
        return Turn.START
    if candidate is current:
        return Turn.STRAIGHT
    if candidate is OPPOSITE[current]:
        return Turn.REVERSE
    return Turn.TURN


# (current direction, candidate direction) -> kind of move; covers every pair
TURN_TABLE: Dict[Tuple[Direction, Direction], Turn] = {
    (current, candidate): _classify(current, candidate)
    for current in Direction
    for candidate in MOVE_DIRS
}


# ---------------------------------------------------------------------------
# Parameters and states
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SearchParameters:
    min_moves: int
    max_moves: int

    def __post_init__(self):
        if self.min_moves < 0 or self.max_moves < 0:
            raise ValueError("min_moves and max_moves must be non-negative")
        if self.min_moves > self.max_moves:
            raise ValueError(f"min_moves ({self.min_moves}) exceeds max_moves ({self.max_moves})")


STANDARD_RUN = SearchParameters(min_moves=0, max_moves=3)
COMMITTED_RUN = SearchParameters(min_moves=4, max_moves=10)

PRESETS: Dict[str, SearchParameters] = {
    "standard": STANDARD_RUN,
    "committed": COMMITTED_RUN,
}

Key = Tuple[int, int, Direction, int]  # (x, y, direction, run_length)


@dataclass(frozen=True)
class State:
    x: int
    y: int
    direction: Direction
    run_length: int
    cost: int

    @property
    def key(self) -> Key:
        return self.x, self.y, self.direction, self.run_length

    @property
    def is_origin(self) -> bool:
        return self.direction is Direction.NONE


ORIGIN = State(0, 0, Direction.NONE, 0, 0)


# ---------------------------------------------------------------------------
# Transition generator
# ---------------------------------------------------------------------------

def next_state(grid: LossGrid, current: State, direction: Direction, params: SearchParameters) -> Optional[State]:
    """Return the state reached by moving one cell in *direction*, or None if illegal."""
    nx, ny = current.x + direction.dx, current.y + direction.dy
    try:
        entry_cost = grid.cost_at(nx, ny)
    except OutOfBounds:
        return None

    turn = TURN_TABLE[(current.direction, direction)]
    if turn is Turn.REVERSE:
        return None
    if turn is Turn.STRAIGHT and current.run_length >= params.max_moves:
        return None
    if turn is Turn.TURN and current.run_length < params.min_moves:
        return None

    run_length = current.run_length + 1 if turn is Turn.STRAIGHT else 1
    if run_length > params.max_moves:
        # only reachable with max_moves == 0
        return None
    return State(nx, ny, direction, run_length, current.cost + entry_cost)


def successors(grid: LossGrid, current: State, params: SearchParameters) -> List[State]:
    res = []
    for d in MOVE_DIRS:
        nxt = next_state(grid, current, d, params)
        if nxt is not None:
            res.append(nxt)
    return res


# ---------------------------------------------------------------------------
# Frontier and settled set
# ---------------------------------------------------------------------------

class Frontier:
    """Min-heap of states ordered by cost; insertion order breaks ties."""

    def __init__(self):
        self._heap: List[Tuple[int, int, State, Optional[Key]]] = []
        self._seq = itertools.count()

    def push(self, state: State, came_from: Optional[Key] = None) -> None:
        heapq.heappush(self._heap, (state.cost, next(self._seq), state, came_from))

    def pop_min(self) -> Tuple[State, Optional[Key]]:
        """Return (state, key it was reached from)."""
        if not self._heap:
            raise FrontierEmpty("pop from empty frontier")
        _, _, state, came_from = heapq.heappop(self._heap)
        return state, came_from

    def __len__(self) -> int:
        return len(self._heap)


class SettledSet:
    def __init__(self):
        self._keys = set()

    def is_settled(self, key: Key) -> bool:
        return key in self._keys

    def mark_settled_exact(self, key: Key) -> None:
        self._keys.add(key)

    def mark_settled_range(self, x: int, y: int, direction: Direction, from_run: int, to_run: int) -> None:
        """Settle runs from_run..to_run (inclusive) at (x, y) heading *direction*."""
        for run in range(from_run, to_run + 1):
            self._keys.add((x, y, direction, run))

    def __contains__(self, key: Key) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)


# ---------------------------------------------------------------------------
# Search driver
# ---------------------------------------------------------------------------

@dataclass
class SearchResult:
    cost: int
    path: List[Coord]
    directions: List[Direction]
    expanded: int
    pushed: int
    params: SearchParameters

    def to_dict(self) -> dict:
        return {
            "cost": self.cost,
            "path": [list(p) for p in self.path],
            "directions": [d.name.lower() for d in self.directions],
            "expanded": self.expanded,
            "pushed": self.pushed,
            "min_moves": self.params.min_moves,
            "max_moves": self.params.max_moves,
        }


@dataclass
class CrucibleSearch:
    grid: LossGrid
    params: SearchParameters = STANDARD_RUN
    fast_forward: bool = True  # settle the whole remaining run range at once
    snapshot_interval: int = 100
    max_expansions: Optional[int] = None

    # internal state, rebuilt on every run
    frontier: Frontier = field(init=False, default_factory=Frontier)
    settled: SettledSet = field(init=False, default_factory=SettledSet)
    came_from: Dict[Key, Optional[Key]] = field(init=False, default_factory=dict)
    expanded: int = field(init=False, default=0)
    pushed: int = field(init=False, default=0)
    result: Optional[SearchResult] = field(init=False, default=None)

    def __post_init__(self):
        if self.snapshot_interval < 1:
            raise ValueError("snapshot_interval must be >= 1")

    def _reset(self):
        self.frontier = Frontier()
        self.settled = SettledSet()
        self.came_from = {}
        self.expanded = 0
        self.pushed = 0
        self.result = None

    # --------------------------------------------------------
    def _settle(self, state: State) -> None:
        if self.fast_forward and state.run_length >= self.params.min_moves:
            self.settled.mark_settled_range(
                state.x, state.y, state.direction, state.run_length, self.params.max_moves
            )
        else:
            self.settled.mark_settled_exact(state.key)

    def _accepts(self, state: State) -> bool:
        if (state.x, state.y) != self.grid.goal:
            return False
        # a 1x1 grid is solved without moving, so no run constraint applies
        return state.is_origin or state.run_length >= self.params.min_moves

    def _reconstruct(self, end: Key) -> Tuple[List[Coord], List[Direction]]:
        keys = []
        cur: Optional[Key] = end
        while cur is not None:
            keys.append(cur)
            cur = self.came_from[cur]
        keys.reverse()
        path = [(k[0], k[1]) for k in keys]
        directions = [k[2] for k in keys[1:]]
        return path, directions

    def _snapshot(self, state: State) -> dict:
        return {
            "iteration": self.expanded,
            "current": (state.x, state.y),
            "key": (state.x, state.y, state.direction.name.lower(), state.run_length),
            "cost": state.cost,
            "frontier_size": len(self.frontier),
            "settled_count": len(self.settled),
        }

    # --------------------------------------------------------
    def run_iter(self) -> Iterator[dict]:
        """Generator yielding snapshots while searching.

        A snapshot is emitted every ``snapshot_interval`` expansions, plus a
        final one with ``done: True`` once the goal is accepted.  Raises
        :class:`NoPathFound` if the frontier empties first.
        """
        self._reset()
        self.frontier.push(ORIGIN)

        while True:
            try:
                state, parent = self.frontier.pop_min()
            except FrontierEmpty:
                raise NoPathFound(
                    f"no path on {self.grid!r} with min_moves={self.params.min_moves}, "
                    f"max_moves={self.params.max_moves}"
                ) from None

            if self.settled.is_settled(state.key):
                continue
            self._settle(state)
            self.came_from[state.key] = parent
            self.expanded += 1
            if self.max_expansions is not None and self.expanded > self.max_expansions:
                raise SearchLimitExceeded(f"more than {self.max_expansions} expansions")

            if self._accepts(state):
                path, directions = self._reconstruct(state.key)
                self.result = SearchResult(
                    cost=state.cost,
                    path=path,
                    directions=directions,
                    expanded=self.expanded,
                    pushed=self.pushed,
                    params=self.params,
                )
                snap = self._snapshot(state)
                snap.update({"done": True, "path": path})
                yield snap
                return

            for nxt in successors(self.grid, state, self.params):
                self.frontier.push(nxt, state.key)
                self.pushed += 1

            if self.expanded % self.snapshot_interval == 0:
                yield self._snapshot(state)

    def solve(self) -> SearchResult:
        for _ in self.run_iter():
            pass
        return self.result


def find_minimum_loss(grid: LossGrid, min_moves: int, max_moves: int) -> int:
    """Minimal total entry cost from the top-left to the bottom-right cell."""
    params = SearchParameters(min_moves=min_moves, max_moves=max_moves)
    return CrucibleSearch(grid, params).solve().cost
