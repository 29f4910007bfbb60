"""Solve a crucible grid from the command line.

Usage:
    python run_crucible.py                 # inputs/input.txt, both presets
    python run_crucible.py --sample        # inputs/sample.txt
    python run_crucible.py grid.txt --min-moves 4 --max-moves 10

Prints one line per part.  Part 1 uses the standard run limits (0, 3) and
part 2 the committed run limits (4, 10) unless explicit limits are given.
"""

import argparse
import sys
from pathlib import Path

from algorithms.loss_grid import LossGrid, MalformedGrid
from backend.algorithms.crucible import (
    COMMITTED_RUN,
    STANDARD_RUN,
    CrucibleSearch,
    NoPathFound,
    SearchParameters,
)

ROOT = Path(__file__).parent.resolve()
INPUTS = ROOT / "inputs"


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Minimum heat loss through a run-constrained grid")
    parser.add_argument("input", nargs="?", help="grid file (default: inputs/input.txt)")
    parser.add_argument("--sample", action="store_true", help="use inputs/sample.txt")
    parser.add_argument("--min-moves", type=int, help="minimum run before turning or stopping")
    parser.add_argument("--max-moves", type=int, help="maximum run before a forced turn")
    args = parser.parse_args(argv)

    if args.input:
        path = Path(args.input)
    else:
        path = INPUTS / ("sample.txt" if args.sample else "input.txt")

    if (args.min_moves is None) != (args.max_moves is None):
        parser.error("--min-moves and --max-moves must be given together")

    try:
        grid = LossGrid.from_lines(path.read_text(encoding="utf8").split("\n"))
        if args.min_moves is not None:
            parts = [SearchParameters(args.min_moves, args.max_moves)]
        else:
            parts = [STANDARD_RUN, COMMITTED_RUN]
    except OSError as e:
        print(f"Cannot read {path}: {e}", file=sys.stderr)
        return 1
    except MalformedGrid as e:
        print(f"Invalid grid in {path}: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Invalid run limits: {e}", file=sys.stderr)
        return 1

    for part, params in enumerate(parts, start=1):
        try:
            result = CrucibleSearch(grid, params).solve()
        except NoPathFound as e:
            print(f"Part {part} failed: {e}", file=sys.stderr)
            return 2
        print(f"Output of part {part} is: {result.cost}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
