import numpy as np
import pytest

from algorithms.loss_grid import LossGrid, MalformedGrid, OutOfBounds


def test_from_lines_reads_columns_and_rows():
    grid = LossGrid.from_lines(["123", "456", ""])
    assert (grid.width, grid.height) == (3, 2)
    assert grid.cost_at(0, 0) == 1
    assert grid.cost_at(2, 0) == 3
    assert grid.cost_at(0, 1) == 4
    assert grid.cost_at(2, 1) == 6
    assert grid.goal == (2, 1)


def test_from_text_strips_trailing_newline():
    grid = LossGrid.from_text("90\n09\n")
    assert (grid.width, grid.height) == (2, 2)
    assert grid.cost_at(1, 1) == 9


def test_rows_accept_costs_above_nine():
    grid = LossGrid([[0, 15], [100, 2]])
    assert grid.cost_at(0, 1) == 100


def test_out_of_bounds():
    grid = LossGrid.from_lines(["12", "34"])
    for x, y in [(-1, 0), (0, -1), (2, 0), (0, 2)]:
        assert not grid.in_bounds(x, y)
        with pytest.raises(OutOfBounds):
            grid.cost_at(x, y)


@pytest.mark.parametrize(
    "lines",
    [
        [],
        [""],
        ["123", "12"],
        ["12a", "123"],
        ["1 2"],
    ],
)
def test_malformed_lines_rejected(lines):
    with pytest.raises(MalformedGrid):
        LossGrid.from_lines(lines)


@pytest.mark.parametrize(
    "rows",
    [
        [[0, 1.9], [2.5, 0.7]],
        [[1, 2], [3, 4.0]],
        [[True, 1], [1, 1]],
        [["1", "2"], ["3", "4"]],
        [[1, [2]], [3, 4]],
        [[None, 1]],
        [1, 2],
        ["12", "34"],
        "1234",
    ],
)
def test_non_integer_cells_rejected(rows):
    with pytest.raises(MalformedGrid):
        LossGrid(rows)


def test_numpy_rows_accepted():
    grid = LossGrid(np.array([[3, 1], [4, 1]]))
    assert grid.cost_at(0, 1) == 4


def test_negative_cost_rejected():
    with pytest.raises(MalformedGrid):
        LossGrid([[1, -1]])


def test_grid_is_read_only():
    grid = LossGrid.from_lines(["11", "11"])
    with pytest.raises(ValueError):
        grid.costs[0, 0] = 5
    assert grid.cost_at(0, 0) == 1


def test_path_cost_skips_first_cell():
    grid = LossGrid.from_lines(["19", "23"])
    assert grid.path_cost([(0, 0), (1, 0), (1, 1)]) == 12
    assert grid.path_cost([(0, 0)]) == 0
