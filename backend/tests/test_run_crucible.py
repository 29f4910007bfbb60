from pathlib import Path

import run_crucible

SAMPLE = Path(run_crucible.INPUTS) / "sample.txt"


def test_sample_prints_both_parts(capsys):
    assert run_crucible.main(["--sample"]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out == ["Output of part 1 is: 102", "Output of part 2 is: 94"]


def test_explicit_limits(tmp_path, capsys):
    grid_file = tmp_path / "grid.txt"
    grid_file.write_text("111111111111\n999999999991\n999999999991\n999999999991\n999999999991\n")
    assert run_crucible.main([str(grid_file), "--min-moves", "4", "--max-moves", "10"]) == 0
    assert capsys.readouterr().out.strip() == "Output of part 1 is: 71"


def test_malformed_grid(tmp_path, capsys):
    grid_file = tmp_path / "grid.txt"
    grid_file.write_text("12\n3\n")
    assert run_crucible.main([str(grid_file)]) == 1
    assert "Invalid grid" in capsys.readouterr().err


def test_no_path(tmp_path, capsys):
    grid_file = tmp_path / "grid.txt"
    grid_file.write_text("111\n")
    assert run_crucible.main([str(grid_file)]) == 2
    captured = capsys.readouterr()
    assert captured.out.strip() == "Output of part 1 is: 2"
    assert "Part 2 failed" in captured.err


def test_missing_file(tmp_path, capsys):
    assert run_crucible.main([str(tmp_path / "nope.txt")]) == 1
    assert "Cannot read" in capsys.readouterr().err
    assert SAMPLE.exists()
