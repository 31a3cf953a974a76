from typer.testing import CliRunner

from sortrace.app import app


def test_single_headless_prints_statistics() -> None:
    runner = CliRunner()
    result = runner.invoke(
        app, ["single", "--headless", "--algorithm", "merge", "--size", "20", "--speed", "100", "--seed", "1"]
    )
    assert result.exit_code == 0
    assert "Merge Sort" in result.stdout
    assert "completed" in result.stdout


def test_single_headless_accepts_custom_values() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["single", "--headless", "--speed", "100", "--values", "3, 1, 2"])
    assert result.exit_code == 0
    assert "Bubble Sort: 3 comparisons" in result.stdout


def test_compare_headless_reports_both_sides() -> None:
    runner = CliRunner()
    result = runner.invoke(
        app, ["compare", "--headless", "-l", "heap", "-r", "shell", "--size", "25", "--speed", "100"]
    )
    assert result.exit_code == 0
    assert "Heap Sort" in result.stdout
    assert "Shell Sort" in result.stdout


def test_benchmark_headless_prints_a_leaderboard() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["benchmark", "--headless", "--size", "20", "--metric", "comparisons"])
    assert result.exit_code == 0
    lines = [line for line in result.stdout.splitlines() if line.strip()]
    assert len(lines) == 16
    assert lines[0].lstrip().startswith("1.")


def test_bad_arguments_exit_with_an_error() -> None:
    runner = CliRunner()
    assert runner.invoke(app, ["single", "--headless", "--algorithm", "bogo"]).exit_code == 2
    assert runner.invoke(app, ["single", "--headless", "--speed", "300"]).exit_code == 2
    assert runner.invoke(app, ["benchmark", "--headless", "--metric", "swaps"]).exit_code == 2
    assert runner.invoke(app, ["single", "--headless", "--values", "a,b"]).exit_code == 2


def test_info_lists_every_algorithm() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["info"])
    assert result.exit_code == 0
    lines = [line for line in result.stdout.splitlines() if line.strip()]
    assert len(lines) == 16
    assert lines[0].startswith("bubble")
    assert "Stable, In-place" in lines[0]


def test_info_describes_one_algorithm() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["info", "merge"])
    assert result.exit_code == 0
    assert "Merge Sort" in result.stdout
    assert "O(n log n)" in result.stdout
    assert "Stable, Out-of-place" in result.stdout
    assert runner.invoke(app, ["info", "bogo"]).exit_code == 2


def test_volume_must_be_a_percentage() -> None:
    runner = CliRunner()
    assert runner.invoke(app, ["single", "--headless", "--volume", "150"]).exit_code == 2
    assert runner.invoke(app, ["compare", "--headless", "--volume", "-1"]).exit_code == 2
    result = runner.invoke(app, ["single", "--headless", "--speed", "100", "--volume", "40", "--size", "5"])
    assert result.exit_code == 0
