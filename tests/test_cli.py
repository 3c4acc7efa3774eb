"""Tests for the startforge command-line interface.

Each command is run end to end on the hand-built genome files from
conftest, writing its table with -o.
"""

from pathlib import Path

import pytest
from click.testing import CliRunner

from startforge import __version__
from startforge.cli import main
from startforge.core.starts import N_FEATURES, feature_header


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def read_rows(path: Path) -> list[list[str]]:
    return [line.split("\t") for line in path.read_text().splitlines()]


# =============================================================================
# Group Options
# =============================================================================


class TestMain:
    """Tests for the command group."""

    def test_help_lists_commands(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("train", "test", "predict", "finish"):
            assert command in result.output

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_invalid_config(self, runner: CliRunner, tmp_path: Path, genome_dir: Path) -> None:
        """A bad configuration file fails before any command runs."""
        config = tmp_path / "bad.yaml"
        config.write_text("training:\n  balance_fuzz: 5\n")
        result = runner.invoke(main, ["--config", str(config), "train", str(genome_dir)])
        assert result.exit_code == 1
        assert "Balance factor" in result.output


# =============================================================================
# train
# =============================================================================


class TestTrainCommand:
    """Tests for the train command."""

    def test_train(self, runner: CliRunner, genome_dir: Path, tmp_path: Path) -> None:
        output = tmp_path / "training.tbl"
        result = runner.invoke(main, ["train", str(genome_dir), "-o", str(output)])
        assert result.exit_code == 0, result.output
        rows = read_rows(output)
        assert rows[0] == ["frame", *feature_header()]
        assert sorted(row[0] for row in rows[1:]) == ["other", "start", "start"]
        assert "True starts" in result.output

    def test_max_false_starts(self, runner: CliRunner, genome_dir: Path, tmp_path: Path) -> None:
        output = tmp_path / "training.tbl"
        result = runner.invoke(
            main, ["-q", "train", str(genome_dir), "-m", "0", "-o", str(output)]
        )
        assert result.exit_code == 0, result.output
        assert [row[0] for row in read_rows(output)[1:]] == ["start", "start"]

    def test_balance(self, runner: CliRunner, genome_dir: Path, tmp_path: Path) -> None:
        output = tmp_path / "training.tbl"
        result = runner.invoke(
            main, ["-q", "train", str(genome_dir), "-b", "1.0", "--seed", "3", "-o", str(output)]
        )
        assert result.exit_code == 0, result.output
        assert sorted(row[0] for row in read_rows(output)[1:]) == ["other", "start"]

    def test_invalid_balance(self, runner: CliRunner, genome_dir: Path) -> None:
        result = runner.invoke(main, ["train", str(genome_dir), "-b", "0.5"])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_incomplete_directory(self, runner: CliRunner, genome_dir: Path) -> None:
        (genome_dir / "g1.stops.tbl").unlink()
        result = runner.invoke(main, ["train", str(genome_dir)])
        assert result.exit_code == 1
        assert "stops.tbl" in result.output

    def test_missing_directory(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(main, ["train", str(tmp_path / "nowhere")])
        assert result.exit_code == 2


# =============================================================================
# test
# =============================================================================


class TestTestCommand:
    """Tests for the test command."""

    def test_test_table(
        self,
        runner: CliRunner,
        genome_fasta: Path,
        genome_gff: Path,
        stops_table: Path,
        role_map_file: Path,
        tmp_path: Path,
    ) -> None:
        output = tmp_path / "test.tbl"
        result = runner.invoke(
            main,
            [
                "test",
                str(genome_fasta),
                str(genome_gff),
                str(stops_table),
                "--roles",
                str(role_map_file),
                "-o",
                str(output),
            ],
        )
        assert result.exit_code == 0, result.output
        rows = read_rows(output)
        assert rows[0][-2:] == ["expect", "roles"]
        assert [row[-2] for row in rows[1:]] == ["start", "other", "start"]
        assert rows[3][-1] == "GammProt"
        assert all(len(row) == N_FEATURES + 3 for row in rows)

    def test_minus_strand(
        self,
        runner: CliRunner,
        genome_fasta: Path,
        genome_gff: Path,
        stops_table: Path,
        tmp_path: Path,
    ) -> None:
        output = tmp_path / "test.tbl"
        result = runner.invoke(
            main,
            [
                "test",
                str(genome_fasta),
                str(genome_gff),
                str(stops_table),
                "--strand",
                "-",
                "-o",
                str(output),
            ],
        )
        assert result.exit_code == 0, result.output
        assert [row[-2] for row in read_rows(output)[1:]] == ["other"] * 3


# =============================================================================
# predict
# =============================================================================


class TestPredictCommand:
    """Tests for the predict command."""

    def test_predict_file(
        self, runner: CliRunner, genome_fasta: Path, stops_table: Path, tmp_path: Path
    ) -> None:
        output = tmp_path / "starts.tbl"
        result = runner.invoke(
            main, ["predict", str(genome_fasta), str(stops_table), "-o", str(output)]
        )
        assert result.exit_code == 0, result.output
        rows = read_rows(output)
        assert rows[0] == feature_header()
        assert [row[0] for row in rows[1:]] == ["contig1;4", "contig1;10", "contig1;22"]

    def test_predict_stdout(
        self, runner: CliRunner, genome_fasta: Path, stops_table: Path
    ) -> None:
        """Without -o the table goes to standard output."""
        result = runner.invoke(main, ["-q", "predict", str(genome_fasta), str(stops_table)])
        assert result.exit_code == 0, result.output
        lines = result.output.splitlines()
        assert lines[0] == "\t".join(feature_header())
        assert len(lines) == 4

    def test_corrupt_predictions(
        self, runner: CliRunner, genome_fasta: Path, tmp_path: Path
    ) -> None:
        stops = tmp_path / "bad.stops.tbl"
        stops.write_text("location\tcodon\tpredicted\tconfidence\ncontig1-16\ttaa\tstop\t0.9\n")
        result = runner.invoke(main, ["predict", str(genome_fasta), str(stops)])
        assert result.exit_code == 1


# =============================================================================
# finish
# =============================================================================


class TestFinishCommand:
    """Tests for the finish command."""

    def test_full(
        self, runner: CliRunner, stops_table: Path, scored_starts: Path, tmp_path: Path
    ) -> None:
        output = tmp_path / "final.tbl"
        result = runner.invoke(
            main, ["finish", str(stops_table), str(scored_starts), "-o", str(output)]
        )
        assert result.exit_code == 0, result.output
        rows = read_rows(output)
        assert rows[0] == ["final", "location", "predicted", "confidence"]
        assert [row[1] for row in rows if row[0] == "start"] == ["contig1;10", "contig1;22"]
        assert len(rows) == 7
        assert "Accepted" in result.output

    def test_alt(
        self, runner: CliRunner, stops_table: Path, scored_starts: Path, tmp_path: Path
    ) -> None:
        output = tmp_path / "final.tbl"
        result = runner.invoke(
            main, ["finish", str(stops_table), str(scored_starts), "--alt", "-o", str(output)]
        )
        assert result.exit_code == 0, result.output
        assert output.read_text().splitlines() == [
            "contig\tstart\tstop\tconfidence\tstrand\ttype",
            "contig1\t10\t16\t0.900000\t+\tCDS",
            "contig1\t22\t28\t0.700000\t+\tCDS",
        ]

    def test_config_format(
        self,
        runner: CliRunner,
        config_file: Path,
        stops_table: Path,
        scored_starts: Path,
        tmp_path: Path,
    ) -> None:
        """The output format can come from the configuration file."""
        output = tmp_path / "final.tbl"
        result = runner.invoke(
            main,
            [
                "--config",
                str(config_file),
                "finish",
                str(stops_table),
                str(scored_starts),
                "-o",
                str(output),
            ],
        )
        assert result.exit_code == 0, result.output
        assert len(output.read_text().splitlines()) == 3

    def test_missing_confidence(
        self, runner: CliRunner, stops_table: Path, tmp_path: Path
    ) -> None:
        scored = tmp_path / "scored.tbl"
        scored.write_text("location\tpredicted\ncontig1;4\tstart\n")
        result = runner.invoke(main, ["finish", str(stops_table), str(scored)])
        assert result.exit_code == 1
        assert "confidence" in result.output
