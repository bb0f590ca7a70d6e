"""Tests for the command line interface."""

import logging
import sys

import numpy as np
import pytest
from typer.testing import CliRunner

from clustergroup.cli import main

runner = CliRunner()


@pytest.fixture
def data_path(tmp_path):
    rng = np.random.default_rng(2)
    path = tmp_path / "groups.npz"
    np.savez(
        path,
        north=rng.normal(-3.0, 0.5, size=(25, 2)),
        south=rng.normal(3.0, 0.5, size=(20, 2)),
    )
    return path


@pytest.fixture
def isolated_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    """Restore global logging state changed by run initialization."""
    monkeypatch.setattr(logging.root, "handlers", list(logging.root.handlers))
    monkeypatch.setattr(logging.root, "level", logging.root.level)
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)


class TestPlugins:
    def test_list(self) -> None:
        result = runner.invoke(main, ["plugins", "list"])
        assert result.exit_code == 0
        assert "variational" in result.output

    def test_inspect(self) -> None:
        result = runner.invoke(main, ["plugins", "inspect", "variational"])
        assert result.exit_code == 0
        assert "max_clusters" in result.output

    def test_inspect_unknown(self) -> None:
        result = runner.invoke(main, ["plugins", "inspect", "nope"])
        assert "not found" in result.output


@pytest.mark.usefixtures("isolated_logging")
class TestCluster:
    def test_dry_run(self, data_path, tmp_path) -> None:
        result = runner.invoke(
            main, ["cluster", f"data_path={data_path}", "--dry-run"]
        )
        assert result.exit_code == 0
        assert not (tmp_path / "runs").exists()

    def test_cluster(self, data_path, tmp_path) -> None:
        runs_dir = tmp_path / "runs"
        result = runner.invoke(
            main,
            [
                "cluster",
                "run_name=cli",
                f"runs_dir={runs_dir}",
                f"data_path={data_path}",
                "algorithm=1",
                "sparse=true",
                "backend.max_clusters=3",
            ],
        )
        assert result.exit_code == 0, result.output
        run_dir = runs_dir / "cli"
        assert (run_dir / "config.yaml").exists()
        assert (run_dir / "outputs.joblib").exists()
        assert (run_dir / "plots" / "group_weights.png").exists()

    def test_bad_algorithm(self, data_path, tmp_path) -> None:
        result = runner.invoke(
            main,
            [
                "cluster",
                "run_name=bad",
                f"runs_dir={tmp_path / 'runs'}",
                f"data_path={data_path}",
                "algorithm=3",
            ],
        )
        assert result.exit_code == 1
        assert not (tmp_path / "runs" / "bad" / "outputs.joblib").exists()
