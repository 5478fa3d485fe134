"""
Tests for the stepie command line entry point.
"""

import io
import os
from contextlib import redirect_stdout
from unittest.mock import patch

import pytest

from src.main import main
from src.storage import TrackerStorage


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "cli" / "stepie.db"


def _run(*argv) -> tuple[int, str]:
    output = io.StringIO()
    with redirect_stdout(output):
        code = main(list(argv))
    return code, output.getvalue()


class TestMain:
    """Tests for the main() subcommands."""

    def test_no_command_prints_help(self):
        code, output = _run()

        assert code == 0
        assert "usage: stepie" in output

    def test_init_creates_database(self, db_path):
        code, output = _run("--db", str(db_path), "init")

        assert code == 0
        assert db_path.exists()
        assert "Database initialized" in output

    def test_seed_then_status(self, db_path):
        code, output = _run("--db", str(db_path), "seed")
        assert code == 0
        assert "31 sample weight entries" in output

        code, output = _run("--db", str(db_path), "status")
        assert code == 0
        assert "- weight_entries: 31 rows" in output
        assert "- user_goals: 1 row" in output

    def test_reset_with_yes(self, db_path):
        storage = TrackerStorage(db_path)
        storage.add_entry("weight", {"weight": 180, "date": "2024-06-15"})

        code, output = _run("--db", str(db_path), "reset", "--yes")

        assert code == 0
        assert storage.list_entries("weight") == []

    @patch("builtins.input", return_value="n")
    def test_reset_cancelled(self, mock_input, db_path):
        storage = TrackerStorage(db_path)
        storage.add_entry("weight", {"weight": 180, "date": "2024-06-15"})

        code, output = _run("--db", str(db_path), "reset")

        assert code == 0
        assert "cancelled" in output
        assert len(storage.list_entries("weight")) == 1

    def test_heatmap(self, db_path):
        _run("--db", str(db_path), "seed")

        code, output = _run("--db", str(db_path), "heatmap")

        assert code == 0
        assert "Activity (last 12 months):" in output
        assert "Current weight:" in output
        assert "Mini goals:" in output

    def test_heatmap_single_day(self, db_path):
        code, output = _run("--db", str(db_path), "heatmap", "--date", "1999-01-01")

        assert code == 0
        assert "No data" in output

    def test_list_entries(self, db_path):
        storage = TrackerStorage(db_path)
        storage.add_entry("workout", {"date": "2024-06-15", "workoutType": "yoga", "duration": 45})

        code, output = _run("--db", str(db_path), "list", "workout")

        assert code == 0
        assert "yoga" in output

        code, output = _run("--db", str(db_path), "list", "diet")
        assert "No diet entries found." in output

    @patch("src.main.validate_config")
    def test_config_error(self, mock_validate, db_path):
        mock_validate.side_effect = ValueError("Invalid configuration: STEPIE_PORT")

        code, output = _run("--db", str(db_path), "init")

        assert code == 1
        assert "Configuration Error" in output

    @patch("uvicorn.run")
    def test_serve(self, mock_run):
        code, _ = _run("serve", "--port", "8123")

        assert code == 0
        mock_run.assert_called_once_with("src.app:app", host="127.0.0.1", port=8123)

    @patch.dict("os.environ", {}, clear=False)
    @patch("uvicorn.run")
    def test_serve_uses_db_option(self, mock_run, db_path):
        code, _ = _run("--db", str(db_path), "serve")

        assert code == 0
        assert os.environ["STEPIE_DB_PATH"] == str(db_path)
        mock_run.assert_called_once()
