"""
Minimal smoke tests for the liftmetrics CLI.

Tests basic functionality:
- App runs without errors
- Profile and sessions file are created
- Sets can be logged and a session finished
- Load, swap and equipment views render
"""

import json
import tempfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from liftmetrics.cli.main import app


runner = CliRunner()


@pytest.fixture
def temp_history_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def _init(history_path: Path, preset: str = "full_gym") -> None:
    result = runner.invoke(app, [
        "init",
        "--history-path", str(history_path),
        "--units", "lb",
        "--body-weight", "180",
        "--preset", preset,
    ])
    assert result.exit_code == 0, result.output


def _log_squats(history_path: Path) -> None:
    for minute in ("00", "05"):
        result = runner.invoke(app, [
            "log-set", "back_squat",
            "--history-path", str(history_path),
            "--reps", "5",
            "--weight", "225",
            "--rpe", "8",
            "--at", f"2026-03-02T10:{minute}:00",
        ])
        assert result.exit_code == 0, result.output


class TestCLISmoke:
    """Basic smoke tests for CLI commands."""

    def test_app_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "log-set" in result.output

    def test_init_creates_files(self, temp_history_dir):
        history_path = temp_history_dir / "sessions.jsonl"
        _init(history_path)
        assert history_path.exists()
        profile = json.loads((temp_history_dir / "profile.json").read_text())
        assert profile["units"] == "lb"
        assert profile["body_weight_lb"] == 180.0
        assert profile["equipment"]["barbell"]["available"] is True

    def test_init_rejects_bad_preset(self, temp_history_dir):
        result = runner.invoke(app, [
            "init", "--history-path", str(temp_history_dir / "sessions.jsonl"),
            "--preset", "castle",
        ])
        assert result.exit_code == 1

    def test_log_set_requires_init(self, temp_history_dir):
        result = runner.invoke(app, [
            "log-set", "back_squat",
            "--history-path", str(temp_history_dir / "sessions.jsonl"),
            "--reps", "5", "--weight", "225",
        ])
        assert result.exit_code == 1

    def test_log_set_starts_session(self, temp_history_dir):
        history_path = temp_history_dir / "sessions.jsonl"
        _init(history_path)
        result = runner.invoke(app, [
            "log-set", "Back Squat",
            "--history-path", str(history_path),
            "--reps", "5", "--weight", "225",
            "--at", "2026-03-02T10:00:00",
            "--json",
        ])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data == {"session_id": "20260302-100000", "exercise": "Back Squat", "set_number": 1}

        row = json.loads(history_path.read_text().strip())
        assert row["status"] == "in_progress"
        assert row["exercises"][0]["primary_muscle"] == "quads"
        assert row["exercises"][0]["sets"][0]["completed"] is True

    def test_log_set_rejects_bad_rpe(self, temp_history_dir):
        history_path = temp_history_dir / "sessions.jsonl"
        _init(history_path)
        result = runner.invoke(app, [
            "log-set", "back_squat", "--history-path", str(history_path),
            "--reps", "5", "--weight", "225", "--rpe", "11",
        ])
        assert result.exit_code == 1

    def test_finish_freezes_snapshot(self, temp_history_dir):
        history_path = temp_history_dir / "sessions.jsonl"
        _init(history_path)
        _log_squats(history_path)

        result = runner.invoke(app, [
            "finish",
            "--history-path", str(history_path),
            "--at", "2026-03-02T10:45:00",
            "--json",
        ])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["session_id"] == "20260302-100000"
        assert data["captured_at"] == "2026-03-02T10:45:00"
        assert data["metrics"]["total_sets"] == 2
        assert data["metrics"]["tonnage"] == 2250.0
        assert data["metrics"]["hard_sets"] == 2
        assert data["metrics"]["best_e1rm_exercise"] == "Back Squat"

        again = runner.invoke(app, ["finish", "--history-path", str(history_path)])
        assert again.exit_code == 1

    def test_show_session_and_history(self, temp_history_dir):
        history_path = temp_history_dir / "sessions.jsonl"
        _init(history_path)
        _log_squats(history_path)

        live = runner.invoke(app, ["show-session", "--history-path", str(history_path), "--json"])
        assert live.exit_code == 0, live.output
        assert json.loads(live.stdout)["source"] == "live"

        runner.invoke(app, [
            "finish", "--history-path", str(history_path), "--at", "2026-03-02T10:45:00",
        ])
        stored = runner.invoke(app, ["show-session", "--history-path", str(history_path), "--json"])
        assert json.loads(stored.stdout)["source"] == "snapshot"

        table = runner.invoke(app, ["show-session", "--history-path", str(history_path)])
        assert table.exit_code == 0
        assert "Tonnage" in table.output

        history = runner.invoke(app, ["show-history", "--history-path", str(history_path), "--json"])
        rows = json.loads(history.stdout)
        assert len(rows) == 1
        assert rows[0]["status"] == "completed"

    def test_load_json(self, temp_history_dir):
        history_path = temp_history_dir / "sessions.jsonl"
        _init(history_path)
        _log_squats(history_path)
        runner.invoke(app, [
            "finish", "--history-path", str(history_path), "--at", "2026-03-02T10:45:00",
        ])

        result = runner.invoke(app, [
            "load", "--history-path", str(history_path),
            "--now", "2026-03-03T12:00:00", "--json",
        ])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["acute_load"] > 0
        assert data["acute_load"] == data["chronic_load"]
        assert data["is_initial_phase"] is True
        assert data["status"] == "balanced"
        assert data["weekly_trend"][-1]["week"] == "2026-W10"

    def test_load_chart(self, temp_history_dir):
        history_path = temp_history_dir / "sessions.jsonl"
        _init(history_path)
        result = runner.invoke(app, ["load", "--history-path", str(history_path), "--chart"])
        assert result.exit_code == 0, result.output
        assert "Weekly training load" in result.output

    def test_volume(self, temp_history_dir):
        history_path = temp_history_dir / "sessions.jsonl"
        _init(history_path)
        _log_squats(history_path)
        result = runner.invoke(app, ["volume", "--history-path", str(history_path), "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {"2026-W10": {"quads": 2250.0}}

    def test_readiness(self):
        result = runner.invoke(app, [
            "readiness", "--sleep", "5", "--soreness", "1",
            "--stress", "1", "--motivation", "5", "--json",
        ])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {"score": 100, "level": "high", "intensity": "high"}

    def test_swap(self, temp_history_dir):
        history_path = temp_history_dir / "sessions.jsonl"
        _init(history_path, preset="home_minimal")
        result = runner.invoke(app, [
            "swap", "back_squat", "--history-path", str(history_path), "--json",
        ])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["exercise"] == "Back Squat"
        assert data["used_fallback"] is False
        assert "Goblet Squat" in [s["exercise"] for s in data["suggestions"]]

    def test_swap_unknown_exercise(self, temp_history_dir):
        history_path = temp_history_dir / "sessions.jsonl"
        _init(history_path)
        result = runner.invoke(app, ["swap", "underwater_basket", "--history-path", str(history_path)])
        assert result.exit_code == 1

    def test_equipment_and_weights(self, temp_history_dir):
        history_path = temp_history_dir / "sessions.jsonl"
        _init(history_path, preset="hotel")

        result = runner.invoke(app, ["equipment", "--history-path", str(history_path), "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["dumbbells"] == [10.0, 15.0, 20.0]

        table = runner.invoke(app, ["equipment", "--history-path", str(history_path)])
        assert table.exit_code == 0
        assert "Plank" in table.output

        weights = runner.invoke(app, [
            "weights", "bicep_curl", "--history-path", str(history_path), "--json",
        ])
        assert [o["value"] for o in json.loads(weights.stdout)] == [10.0, 15.0, 20.0]

    def test_update_weight_and_equipment(self, temp_history_dir):
        history_path = temp_history_dir / "sessions.jsonl"
        _init(history_path)
        assert runner.invoke(app, ["update-weight", "175", "--history-path", str(history_path)]).exit_code == 0
        result = runner.invoke(app, [
            "update-equipment", "--preset", "hotel", "--history-path", str(history_path),
        ])
        assert result.exit_code == 0
        profile = json.loads((temp_history_dir / "profile.json").read_text())
        assert profile["body_weight_lb"] == 175.0
        assert profile["equipment"]["barbell"]["available"] is False

    def test_delete_session(self, temp_history_dir):
        history_path = temp_history_dir / "sessions.jsonl"
        _init(history_path)
        _log_squats(history_path)
        result = runner.invoke(app, [
            "delete-session", "20260302-100000", "--force", "--history-path", str(history_path),
        ])
        assert result.exit_code == 0, result.output
        assert history_path.read_text().strip() == ""

        missing = runner.invoke(app, [
            "delete-session", "nope", "--force", "--history-path", str(history_path),
        ])
        assert missing.exit_code == 1
