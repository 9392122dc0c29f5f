from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from hr_chat_worker.cli import app

runner = CliRunner()


def test_healthcheck_reports_ready() -> None:
    result = runner.invoke(app, ["healthcheck"])

    assert result.exit_code == 0
    assert "hr-chat-worker is ready" in result.stdout


def test_next_actions_lists_allowed_targets() -> None:
    result = runner.invoke(
        app,
        [
            "next-actions",
            "--status",
            "reviewed",
            "--role",
            "hr_manager",
            "--change-type",
            "discretionary",
        ],
    )

    assert result.exit_code == 0
    assert result.stdout.split() == ["pending_ceo_approval", "draft"]


def test_next_actions_reports_terminal_status() -> None:
    result = runner.invoke(
        app,
        [
            "next-actions",
            "--status",
            "completed",
            "--role",
            "system",
            "--change-type",
            "mechanical",
        ],
    )

    assert result.exit_code == 0
    assert "No transitions available" in result.stdout


def test_propose_prints_ranked_proposals(tmp_path: Path) -> None:
    input_file = tmp_path / "proposal.json"
    input_file.write_text(
        json.dumps(
            {
                "current": {"base_salary": 247000, "position_allowance": 20000},
                "target_total": 300000,
                "pitch_table": [
                    {"grade": 3, "step": 1, "amount": 270000},
                    {"grade": 3, "step": 2, "amount": 280000},
                    {"grade": 4, "step": 1, "amount": 290000},
                ],
            }
        ),
        encoding="utf-8",
    )

    result = runner.invoke(app, ["propose", "--input", str(input_file)])

    assert result.exit_code == 0
    lines = result.stdout.strip().splitlines()
    assert len(lines) == 3
    assert lines[0].startswith("Proposal 1: base salary 280,000 JPY")


def test_propose_fails_without_pitch_table(tmp_path: Path) -> None:
    input_file = tmp_path / "proposal.json"
    input_file.write_text(
        json.dumps({"current": {"base_salary": 247000}, "target_total": 300000}),
        encoding="utf-8",
    )

    result = runner.invoke(app, ["propose", "--input", str(input_file)])

    assert result.exit_code == 1
    assert "No proposals" in result.stdout
