"""CLI bootstrap for hr-chat-worker."""

import json
from pathlib import Path

import typer
import uvicorn
from pydantic import BaseModel, Field

from hr_chat_worker.core.logging import configure_logging
from hr_chat_worker.core.settings import get_settings
from hr_chat_worker.domain.approval import get_next_actions
from hr_chat_worker.domain.salary import MasterData, PitchEntry
from hr_chat_worker.domain.services.salary_calculator import (
    build_breakdown,
    generate_discretionary_proposals,
)
from hr_chat_worker.domain.value_objects import ActorRole, ChangeType, DraftStatus

app = typer.Typer(help="CLI for the HR chat intake worker.")
INPUT_FILE_OPTION = typer.Option(..., exists=True, dir_okay=False)


class _PitchRow(BaseModel):
    grade: int
    step: int
    amount: int


class _CurrentSalary(BaseModel):
    base_salary: int
    position_allowance: int = 0
    region_allowance: int = 0
    qualification_allowance: int = 0
    other_allowance: int = 0


class ProposalRequest(BaseModel):
    """Input file for offline discretionary proposal runs."""

    current: _CurrentSalary
    target_total: int = Field(gt=0)
    pitch_table: list[_PitchRow] = Field(default_factory=list)


@app.command("healthcheck")
def healthcheck() -> None:
    """Verify that the CLI entrypoint is available."""
    typer.echo("hr-chat-worker is ready")


@app.command("serve")
def serve(
    host: str = typer.Option("0.0.0.0", help="Interface to bind."),
    port: int = typer.Option(8080, help="Port to listen on."),
) -> None:
    """Run the HTTP worker."""
    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        "hr_chat_worker.api.app:app",
        host=host,
        port=port,
        log_level=settings.log_level.lower(),
    )


@app.command("next-actions")
def next_actions(
    status: DraftStatus = typer.Option(..., help="Current draft status."),
    role: ActorRole = typer.Option(..., help="Acting role."),
    change_type: ChangeType = typer.Option(..., help="Draft change type."),
) -> None:
    """List statuses a role may move a draft to."""
    targets = get_next_actions(status, role, change_type)
    if not targets:
        typer.echo("No transitions available")
        return
    for target in targets:
        typer.echo(target.value)


@app.command("propose")
def propose(input: Path = INPUT_FILE_OPTION) -> None:
    """Print discretionary proposals for a salary and pitch table in a JSON file."""
    payload = json.loads(input.read_text(encoding="utf-8"))
    request = ProposalRequest.model_validate(payload)

    current = build_breakdown(
        request.current.base_salary,
        request.current.position_allowance,
        request.current.region_allowance,
        request.current.qualification_allowance,
        request.current.other_allowance,
    )
    master = MasterData(
        pitch_table=tuple(
            PitchEntry(grade=row.grade, step=row.step, amount=row.amount)
            for row in request.pitch_table
        )
    )
    proposals = generate_discretionary_proposals(current, request.target_total, master)
    if not proposals:
        typer.echo("No proposals: pitch table is empty")
        raise typer.Exit(code=1)
    for proposal in proposals:
        typer.echo(proposal.description)


def main() -> None:
    """Run the hr-chat-worker CLI application."""
    app()


if __name__ == "__main__":
    main()
