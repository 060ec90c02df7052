"""Visibility command: show what a patient sees for an answer set."""

import typer

from anamnesis_engine.cli._app import app
from anamnesis_engine.cli._common import (
    ensure_initialized,
    load_answers_or_exit,
    load_template_or_exit,
    setup_logging,
)
from anamnesis_engine.cli._console import output_result, render_snapshot
from anamnesis_engine.runtime.visibility import VisibilityResolver


@app.command("visibility", help="Resolve visible sections, questions and follow-ups.")
def visibility_cmd(
    ctx: typer.Context,
    template_path: str = typer.Argument(..., help="Template file (.json/.yaml)"),
    answers_path: str = typer.Argument(..., help="Answer map (.json)"),
    optician: bool = typer.Option(False, "--optician", help="Resolve in optician mode"),
):
    """Print the visibility snapshot for a template and answer map."""
    ensure_initialized()
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    template = load_template_or_exit(template_path)
    answers = load_answers_or_exit(answers_path)

    snapshot = VisibilityResolver().resolve(template, answers, optician_mode=optician)

    if ctx.obj["json"]:
        output_result(snapshot.to_dict(), ctx=ctx)
    else:
        render_snapshot(snapshot)
