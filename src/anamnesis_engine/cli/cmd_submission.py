"""Submission commands: build the submission document and its summary text."""

import json

import typer

from anamnesis_engine.cli._app import app
from anamnesis_engine.cli._common import (
    ensure_initialized,
    load_answers_or_exit,
    load_template_or_exit,
    setup_logging,
)
from anamnesis_engine.cli._console import output_result, print_ok, stdout_console
from anamnesis_engine.runtime.submission_state import SubmissionState
from anamnesis_engine.summary.text_renderer import render_summary


@app.command("build", help="Build the submission payload for an answer map.")
def build_cmd(
    ctx: typer.Context,
    template_path: str = typer.Argument(..., help="Template file (.json/.yaml)"),
    answers_path: str = typer.Argument(..., help="Answer map (.json)"),
    optician: bool = typer.Option(False, "--optician", help="Build as an optician submission"),
    output: str = typer.Option(None, "--output", "-o", help="Write the payload to this file"),
    template_id: str = typer.Option(
        None, "--template-id", help="Template id for the payload metadata (defaults to the title)"
    ),
):
    """Finalize a submission and print or save its wire payload."""
    ensure_initialized()
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    template = load_template_or_exit(template_path)
    answers = load_answers_or_exit(answers_path)

    state = SubmissionState(template, optician_mode=optician, template_id=template_id)
    payload = state.finalize(answers).to_wire()

    if output:
        with open(output, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
        if not ctx.obj["quiet"]:
            print_ok(f"Wrote submission to {output}")
        return

    output_result(payload, ctx=ctx, title="Submission")


@app.command("summary", help="Render the plain-text summary of an answer map.")
def summary_cmd(
    ctx: typer.Context,
    template_path: str = typer.Argument(..., help="Template file (.json/.yaml)"),
    answers_path: str = typer.Argument(..., help="Answer map (.json)"),
):
    """Print the token-efficient summary text used for AI summaries."""
    ensure_initialized()
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    template = load_template_or_exit(template_path)
    answers = load_answers_or_exit(answers_path)

    document = SubmissionState(template).update(answers)
    text = render_summary(template, document)

    if ctx.obj["json"]:
        output_result({"summary": text}, ctx=ctx)
    else:
        stdout_console.print(text, markup=False, highlight=False)
