"""Score command: compute the form score for an answer map."""

import typer

from anamnesis_engine.cli._app import app
from anamnesis_engine.cli._common import (
    ensure_initialized,
    load_answers_or_exit,
    load_template_or_exit,
    setup_logging,
)
from anamnesis_engine.cli._console import output_result, print_warn, render_score
from anamnesis_engine.scoring.engine import ScoringEngine, is_scoring_enabled


@app.command("score", help="Score an answer map against a scoring-enabled template.")
def score_cmd(
    ctx: typer.Context,
    template_path: str = typer.Argument(..., help="Template file (.json/.yaml)"),
    answers_path: str = typer.Argument(..., help="Answer map (.json)"),
    optician: bool = typer.Option(False, "--optician", help="Resolve visibility in optician mode"),
    all_questions: bool = typer.Option(
        False, "--all-questions", help="Score hidden questions too"
    ),
):
    """Print the scoring result."""
    ensure_initialized()
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    template = load_template_or_exit(template_path)
    answers = load_answers_or_exit(answers_path)

    if not is_scoring_enabled(template) and not ctx.obj["quiet"]:
        print_warn("Scoring is not enabled for this template")

    result = ScoringEngine().score(
        template, answers, optician_mode=optician, all_questions=all_questions
    )

    if ctx.obj["json"]:
        output_result(result.to_record(), ctx=ctx)
        return

    render_score(result)
