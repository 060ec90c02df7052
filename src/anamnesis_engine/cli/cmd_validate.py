"""Validate command: check required answers and template ids."""

import typer

from anamnesis_engine.cli._app import app
from anamnesis_engine.cli._common import (
    ensure_initialized,
    load_answers_or_exit,
    load_template_or_exit,
    setup_logging,
)
from anamnesis_engine.cli._console import output_result, print_err, print_ok, render_issues
from anamnesis_engine.runtime.validators import validate_required
from anamnesis_engine.utils.question_ids import validate_question_id


@app.command("validate", help="Check required answers (and question ids) of an answer map.")
def validate_cmd(
    ctx: typer.Context,
    template_path: str = typer.Argument(..., help="Template file (.json/.yaml)"),
    answers_path: str = typer.Argument(None, help="Answer map (.json); omit to check ids only"),
    optician: bool = typer.Option(False, "--optician", help="Validate in optician mode"),
):
    """Exit with status 1 when the template ids or the answers have problems."""
    ensure_initialized()
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    template = load_template_or_exit(template_path)

    rows = []
    for _, _, question in template.iter_questions():
        for message in validate_question_id(question.id):
            rows.append({"question_id": question.id, "kind": "id", "message": message})

    if answers_path:
        answers = load_answers_or_exit(answers_path)
        for issue in validate_required(template, answers, optician_mode=optician):
            rows.append({"question_id": issue.question_id, "kind": "answer", "message": issue.message})

    if ctx.obj["json"]:
        output_result({"valid": not rows, "issues": rows}, ctx=ctx)
    elif rows:
        render_issues(rows)
        print_err(f"{len(rows)} issue(s) found")
    elif not ctx.obj["quiet"]:
        print_ok("No issues found")

    if rows:
        raise SystemExit(1)
