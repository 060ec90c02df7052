"""Rich console singleton and output helpers."""

import json as json_mod

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from anamnesis_engine.schemas.runtime import VisibilitySnapshot
from anamnesis_engine.schemas.scoring import ScoringResult

# Status/progress to stderr so it doesn't pollute piped JSON output
console = Console(stderr=True)

# Data output to stdout (pipeable to jq)
stdout_console = Console()


def print_ok(msg: str) -> None:
    console.print(f"[green]✓[/green] {msg}")


def print_err(msg: str) -> None:
    console.print(f"[red]✗[/red] {msg}")


def print_warn(msg: str) -> None:
    console.print(f"[yellow]![/yellow] {msg}")


def output_result(data: dict, *, ctx: typer.Context, title: str = "") -> None:
    """Print result as JSON (stdout) or a Rich panel (stderr)."""
    if ctx.obj.get("json"):
        stdout_console.print_json(data=data)
        return

    formatted = json_mod.dumps(data, indent=2, ensure_ascii=False, default=str)
    console.print(Panel(formatted, title=title, border_style="blue") if title else formatted)


def render_snapshot(snapshot: VisibilitySnapshot) -> None:
    """Tree-like listing of visible sections, static ids and runtime ids."""
    for section in snapshot.sections:
        console.print(f"[bold]{section.section_title or f'#{section.index + 1}'}[/bold]")
        for question in section.questions:
            console.print(f"  {question.id}  [dim]{question.label}[/dim]")
        for dynamic in section.dynamic_questions:
            console.print(f"  [cyan]{dynamic.runtime_id}[/cyan]  [dim]{dynamic.label}[/dim]")

    if not snapshot.converged:
        print_warn(f"Visibility did not stabilize after {snapshot.passes} passes")
    else:
        console.print(f"\n{len(snapshot.sections)} visible sections ({snapshot.passes} passes)")


def render_score(result: ScoringResult) -> None:
    status = "[red]exceeded[/red]" if result.threshold_exceeded else "[green]ok[/green]"
    console.print(
        f"Score: [bold]{result.total_score:g}[/bold] / {result.max_possible_score:g} "
        f"({result.percentage}%) threshold {status}"
    )
    if not result.flagged_questions:
        return

    table = Table(title="Flagged questions")
    for col in ("question_id", "score", "warning_message"):
        table.add_column(col)
    for flagged in result.flagged_questions:
        table.add_row(flagged.question_id, f"{flagged.score:g}", flagged.warning_message or "")
    console.print(table)


def render_issues(rows: list[dict]) -> None:
    table = Table(title="Validation issues")
    for col in ("question_id", "kind", "message"):
        table.add_column(col)
    for row in rows:
        table.add_row(row["question_id"], row["kind"], row["message"])
    console.print(table)
