"""CLI package: Typer-based command-line interface.

Usage:
    python -m anamnesis_engine.cli --help
    anamnesis-engine visibility template.json answers.json --optician
"""

from anamnesis_engine.cli._app import app

# Register command modules (side-effect imports)
import anamnesis_engine.cli.cmd_visibility  # noqa: F401
import anamnesis_engine.cli.cmd_submission  # noqa: F401
import anamnesis_engine.cli.cmd_score  # noqa: F401
import anamnesis_engine.cli.cmd_validate  # noqa: F401

__all__ = ["app"]
