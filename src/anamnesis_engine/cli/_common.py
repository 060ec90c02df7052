"""Shared CLI helpers: startup, logging and input loading."""

import json
import logging
from pathlib import Path
from typing import Any, Dict

from dotenv import find_dotenv, load_dotenv
from rich.logging import RichHandler

from anamnesis_engine.config.settings import reset_engine_config_cache
from anamnesis_engine.exceptions import SchemaLoadError
from anamnesis_engine.runtime.schema_loader import load_template
from anamnesis_engine.schemas.template import FormTemplate

logger = logging.getLogger(__name__)


def ensure_initialized() -> None:
    """Load ``.env`` so ``ANAMNESIS_ENGINE_CONFIG`` can come from it."""
    if load_dotenv(find_dotenv(usecwd=True)):
        # A new config path may have been set
        reset_engine_config_cache()


def setup_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging with Rich handler."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    handler = RichHandler(
        console=None,  # Use default stderr
        show_time=True,
        show_path=False,
        markup=True,
        rich_tracebacks=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def load_template_or_exit(path: Path) -> FormTemplate:
    """Load a template, printing the error and exiting on failure."""
    from anamnesis_engine.cli._console import print_err

    try:
        return load_template(path)
    except SchemaLoadError as e:
        print_err(str(e))
        raise SystemExit(1)


def load_answers_or_exit(path: Path) -> Dict[str, Any]:
    """Load a JSON answer map, printing the error and exiting on failure."""
    from anamnesis_engine.cli._console import print_err

    try:
        with open(path, "r", encoding="utf-8") as f:
            answers = json.load(f)
    except FileNotFoundError:
        print_err(f"Answers file not found: {path}")
        raise SystemExit(1)
    except json.JSONDecodeError as e:
        print_err(f"Invalid JSON in answers file: {e}")
        raise SystemExit(1)

    if not isinstance(answers, dict):
        print_err("Answers file must contain a JSON object")
        raise SystemExit(1)
    return answers
