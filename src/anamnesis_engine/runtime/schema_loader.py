"""
Utility module for loading and validating form template files.

Templates are authored as JSON (the shape stored on the form record) or
YAML (hand-written fixtures). Both are validated into a ``FormTemplate``.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import ValidationError

from anamnesis_engine.exceptions import SchemaLoadError
from anamnesis_engine.schemas.template import FormTemplate

logger = logging.getLogger(__name__)

_YAML_SUFFIXES = {".yaml", ".yml"}


def parse_template(data: Dict[str, Any]) -> FormTemplate:
    """
    Validate an in-memory template blob.

    Args:
        data: Template dictionary (``title``, ``sections``, ...)

    Returns:
        Parsed FormTemplate

    Raises:
        SchemaLoadError: If the blob is not a valid template
    """
    if not isinstance(data, dict):
        raise SchemaLoadError(f"Template must be an object, got {type(data).__name__}")

    if "sections" not in data:
        raise SchemaLoadError("Template must contain 'sections' key")

    if not isinstance(data["sections"], list):
        raise SchemaLoadError("Template 'sections' must be a list")

    try:
        template = FormTemplate.model_validate(data)
    except ValidationError as e:
        raise SchemaLoadError(f"Invalid template: {e}") from e

    _warn_on_dotted_ids(template)
    return template


def load_template(file_path: str | Path) -> FormTemplate:
    """
    Load and validate a form template file.

    Args:
        file_path: Path to a ``.json``, ``.yaml`` or ``.yml`` template

    Returns:
        Parsed FormTemplate

    Raises:
        SchemaLoadError: If the file cannot be read or is not a valid template
    """
    path = Path(file_path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() in _YAML_SUFFIXES:
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except FileNotFoundError:
        raise SchemaLoadError(f"Template file not found: {file_path}")
    except json.JSONDecodeError as e:
        raise SchemaLoadError(f"Invalid JSON in template file: {e}")
    except yaml.YAMLError as e:
        raise SchemaLoadError(f"Invalid YAML in template file: {e}")

    template = parse_template(data)
    logger.debug(
        f"Loaded template '{template.title}' with {len(template.sections)} sections from {path}"
    )
    return template


def _warn_on_dotted_ids(template: FormTemplate) -> None:
    # JSON Logic "var" treats dots as path separators
    for _, _, question in template.iter_questions():
        if "." in question.id:
            logger.warning(
                f"Question id '{question.id}' contains '.', conditions referencing it will not match"
            )
