"""Question id utilities.

Two families of helpers live here:

- Runtime ids for dynamically instantiated follow-up questions. A runtime id
  is the deterministic composite ``{original}_for_{parent value}`` where both
  parts are folded to ASCII and stripped of punctuation, so the id is safe as
  a form field name and stable across evaluation passes.
- Builder-side ids derived from Swedish question labels, with uniqueness
  checks against a template.
"""

import re
import unicodedata
from typing import Iterable, List, Optional, Set, Tuple

from anamnesis_engine.schemas.template import FormTemplate

RUNTIME_ID_SEPARATOR = "_for_"

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]+")
_MAX_QUESTION_ID_LENGTH = 50


def _fold_ascii(text: str) -> str:
    normalized = unicodedata.normalize("NFKD", text)
    return normalized.encode("ascii", "ignore").decode("ascii")


def sanitize_id_fragment(value: object) -> str:
    """Fold a value into an identifier fragment.

    Examples:
        "Grå-starr (operation)" -> "Gra_starr_operation"
        "öga_operation" -> "oga_operation"
    """
    text = _fold_ascii(str(value))
    text = _NON_ALNUM.sub("_", text).strip("_")
    return text or "value"


def generate_runtime_id(original_id: str, parent_value: object) -> str:
    """Build the runtime id of a follow-up instance."""
    return (
        f"{sanitize_id_fragment(original_id)}{RUNTIME_ID_SEPARATOR}"
        f"{sanitize_id_fragment(parent_value)}"
    )


def is_runtime_id(key: str) -> bool:
    return RUNTIME_ID_SEPARATOR in key


def parse_runtime_id(runtime_id: str) -> Optional[Tuple[str, str]]:
    """Split a runtime id back into ``(original_id, parent_value)``.

    The parent value is approximate: sanitization is lossy, so underscores
    come back as spaces and folded characters stay folded.
    """
    if not is_runtime_id(runtime_id):
        return None
    original_id, parent_part = runtime_id.split(RUNTIME_ID_SEPARATOR, 1)
    return original_id, parent_part.replace("_", " ")


def followup_prefixes(template: FormTemplate) -> Set[str]:
    """Sanitized ids of the template's follow-up templates."""
    return {
        sanitize_id_fragment(question.id)
        for _, _, question in template.iter_questions()
        if question.is_followup_template
    }


def match_followup_prefix(key: str, prefixes: Iterable[str]) -> Optional[str]:
    """Return the follow-up prefix that owns runtime id ``key``, if any.

    Template ids may contain the separator themselves (``reason_for_visit``);
    the longest matching prefix wins.
    """
    for prefix in sorted(prefixes, key=len, reverse=True):
        if key.startswith(prefix + RUNTIME_ID_SEPARATOR):
            return prefix
    return None


def swedish_text_to_id(text: str) -> str:
    """Convert a Swedish label into a lowercase question id."""
    result = text.lower().strip()
    result = result.replace("ö", "o").replace("ä", "a").replace("å", "a")
    result = re.sub(r"\s+", "_", result)
    result = re.sub(r"[^a-z0-9_]", "", result)
    result = re.sub(r"_+", "_", result).strip("_")
    result = re.sub(r"^([0-9])", r"q_\1", result)
    return result or "question"


def is_id_unique(question_id: str, template: FormTemplate, exclude_id: Optional[str] = None) -> bool:
    for _, _, question in template.iter_questions():
        if question.id == question_id and question.id != exclude_id:
            return False
    return True


def generate_unique_question_id(
    label: str, template: FormTemplate, exclude_id: Optional[str] = None
) -> str:
    """Derive an id from ``label``, adding ``_2``, ``_3``... on conflicts."""
    base_id = swedish_text_to_id(label)
    if is_id_unique(base_id, template, exclude_id):
        return base_id

    counter = 2
    candidate = f"{base_id}_{counter}"
    while not is_id_unique(candidate, template, exclude_id) and counter < 100:
        counter += 1
        candidate = f"{base_id}_{counter}"
    return candidate


def validate_question_id(question_id: str) -> List[str]:
    """Return human-readable problems with a question id (empty if valid)."""
    errors = []
    if not question_id or not question_id.strip():
        errors.append("ID kan inte vara tomt")
    if len(question_id) > _MAX_QUESTION_ID_LENGTH:
        errors.append(f"ID får inte vara längre än {_MAX_QUESTION_ID_LENGTH} tecken")
    if not re.match(r"^[a-z][a-z0-9_]*$", question_id, re.IGNORECASE):
        errors.append(
            "ID måste börja med en bokstav och får endast innehålla bokstäver, siffror och understreck"
        )
    if "__" in question_id:
        errors.append("ID får inte innehålla flera understreck i rad")
    return errors
