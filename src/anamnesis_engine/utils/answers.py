"""Answer value helpers shared by the resolver, builder and scoring."""

from typing import Any, List


def is_empty_answer(answer: Any) -> bool:
    """Whether an answer counts as unanswered.

    ``None``, blank strings and empty selections are empty. ``False`` and
    ``0`` are real answers.
    """
    if answer is None:
        return True
    if isinstance(answer, str):
        return answer.strip() == ""
    if isinstance(answer, (list, tuple)):
        return len(answer) == 0
    return False


def selected_values(answer: Any) -> List[Any]:
    """Normalize an answer into the list of selected values.

    Arrays are filtered of ``None`` and blank strings; truthy scalars become
    a one-element list; falsy scalars select nothing.
    """
    if isinstance(answer, (list, tuple)):
        return [v for v in answer if not is_empty_answer(v)]
    if not answer or is_empty_answer(answer):
        return []
    return [answer]
