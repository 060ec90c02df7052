"""
Visibility Resolver - applies the Condition Evaluator across a template.

Given a template, the answer map and the viewing mode, produces the visible
sections, the visible static questions of each, and the dynamic follow-up
instances materialized from parent answers.

Chained conditions are resolved to a fixed point. The first pass sees every
answer; each following pass only sees answers of questions that were
visible in the previous pass (plus answers the template does not define at
all). Hiding a controlling question therefore hides what depends on it on
the next pass, even when a stale answer is still in the map. Passes repeat
until the visible set stops changing.

The pass cap (``max_resolution_passes``, default 10) is a safety valve
against schemas whose visibility never settles, not a limit on how deep a
legitimate chain may go. Hitting it is logged as a schema problem and the
last pass is returned.
"""

import logging
from typing import Any, Dict, List, Optional, Set

from anamnesis_engine.config.settings import EngineConfig, get_engine_config
from anamnesis_engine.runtime.evaluator import IConditionEvaluator, JsonLogicConditionEvaluator
from anamnesis_engine.schemas.runtime import (
    DynamicFollowupQuestion,
    VisibilitySnapshot,
    VisibleSection,
)
from anamnesis_engine.schemas.template import FormQuestion, FormSection, FormTemplate
from anamnesis_engine.utils.answers import selected_values
from anamnesis_engine.utils.question_ids import (
    followup_prefixes,
    generate_runtime_id,
    match_followup_prefix,
)

logger = logging.getLogger(__name__)

OPTION_PLACEHOLDER = "{option}"


def meets_mode(question: FormQuestion, optician_mode: bool) -> bool:
    """Whether ``question`` is shown in the current viewing mode."""
    mode = question.show_in_mode
    if mode is None or mode == "all":
        return True
    if mode == "optician":
        return optician_mode
    return not optician_mode


def materialize_followups(
    section: FormSection,
    parent: FormQuestion,
    answers: Dict[str, Any],
) -> List[DynamicFollowupQuestion]:
    """Instantiate the follow-up templates triggered by ``parent``'s answer.

    One instance per (selected value, follow-up id). Templates are looked up
    in the same section only; missing templates are skipped with a warning.
    """
    if not parent.followup_question_ids:
        return []

    instances: List[DynamicFollowupQuestion] = []
    for value in selected_values(answers.get(parent.id)):
        if not parent.option_triggers_followups(value):
            continue
        for followup_id in parent.followup_question_ids:
            template = section.find_question(followup_id)
            if template is None or not template.is_followup_template:
                logger.warning(f"Follow-up template not found for id: {followup_id}")
                continue

            data = template.model_dump(exclude={"is_followup_template", "label", "show_if"})
            instances.append(
                DynamicFollowupQuestion(
                    **data,
                    label=template.label.replace(OPTION_PLACEHOLDER, str(value)),
                    parent_id=parent.id,
                    parent_value=value,
                    original_id=template.id,
                    runtime_id=generate_runtime_id(template.id, value),
                )
            )
    return instances


class VisibilityResolver:
    """Resolves which parts of a template are visible for an answer map.

    Stateless between calls; identical inputs give identical snapshots.
    """

    def __init__(
        self,
        evaluator: Optional[IConditionEvaluator] = None,
        config: Optional[EngineConfig] = None,
    ):
        """Initialize the resolver.

        Args:
            evaluator: Condition evaluator. Uses JSON Logic if not provided.
            config: Engine configuration. Uses the process config if not provided.
        """
        self.evaluator = evaluator or JsonLogicConditionEvaluator()
        self.config = config or get_engine_config()

    def resolve(
        self,
        template: FormTemplate,
        answers: Dict[str, Any],
        optician_mode: bool = False,
    ) -> VisibilitySnapshot:
        """Resolve visibility to a fixed point.

        Args:
            template: Parsed form template.
            answers: Current answer map (static and runtime ids).
            optician_mode: Whether the form is filled in by an optician.

        Returns:
            VisibilitySnapshot with sections, pass count and convergence flag.
        """
        answers = answers or {}
        max_passes = self.config.max_resolution_passes
        prefixes = followup_prefixes(template)
        static_ids = template.static_question_ids()

        snapshot = self._resolve_pass(template, answers, optician_mode)
        visible = set(snapshot.visible_question_ids())
        passes = 1
        converged = False

        while passes < max_passes:
            effective = self._restrict(answers, visible, static_ids, prefixes)
            candidate = self._resolve_pass(template, effective, optician_mode)
            candidate_visible = set(candidate.visible_question_ids())
            passes += 1
            snapshot = candidate
            if candidate_visible == visible:
                converged = True
                break
            visible = candidate_visible

        if converged:
            logger.debug(f"Visibility resolved after {passes} passes")
        else:
            logger.warning(
                f"Visibility for '{template.title}' did not stabilize within "
                f"{max_passes} passes; using the last pass"
            )

        snapshot.passes = passes
        snapshot.converged = converged
        return snapshot

    @staticmethod
    def _restrict(
        answers: Dict[str, Any],
        visible: Set[str],
        static_ids: Set[str],
        prefixes: Set[str],
    ) -> Dict[str, Any]:
        """Answer view holding only visible or template-foreign keys."""
        restricted = {}
        for key, value in answers.items():
            owned = key in static_ids or match_followup_prefix(key, prefixes) is not None
            if not owned or key in visible:
                restricted[key] = value
        return restricted

    def _resolve_pass(
        self,
        template: FormTemplate,
        answers: Dict[str, Any],
        optician_mode: bool,
    ) -> VisibilitySnapshot:
        sections: List[VisibleSection] = []

        for index, section in enumerate(template.sections):
            if not self.evaluator.evaluate(section.show_if, answers, template):
                continue

            static_questions = [
                question
                for question in section.questions
                if not question.is_followup_template
                and meets_mode(question, optician_mode)
                and self.evaluator.evaluate(question.show_if, answers, template)
            ]

            dynamic_questions: List[DynamicFollowupQuestion] = []
            seen_runtime_ids: Set[str] = set()
            for parent in static_questions:
                for instance in materialize_followups(section, parent, answers):
                    if instance.runtime_id in seen_runtime_ids:
                        continue
                    seen_runtime_ids.add(instance.runtime_id)
                    dynamic_questions.append(instance)

            sections.append(
                VisibleSection(
                    index=index,
                    section_title=section.section_title,
                    questions=static_questions,
                    dynamic_questions=dynamic_questions,
                )
            )

        return VisibilitySnapshot(sections=sections)


def prune_stale_followup_answers(
    template: FormTemplate,
    answers: Dict[str, Any],
    snapshot: VisibilitySnapshot,
) -> Dict[str, Any]:
    """Drop answers of follow-up instances that no longer exist.

    Static answers are kept even when hidden, so toggling a parent back
    restores them; only runtime-id answers whose instance disappeared are
    removed.
    """
    prefixes = followup_prefixes(template)
    live = snapshot.runtime_ids()
    static_ids = template.static_question_ids()

    pruned = {}
    for key, value in answers.items():
        stale = (
            key not in static_ids
            and key not in live
            and match_followup_prefix(key, prefixes) is not None
        )
        if stale:
            logger.debug(f"Dropping answer of removed follow-up: {key}")
            continue
        pruned[key] = value
    return pruned
