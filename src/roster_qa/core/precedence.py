"""Precedence resolution: the execution order of enabled business rules.

The order is advisory data handed to the allocation analyzer; nothing here
evaluates the rules themselves.
"""

from __future__ import annotations

import json
import logging
from typing import Callable, Iterable

from roster_qa.core.rule_model import (
    BusinessRule,
    CoRunRule,
    LoadLimitRule,
    NaturalLanguageRule,
    PatternAction,
    PatternMatchRule,
    PhaseWindowRule,
    PrecedenceOverrideRule,
    RuleType,
    SlotRestrictionRule,
)

_log = logging.getLogger(__name__)


def is_override(rule: BusinessRule) -> bool:
    return rule.rule_type == RuleType.PRECEDENCE_OVERRIDE


def visible_rules(rules: Iterable[BusinessRule]) -> list[BusinessRule]:
    """All rules except precedence overrides, in their original order."""
    return [rule for rule in rules if not is_override(rule)]


def find_precedence_rule(
    rules: Iterable[BusinessRule], enabled_only: bool = False
) -> PrecedenceOverrideRule | None:
    """Return the first precedence override (optionally the first enabled one)."""
    for rule in rules:
        if isinstance(rule, PrecedenceOverrideRule) and (rule.is_enabled or not enabled_only):
            return rule
    return None


def resolve_order(rules: Iterable[BusinessRule]) -> list[BusinessRule]:
    """Return enabled, non-override rules in execution order.

    If an enabled precedence override lists rule ids, those rules come first
    in the listed order. Ids that are unknown, disabled, overrides or repeated
    are dropped. Every other enabled rule follows in its original order, so
    each enabled rule appears exactly once.
    """
    enabled = [rule for rule in rules if rule.is_enabled]
    candidates = visible_rules(enabled)
    override = find_precedence_rule(enabled, enabled_only=True)

    if override is None or not override.rule_ids:
        return candidates

    by_id: dict[str, BusinessRule] = {}
    for rule in candidates:
        by_id.setdefault(rule.id, rule)

    ordered: list[BusinessRule] = []
    placed: set[str] = set()
    for rule_id in override.rule_ids:
        rule = by_id.get(rule_id)
        if rule is None or rule_id in placed:
            _log.debug("Precedence override %s: dropping id %r", override.id, rule_id)
            continue
        ordered.append(rule)
        placed.add(rule_id)

    ordered.extend(rule for rule in candidates if rule.id not in placed)
    return ordered


# ---------------------------------------------------------------------------
# One-line rendering per rule kind
# ---------------------------------------------------------------------------


def _co_run_details(rule: CoRunRule) -> str:
    return f" Tasks to co-run: [{', '.join(rule.task_ids)}]"


def _slot_details(rule: SlotRestrictionRule) -> str:
    text = (
        f" Group Type: {rule.group_type.value}, Group Name: {rule.group_name}, "
        f"Min Common Slots: {rule.min_common_slots}"
    )
    if rule.target_phases:
        text += f", Target Phases: [{', '.join(str(p) for p in rule.target_phases)}]"
    return text


def _load_details(rule: LoadLimitRule) -> str:
    text = f" Worker Group: {rule.worker_group}, Max Load: {rule.max_load}"
    if rule.phase is not None:
        text += f", Specific Phase: {rule.phase}"
    return text


def _phase_details(rule: PhaseWindowRule) -> str:
    return f" Task ID: {rule.task_id}, Allowed Phases: [{', '.join(str(p) for p in rule.allowed_phases)}]"


def _pattern_details(rule: PatternMatchRule) -> str:
    text = f' Entity: {rule.entity.value}, Column: {rule.column}, Regex: "{rule.regex}", Action: {rule.action.value}'
    details = rule.action_details or {}
    if rule.action == PatternAction.TRANSFORM and details.get("transformTo"):
        text += f', Transform To: "{details["transformTo"]}"'
    elif rule.action == PatternAction.FLAG and details.get("message"):
        text += f', Flag Message: "{details["message"]}"'
    return text


def _override_details(rule: PrecedenceOverrideRule) -> str:
    return f" Rule order: [{', '.join(rule.rule_ids)}]"


def _natural_language_details(rule: NaturalLanguageRule) -> str:
    text = f' Original Prompt: "{rule.original_prompt}"'
    if rule.suggested_structured_rule is not None:
        text += f", AI interpreted structured rule: {json.dumps(rule.suggested_structured_rule.to_dict())}"
    return text


_DETAILS: dict[RuleType, Callable] = {
    RuleType.CO_RUN: _co_run_details,
    RuleType.SLOT_RESTRICTION: _slot_details,
    RuleType.LOAD_LIMIT: _load_details,
    RuleType.PHASE_WINDOW: _phase_details,
    RuleType.PATTERN_MATCH: _pattern_details,
    RuleType.PRECEDENCE_OVERRIDE: _override_details,
    RuleType.NATURAL_LANGUAGE: _natural_language_details,
}


def rule_details(rule: BusinessRule) -> str:
    """Render one rule as a single descriptive line."""
    head = f'ID: {rule.id}, Type: {rule.rule_type.value}, Description: "{rule.description}"'
    return head + _DETAILS[rule.rule_type](rule)


def ordered_rule_summary(rules: Iterable[BusinessRule]) -> str:
    """Resolve the order of *rules* and render it as a bulleted block."""
    ordered = resolve_order(rules)
    if not ordered:
        return "No specific business rules defined by the user."
    lines = [f"  {pos}. {rule_details(rule)}" for pos, rule in enumerate(ordered, start=1)]
    return "Active Business Rules (Applied in Order):\n" + "\n".join(lines)
