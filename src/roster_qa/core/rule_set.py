"""Immutable rule collection owned by the caller.

Every update returns a new ``RuleSet``; the engine never keeps rule state.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from typing import Any, Iterable

from roster_qa.core.models import StructuralError
from roster_qa.core.precedence import find_precedence_rule, is_override, resolve_order, visible_rules
from roster_qa.core.rule_model import (
    BusinessRule,
    NaturalLanguageRule,
    PrecedenceOverrideRule,
    RuleSource,
    new_rule_id,
    parse_suggested_rule,
    rule_from_dict,
)

_log = logging.getLogger(__name__)

PRECEDENCE_DESCRIPTION = "Defines the custom execution order of rules."


@dataclass(frozen=True)
class RuleSet:
    rules: tuple[BusinessRule, ...] = ()

    @classmethod
    def of(cls, rules: Iterable[BusinessRule]) -> RuleSet:
        return cls(tuple(rules))

    def __len__(self) -> int:
        return len(self.rules)

    def __iter__(self):
        return iter(self.rules)

    def get(self, rule_id: str) -> BusinessRule | None:
        for rule in self.rules:
            if rule.id == rule_id:
                return rule
        return None

    def _index(self, rule_id: str) -> int:
        for idx, rule in enumerate(self.rules):
            if rule.id == rule_id:
                return idx
        raise KeyError(rule_id)

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def add(self, rule: BusinessRule) -> RuleSet:
        """Append *rule*. Ids must be unique and only one override may exist."""
        if self.get(rule.id) is not None:
            raise StructuralError(f"a rule with id {rule.id!r} already exists", "rule.id")
        if is_override(rule) and self.precedence_rule() is not None:
            raise StructuralError("a precedence override already exists; use reorder()", "rule.type")
        return RuleSet(self.rules + (rule,))

    def replace(self, rule: BusinessRule) -> RuleSet:
        """Swap in an edited rule with the same id, keeping its position."""
        idx = self._index(rule.id)
        if is_override(rule) != is_override(self.rules[idx]):
            raise StructuralError("cannot change a rule into or out of a precedence override", "rule.type")
        rules = list(self.rules)
        rules[idx] = rule
        return RuleSet(tuple(rules))

    def remove(self, rule_id: str) -> RuleSet:
        """Drop a rule and scrub its id from the precedence override."""
        idx = self._index(rule_id)
        rules: list[BusinessRule] = []
        for pos, rule in enumerate(self.rules):
            if pos == idx:
                continue
            if isinstance(rule, PrecedenceOverrideRule) and rule_id in rule.rule_ids:
                rule = replace(rule, rule_ids=tuple(r for r in rule.rule_ids if r != rule_id))
            rules.append(rule)
        return RuleSet(tuple(rules))

    def toggle(self, rule_id: str, enabled: bool | None = None) -> RuleSet:
        """Flip ``is_enabled`` (or force it to *enabled*)."""
        rule = self.rules[self._index(rule_id)]
        new_state = (not rule.is_enabled) if enabled is None else enabled
        return self.replace(replace(rule, is_enabled=new_state))

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def visible_rules(self) -> list[BusinessRule]:
        return visible_rules(self.rules)

    def precedence_rule(self) -> PrecedenceOverrideRule | None:
        return find_precedence_rule(self.rules)

    def reorder(self, rule_ids: Iterable[str]) -> RuleSet:
        """Record an explicit order as the single precedence override.

        Every id must name a visible rule. The visible rules are rearranged to
        match, and the override (the existing one, keeping its id and enabled
        flag, or a new one) follows them.
        """
        rule_ids = tuple(rule_ids)
        listed_ids = set(rule_ids)
        known = {rule.id for rule in self.visible_rules()}
        for pos, rule_id in enumerate(rule_ids):
            if rule_id not in known:
                raise StructuralError(f"unknown rule id {rule_id!r}", f"ruleIds[{pos}]")
        if len(listed_ids) != len(rule_ids):
            raise StructuralError("rule ids must be unique", "ruleIds")

        existing = self.precedence_rule()
        if existing is not None:
            override = replace(existing, rule_ids=rule_ids)
        else:
            override = PrecedenceOverrideRule(
                id=new_rule_id(),
                description=PRECEDENCE_DESCRIPTION,
                rule_ids=rule_ids,
            )
        # Visible rules follow the new order too; unlisted ones keep theirs
        by_id = {rule.id: rule for rule in self.visible_rules()}
        listed = [by_id[rule_id] for rule_id in rule_ids]
        rest = [rule for rule_id, rule in by_id.items() if rule_id not in listed_ids]
        # Overrides other than the active one are only dropped by remove()
        extra = [rule for rule in self.rules if is_override(rule) and rule is not existing]
        _log.debug("Precedence override %s set to %s", override.id, list(rule_ids))
        return RuleSet(tuple(listed + rest) + (override,) + tuple(extra))

    def move(self, rule_id: str, new_index: int) -> RuleSet:
        """Move one visible rule to *new_index* in the displayed order."""
        order = [rule.id for rule in self.visible_rules()]
        if rule_id not in order:
            raise KeyError(rule_id)
        if not 0 <= new_index < len(order):
            raise IndexError(new_index)
        order.remove(rule_id)
        order.insert(new_index, rule_id)
        return self.reorder(order)

    def resolved_order(self) -> list[BusinessRule]:
        return resolve_order(self.rules)

    def to_list(self) -> list[dict[str, Any]]:
        return [rule.to_dict() for rule in self.rules]

    @classmethod
    def from_list(cls, payload: Any, path: str = "rules") -> RuleSet:
        if not isinstance(payload, list):
            raise StructuralError("expected an array", path)
        rule_set = cls()
        for i, item in enumerate(payload):
            rule = rule_from_dict(item, f"{path}[{i}]")
            if rule_set.get(rule.id) is not None:
                raise StructuralError(f"duplicate rule id {rule.id!r}", f"{path}[{i}].id")
            if is_override(rule) and rule_set.precedence_rule() is not None:
                raise StructuralError("only one precedence override is allowed", f"{path}[{i}].type")
            rule_set = RuleSet(rule_set.rules + (rule,))
        return rule_set


def wrap_natural_language(
    prompt: str,
    suggestion: Any,
    confidence: float | None = None,
    rule_id: str | None = None,
) -> NaturalLanguageRule:
    """Wrap an AI translation of *prompt* as a natural-language rule.

    *suggestion* is the translated rule dict (or None when the model could not
    produce one). It is validated like any other collaborator input.
    """
    if confidence is not None and not 0 <= confidence <= 1:
        raise StructuralError("expected a number between 0 and 1", "aiConfidence")
    structured = parse_suggested_rule(suggestion) if suggestion is not None else None
    if structured is not None:
        structured = replace(structured, source=RuleSource.AI)
    return NaturalLanguageRule(
        id=rule_id or new_rule_id(),
        description=f"AI Suggested: {prompt}",
        source=RuleSource.AI,
        original_prompt=prompt,
        suggested_structured_rule=structured,
        ai_confidence=confidence,
    )


def export_rules(rules: RuleSet | Iterable[BusinessRule]) -> str:
    """Serialize rules to the ``rules.json`` text, override included."""
    rule_set = rules if isinstance(rules, RuleSet) else RuleSet.of(rules)
    return json.dumps(rule_set.to_list(), indent=2)


def import_rules(text: str | bytes) -> RuleSet:
    """Parse ``rules.json`` text back into a RuleSet."""
    try:
        payload = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise StructuralError(f"invalid JSON: {exc}", "rules") from exc
    return RuleSet.from_list(payload)
