"""Tests for precedence resolution and rule rendering."""

from __future__ import annotations

import dataclasses

from roster_qa.core.models import Category
from roster_qa.core.precedence import (
    find_precedence_rule,
    ordered_rule_summary,
    resolve_order,
    rule_details,
    visible_rules,
)
from roster_qa.core.rule_model import (
    CoRunRule,
    GroupType,
    NaturalLanguageRule,
    PatternAction,
    PatternMatchRule,
    PrecedenceOverrideRule,
    SlotRestrictionRule,
)


def _ids(rules):
    return [r.id for r in rules]


class TestResolveOrder:
    def test_override_puts_listed_rules_first(self, three_rules, override_r3_r1):
        assert _ids(resolve_order(three_rules + [override_r3_r1])) == ["R3", "R1", "R2"]

    def test_override_position_does_not_matter(self, three_rules, override_r3_r1):
        assert _ids(resolve_order([override_r3_r1] + three_rules)) == ["R3", "R1", "R2"]

    def test_no_override_keeps_creation_order(self, three_rules):
        assert _ids(resolve_order(three_rules)) == ["R1", "R2", "R3"]

    def test_disabled_rules_excluded(self, three_rules, override_r3_r1):
        rules = [three_rules[0], dataclasses.replace(three_rules[1], is_enabled=False), three_rules[2]]
        assert _ids(resolve_order(rules + [override_r3_r1])) == ["R3", "R1"]

    def test_disabled_override_ignored(self, three_rules, override_r3_r1):
        disabled = dataclasses.replace(override_r3_r1, is_enabled=False)
        assert _ids(resolve_order(three_rules + [disabled])) == ["R1", "R2", "R3"]

    def test_empty_override_ignored(self, three_rules):
        empty = PrecedenceOverrideRule(id="P", description="", rule_ids=())
        assert _ids(resolve_order(three_rules + [empty])) == ["R1", "R2", "R3"]

    def test_bad_ids_silently_dropped(self, three_rules):
        disabled_r2 = dataclasses.replace(three_rules[1], is_enabled=False)
        override = PrecedenceOverrideRule(
            id="P", description="", rule_ids=("ghost", "R2", "P", "R3", "R3", "R1")
        )
        order = resolve_order([three_rules[0], disabled_r2, three_rules[2], override])
        assert _ids(order) == ["R3", "R1"]

    def test_first_enabled_override_wins(self, three_rules):
        off = PrecedenceOverrideRule(id="P0", description="", rule_ids=("R2",), is_enabled=False)
        first = PrecedenceOverrideRule(id="P1", description="", rule_ids=("R3",))
        second = PrecedenceOverrideRule(id="P2", description="", rule_ids=("R2",))
        order = resolve_order(three_rules + [off, first, second])
        assert _ids(order) == ["R3", "R1", "R2"]

    def test_every_enabled_rule_exactly_once(self, three_rules, override_r3_r1):
        order = resolve_order(three_rules + [override_r3_r1])
        assert sorted(_ids(order)) == ["R1", "R2", "R3"]
        assert not any(isinstance(r, PrecedenceOverrideRule) for r in order)

    def test_empty(self):
        assert resolve_order([]) == []


class TestVisibility:
    def test_visible_rules_hide_override(self, three_rules, override_r3_r1):
        assert _ids(visible_rules(three_rules + [override_r3_r1])) == ["R1", "R2", "R3"]

    def test_find_precedence_rule(self, three_rules, override_r3_r1):
        assert find_precedence_rule(three_rules) is None
        assert find_precedence_rule(three_rules + [override_r3_r1]) is override_r3_r1
        disabled = dataclasses.replace(override_r3_r1, is_enabled=False)
        assert find_precedence_rule([disabled], enabled_only=True) is None


class TestRuleDetails:
    def test_co_run(self, three_rules):
        assert rule_details(three_rules[0]) == (
            'ID: R1, Type: coRun, Description: "T1 and T2 together" Tasks to co-run: [T1, T2]'
        )

    def test_load_limit_and_phase_window(self, three_rules):
        assert rule_details(three_rules[1]).endswith(" Worker Group: Sales, Max Load: 3")
        assert rule_details(three_rules[2]).endswith(" Task ID: T5, Allowed Phases: [1, 3-5]")

    def test_slot_restriction_with_phases(self):
        rule = SlotRestrictionRule(
            id="S",
            description="",
            group_type=GroupType.CLIENT_GROUP,
            group_name="VIP",
            min_common_slots=2,
            target_phases=(1, 2),
        )
        assert rule_details(rule).endswith(
            "Group Type: clientGroup, Group Name: VIP, Min Common Slots: 2, Target Phases: [1, 2]"
        )

    def test_pattern_transform(self):
        rule = PatternMatchRule(
            id="M",
            description="",
            entity=Category.WORKERS,
            column="skills",
            regex="^js$",
            action=PatternAction.TRANSFORM,
            action_details={"transformTo": "javascript"},
        )
        assert rule_details(rule).endswith(
            'Entity: workers, Column: skills, Regex: "^js$", Action: transform, Transform To: "javascript"'
        )

    def test_natural_language(self):
        rule = NaturalLanguageRule(
            id="N",
            description="",
            original_prompt="run T1 with T2",
            suggested_structured_rule=CoRunRule(id="x", description="", task_ids=("T1", "T2")),
        )
        text = rule_details(rule)
        assert 'Original Prompt: "run T1 with T2"' in text
        assert '"taskIds": ["T1", "T2"]' in text


class TestSummary:
    def test_numbered_in_resolved_order(self, three_rules, override_r3_r1):
        summary = ordered_rule_summary(three_rules + [override_r3_r1])
        lines = summary.splitlines()
        assert lines[0] == "Active Business Rules (Applied in Order):"
        assert lines[1].startswith("  1. ID: R3")
        assert lines[2].startswith("  2. ID: R1")
        assert lines[3].startswith("  3. ID: R2")

    def test_no_rules(self):
        assert ordered_rule_summary([]) == "No specific business rules defined by the user."
