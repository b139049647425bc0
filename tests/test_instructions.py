"""Tests for structural validation of externally supplied payloads."""

from __future__ import annotations

import pytest

from roster_qa.core.instructions import parse_external_issues, parse_instructions, parse_issue
from roster_qa.core.models import Category, Severity, StructuralError


def _payload(**overrides):
    payload = {
        "targetCategory": "workers",
        "filters": [{"column": "hourlyRate", "operator": "gt", "value": 50}],
        "actions": [{"column": "hourlyRate", "newValue": 5, "operation": "decrement"}],
        "description": "Trim expensive rates",
        "confirmationRequired": True,
    }
    payload.update(overrides)
    return payload


class TestParseInstructions:
    def test_valid_payload(self):
        instructions = parse_instructions(_payload())
        assert instructions.target_category == Category.WORKERS
        assert instructions.filters[0].operator == "gt"
        assert instructions.actions[0].operation == "decrement"
        assert instructions.confirmation_required is True
        assert instructions.to_dict() == _payload()

    def test_operation_optional(self):
        instructions = parse_instructions(_payload(actions=[{"column": "notes", "newValue": None}]))
        assert instructions.actions[0].operation is None
        assert instructions.actions[0].new_value is None

    def test_description_and_confirmation_optional(self):
        payload = _payload()
        del payload["description"], payload["confirmationRequired"]
        instructions = parse_instructions(payload)
        assert instructions.description == ""
        assert instructions.confirmation_required is False

    @pytest.mark.parametrize(
        "payload, path",
        [
            ("not a dict", "instructions"),
            ({"actions": [], "targetCategory": "tasks"}, "instructions.filters"),
            (_payload(filters={"column": "x"}), "instructions.filters"),
            (_payload(actions=None), "instructions.actions"),
            (_payload(targetCategory="projects"), "instructions.targetCategory"),
            (_payload(filters=[{"column": "x", "operator": "like", "value": 1}]), "instructions.filters[0].operator"),
            (_payload(filters=[{"column": "x", "operator": "eq"}]), "instructions.filters[0].value"),
            (_payload(filters=[{"column": "", "operator": "eq", "value": 1}]), "instructions.filters[0].column"),
            (_payload(actions=[{"column": "x"}]), "instructions.actions[0].newValue"),
            (_payload(actions=[{"column": "x", "newValue": 1, "operation": 3}]), "instructions.actions[0].operation"),
            (_payload(description=5), "instructions.description"),
            (_payload(confirmationRequired="yes"), "instructions.confirmationRequired"),
        ],
    )
    def test_rejections_carry_path(self, payload, path):
        with pytest.raises(StructuralError) as excinfo:
            parse_instructions(payload)
        assert excinfo.value.path == path
        assert str(excinfo.value).startswith(path + ":")

    def test_structural_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_instructions({})


class TestParseIssues:
    def test_full_issue(self):
        issue = parse_issue(
            {
                "row": 3,
                "column": "hourlyRate",
                "message": "Rate is 10x the median",
                "severity": "warning",
                "suggestedCorrection": {"column": "hourlyRate", "newValue": 30, "reason": "typo"},
                "isAIIdentified": True,
                "isAnomaly": True,
                "aiConfidence": 0.8,
            }
        )
        assert issue.severity == Severity.WARNING
        assert issue.suggested_correction.new_value == 30
        assert issue.is_anomaly is True
        assert issue.ai_confidence == 0.8

    @pytest.mark.parametrize(
        "overrides, path",
        [
            ({"row": -1}, "issue.row"),
            ({"row": True}, "issue.row"),
            ({"severity": "info"}, "issue.severity"),
            ({"severity": None}, "issue.severity"),
            ({"aiConfidence": 1.5}, "issue.aiConfidence"),
            ({"isAnomaly": "no"}, "issue.isAnomaly"),
            ({"suggestedCorrection": {"column": "x"}}, "issue.suggestedCorrection.newValue"),
        ],
    )
    def test_rejections(self, overrides, path):
        data = {"row": 1, "column": "a", "message": "m", "severity": "error", **overrides}
        with pytest.raises(StructuralError) as excinfo:
            parse_issue(data)
        assert excinfo.value.path == path

    def test_serialized_issue_parses_back(self):
        issue = parse_issue(
            {
                "row": 2,
                "column": "email",
                "message": "bad",
                "severity": "warning",
                "suggestedCorrection": {"column": "email", "newValue": "a@b.com", "reason": "typo"},
                "aiConfidence": 0.5,
            }
        )
        assert parse_issue(issue.to_dict()) == issue

    def test_external_list(self):
        issues = parse_external_issues([{"row": 1, "column": "a", "message": "m", "severity": "error"}])
        assert issues[0].to_dict() == {"row": 1, "column": "a", "message": "m", "severity": "error"}

    def test_external_list_must_be_array(self):
        with pytest.raises(StructuralError) as excinfo:
            parse_external_issues({"row": 1})
        assert excinfo.value.path == "issues"

    def test_whole_list_rejected_on_one_bad_item(self):
        good = {"row": 1, "column": "a", "message": "m", "severity": "error"}
        with pytest.raises(StructuralError) as excinfo:
            parse_external_issues([good, {**good, "severity": "fatal"}])
        assert excinfo.value.path == "issues[1].severity"
