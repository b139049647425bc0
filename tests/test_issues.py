"""Tests for issue merging and summaries."""

from __future__ import annotations

from roster_qa.core.issues import merge_issues, summarize_issues
from roster_qa.core.models import Severity, SuggestedCorrection, ValidationIssue


def _issue(row=1, column="email", message="bad email", severity=Severity.WARNING, **kwargs):
    return ValidationIssue(row=row, column=column, message=message, severity=severity, **kwargs)


class TestMergeIssues:
    def test_duplicate_fills_missing_correction(self):
        static = [_issue()]
        external = [
            _issue(
                column="Email",
                suggested_correction=SuggestedCorrection("email", "a@b.com", "typo"),
                ai_confidence=0.9,
                is_ai_identified=True,
            )
        ]
        merged = merge_issues(static, external)
        assert len(merged) == 1
        assert merged[0].suggested_correction.new_value == "a@b.com"
        assert merged[0].ai_confidence == 0.9
        assert merged[0].is_ai_identified is True
        assert merged[0].column == "email"

    def test_existing_correction_kept(self):
        static = [_issue(suggested_correction=SuggestedCorrection("email", "first@b.com"))]
        external = [_issue(suggested_correction=SuggestedCorrection("email", "second@b.com"))]
        merged = merge_issues(static, external)
        assert merged[0].suggested_correction.new_value == "first@b.com"

    def test_non_duplicates_appended_in_order(self):
        static = [_issue()]
        external = [
            _issue(row=2),
            _issue(message="different message"),
            _issue(column="status", is_anomaly=True),
        ]
        merged = merge_issues(static, external)
        assert [(i.row, i.column, i.message) for i in merged] == [
            (1, "email", "bad email"),
            (2, "email", "bad email"),
            (1, "email", "different message"),
            (1, "status", "bad email"),
        ]

    def test_duplicates_within_external_collapse(self):
        external = [_issue(row=5), _issue(row=5, ai_confidence=0.4)]
        merged = merge_issues([], external)
        assert len(merged) == 1
        assert merged[0].ai_confidence == 0.4

    def test_inputs_not_modified(self):
        static = [_issue()]
        external = [_issue(ai_confidence=0.5)]
        merge_issues(static, external)
        assert static[0].ai_confidence is None


class TestSummarize:
    def test_counts(self):
        issues = [_issue(), _issue(severity=Severity.ERROR), _issue(severity=Severity.ERROR)]
        summary = summarize_issues(issues)
        assert summary.to_dict() == {"errors": 2, "warnings": 1, "total": 3}

    def test_empty(self):
        assert summarize_issues([]).total == 0
