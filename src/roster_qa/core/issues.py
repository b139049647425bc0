"""Issue list helpers: merging externally identified issues and counting."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable

from roster_qa.core.models import IssueSummary, Severity, ValidationIssue


def _merge_key(issue: ValidationIssue) -> tuple[int, str, str]:
    return (issue.row, issue.column.lower(), issue.message)


def merge_issues(
    static: Iterable[ValidationIssue], external: Iterable[ValidationIssue]
) -> list[ValidationIssue]:
    """Merge externally identified issues into a static issue list.

    An external issue with the same (row, column case-insensitive, message)
    as an issue already in the list is a duplicate: it only fills in a
    missing ``suggested_correction``, ``ai_confidence`` or AI flag on that
    entry. Any other external issue is appended. Inputs are not modified.
    """
    merged = [replace(issue) for issue in static]
    index: dict[tuple[int, str, str], int] = {}
    for pos, issue in enumerate(merged):
        index.setdefault(_merge_key(issue), pos)

    for ext in external:
        key = _merge_key(ext)
        pos = index.get(key)
        if pos is None:
            index[key] = len(merged)
            merged.append(replace(ext))
            continue
        existing = merged[pos]
        if existing.suggested_correction is None and ext.suggested_correction is not None:
            existing.suggested_correction = replace(ext.suggested_correction)
        for attr in ("ai_confidence", "is_ai_identified", "is_anomaly"):
            if getattr(existing, attr) is None and getattr(ext, attr) is not None:
                setattr(existing, attr, getattr(ext, attr))
    return merged


def summarize_issues(issues: Iterable[ValidationIssue]) -> IssueSummary:
    summary = IssueSummary()
    for issue in issues:
        summary.total += 1
        if issue.severity == Severity.ERROR:
            summary.errors += 1
        else:
            summary.warnings += 1
    return summary
