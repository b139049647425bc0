"""Pytest fixtures shared across all tests."""

from __future__ import annotations

import pytest

from roster_qa.core.rule_model import (
    CoRunRule,
    LoadLimitRule,
    PhaseWindowRule,
    PrecedenceOverrideRule,
)


@pytest.fixture
def client_rows() -> list[dict]:
    return [
        {"clientId": "C1", "clientName": "Acme", "email": "ops@acme.com", "status": "Active"},
        {"clientId": "C2", "clientName": "Globex", "email": "not-an-email", "status": "Foo"},
        {"clientId": "C3", "clientName": "Initech", "email": "", "status": "VIP"},
    ]


@pytest.fixture
def worker_rows() -> list[dict]:
    return [
        {"workerId": "W1", "skills": "python,sql", "hourlyRate": 25},
        {"workerId": "W2", "skills": [], "hourlyRate": "abc"},
        {"workerId": "W3", "skills": ["ops"], "hourlyRate": "30.5"},
    ]


@pytest.fixture
def task_rows() -> list[dict]:
    return [
        {"taskId": "T1", "category": "Marketing", "duration": 10, "priority": "High", "dueDate": "2024-05-01"},
        {"taskId": "T2", "category": "Ops", "duration": 20, "priority": "asap", "dueDate": "someday"},
    ]


@pytest.fixture
def three_rules() -> list:
    """R1, R2, R3 in creation order, all enabled."""
    return [
        CoRunRule(id="R1", description="T1 and T2 together", task_ids=("T1", "T2")),
        LoadLimitRule(id="R2", description="Sales cap", worker_group="Sales", max_load=3),
        PhaseWindowRule(id="R3", description="T5 early", task_id="T5", allowed_phases=(1, "3-5")),
    ]


@pytest.fixture
def override_r3_r1() -> PrecedenceOverrideRule:
    return PrecedenceOverrideRule(id="P1", description="Custom order", rule_ids=("R3", "R1"))
