"""Tests for validation profile loading."""

from __future__ import annotations

import logging

import roster_qa.core.checks  # noqa: F401
from roster_qa.core.check_base import registry
from roster_qa.core.profile import ProfileLoader, deep_merge, load_profile
from roster_qa.core.resources import get_builtin_profile_path, get_builtin_profiles_dir


class TestDeepMerge:
    def test_overlay_wins_and_lists_replaced(self):
        base = {"checks": {"a": {"enabled": True, "allowed_values": ["x", "y"]}}, "keep": 1}
        overlay = {"checks": {"a": {"allowed_values": ["z"]}}}
        merged = deep_merge(base, overlay)
        assert merged == {"checks": {"a": {"enabled": True, "allowed_values": ["z"]}}, "keep": 1}

    def test_inputs_untouched(self):
        base = {"a": {"b": 1}}
        deep_merge(base, {"a": {"b": 2}})
        assert base == {"a": {"b": 1}}


class TestLoadProfile:
    def test_builtin_profile_exists(self):
        assert get_builtin_profile_path("default").exists()
        assert get_builtin_profiles_dir().is_dir()

    def test_default_covers_every_check(self):
        profile = load_profile()
        assert set(profile["checks"]) == set(registry.all_ids())
        assert profile["id_columns"] == {"clients": "clientId", "workers": "workerId", "tasks": "taskId"}

    def test_overlay(self, tmp_path):
        overlay = tmp_path / "mine.yml"
        overlay.write_text(
            "checks:\n  clients.status:\n    allowed_values: [gold, silver]\n  generic.blank_value:\n    enabled: false\n",
            encoding="utf-8",
        )
        profile = load_profile(overlay)
        assert profile["checks"]["clients.status"]["allowed_values"] == ["gold", "silver"]
        assert profile["checks"]["clients.status"]["severity"] == "warning"
        assert profile["checks"]["generic.blank_value"]["enabled"] is False

    def test_missing_overlay_warns(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING):
            profile = load_profile(tmp_path / "absent.yml")
        assert "checks" in profile
        assert "absent.yml" in caplog.text

    def test_missing_base_gives_empty_config(self, tmp_path):
        assert ProfileLoader().load(tmp_path / "nope.yml") == {}
