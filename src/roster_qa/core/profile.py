"""ProfileLoader: load and deep-merge YAML validation profiles."""

from __future__ import annotations

import logging
from copy import deepcopy
from pathlib import Path

import yaml

from roster_qa.core.resources import get_builtin_profile_path

_log = logging.getLogger(__name__)


def deep_merge(base: dict, overlay: dict) -> dict:
    """Merge overlay into base. Overlay wins on scalar conflicts.

    Dicts are merged recursively. Lists are replaced (not concatenated).
    """
    result = deepcopy(base)
    for key, val in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = deep_merge(result[key], val)
        else:
            result[key] = deepcopy(val)
    return result


class ProfileLoader:
    """Load a base profile + optional overlay profile."""

    def load(self, base_path: Path, overlay_path: Path | None = None) -> dict:
        """Return the merged profile dict."""
        config: dict = {}
        if base_path.exists():
            config = yaml.safe_load(base_path.read_text(encoding="utf-8")) or {}
        else:
            _log.warning("Base profile %s not found; using check defaults", base_path)

        if overlay_path and overlay_path.exists():
            overlay = yaml.safe_load(overlay_path.read_text(encoding="utf-8")) or {}
            config = deep_merge(config, overlay)
        elif overlay_path:
            _log.warning("Overlay profile %s not found; ignored", overlay_path)

        return config


def load_profile(overlay_path: str | Path | None = None, name: str = "default") -> dict:
    """Load a built-in profile, optionally overlaid with a user profile file."""
    overlay = Path(overlay_path) if overlay_path else None
    return ProfileLoader().load(get_builtin_profile_path(name), overlay)
