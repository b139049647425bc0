"""Location of the validation profiles bundled with roster_qa."""

from __future__ import annotations

import importlib.resources
from pathlib import Path


def get_builtin_profiles_dir() -> Path:
    """Directory holding the shipped ``<name>.yml`` profiles."""
    # Profiles ship as plain package data, never zipped
    return Path(str(importlib.resources.files("roster_qa.resources.profiles")))


def get_builtin_profile_path(name: str) -> Path:
    """Path of the built-in profile *name*, e.g. ``"default"``.

    The file may not exist; ``ProfileLoader`` logs and falls back to the
    check defaults in that case.
    """
    return get_builtin_profiles_dir() / f"{name}.yml"
