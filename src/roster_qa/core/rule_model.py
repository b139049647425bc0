"""Business rule model: a closed family of rule dataclasses keyed by RuleType.

Rules are immutable values. ``to_dict`` / ``rule_from_dict`` convert to and
from the camelCase JSON shape used by ``rules.json`` exports; parsing is
strict and raises StructuralError on any malformed field.
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ClassVar

from roster_qa.core.instructions import (
    optional_bool,
    require_choice,
    require_dict,
    require_list,
    require_str,
)
from roster_qa.core.models import Category, StructuralError
from roster_qa.core.values import is_number

_RANGE_RE = re.compile(r"^\s*(\d+)\s*-\s*(\d+)\s*$")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class RuleType(str, Enum):
    CO_RUN = "coRun"
    SLOT_RESTRICTION = "slotRestriction"
    LOAD_LIMIT = "loadLimit"
    PHASE_WINDOW = "phaseWindow"
    PATTERN_MATCH = "patternMatch"
    PRECEDENCE_OVERRIDE = "precedenceOverride"
    NATURAL_LANGUAGE = "naturalLanguage"


class RuleSource(str, Enum):
    MANUAL = "manual"
    AI = "ai"
    NATURAL_LANGUAGE = "naturalLanguage"


class GroupType(str, Enum):
    CLIENT_GROUP = "clientGroup"
    WORKER_GROUP = "workerGroup"


class PatternAction(str, Enum):
    FLAG = "flag"
    TRANSFORM = "transform"


def new_rule_id() -> str:
    return uuid.uuid4().hex[:8]


def expand_phases(allowed: Any, path: str = "allowedPhases") -> list[int]:
    """Expand a phase list such as ``[1, "3-5"]`` into ``[1, 3, 4, 5]``.

    Integers and digit strings are single phases; ``"a-b"`` is an inclusive
    range. The result is sorted and de-duplicated.
    """
    if not isinstance(allowed, (list, tuple)):
        raise StructuralError("expected an array", path)
    phases: set[int] = set()
    for i, item in enumerate(allowed):
        item_path = f"{path}[{i}]"
        if isinstance(item, int) and not isinstance(item, bool):
            phases.add(item)
            continue
        if isinstance(item, str):
            text = item.strip()
            if text.isdigit():
                phases.add(int(text))
                continue
            match = _RANGE_RE.match(text)
            if match:
                start, end = int(match.group(1)), int(match.group(2))
                if start > end:
                    raise StructuralError(f"range {item!r} is reversed", item_path)
                phases.update(range(start, end + 1))
                continue
        raise StructuralError(f"{item!r} is not a phase number or range like '3-5'", item_path)
    return sorted(phases)


# ---------------------------------------------------------------------------
# Rule dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True, kw_only=True)
class BusinessRule:
    """Fields shared by every rule kind."""

    rule_type: ClassVar[RuleType]

    id: str
    description: str
    is_enabled: bool = True
    source: RuleSource = RuleSource.MANUAL

    def _payload(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "type": self.rule_type.value,
            "description": self.description,
            "isEnabled": self.is_enabled,
            "source": self.source.value,
        }
        d.update(self._payload())
        return d


@dataclass(frozen=True, kw_only=True)
class CoRunRule(BusinessRule):
    """Tasks that must run together."""

    rule_type: ClassVar[RuleType] = RuleType.CO_RUN
    task_ids: tuple[str, ...] = ()

    def _payload(self) -> dict[str, Any]:
        return {"taskIds": list(self.task_ids)}


@dataclass(frozen=True, kw_only=True)
class SlotRestrictionRule(BusinessRule):
    """A client or worker group needs a minimum number of common slots."""

    rule_type: ClassVar[RuleType] = RuleType.SLOT_RESTRICTION
    group_type: GroupType
    group_name: str
    min_common_slots: int = 0
    target_phases: tuple[int, ...] | None = None

    def __post_init__(self) -> None:
        if self.min_common_slots < 0:
            raise StructuralError("must be >= 0", "minCommonSlots")

    def _payload(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "groupType": self.group_type.value,
            "groupName": self.group_name,
            "minCommonSlots": self.min_common_slots,
        }
        if self.target_phases is not None:
            d["targetPhases"] = list(self.target_phases)
        return d


@dataclass(frozen=True, kw_only=True)
class LoadLimitRule(BusinessRule):
    """Maximum load per phase for a worker group."""

    rule_type: ClassVar[RuleType] = RuleType.LOAD_LIMIT
    worker_group: str
    max_load: float
    phase: int | None = None

    def _payload(self) -> dict[str, Any]:
        d: dict[str, Any] = {"workerGroup": self.worker_group, "maxLoad": self.max_load}
        if self.phase is not None:
            d["phase"] = self.phase
        return d


@dataclass(frozen=True, kw_only=True)
class PhaseWindowRule(BusinessRule):
    """Phases a task may run in; entries are ints or ranges like "3-5"."""

    rule_type: ClassVar[RuleType] = RuleType.PHASE_WINDOW
    task_id: str
    allowed_phases: tuple[int | str, ...] = ()

    def phases(self) -> list[int]:
        return expand_phases(list(self.allowed_phases))

    def _payload(self) -> dict[str, Any]:
        return {"taskId": self.task_id, "allowedPhases": list(self.allowed_phases)}


@dataclass(frozen=True, kw_only=True)
class PatternMatchRule(BusinessRule):
    """Flag or transform cells of one entity column that match a regex."""

    rule_type: ClassVar[RuleType] = RuleType.PATTERN_MATCH
    entity: Category
    column: str
    regex: str
    action: PatternAction
    action_details: dict[str, str] | None = None

    def _payload(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "entity": self.entity.value,
            "column": self.column,
            "regex": self.regex,
            "action": self.action.value,
        }
        if self.action_details is not None:
            d["actionDetails"] = dict(self.action_details)
        return d


@dataclass(frozen=True, kw_only=True)
class PrecedenceOverrideRule(BusinessRule):
    """Explicit execution order over the other rules."""

    rule_type: ClassVar[RuleType] = RuleType.PRECEDENCE_OVERRIDE
    rule_ids: tuple[str, ...] = ()

    def _payload(self) -> dict[str, Any]:
        return {"ruleIds": list(self.rule_ids)}


#: Rule kinds that can be suggested by a natural-language translation.
CONCRETE_RULE_TYPES: tuple[type[BusinessRule], ...] = (
    CoRunRule,
    SlotRestrictionRule,
    LoadLimitRule,
    PhaseWindowRule,
    PatternMatchRule,
    PrecedenceOverrideRule,
)


@dataclass(frozen=True, kw_only=True)
class NaturalLanguageRule(BusinessRule):
    """A free-text rule with the structured rule an AI translated it into."""

    rule_type: ClassVar[RuleType] = RuleType.NATURAL_LANGUAGE
    original_prompt: str
    suggested_structured_rule: BusinessRule | None = None
    ai_confidence: float | None = None

    def __post_init__(self) -> None:
        suggestion = self.suggested_structured_rule
        if suggestion is not None and not isinstance(suggestion, CONCRETE_RULE_TYPES):
            raise StructuralError(
                "a natural-language rule cannot wrap another natural-language rule",
                "suggestedStructuredRule",
            )

    def _payload(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "originalPrompt": self.original_prompt,
            "suggestedStructuredRule": (
                self.suggested_structured_rule.to_dict()
                if self.suggested_structured_rule is not None
                else None
            ),
        }
        if self.ai_confidence is not None:
            d["aiConfidence"] = self.ai_confidence
        return d


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _str_tuple(data: dict, key: str, path: str) -> tuple[str, ...]:
    items = require_list(data, key, path)
    for i, item in enumerate(items):
        if not isinstance(item, str):
            raise StructuralError("expected a string", f"{path}.{key}[{i}]")
    return tuple(items)


def _number(data: dict, key: str, path: str, required: bool = True) -> Any:
    value = data.get(key)
    if value is None and not required:
        return None
    if not is_number(value):
        raise StructuralError("expected a number", f"{path}.{key}")
    return value


def _int(data: dict, key: str, path: str, required: bool = True) -> int | None:
    value = _number(data, key, path, required)
    if value is None:
        return None
    if not float(value).is_integer():
        raise StructuralError("expected an integer", f"{path}.{key}")
    return int(value)


def _parse_co_run(data: dict, path: str) -> dict:
    return {"task_ids": _str_tuple(data, "taskIds", path)}


def _parse_slot_restriction(data: dict, path: str) -> dict:
    min_slots = _int(data, "minCommonSlots", path)
    if min_slots < 0:
        raise StructuralError("must be >= 0", f"{path}.minCommonSlots")
    target_phases = None
    if data.get("targetPhases") is not None:
        raw = require_list(data, "targetPhases", path)
        if not all(isinstance(p, int) and not isinstance(p, bool) for p in raw):
            raise StructuralError("expected an array of integers", f"{path}.targetPhases")
        target_phases = tuple(raw)
    return {
        "group_type": GroupType(
            require_choice(data.get("groupType"), [g.value for g in GroupType], f"{path}.groupType")
        ),
        "group_name": require_str(data, "groupName", path),
        "min_common_slots": min_slots,
        "target_phases": target_phases,
    }


def _parse_load_limit(data: dict, path: str) -> dict:
    return {
        "worker_group": require_str(data, "workerGroup", path),
        "max_load": _number(data, "maxLoad", path),
        "phase": _int(data, "phase", path, required=False),
    }


def _parse_phase_window(data: dict, path: str) -> dict:
    allowed = require_list(data, "allowedPhases", path)
    expand_phases(allowed, f"{path}.allowedPhases")
    return {"task_id": require_str(data, "taskId", path), "allowed_phases": tuple(allowed)}


def _parse_pattern_match(data: dict, path: str) -> dict:
    regex = require_str(data, "regex", path)
    try:
        re.compile(regex)
    except re.error as exc:
        raise StructuralError(f"invalid regular expression: {exc}", f"{path}.regex") from exc
    details = data.get("actionDetails")
    if details is not None:
        details = require_dict(details, f"{path}.actionDetails")
        for key in ("transformTo", "message"):
            if key in details and not isinstance(details[key], str):
                raise StructuralError("expected a string", f"{path}.actionDetails.{key}")
        details = dict(details)
    return {
        "entity": Category(require_choice(data.get("entity"), [c.value for c in Category], f"{path}.entity")),
        "column": require_str(data, "column", path),
        "regex": regex,
        "action": PatternAction(
            require_choice(data.get("action"), [a.value for a in PatternAction], f"{path}.action")
        ),
        "action_details": details,
    }


def _parse_precedence_override(data: dict, path: str) -> dict:
    return {"rule_ids": _str_tuple(data, "ruleIds", path)}


def _parse_natural_language(data: dict, path: str) -> dict:
    suggestion = data.get("suggestedStructuredRule")
    confidence = _number(data, "aiConfidence", path, required=False)
    return {
        "original_prompt": require_str(data, "originalPrompt", path, allow_empty=True),
        "suggested_structured_rule": (
            parse_suggested_rule(suggestion, f"{path}.suggestedStructuredRule")
            if suggestion is not None
            else None
        ),
        "ai_confidence": confidence,
    }


_PARSERS: dict[RuleType, tuple[type[BusinessRule], Callable[[dict, str], dict]]] = {
    RuleType.CO_RUN: (CoRunRule, _parse_co_run),
    RuleType.SLOT_RESTRICTION: (SlotRestrictionRule, _parse_slot_restriction),
    RuleType.LOAD_LIMIT: (LoadLimitRule, _parse_load_limit),
    RuleType.PHASE_WINDOW: (PhaseWindowRule, _parse_phase_window),
    RuleType.PATTERN_MATCH: (PatternMatchRule, _parse_pattern_match),
    RuleType.PRECEDENCE_OVERRIDE: (PrecedenceOverrideRule, _parse_precedence_override),
    RuleType.NATURAL_LANGUAGE: (NaturalLanguageRule, _parse_natural_language),
}


def rule_from_dict(payload: Any, path: str = "rule", require_id: bool = True) -> BusinessRule:
    """Build a rule from its JSON dict, validating every field.

    Args:
        payload: The rule dict (``type`` selects the kind).
        path: Field path prefix used in error messages.
        require_id: When False a missing ``id`` is replaced by a fresh one
            (AI translations do not carry ids).

    Raises:
        StructuralError: on any missing or malformed field.
    """
    data = require_dict(payload, path)
    rule_type = RuleType(require_choice(data.get("type"), [t.value for t in RuleType], f"{path}.type"))

    if require_id or data.get("id") is not None:
        rule_id = require_str(data, "id", path)
    else:
        rule_id = new_rule_id()

    source = data.get("source", RuleSource.MANUAL.value)
    source = RuleSource(require_choice(source, [s.value for s in RuleSource], f"{path}.source"))

    cls, parse_fields = _PARSERS[rule_type]
    return cls(
        id=rule_id,
        description=require_str(data, "description", path, allow_empty=True),
        is_enabled=bool(optional_bool(data, "isEnabled", path, default=True)),
        source=source,
        **parse_fields(data, path),
    )


def parse_suggested_rule(payload: Any, path: str = "suggestedRule") -> BusinessRule:
    """Parse an AI-suggested rule; the natural-language kind is rejected."""
    data = require_dict(payload, path)
    if data.get("type") == RuleType.NATURAL_LANGUAGE.value:
        raise StructuralError("a natural-language rule cannot wrap another natural-language rule", f"{path}.type")
    return rule_from_dict(data, path, require_id=False)
