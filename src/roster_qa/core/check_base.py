"""Schema checks over client, worker and task rows.

Each check declares the categories it covers and a default severity that the
validation profile may override. The shared ``registry`` fixes run order.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Sequence

from roster_qa.core.models import Category, Severity

if TYPE_CHECKING:
    from roster_qa.core.models import Row, ValidationIssue


class Check(ABC):
    """One row-level rule of the schema validator."""

    #: Stable unique identifier, e.g. "clients.email"
    check_id: str

    #: Human-readable name
    name: str = ""

    #: Default severity (can be overridden via the validation profile)
    default_severity: str = Severity.WARNING.value

    #: Categories this check applies to. Empty = every category.
    categories: tuple[Category, ...] = ()

    def applies_to(self, category: Category) -> bool:
        return not self.categories or category in self.categories

    def severity(self, config: dict[str, Any]) -> Severity:
        return Severity(str(config.get("severity", self.default_severity)).lower())

    @abstractmethod
    def check(
        self, rows: Sequence["Row"], category: Category, config: dict[str, Any]
    ) -> list["ValidationIssue"]:
        """Run the check and return the issues found.

        Args:
            rows: The full dataset, in order. Row numbers in issues are 1-based.
            category: Category of the dataset.
            config: Merged check config from the profile (includes ``id_column``).

        Returns:
            List of ValidationIssue objects. Empty list = no issues.
        """


class CheckRegistry:
    """Every known check by id, in the order the validator runs them.

    That order is the import order of ``roster_qa.core.checks``, so issues on
    one row always come out in the same sequence.
    """

    _instance: "CheckRegistry | None" = None
    _checks: dict[str, type[Check]]

    def __new__(cls) -> "CheckRegistry":
        if cls._instance is None:
            inst = super().__new__(cls)
            inst._checks = {}
            cls._instance = inst
        return cls._instance

    def register(self, cls: type[Check]) -> type[Check]:
        """Register a Check class. Can be used as a decorator."""
        self._checks[cls.check_id] = cls
        return cls

    def get(self, check_id: str) -> type[Check] | None:
        return self._checks.get(check_id)

    def all_ids(self) -> list[str]:
        return list(self._checks.keys())

    def all_checks(self) -> list[type[Check]]:
        return list(self._checks.values())


registry = CheckRegistry()
