"""Auto-import all check modules so their @registry.register decorators fire.

Import order is run order: generic checks first, then per-category checks.
"""

from roster_qa.core.checks import (  # noqa: F401
    generic,
    clients,
    workers,
    tasks,
)
