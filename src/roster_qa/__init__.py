"""roster_qa: validation, bulk modification and rule ordering for client/worker/task tables."""

__version__ = "0.1.0"
