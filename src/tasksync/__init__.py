"""tasksync: convert markdown task lists into reconciled JSONC task files."""

__version__ = "1.2.0"
