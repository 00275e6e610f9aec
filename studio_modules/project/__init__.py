"""
Project Module (``studio_modules.project``).

Responsibility
--------------
Project spawn from an approved budget, stage progression along the
scoped phase sequence, time entries and comments, and the finance
entries billed against a new project.
"""

from studio_modules.project.service import (
    MAX_HOURS_PER_ENTRY,
    ProjectService,
    finance_entries_for,
    project_code,
)

__all__ = [
    "MAX_HOURS_PER_ENTRY",
    "ProjectService",
    "finance_entries_for",
    "project_code",
]
