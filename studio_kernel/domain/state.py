"""
StudioState -- explicit application state.

Responsibility:
    Holds everything one office session works on: the office profile,
    its template overrides, budgets, projects and finance entries.  The
    orchestration layer takes a ``StudioState`` and returns a new one;
    nothing in the engine keeps state between calls.

Architecture position:
    Kernel > Domain -- pure value object, zero I/O.

Invariants enforced:
    - Records are stored in insertion order; lookups are by id.
    - Replacing a record keeps its position.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from uuid import UUID

from studio_kernel.domain.budget import Budget
from studio_kernel.domain.office import OfficeProfile, default_office
from studio_kernel.domain.project import FinanceEntry, Project
from studio_kernel.domain.templates import ServiceTemplate
from studio_kernel.exceptions import (
    BudgetNotFoundError,
    FinanceEntryNotFoundError,
    ProjectNotFoundError,
)


@dataclass(frozen=True)
class StudioState:
    """Snapshot of one office's working data."""
    office: OfficeProfile = field(default_factory=default_office)
    template_overrides: tuple[tuple[str, ServiceTemplate], ...] = ()
    budgets: tuple[Budget, ...] = ()
    projects: tuple[Project, ...] = ()
    finances: tuple[FinanceEntry, ...] = ()

    @property
    def overrides(self) -> dict[str, ServiceTemplate]:
        return dict(self.template_overrides)

    def with_overrides(self, overrides: dict[str, ServiceTemplate]) -> StudioState:
        return replace(self, template_overrides=tuple(overrides.items()))

    # Budgets

    def get_budget(self, budget_id: UUID) -> Budget:
        for b in self.budgets:
            if b.id == budget_id:
                return b
        raise BudgetNotFoundError(str(budget_id))

    def put_budget(self, budget: Budget) -> StudioState:
        """Insert or replace ``budget`` by id."""
        return replace(self, budgets=_upsert(self.budgets, budget))

    # Projects

    def get_project(self, project_id: UUID) -> Project:
        for p in self.projects:
            if p.id == project_id:
                return p
        raise ProjectNotFoundError(str(project_id))

    def put_project(self, project: Project) -> StudioState:
        return replace(self, projects=_upsert(self.projects, project))

    # Finances

    def get_finance_entry(self, entry_id: UUID) -> FinanceEntry:
        for f in self.finances:
            if f.id == entry_id:
                return f
        raise FinanceEntryNotFoundError(str(entry_id))

    def put_finance_entry(self, entry: FinanceEntry) -> StudioState:
        return replace(self, finances=_upsert(self.finances, entry))

    def add_finance_entries(self, entries: tuple[FinanceEntry, ...]) -> StudioState:
        return replace(self, finances=self.finances + tuple(entries))

    def finances_for(self, project_id: UUID) -> tuple[FinanceEntry, ...]:
        return tuple(f for f in self.finances if f.project_id == project_id)


def _upsert(records: tuple, record) -> tuple:
    for i, existing in enumerate(records):
        if existing.id == record.id:
            return records[:i] + (record,) + records[i + 1:]
    return records + (record,)
