"""
Project Service (``studio_modules.project.service``).

Responsibility
--------------
Spawns a project from an approved budget (stage sequence, schedule,
deadline), drives its stage along ``ProjectStageMachine``, and records
time entries and comments.  Also turns generated installments into
``FinanceEntry`` records for the new project.

Architecture position
---------------------
**Modules layer**.  Stage arithmetic and schedule dates come from
``studio_engines``; this service only applies them to ``Project``
records and stamps them with the injected clock.

Invariants enforced
-------------------
* A project is spawned only from a budget that is approved and not yet
  linked to a project.
* ``stage`` always belongs to the project's stage sequence.
* ``status`` is ``delivered`` exactly when ``stage`` is the terminal phase.
* ``hours_used`` equals the sum of recorded time entries.

Failure modes
-------------
* ``ProjectAlreadySpawnedError`` / ``InvalidBudgetTransitionError`` on spawn.
* ``InvalidScopeError`` / ``EmptyScopeError`` when the budget scope no
  longer leaves a working phase in the resolved template.
* ``UnknownStageError`` / ``InvalidStageTransitionError`` on stage moves.
* ``TimeEntryValidationError`` for hours outside ``(0, 24]``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from studio_kernel.domain.budget import Budget, BudgetStatus
from studio_kernel.domain.clock import Clock, SystemClock
from studio_kernel.domain.project import (
    Comment,
    FinanceEntry,
    Priority,
    Project,
    ProjectStatus,
    TimeEntry,
)
from studio_kernel.domain.templates import TERMINAL_PHASE_ID, ServiceTemplate
from studio_kernel.domain.values import ZERO, to_decimal
from studio_kernel.exceptions import (
    EmptyScopeError,
    InvalidBudgetTransitionError,
    InvalidScopeError,
    ProjectAlreadySpawnedError,
    TimeEntryValidationError,
)
from studio_kernel.logging_config import LogContext, get_logger
from studio_engines.payment_split import Installment
from studio_engines.schedule import ScheduleGenerator
from studio_engines.stage_machine import (
    ProjectStageMachine,
    progress_percent,
    scoped_phases,
)

logger = get_logger("modules.project.service")

MAX_HOURS_PER_ENTRY = Decimal("24")


def project_code(prefix: str, existing_count: int) -> str:
    """Service prefix followed by a 3-digit, 1-based sequence (``ARQ001``)."""
    return f"{prefix}{existing_count + 1:03d}"


def finance_entries_for(
    project: Project,
    installments: Sequence[Installment],
    *,
    issue_date: date,
    ids: Sequence[UUID] | None = None,
) -> tuple[FinanceEntry, ...]:
    """One finance entry per installment, billed to the project's client."""
    entries = []
    for i, installment in enumerate(installments):
        entries.append(
            FinanceEntry(
                id=ids[i] if ids is not None else uuid4(),
                project_id=project.id,
                project_code=project.code,
                client=project.client_name,
                description=installment.describe(project.code),
                value=installment.value,
                issue_date=issue_date,
                due_date=installment.due_date,
                installment=installment.label,
                status=installment.status,
            )
        )
    return tuple(entries)


class ProjectService:
    """
    Applies stage moves and activity to ``Project`` records.

    Contract
    --------
    * Every method returns a new ``Project``; the input is never modified.
    * Stage moves need the project's resolved template so the stage
      sequence reflects the current phase list.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        schedule_generator: ScheduleGenerator | None = None,
    ):
        self._clock = clock or SystemClock()
        self._schedule = schedule_generator or ScheduleGenerator()

    # =========================================================================
    # Spawn
    # =========================================================================

    def spawn(
        self,
        *,
        budget: Budget,
        template: ServiceTemplate,
        code: str,
        start_date: date | None = None,
        architect: str = "",
        team: Sequence[str] = (),
        priority: Priority = Priority.NORMAL,
        notes: str | None = None,
        project_id: UUID | None = None,
    ) -> Project:
        """Create the project for an approved, unlinked budget."""
        if budget.project_id is not None:
            raise ProjectAlreadySpawnedError(str(budget.id), str(budget.project_id))
        if budget.status != BudgetStatus.APPROVED:
            raise InvalidBudgetTransitionError(str(budget.id), budget.status.value, "spawn_project")

        stale = template.unscopable(budget.scope)
        if stale:
            raise InvalidScopeError(budget.service_id, stale)
        machine = ProjectStageMachine(template, budget.scope)
        if machine.last_working_stage is None:
            raise EmptyScopeError(str(budget.id))

        start = start_date or self._clock.today()
        schedule = self._schedule.generate(
            start_date=start,
            phases=scoped_phases(template, budget.scope),
            estimated_hours=budget.estimated_hours,
        )
        project = Project(
            id=project_id or uuid4(),
            code=code,
            budget_id=budget.id,
            service_id=budget.service_id,
            service_name=budget.service_name or template.name,
            stage=machine.initial_stage,
            created_at=self._clock.now(),
            start_date=start,
            client_name=budget.client.name,
            client_email=budget.client.email,
            client_phone=budget.client.phone,
            value=budget.value,
            estimated_hours=budget.estimated_hours,
            scope=budget.scope,
            schedule=schedule,
            deadline=schedule[-1].date,
            priority=Priority(priority),
            architect=architect,
            team=tuple(team),
            notes=notes if notes is not None else budget.client.notes,
        )
        with LogContext.bind(budget_id=budget.id, project_id=project.id):
            logger.info("project_spawned", extra={
                "project_code": project.code,
                "budget_code": budget.code,
                "stage": project.stage,
                "deadline": project.deadline,
                "milestone_count": len(schedule),
            })
        return project

    # =========================================================================
    # Stage progression
    # =========================================================================

    def advance(self, project: Project, template: ServiceTemplate, *, finalize: bool = False) -> Project:
        machine = ProjectStageMachine(template, project.scope)
        return self._move(project, machine.advance(project.stage, finalize=finalize), "advance")

    def retreat(self, project: Project, template: ServiceTemplate) -> Project:
        machine = ProjectStageMachine(template, project.scope)
        return self._move(project, machine.retreat(project.stage), "retreat")

    def finalize(self, project: Project, template: ServiceTemplate) -> Project:
        machine = ProjectStageMachine(template, project.scope)
        return self._move(project, machine.finalize(project.stage), "finalize")

    @staticmethod
    def progress(project: Project) -> Decimal:
        return progress_percent(project.hours_used, project.estimated_hours)

    def _move(self, project: Project, stage: str, action: str) -> Project:
        if stage == project.stage:
            logger.debug("project_stage_unchanged", extra={
                "project_code": project.code,
                "stage": stage,
                "action": action,
            })
            return project
        status = ProjectStatus.DELIVERED if stage == TERMINAL_PHASE_ID else ProjectStatus.ACTIVE
        updated = replace(project, stage=stage, status=status)
        with LogContext.bind(project_id=project.id):
            logger.info("project_stage_changed", extra={
                "project_code": project.code,
                "action": action,
                "from_stage": project.stage,
                "to_stage": stage,
                "status": status.value,
            })
        return updated

    # =========================================================================
    # Activity
    # =========================================================================

    def log_time(
        self,
        project: Project,
        hours: Decimal | int | str,
        description: str,
        *,
        phase: str | None = None,
        author: str = "",
        on: date | None = None,
    ) -> Project:
        """Record worked hours against a phase (the current stage by default)."""
        try:
            amount = to_decimal(hours)
        except ValueError:
            raise TimeEntryValidationError(str(project.id), hours) from None
        if not amount.is_finite() or not ZERO < amount <= MAX_HOURS_PER_ENTRY:
            raise TimeEntryValidationError(str(project.id), hours)

        entry = TimeEntry(
            hours=amount,
            description=description,
            phase=phase or project.stage,
            date=on or self._clock.today(),
            author=author,
        )
        updated = replace(
            project,
            entries=project.entries + (entry,),
            hours_used=project.hours_used + amount,
        )
        logger.info("project_time_logged", extra={
            "project_code": project.code,
            "hours": str(amount),
            "phase": entry.phase,
            "hours_used": str(updated.hours_used),
        })
        return updated

    def add_comment(self, project: Project, text: str, *, author: str = "") -> Project:
        if not text.strip():
            raise ValueError("Comment text must not be blank")
        comment = Comment(text=text, date=self._clock.now(), author=author)
        return replace(project, comments=project.comments + (comment,))
