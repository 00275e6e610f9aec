"""
Project and Finance Domain Records (``studio_kernel.domain.project``).

Responsibility
--------------
Frozen dataclass value objects for the in-execution unit of work spawned
from an approved budget (stage, schedule, logged hours, comments) and for
the installments billed against it.

Architecture position
---------------------
**Kernel domain layer** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* ``Project.stage`` is always one of the resolved template's phase ids;
  the project service is the only writer.
* ``FinanceEntry`` is immutable after creation except for ``status``.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from studio_kernel.domain.values import ZERO


class MilestoneType(str, Enum):
    START = "start"
    DELIVERY = "delivery"
    END = "end"


class ProjectStatus(str, Enum):
    ACTIVE = "active"
    DELIVERED = "delivered"


class Priority(str, Enum):
    BAIXA = "baixa"
    NORMAL = "normal"
    ALTA = "alta"
    URGENTE = "urgente"


class InstallmentStatus(str, Enum):
    PAID = "paid"
    PENDING = "pending"


@dataclass(frozen=True)
class Milestone:
    """A dated schedule point; ``phase`` is ``"inicio"`` for the start."""
    date: date
    type: MilestoneType
    phase: str
    description: str = ""


@dataclass(frozen=True)
class TimeEntry:
    hours: Decimal
    description: str
    phase: str
    date: date
    author: str = ""


@dataclass(frozen=True)
class Comment:
    text: str
    date: datetime
    author: str = ""


@dataclass(frozen=True)
class Project:
    """A project spawned from exactly one approved budget."""
    id: UUID
    code: str
    budget_id: UUID
    service_id: str
    stage: str
    created_at: datetime
    start_date: date
    service_name: str = ""
    client_name: str = ""
    client_email: str = ""
    client_phone: str = ""
    value: Decimal = ZERO
    estimated_hours: int = 0
    scope: tuple[str, ...] = ()
    schedule: tuple[Milestone, ...] = ()
    entries: tuple[TimeEntry, ...] = ()
    comments: tuple[Comment, ...] = ()
    hours_used: Decimal = ZERO
    deadline: date | None = None
    priority: Priority = Priority.NORMAL
    architect: str = ""
    team: tuple[str, ...] = ()
    status: ProjectStatus = ProjectStatus.ACTIVE
    notes: str = ""


@dataclass(frozen=True)
class FinanceEntry:
    """One installment billed against a project."""
    id: UUID
    project_id: UUID
    project_code: str
    client: str
    description: str
    value: Decimal
    issue_date: date
    due_date: date
    installment: str
    status: InstallmentStatus = InstallmentStatus.PENDING

    @property
    def is_paid(self) -> bool:
        return self.status == InstallmentStatus.PAID

    def mark_paid(self) -> FinanceEntry:
        return replace(self, status=InstallmentStatus.PAID)

    def mark_pending(self) -> FinanceEntry:
        return replace(self, status=InstallmentStatus.PENDING)
