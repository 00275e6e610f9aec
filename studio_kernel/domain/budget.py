"""
Budget Domain Records (``studio_kernel.domain.budget``).

Responsibility
--------------
Frozen dataclass value objects for a priced proposal: the client record,
calculation inputs and outputs, the committed phase scope, payment terms
and the append-only history of lifecycle actions.

Architecture position
---------------------
**Kernel domain layer** -- pure data definitions with ZERO I/O.  The
budget lifecycle in ``studio_modules.budget`` is the only code that
produces new ``Budget`` versions; everything else reads them.

Invariants enforced
-------------------
* All models are ``frozen=True``; changes go through ``dataclasses.replace``.
* ``history`` only ever grows, one entry per successful transition.
* All monetary fields use ``Decimal`` -- NEVER ``float``.

Failure modes
-------------
* Construction with invalid enum values raises ``ValueError``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from studio_kernel.domain.values import ZERO


class CalcMode(str, Enum):
    """How the size of a job is expressed."""
    AREA = "area"
    ROOM = "room"


class BudgetStatus(str, Enum):
    """Budget lifecycle states."""
    DRAFT = "draft"
    SENT = "sent"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentTerms(str, Enum):
    """How the budget value is split into installments."""
    FIFTY_FIFTY = "50_50"
    THIRTY_THIRTY_FORTY = "30_30_40"
    FORTY_THIRTY_THIRTY = "40_30_30"
    A_VISTA = "a_vista"
    PERSONALIZADO = "personalizado"


@dataclass(frozen=True)
class RoomSpec:
    """A priced room in room mode."""
    name: str = ""
    size: str = "M"  # P, M, G
    environment_type: str = "standard"  # standard, medium, high


@dataclass(frozen=True)
class ClientData:
    """Contact details of the client a budget is addressed to."""
    name: str = ""
    email: str = ""
    phone: str = ""
    document: str = ""
    company: str = ""
    instagram: str = ""
    address: str = ""
    notes: str = ""

    def missing_required(self) -> tuple[str, ...]:
        """Names of required fields that are blank, in declaration order."""
        missing = []
        if not self.name.strip():
            missing.append("name")
        if not self.email.strip():
            missing.append("email")
        return tuple(missing)


@dataclass(frozen=True)
class HistoryEntry:
    """One lifecycle action recorded on a budget."""
    timestamp: datetime
    action: str
    note: str | None = None


@dataclass(frozen=True)
class Budget:
    """A priced proposal for a client, pre-approval."""
    id: UUID
    code: str
    service_id: str
    created_at: datetime
    status: BudgetStatus = BudgetStatus.DRAFT
    service_name: str = ""

    # Calculation inputs
    calc_mode: CalcMode = CalcMode.AREA
    area: Decimal = ZERO
    rooms: tuple[RoomSpec, ...] = ()
    complexity: str = "padrao"
    finish: str = "padrao"

    # Calculation outputs
    estimated_hours: int = 0
    value: Decimal = ZERO
    hour_cost: Decimal = ZERO
    profit: Decimal = ZERO

    client: ClientData = ClientData()
    scope: tuple[str, ...] = ()
    notes: str = ""
    payment_terms: str = PaymentTerms.FIFTY_FIFTY.value
    custom_payment_text: str = ""
    validity_days: int = 15
    history: tuple[HistoryEntry, ...] = ()

    project_id: UUID | None = None
    project_code: str | None = None
    rejection_reason: str | None = None

    @property
    def is_draft(self) -> bool:
        return self.status == BudgetStatus.DRAFT

    @property
    def awaiting_project(self) -> bool:
        """Approved but not yet linked to the project it spawns."""
        return self.status == BudgetStatus.APPROVED and self.project_id is None

    def with_history(self, entry: HistoryEntry, **changes) -> Budget:
        return replace(self, history=self.history + (entry,), **changes)
