"""
Pure domain layer.

This module contains immutable records and domain logic with NO
dependencies on:
- Storage
- Time/clock (except through an injected Clock)
- I/O

All domain objects are frozen and deterministic.
"""

from studio_kernel.domain.budget import (
    Budget,
    BudgetStatus,
    CalcMode,
    ClientData,
    HistoryEntry,
    PaymentTerms,
    RoomSpec,
)
from studio_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from studio_kernel.domain.office import (
    ROLE_DEFAULTS,
    FixedCost,
    OfficeProfile,
    OfficeTotals,
    TeamMember,
    default_office,
)
from studio_kernel.domain.project import (
    Comment,
    FinanceEntry,
    InstallmentStatus,
    Milestone,
    MilestoneType,
    Priority,
    Project,
    ProjectStatus,
    TimeEntry,
)
from studio_kernel.domain.serialization import to_primitive
from studio_kernel.domain.state import StudioState
from studio_kernel.domain.templates import (
    DEFAULT_TEMPLATES,
    TERMINAL_PHASE_ID,
    BaseReference,
    Phase,
    ServiceTemplate,
    Step,
    extract_hours,
    phase_hours,
    total_hours,
)
from studio_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    # Budget
    "Budget",
    "BudgetStatus",
    "CalcMode",
    "ClientData",
    "HistoryEntry",
    "PaymentTerms",
    "RoomSpec",
    # Clock
    "Clock",
    "DeterministicClock",
    "SystemClock",
    # Office
    "ROLE_DEFAULTS",
    "FixedCost",
    "OfficeProfile",
    "OfficeTotals",
    "TeamMember",
    "default_office",
    # Project / finance
    "Comment",
    "FinanceEntry",
    "InstallmentStatus",
    "Milestone",
    "MilestoneType",
    "Priority",
    "Project",
    "ProjectStatus",
    "TimeEntry",
    # State
    "StudioState",
    "to_primitive",
    # Templates
    "DEFAULT_TEMPLATES",
    "TERMINAL_PHASE_ID",
    "BaseReference",
    "Phase",
    "ServiceTemplate",
    "Step",
    "extract_hours",
    "phase_hours",
    "total_hours",
    # Workflow
    "Guard",
    "Transition",
    "Workflow",
]
