"""
Schedule Generator -- delivery milestones for a project's scope.

Responsibility:
    Map a start date, the ordered scope phases and the estimated hours to
    a list of dated milestones: one ``start`` milestone, then one per
    phase, the last of which is the ``end`` milestone.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - ``len(schedule) == len(phases) + 1``.
    - Every phase gets the same whole number of days:
      ``ceil(hours / phases / hours_per_day)``.
    - Dates never go backwards.

Day counting:
    ``DayCountRule.CALENDAR`` (default) adds calendar days.
    ``DayCountRule.BUSINESS`` skips Saturdays and Sundays, the rule used by
    the printable schedule document.  Holidays are not modelled.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum

from studio_kernel.domain.project import Milestone, MilestoneType
from studio_kernel.domain.templates import Phase
from studio_kernel.logging_config import get_logger
from studio_engines.tracer import traced_engine

logger = get_logger("engines.schedule")

START_PHASE_ID = "inicio"
DEFAULT_HOURS_PER_DAY = 8


class DayCountRule(str, Enum):
    CALENDAR = "calendar"
    BUSINESS = "business"


def days_per_phase(estimated_hours: int | Decimal, phase_count: int, hours_per_day: int) -> int:
    """``ceil(hours / phase_count / hours_per_day)``; 0 without phases."""
    if phase_count <= 0 or hours_per_day <= 0:
        return 0
    hours = Decimal(estimated_hours)
    if hours <= 0:
        return 0
    divisor = Decimal(phase_count * hours_per_day)
    quotient, remainder = divmod(hours, divisor)
    return int(quotient) + (1 if remainder else 0)


def add_days(start: date, days: int, rule: DayCountRule = DayCountRule.CALENDAR) -> date:
    """Move ``days`` forward from ``start`` under ``rule``."""
    if rule == DayCountRule.CALENDAR:
        return start + timedelta(days=days)
    current = start
    remaining = days
    while remaining > 0:
        current += timedelta(days=1)
        if current.weekday() < 5:
            remaining -= 1
    return current


class ScheduleGenerator:
    """Deterministic milestone generator."""

    def __init__(
        self,
        hours_per_day: int = DEFAULT_HOURS_PER_DAY,
        rule: DayCountRule = DayCountRule.CALENDAR,
    ):
        if hours_per_day <= 0:
            raise ValueError(f"hours_per_day must be positive, got {hours_per_day}")
        self.hours_per_day = hours_per_day
        self.rule = DayCountRule(rule)

    @traced_engine("schedule", "1.0", fingerprint_fields=("start_date", "phases", "estimated_hours"))
    def generate(
        self,
        *,
        start_date: date,
        phases: Sequence[Phase],
        estimated_hours: int | Decimal,
    ) -> tuple[Milestone, ...]:
        """Start milestone followed by one milestone per phase."""
        milestones = [
            Milestone(
                date=start_date,
                type=MilestoneType.START,
                phase=START_PHASE_ID,
                description="Início do projeto - Pagamento confirmado",
            )
        ]
        step = days_per_phase(estimated_hours, len(phases), self.hours_per_day)
        current = start_date
        for index, phase in enumerate(phases):
            current = add_days(current, step, self.rule)
            is_last = index == len(phases) - 1
            milestones.append(
                Milestone(
                    date=current,
                    type=MilestoneType.END if is_last else MilestoneType.DELIVERY,
                    phase=phase.id,
                    description=f"Entrega: {phase.name}",
                )
            )

        logger.info("schedule_generated", extra={
            "phase_count": len(phases),
            "days_per_phase": step,
            "day_count_rule": self.rule.value,
            "end_date": milestones[-1].date.isoformat(),
        })
        return tuple(milestones)
