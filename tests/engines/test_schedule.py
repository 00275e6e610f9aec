"""
Tests for the Schedule Generator.

Covers:
- Milestone count, types and descriptions
- Calendar and business day counting
- Ceiling of days per phase
- Degenerate inputs (no phases, no hours)
"""

from datetime import date

import pytest

from studio_kernel.domain.project import MilestoneType
from studio_kernel.domain.templates import Phase
from studio_engines.schedule import (
    START_PHASE_ID,
    DayCountRule,
    ScheduleGenerator,
    add_days,
    days_per_phase,
)

PHASES = (
    Phase(id="briefing", name="Briefing"),
    Phase(id="estudo", name="Estudo Preliminar"),
    Phase(id="executivo", name="Executivo"),
)


class TestDaysPerPhase:

    def test_ceiling(self):
        # 60 / 3 / 8 = 2.5
        assert days_per_phase(60, 3, 8) == 3

    def test_exact_division(self):
        assert days_per_phase(48, 3, 8) == 2

    def test_no_phases(self):
        assert days_per_phase(60, 0, 8) == 0

    def test_no_hours(self):
        assert days_per_phase(0, 3, 8) == 0


class TestCalendarSchedule:

    def setup_method(self):
        self.generator = ScheduleGenerator()

    def test_milestones(self):
        schedule = self.generator.generate(
            start_date=date(2026, 1, 1), phases=PHASES, estimated_hours=60,
        )

        assert [m.date for m in schedule] == [
            date(2026, 1, 1),
            date(2026, 1, 4),
            date(2026, 1, 7),
            date(2026, 1, 10),
        ]
        assert [m.type for m in schedule] == [
            MilestoneType.START,
            MilestoneType.DELIVERY,
            MilestoneType.DELIVERY,
            MilestoneType.END,
        ]
        assert [m.phase for m in schedule] == [START_PHASE_ID, "briefing", "estudo", "executivo"]

    def test_descriptions(self):
        schedule = self.generator.generate(
            start_date=date(2026, 1, 1), phases=PHASES, estimated_hours=60,
        )

        assert schedule[0].description == "Início do projeto - Pagamento confirmado"
        assert schedule[2].description == "Entrega: Estudo Preliminar"

    def test_no_phases_yields_start_only(self):
        schedule = self.generator.generate(
            start_date=date(2026, 3, 1), phases=(), estimated_hours=100,
        )

        assert len(schedule) == 1
        assert schedule[0].type == MilestoneType.START

    def test_zero_hours_keeps_every_date_on_start(self):
        schedule = self.generator.generate(
            start_date=date(2026, 3, 1), phases=PHASES, estimated_hours=0,
        )

        assert {m.date for m in schedule} == {date(2026, 3, 1)}

    def test_hours_per_day_changes_pace(self):
        schedule = ScheduleGenerator(hours_per_day=4).generate(
            start_date=date(2026, 1, 1), phases=PHASES, estimated_hours=60,
        )

        # 60 / 3 / 4 = 5
        assert schedule[-1].date == date(2026, 1, 16)

    def test_invalid_hours_per_day(self):
        with pytest.raises(ValueError):
            ScheduleGenerator(hours_per_day=0)


class TestBusinessSchedule:

    def test_weekends_skipped(self):
        # 2026-01-01 is a Thursday
        schedule = ScheduleGenerator(rule=DayCountRule.BUSINESS).generate(
            start_date=date(2026, 1, 1), phases=PHASES, estimated_hours=60,
        )

        assert [m.date for m in schedule] == [
            date(2026, 1, 1),
            date(2026, 1, 6),
            date(2026, 1, 9),
            date(2026, 1, 14),
        ]

    def test_add_days_from_friday(self):
        assert add_days(date(2026, 1, 2), 1, DayCountRule.BUSINESS) == date(2026, 1, 5)

    def test_add_zero_business_days(self):
        assert add_days(date(2026, 1, 3), 0, DayCountRule.BUSINESS) == date(2026, 1, 3)
