"""
Tests for the Project Service.

Validates:
- spawn: copies budget data, builds the schedule, sets the initial stage
- advance/retreat/finalize: stage moves and delivered status
- log_time: hours bookkeeping and validation
- add_comment
- finance_entries_for: one entry per installment
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from studio_kernel.domain.project import (
    InstallmentStatus,
    MilestoneType,
    Priority,
    ProjectStatus,
)
from studio_kernel.exceptions import (
    EmptyScopeError,
    InvalidBudgetTransitionError,
    InvalidScopeError,
    InvalidStageTransitionError,
    ProjectAlreadySpawnedError,
    TimeEntryValidationError,
)
from studio_engines.payment_split import PaymentSplitGenerator
from studio_engines.pricing import PricingModel, PricingRequest
from studio_modules.budget.service import BudgetLifecycle
from studio_modules.project.service import (
    ProjectService,
    finance_entries_for,
    project_code,
)


@pytest.fixture
def lifecycle(deterministic_clock):
    return BudgetLifecycle(deterministic_clock)


@pytest.fixture
def service(deterministic_clock):
    return ProjectService(deterministic_clock)


def _draft(lifecycle, template, client, code):
    request = PricingRequest(service_id="custom", area=Decimal("50"))
    pricing = PricingModel().calculate(
        request=request,
        template=template,
        hourly_cost=Decimal("100"),
        margin=Decimal("50"),
    )
    return lifecycle.create(
        request=request, pricing=pricing, template=template, code=code, client=client,
    )


@pytest.fixture
def approved(lifecycle, small_template, client):
    draft = _draft(lifecycle, small_template, client, "PROP-001")
    return lifecycle.approve(lifecycle.send(draft))


@pytest.fixture
def project(service, approved, small_template):
    return service.spawn(
        budget=approved,
        template=small_template,
        code=project_code("CUS", 0),
        architect="Ana",
        team=["Bruno"],
        priority=Priority.ALTA,
    )


class TestSpawn:

    def test_copies_budget(self, project, approved):
        assert project.code == "CUS001"
        assert project.budget_id == approved.id
        assert project.client_name == "Maria Silva"
        assert project.client_email == "maria@example.com"
        assert project.value == Decimal("8000.00")
        assert project.estimated_hours == 40
        assert project.scope == ("briefing", "estudo", "executivo")
        assert project.architect == "Ana"
        assert project.team == ("Bruno",)
        assert project.priority == Priority.ALTA

    def test_initial_stage_and_status(self, project):
        assert project.stage == "briefing"
        assert project.status == ProjectStatus.ACTIVE
        assert project.hours_used == Decimal("0")

    def test_schedule_and_deadline(self, project):
        # 40h / 3 phases / 8h = 1.67 -> 2 days per phase
        assert project.start_date == date(2026, 1, 1)
        assert [m.date for m in project.schedule] == [
            date(2026, 1, 1), date(2026, 1, 3), date(2026, 1, 5), date(2026, 1, 7),
        ]
        assert project.schedule[-1].type == MilestoneType.END
        assert project.deadline == date(2026, 1, 7)

    def test_scope_limits_stages(self, service, lifecycle, small_template, client):
        draft = _draft(lifecycle, small_template, client, "PROP-002")
        draft = lifecycle.set_scope(draft, ["estudo", "executivo"], small_template)
        budget = lifecycle.approve(lifecycle.send(draft))

        project = service.spawn(budget=budget, template=small_template, code="CUS002")

        assert project.stage == "estudo"
        assert len(project.schedule) == 3

    def test_notes_default_to_client_notes(self, service, approved, small_template):
        project = service.spawn(budget=approved, template=small_template, code="X", notes=None)
        assert project.notes == approved.client.notes

    def test_requires_approval(self, service, lifecycle, small_template, client):
        rejected = lifecycle.reject(lifecycle.send(_draft(lifecycle, small_template, client, "PROP-003")))

        with pytest.raises(InvalidBudgetTransitionError):
            service.spawn(budget=rejected, template=small_template, code="X")

    def test_linked_budget_cannot_spawn_again(self, service, lifecycle, approved, project, small_template):
        linked = lifecycle.link_project(approved, project.id, project.code)

        with pytest.raises(ProjectAlreadySpawnedError):
            service.spawn(budget=linked, template=small_template, code="CUS002")

    def test_scope_removed_from_template(self, service, lifecycle, small_template, client):
        draft = _draft(lifecycle, small_template, client, "PROP-004")
        draft = lifecycle.set_scope(draft, ["estudo"], small_template)
        budget = lifecycle.approve(lifecycle.send(draft))
        edited = replace(
            small_template,
            phases=tuple(p for p in small_template.phases if p.id != "estudo"),
        )

        with pytest.raises(InvalidScopeError) as exc_info:
            service.spawn(budget=budget, template=edited, code="CUS003")
        assert exc_info.value.phase_ids == ("estudo",)

    def test_template_without_working_phases(self, service, approved, small_template):
        terminal_only = replace(small_template, phases=small_template.phases[-1:])

        with pytest.raises(EmptyScopeError):
            service.spawn(budget=replace(approved, scope=()), template=terminal_only, code="CUS003")

    def test_project_code(self):
        assert project_code("ARQ", 0) == "ARQ001"
        assert project_code("INT", 11) == "INT012"


class TestStages:

    def test_advance(self, service, project, small_template):
        moved = service.advance(project, small_template)

        assert moved.stage == "estudo"
        assert project.stage == "briefing"

    def test_advance_at_last_working_stage_is_noop(self, service, project, small_template):
        p = service.advance(service.advance(project, small_template), small_template)
        assert p.stage == "executivo"
        assert service.advance(p, small_template) is p

    def test_finalize_delivers(self, service, project, small_template):
        p = service.advance(service.advance(project, small_template), small_template)
        delivered = service.finalize(p, small_template)

        assert delivered.stage == "finalizado"
        assert delivered.status == ProjectStatus.DELIVERED

    def test_retreat_from_terminal_reactivates(self, service, project, small_template):
        p = service.advance(service.advance(project, small_template), small_template)
        p = service.advance(p, small_template, finalize=True)
        back = service.retreat(p, small_template)

        assert back.stage == "executivo"
        assert back.status == ProjectStatus.ACTIVE

    def test_finalize_too_early(self, service, project, small_template):
        with pytest.raises(InvalidStageTransitionError):
            service.finalize(project, small_template)

    def test_stage_change_logged(self, service, project, small_template, captured_logs):
        service.advance(project, small_template)

        event = next(r for r in captured_logs() if r["message"] == "project_stage_changed")
        assert event["from_stage"] == "briefing"
        assert event["to_stage"] == "estudo"
        assert event["project_id"] == str(project.id)


class TestTimeEntries:

    def test_log_time(self, service, project):
        p = service.log_time(project, Decimal("3.5"), "Reunião com cliente", author="Ana")
        p = service.log_time(p, 6, "Levantamento", phase="estudo")

        assert p.hours_used == Decimal("9.5")
        assert [e.phase for e in p.entries] == ["briefing", "estudo"]
        assert p.entries[0].date == date(2026, 1, 1)
        assert ProjectService.progress(p) == Decimal("23.7500")

    @pytest.mark.parametrize("hours", [0, -1, "25", "abc", "NaN", "Infinity"])
    def test_invalid_hours(self, service, project, hours):
        with pytest.raises(TimeEntryValidationError):
            service.log_time(project, hours, "x")

    def test_full_day_allowed(self, service, project):
        assert service.log_time(project, 24, "Plantão").hours_used == Decimal("24")


class TestComments:

    def test_add_comment(self, service, project, deterministic_clock):
        p = service.add_comment(project, "Cliente aprovou layout", author="Ana")

        assert p.comments[0].text == "Cliente aprovou layout"
        assert p.comments[0].date == deterministic_clock.now()

    def test_blank_comment(self, service, project):
        with pytest.raises(ValueError):
            service.add_comment(project, "   ")


class TestFinanceEntries:

    def test_one_entry_per_installment(self, project):
        installments = PaymentSplitGenerator().generate(
            total_value=project.value, terms="50_50", start_date=project.start_date,
        )
        ids = [uuid4(), uuid4()]
        entries = finance_entries_for(project, installments, issue_date=project.start_date, ids=ids)

        assert [e.id for e in entries] == ids
        assert [e.value for e in entries] == [Decimal("4000.00"), Decimal("4000.00")]
        assert entries[0].status == InstallmentStatus.PAID
        assert entries[1].due_date == date(2026, 1, 31)
        assert entries[1].description == "CUS001 - Parcela 2/2 (50%)"
        assert entries[1].client == "Maria Silva"
        assert entries[1].installment == "2/2"
