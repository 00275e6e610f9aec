"""
End-to-end tests for StudioPipeline: quote -> budget -> approval -> project.

Covers:
- Quoting against the office in the state
- Budget commit and lifecycle through the pipeline
- Approval spawning the project, its schedule and its installments
- All-or-nothing approval
- Project stage moves, time and installment status through the state
- Template edits flowing into quotes
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from studio_config import get_active_config
from studio_kernel.domain.budget import BudgetStatus, CalcMode, ClientData, RoomSpec
from studio_kernel.domain.office import OfficeProfile
from studio_kernel.domain.project import InstallmentStatus, ProjectStatus
from studio_kernel.exceptions import (
    BudgetNotFoundError,
    InvalidBudgetTransitionError,
    InvalidScopeError,
    ProjectNotFoundError,
    ValidationError,
)
from studio_engines.packages import PackageFees, PackageRequest, PaymentType
from studio_engines.pricing import PricingRequest
from studio_services.pipeline import StudioPipeline


@pytest.fixture
def committed(pipeline, state, area_request, client):
    return pipeline.commit_budget(state, area_request, client=client)


@pytest.fixture
def sent(pipeline, committed):
    return pipeline.send_budget(committed, committed.budgets[-1].id)


@pytest.fixture
def approved(pipeline, sent):
    return pipeline.approve_budget(sent, sent.budgets[-1].id, architect="Ana")


class TestQuote:

    def test_quote_uses_office(self, pipeline, state, area_request):
        result = pipeline.quote(state, area_request)

        assert result.hourly_cost == Decimal("100")
        assert result.estimated_hours == 267
        assert result.cost_value == Decimal("26700.00")
        assert result.final_value == Decimal("53400.00")

    def test_quote_not_computable(self, pipeline, state):
        assert pipeline.quote(state, PricingRequest(service_id="arquitetonico")) is None

    def test_package_quote_bounded_by_office_cost(self, pipeline, state):
        quote = pipeline.quote_package(state, PackageRequest(
            service_id="projetexpress", package="reforma", area=Decimal("60"),
        ))

        # 60 m2 x 160 = 9600 over 96h; the office pays 100/h
        assert quote.price_with_discount == Decimal("9600.00")
        assert quote.estimated_hours == Decimal("96.00")
        assert quote.max_hours == Decimal("96.00")
        assert not quote.over_budget

    def test_package_fees_from_config(self, deterministic_clock, state):
        config = replace(get_active_config(), package_fees=PackageFees(cash_discount_percent=Decimal("5")))
        pipeline = StudioPipeline(config, clock=deterministic_clock)
        quote = pipeline.quote_package(state, PackageRequest(
            service_id="decorexpress", package="decor1", payment_type=PaymentType.CASH,
        ))

        assert quote.discount == Decimal("80.00")

    def test_commit_not_computable(self, pipeline, state):
        with pytest.raises(ValidationError):
            pipeline.commit_budget(state, PricingRequest(service_id="arquitetonico"))

    def test_room_quote(self, pipeline, state):
        result = pipeline.quote(state, PricingRequest(
            service_id="interiores",
            calc_mode=CalcMode.ROOM,
            rooms=(RoomSpec("Sala", "G"),),
            finish="luxo",
        ))

        assert result.base_value == Decimal("6000.00")


class TestBudgets:

    def test_commit(self, committed, state):
        budget = committed.budgets[-1]

        assert len(state.budgets) == 0
        assert budget.code == "PROP-001"
        assert budget.status == BudgetStatus.DRAFT
        assert budget.value == Decimal("53400.00")
        assert budget.payment_terms == "50_50"

    def test_codes_increment(self, pipeline, committed, area_request):
        state = pipeline.commit_budget(committed, area_request)
        assert [b.code for b in state.budgets] == ["PROP-001", "PROP-002"]

    def test_update_and_scope(self, pipeline, committed):
        budget_id = committed.budgets[-1].id
        state = pipeline.update_budget(committed, budget_id, notes="Casa de campo")
        state = pipeline.set_budget_scope(state, budget_id, ["estudo", "briefing"])
        state = pipeline.toggle_budget_scope(state, budget_id, "obra")

        budget = state.get_budget(budget_id)
        assert budget.notes == "Casa de campo"
        assert budget.scope == ("briefing", "estudo", "obra")

    def test_send_and_followup(self, pipeline, sent):
        budget_id = sent.budgets[-1].id
        state = pipeline.log_followup(sent, budget_id, "Ligação agendada")

        assert [h.action for h in state.get_budget(budget_id).history] == [
            "created", "sent", "followup",
        ]

    def test_reject(self, pipeline, sent):
        budget_id = sent.budgets[-1].id
        state = pipeline.reject_budget(sent, budget_id, "price too high")

        assert state.get_budget(budget_id).status == BudgetStatus.REJECTED
        assert state.projects == ()

    def test_unknown_budget(self, pipeline, state):
        with pytest.raises(BudgetNotFoundError):
            pipeline.send_budget(state, uuid4())


class TestApproval:

    def test_spawns_project(self, approved):
        budget = approved.budgets[-1]
        project = approved.projects[-1]

        assert budget.status == BudgetStatus.APPROVED
        assert budget.project_id == project.id
        assert budget.project_code == "ARQ001"
        assert project.code == "ARQ001"
        assert project.stage == "briefing"
        assert project.architect == "Ana"
        assert project.start_date == date(2026, 1, 1)

    def test_schedule(self, approved):
        project = approved.projects[-1]

        # 267h / 5 phases / 8h = 6.7 -> 7 days
        assert len(project.schedule) == 6
        assert project.deadline == date(2026, 2, 5)

    def test_installments(self, approved):
        project = approved.projects[-1]
        entries = approved.finances_for(project.id)

        assert [e.value for e in entries] == [Decimal("26700.00"), Decimal("26700.00")]
        assert [e.status for e in entries] == [InstallmentStatus.PAID, InstallmentStatus.PENDING]
        assert sum(e.value for e in entries) == project.value

    def test_explicit_start_date(self, pipeline, sent):
        state = pipeline.approve_budget(sent, sent.budgets[-1].id, start_date=date(2026, 3, 2))
        entries = state.finances
        assert [e.due_date for e in entries] == [date(2026, 3, 2), date(2026, 4, 1)]

    def test_approve_draft_leaves_state_untouched(self, pipeline, committed):
        with pytest.raises(InvalidBudgetTransitionError):
            pipeline.approve_budget(committed, committed.budgets[-1].id)

        assert committed.projects == ()
        assert committed.finances == ()
        assert committed.budgets[-1].status == BudgetStatus.DRAFT

    def test_send_after_scoped_phase_removed(self, pipeline, committed):
        budget_id = committed.budgets[-1].id
        state = pipeline.set_budget_scope(committed, budget_id, ["estudo"])
        state = pipeline.edit_templates(
            state, lambda registry: registry.remove_phase("arquitetonico", "estudo"),
        )

        with pytest.raises(InvalidScopeError):
            pipeline.send_budget(state, budget_id)
        assert state.get_budget(budget_id).status == BudgetStatus.DRAFT

    def test_approve_after_scoped_phase_removed(self, pipeline, committed):
        budget_id = committed.budgets[-1].id
        state = pipeline.set_budget_scope(committed, budget_id, ["estudo"])
        state = pipeline.send_budget(state, budget_id)
        state = pipeline.edit_templates(
            state, lambda registry: registry.remove_phase("arquitetonico", "estudo"),
        )

        with pytest.raises(InvalidScopeError):
            pipeline.approve_budget(state, budget_id)
        assert state.projects == ()
        assert state.finances == ()
        assert state.get_budget(budget_id).status == BudgetStatus.SENT

    def test_second_approval_rejected(self, pipeline, approved):
        with pytest.raises(InvalidBudgetTransitionError):
            pipeline.approve_budget(approved, approved.budgets[-1].id)
        assert len(approved.projects) == 1

    def test_project_codes_count_all_projects(self, pipeline, approved, client):
        state = pipeline.commit_budget(
            approved,
            PricingRequest(service_id="interiores", area=Decimal("80")),
            client=client,
            payment_terms="30_30_40",
        )
        budget_id = state.budgets[-1].id
        state = pipeline.send_budget(state, budget_id)
        state = pipeline.approve_budget(state, budget_id)

        assert [p.code for p in state.projects] == ["ARQ001", "INT002"]
        assert len(state.finances_for(state.projects[-1].id)) == 3

    def test_logs_approval(self, pipeline, sent, captured_logs):
        pipeline.approve_budget(sent, sent.budgets[-1].id)

        event = next(r for r in captured_logs() if r["message"] == "budget_approved_project_spawned")
        assert event["project_code"] == "ARQ001"
        assert event["installment_count"] == 2
        assert event["budget_id"] == str(sent.budgets[-1].id)


class TestProjects:

    def test_stage_moves(self, pipeline, approved):
        project_id = approved.projects[-1].id
        state = approved
        for _ in range(6):
            state = pipeline.advance_project(state, project_id)
        assert state.get_project(project_id).stage == "obra"

        state = pipeline.finalize_project(state, project_id)
        assert state.get_project(project_id).status == ProjectStatus.DELIVERED

        state = pipeline.retreat_project(state, project_id)
        assert state.get_project(project_id).stage == "obra"

    def test_advance_with_finalize(self, pipeline, approved):
        project_id = approved.projects[-1].id
        state = approved
        for _ in range(4):
            state = pipeline.advance_project(state, project_id)
        state = pipeline.advance_project(state, project_id, finalize=True)
        assert state.get_project(project_id).stage == "finalizado"

    def test_time_and_comments(self, pipeline, approved):
        project_id = approved.projects[-1].id
        state = pipeline.log_time(approved, project_id, "8", "Programa de necessidades")
        state = pipeline.add_comment(state, project_id, "Enviado ao cliente", author="Ana")

        project = state.get_project(project_id)
        assert project.hours_used == Decimal("8")
        assert project.comments[0].author == "Ana"

    def test_unknown_project(self, pipeline, state):
        with pytest.raises(ProjectNotFoundError):
            pipeline.log_time(state, uuid4(), 1, "x")

    def test_installment_status(self, pipeline, approved):
        entry = approved.finances[1]
        state = pipeline.mark_installment_paid(approved, entry.id)
        assert state.get_finance_entry(entry.id).is_paid

        state = pipeline.mark_installment_pending(state, entry.id)
        assert not state.get_finance_entry(entry.id).is_paid


class TestTemplatesAndOffice:

    def test_template_edit_changes_quote(self, pipeline, state, area_request):
        edited = pipeline.edit_templates(
            state, lambda registry: registry.add_step("arquitetonico", "briefing"),
        )

        assert pipeline.quote(edited, area_request).estimated_hours == 271
        assert pipeline.quote(state, area_request).estimated_hours == 267

    def test_new_phase_enters_default_scope(self, pipeline, state, area_request, client):
        edited = pipeline.edit_templates(
            state, lambda registry: registry.add_phase("arquitetonico", "Paisagismo"),
        )
        edited = pipeline.commit_budget(edited, area_request, client=client)

        assert edited.budgets[-1].scope[-1] == "phase_1"

    def test_update_office(self, pipeline, state, area_request):
        cheaper = pipeline.update_office(
            state, OfficeProfile(team=state.office.team, margin=Decimal("30")),
        )

        # 12000 / 160 = 75
        assert pipeline.quote(cheaper, area_request).hourly_cost == Decimal("75")


class TestConfiguredPipeline:

    def test_from_packaged_config(self, deterministic_clock):
        pipeline = StudioPipeline(get_active_config(), clock=deterministic_clock)
        state = pipeline.initial_state()

        assert state.office.hourly_cost == Decimal("62.5")
        assert pipeline.config.config_id == "studio-defaults"
        assert state.overrides == {}

    def test_default_payment_terms_from_config(self, deterministic_clock, state, area_request):
        pipeline = StudioPipeline(get_active_config(), clock=deterministic_clock)
        committed = pipeline.commit_budget(
            state, area_request, client=ClientData(name="A", email="a@b.c"),
        )
        assert committed.budgets[-1].payment_terms == "50_50"
