"""
Tests for the Budget Lifecycle service.

Covers:
- Creation from a pricing result
- Draft edits and scope selection
- send/approve/reject/followup transitions and their guards
- History bookkeeping
- Project linking
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from studio_kernel.domain.budget import BudgetStatus, ClientData, PaymentTerms
from studio_kernel.exceptions import (
    BudgetNotEditableError,
    EmptyScopeError,
    InvalidBudgetTransitionError,
    InvalidScopeError,
    MissingClientFieldError,
    ProjectAlreadySpawnedError,
    TransitionError,
    ValidationError,
)
from studio_engines.pricing import PricingModel, PricingRequest
from studio_modules.budget.service import BudgetLifecycle, budget_code
from studio_modules.budget.workflows import BUDGET_WORKFLOW


@pytest.fixture
def lifecycle(deterministic_clock):
    return BudgetLifecycle(deterministic_clock)


@pytest.fixture
def draft(lifecycle, small_template, client):
    request = PricingRequest(service_id="custom", area=Decimal("50"))
    pricing = PricingModel().calculate(
        request=request,
        template=small_template,
        hourly_cost=Decimal("100"),
        margin=Decimal("50"),
    )
    return lifecycle.create(
        request=request,
        pricing=pricing,
        template=small_template,
        code=budget_code(0),
        client=client,
    )


@pytest.fixture
def sent(lifecycle, draft):
    return lifecycle.send(draft)


def _without_phase(template, phase_id):
    return replace(template, phases=tuple(p for p in template.phases if p.id != phase_id))


class TestCreate:

    def test_fields_from_pricing(self, draft):
        assert draft.code == "PROP-001"
        assert draft.status == BudgetStatus.DRAFT
        assert draft.service_name == "Projeto Teste"
        assert draft.estimated_hours == 40
        assert draft.value == Decimal("8000.00")
        assert draft.hour_cost == Decimal("100")
        assert draft.profit == Decimal("4000.00")
        assert draft.payment_terms == "50_50"
        assert draft.validity_days == 15

    def test_scope_defaults_to_working_phases(self, draft):
        assert draft.scope == ("briefing", "estudo", "executivo")

    def test_created_history_entry(self, draft, deterministic_clock):
        assert len(draft.history) == 1
        assert draft.history[0].action == "created"
        assert draft.history[0].timestamp == deterministic_clock.now()

    def test_budget_code_numbering(self):
        assert budget_code(0) == "PROP-001"
        assert budget_code(41) == "PROP-042"

    def test_expires_on(self, draft):
        assert BudgetLifecycle.expires_on(draft) == date(2026, 1, 16)


class TestDraftEdits:

    def test_update_client(self, lifecycle, draft):
        updated = lifecycle.update_draft(draft, client=ClientData(name="João", email="j@x.com"))

        assert updated.client.name == "João"
        assert draft.client.name == "Maria Silva"
        assert len(updated.history) == len(draft.history)

    def test_update_unknown_field(self, lifecycle, draft):
        with pytest.raises(ValueError):
            lifecycle.update_draft(draft, value=Decimal("1"))

    def test_update_after_send(self, lifecycle, sent):
        with pytest.raises(BudgetNotEditableError):
            lifecycle.update_draft(sent, notes="late")

    def test_set_scope_keeps_template_order(self, lifecycle, draft, small_template):
        updated = lifecycle.set_scope(draft, ["executivo", "briefing"], small_template)
        assert updated.scope == ("briefing", "executivo")

    def test_set_scope_unknown_phase(self, lifecycle, draft, small_template):
        with pytest.raises(InvalidScopeError) as exc_info:
            lifecycle.set_scope(draft, ["briefing", "paisagismo"], small_template)
        assert exc_info.value.phase_ids == ("paisagismo",)

    def test_terminal_phase_not_scopable(self, lifecycle, draft, small_template):
        with pytest.raises(InvalidScopeError):
            lifecycle.set_scope(draft, ["finalizado"], small_template)

    def test_toggle_scope(self, lifecycle, draft, small_template):
        without = lifecycle.toggle_scope(draft, "estudo", small_template)
        again = lifecycle.toggle_scope(without, "estudo", small_template)

        assert without.scope == ("briefing", "executivo")
        assert again.scope == ("briefing", "estudo", "executivo")


class TestSend:

    def test_send(self, sent, deterministic_clock):
        assert sent.status == BudgetStatus.SENT
        assert sent.history[-1].action == "sent"
        assert sent.history[-1].timestamp == deterministic_clock.now()

    def test_missing_client_fields(self, lifecycle, draft):
        blank = lifecycle.update_draft(draft, client=ClientData(name="  "))

        with pytest.raises(MissingClientFieldError) as exc_info:
            lifecycle.send(blank)
        assert exc_info.value.fields == ("name", "email")

    def test_empty_scope(self, lifecycle, draft, small_template):
        empty = lifecycle.set_scope(draft, [], small_template)

        with pytest.raises(EmptyScopeError):
            lifecycle.send(empty)

    def test_guard_errors_are_validation_errors(self, lifecycle, draft):
        blank = lifecycle.update_draft(draft, client=ClientData())
        with pytest.raises(ValidationError):
            lifecycle.send(blank)

    def test_send_twice(self, lifecycle, sent):
        with pytest.raises(InvalidBudgetTransitionError):
            lifecycle.send(sent)

    def test_send_rechecks_scope_against_template(self, lifecycle, draft, small_template):
        draft = lifecycle.set_scope(draft, ["estudo"], small_template)
        edited = _without_phase(small_template, "estudo")

        with pytest.raises(InvalidScopeError) as exc_info:
            lifecycle.send(draft, edited)
        assert exc_info.value.phase_ids == ("estudo",)
        assert len(draft.history) == 1

    def test_send_with_current_template(self, lifecycle, draft, small_template):
        assert lifecycle.send(draft, small_template).status == BudgetStatus.SENT


class TestDecisions:

    def test_approve(self, lifecycle, sent):
        approved = lifecycle.approve(sent)

        assert approved.status == BudgetStatus.APPROVED
        assert approved.history[-1].action == "approved"
        assert approved.awaiting_project

    def test_approve_rechecks_scope_against_template(self, lifecycle, sent, small_template):
        edited = _without_phase(small_template, "executivo")

        with pytest.raises(InvalidScopeError):
            lifecycle.approve(sent, edited)
        assert sent.status == BudgetStatus.SENT

    def test_approve_draft_rejected(self, lifecycle, draft):
        with pytest.raises(InvalidBudgetTransitionError) as exc_info:
            lifecycle.approve(draft)
        assert exc_info.value.action == "approve"
        assert exc_info.value.status == "draft"

    def test_reject_with_reason(self, lifecycle, sent):
        rejected = lifecycle.reject(sent, "price too high")

        assert rejected.status == BudgetStatus.REJECTED
        assert rejected.rejection_reason == "price too high"
        assert rejected.history[-1].action == "rejected"
        assert rejected.history[-1].note == "price too high"

    def test_rejected_is_terminal(self, lifecycle, sent):
        rejected = lifecycle.reject(sent)

        assert BudgetLifecycle.available_actions(rejected) == ()
        with pytest.raises(TransitionError):
            lifecycle.approve(rejected)

    def test_followup_keeps_status(self, lifecycle, sent):
        followed = lifecycle.log_followup(sent, "Cliente pediu mais prazo")

        assert followed.status == BudgetStatus.SENT
        assert followed.history[-1].action == "followup"
        assert followed.history[-1].note == "Cliente pediu mais prazo"
        assert len(followed.history) == len(sent.history) + 1

    def test_failed_transition_appends_nothing(self, lifecycle, draft):
        with pytest.raises(InvalidBudgetTransitionError):
            lifecycle.log_followup(draft, "x")
        assert len(draft.history) == 1

    def test_available_actions(self, draft, sent):
        assert BudgetLifecycle.available_actions(draft) == ("send",)
        assert set(BudgetLifecycle.available_actions(sent)) == {"approve", "reject", "followup"}


class TestLinkProject:

    def test_link_once(self, lifecycle, sent):
        approved = lifecycle.approve(sent)
        project_id = uuid4()
        linked = lifecycle.link_project(approved, project_id, "ARQ001")

        assert linked.project_id == project_id
        assert linked.project_code == "ARQ001"
        assert not linked.awaiting_project
        assert len(linked.history) == len(approved.history)

        with pytest.raises(ProjectAlreadySpawnedError):
            lifecycle.link_project(linked, uuid4(), "ARQ002")

    def test_link_requires_approval(self, lifecycle, sent):
        with pytest.raises(InvalidBudgetTransitionError):
            lifecycle.link_project(sent, uuid4(), "ARQ001")


class TestWorkflow:

    def test_terminal_states(self):
        assert set(BUDGET_WORKFLOW.terminal_states) == {"approved", "rejected"}

    def test_update_payment_terms(self, lifecycle, draft):
        updated = lifecycle.update_draft(draft, payment_terms=PaymentTerms.A_VISTA.value)
        assert updated.payment_terms == "a_vista"
