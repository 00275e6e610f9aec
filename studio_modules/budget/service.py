"""
Budget Lifecycle Service (``studio_modules.budget.service``).

Responsibility
--------------
Creates budgets from pricing results and moves them through
``BUDGET_WORKFLOW``: draft edits and scope selection, send, approve,
reject, follow-ups and the one-time link to the spawned project.

Architecture position
---------------------
**Modules layer**.  ``BudgetLifecycle`` is the sole producer of new
``Budget`` versions.  It holds no budgets itself: every method takes a
budget and returns a new one.

Invariants enforced
-------------------
* Actions are looked up in ``BUDGET_WORKFLOW``; an action with no
  transition from the current status raises, it is never ignored.
* Each successful transition appends exactly one ``HistoryEntry``; a
  rejected attempt raises and appends none.
* ``scope`` only ever holds non-terminal phase ids of the resolved
  template, in template order.
* A budget links to a project exactly once.

Failure modes
-------------
* ``InvalidBudgetTransitionError`` -- action not allowed from status.
* ``MissingClientFieldError`` / ``EmptyScopeError`` -- send guards.
* ``BudgetNotEditableError`` -- draft-only edit on a non-draft budget.
* ``InvalidScopeError`` -- scope names a phase the template lacks, on
  scope edits and again on send/approve when the template is passed.
* ``ProjectAlreadySpawnedError`` -- second link attempt.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from datetime import date, timedelta
from uuid import UUID, uuid4

from studio_kernel.domain.budget import (
    Budget,
    BudgetStatus,
    ClientData,
    HistoryEntry,
    PaymentTerms,
)
from studio_kernel.domain.clock import Clock, SystemClock
from studio_kernel.domain.templates import ServiceTemplate
from studio_kernel.exceptions import (
    BudgetNotEditableError,
    EmptyScopeError,
    InvalidBudgetTransitionError,
    InvalidScopeError,
    MissingClientFieldError,
    ProjectAlreadySpawnedError,
)
from studio_kernel.logging_config import LogContext, get_logger
from studio_engines.payment_split import terms_key
from studio_engines.pricing import PricingRequest, PricingResult
from studio_modules.budget.workflows import (
    BUDGET_WORKFLOW,
    CLIENT_COMPLETE,
    SCOPE_IN_TEMPLATE,
    SCOPE_NOT_EMPTY,
)

logger = get_logger("modules.budget.service")

EDITABLE_FIELDS = frozenset({
    "client",
    "notes",
    "payment_terms",
    "custom_payment_text",
    "validity_days",
    "service_name",
})


def budget_code(existing_count: int) -> str:
    """``PROP-NNN`` numbering, 1-based."""
    return f"PROP-{existing_count + 1:03d}"


class BudgetLifecycle:
    """
    Budget state machine executor.

    Contract
    --------
    * Pure with respect to its inputs: the budget passed in is never
      modified, failures leave the caller's copy as it was.
    * History timestamps come from the injected clock.
    """

    def __init__(self, clock: Clock | None = None, *, validity_days: int = 15):
        self._clock = clock or SystemClock()
        self._validity_days = validity_days

    # =========================================================================
    # Creation and draft edits
    # =========================================================================

    def create(
        self,
        *,
        request: PricingRequest,
        pricing: PricingResult,
        template: ServiceTemplate,
        code: str,
        client: ClientData | None = None,
        payment_terms: PaymentTerms | str = PaymentTerms.FIFTY_FIFTY,
        notes: str = "",
        budget_id: UUID | None = None,
    ) -> Budget:
        """Draft budget from a pricing result; scope defaults to every working phase."""
        now = self._clock.now()
        budget = Budget(
            id=budget_id or uuid4(),
            code=code,
            service_id=request.service_id,
            service_name=template.name,
            created_at=now,
            calc_mode=request.calc_mode,
            area=request.area,
            rooms=request.rooms,
            complexity=request.complexity,
            finish=request.finish,
            estimated_hours=pricing.estimated_hours,
            value=pricing.final_value,
            hour_cost=pricing.hourly_cost,
            profit=pricing.profit,
            client=client or ClientData(),
            scope=template.scopable_phase_ids,
            notes=notes,
            payment_terms=terms_key(payment_terms),
            validity_days=self._validity_days,
            history=(HistoryEntry(timestamp=now, action="created"),),
        )
        with LogContext.bind(budget_id=budget.id):
            logger.info("budget_created", extra={
                "budget_code": budget.code,
                "service_id": budget.service_id,
                "value": str(budget.value),
                "scope_size": len(budget.scope),
            })
        return budget

    def update_draft(self, budget: Budget, **changes) -> Budget:
        """Edit client/notes/terms fields of a draft."""
        self._require_draft(budget)
        unknown = sorted(set(changes) - EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Budget fields not editable: {', '.join(unknown)}")
        updated = replace(budget, **changes)
        logger.info("budget_draft_updated", extra={
            "budget_code": budget.code,
            "fields": sorted(changes),
        })
        return updated

    def set_scope(self, budget: Budget, scope: Iterable[str], template: ServiceTemplate) -> Budget:
        """Replace the scope; kept in template order."""
        self._require_draft(budget)
        wanted = set(scope)
        invalid = template.unscopable(wanted)
        if invalid:
            raise InvalidScopeError(budget.service_id, invalid)
        ordered = tuple(pid for pid in template.scopable_phase_ids if pid in wanted)
        logger.info("budget_scope_set", extra={
            "budget_code": budget.code,
            "scope": ordered,
        })
        return replace(budget, scope=ordered)

    def toggle_scope(self, budget: Budget, phase_id: str, template: ServiceTemplate) -> Budget:
        """Add ``phase_id`` to the scope, or drop it if present."""
        current = set(budget.scope)
        if phase_id in current:
            current.discard(phase_id)
        else:
            current.add(phase_id)
        return self.set_scope(budget, current, template)

    # =========================================================================
    # Transitions
    # =========================================================================

    def send(self, budget: Budget, template: ServiceTemplate | None = None) -> Budget:
        """Send to the client.

        With ``template`` given, the scope is re-checked against it so a
        phase removed after drafting cannot be sent.
        """
        return self._apply(budget, "send", "sent", template=template)

    def approve(self, budget: Budget, template: ServiceTemplate | None = None) -> Budget:
        """Approve; the caller then spawns the project and links it."""
        return self._apply(budget, "approve", "approved", template=template)

    def reject(self, budget: Budget, reason: str | None = None) -> Budget:
        return self._apply(budget, "reject", "rejected", note=reason, rejection_reason=reason)

    def log_followup(self, budget: Budget, note: str) -> Budget:
        return self._apply(budget, "followup", "followup", note=note)

    def link_project(self, budget: Budget, project_id: UUID, project_code: str) -> Budget:
        if budget.status != BudgetStatus.APPROVED:
            raise InvalidBudgetTransitionError(str(budget.id), budget.status.value, "link_project")
        if budget.project_id is not None:
            raise ProjectAlreadySpawnedError(str(budget.id), str(budget.project_id))
        logger.info("budget_project_linked", extra={
            "budget_code": budget.code,
            "project_code": project_code,
        })
        return replace(budget, project_id=project_id, project_code=project_code)

    # =========================================================================
    # Queries
    # =========================================================================

    @staticmethod
    def available_actions(budget: Budget) -> tuple[str, ...]:
        return BUDGET_WORKFLOW.actions_from(budget.status.value)

    @staticmethod
    def expires_on(budget: Budget) -> date:
        return budget.created_at.date() + timedelta(days=budget.validity_days)

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _require_draft(budget: Budget) -> None:
        if not budget.is_draft:
            raise BudgetNotEditableError(str(budget.id), budget.status.value)

    @staticmethod
    def _find(budget: Budget, action: str):
        transition = BUDGET_WORKFLOW.find_transition(budget.status.value, action)
        if transition is None:
            logger.warning("budget_transition_rejected", extra={
                "budget_code": budget.code,
                "status": budget.status.value,
                "action": action,
            })
            raise InvalidBudgetTransitionError(str(budget.id), budget.status.value, action)
        return transition

    @staticmethod
    def _check_guard(budget: Budget, guard: str, template: ServiceTemplate | None) -> None:
        if guard == CLIENT_COMPLETE.name:
            missing = budget.client.missing_required()
            if missing:
                raise MissingClientFieldError(str(budget.id), missing)
        elif guard == SCOPE_NOT_EMPTY.name:
            if not budget.scope:
                raise EmptyScopeError(str(budget.id))
        elif guard == SCOPE_IN_TEMPLATE.name and template is not None:
            stale = template.unscopable(budget.scope)
            if stale:
                raise InvalidScopeError(budget.service_id, stale)

    def _apply(
        self, budget: Budget, action: str, history_action: str,
        *, note: str | None = None, template: ServiceTemplate | None = None, **changes,
    ) -> Budget:
        transition = self._find(budget, action)
        for guard in transition.guards:
            self._check_guard(budget, guard.name, template)
        entry = HistoryEntry(timestamp=self._clock.now(), action=history_action, note=note)
        updated = budget.with_history(entry, status=BudgetStatus(transition.to_state), **changes)
        with LogContext.bind(budget_id=budget.id):
            logger.info("budget_transitioned", extra={
                "budget_code": budget.code,
                "action": action,
                "from_status": budget.status.value,
                "to_status": updated.status.value,
            })
        return updated
