"""
studio_services.pipeline -- quote-to-delivery orchestration over StudioState.

Responsibility:
    Wires the engines and module services together from one
    ``StudioConfiguration`` and runs every user-level operation against an
    explicit ``StudioState``: quoting (template-based and package),
    budget commit and lifecycle, approval (which spawns the project, its
    schedule and its installments and links the budget), stage moves, time
    logging, installment status and template edits.

Architecture position:
    Services -- orchestration on top of ``studio_modules`` and
    ``studio_engines``.  This is the only place where those services are
    constructed and composed.

Invariants enforced:
    - Every operation takes a state and returns a new one; the input
      state is never modified.
    - Approval is all-or-nothing: if spawning the project or generating
      the installments fails, the returned state is not produced and the
      caller's state still holds the budget as ``sent``.
    - A budget spawns at most one project.

Failure modes:
    - ``RecordNotFoundError`` subclasses for unknown ids.
    - Validation, transition and template errors from the module services
      propagate unchanged.

Usage:
    pipeline = StudioPipeline(get_active_config(), clock=SystemClock())
    state = StudioState(office=office)
    state = pipeline.commit_budget(state, request, client=client)
    budget = state.budgets[-1]
    state = pipeline.send_budget(state, budget.id)
    state = pipeline.approve_budget(state, budget.id, architect="Ana")
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import replace
from datetime import date
from decimal import Decimal
from uuid import UUID

from studio_config.schema import StudioConfiguration
from studio_kernel.domain.budget import ClientData, PaymentTerms
from studio_kernel.domain.clock import Clock, SystemClock
from studio_kernel.domain.office import OfficeProfile
from studio_kernel.domain.project import Priority
from studio_kernel.domain.state import StudioState
from studio_kernel.domain.templates import ServiceTemplate
from studio_kernel.exceptions import ValidationError
from studio_kernel.logging_config import LogContext, get_logger
from studio_engines.packages import PackageQuote, PackageRequest
from studio_engines.payment_split import PaymentSplitGenerator
from studio_engines.pricing import PricingModel, PricingRequest, PricingResult
from studio_engines.pricing_strategies import PricingStrategyRegistry
from studio_engines.schedule import ScheduleGenerator
from studio_modules.budget.service import BudgetLifecycle, budget_code
from studio_modules.project.service import ProjectService, finance_entries_for, project_code
from studio_modules.templates.registry import PhaseTemplateRegistry
from studio_services.briefing import TextGenerator, generate_briefing

logger = get_logger("services.pipeline")


class StudioPipeline:
    """Composition root for one configuration.

    Contract:
        Holds only collaborators (engines, module services, clock); all
        data lives in the ``StudioState`` passed to each call.
    """

    def __init__(
        self,
        config: StudioConfiguration | None = None,
        *,
        clock: Clock | None = None,
        strategies: PricingStrategyRegistry | None = None,
        phase_id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._config = config or StudioConfiguration(config_id="builtin", version=1, checksum="")
        engine = self._config.engine
        self._clock = clock or SystemClock()
        self._phase_id_factory = phase_id_factory

        self.strategies = strategies or PricingStrategyRegistry.with_builtins()
        self.pricing = PricingModel(
            self._config.multipliers,
            self.strategies,
            apply_environment_multipliers=engine.apply_environment_multipliers,
            fees=self._config.package_fees,
        )
        self.schedule = ScheduleGenerator(engine.hours_per_day, engine.day_count_rule)
        self.payment_split = PaymentSplitGenerator(engine.installment_interval_days)
        self.budgets = BudgetLifecycle(self._clock, validity_days=engine.budget_validity_days)
        self.projects = ProjectService(self._clock, self.schedule)

    @property
    def config(self) -> StudioConfiguration:
        return self._config

    def initial_state(self) -> StudioState:
        """Empty state seeded with the configured office and templates."""
        state = StudioState()
        if self._config.office is not None:
            state = replace(state, office=self._config.office)
        return state.with_overrides(self._config.template_overrides)

    # =========================================================================
    # Templates and office
    # =========================================================================

    def template_registry(self, state: StudioState) -> PhaseTemplateRegistry:
        if self._phase_id_factory is None:
            return PhaseTemplateRegistry(state.overrides)
        return PhaseTemplateRegistry(state.overrides, id_factory=self._phase_id_factory)

    def resolve_template(self, state: StudioState, service_id: str) -> ServiceTemplate:
        return self.template_registry(state).resolve(service_id)

    def edit_templates(
        self,
        state: StudioState,
        edit: Callable[[PhaseTemplateRegistry], object],
    ) -> StudioState:
        """Run ``edit`` against a registry and keep the resulting overrides."""
        registry = self.template_registry(state)
        edit(registry)
        return state.with_overrides(registry.overrides)

    def update_office(self, state: StudioState, office: OfficeProfile) -> StudioState:
        totals = office.totals()
        logger.info("office_updated", extra={
            "team_size": len(office.team),
            "monthly_cost": str(totals.monthly),
            "hourly_cost": str(totals.hourly),
        })
        return replace(state, office=office)

    # =========================================================================
    # Quote and budget lifecycle
    # =========================================================================

    def quote(self, state: StudioState, request: PricingRequest) -> PricingResult | None:
        """Price ``request`` with the office's hourly cost and margin."""
        return self.pricing.calculate(
            request=request,
            template=self.resolve_template(state, request.service_id),
            hourly_cost=state.office.hourly_cost,
            margin=state.office.margin,
        )

    def quote_package(self, state: StudioState, request: PackageRequest) -> PackageQuote:
        """Price a package service; the office's hourly cost bounds its hours."""
        return self.pricing.quote_package(request=request, hourly_cost=state.office.hourly_cost)

    def commit_budget(
        self,
        state: StudioState,
        request: PricingRequest,
        *,
        client: ClientData | None = None,
        payment_terms: PaymentTerms | str | None = None,
        notes: str = "",
        budget_id: UUID | None = None,
    ) -> StudioState:
        """Turn a computable quote into a new draft budget."""
        pricing = self.quote(state, request)
        if pricing is None:
            raise ValidationError(
                f"Quote for service {request.service_id!r} is not computable yet"
            )
        budget = self.budgets.create(
            request=request,
            pricing=pricing,
            template=self.resolve_template(state, request.service_id),
            code=budget_code(len(state.budgets)),
            client=client,
            payment_terms=payment_terms or self._config.engine.default_payment_terms,
            notes=notes,
            budget_id=budget_id,
        )
        return state.put_budget(budget)

    def update_budget(self, state: StudioState, budget_id: UUID, **changes) -> StudioState:
        budget = self.budgets.update_draft(state.get_budget(budget_id), **changes)
        return state.put_budget(budget)

    def set_budget_scope(
        self, state: StudioState, budget_id: UUID, scope: Iterable[str],
    ) -> StudioState:
        budget = state.get_budget(budget_id)
        template = self.resolve_template(state, budget.service_id)
        return state.put_budget(self.budgets.set_scope(budget, scope, template))

    def toggle_budget_scope(self, state: StudioState, budget_id: UUID, phase_id: str) -> StudioState:
        budget = state.get_budget(budget_id)
        template = self.resolve_template(state, budget.service_id)
        return state.put_budget(self.budgets.toggle_scope(budget, phase_id, template))

    def send_budget(self, state: StudioState, budget_id: UUID) -> StudioState:
        budget = state.get_budget(budget_id)
        template = self.resolve_template(state, budget.service_id)
        return state.put_budget(self.budgets.send(budget, template))

    def reject_budget(
        self, state: StudioState, budget_id: UUID, reason: str | None = None,
    ) -> StudioState:
        return state.put_budget(self.budgets.reject(state.get_budget(budget_id), reason))

    def log_followup(self, state: StudioState, budget_id: UUID, note: str) -> StudioState:
        return state.put_budget(self.budgets.log_followup(state.get_budget(budget_id), note))

    def approve_budget(
        self,
        state: StudioState,
        budget_id: UUID,
        *,
        start_date: date | None = None,
        architect: str = "",
        team: Sequence[str] = (),
        priority: Priority = Priority.NORMAL,
        notes: str | None = None,
        project_id: UUID | None = None,
    ) -> StudioState:
        """Approve, spawn the project with its schedule and installments, link the budget."""
        budget = state.get_budget(budget_id)
        template = self.resolve_template(state, budget.service_id)
        strategy = self.strategies.resolve(budget.service_id)
        start = start_date or self._clock.today()

        with LogContext.bind(budget_id=budget.id):
            approved = self.budgets.approve(budget, template)
            project = self.projects.spawn(
                budget=approved,
                template=template,
                code=project_code(strategy.code_prefix, len(state.projects)),
                start_date=start,
                architect=architect,
                team=team,
                priority=priority,
                notes=notes,
                project_id=project_id,
            )
            installments = self.payment_split.generate(
                total_value=approved.value,
                terms=approved.payment_terms,
                start_date=start,
            )
            entries = finance_entries_for(project, installments, issue_date=start)
            linked = self.budgets.link_project(approved, project.id, project.code)

            logger.info("budget_approved_project_spawned", extra={
                "budget_code": linked.code,
                "project_code": project.code,
                "installment_count": len(entries),
                "billed_value": str(sum((e.value for e in entries), Decimal("0"))),
            })

        return (
            state.put_budget(linked)
            .put_project(project)
            .add_finance_entries(entries)
        )

    # =========================================================================
    # Projects
    # =========================================================================

    def advance_project(
        self, state: StudioState, project_id: UUID, *, finalize: bool = False,
    ) -> StudioState:
        project = state.get_project(project_id)
        template = self.resolve_template(state, project.service_id)
        return state.put_project(self.projects.advance(project, template, finalize=finalize))

    def retreat_project(self, state: StudioState, project_id: UUID) -> StudioState:
        project = state.get_project(project_id)
        template = self.resolve_template(state, project.service_id)
        return state.put_project(self.projects.retreat(project, template))

    def finalize_project(self, state: StudioState, project_id: UUID) -> StudioState:
        project = state.get_project(project_id)
        template = self.resolve_template(state, project.service_id)
        return state.put_project(self.projects.finalize(project, template))

    def log_time(
        self,
        state: StudioState,
        project_id: UUID,
        hours: Decimal | int | str,
        description: str,
        *,
        phase: str | None = None,
        author: str = "",
        on: date | None = None,
    ) -> StudioState:
        project = self.projects.log_time(
            state.get_project(project_id), hours, description,
            phase=phase, author=author, on=on,
        )
        return state.put_project(project)

    def add_comment(
        self, state: StudioState, project_id: UUID, text: str, *, author: str = "",
    ) -> StudioState:
        project = self.projects.add_comment(state.get_project(project_id), text, author=author)
        return state.put_project(project)

    # =========================================================================
    # Finances
    # =========================================================================

    def mark_installment_paid(self, state: StudioState, entry_id: UUID) -> StudioState:
        entry = state.get_finance_entry(entry_id).mark_paid()
        logger.info("installment_marked_paid", extra={
            "project_code": entry.project_code,
            "installment": entry.installment,
            "value": str(entry.value),
        })
        return state.put_finance_entry(entry)

    def mark_installment_pending(self, state: StudioState, entry_id: UUID) -> StudioState:
        entry = state.get_finance_entry(entry_id).mark_pending()
        logger.info("installment_marked_pending", extra={
            "project_code": entry.project_code,
            "installment": entry.installment,
        })
        return state.put_finance_entry(entry)

    # =========================================================================
    # Collaborators
    # =========================================================================

    def briefing(
        self,
        state: StudioState,
        budget_id: UUID,
        generator: TextGenerator,
        *,
        transcription: str = "",
        architect: str = "",
    ) -> str:
        """Generated briefing text for a budget; the state is not touched."""
        budget = state.get_budget(budget_id)
        return generate_briefing(
            generator,
            budget,
            self.resolve_template(state, budget.service_id),
            transcription=transcription,
            architect=architect,
        )
