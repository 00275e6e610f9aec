"""
Typed Exception Hierarchy for the Studio Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the engine (dashboards, exporters, the kanban board) must be
able to tell a budget that is simply not ready to send apart from a
template edit that broke a structural rule.  Catching by type, reading a
machine-readable ``code`` and structured attributes keeps that decision
out of message parsing.

Example - WRONG way to handle errors:
    try:
        lifecycle.send(budget)
    except Exception as e:
        if "email" in str(e):  # FRAGILE - message might change
            highlight_email_field()

Example - RIGHT way (what this module enables):
    try:
        lifecycle.send(budget)
    except MissingClientFieldError as e:
        highlight_fields(e.fields)
        api_response(code=e.code, fields=e.fields)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from StudioKernelError:

    StudioKernelError (base)
    |
    +-- ValidationError
    |   +-- MissingClientFieldError
    |   +-- EmptyScopeError
    |   +-- InvalidScopeError
    |   +-- BudgetNotEditableError
    |   +-- TimeEntryValidationError
    |
    +-- TransitionError
    |   +-- InvalidBudgetTransitionError
    |   +-- ProjectAlreadySpawnedError
    |   +-- InvalidStageTransitionError
    |   +-- UnknownStageError
    |
    +-- TemplateError
    |   +-- ReservedPhaseError
    |   +-- DuplicatePhaseIdError
    |   +-- PhaseNotFoundError
    |   +-- StepNotFoundError
    |
    +-- PricingError
    |   +-- UnknownFactorError
    |   +-- PricingStrategyNotFoundError
    |   +-- InvalidPackageError
    |
    +-- RecordNotFoundError
        +-- BudgetNotFoundError
        +-- ProjectNotFoundError
        +-- FinanceEntryNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                        | When Raised
-------------|-----------------------------|-----------------------------------------
Validation   | MISSING_CLIENT_FIELD        | send() without client name/email
             | EMPTY_SCOPE                 | send() with no phases in scope
             | INVALID_SCOPE               | scope names a phase not in the template
             | BUDGET_NOT_EDITABLE         | field edit outside draft
             | INVALID_TIME_ENTRY          | hours outside (0, 24]
-------------|-----------------------------|-----------------------------------------
Transition   | INVALID_BUDGET_TRANSITION   | action not allowed from current status
             | PROJECT_ALREADY_SPAWNED     | second project for one budget
             | INVALID_STAGE_TRANSITION    | finalize from a non-final stage
             | UNKNOWN_STAGE               | project stage missing from template
-------------|-----------------------------|-----------------------------------------
Template     | RESERVED_PHASE              | remove/move the terminal phase
             | DUPLICATE_PHASE_ID          | two phases with one id
             | PHASE_NOT_FOUND             | phase id not in template
             | STEP_NOT_FOUND              | step index out of range
-------------|-----------------------------|-----------------------------------------
Pricing      | UNKNOWN_FACTOR              | complexity/finish/size id not in table
             | PRICING_STRATEGY_NOT_FOUND  | no strategy registered for service
             | INVALID_PACKAGE             | package quote input outside its tables
-------------|-----------------------------|-----------------------------------------
Lookup       | BUDGET_NOT_FOUND            | budget id not in state
             | PROJECT_NOT_FOUND           | project id not in state
             | FINANCE_ENTRY_NOT_FOUND     | finance entry id not in state

Calculation edge cases (zero area, empty room list, zero phases) are
NOT errors: engines return ``None`` or zero-valued results for them.
Failures of the external text-generation collaborator are re-raised
unchanged and never wrapped here.
"""


class StudioKernelError(Exception):
    """
    Base exception for all studio kernel errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "STUDIO_KERNEL_ERROR"


# Validation failures


class ValidationError(StudioKernelError):
    """Base exception for rejected inputs that leave state untouched."""

    code: str = "VALIDATION_ERROR"


class MissingClientFieldError(ValidationError):
    """Budget cannot be sent while required client fields are blank."""

    code: str = "MISSING_CLIENT_FIELD"

    def __init__(self, budget_id: str, fields: tuple[str, ...]):
        self.budget_id = budget_id
        self.fields = fields
        super().__init__(
            f"Budget {budget_id} is missing client fields: {', '.join(fields)}"
        )


class EmptyScopeError(ValidationError):
    """Budget cannot be sent with an empty scope."""

    code: str = "EMPTY_SCOPE"

    def __init__(self, budget_id: str):
        self.budget_id = budget_id
        super().__init__(f"Budget {budget_id} has no phases in scope")


class InvalidScopeError(ValidationError):
    """Scope references phases the resolved template does not offer."""

    code: str = "INVALID_SCOPE"

    def __init__(self, service_id: str, phase_ids: tuple[str, ...]):
        self.service_id = service_id
        self.phase_ids = phase_ids
        super().__init__(
            f"Phases not available in scope for {service_id}: {', '.join(phase_ids)}"
        )


class BudgetNotEditableError(ValidationError):
    """Budget fields can only change while the budget is a draft."""

    code: str = "BUDGET_NOT_EDITABLE"

    def __init__(self, budget_id: str, status: str):
        self.budget_id = budget_id
        self.status = status
        super().__init__(f"Budget {budget_id} is {status}; only drafts are editable")


class TimeEntryValidationError(ValidationError):
    """Logged hours must be positive and at most one day."""

    code: str = "INVALID_TIME_ENTRY"

    def __init__(self, project_id: str, hours: object):
        self.project_id = project_id
        self.hours = hours
        super().__init__(
            f"Invalid time entry for project {project_id}: {hours}h (expected 0 < h <= 24)"
        )


# State machine violations


class TransitionError(StudioKernelError):
    """Base exception for transitions attempted from an invalid state."""

    code: str = "TRANSITION_ERROR"


class InvalidBudgetTransitionError(TransitionError):
    """Budget action is not allowed from the budget's current status."""

    code: str = "INVALID_BUDGET_TRANSITION"

    def __init__(self, budget_id: str, status: str, action: str):
        self.budget_id = budget_id
        self.status = status
        self.action = action
        super().__init__(
            f"Cannot {action} budget {budget_id} in status {status}"
        )


class ProjectAlreadySpawnedError(TransitionError):
    """An approved budget spawns exactly one project."""

    code: str = "PROJECT_ALREADY_SPAWNED"

    def __init__(self, budget_id: str, project_id: str):
        self.budget_id = budget_id
        self.project_id = project_id
        super().__init__(
            f"Budget {budget_id} already spawned project {project_id}"
        )


class InvalidStageTransitionError(TransitionError):
    """Project stage change is not allowed from the current stage."""

    code: str = "INVALID_STAGE_TRANSITION"

    def __init__(self, stage: str, target: str, reason: str):
        self.stage = stage
        self.target = target
        self.reason = reason
        super().__init__(f"Cannot move from {stage} to {target}: {reason}")


class UnknownStageError(TransitionError):
    """Project stage is not part of its resolved stage sequence."""

    code: str = "UNKNOWN_STAGE"

    def __init__(self, stage: str, stages: tuple[str, ...]):
        self.stage = stage
        self.stages = stages
        super().__init__(
            f"Stage {stage!r} not in stage sequence {list(stages)}"
        )


# Template mutation violations


class TemplateError(StudioKernelError):
    """Base exception for structural violations in service templates."""

    code: str = "TEMPLATE_ERROR"


class ReservedPhaseError(TemplateError):
    """The terminal phase cannot be removed or reordered."""

    code: str = "RESERVED_PHASE"

    def __init__(self, service_id: str, phase_id: str, operation: str):
        self.service_id = service_id
        self.phase_id = phase_id
        self.operation = operation
        super().__init__(
            f"Cannot {operation} reserved phase {phase_id!r} of {service_id}"
        )


class DuplicatePhaseIdError(TemplateError):
    """Phase ids must be unique within a template."""

    code: str = "DUPLICATE_PHASE_ID"

    def __init__(self, service_id: str, phase_id: str):
        self.service_id = service_id
        self.phase_id = phase_id
        super().__init__(f"Duplicate phase id {phase_id!r} in {service_id}")


class PhaseNotFoundError(TemplateError):
    """Phase id does not exist in the resolved template."""

    code: str = "PHASE_NOT_FOUND"

    def __init__(self, service_id: str, phase_id: str):
        self.service_id = service_id
        self.phase_id = phase_id
        super().__init__(f"Phase {phase_id!r} not found in {service_id}")


class StepNotFoundError(TemplateError):
    """Step index is out of range for the phase."""

    code: str = "STEP_NOT_FOUND"

    def __init__(self, service_id: str, phase_id: str, index: int):
        self.service_id = service_id
        self.phase_id = phase_id
        self.index = index
        super().__init__(
            f"Step {index} not found in phase {phase_id!r} of {service_id}"
        )


# Pricing


class PricingError(StudioKernelError):
    """Base exception for pricing lookups."""

    code: str = "PRICING_ERROR"


class UnknownFactorError(PricingError):
    """Multiplier id is not present in its table."""

    code: str = "UNKNOWN_FACTOR"

    def __init__(self, table: str, factor_id: str):
        self.table = table
        self.factor_id = factor_id
        super().__init__(f"Unknown {table} factor: {factor_id!r}")


class PricingStrategyNotFoundError(PricingError):
    """No pricing strategy registered for a service id."""

    code: str = "PRICING_STRATEGY_NOT_FOUND"

    def __init__(self, service_id: str):
        self.service_id = service_id
        super().__init__(f"No pricing strategy registered for service: {service_id}")


class InvalidPackageError(PricingError):
    """Package quote input has no matching tier, band or fee."""

    code: str = "INVALID_PACKAGE"

    def __init__(self, service_id: str, field: str, value: object):
        self.service_id = service_id
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field} for {service_id} package: {value!r}")


# Record lookups


class RecordNotFoundError(StudioKernelError):
    """Base exception for ids missing from a StudioState."""

    code: str = "RECORD_NOT_FOUND"


class BudgetNotFoundError(RecordNotFoundError):
    """Budget id not present."""

    code: str = "BUDGET_NOT_FOUND"

    def __init__(self, budget_id: str):
        self.budget_id = budget_id
        super().__init__(f"Budget not found: {budget_id}")


class ProjectNotFoundError(RecordNotFoundError):
    """Project id not present."""

    code: str = "PROJECT_NOT_FOUND"

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")


class FinanceEntryNotFoundError(RecordNotFoundError):
    """Finance entry id not present."""

    code: str = "FINANCE_ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Finance entry not found: {entry_id}")
