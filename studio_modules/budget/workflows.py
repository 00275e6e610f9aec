"""Budget Workflows.

State machine for the budget lifecycle.
"""

from studio_kernel.logging_config import get_logger
from studio_kernel.domain.workflow import Guard, Transition, Workflow

logger = get_logger("modules.budget.workflows")


CLIENT_COMPLETE = Guard("client_complete", "Client name and email are filled in")
SCOPE_NOT_EMPTY = Guard("scope_not_empty", "At least one phase is in scope")
SCOPE_IN_TEMPLATE = Guard("scope_in_template", "Every scoped phase still exists in the service template")


BUDGET_WORKFLOW = Workflow(
    name="budget",
    description="Budget lifecycle from draft to client decision",
    initial_state="draft",
    states=("draft", "sent", "approved", "rejected"),
    transitions=(
        Transition(
            "draft", "sent", action="send",
            guards=(CLIENT_COMPLETE, SCOPE_NOT_EMPTY, SCOPE_IN_TEMPLATE),
        ),
        Transition("sent", "approved", action="approve", guards=(SCOPE_IN_TEMPLATE,)),
        Transition("sent", "rejected", action="reject"),
        Transition("sent", "sent", action="followup"),
    ),
    terminal_states=("approved", "rejected"),
)

logger.info("budget_workflow_registered", extra={
    "workflow_name": BUDGET_WORKFLOW.name,
    "state_count": len(BUDGET_WORKFLOW.states),
})
