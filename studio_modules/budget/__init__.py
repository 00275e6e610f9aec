"""
Budget Module (``studio_modules.budget``).

Responsibility
--------------
Budget lifecycle: creation from a pricing result, draft editing and
scope selection, and the ``draft -> sent -> approved | rejected`` state
machine declared in ``BUDGET_WORKFLOW``.

Failure modes
-------------
* Typed ``ValidationError`` / ``TransitionError`` subclasses; the budget
  passed in is never modified.
"""

from studio_modules.budget.service import EDITABLE_FIELDS, BudgetLifecycle, budget_code
from studio_modules.budget.workflows import BUDGET_WORKFLOW, CLIENT_COMPLETE, SCOPE_NOT_EMPTY

__all__ = [
    "BUDGET_WORKFLOW",
    "CLIENT_COMPLETE",
    "EDITABLE_FIELDS",
    "SCOPE_NOT_EMPTY",
    "BudgetLifecycle",
    "budget_code",
]
