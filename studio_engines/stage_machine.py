"""
Project Stage Machine -- linear stage progression over a template's phases.

Responsibility:
    Derive a project's stage sequence from its service template and the
    budget scope, and compute the result of moving forward or backward
    along it.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  ``ProjectService``
    applies the computed stage to ``Project`` records.

Invariants enforced:
    - The sequence is the scoped phases in template order, followed by the
      terminal phase when the template has one.
    - ``advance`` is idempotent at the last stage and stops before the
      terminal phase unless finalization is requested explicitly.
    - ``retreat`` is a no-op at the first stage.
    - A stage outside the sequence raises ``UnknownStageError``.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from studio_kernel.domain.templates import TERMINAL_PHASE_ID, Phase, ServiceTemplate
from studio_kernel.domain.values import HUNDRED, ZERO, round_ratio, to_decimal
from studio_kernel.exceptions import InvalidStageTransitionError, UnknownStageError


def stage_sequence(template: ServiceTemplate, scope: Iterable[str]) -> tuple[str, ...]:
    """Ordered stage ids for a project; an empty scope means every phase."""
    return tuple(p.id for p in scoped_phases(template, scope, include_terminal=True))


def scoped_phases(
    template: ServiceTemplate,
    scope: Iterable[str],
    *,
    include_terminal: bool = False,
) -> tuple[Phase, ...]:
    """Template phases in scope, in template order."""
    wanted = set(scope)
    phases = []
    for phase in template.phases:
        if phase.is_terminal:
            if include_terminal:
                phases.append(phase)
        elif not wanted or phase.id in wanted:
            phases.append(phase)
    return tuple(phases)


def progress_percent(hours_used: Decimal | int, estimated_hours: Decimal | int) -> Decimal:
    """``hours_used / estimated x 100``, uncapped; 0 without an estimate."""
    estimated = to_decimal(estimated_hours)
    if estimated <= ZERO:
        return ZERO
    return round_ratio(to_decimal(hours_used) / estimated * HUNDRED)


class ProjectStageMachine:
    """Stage arithmetic for one template/scope pair."""

    def __init__(self, template: ServiceTemplate, scope: Iterable[str] = ()):
        self.stages = stage_sequence(template, scope)

    @property
    def has_terminal(self) -> bool:
        return bool(self.stages) and self.stages[-1] == TERMINAL_PHASE_ID

    @property
    def initial_stage(self) -> str:
        if not self.stages:
            raise UnknownStageError("", self.stages)
        return self.stages[0]

    @property
    def last_working_stage(self) -> str | None:
        working = self.stages[:-1] if self.has_terminal else self.stages
        return working[-1] if working else None

    def index_of(self, stage: str) -> int:
        try:
            return self.stages.index(stage)
        except ValueError:
            raise UnknownStageError(stage, self.stages) from None

    def is_terminal(self, stage: str) -> bool:
        self.index_of(stage)
        return stage == TERMINAL_PHASE_ID

    def advance(self, stage: str, *, finalize: bool = False) -> str:
        """Next stage, or ``stage`` itself at the last stage or before the terminal one."""
        i = self.index_of(stage)
        if i == len(self.stages) - 1:
            return stage
        target = self.stages[i + 1]
        if target == TERMINAL_PHASE_ID and not finalize:
            return stage
        return target

    def finalize(self, stage: str) -> str:
        """Move from the last working stage to the terminal stage."""
        self.index_of(stage)
        if not self.has_terminal:
            raise InvalidStageTransitionError(stage, TERMINAL_PHASE_ID, "template has no terminal phase")
        if stage == TERMINAL_PHASE_ID:
            raise InvalidStageTransitionError(stage, TERMINAL_PHASE_ID, "already finalized")
        if stage != self.last_working_stage:
            raise InvalidStageTransitionError(
                stage, TERMINAL_PHASE_ID, f"only {self.last_working_stage!r} can be finalized"
            )
        return TERMINAL_PHASE_ID

    def retreat(self, stage: str) -> str:
        """Previous stage, or ``stage`` itself at the first stage."""
        i = self.index_of(stage)
        if i == 0:
            return stage
        return self.stages[i - 1]
