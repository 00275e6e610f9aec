"""
Phase Template Registry (``studio_modules.templates.registry``).

Responsibility
--------------
Resolves the service template in force for an office and applies the
template editor's operations: phase add/remove/reorder/edit and step
add/edit/remove.

Architecture position
---------------------
**Modules layer** -- stateful over one office's override map.  The
orchestration layer builds a registry from ``StudioState`` overrides and
writes ``registry.overrides`` back into the next state.

Invariants enforced
-------------------
* Resolution order: office override, else built-in default, else the
  empty fallback.  An override replaces the default wholesale; fields are
  never merged with the default.
* Every edit stores a complete template as the override.
* The terminal phase ``"finalizado"`` can be neither removed nor moved,
  and no phase can be swapped past it.
* Phase ids are unique within a template.

Failure modes
-------------
* ``ReservedPhaseError``, ``DuplicatePhaseIdError``, ``PhaseNotFoundError``
  and ``StepNotFoundError`` (all ``TemplateError``); the stored override is
  untouched when one is raised.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Mapping
from dataclasses import replace
from enum import Enum

from studio_kernel.domain.templates import (
    DEFAULT_TEMPLATES,
    EMPTY_TEMPLATE,
    TERMINAL_PHASE_ID,
    Phase,
    ServiceTemplate,
    Step,
)
from studio_kernel.exceptions import (
    DuplicatePhaseIdError,
    PhaseNotFoundError,
    ReservedPhaseError,
    StepNotFoundError,
)
from studio_kernel.logging_config import get_logger

logger = get_logger("modules.templates.registry")

NEW_PHASE_NAME = "Nova Fase"
NEW_PHASE_COLOR = "#6B7280"
NEW_PHASE_DURATION = "7-14 dias"
NEW_STEP_NAME = "Nova Etapa"
NEW_STEP_EXEC_TIME = "4h"
NEW_STEP_DELIVERABLE = "Entregável"


class MoveDirection(str, Enum):
    UP = "up"
    DOWN = "down"


def _new_phase_id() -> str:
    return f"phase_{uuid.uuid4().hex[:8]}"


class PhaseTemplateRegistry:
    """
    Default + per-office override resolution and template editing.

    Contract
    --------
    * Every mutating method returns the resulting template, which is also
      stored as the office override for that service.
    * ``id_factory`` generates ids for new phases; inject a deterministic
      one in tests.
    """

    def __init__(
        self,
        overrides: Mapping[str, ServiceTemplate] | None = None,
        *,
        defaults: Mapping[str, ServiceTemplate] = DEFAULT_TEMPLATES,
        id_factory: Callable[[], str] = _new_phase_id,
    ):
        self._overrides: dict[str, ServiceTemplate] = dict(overrides or {})
        self._defaults = defaults
        self._id_factory = id_factory

    @property
    def overrides(self) -> dict[str, ServiceTemplate]:
        return dict(self._overrides)

    def has_override(self, service_id: str) -> bool:
        return service_id in self._overrides

    def resolve(self, service_id: str) -> ServiceTemplate:
        """Override, else default, else the empty fallback template."""
        if service_id in self._overrides:
            return self._overrides[service_id]
        if service_id in self._defaults:
            return self._defaults[service_id]
        return EMPTY_TEMPLATE

    # =========================================================================
    # Whole-template operations
    # =========================================================================

    def update(self, service_id: str, **changes) -> ServiceTemplate:
        """Shallow-replace fields of the currently resolved template."""
        template = replace(self.resolve(service_id), **changes)
        return self._store(service_id, template, "template_updated", fields=sorted(changes))

    def reset_to_default(self, service_id: str) -> ServiceTemplate:
        removed = self._overrides.pop(service_id, None)
        logger.info("template_reset_to_default", extra={
            "service_id": service_id,
            "had_override": removed is not None,
        })
        return self.resolve(service_id)

    # =========================================================================
    # Phase operations
    # =========================================================================

    def add_phase(
        self,
        service_id: str,
        name: str = NEW_PHASE_NAME,
        *,
        phase_id: str | None = None,
        color: str = NEW_PHASE_COLOR,
        duration: str | None = NEW_PHASE_DURATION,
        steps: tuple[Step, ...] = (),
    ) -> ServiceTemplate:
        """Insert a new phase just before the terminal phase."""
        template = self.resolve(service_id)
        new_id = phase_id or self._id_factory()
        if template.get_phase(new_id) is not None:
            raise DuplicatePhaseIdError(service_id, new_id)

        phase = Phase(id=new_id, name=name, color=color, duration=duration, steps=tuple(steps))
        phases = list(template.phases)
        position = len(phases)
        for i, existing in enumerate(phases):
            if existing.is_terminal:
                position = i
                break
        phases.insert(position, phase)
        return self._store(
            service_id, replace(template, phases=tuple(phases)),
            "template_phase_added", phase_id=new_id, position=position,
        )

    def remove_phase(self, service_id: str, phase_id: str) -> ServiceTemplate:
        if phase_id == TERMINAL_PHASE_ID:
            raise ReservedPhaseError(service_id, phase_id, "remove")
        template = self.resolve(service_id)
        self._index_of(service_id, template, phase_id)
        phases = tuple(p for p in template.phases if p.id != phase_id)
        return self._store(
            service_id, replace(template, phases=phases),
            "template_phase_removed", phase_id=phase_id,
        )

    def move_phase(
        self, service_id: str, phase_id: str, direction: MoveDirection | str,
    ) -> ServiceTemplate:
        """Swap a phase with its neighbour; a no-op at either end."""
        direction = MoveDirection(direction)
        if phase_id == TERMINAL_PHASE_ID:
            raise ReservedPhaseError(service_id, phase_id, "move")
        template = self.resolve(service_id)
        index = self._index_of(service_id, template, phase_id)
        target = index - 1 if direction == MoveDirection.UP else index + 1
        if target < 0 or target >= len(template.phases):
            return template
        if template.phases[target].is_terminal:
            raise ReservedPhaseError(service_id, TERMINAL_PHASE_ID, "move")

        phases = list(template.phases)
        phases[index], phases[target] = phases[target], phases[index]
        return self._store(
            service_id, replace(template, phases=tuple(phases)),
            "template_phase_moved", phase_id=phase_id, direction=direction.value,
        )

    def edit_phase(
        self,
        service_id: str,
        phase_id: str,
        *,
        name: str | None = None,
        duration: str | None = None,
        color: str | None = None,
    ) -> ServiceTemplate:
        changes = {
            k: v for k, v in (("name", name), ("duration", duration), ("color", color))
            if v is not None
        }
        return self._replace_phase(
            service_id, phase_id, lambda p: replace(p, **changes),
            "template_phase_edited", fields=sorted(changes),
        )

    # =========================================================================
    # Step operations
    # =========================================================================

    def add_step(
        self,
        service_id: str,
        phase_id: str,
        name: str = NEW_STEP_NAME,
        exec_time: str = NEW_STEP_EXEC_TIME,
        deliverable: str = NEW_STEP_DELIVERABLE,
        deadline: str | None = None,
    ) -> ServiceTemplate:
        step = Step(name=name, exec_time=exec_time, deliverable=deliverable, deadline=deadline)
        return self._replace_phase(
            service_id, phase_id, lambda p: replace(p, steps=p.steps + (step,)),
            "template_step_added",
        )

    def edit_step(self, service_id: str, phase_id: str, index: int, **changes) -> ServiceTemplate:
        def apply(phase: Phase) -> Phase:
            self._check_step(service_id, phase, index)
            steps = list(phase.steps)
            steps[index] = replace(steps[index], **changes)
            return replace(phase, steps=tuple(steps))

        return self._replace_phase(
            service_id, phase_id, apply, "template_step_edited",
            index=index, fields=sorted(changes),
        )

    def remove_step(self, service_id: str, phase_id: str, index: int) -> ServiceTemplate:
        def apply(phase: Phase) -> Phase:
            self._check_step(service_id, phase, index)
            return replace(phase, steps=phase.steps[:index] + phase.steps[index + 1:])

        return self._replace_phase(
            service_id, phase_id, apply, "template_step_removed", index=index,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _index_of(service_id: str, template: ServiceTemplate, phase_id: str) -> int:
        for i, phase in enumerate(template.phases):
            if phase.id == phase_id:
                return i
        raise PhaseNotFoundError(service_id, phase_id)

    @staticmethod
    def _check_step(service_id: str, phase: Phase, index: int) -> None:
        if not 0 <= index < len(phase.steps):
            raise StepNotFoundError(service_id, phase.id, index)

    def _replace_phase(
        self,
        service_id: str,
        phase_id: str,
        apply: Callable[[Phase], Phase],
        event: str,
        **log_fields,
    ) -> ServiceTemplate:
        template = self.resolve(service_id)
        index = self._index_of(service_id, template, phase_id)
        phases = list(template.phases)
        phases[index] = apply(phases[index])
        return self._store(
            service_id, replace(template, phases=tuple(phases)), event,
            phase_id=phase_id, **log_fields,
        )

    def _store(
        self, service_id: str, template: ServiceTemplate, event: str, **log_fields,
    ) -> ServiceTemplate:
        ids = template.phase_ids
        if len(ids) != len(set(ids)):
            duplicate = next(i for i in ids if ids.count(i) > 1)
            raise DuplicatePhaseIdError(service_id, duplicate)
        self._overrides[service_id] = template
        logger.info(event, extra={"service_id": service_id, **log_fields})
        return template
