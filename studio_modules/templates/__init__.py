"""
Service Templates Module (``studio_modules.templates``).

Responsibility
--------------
Per-service ordered phase/step definitions: default and per-office
override resolution, and the editing operations of the template editor.
Hour totals derived from step execution-time labels are re-exported from
the kernel so callers have one import surface.
"""

from studio_kernel.domain.templates import (
    DEFAULT_TEMPLATES,
    EMPTY_TEMPLATE,
    TERMINAL_PHASE_ID,
    extract_hours,
    phase_hours,
    total_hours,
)
from studio_modules.templates.registry import MoveDirection, PhaseTemplateRegistry

__all__ = [
    "DEFAULT_TEMPLATES",
    "EMPTY_TEMPLATE",
    "TERMINAL_PHASE_ID",
    "MoveDirection",
    "PhaseTemplateRegistry",
    "extract_hours",
    "phase_hours",
    "total_hours",
]
