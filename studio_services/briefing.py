"""
Briefing text generation seam (``studio_services.briefing``).

Responsibility:
    Build the prompt that asks an external text generator for a structured
    briefing document, and call that generator.  The generator itself (a
    remote language model, a template engine, a test double) lives outside
    this package behind the ``TextGenerator`` protocol.

Invariants enforced:
    - No budget, project or state object is modified here.
    - Generator failures are logged and re-raised unchanged.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from studio_kernel.domain.budget import Budget, CalcMode
from studio_kernel.domain.templates import ServiceTemplate
from studio_kernel.logging_config import LogContext, get_logger
from studio_engines.stage_machine import scoped_phases

logger = get_logger("services.briefing")


@runtime_checkable
class TextGenerator(Protocol):
    """Anything that turns a prompt into text."""

    def generate(self, prompt: str) -> str:
        ...


BRIEFING_INSTRUCTIONS = (
    "Você é um sistema especializado em transformar transcrições de briefings "
    "de arquitetura e design de interiores em documentos estruturados "
    "profissionais. Gere um MAPA DE BRIEFING com: identificação, visão geral, "
    "estilo e cores, uso do espaço, mobiliário prioritário, estrutura fixa, "
    "decoração, funcionalidade, restrições e próximos passos."
)


def build_briefing_prompt(
    budget: Budget,
    template: ServiceTemplate,
    *,
    transcription: str = "",
    architect: str = "",
) -> str:
    """Render the budget and template facts into a briefing prompt."""
    phases = scoped_phases(template, budget.scope)
    lines = [
        BRIEFING_INSTRUCTIONS,
        "",
        "## DADOS DO PROJETO",
        f"Código: {budget.project_code or budget.code}",
        f"Cliente: {budget.client.name or '[Nome do Cliente]'}",
        f"Arquiteto(a): {architect or '[Nome]'}",
        f"Serviço: {budget.service_name or template.name or budget.service_id}",
    ]
    if budget.calc_mode == CalcMode.ROOM:
        lines.append(f"Ambientes: {len(budget.rooms)}")
    else:
        lines.append(f"Área: {budget.area} m²")
    lines.append(f"Horas estimadas: {budget.estimated_hours}")
    lines.append("")
    lines.append("## ESCOPO")
    for phase in phases:
        deliverables = ", ".join(s.deliverable for s in phase.steps if s.deliverable)
        lines.append(f"- {phase.name}: {deliverables}" if deliverables else f"- {phase.name}")
    if budget.client.notes:
        lines.extend(["", "## OBSERVAÇÕES DO CLIENTE", budget.client.notes])
    if transcription:
        lines.extend(["", "## TRANSCRIÇÃO", transcription])
    return "\n".join(lines)


def generate_briefing(
    generator: TextGenerator,
    budget: Budget,
    template: ServiceTemplate,
    *,
    transcription: str = "",
    architect: str = "",
) -> str:
    """Ask ``generator`` for the briefing document of ``budget``."""
    prompt = build_briefing_prompt(
        budget, template, transcription=transcription, architect=architect,
    )
    with LogContext.bind(budget_id=budget.id):
        logger.info("briefing_requested", extra={
            "budget_code": budget.code,
            "prompt_chars": len(prompt),
        })
        try:
            text = generator.generate(prompt)
        except Exception:
            logger.exception("briefing_generation_failed", extra={
                "budget_code": budget.code,
            })
            raise
        logger.info("briefing_generated", extra={
            "budget_code": budget.code,
            "response_chars": len(text),
        })
    return text
