"""
Service template value objects (``studio_kernel.domain.templates``).

Responsibility
--------------
The breakdown of a service into ordered phases, each with timed steps,
plus the reference project (area, room count) used to scale hour
estimates.  Also holds the built-in default templates and the hour
extraction rule shared by pricing and the template editor.

Invariants enforced
-------------------
* Every built-in template ends with the reserved terminal phase
  ``"finalizado"``, which carries no steps.
* Step hours are derived from ``exec_time`` labels by taking the first
  integer token; a label without digits contributes 0.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

TERMINAL_PHASE_ID = "finalizado"

_HOURS_TOKEN = re.compile(r"(\d+)")


@dataclass(frozen=True)
class Step:
    """A timed step inside a phase."""
    name: str
    exec_time: str
    deliverable: str
    deadline: str | None = None

    @property
    def hours(self) -> int:
        return extract_hours(self.exec_time)


@dataclass(frozen=True)
class Phase:
    """An ordered phase of a service template."""
    id: str
    name: str
    color: str = "#6B7280"
    duration: str | None = None
    steps: tuple[Step, ...] = ()

    @property
    def is_terminal(self) -> bool:
        return self.id == TERMINAL_PHASE_ID


@dataclass(frozen=True)
class BaseReference:
    """Reference project that the template's step hours were sized for."""
    area: int
    rooms: int
    typology: str = ""
    description: str = ""


@dataclass(frozen=True)
class ServiceTemplate:
    """Ordered phase/step breakdown for one service."""
    name: str
    base_ref: BaseReference
    phases: tuple[Phase, ...] = ()

    @property
    def phase_ids(self) -> tuple[str, ...]:
        return tuple(p.id for p in self.phases)

    @property
    def scopable_phase_ids(self) -> tuple[str, ...]:
        """Phase ids a budget may commit to deliver."""
        return tuple(p.id for p in self.phases if not p.is_terminal)

    def unscopable(self, phase_ids: Iterable[str]) -> tuple[str, ...]:
        """Ids from ``phase_ids`` this template does not offer for scope, sorted."""
        return tuple(sorted(set(phase_ids) - set(self.scopable_phase_ids)))

    def get_phase(self, phase_id: str) -> Phase | None:
        for p in self.phases:
            if p.id == phase_id:
                return p
        return None


def extract_hours(label: str | None) -> int:
    """Hours in an execution-time label: first integer token, else 0.

    ``"16h"`` -> 16, ``"2-3 dias"`` -> 2, ``"Variável"`` -> 0.
    """
    if not label:
        return 0
    match = _HOURS_TOKEN.search(label)
    return int(match.group(1)) if match else 0


def phase_hours(phase: Phase) -> int:
    return sum(step.hours for step in phase.steps)


def total_hours(template: ServiceTemplate) -> int:
    """Sum of step hours across every phase of the template."""
    return sum(phase_hours(p) for p in template.phases)


EMPTY_TEMPLATE = ServiceTemplate(
    name="",
    base_ref=BaseReference(area=100, rooms=1),
    phases=(),
)


def _terminal() -> Phase:
    return Phase(id=TERMINAL_PHASE_ID, name="Finalizado", color="#6B7280")


DEFAULT_TEMPLATES: Mapping[str, ServiceTemplate] = MappingProxyType({
    "arquitetonico": ServiceTemplate(
        name="Projeto Arquitetônico",
        base_ref=BaseReference(150, 6, "casa_media", "Casa média 150m² com 6 ambientes"),
        phases=(
            Phase("briefing", "Briefing", "#8B5CF6", "7-14 dias", (
                Step("Reunião de Briefing", "3h", "Documento de briefing"),
                Step("Visita ao Local", "4h", "Relatório + fotos"),
                Step("Programa de Necessidades", "8h", "Programa (PDF)"),
            )),
            Phase("estudo", "Estudo Preliminar", "#3B82F6", "15-30 dias", (
                Step("Estudo de Implantação", "16h", "Estudo (PDF)"),
                Step("Plantas Preliminares", "24h", "Plantas (2-3 opções)"),
                Step("Apresentação e Aprovação", "4h", "Termo aprovação"),
            )),
            Phase("anteprojeto", "Anteprojeto", "#06B6D4", "30-45 dias", (
                Step("Plantas Detalhadas", "40h", "Plantas baixas"),
                Step("Cortes e Fachadas", "24h", "Cortes e elevações"),
                Step("Maquete 3D + Renders", "56h", "Modelo 3D + Renders"),
            )),
            Phase("executivo", "Executivo", "#22C55E", "30-45 dias", (
                Step("Projetos Complementares", "40h", "Elétrico/Hidráulico"),
                Step("Detalhamentos", "32h", "Pranchas marcenaria"),
                Step("Compatibilização", "12h", "Projetos compatibilizados"),
            )),
            Phase("obra", "Acompanhamento", "#F59E0B", "Durante obra", (
                Step("Visitas à Obra", "4h", "Relatório de visita"),
            )),
            _terminal(),
        ),
    ),
    "interiores": ServiceTemplate(
        name="Projeto de Interiores",
        base_ref=BaseReference(100, 5, "apt_medio", "Apartamento médio 100m² com 5 ambientes"),
        phases=(
            Phase("briefing", "Briefing", "#8B5CF6", "7-10 dias", (
                Step("Visita e Medição", "4h", "Relatório + medidas"),
                Step("Reunião de Briefing", "3h", "Documento de briefing"),
            )),
            Phase("conceito", "Conceito", "#3B82F6", "15-20 dias", (
                Step("Moodboard + Conceito", "12h", "Moodboard"),
                Step("Estudo de Layout", "16h", "Plantas (2-3 opções)"),
            )),
            Phase("projeto3d", "3D / Render", "#06B6D4", "15-25 dias", (
                Step("Modelagem 3D", "32h", "Modelo 3D"),
                Step("Renderização", "20h", "Renders (10-15)"),
            )),
            Phase("executivo", "Executivo", "#22C55E", "20-30 dias", (
                Step("Projetos Técnicos", "24h", "Elétrico/Iluminação"),
                Step("Detalhamentos", "32h", "Marcenaria/Marmoraria"),
            )),
            Phase("decoracao", "Decoração", "#EC4899", "10-15 dias", (
                Step("Lista e Cotações", "20h", "Planilha orçamentos"),
            )),
            _terminal(),
        ),
    ),
    "decoracao": ServiceTemplate(
        name="Decoração",
        base_ref=BaseReference(80, 3, "apt_pequeno", "Apartamento 80m² com 3 ambientes"),
        phases=(
            Phase("briefing", "Briefing", "#8B5CF6", "3-5 dias", (
                Step("Visita e Levantamento", "5h", "Fotos + medidas + briefing"),
            )),
            Phase("proposta", "Proposta Visual", "#3B82F6", "10-15 dias", (
                Step("Moodboard", "6h", "Moodboard"),
                Step("Lista de Produtos", "12h", "Lista com preços"),
            )),
            Phase("compras", "Compras", "#22C55E", "7-15 dias", (
                Step("Cotações e Pedidos", "8h", "Pedidos realizados"),
            )),
            Phase("montagem", "Montagem", "#F59E0B", "1-3 dias", (
                Step("Instalação", "8h", "Ambiente finalizado"),
            )),
            _terminal(),
        ),
    ),
    "reforma": ServiceTemplate(
        name="Reforma",
        base_ref=BaseReference(100, 4, "apt_medio", "Apartamento 100m² com 4 ambientes"),
        phases=(
            Phase("briefing", "Briefing", "#8B5CF6", "5-7 dias", (
                Step("Visita Técnica", "4h", "Relatório técnico"),
                Step("Levantamento", "6h", "Medidas + fotos"),
            )),
            Phase("projeto", "Projeto", "#3B82F6", "15-25 dias", (
                Step("Demolir/Construir", "12h", "Planta D/C"),
                Step("Layout + 3D", "24h", "Layout + Renders"),
            )),
            Phase("executivo", "Executivo", "#06B6D4", "15-20 dias", (
                Step("Complementares", "20h", "Elétrico/Hidráulico"),
                Step("Detalhamentos", "16h", "Detalhamentos"),
            )),
            Phase("obra", "Obra", "#22C55E", "Variável", (
                Step("Acompanhamento", "4h", "Relatórios"),
            )),
            _terminal(),
        ),
    ),
    "comercial": ServiceTemplate(
        name="Comercial",
        base_ref=BaseReference(100, 4, "loja_media", "Loja média 100m² com 4 ambientes"),
        phases=(
            Phase("briefing", "Briefing", "#8B5CF6", "5-10 dias", (
                Step("Reunião + Análise", "9h", "Briefing + Relatório"),
            )),
            Phase("conceito", "Conceito", "#3B82F6", "10-15 dias", (
                Step("Conceito Visual", "16h", "Moodboard + Conceito"),
                Step("Layout Funcional", "20h", "Layout aprovado"),
            )),
            Phase("projeto", "Projeto", "#06B6D4", "20-30 dias", (
                Step("3D e Renders", "32h", "Renders"),
                Step("Executivo", "40h", "Projeto completo"),
            )),
            Phase("obra", "Implantação", "#22C55E", "Variável", (
                Step("Acompanhamento", "4h", "Relatórios"),
            )),
            _terminal(),
        ),
    ),
})
