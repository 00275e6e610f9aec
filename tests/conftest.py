"""
Pytest fixtures for the studio engine test suite.

Provides:
- Structured logging configuration and log capture
- A deterministic clock
- Office profiles with round hourly costs
- Template registries and pipelines with deterministic ids
"""

import json
import logging
from decimal import Decimal
from io import StringIO

import pytest

from studio_kernel.domain.budget import ClientData
from studio_kernel.domain.clock import DeterministicClock
from studio_kernel.domain.office import FixedCost, OfficeProfile, TeamMember
from studio_kernel.domain.state import StudioState
from studio_kernel.domain.templates import BaseReference, Phase, ServiceTemplate, Step
from studio_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from studio_engines.pricing import PricingRequest
from studio_modules.templates.registry import PhaseTemplateRegistry
from studio_services.pipeline import StudioPipeline


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture studio_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, pipeline):
            pipeline.quote(...)
            logs = captured_logs()
            assert any(r["message"] == "pricing_calculated" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("studio_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Clock fixed at 2026-01-01 12:00 UTC."""
    return DeterministicClock()


@pytest.fixture
def office():
    """One member, 16000 / month over 160h: hourly cost exactly 100, margin 50%."""
    return OfficeProfile(
        name="Estúdio Teste",
        team=(TeamMember(name="Ana", role="senior", salary=Decimal("12000"), hours=160),),
        fixed_costs=(FixedCost("rent", Decimal("3000")), FixedCost("software", Decimal("1000"))),
        margin=Decimal("50"),
    )


@pytest.fixture
def client():
    return ClientData(name="Maria Silva", email="maria@example.com", phone="11 99999-0000")


@pytest.fixture
def small_template():
    """Base 100 m2 / 2 rooms, 80 hours over three working phases plus the terminal one."""
    return ServiceTemplate(
        name="Projeto Teste",
        base_ref=BaseReference(area=100, rooms=2),
        phases=(
            Phase(id="briefing", name="Briefing", steps=(
                Step("Reunião", "10h", "Ata"),
                Step("Levantamento", "10h", "Medidas"),
            )),
            Phase(id="estudo", name="Estudo", steps=(Step("Layout", "30h", "Planta"),)),
            Phase(id="executivo", name="Executivo", steps=(Step("Detalhamento", "30h", "Pranchas"),)),
            Phase(id="finalizado", name="Finalizado"),
        ),
    )


@pytest.fixture
def phase_ids():
    """Deterministic id factory for new phases: phase_1, phase_2, ..."""
    counter = iter(range(1, 10_000))
    return lambda: f"phase_{next(counter)}"


@pytest.fixture
def registry(phase_ids):
    return PhaseTemplateRegistry(id_factory=phase_ids)


@pytest.fixture
def pipeline(deterministic_clock, phase_ids):
    return StudioPipeline(clock=deterministic_clock, phase_id_factory=phase_ids)


@pytest.fixture
def state(office):
    return StudioState(office=office)


@pytest.fixture
def area_request():
    return PricingRequest(service_id="arquitetonico", area=Decimal("150"))
