"""
Studio configuration schema.

Frozen dataclasses the YAML fragments are parsed into.  ``StudioConfiguration``
is the runtime artifact returned by ``studio_config.get_active_config()``;
everything downstream (pipeline, pricing model, generators) is built from it.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from studio_kernel.domain.budget import PaymentTerms
from studio_kernel.domain.office import OfficeProfile
from studio_kernel.domain.templates import ServiceTemplate
from studio_engines.multipliers import MultiplierTables
from studio_engines.packages import PackageFees
from studio_engines.schedule import DayCountRule

# ---------------------------------------------------------------------------
# Engine settings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EngineConfig:
    """Tunables of the generators and the budget lifecycle."""

    hours_per_day: int = 8
    installment_interval_days: int = 30
    default_payment_terms: str = PaymentTerms.FIFTY_FIFTY.value
    budget_validity_days: int = 15
    day_count_rule: DayCountRule = DayCountRule.CALENDAR
    apply_environment_multipliers: bool = False
    currency: str = "BRL"

    def __post_init__(self) -> None:
        if self.hours_per_day <= 0:
            raise ValueError(f"hours_per_day must be positive, got {self.hours_per_day}")
        if self.installment_interval_days < 0:
            raise ValueError(
                f"installment_interval_days must be non-negative, "
                f"got {self.installment_interval_days}"
            )
        if self.budget_validity_days < 0:
            raise ValueError(
                f"budget_validity_days must be non-negative, got {self.budget_validity_days}"
            )


# ---------------------------------------------------------------------------
# Configuration set
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StudioConfiguration:
    """Parsed configuration set; ``checksum`` identifies its source content."""

    config_id: str
    version: int
    checksum: str
    engine: EngineConfig = field(default_factory=EngineConfig)
    multipliers: MultiplierTables = field(default_factory=MultiplierTables)
    package_fees: PackageFees = field(default_factory=PackageFees)
    office: OfficeProfile | None = None
    templates: tuple[tuple[str, ServiceTemplate], ...] = ()

    @property
    def template_overrides(self) -> dict[str, ServiceTemplate]:
        return dict(self.templates)
