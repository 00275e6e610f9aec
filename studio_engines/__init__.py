"""
Module: studio_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for
    higher layers (studio_modules, studio_services).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import studio_kernel (and sibling engine modules).
    MUST NOT import studio_modules or studio_services.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      Dates are passed in as explicit parameters by the services.
    - Decimal-only arithmetic for every monetary amount.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from studio_engines import PricingModel, PricingRequest
    from studio_engines import ScheduleGenerator, PaymentSplitGenerator
    from studio_engines import ProjectStageMachine
"""

from studio_engines.multipliers import MultiplierTables
from studio_engines.payment_split import (
    PAYMENT_FRACTIONS,
    Installment,
    PaymentSplitGenerator,
    fractions_for,
)
from studio_engines.packages import (
    AreaBand,
    EfficiencyRating,
    Modality,
    PackageFees,
    PackageQuote,
    PackageRequest,
    PackageTier,
    PaymentType,
)
from studio_engines.pricing import (
    HealthStatus,
    PriceTiers,
    PricingModel,
    PricingRequest,
    PricingResult,
)
from studio_engines.pricing_strategies import (
    BUILTIN_STRATEGIES,
    AreaBandStrategy,
    EnvironmentPackageStrategy,
    PricingStrategyRegistry,
    ServicePricingStrategy,
    generic_strategy,
)
from studio_engines.schedule import (
    START_PHASE_ID,
    DayCountRule,
    ScheduleGenerator,
    add_days,
    days_per_phase,
)
from studio_engines.stage_machine import (
    ProjectStageMachine,
    progress_percent,
    scoped_phases,
    stage_sequence,
)
from studio_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    # Multipliers
    "MultiplierTables",
    # Payment split
    "PAYMENT_FRACTIONS",
    "Installment",
    "PaymentSplitGenerator",
    "fractions_for",
    # Pricing
    "HealthStatus",
    "PriceTiers",
    "PricingModel",
    "PricingRequest",
    "PricingResult",
    "BUILTIN_STRATEGIES",
    "PricingStrategyRegistry",
    "ServicePricingStrategy",
    "generic_strategy",
    # Packages
    "AreaBand",
    "AreaBandStrategy",
    "EfficiencyRating",
    "EnvironmentPackageStrategy",
    "Modality",
    "PackageFees",
    "PackageQuote",
    "PackageRequest",
    "PackageTier",
    "PaymentType",
    # Schedule
    "START_PHASE_ID",
    "DayCountRule",
    "ScheduleGenerator",
    "add_days",
    "days_per_phase",
    # Stages
    "ProjectStageMachine",
    "progress_percent",
    "scoped_phases",
    "stage_sequence",
    # Tracing
    "compute_input_fingerprint",
    "traced_engine",
]
