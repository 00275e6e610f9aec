"""
Package Pricing Inputs -- fixed-price "express" service packages.

Responsibility:
    Value objects for services sold as a package instead of from template
    hours: DecorExpress and Produção are priced from a tier table indexed
    by environment count and package level, ProjetExpress from a price per
    m2 band.  Both add the same fees (extra environments, survey visit,
    optional management) and the same cash discount, and are rated by the
    hour rate they end up paying.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The per-service tables
    live on the strategies in ``studio_engines.pricing_strategies``; the
    arithmetic that combines them lives in
    ``PricingModel.quote_package``.

Invariants enforced:
    - Discount percentages are within [0, 100].
    - Extra environment counts are non-negative.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType

from studio_kernel.domain.budget import RoomSpec
from studio_kernel.domain.values import HUNDRED, ONE, ZERO, to_decimal

GOOD_RATE_FRACTION = Decimal("0.9")


class Modality(str, Enum):
    """How the initial survey of the site is done."""
    ONLINE = "online"
    PRESENCIAL = "presencial"


class PaymentType(str, Enum):
    CASH = "cash"
    INSTALLMENTS = "installments"
    CUSTOM = "custom"


class EfficiencyRating(str, Enum):
    """Hour rate of a package against the studio's reference rate."""
    OTIMO = "otimo"
    BOM = "bom"
    REAJUSTAR = "reajustar"

    @classmethod
    def classify(cls, hour_rate: Decimal, reference: Decimal) -> EfficiencyRating:
        if hour_rate >= reference:
            return cls.OTIMO
        if hour_rate >= reference * GOOD_RATE_FRACTION:
            return cls.BOM
        return cls.REAJUSTAR


@dataclass(frozen=True)
class PackageTier:
    """Fixed price and hour allowance of one package level."""
    price: Decimal
    hours: Decimal
    description: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "price", to_decimal(self.price))
        object.__setattr__(self, "hours", to_decimal(self.hours))


@dataclass(frozen=True)
class AreaBand:
    """Price and hours per m2 for areas in ``[minimum, maximum)``."""
    minimum: Decimal
    maximum: Decimal
    price_per_sqm: Decimal
    hours_per_sqm: Decimal

    def __post_init__(self) -> None:
        for name in ("minimum", "maximum", "price_per_sqm", "hours_per_sqm"):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))

    def contains(self, area: Decimal) -> bool:
        return self.minimum <= area < self.maximum


def _fee(price: object, hours: object) -> PackageTier:
    return PackageTier(to_decimal(price), to_decimal(hours))


DEFAULT_SURVEY_FEES: Mapping[Modality, PackageTier] = MappingProxyType({
    Modality.PRESENCIAL: _fee(1000, 4),
    Modality.ONLINE: _fee(0, 0),
})


@dataclass(frozen=True)
class PackageFees:
    """Fees and discounts shared by every package service."""
    survey: Mapping[Modality, PackageTier] = field(default_factory=lambda: DEFAULT_SURVEY_FEES)
    extra_environment: PackageTier = field(default_factory=lambda: _fee(1200, 8))
    management: PackageTier = field(default_factory=lambda: _fee(1500, 8))
    cash_discount_percent: Decimal = Decimal("10")
    reference_hour_rate: Decimal = Decimal("200")

    def survey_fee(self, modality: Modality) -> PackageTier:
        return self.survey.get(Modality(modality), _fee(0, 0))

    def default_discount(self, payment_type: PaymentType) -> Decimal:
        if PaymentType(payment_type) == PaymentType.CASH:
            return self.cash_discount_percent
        return ZERO


@dataclass(frozen=True)
class PackageRequest:
    """What the user picked in a package calculator.

    ``package`` is the tier level (``decor1``..``decor3``, ``prod1``,
    ``prod3``) for environment packages and the project type (``novo``,
    ``reforma``) for area-band packages.
    """
    service_id: str
    package: str
    environment_count: int = 1
    rooms: tuple[RoomSpec, ...] = ()
    area: Decimal = ZERO
    extra_environments: int = 0
    extra_environment_price: Decimal | None = None
    modality: Modality = Modality.ONLINE
    payment_type: PaymentType = PaymentType.INSTALLMENTS
    discount_percent: Decimal | None = None
    include_management: bool = False
    management_fee: Decimal | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "area", to_decimal(self.area))
        object.__setattr__(self, "rooms", tuple(self.rooms))
        object.__setattr__(self, "modality", Modality(self.modality))
        object.__setattr__(self, "payment_type", PaymentType(self.payment_type))
        for name in ("extra_environment_price", "discount_percent", "management_fee"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, to_decimal(value))
        if self.extra_environments < 0:
            raise ValueError(f"extra_environments must be non-negative, got {self.extra_environments}")
        if self.discount_percent is not None and not ZERO <= self.discount_percent <= HUNDRED:
            raise ValueError(f"discount_percent must be within 0..100, got {self.discount_percent}")


@dataclass(frozen=True)
class PackageBase:
    """Service-specific part of a package quote, before survey and discount."""
    base_price: Decimal
    base_hours: Decimal
    description: str
    environment_multiplier: Decimal = ONE
    extras_total: Decimal = ZERO
    extras_hours: Decimal = ZERO
    management_fee: Decimal = ZERO
    management_hours: Decimal = ZERO
    price_per_sqm: Decimal | None = None

    @property
    def price_before_extras(self) -> Decimal:
        return self.base_price * self.environment_multiplier


@dataclass(frozen=True)
class PackageQuote:
    """Outcome of one package calculation."""
    service_id: str
    description: str
    base_price: Decimal
    environment_multiplier: Decimal
    price_before_extras: Decimal
    extras_total: Decimal
    extras_hours: Decimal
    survey_fee: Decimal
    survey_hours: Decimal
    management_fee: Decimal
    management_hours: Decimal
    final_price: Decimal
    discount_percent: Decimal
    discount: Decimal
    price_with_discount: Decimal
    estimated_hours: Decimal
    hour_rate: Decimal
    efficiency: EfficiencyRating
    price_per_sqm: Decimal | None = None
    max_hours: Decimal | None = None

    @property
    def over_budget(self) -> bool:
        """True when the estimate needs more hours than the price pays for."""
        return self.max_hours is not None and self.estimated_hours > self.max_hours
