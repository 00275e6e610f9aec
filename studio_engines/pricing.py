"""
Pricing Model -- hours, cost, reference tiers and final price for a service.

Responsibility:
    Turn a service configuration (area or room list, complexity, finish),
    the office's blended hourly cost and margin, and the service's
    resolved template into estimated hours, cost, the three reference
    price tiers, the final price and its health classification.
    Package services (DecorExpress, Produção, ProjetExpress) are quoted by
    ``quote_package`` from their strategy's tables plus the shared fees,
    discount and hour-rate rating of ``studio_engines.packages``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Per-service behaviour
    (room price tables, code prefixes, offered modes) comes from
    ``studio_engines.pricing_strategies``; factors from
    ``studio_engines.multipliers``.

Invariants enforced:
    - ``final_value >= 2 x cost_value`` for every computable input.
    - In room mode ``base_value`` is the plain sum of room prices by size
      before the finish factor (unless environment multipliers are
      switched on explicitly).
    - Hours are rounded half-up to whole hours; money to cents, half-up.

Failure modes:
    - ``None`` is returned (not raised) when the quote is not computable
      yet: no service id, a non-positive area in area mode, or an empty
      room list in room mode.
    - ``UnknownFactorError`` for a complexity, finish or room size id that
      is not in its table.

Usage:
    model = PricingModel()
    result = model.calculate(
        request=PricingRequest(service_id="arquitetonico", area=Decimal("120")),
        template=registry.resolve("arquitetonico"),
        hourly_cost=office.hourly_cost,
        margin=office.margin,
    )
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from studio_kernel.domain.budget import CalcMode, RoomSpec
from studio_kernel.domain.templates import ServiceTemplate, total_hours
from studio_kernel.domain.values import (
    HUNDRED,
    ONE,
    ZERO,
    round_hours,
    round_money,
    round_ratio,
    to_decimal,
)
from studio_kernel.logging_config import get_logger
from studio_engines.multipliers import MultiplierTables
from studio_engines.packages import EfficiencyRating, PackageFees, PackageQuote, PackageRequest
from studio_engines.pricing_strategies import PricingStrategyRegistry
from studio_engines.tracer import traced_engine

logger = get_logger("engines.pricing")

MIN_MULTIPLIER = Decimal("2")
ADEQUATE_MULTIPLIER = Decimal("2.5")
IDEAL_MULTIPLIER = Decimal("3")


class HealthStatus(str, Enum):
    """Price-to-cost classification used to flag underpriced work."""
    DANGER = "danger"
    WARNING = "warning"
    GOOD = "good"

    @classmethod
    def classify(cls, multiplier: Decimal) -> HealthStatus:
        if multiplier < MIN_MULTIPLIER:
            return cls.DANGER
        if multiplier < ADEQUATE_MULTIPLIER:
            return cls.WARNING
        return cls.GOOD


@dataclass(frozen=True)
class PricingRequest:
    """What the user typed into the calculator."""
    service_id: str
    calc_mode: CalcMode = CalcMode.AREA
    area: Decimal = ZERO
    rooms: tuple[RoomSpec, ...] = ()
    complexity: str = "padrao"
    finish: str = "padrao"

    def __post_init__(self) -> None:
        object.__setattr__(self, "area", to_decimal(self.area))
        object.__setattr__(self, "calc_mode", CalcMode(self.calc_mode))
        object.__setattr__(self, "rooms", tuple(self.rooms))


@dataclass(frozen=True)
class PriceTiers:
    """Reference prices at 2x, 2.5x and 3x cost."""
    minimum: Decimal
    adequate: Decimal
    ideal: Decimal


@dataclass(frozen=True)
class PricingResult:
    """Outcome of one pricing calculation."""
    service_id: str
    calc_mode: CalcMode
    base_hours: int
    estimated_hours: int
    hourly_cost: Decimal
    cost_value: Decimal
    tiers: PriceTiers
    base_value: Decimal
    final_value: Decimal
    profit: Decimal
    hourly_rate: Decimal
    price_multiplier: Decimal
    health_status: HealthStatus
    sqm_price: Decimal
    complexity_factor: Decimal
    finish_factor: Decimal
    environment_multiplier: Decimal = ONE

    @property
    def margin_percent(self) -> Decimal:
        """Profit as a percentage of the final value; 0 for a zero price."""
        if self.final_value == ZERO:
            return ZERO
        return round_ratio(self.profit / self.final_value * HUNDRED)


class PricingModel:
    """
    Pure pricing calculator.

    Contract:
        ``calculate`` is deterministic for identical inputs and never reads
        the clock or any storage.

    Non-goals:
        Does not resolve templates or office data; callers pass both in.
    """

    def __init__(
        self,
        tables: MultiplierTables | None = None,
        strategies: PricingStrategyRegistry | None = None,
        *,
        apply_environment_multipliers: bool = False,
        fees: PackageFees | None = None,
    ):
        self._tables = tables or MultiplierTables()
        self._strategies = strategies or PricingStrategyRegistry.with_builtins()
        self._apply_environment = apply_environment_multipliers
        self._fees = fees or PackageFees()

    @property
    def tables(self) -> MultiplierTables:
        return self._tables

    @property
    def strategies(self) -> PricingStrategyRegistry:
        return self._strategies

    @property
    def fees(self) -> PackageFees:
        return self._fees

    @staticmethod
    def is_computable(request: PricingRequest) -> bool:
        if not request.service_id:
            return False
        if request.calc_mode == CalcMode.ROOM:
            return len(request.rooms) > 0
        return request.area > ZERO

    @traced_engine("pricing", "1.0", fingerprint_fields=("request", "hourly_cost", "margin"))
    def calculate(
        self,
        *,
        request: PricingRequest,
        template: ServiceTemplate,
        hourly_cost: Decimal,
        margin: Decimal,
    ) -> PricingResult | None:
        """
        Price one service configuration.

        Formula:
            area mode  hours = round(base_hours x area / base_area x complexity)
            room mode  hours = round(rooms x base_hours / base_rooms x complexity)
            cost = hours x hourly_cost
            final = max(min_tier, base_value x finish)          room mode, base_value > 0
                    max(min_tier, cost x (1 + margin%) x finish) otherwise

        Returns:
            ``PricingResult``, or ``None`` when the request is not computable.
        """
        if not self.is_computable(request):
            logger.debug("pricing_not_computable", extra={
                "service_id": request.service_id,
                "calc_mode": request.calc_mode.value,
            })
            return None

        strategy = self._strategies.resolve(request.service_id)
        if not strategy.supports(request.calc_mode):
            logger.warning("pricing_mode_not_offered", extra={
                "service_id": request.service_id,
                "calc_mode": request.calc_mode.value,
            })

        hourly_cost = to_decimal(hourly_cost)
        margin = to_decimal(margin)
        complexity = self._tables.complexity_factor(request.complexity)
        finish = self._tables.finish_factor(request.finish)

        base_hours = total_hours(template)
        is_room = request.calc_mode == CalcMode.ROOM

        if is_room:
            hours = self._room_hours(len(request.rooms), base_hours, template, complexity)
            base_value = strategy.base_value(request.rooms, self._tables)
            environment = ONE
            if self._apply_environment:
                environment = self._tables.average_environment_multiplier(request.rooms)
                base_value = base_value * environment
        else:
            hours = self._area_hours(request.area, base_hours, template, complexity)
            base_value = ZERO
            environment = ONE

        cost = round_money(Decimal(hours) * hourly_cost)
        tiers = PriceTiers(
            minimum=round_money(cost * MIN_MULTIPLIER),
            adequate=round_money(cost * ADEQUATE_MULTIPLIER),
            ideal=round_money(cost * IDEAL_MULTIPLIER),
        )

        if is_room and base_value > ZERO:
            final = round_money(base_value * finish)
        else:
            final = round_money(cost * (ONE + margin / HUNDRED) * finish)
        floored = final < tiers.minimum
        final = max(final, tiers.minimum)

        multiplier = final / cost if cost > ZERO else ZERO
        result = PricingResult(
            service_id=request.service_id,
            calc_mode=request.calc_mode,
            base_hours=base_hours,
            estimated_hours=hours,
            hourly_cost=hourly_cost,
            cost_value=cost,
            tiers=tiers,
            base_value=round_money(base_value),
            final_value=final,
            profit=final - cost,
            hourly_rate=round_money(final / Decimal(hours)) if hours > 0 else ZERO,
            price_multiplier=round_ratio(multiplier),
            health_status=HealthStatus.classify(multiplier),
            sqm_price=round_money(final / request.area) if not is_room else ZERO,
            complexity_factor=complexity,
            finish_factor=finish,
            environment_multiplier=round_ratio(environment),
        )

        logger.info("pricing_calculated", extra={
            "service_id": result.service_id,
            "calc_mode": result.calc_mode.value,
            "estimated_hours": result.estimated_hours,
            "cost_value": str(result.cost_value),
            "final_value": str(result.final_value),
            "health_status": result.health_status.value,
            "floor_applied": floored,
        })
        return result

    @traced_engine("package_pricing", "1.0", fingerprint_fields=("request", "hourly_cost"))
    def quote_package(
        self,
        *,
        request: PackageRequest,
        hourly_cost: Decimal | None = None,
    ) -> PackageQuote:
        """
        Price one package service.

        Formula:
            final    = base_price x environment_multiplier + extras + survey + management
            discount = final x discount%      (cash payments default to the cash discount)
            hours    = base_hours + extra hours + survey hours + management hours
            rate     = (final - discount) / hours

        ``hourly_cost`` (the office's) adds ``max_hours``: the hours the
        discounted price pays for before the package runs at a loss.

        Raises:
            ``InvalidPackageError`` for a service without packages, or an
            environment count, level, project type or area with no entry.
        """
        strategy = self._strategies.resolve(request.service_id)
        base = strategy.package_base(request, self._tables, self._fees)
        survey = self._fees.survey_fee(request.modality)

        final = round_money(
            base.price_before_extras + base.extras_total + survey.price + base.management_fee
        )
        discount_percent = request.discount_percent
        if discount_percent is None:
            discount_percent = self._fees.default_discount(request.payment_type)
        discount = round_money(final * discount_percent / HUNDRED)
        discounted = final - discount

        hours = round_money(
            base.base_hours + base.extras_hours + survey.hours + base.management_hours
        )
        hour_rate = round_money(discounted / hours) if hours > ZERO else ZERO
        max_hours = None
        if hourly_cost is not None and to_decimal(hourly_cost) > ZERO:
            max_hours = round_money(discounted / to_decimal(hourly_cost))

        quote = PackageQuote(
            service_id=request.service_id,
            description=base.description,
            base_price=round_money(base.base_price),
            environment_multiplier=round_ratio(base.environment_multiplier),
            price_before_extras=round_money(base.price_before_extras),
            extras_total=round_money(base.extras_total),
            extras_hours=base.extras_hours,
            survey_fee=survey.price,
            survey_hours=survey.hours,
            management_fee=round_money(base.management_fee),
            management_hours=base.management_hours,
            final_price=final,
            discount_percent=discount_percent,
            discount=discount,
            price_with_discount=discounted,
            estimated_hours=hours,
            hour_rate=hour_rate,
            efficiency=EfficiencyRating.classify(hour_rate, self._fees.reference_hour_rate),
            price_per_sqm=base.price_per_sqm,
            max_hours=max_hours,
        )

        logger.info("package_quoted", extra={
            "service_id": quote.service_id,
            "package": request.package,
            "final_price": str(quote.final_price),
            "price_with_discount": str(quote.price_with_discount),
            "estimated_hours": str(quote.estimated_hours),
            "efficiency": quote.efficiency.value,
            "over_budget": quote.over_budget,
        })
        return quote

    @staticmethod
    def _area_hours(
        area: Decimal, base_hours: int, template: ServiceTemplate, complexity: Decimal,
    ) -> int:
        base_area = Decimal(template.base_ref.area)
        if base_area <= ZERO:
            return 0
        return round_hours(Decimal(base_hours) * (area / base_area) * complexity)

    @staticmethod
    def _room_hours(
        room_count: int, base_hours: int, template: ServiceTemplate, complexity: Decimal,
    ) -> int:
        base_rooms = Decimal(template.base_ref.rooms)
        if base_rooms <= ZERO:
            return 0
        return round_hours(Decimal(room_count) * (Decimal(base_hours) / base_rooms) * complexity)
