"""
Pricing Strategies -- per-service pricing behaviour selected by lookup.

Responsibility:
    One ``ServicePricingStrategy`` per service id describing what differs
    between services: which calculation modes the service offers, the
    project-code prefix its projects get and the room price table that
    room-mode pricing sums.  Package services subclass it with their own
    tables: ``EnvironmentPackageStrategy`` (tiers by environment count and
    level) and ``AreaBandStrategy`` (price per m2 bands).
    ``PricingStrategyRegistry`` maps service ids to strategies so the
    pricing model never branches on a service id.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - One strategy per service id; registering twice raises ``ValueError``
      unless ``replace=True``.
    - ``resolve`` never fails: unregistered service ids get an area-only
      generic strategy whose prefix derives from the id.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType

from studio_kernel.domain.budget import CalcMode, RoomSpec
from studio_kernel.domain.values import ZERO
from studio_kernel.exceptions import (
    InvalidPackageError,
    PricingStrategyNotFoundError,
    UnknownFactorError,
)
from studio_kernel.logging_config import get_logger
from studio_engines.multipliers import MultiplierTables
from studio_engines.packages import AreaBand, PackageBase, PackageFees, PackageRequest, PackageTier

logger = get_logger("engines.pricing_strategies")


@dataclass(frozen=True)
class ServicePricingStrategy:
    """Pricing behaviour of one service.

    ``room_prices`` set on the strategy wins over the table of the same
    service in ``MultiplierTables``.
    """
    service_id: str
    name: str
    code_prefix: str
    calc_modes: tuple[CalcMode, ...] = (CalcMode.AREA,)
    room_prices: Mapping[str, Decimal] | None = None

    def supports(self, mode: CalcMode) -> bool:
        return mode in self.calc_modes

    def price_table(self, tables: MultiplierTables) -> Mapping[str, Decimal]:
        if self.room_prices is not None:
            return self.room_prices
        return tables.room_price_table(self.service_id)

    def base_value(self, rooms: Sequence[RoomSpec], tables: MultiplierTables) -> Decimal:
        """Sum of room prices by size; 0 when the service has no table."""
        table = self.price_table(tables)
        if not table:
            return ZERO
        total = ZERO
        for room in rooms:
            try:
                total += table[room.size]
            except KeyError:
                raise UnknownFactorError(f"room_price[{self.service_id}]", room.size) from None
        return total

    def package_base(
        self, request: PackageRequest, tables: MultiplierTables, fees: PackageFees,
    ) -> PackageBase:
        """Package price and hours; plain services are not sold as packages."""
        raise InvalidPackageError(self.service_id, "service", self.service_id)


@dataclass(frozen=True)
class EnvironmentPackageStrategy(ServicePricingStrategy):
    """Fixed packages indexed by environment count, then package level.

    The tier price is scaled by the mean ``size x environment type`` factor
    of the configured rooms; extra environments are billed per unit on top.
    """
    tiers: Mapping[int, Mapping[str, PackageTier]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def tier(self, environment_count: int, package: str) -> PackageTier:
        levels = self.tiers.get(environment_count)
        if levels is None:
            raise InvalidPackageError(self.service_id, "environment_count", environment_count)
        try:
            return levels[package]
        except KeyError:
            raise InvalidPackageError(self.service_id, "package", package) from None

    def package_base(
        self, request: PackageRequest, tables: MultiplierTables, fees: PackageFees,
    ) -> PackageBase:
        tier = self.tier(request.environment_count, request.package)
        unit_price = request.extra_environment_price
        if unit_price is None:
            unit_price = fees.extra_environment.price
        extras = Decimal(request.extra_environments)
        return PackageBase(
            base_price=tier.price,
            base_hours=tier.hours,
            description=tier.description,
            environment_multiplier=tables.average_environment_multiplier(request.rooms),
            extras_total=extras * unit_price,
            extras_hours=extras * fees.extra_environment.hours,
        )


@dataclass(frozen=True)
class AreaBandStrategy(ServicePricingStrategy):
    """Price and hours per m2, from the band of the project type holding the area."""
    bands: Mapping[str, tuple[AreaBand, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    labels: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def band(self, project_type: str, area: Decimal) -> AreaBand:
        """Band holding ``area``; the top band also takes its own upper bound."""
        bands = self.bands.get(project_type)
        if not bands:
            raise InvalidPackageError(self.service_id, "package", project_type)
        for band in bands:
            if band.contains(area):
                return band
        if area == bands[-1].maximum:
            return bands[-1]
        raise InvalidPackageError(self.service_id, "area", str(area))

    def package_base(
        self, request: PackageRequest, tables: MultiplierTables, fees: PackageFees,
    ) -> PackageBase:
        band = self.band(request.package, request.area)
        management_fee = management_hours = ZERO
        if request.include_management:
            management_fee = request.management_fee
            if management_fee is None:
                management_fee = fees.management.price
            management_hours = fees.management.hours
        label = self.labels.get(request.package, request.package)
        return PackageBase(
            base_price=band.price_per_sqm * request.area,
            base_hours=band.hours_per_sqm * request.area,
            description=f"{label} - {request.area:f}m²",
            management_fee=management_fee,
            management_hours=management_hours,
            price_per_sqm=band.price_per_sqm,
        )


def generic_strategy(service_id: str) -> ServicePricingStrategy:
    """Area-only strategy for services without a registered one."""
    prefix = (service_id[:3] or "PRJ").upper()
    return ServicePricingStrategy(service_id=service_id, name=service_id, code_prefix=prefix)


def _levels(**tiers: tuple[object, object, str]) -> Mapping[str, PackageTier]:
    return MappingProxyType({k: PackageTier(*v) for k, v in tiers.items()})


_SIMPLE = "Decoração Simples"
_JOINERY = "Decoração + Marcenaria/Iluminação"
_FULL = "Decoração + Civil + Marcenaria + Iluminação"

DECOREXPRESS_TIERS: Mapping[int, Mapping[str, PackageTier]] = MappingProxyType({
    1: _levels(decor1=(1600, 8, _SIMPLE), decor2=(2000, 10, _JOINERY), decor3=(2400, 12, _FULL)),
    2: _levels(decor1=(2900, "14.5", _SIMPLE), decor2=(3450, "17.25", _JOINERY), decor3=(4000, 20, _FULL)),
    3: _levels(decor1=(4000, 20, _SIMPLE), decor2=(4800, 24, _JOINERY), decor3=(5600, 28, _FULL)),
})

PRODUCAO_TIERS: Mapping[int, Mapping[str, PackageTier]] = MappingProxyType({
    1: _levels(prod1=(1600, 8, "Produção Simples"), prod3=(2400, 12, "Produção Completa")),
    2: _levels(prod1=(2900, "14.5", "Produção Simples"), prod3=(4000, 20, "Produção Completa")),
    3: _levels(prod1=(4000, 20, "Produção Simples"), prod3=(5600, 28, "Produção Completa")),
})


def _bands(*rows: tuple[int, int, int, str]) -> tuple[AreaBand, ...]:
    return tuple(AreaBand(lo, hi, price, hours) for lo, hi, price, hours in rows)


PROJETEXPRESS_BANDS: Mapping[str, tuple[AreaBand, ...]] = MappingProxyType({
    "novo": _bands(
        (20, 50, 150, "1.5"),
        (50, 100, 145, "1.45"),
        (100, 150, 135, "1.35"),
        (150, 200, 125, "1.25"),
        (200, 300, 120, "1.2"),
    ),
    "reforma": _bands(
        (20, 50, 180, "1.8"),
        (50, 100, 160, "1.6"),
        (100, 150, 150, "1.5"),
        (150, 200, 140, "1.4"),
        (200, 300, 130, "1.3"),
    ),
})

BUILTIN_STRATEGIES: tuple[ServicePricingStrategy, ...] = (
    ServicePricingStrategy("arquitetonico", "Projeto Arquitetônico", "ARQ"),
    ServicePricingStrategy(
        "interiores", "Projeto de Interiores", "INT",
        calc_modes=(CalcMode.AREA, CalcMode.ROOM),
    ),
    ServicePricingStrategy(
        "decoracao", "Decoração", "DEC",
        calc_modes=(CalcMode.AREA, CalcMode.ROOM),
    ),
    ServicePricingStrategy("reforma", "Reforma", "REF"),
    ServicePricingStrategy("comercial", "Comercial", "COM"),
    EnvironmentPackageStrategy(
        "decorexpress", "DecorExpress", "DEX",
        calc_modes=(CalcMode.ROOM,),
        tiers=DECOREXPRESS_TIERS,
    ),
    EnvironmentPackageStrategy(
        "producao", "Produção", "PRO",
        calc_modes=(CalcMode.ROOM,),
        tiers=PRODUCAO_TIERS,
    ),
    AreaBandStrategy(
        "projetexpress", "ProjetExpress", "PEX",
        bands=PROJETEXPRESS_BANDS,
        labels=MappingProxyType({"novo": "Apartamento NOVO", "reforma": "Apartamento REFORMA"}),
    ),
)


class PricingStrategyRegistry:
    """Service id -> pricing strategy dispatch."""

    def __init__(self, strategies: Iterable[ServicePricingStrategy] = ()):
        self._strategies: dict[str, ServicePricingStrategy] = {}
        for strategy in strategies:
            self.register(strategy)

    @classmethod
    def with_builtins(cls) -> PricingStrategyRegistry:
        return cls(BUILTIN_STRATEGIES)

    def register(self, strategy: ServicePricingStrategy, *, replace: bool = False) -> None:
        if not strategy.calc_modes:
            raise ValueError(f"Strategy {strategy.service_id} offers no calculation mode")
        existing = self._strategies.get(strategy.service_id)
        if existing is not None and not replace:
            raise ValueError(
                f"Strategy already registered for {strategy.service_id}: {existing.name}"
            )
        self._strategies[strategy.service_id] = strategy
        logger.debug("pricing_strategy_registered", extra={
            "service_id": strategy.service_id,
            "code_prefix": strategy.code_prefix,
        })

    def get(self, service_id: str) -> ServicePricingStrategy:
        try:
            return self._strategies[service_id]
        except KeyError:
            raise PricingStrategyNotFoundError(service_id) from None

    def resolve(self, service_id: str) -> ServicePricingStrategy:
        """Registered strategy, else the generic area-only one."""
        strategy = self._strategies.get(service_id)
        if strategy is None:
            return generic_strategy(service_id)
        return strategy

    def has_strategy(self, service_id: str) -> bool:
        return service_id in self._strategies

    def list_services(self) -> list[str]:
        return sorted(self._strategies)
