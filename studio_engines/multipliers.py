"""
Multiplier Tables -- complexity, finish, room-size and environment factors.

Responsibility:
    Static lookup tables the pricing model scales hours and prices by,
    plus the per-service room price tables used in room mode.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Every factor is a ``Decimal``.
    - Lookups never fall back silently: an unknown id raises
      ``UnknownFactorError`` naming the table.

Usage:
    tables = MultiplierTables()
    tables.complexity_factor("complexo")          # Decimal("1.3")
    tables.room_price("interiores", "M")          # Decimal("4000")
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType

from studio_kernel.domain.budget import RoomSpec
from studio_kernel.domain.values import ONE, ZERO
from studio_kernel.exceptions import UnknownFactorError


def _frozen(table: Mapping[str, object]) -> Mapping[str, Decimal]:
    return MappingProxyType({k: Decimal(str(v)) for k, v in table.items()})


DEFAULT_COMPLEXITY = _frozen({
    "simples": "0.8",
    "padrao": "1.0",
    "complexo": "1.3",
    "muito_complexo": "1.5",
})

DEFAULT_FINISH = _frozen({
    "economico": "0.9",
    "padrao": "1.0",
    "alto_padrao": "1.2",
    "luxo": "1.4",
})

DEFAULT_ROOM_SIZE = _frozen({
    "P": "1.0",
    "M": "1.1",
    "G": "1.15",
})

DEFAULT_ENVIRONMENT_TYPE = _frozen({
    "standard": "1.0",
    "medium": "1.25",
    "high": "1.4",
})

DEFAULT_ROOM_PRICES: Mapping[str, Mapping[str, Decimal]] = MappingProxyType({
    "interiores": _frozen({"P": "2500", "M": "4000", "G": "6000"}),
    "decoracao": _frozen({"P": "1500", "M": "2500", "G": "4000"}),
})


@dataclass(frozen=True)
class MultiplierTables:
    """Factor tables consulted by the pricing model.

    Any table can be replaced wholesale, typically from YAML via
    ``studio_config``.
    """
    complexity: Mapping[str, Decimal] = field(default_factory=lambda: DEFAULT_COMPLEXITY)
    finish: Mapping[str, Decimal] = field(default_factory=lambda: DEFAULT_FINISH)
    room_size: Mapping[str, Decimal] = field(default_factory=lambda: DEFAULT_ROOM_SIZE)
    environment_type: Mapping[str, Decimal] = field(
        default_factory=lambda: DEFAULT_ENVIRONMENT_TYPE
    )
    room_prices: Mapping[str, Mapping[str, Decimal]] = field(
        default_factory=lambda: DEFAULT_ROOM_PRICES
    )

    @staticmethod
    def _lookup(table: Mapping[str, Decimal], name: str, key: str) -> Decimal:
        try:
            return table[key]
        except KeyError:
            raise UnknownFactorError(name, key) from None

    def complexity_factor(self, complexity_id: str) -> Decimal:
        return self._lookup(self.complexity, "complexity", complexity_id)

    def finish_factor(self, finish_id: str) -> Decimal:
        return self._lookup(self.finish, "finish", finish_id)

    def size_factor(self, size: str) -> Decimal:
        return self._lookup(self.room_size, "room_size", size)

    def environment_factor(self, environment_type: str) -> Decimal:
        return self._lookup(self.environment_type, "environment_type", environment_type)

    def room_price_table(self, service_id: str) -> Mapping[str, Decimal]:
        """Room prices for a service; empty when it is not priced by room."""
        return self.room_prices.get(service_id, MappingProxyType({}))

    def room_price(self, service_id: str, size: str) -> Decimal:
        table = self.room_price_table(service_id)
        if not table:
            return ZERO
        return self._lookup(table, f"room_price[{service_id}]", size)

    def average_environment_multiplier(self, rooms: Sequence[RoomSpec]) -> Decimal:
        """Mean of ``size x environment type`` factors; 1 for no rooms."""
        if not rooms:
            return ONE
        total = sum(
            (self.size_factor(r.size) * self.environment_factor(r.environment_type)
             for r in rooms),
            ZERO,
        )
        return total / Decimal(len(rooms))

    def with_overrides(self, **tables: Mapping[str, object]) -> MultiplierTables:
        """Copy with the named tables replaced wholesale."""
        current = {
            "complexity": self.complexity,
            "finish": self.finish,
            "room_size": self.room_size,
            "environment_type": self.environment_type,
        }
        for name, table in tables.items():
            if name == "room_prices":
                continue
            if name not in current:
                raise ValueError(f"Unknown multiplier table: {name}")
            current[name] = _frozen(table)
        room_prices = self.room_prices
        if "room_prices" in tables:
            room_prices = MappingProxyType({
                svc: _frozen(prices) for svc, prices in tables["room_prices"].items()
            })
        return MultiplierTables(room_prices=room_prices, **current)
