"""
Office profile value objects (``studio_kernel.domain.office``).

Responsibility
--------------
Team roster, fixed monthly costs and margin of a design office, and the
derivation of the blended hourly cost that every price is built on.

Invariants enforced
-------------------
* ``hourly = (salaries + fixed costs) / member hours``; 0 when the team
  reports no hours.
* All monetary fields are ``Decimal``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from studio_kernel.domain.values import ZERO, to_decimal


@dataclass(frozen=True)
class RoleDefault:
    """Default salary and monthly hours for a team role."""
    name: str
    salary: Decimal
    hours: int


ROLE_DEFAULTS: dict[str, RoleDefault] = {
    "empreendedor": RoleDefault("Sócio", Decimal("10000"), 160),
    "coordenador": RoleDefault("Coordenador", Decimal("10000"), 160),
    "senior": RoleDefault("Arq. Sênior", Decimal("7000"), 160),
    "pleno": RoleDefault("Arq. Pleno", Decimal("3500"), 160),
    "junior": RoleDefault("Arq. Júnior", Decimal("2000"), 160),
    "estagiario": RoleDefault("Estagiário", Decimal("1200"), 120),
    "administrativo": RoleDefault("Administrativo", Decimal("2500"), 160),
    "freelancer": RoleDefault("Freelancer", Decimal("0"), 0),
}


@dataclass(frozen=True)
class TeamMember:
    """A team member with monthly salary and monthly hours."""
    name: str
    role: str
    salary: Decimal
    hours: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "salary", to_decimal(self.salary))
        if self.salary < 0:
            raise ValueError(f"salary must be non-negative for {self.name}")
        if self.hours < 0:
            raise ValueError(f"hours must be non-negative for {self.name}")

    @classmethod
    def from_role(cls, name: str, role: str) -> TeamMember:
        """Build a member using the role's default salary and hours."""
        try:
            default = ROLE_DEFAULTS[role]
        except KeyError:
            raise ValueError(f"Unknown role: {role!r}") from None
        return cls(name=name, role=role, salary=default.salary, hours=default.hours)


@dataclass(frozen=True)
class FixedCost:
    """A recurring monthly cost line (rent, software, accountant...)."""
    label: str
    amount: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))


@dataclass(frozen=True)
class OfficeTotals:
    """Monthly totals derived from an office profile."""
    costs: Decimal
    salaries: Decimal
    hours: int
    monthly: Decimal
    hourly: Decimal


@dataclass(frozen=True)
class OfficeProfile:
    """Read-only snapshot of an office as seen by the pricing engine."""
    name: str = ""
    size: str = ""
    team: tuple[TeamMember, ...] = ()
    fixed_costs: tuple[FixedCost, ...] = ()
    services: tuple[str, ...] = ()
    margin: Decimal = Decimal("30")

    def __post_init__(self) -> None:
        object.__setattr__(self, "margin", to_decimal(self.margin))

    def totals(self) -> OfficeTotals:
        costs = sum((c.amount for c in self.fixed_costs), ZERO)
        salaries = sum((m.salary for m in self.team), ZERO)
        hours = sum(m.hours for m in self.team)
        monthly = costs + salaries
        hourly = monthly / Decimal(hours) if hours > 0 else ZERO
        return OfficeTotals(
            costs=costs,
            salaries=salaries,
            hours=hours,
            monthly=monthly,
            hourly=hourly,
        )

    @property
    def hourly_cost(self) -> Decimal:
        return self.totals().hourly


def default_office() -> OfficeProfile:
    """The single-owner office a new account starts with."""
    return OfficeProfile(
        team=(TeamMember.from_role("Titular", "empreendedor"),),
        fixed_costs=tuple(
            FixedCost(label, Decimal("0"))
            for label in (
                "rent", "utilities", "software", "marketing",
                "accountant", "internet", "others",
            )
        ),
    )
