"""
Payment Split Generator -- installments for an approved budget.

Responsibility:
    Map a total value, a payment-terms id and a start date to the ordered
    list of installments the client pays.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - One installment per fraction of the terms; labels ``i/N``.
    - Due date of installment ``i`` (0-based) is ``start + i x interval``.
    - The first installment is ``paid`` (it is the signing payment), the
      rest are ``pending``.
    - Values are rounded to cents; the last installment carries the
      rounding residual so the values sum to exactly
      ``round(total x sum(fractions))``.

Terms table:
    50_50     [0.5, 0.5]
    30_30_40  [0.3, 0.3, 0.4]
    40_30_30  [0.4, 0.3, 0.3]
    a_vista   [0.95]   single payment with 5% off; logged as a warning
    other     [0.5, 0.5]
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from studio_kernel.domain.budget import PaymentTerms
from studio_kernel.domain.project import InstallmentStatus
from studio_kernel.domain.values import HUNDRED, ZERO, round_money, to_decimal
from studio_kernel.logging_config import get_logger
from studio_engines.tracer import traced_engine

logger = get_logger("engines.payment_split")

DEFAULT_INTERVAL_DAYS = 30

_HALF = Decimal("0.5")

PAYMENT_FRACTIONS: dict[str, tuple[Decimal, ...]] = {
    PaymentTerms.FIFTY_FIFTY.value: (_HALF, _HALF),
    PaymentTerms.THIRTY_THIRTY_FORTY.value: (Decimal("0.3"), Decimal("0.3"), Decimal("0.4")),
    PaymentTerms.FORTY_THIRTY_THIRTY.value: (Decimal("0.4"), Decimal("0.3"), Decimal("0.3")),
    PaymentTerms.A_VISTA.value: (Decimal("0.95"),),
}
DEFAULT_FRACTIONS: tuple[Decimal, ...] = (_HALF, _HALF)


def terms_key(terms: PaymentTerms | str) -> str:
    return terms.value if isinstance(terms, PaymentTerms) else str(terms)


def fractions_for(terms: PaymentTerms | str) -> tuple[Decimal, ...]:
    """Fractions for a terms id; unknown ids (incl. custom) fall back to 50/50."""
    return PAYMENT_FRACTIONS.get(terms_key(terms), DEFAULT_FRACTIONS)


@dataclass(frozen=True)
class Installment:
    """One scheduled payment."""
    index: int
    count: int
    fraction: Decimal
    value: Decimal
    due_date: date
    status: InstallmentStatus

    @property
    def label(self) -> str:
        return f"{self.index + 1}/{self.count}"

    @property
    def percent(self) -> Decimal:
        return (self.fraction * HUNDRED).quantize(Decimal("1"))

    def describe(self, project_code: str) -> str:
        return f"{project_code} - Parcela {self.label} ({self.percent}%)"


class PaymentSplitGenerator:
    """Deterministic installment generator."""

    def __init__(self, interval_days: int = DEFAULT_INTERVAL_DAYS):
        if interval_days < 0:
            raise ValueError(f"interval_days must be non-negative, got {interval_days}")
        self.interval_days = interval_days

    @traced_engine("payment_split", "1.0", fingerprint_fields=("total_value", "terms", "start_date"))
    def generate(
        self,
        *,
        total_value: Decimal,
        terms: PaymentTerms | str,
        start_date: date,
    ) -> tuple[Installment, ...]:
        total = to_decimal(total_value)
        fractions = fractions_for(terms)
        target = round_money(total * sum(fractions, ZERO))

        if terms_key(terms) == PaymentTerms.A_VISTA.value:
            logger.warning("payment_split_discounted_single_installment", extra={
                "total_value": str(total),
                "billed_value": str(target),
            })

        count = len(fractions)
        installments: list[Installment] = []
        allocated = ZERO
        for index, fraction in enumerate(fractions):
            if index == count - 1:
                value = target - allocated
            else:
                value = round_money(total * fraction)
            allocated += value
            installments.append(
                Installment(
                    index=index,
                    count=count,
                    fraction=fraction,
                    value=value,
                    due_date=start_date + timedelta(days=index * self.interval_days),
                    status=InstallmentStatus.PAID if index == 0 else InstallmentStatus.PENDING,
                )
            )

        logger.info("payment_split_generated", extra={
            "terms": terms_key(terms),
            "installment_count": count,
            "billed_value": str(target),
        })
        return tuple(installments)
