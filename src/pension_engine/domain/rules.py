"""Scheme-specific actuarial parameters."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_ACCRUAL_RATE: Final[Decimal] = Decimal("0.02")
DEFAULT_RETIREMENT_AGE: Final[int] = 65
DEFAULT_FULL_SERVICE_YEARS: Final[Decimal] = Decimal(40)
DEFAULT_PROJECTION_INTERVAL_MONTHS: Final[int] = 12
DEFAULT_CURRENCY: Final[str] = "EUR"


@dataclass(frozen=True, slots=True)
class SchemeRuleSet:
    """Rule parameters for one scheme, read-only for the rest of a request.

    ``retirement_age_factors`` maps a completed age at retirement to the
    multiplier applied to the accrued benefit. The entry for the highest age
    not above the participant's age applies; younger ages fall back to the
    lowest entry and an empty table means no adjustment.
    """

    scheme_id: str
    accrual_rate: Decimal = DEFAULT_ACCRUAL_RATE
    retirement_age: int = DEFAULT_RETIREMENT_AGE
    early_retirement_age: int | None = None
    retirement_age_factors: Mapping[int, Decimal] = field(default_factory=dict[int, Decimal])
    full_service_years: Decimal = DEFAULT_FULL_SERVICE_YEARS
    default_indexation_rate: Decimal = Decimal(0)
    projection_interval_months: int = DEFAULT_PROJECTION_INTERVAL_MONTHS
    currency: str = DEFAULT_CURRENCY

    @property
    def minimum_retirement_age(self) -> int:
        if self.early_retirement_age is None:
            return self.retirement_age
        return min(self.early_retirement_age, self.retirement_age)

    def retirement_factor(self, age: int | None) -> Decimal:
        table = self.retirement_age_factors
        if age is None or not table:
            return Decimal(1)
        reached = [entry for entry in table if entry <= age]
        return table[max(reached) if reached else min(table)]


def default_rule_set(scheme_id: str) -> SchemeRuleSet:
    """Rule set served for every scheme when no registry is configured."""

    return SchemeRuleSet(scheme_id=scheme_id)
