"""Benefit arithmetic shared by the retirement and projection handlers.

Everything here is pure and works on ``Decimal`` so identical inputs always
produce bit-identical amounts.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_EVEN, Decimal
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from .model import Policy
    from .rules import SchemeRuleSet

DAYS_PER_YEAR: Final[Decimal] = Decimal("365.25")
CENT: Final[Decimal] = Decimal("0.01")


def years_between(start: date, end: date) -> Decimal:
    """Years of service from ``start`` to ``end``, never negative."""

    days = Decimal((end - start).days)
    return max(Decimal(0), days / DAYS_PER_YEAR)


def completed_age(birth_date: date, at: date) -> int:
    before_birthday = (at.month, at.day) < (birth_date.month, birth_date.day)
    return at.year - birth_date.year - int(before_birthday)


def add_months(value: date, months: int) -> date:
    """Shift ``value`` by ``months``, clamping to the last day of the target month."""

    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def date_at_age(birth_date: date, age: int) -> date:
    return add_months(birth_date, 12 * age)


def round_amount(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_EVEN)


def projection_dates(
    start: date,
    *,
    interval_months: int,
    end: date | None = None,
    count: int | None = None,
) -> tuple[date, ...]:
    """Return ascending dates from ``start`` every ``interval_months``.

    Exactly one of ``end`` (inclusive) or ``count`` bounds the sequence. Each
    date steps from its predecessor, so a day clamped to a shorter month stays
    clamped: monthly from Jan 31 gives Feb 28, then Mar 28.
    """

    if interval_months <= 0:
        raise ValueError("projection interval must be a positive number of months")
    if (end is None) == (count is None):
        raise ValueError("exactly one of end or count is required")

    dates: list[date] = []
    current = start
    while (count is not None and len(dates) < count) or (end is not None and current <= end):
        dates.append(current)
        current = add_months(current, interval_months)
    return tuple(dates)


@dataclass(frozen=True, slots=True)
class PolicyBenefit:
    policy_id: str
    scheme_id: str
    years_of_service: Decimal
    reference_salary: Decimal
    accrual_rate: Decimal
    retirement_factor: Decimal
    amount: Decimal


def reference_salary(
    policies: Iterable[Policy],
    *,
    at: date,
    salaries: Mapping[str, Decimal] | None = None,
) -> Decimal:
    """Service-weighted average of the part-time adjusted salaries on ``at``.

    sum(salary x part-time factor x years) / sum(years) over ``policies``, with
    ``salaries`` overriding individual policy salaries by policy id. Policies
    that have not started by ``at`` carry no weight; zero when none has.
    """

    weighted = Decimal(0)
    total_years = Decimal(0)
    for policy in policies:
        years = years_between(policy.employment_start_date, at)
        salary = policy.salary if salaries is None else salaries[policy.policy_id]
        weighted += salary * policy.part_time_factor * years
        total_years += years
    if total_years == 0:
        return Decimal(0)
    return weighted / total_years


def policy_benefit(
    policy: Policy,
    rules: SchemeRuleSet,
    *,
    at: date,
    retirement_factor: Decimal = Decimal(1),
    reference: Decimal | None = None,
) -> PolicyBenefit:
    """Accrued yearly benefit of ``policy`` if service ended on ``at``.

    accrual rate x years of service x reference salary x retirement factor.
    ``reference`` is the dossier-wide reference salary; it defaults to the
    policy's own salary scaled by its part-time factor. With one accrual rate
    this splits the dossier pension over its policies by years of service.
    """

    years = years_between(policy.employment_start_date, at)
    salary = policy.salary * policy.part_time_factor if reference is None else reference
    amount = rules.accrual_rate * years * salary * retirement_factor
    return PolicyBenefit(
        policy_id=policy.policy_id,
        scheme_id=policy.scheme_id,
        years_of_service=years,
        reference_salary=salary,
        accrual_rate=rules.accrual_rate,
        retirement_factor=retirement_factor,
        amount=round_amount(amount),
    )
