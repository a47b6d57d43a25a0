"""project_future_benefits: estimated pension at a series of future dates."""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import TYPE_CHECKING

from pension_engine.domain.benefits import (
    date_at_age,
    policy_benefit,
    projection_dates,
    reference_salary,
)
from pension_engine.domain.errors import PolicyNotFound, ValidationError
from pension_engine.domain.model import Projection

from .base import MutationKind, MutationOutcome, RuleSetHandler, warning
from .properties import ProjectFutureBenefitsProperties

if TYPE_CHECKING:
    from datetime import date

    from pension_engine.domain.model import Dossier, WorkingState
    from pension_engine.domain.rules import SchemeRuleSet

    from .base import CalculationContext, CalculationMessage, Mutation


@dataclass(frozen=True, slots=True)
class ProjectionPoint:
    date: date
    amount: Decimal


@dataclass(frozen=True, slots=True)
class ProjectionResult:
    dossier_id: str
    interval_months: int
    points: tuple[ProjectionPoint, ...]


class ProjectFutureBenefitsHandler(RuleSetHandler[ProjectFutureBenefitsProperties]):
    """Projects the benefit payable at normal retirement age for each date.

    Dates start at ``projection_start_date`` and are bounded by a ``horizon``
    (number of points), a ``projection_end_date`` or, failing both, the
    participant's normal retirement date under the first targeted scheme.
    Salaries grow by ``(1 + rate * interval / 12) ** k`` at point ``k``; every
    point uses the reference salary of all the dossier's policies on that date.
    """

    kind = MutationKind.PROJECT_FUTURE_BENEFITS
    properties_model = ProjectFutureBenefitsProperties

    async def _apply(
        self,
        state: WorkingState,
        mutation: Mutation,
        properties: ProjectFutureBenefitsProperties,
        context: CalculationContext,
    ) -> MutationOutcome:
        dossier = state.get(properties.dossier_id or mutation.dossier_id)
        if not dossier.policies:
            raise PolicyNotFound(dossier.dossier_id)
        targets = (
            [dossier.policy(properties.policy)]
            if properties.policy is not None
            else list(dossier.policies)
        )
        start = properties.projection_start_date or context.effective_date(mutation)
        rule_sets = await self.rule_sets([p.scheme_id for p in dossier.policies], context)
        primary = rule_sets[targets[0].scheme_id]
        interval = properties.projection_interval_months or primary.projection_interval_months

        dates = self._dates(dossier, properties, primary, start=start, interval=interval)

        messages: list[CalculationMessage] = []
        if start < min(p.employment_start_date for p in targets):
            messages.append(
                warning(
                    "PROJECTION_BEFORE_EMPLOYMENT",
                    "projection_start_date is before any policy's employment_start_date",
                )
            )

        per_policy: dict[str, list[Projection]] = {p.policy_id: [] for p in targets}
        points: list[ProjectionPoint] = []
        for step, at in enumerate(dates):
            salaries = {
                p.policy_id: p.salary
                * _growth(_indexation_rate(properties, rule_sets[p.scheme_id]), interval, step)
                for p in dossier.policies
            }
            reference = reference_salary(dossier.policies, at=at, salaries=salaries)
            total = Decimal(0)
            for policy in targets:
                rules = rule_sets[policy.scheme_id]
                amount = policy_benefit(policy, rules, at=at, reference=reference).amount
                per_policy[policy.policy_id].append(Projection(date=at, projected_pension=amount))
                total += amount
            points.append(ProjectionPoint(date=at, amount=total))

        updated = dossier.update_policies(
            lambda p: replace(p, projections=tuple(per_policy[p.policy_id])),
            only=set(per_policy),
        )
        return MutationOutcome(
            state=state.with_dossier(updated),
            result=ProjectionResult(
                dossier_id=dossier.dossier_id,
                interval_months=interval,
                points=tuple(points),
            ),
            messages=tuple(messages),
        )

    @staticmethod
    def _dates(
        dossier: Dossier,
        properties: ProjectFutureBenefitsProperties,
        rules: SchemeRuleSet,
        *,
        start: date,
        interval: int,
    ) -> tuple[date, ...]:
        if properties.horizon is not None:
            return projection_dates(start, interval_months=interval, count=properties.horizon)

        end = properties.projection_end_date or _normal_retirement_date(dossier, rules)
        if end <= start:
            raise ValidationError(
                "projection_end_date must be after projection_start_date",
                code="INVALID_DATE_RANGE",
            )
        return projection_dates(start, interval_months=interval, end=end)


def _normal_retirement_date(dossier: Dossier, rules: SchemeRuleSet) -> date:
    participant = dossier.participant
    if participant is None or participant.birth_date is None:
        raise ValidationError(
            "projection_end_date or horizon is required when the birth date is unknown",
            code="MISSING_PROJECTION_END",
        )
    return date_at_age(participant.birth_date, rules.retirement_age)


def _indexation_rate(
    properties: ProjectFutureBenefitsProperties, rules: SchemeRuleSet
) -> Decimal:
    if properties.indexation_rate is not None:
        return properties.indexation_rate
    return rules.default_indexation_rate


def _growth(rate: Decimal, interval_months: int, step: int) -> Decimal:
    if step == 0:
        return Decimal(1)
    return (Decimal(1) + rate * Decimal(interval_months) / Decimal(12)) ** step
