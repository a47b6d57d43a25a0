"""calculate_retirement_benefit: attainable pension at a retirement date."""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from logging import getLogger
from typing import TYPE_CHECKING

from pension_engine.domain.benefits import (
    PolicyBenefit,
    completed_age,
    policy_benefit,
    reference_salary,
    round_amount,
    years_between,
)
from pension_engine.domain.errors import NotEligible, PolicyNotFound, ValidationError
from pension_engine.domain.model import DossierStatus

from .base import MutationKind, MutationOutcome, RuleSetHandler, warning
from .properties import CalculateRetirementBenefitProperties

if TYPE_CHECKING:
    from datetime import date

    from pension_engine.domain.model import Dossier, Policy, WorkingState
    from pension_engine.domain.rules import SchemeRuleSet

    from .base import CalculationContext, CalculationMessage, Mutation

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BenefitCalculationResult:
    dossier_id: str
    retirement_date: date
    amount: Decimal
    currency: str
    age_at_retirement: int | None
    total_years_of_service: Decimal
    reference_salary: Decimal
    breakdown: tuple[PolicyBenefit, ...]


class CalculateRetirementBenefitHandler(RuleSetHandler[CalculateRetirementBenefitProperties]):
    kind = MutationKind.CALCULATE_RETIREMENT_BENEFIT
    properties_model = CalculateRetirementBenefitProperties

    async def _apply(
        self,
        state: WorkingState,
        mutation: Mutation,
        properties: CalculateRetirementBenefitProperties,
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
        retirement_date = properties.retirement_date or context.effective_date(mutation)
        rule_sets = await self.rule_sets([p.scheme_id for p in targets], context)

        participant = dossier.participant
        birth_date = participant.birth_date if participant else None
        age = completed_age(birth_date, retirement_date) if birth_date else None
        total_years = sum(
            (years_between(p.employment_start_date, retirement_date) for p in dossier.policies),
            Decimal(0),
        )
        for rules in rule_sets.values():
            _check_eligibility(rules, age=age, total_years=total_years)
        reference = reference_salary(dossier.policies, at=retirement_date)

        messages: list[CalculationMessage] = []
        breakdown: list[PolicyBenefit] = []
        for policy in targets:
            if retirement_date < policy.employment_start_date:
                messages.append(
                    warning(
                        "RETIREMENT_BEFORE_EMPLOYMENT",
                        "retirement_date is before the employment_start_date of "
                        f"{policy.policy_id}",
                    )
                )
            rules = rule_sets[policy.scheme_id]
            breakdown.append(
                policy_benefit(
                    policy,
                    rules,
                    at=retirement_date,
                    retirement_factor=rules.retirement_factor(age),
                    reference=reference,
                )
            )

        amounts = {benefit.policy_id: benefit.amount for benefit in breakdown}
        updated = replace(
            dossier.update_policies(
                lambda p: replace(p, attainable_pension=amounts[p.policy_id]),
                only=set(amounts),
            ),
            status=DossierStatus.RETIRED,
            retirement_date=retirement_date,
        )
        result = BenefitCalculationResult(
            dossier_id=dossier.dossier_id,
            retirement_date=retirement_date,
            amount=sum((b.amount for b in breakdown), Decimal(0)),
            currency=_single_currency(dossier, targets, rule_sets),
            age_at_retirement=age,
            total_years_of_service=total_years,
            reference_salary=round_amount(reference),
            breakdown=tuple(breakdown),
        )
        log.debug(
            "Retirement benefit for dossier %s on %s: %s %s",
            dossier.dossier_id,
            retirement_date,
            result.amount,
            result.currency,
        )
        return MutationOutcome(
            state=state.with_dossier(updated),
            result=result,
            messages=tuple(messages),
        )


def _check_eligibility(rules: SchemeRuleSet, *, age: int | None, total_years: Decimal) -> None:
    # Age is in completed years, so eligibility starts on the birthday itself.
    # Without a birth date the participant is taken to retire at the normal age.
    if age is None or age >= rules.minimum_retirement_age:
        return
    if total_years >= rules.full_service_years:
        return
    raise NotEligible(
        f"Participant is {age} on the retirement date (scheme {rules.scheme_id} minimum "
        f"{rules.minimum_retirement_age}) with {total_years:.2f} years of service "
        f"(less than {rules.full_service_years})"
    )


def _single_currency(
    dossier: Dossier,
    policies: list[Policy],
    rule_sets: dict[str, SchemeRuleSet],
) -> str:
    currencies = {rule_sets[p.scheme_id].currency for p in policies}
    if len(currencies) > 1:
        raise ValidationError(
            f"Policies of dossier {dossier.dossier_id} pay out in different currencies: "
            f"{', '.join(sorted(currencies))}",
            code="MIXED_CURRENCIES",
        )
    return currencies.pop()
