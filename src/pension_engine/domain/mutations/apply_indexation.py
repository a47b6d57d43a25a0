"""apply_indexation: scale the salary basis of one or more policies.

Indexation compounds: every application is a separate index event, so
applying the same mutation twice multiplies by the factor twice.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import TYPE_CHECKING

from pension_engine.domain.errors import PolicyNotFound

from .base import BaseMutationHandler, MutationKind, MutationOutcome, warning
from .properties import ApplyIndexationProperties

if TYPE_CHECKING:
    from pension_engine.domain.model import Dossier, Policy, WorkingState

    from .base import CalculationContext, CalculationMessage, Mutation


@dataclass(frozen=True, slots=True)
class IndexationAdjustment:
    period: str | None
    factor: Decimal


@dataclass(frozen=True, slots=True)
class IndexedPolicy:
    policy_id: str
    previous_salary: Decimal
    salary: Decimal


@dataclass(frozen=True, slots=True)
class IndexationApplied:
    dossier_id: str
    adjustment: IndexationAdjustment
    policies: tuple[IndexedPolicy, ...]


class ApplyIndexationHandler(BaseMutationHandler[ApplyIndexationProperties]):
    """Targets the referenced policy, or every policy passing the optional filters."""

    kind = MutationKind.APPLY_INDEXATION
    properties_model = ApplyIndexationProperties

    async def _apply(
        self,
        state: WorkingState,
        mutation: Mutation,
        properties: ApplyIndexationProperties,
        context: CalculationContext,
    ) -> MutationOutcome:
        dossier = state.get(properties.dossier_id or mutation.dossier_id)
        messages: list[CalculationMessage] = []
        targets = self._targets(dossier, properties, messages)

        adjustment = IndexationAdjustment(period=properties.period, factor=properties.multiplier)
        indexed: dict[str, IndexedPolicy] = {}
        clamped = False
        for policy in targets:
            salary = policy.salary * adjustment.factor
            if salary < 0:
                salary = Decimal(0)
                clamped = True
            indexed[policy.policy_id] = IndexedPolicy(
                policy_id=policy.policy_id,
                previous_salary=policy.salary,
                salary=salary,
            )

        if clamped:
            messages.append(
                warning(
                    "NEGATIVE_SALARY_CLAMPED",
                    "After applying the indexation one or more salaries would be negative; "
                    "salary is clamped to 0",
                )
            )

        updated = dossier.update_policies(
            lambda p: replace(p, salary=indexed[p.policy_id].salary),
            only=set(indexed),
        )
        return MutationOutcome(
            state=state.with_dossier(updated),
            result=IndexationApplied(
                dossier_id=dossier.dossier_id,
                adjustment=adjustment,
                policies=tuple(indexed.values()),
            ),
            messages=tuple(messages),
        )

    @staticmethod
    def _targets(
        dossier: Dossier,
        properties: ApplyIndexationProperties,
        messages: list[CalculationMessage],
    ) -> list[Policy]:
        if properties.policy is not None:
            return [dossier.policy(properties.policy)]
        if not dossier.policies:
            raise PolicyNotFound(dossier.dossier_id)

        matching = list(dossier.policies)
        if properties.scheme_id:
            matching = [p for p in matching if p.scheme_id == properties.scheme_id]
        if properties.effective_before is not None:
            cutoff = properties.effective_before
            matching = [p for p in matching if p.employment_start_date < cutoff]

        filtered = bool(properties.scheme_id) or properties.effective_before is not None
        if filtered and not matching:
            messages.append(
                warning(
                    "NO_MATCHING_POLICIES",
                    "Filters were provided but no policies match the criteria",
                )
            )
        return matching
