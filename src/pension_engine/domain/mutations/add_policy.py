"""add_policy: append a pension entitlement to an existing dossier."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from pension_engine.domain.errors import ValidationError
from pension_engine.domain.model import Policy

from .base import BaseMutationHandler, MutationKind, MutationOutcome, warning
from .properties import AddPolicyProperties

if TYPE_CHECKING:
    from pension_engine.domain.model import WorkingState

    from .base import CalculationContext, CalculationMessage, Mutation


@dataclass(frozen=True, slots=True)
class PolicyAdded:
    dossier_id: str
    policy_id: str
    policy_index: int


class AddPolicyHandler(BaseMutationHandler[AddPolicyProperties]):
    kind = MutationKind.ADD_POLICY
    properties_model = AddPolicyProperties

    async def _apply(
        self,
        state: WorkingState,
        mutation: Mutation,
        properties: AddPolicyProperties,
        context: CalculationContext,
    ) -> MutationOutcome:
        dossier = state.get(properties.dossier_id or mutation.dossier_id)

        if properties.salary < 0:
            raise ValidationError("salary < 0", code="INVALID_SALARY")
        if not Decimal(0) <= properties.part_time_factor <= Decimal(1):
            raise ValidationError(
                "part_time_factor < 0 or > 1", code="INVALID_PART_TIME_FACTOR"
            )

        messages: list[CalculationMessage] = []
        if any(
            p.scheme_id == properties.scheme_id
            and p.employment_start_date == properties.employment_start_date
            for p in dossier.policies
        ):
            messages.append(
                warning(
                    "DUPLICATE_POLICY",
                    "A policy with the same scheme_id and employment_start_date already exists",
                )
            )

        policy = Policy(
            policy_id=dossier.next_policy_id(),
            scheme_id=properties.scheme_id,
            employment_start_date=properties.employment_start_date,
            salary=properties.salary,
            part_time_factor=properties.part_time_factor,
        )
        return MutationOutcome(
            state=state.with_dossier(dossier.add_policy(policy)),
            result=PolicyAdded(
                dossier_id=dossier.dossier_id,
                policy_id=policy.policy_id,
                policy_index=len(dossier.policies),
            ),
            messages=tuple(messages),
        )
