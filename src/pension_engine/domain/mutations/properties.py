"""Payload schemas, one per mutation kind."""

from __future__ import annotations

from datetime import date  # noqa: TC003
from decimal import Decimal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


class MutationProperties(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    dossier_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("dossier_id", "dossier"),
    )


class PolicyTargetProperties(MutationProperties):
    """Payload addressing one policy (index or id) or, when absent, all of them."""

    policy: int | str | None = Field(
        default=None,
        validation_alias=AliasChoices("policy", "policy_index", "policy_id"),
    )


class CreateDossierProperties(MutationProperties):
    dossier_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("dossier_id", "dossier", "id"),
    )
    person_id: str | None = None
    name: str | None = None
    birth_date: date | None = None


class AddPolicyProperties(MutationProperties):
    scheme_id: str = Field(validation_alias=AliasChoices("scheme_id", "scheme"))
    employment_start_date: date = Field(
        validation_alias=AliasChoices("employment_start_date", "start_date", "start"),
    )
    salary: Decimal = Decimal(0)
    part_time_factor: Decimal = Decimal(1)


class ApplyIndexationProperties(PolicyTargetProperties):
    model_config = ConfigDict(frozen=True, extra="ignore", coerce_numbers_to_str=True)

    factor: Decimal | None = None
    percentage: Decimal | None = None
    period: str | None = None
    scheme_id: str | None = None
    effective_before: date | None = None

    @model_validator(mode="after")
    def _one_adjustment(self) -> ApplyIndexationProperties:
        if (self.factor is None) == (self.percentage is None):
            raise ValueError("exactly one of factor or percentage is required")
        return self

    @property
    def multiplier(self) -> Decimal:
        if self.factor is not None:
            return self.factor
        return Decimal(1) + (self.percentage or Decimal(0))


class CalculateRetirementBenefitProperties(PolicyTargetProperties):
    retirement_date: date | None = None


class ProjectFutureBenefitsProperties(PolicyTargetProperties):
    projection_start_date: date | None = None
    projection_end_date: date | None = None
    horizon: int | None = Field(default=None, gt=0)
    projection_interval_months: int | None = Field(default=None, gt=0)
    indexation_rate: Decimal | None = None

    @model_validator(mode="after")
    def _single_bound(self) -> ProjectFutureBenefitsProperties:
        if self.projection_end_date is not None and self.horizon is not None:
            raise ValueError("projection_end_date and horizon are mutually exclusive")
        return self
