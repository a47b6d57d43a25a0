"""Scheme registry response schema."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import ClassVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

log = logging.getLogger(__name__)


class SchemeRegistryBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug(
            "Scheme registry %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class SchemeDocument(SchemeRegistryBaseModel):
    """Body of ``GET /schemes/{scheme_id}``; snake_case or camelCase keys, all optional."""

    scheme_id: str | None = Field(
        default=None, validation_alias=AliasChoices("scheme_id", "schemeId")
    )
    accrual_rate: Decimal | None = Field(
        default=None, validation_alias=AliasChoices("accrual_rate", "accrualRate")
    )
    retirement_age: int | None = Field(
        default=None, validation_alias=AliasChoices("retirement_age", "retirementAge")
    )
    early_retirement_age: int | None = Field(
        default=None, validation_alias=AliasChoices("early_retirement_age", "earlyRetirementAge")
    )
    retirement_age_factors: dict[int, Decimal] | None = Field(
        default=None,
        validation_alias=AliasChoices("retirement_age_factors", "retirementAgeFactors"),
    )
    full_service_years: Decimal | None = Field(
        default=None, validation_alias=AliasChoices("full_service_years", "fullServiceYears")
    )
    default_indexation_rate: Decimal | None = Field(
        default=None,
        validation_alias=AliasChoices("default_indexation_rate", "defaultIndexationRate"),
    )
    projection_interval_months: int | None = Field(
        default=None,
        gt=0,
        validation_alias=AliasChoices("projection_interval_months", "projectionIntervalMonths"),
    )
    currency: str | None = None
