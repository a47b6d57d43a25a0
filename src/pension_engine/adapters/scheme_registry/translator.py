"""Translate scheme registry documents into domain rule sets."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from pension_engine.domain.rules import (
    DEFAULT_ACCRUAL_RATE,
    DEFAULT_CURRENCY,
    DEFAULT_FULL_SERVICE_YEARS,
    DEFAULT_PROJECTION_INTERVAL_MONTHS,
    DEFAULT_RETIREMENT_AGE,
    SchemeRuleSet,
)

if TYPE_CHECKING:
    from .schema import SchemeDocument


def translate_scheme(scheme_id: str, document: SchemeDocument) -> SchemeRuleSet:
    """Build a rule set, falling back to the defaults for absent fields.

    The requested ``scheme_id`` wins over the one echoed in the document so the
    rule set memo stays keyed by what handlers asked for.
    """

    return SchemeRuleSet(
        scheme_id=scheme_id,
        accrual_rate=(
            document.accrual_rate if document.accrual_rate is not None else DEFAULT_ACCRUAL_RATE
        ),
        retirement_age=(
            document.retirement_age
            if document.retirement_age is not None
            else DEFAULT_RETIREMENT_AGE
        ),
        early_retirement_age=document.early_retirement_age,
        retirement_age_factors=dict(document.retirement_age_factors or {}),
        full_service_years=(
            document.full_service_years
            if document.full_service_years is not None
            else DEFAULT_FULL_SERVICE_YEARS
        ),
        default_indexation_rate=(
            document.default_indexation_rate
            if document.default_indexation_rate is not None
            else Decimal(0)
        ),
        projection_interval_months=(
            document.projection_interval_months or DEFAULT_PROJECTION_INTERVAL_MONTHS
        ),
        currency=(document.currency or DEFAULT_CURRENCY).upper(),
    )
