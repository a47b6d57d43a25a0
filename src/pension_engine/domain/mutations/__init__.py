"""Mutation handlers and the registry that dispatches to them."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .add_policy import AddPolicyHandler, PolicyAdded
from .apply_indexation import (
    ApplyIndexationHandler,
    IndexationAdjustment,
    IndexationApplied,
    IndexedPolicy,
)
from .base import (
    BaseMutationHandler,
    CalculationContext,
    CalculationMessage,
    MessageLevel,
    Mutation,
    MutationHandler,
    MutationKind,
    MutationOutcome,
    RuleSetHandler,
)
from .calculate_retirement_benefit import (
    BenefitCalculationResult,
    CalculateRetirementBenefitHandler,
)
from .create_dossier import CreateDossierHandler, DossierCreated, DuplicateDossierPolicy
from .project_future_benefits import (
    ProjectFutureBenefitsHandler,
    ProjectionPoint,
    ProjectionResult,
)
from .registry import HandlerRegistry

if TYPE_CHECKING:
    from pension_engine.domain.ports import SchemeRuleSource


def default_handlers(
    rule_source: SchemeRuleSource,
    *,
    on_duplicate_dossier: DuplicateDossierPolicy = DuplicateDossierPolicy.REJECT,
) -> list[MutationHandler]:
    """Instantiate the five built-in handlers sharing one rule source."""

    return [
        CreateDossierHandler(on_duplicate=on_duplicate_dossier),
        AddPolicyHandler(),
        ApplyIndexationHandler(),
        CalculateRetirementBenefitHandler(rule_source),
        ProjectFutureBenefitsHandler(rule_source),
    ]


def build_registry(
    rule_source: SchemeRuleSource,
    *,
    on_duplicate_dossier: DuplicateDossierPolicy = DuplicateDossierPolicy.REJECT,
) -> HandlerRegistry:
    """Registry over the built-in handlers, checked for every ``MutationKind``."""

    return HandlerRegistry(
        default_handlers(rule_source, on_duplicate_dossier=on_duplicate_dossier),
        required_kinds=MutationKind,
    )


__all__ = [
    "AddPolicyHandler",
    "ApplyIndexationHandler",
    "BaseMutationHandler",
    "BenefitCalculationResult",
    "CalculateRetirementBenefitHandler",
    "CalculationContext",
    "CalculationMessage",
    "CreateDossierHandler",
    "DossierCreated",
    "DuplicateDossierPolicy",
    "HandlerRegistry",
    "IndexationAdjustment",
    "IndexationApplied",
    "IndexedPolicy",
    "MessageLevel",
    "Mutation",
    "MutationHandler",
    "MutationKind",
    "MutationOutcome",
    "PolicyAdded",
    "ProjectFutureBenefitsHandler",
    "ProjectionPoint",
    "ProjectionResult",
    "RuleSetHandler",
    "build_registry",
    "default_handlers",
]
