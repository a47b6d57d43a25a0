"""Calculation core: dossier state, handlers, registry and engine.

The domain package has no knowledge of HTTP or configuration; adapters
implement ``SchemeRuleSource`` and the api package translates requests.
"""

from __future__ import annotations

from .engine import CalculationEngine, CalculationRequest, CalculationResponse, ProcessedMutation
from .errors import (
    CalculationError,
    DossierNotFound,
    DuplicateHandlerKind,
    EmptyMutationList,
    ExternalServiceError,
    MissingHandlerKind,
    NotEligible,
    PolicyNotFound,
    RegistryConfigurationError,
    SchemeNotFound,
    UnknownMutationKind,
    ValidationError,
)
from .model import Dossier, DossierStatus, Person, Policy, Projection, WorkingState
from .ports import SchemeRuleSource
from .rules import SchemeRuleSet, default_rule_set

__all__ = [
    "CalculationEngine",
    "CalculationError",
    "CalculationRequest",
    "CalculationResponse",
    "Dossier",
    "DossierNotFound",
    "DossierStatus",
    "DuplicateHandlerKind",
    "EmptyMutationList",
    "ExternalServiceError",
    "MissingHandlerKind",
    "NotEligible",
    "Person",
    "Policy",
    "PolicyNotFound",
    "ProcessedMutation",
    "Projection",
    "RegistryConfigurationError",
    "SchemeNotFound",
    "SchemeRuleSet",
    "SchemeRuleSource",
    "UnknownMutationKind",
    "ValidationError",
    "WorkingState",
    "default_rule_set",
]
