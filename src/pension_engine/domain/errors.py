"""Error taxonomy for the calculation pipeline.

Every failure carries a stable ``code`` so callers and tests can tell them
apart; only the outer boundary collapses them into a generic response.
"""

from __future__ import annotations


class CalculationError(Exception):
    """Base class for failures raised while processing a calculation request."""

    code: str = "CALCULATION_ERROR"

    def __init__(self, message: str = "", *, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class ValidationError(CalculationError):
    """Raised when a request or mutation payload is malformed or inconsistent."""

    code: str = "VALIDATION_ERROR"


class EmptyMutationList(ValidationError):
    """Raised before any handler runs when a request carries no mutations."""

    code: str = "EMPTY_MUTATION_LIST"


class NotEligible(ValidationError):
    """Raised when a participant may not retire on the requested date."""

    code: str = "NOT_ELIGIBLE"


class DossierNotFound(CalculationError):
    """Raised when a mutation references a dossier absent from working state."""

    code: str = "DOSSIER_NOT_FOUND"

    def __init__(self, dossier_id: str | None) -> None:
        super().__init__(f"Dossier not found: {dossier_id}")
        self.dossier_id = dossier_id


class PolicyNotFound(CalculationError):
    """Raised when a mutation references a policy its dossier does not hold."""

    code: str = "POLICY_NOT_FOUND"

    def __init__(self, dossier_id: str, policy: int | str | None = None) -> None:
        if policy is None:
            super().__init__(f"Dossier {dossier_id} has no policies", code="NO_POLICIES")
        else:
            super().__init__(f"Policy {policy!r} not found in dossier {dossier_id}")
        self.dossier_id = dossier_id
        self.policy = policy


class UnknownMutationKind(CalculationError):
    """Raised when no handler is registered for a mutation kind."""

    code: str = "UNKNOWN_MUTATION"

    def __init__(self, kind: str) -> None:
        super().__init__(f"Unknown mutation: {kind}")
        self.kind = kind


class SchemeNotFound(CalculationError):
    """Raised when the rule source does not know a scheme identifier."""

    code: str = "SCHEME_NOT_FOUND"

    def __init__(self, scheme_id: str) -> None:
        super().__init__(f"Scheme not found: {scheme_id}")
        self.scheme_id = scheme_id


class ExternalServiceError(CalculationError):
    """Raised for transport failures, timeouts or unexpected upstream responses."""

    code: str = "EXTERNAL_SERVICE_ERROR"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RegistryConfigurationError(RuntimeError):
    """Raised when the handler registry is wired incorrectly."""


class DuplicateHandlerKind(RegistryConfigurationError):
    """Raised when two handlers declare the same mutation kind."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"More than one handler registered for mutation kind {kind!r}")
        self.kind = kind


class MissingHandlerKind(RegistryConfigurationError):
    """Raised when a required mutation kind has no handler."""

    def __init__(self, kinds: frozenset[str]) -> None:
        missing = ", ".join(sorted(kinds))
        super().__init__(f"No handler registered for mutation kinds: {missing}")
        self.kinds = kinds
