"""Handler contract shared by every mutation kind."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, ClassVar, Generic, Protocol, TypeVar

import pydantic

from pension_engine.domain.errors import ValidationError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import date

    from pension_engine.domain.model import WorkingState
    from pension_engine.domain.ports import SchemeRuleSource
    from pension_engine.domain.rules import SchemeRuleSet

log = getLogger(__name__)

P = TypeVar("P", bound=pydantic.BaseModel)


class MutationKind(StrEnum):
    CREATE_DOSSIER = "create_dossier"
    ADD_POLICY = "add_policy"
    APPLY_INDEXATION = "apply_indexation"
    CALCULATE_RETIREMENT_BENEFIT = "calculate_retirement_benefit"
    PROJECT_FUTURE_BENEFITS = "project_future_benefits"


class MessageLevel(StrEnum):
    WARNING = "WARNING"


@dataclass(frozen=True, slots=True)
class Mutation:
    """One instruction of a request, as handed to a handler."""

    kind: str
    properties: Mapping[str, object] = field(default_factory=dict)
    mutation_id: str | None = None
    actual_at: date | None = None
    dossier_id: str | None = None


@dataclass(frozen=True, slots=True)
class CalculationMessage:
    level: MessageLevel
    code: str
    message: str


def warning(code: str, message: str) -> CalculationMessage:
    return CalculationMessage(level=MessageLevel.WARNING, code=code, message=message)


@dataclass(slots=True)
class CalculationContext:
    """Per-request values shared by the handlers of one calculation.

    ``rule_sets`` memoises fetched rule sets so a scheme is looked up at most
    once per request and stays fixed for the remainder of it.
    """

    today: date
    rule_sets: dict[str, SchemeRuleSet] = field(default_factory=dict)

    def effective_date(self, mutation: Mutation) -> date:
        return mutation.actual_at or self.today


@dataclass(frozen=True, slots=True)
class MutationOutcome:
    state: WorkingState
    result: object | None = None
    messages: tuple[CalculationMessage, ...] = ()


class MutationHandler(Protocol):
    """Structural contract the registry and engine rely on."""

    @property
    def kind(self) -> str: ...

    async def apply(
        self,
        state: WorkingState,
        mutation: Mutation,
        context: CalculationContext,
    ) -> MutationOutcome: ...


class BaseMutationHandler(ABC, Generic[P]):
    """Parses the payload with a pydantic model and delegates to ``_apply``."""

    kind: ClassVar[str]
    properties_model: ClassVar[type[pydantic.BaseModel]]

    async def apply(
        self,
        state: WorkingState,
        mutation: Mutation,
        context: CalculationContext,
    ) -> MutationOutcome:
        properties = self.parse(mutation)
        return await self._apply(state, mutation, properties, context)

    def parse(self, mutation: Mutation) -> P:
        try:
            parsed = self.properties_model.model_validate(dict(mutation.properties))
        except pydantic.ValidationError as exc:
            fields = ", ".join(
                ".".join(str(part) for part in error["loc"]) or "<root>"
                for error in exc.errors()
            )
            raise ValidationError(f"Invalid {self.kind} properties: {fields}") from exc
        return parsed  # type: ignore[return-value]

    @abstractmethod
    async def _apply(
        self,
        state: WorkingState,
        mutation: Mutation,
        properties: P,
        context: CalculationContext,
    ) -> MutationOutcome: ...


class RuleSetHandler(BaseMutationHandler[P]):
    """Base for handlers that consult the scheme rule source."""

    def __init__(self, rule_source: SchemeRuleSource) -> None:
        self.rule_source = rule_source

    async def rule_set(self, scheme_id: str, context: CalculationContext) -> SchemeRuleSet:
        cached = context.rule_sets.get(scheme_id)
        if cached is not None:
            return cached
        log.debug("Fetching rule set for scheme %s", scheme_id)
        rule_set = await self.rule_source.get(scheme_id)
        context.rule_sets[scheme_id] = rule_set
        return rule_set

    async def rule_sets(
        self, scheme_ids: list[str], context: CalculationContext
    ) -> dict[str, SchemeRuleSet]:
        """Fetch each distinct scheme once, in first-seen order."""

        rule_sets: dict[str, SchemeRuleSet] = {}
        for scheme_id in dict.fromkeys(scheme_ids):
            rule_sets[scheme_id] = await self.rule_set(scheme_id, context)
        return rule_sets
