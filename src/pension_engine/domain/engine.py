"""Fold an ordered list of mutations over request-scoped dossier state."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from .errors import CalculationError, EmptyMutationList
from .model import WorkingState
from .mutations.base import CalculationContext
from .patches import PatchOperation, diff

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from datetime import date

    from .mutations.base import CalculationMessage, Mutation
    from .mutations.registry import HandlerRegistry

log = getLogger(__name__)

CALCULATION_OUTCOME_SUCCESS = "SUCCESS"


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class CalculationRequest:
    mutations: Sequence[Mutation] | None
    tenant_id: str = ""


@dataclass(frozen=True, slots=True)
class ProcessedMutation:
    index: int
    mutation: Mutation
    result: object | None
    message_indexes: tuple[int, ...]
    forward_patch: tuple[PatchOperation, ...]
    backward_patch: tuple[PatchOperation, ...]


@dataclass(frozen=True, slots=True)
class CalculationResponse:
    """Outcome of a fully applied request.

    ``messages`` are numbered by position; each processed mutation refers to
    its own messages through ``message_indexes``.
    """

    tenant_id: str
    started_at: datetime
    completed_at: datetime
    initial_actual_at: date
    mutations: tuple[ProcessedMutation, ...]
    final_state: WorkingState
    messages: tuple[CalculationMessage, ...] = ()
    calculation_id: UUID = field(default_factory=uuid4)
    initial_state: WorkingState = field(default_factory=WorkingState)

    @property
    def duration_ms(self) -> int:
        return int((self.completed_at - self.started_at).total_seconds() * 1000)

    @property
    def outcome(self) -> str:
        return CALCULATION_OUTCOME_SUCCESS

    @property
    def last_mutation(self) -> ProcessedMutation:
        return self.mutations[-1]

    @property
    def results(self) -> list[object | None]:
        return [processed.result for processed in self.mutations]


class CalculationEngine:
    """Apply mutations strictly in order, aborting the request on the first failure.

    Every handler is awaited the same way whether or not it suspends, so
    dispatch never depends on the mutation kind. Nothing survives a failed
    request: working state lives only inside ``process``.
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.registry = registry
        self._clock = clock

    async def process(self, request: CalculationRequest) -> CalculationResponse:
        mutations = list(request.mutations or ())
        if not mutations:
            raise EmptyMutationList("Invalid request: mutations are required")

        started_at = self._clock()
        calculation_id = uuid4()
        context = CalculationContext(today=started_at.date())
        initial_state = WorkingState()
        state = initial_state
        messages: list[CalculationMessage] = []
        processed: list[ProcessedMutation] = []

        log.info(
            "Starting calculation %s: tenant=%s, mutations=%s",
            calculation_id,
            request.tenant_id,
            len(mutations),
        )

        for index, mutation in enumerate(mutations):
            try:
                handler = self.registry.resolve(mutation.kind)
                outcome = await handler.apply(state, mutation, context)
            except CalculationError as exc:
                log.warning(
                    "Calculation %s aborted at mutation %s (%s): %s [%s]",
                    calculation_id,
                    index,
                    mutation.kind,
                    exc,
                    exc.code,
                )
                exc.add_note(f"while applying mutation {index} ({mutation.kind})")
                raise
            except asyncio.CancelledError:
                log.warning(
                    "Calculation %s cancelled at mutation %s (%s)",
                    calculation_id,
                    index,
                    mutation.kind,
                )
                raise

            before = state.snapshot()
            after = outcome.state.snapshot()
            first_message = len(messages)
            messages.extend(outcome.messages)
            processed.append(
                ProcessedMutation(
                    index=index,
                    mutation=mutation,
                    result=outcome.result,
                    message_indexes=tuple(range(first_message, len(messages))),
                    forward_patch=tuple(diff(before, after)),
                    backward_patch=tuple(diff(after, before)),
                )
            )
            state = outcome.state
            log.debug("Applied mutation %s (%s)", index, mutation.kind)

        completed_at = self._clock()
        log.info(
            "Finished calculation %s: dossiers=%s, messages=%s",
            calculation_id,
            len(state.dossiers),
            len(messages),
        )
        return CalculationResponse(
            calculation_id=calculation_id,
            tenant_id=request.tenant_id,
            started_at=started_at,
            completed_at=completed_at,
            initial_actual_at=mutations[0].actual_at or context.today,
            initial_state=initial_state,
            mutations=tuple(processed),
            final_state=state,
            messages=tuple(messages),
        )
