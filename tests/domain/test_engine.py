from __future__ import annotations

import asyncio
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING

import pytest

from pension_engine.domain.engine import CalculationEngine, CalculationRequest
from pension_engine.domain.errors import (
    DossierNotFound,
    EmptyMutationList,
    SchemeNotFound,
    UnknownMutationKind,
    ValidationError,
)
from pension_engine.domain.mutations import (
    BenefitCalculationResult,
    HandlerRegistry,
    Mutation,
    MutationOutcome,
    ProjectionResult,
    build_registry,
)
from pension_engine.domain.patches import PatchOperation, apply_patch

if TYPE_CHECKING:
    from pension_engine.domain.model import WorkingState
    from pension_engine.domain.mutations import CalculationContext
    from tests.conftest import FakeRuleSource


class RecordingHandler:
    """Handler that leaves state untouched and records the mutations it saw."""

    def __init__(self, kind: str, seen: list[str], *, error: BaseException | None = None) -> None:
        self.kind = kind
        self.seen = seen
        self.error = error

    async def apply(
        self,
        state: WorkingState,
        mutation: Mutation,
        context: CalculationContext,
    ) -> MutationOutcome:
        self.seen.append(mutation.mutation_id or "")
        if self.error is not None:
            raise self.error
        return MutationOutcome(state=state, result=mutation.mutation_id)


def _mutation(kind: str, mutation_id: str, /, **properties: object) -> Mutation:
    return Mutation(
        kind=kind,
        properties=properties,
        mutation_id=mutation_id,
        actual_at=date(2025, 1, 1),
    )


def _example() -> list[Mutation]:
    return [
        _mutation("create_dossier", "m1", dossier_id="D1"),
        _mutation(
            "add_policy",
            "m2",
            dossier_id="D1",
            scheme_id="NL-ABC",
            employment_start_date="2000-01-01",
            salary=50000,
        ),
        _mutation("calculate_retirement_benefit", "m3", dossier_id="D1", policy=0),
    ]


@pytest.mark.parametrize("mutations", [None, []])
def test_empty_request_is_rejected_before_any_handler(mutations: list[Mutation] | None) -> None:
    seen: list[str] = []
    engine = CalculationEngine(HandlerRegistry([RecordingHandler("create_dossier", seen)]))

    with pytest.raises(EmptyMutationList) as exc:
        asyncio.run(engine.process(CalculationRequest(mutations=mutations)))

    assert isinstance(exc.value, ValidationError)
    assert seen == []


def test_mutations_run_in_submission_order() -> None:
    seen: list[str] = []
    registry = HandlerRegistry([RecordingHandler("a", seen), RecordingHandler("b", seen)])
    engine = CalculationEngine(registry)
    mutations = [_mutation("b", "1"), _mutation("a", "2"), _mutation("b", "3"), _mutation("a", "4")]

    response = asyncio.run(engine.process(CalculationRequest(mutations=mutations)))

    assert seen == ["1", "2", "3", "4"]
    assert response.results == ["1", "2", "3", "4"]
    assert [p.index for p in response.mutations] == [0, 1, 2, 3]


def test_first_failure_aborts_the_request() -> None:
    seen: list[str] = []
    registry = HandlerRegistry(
        [
            RecordingHandler("ok", seen),
            RecordingHandler("boom", seen, error=ValidationError("bad payload", code="BAD")),
        ]
    )
    mutations = [_mutation("ok", "1"), _mutation("boom", "2"), _mutation("ok", "3")]

    with pytest.raises(ValidationError) as exc:
        asyncio.run(CalculationEngine(registry).process(CalculationRequest(mutations=mutations)))

    assert exc.value.code == "BAD"
    assert seen == ["1", "2"]
    assert any("mutation 1" in note for note in exc.value.__notes__)


def test_cancellation_propagates() -> None:
    seen: list[str] = []
    registry = HandlerRegistry([RecordingHandler("slow", seen, error=asyncio.CancelledError())])

    with pytest.raises(asyncio.CancelledError):
        asyncio.run(
            CalculationEngine(registry).process(
                CalculationRequest(mutations=[_mutation("slow", "1")])
            )
        )


def test_example_request(engine: CalculationEngine, rule_source: FakeRuleSource) -> None:
    response = asyncio.run(engine.process(CalculationRequest(mutations=_example(), tenant_id="t")))

    result = response.last_mutation.result
    assert isinstance(result, BenefitCalculationResult)
    assert result.amount == Decimal("25002.05")
    assert response.tenant_id == "t"
    assert response.outcome == "SUCCESS"
    assert response.duration_ms == 0
    assert response.initial_actual_at == date(2025, 1, 1)
    assert response.final_state.get("D1").policies[0].attainable_pension == Decimal("25002.05")
    assert rule_source.calls == ["NL-ABC"]


def test_same_request_gives_same_amount(engine: CalculationEngine) -> None:
    first = asyncio.run(engine.process(CalculationRequest(mutations=_example())))
    second = asyncio.run(engine.process(CalculationRequest(mutations=_example())))

    assert first.results == second.results
    assert first.final_state == second.final_state
    assert first.calculation_id != second.calculation_id


def test_unknown_dossier_aborts(engine: CalculationEngine) -> None:
    mutations = [_example()[1]]

    with pytest.raises(DossierNotFound) as exc:
        asyncio.run(engine.process(CalculationRequest(mutations=mutations)))

    assert exc.value.dossier_id == "D1"


def test_unknown_kind_aborts_after_earlier_mutations(engine: CalculationEngine) -> None:
    mutations = [*_example()[:2], _mutation("transfer_out", "m9", dossier_id="D1")]

    with pytest.raises(UnknownMutationKind) as exc:
        asyncio.run(engine.process(CalculationRequest(mutations=mutations)))

    assert exc.value.kind == "transfer_out"


def test_scheme_not_found_aborts(engine: CalculationEngine, rule_source: FakeRuleSource) -> None:
    rule_source.missing.add("NL-ABC")

    with pytest.raises(SchemeNotFound):
        asyncio.run(engine.process(CalculationRequest(mutations=_example())))


def test_rule_set_fetched_once_per_request(
    engine: CalculationEngine, rule_source: FakeRuleSource
) -> None:
    mutations = [
        *_example(),
        _mutation("project_future_benefits", "m4", dossier_id="D1", horizon=3),
    ]

    response = asyncio.run(engine.process(CalculationRequest(mutations=mutations)))
    asyncio.run(engine.process(CalculationRequest(mutations=mutations)))

    projection = response.last_mutation.result
    assert isinstance(projection, ProjectionResult)
    assert len(projection.points) == 3
    assert rule_source.calls == ["NL-ABC", "NL-ABC"]


def test_indexation_twice_compounds(engine: CalculationEngine) -> None:
    index = _mutation("apply_indexation", "i", dossier_id="D1", factor="1.1")
    mutations = [*_example()[:2], index, index]

    response = asyncio.run(engine.process(CalculationRequest(mutations=mutations)))

    assert response.final_state.get("D1").policies[0].salary == Decimal("60500")


def test_patches_link_consecutive_situations(engine: CalculationEngine) -> None:
    response = asyncio.run(engine.process(CalculationRequest(mutations=_example())))

    created = response.mutations[0]
    assert created.forward_patch[0].op == "add"
    assert created.forward_patch[0].path == "/dossiers/D1"
    assert created.backward_patch == (PatchOperation("remove", "/dossiers/D1"),)

    situation: object = response.initial_state.snapshot()
    for processed in response.mutations:
        situation = apply_patch(situation, list(processed.forward_patch))
    assert situation == response.final_state.snapshot()

    for processed in reversed(response.mutations):
        situation = apply_patch(situation, list(processed.backward_patch))
    assert situation == {"dossiers": {}}


def test_messages_are_indexed_per_mutation(engine: CalculationEngine) -> None:
    duplicate = _example()[1]
    mutations = [*_example()[:2], duplicate, duplicate]

    response = asyncio.run(engine.process(CalculationRequest(mutations=mutations)))

    assert [m.code for m in response.messages] == ["DUPLICATE_POLICY", "DUPLICATE_POLICY"]
    assert [p.message_indexes for p in response.mutations] == [(), (), (0,), (1,)]


def test_clock_drives_actual_at_default_and_duration(rule_source: FakeRuleSource) -> None:
    ticks = iter(
        [datetime(2030, 5, 1, tzinfo=UTC), datetime(2030, 5, 1, tzinfo=UTC) + timedelta(seconds=1)]
    )
    engine = CalculationEngine(build_registry(rule_source), clock=lambda: next(ticks))
    mutations = [Mutation(kind="create_dossier", properties={"dossier_id": "D1"})]

    response = asyncio.run(engine.process(CalculationRequest(mutations=mutations)))

    assert response.initial_actual_at == date(2030, 5, 1)
    assert response.duration_ms == 1000
