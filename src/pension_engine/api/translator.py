"""Translate between wire documents and the engine's request and response types."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any

import pydantic

from pension_engine.domain.engine import CalculationRequest
from pension_engine.domain.errors import ValidationError
from pension_engine.domain.model import to_document
from pension_engine.domain.mutations import Mutation

from .schema import (
    CalculationMessageBody,
    CalculationMetadataBody,
    CalculationRequestBody,
    CalculationResponseBody,
    CalculationResultBody,
    EndSituationBody,
    InitialSituationBody,
    ProcessedMutationBody,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from pension_engine.domain.engine import CalculationResponse
    from pension_engine.domain.patches import PatchOperation

    from .schema import MutationEnvelope

_JSON = pydantic.TypeAdapter(Any)


class MalformedRequest(ValidationError):
    """Raised when the request document does not match the request schema."""

    code: str = "MALFORMED_REQUEST"


def parse_request(body: Mapping[str, Any] | str | bytes) -> CalculationRequestBody:
    try:
        if isinstance(body, str | bytes):
            return CalculationRequestBody.model_validate_json(body)
        return CalculationRequestBody.model_validate(body)
    except pydantic.ValidationError as exc:
        count = exc.error_count()
        raise MalformedRequest(f"Malformed calculation request: {count} error(s)") from exc


def to_mutation(envelope: MutationEnvelope) -> Mutation:
    return Mutation(
        kind=envelope.mutation_definition_name,
        properties=envelope.mutation_properties,
        mutation_id=envelope.mutation_id,
        actual_at=envelope.actual_at,
        dossier_id=envelope.dossier_id,
    )


def to_calculation_request(body: CalculationRequestBody) -> CalculationRequest:
    return CalculationRequest(
        mutations=[to_mutation(envelope) for envelope in body.mutations],
        tenant_id=body.tenant_id,
    )


def to_json(value: object) -> Any:
    """JSON-compatible rendition of domain values; amounts stay numbers."""

    return _render(to_document(value))


def _render(value: object) -> Any:
    if isinstance(value, dict):
        return {str(key): _render(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_render(item) for item in value]
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return _JSON.dump_python(value, mode="json")


def _patch_document(operations: tuple[PatchOperation, ...]) -> list[dict[str, Any]]:
    document: list[dict[str, Any]] = []
    for operation in operations:
        entry: dict[str, Any] = {"op": operation.op, "path": operation.path}
        if operation.op != "remove":
            entry["value"] = to_json(operation.value)
        document.append(entry)
    return document


def to_response_body(
    request: CalculationRequestBody,
    response: CalculationResponse,
) -> CalculationResponseBody:
    envelopes = request.mutations
    last = response.last_mutation
    metadata = CalculationMetadataBody(
        calculation_id=response.calculation_id,
        tenant_id=response.tenant_id,
        calculation_started_at=response.started_at,
        calculation_completed_at=response.completed_at,
        calculation_duration_ms=response.duration_ms,
        calculation_outcome=response.outcome,
    )
    result = CalculationResultBody(
        messages=[
            CalculationMessageBody(
                id=index,
                level=message.level,
                code=message.code,
                message=message.message,
            )
            for index, message in enumerate(response.messages)
        ],
        mutations=[
            ProcessedMutationBody(
                mutation=envelopes[processed.index],
                calculation_message_indexes=list(processed.message_indexes),
                result=to_json(processed.result),
                forward_patch_to_situation_after_this_mutation=_patch_document(
                    processed.forward_patch
                ),
                backward_patch_to_previous_situation=_patch_document(processed.backward_patch),
            )
            for processed in response.mutations
        ],
        initial_situation=InitialSituationBody(
            actual_at=response.initial_actual_at,
            situation=to_json(response.initial_state.snapshot()),
        ),
        end_situation=EndSituationBody(
            mutation_id=last.mutation.mutation_id,
            mutation_index=last.index,
            actual_at=last.mutation.actual_at or response.started_at.date(),
            situation=to_json(response.final_state.snapshot()),
        ),
    )
    return CalculationResponseBody(calculation_metadata=metadata, calculation_result=result)
