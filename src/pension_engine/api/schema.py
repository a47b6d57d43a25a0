"""Wire schemas of the calculation request and response documents."""

from __future__ import annotations

from datetime import date, datetime  # noqa: TC003
from typing import Any
from uuid import UUID  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field


class MutationEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    mutation_id: str | None = None
    mutation_definition_name: str = Field(min_length=1)
    mutation_type: str | None = None
    actual_at: date | None = None
    dossier_id: str | None = None
    mutation_properties: dict[str, Any] = Field(default_factory=dict)


class CalculationInstructions(BaseModel):
    model_config = ConfigDict(extra="ignore")

    mutations: list[MutationEnvelope] | None = None


class CalculationRequestBody(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    tenant_id: str = ""
    calculation_instructions: CalculationInstructions | None = None

    @property
    def mutations(self) -> list[MutationEnvelope]:
        if self.calculation_instructions is None:
            return []
        return self.calculation_instructions.mutations or []


class CalculationMetadataBody(BaseModel):
    calculation_id: UUID
    tenant_id: str
    calculation_started_at: datetime
    calculation_completed_at: datetime
    calculation_duration_ms: int
    calculation_outcome: str


class CalculationMessageBody(BaseModel):
    id: int
    level: str
    code: str
    message: str


class ProcessedMutationBody(BaseModel):
    mutation: MutationEnvelope
    calculation_message_indexes: list[int]
    result: Any = None
    forward_patch_to_situation_after_this_mutation: list[dict[str, Any]]
    backward_patch_to_previous_situation: list[dict[str, Any]]


class InitialSituationBody(BaseModel):
    actual_at: date
    situation: dict[str, Any]


class EndSituationBody(BaseModel):
    mutation_id: str | None
    mutation_index: int
    actual_at: date
    situation: dict[str, Any]


class CalculationResultBody(BaseModel):
    messages: list[CalculationMessageBody]
    mutations: list[ProcessedMutationBody]
    initial_situation: InitialSituationBody
    end_situation: EndSituationBody


class CalculationResponseBody(BaseModel):
    calculation_metadata: CalculationMetadataBody
    calculation_result: CalculationResultBody


class ErrorBody(BaseModel):
    status: int
    message: str
