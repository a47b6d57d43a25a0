"""create_dossier: start a new dossier in working state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from pension_engine.domain.errors import ValidationError
from pension_engine.domain.model import Dossier, Person

from .base import BaseMutationHandler, MutationKind, MutationOutcome
from .properties import CreateDossierProperties

if TYPE_CHECKING:
    from pension_engine.domain.model import WorkingState

    from .base import CalculationContext, Mutation

log = getLogger(__name__)


class DuplicateDossierPolicy(StrEnum):
    """What to do when a request creates the same dossier identifier twice."""

    REJECT = "reject"
    OVERWRITE = "overwrite"


@dataclass(frozen=True, slots=True)
class DossierCreated:
    dossier_id: str
    replaced: bool = False


class CreateDossierHandler(BaseMutationHandler[CreateDossierProperties]):
    kind = MutationKind.CREATE_DOSSIER
    properties_model = CreateDossierProperties

    def __init__(
        self, *, on_duplicate: DuplicateDossierPolicy = DuplicateDossierPolicy.REJECT
    ) -> None:
        self.on_duplicate = on_duplicate

    async def _apply(
        self,
        state: WorkingState,
        mutation: Mutation,
        properties: CreateDossierProperties,
        context: CalculationContext,
    ) -> MutationOutcome:
        dossier_id = properties.dossier_id or mutation.dossier_id
        if dossier_id is None or not dossier_id.strip():
            raise ValidationError("dossier_id is required", code="MISSING_DOSSIER_ID")

        replaced = dossier_id in state
        if replaced and self.on_duplicate is DuplicateDossierPolicy.REJECT:
            raise ValidationError(
                f"Dossier {dossier_id} already exists in this request",
                code="DOSSIER_ALREADY_EXISTS",
            )
        if properties.name is not None and not properties.name.strip():
            raise ValidationError("name is empty or blank", code="INVALID_NAME")
        if properties.birth_date is not None and properties.birth_date > context.effective_date(
            mutation
        ):
            raise ValidationError("birth_date is in the future", code="INVALID_BIRTH_DATE")

        if replaced:
            log.info("Overwriting dossier %s created earlier in the request", dossier_id)

        participant = Person(
            person_id=properties.person_id,
            name=properties.name,
            birth_date=properties.birth_date,
        )
        dossier = Dossier(dossier_id=dossier_id, persons=(participant,))
        return MutationOutcome(
            state=state.with_dossier(dossier),
            result=DossierCreated(dossier_id=dossier_id, replaced=replaced),
        )
