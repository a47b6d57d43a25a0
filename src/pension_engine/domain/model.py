"""Dossier state folded over by the calculation engine.

All entities are frozen; handlers derive new instances with
``dataclasses.replace`` so a failed mutation never leaves partial state behind.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, is_dataclass, replace
from decimal import Decimal
from enum import StrEnum
from typing import TYPE_CHECKING, TypeAlias

from .errors import DossierNotFound, PolicyNotFound

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from datetime import date


class DossierStatus(StrEnum):
    ACTIVE = "ACTIVE"
    RETIRED = "RETIRED"


class PersonRole(StrEnum):
    PARTICIPANT = "PARTICIPANT"


PolicyRef: TypeAlias = int | str


@dataclass(frozen=True, slots=True)
class Person:
    person_id: str | None = None
    name: str | None = None
    birth_date: date | None = None
    role: PersonRole = PersonRole.PARTICIPANT


@dataclass(frozen=True, slots=True)
class Projection:
    date: date
    projected_pension: Decimal


@dataclass(frozen=True, slots=True)
class Policy:
    """One pension entitlement held by a dossier.

    ``salary`` is the accrual basis that indexation adjusts; the benefit
    handlers derive ``attainable_pension`` and ``projections`` from it.
    """

    policy_id: str
    scheme_id: str
    employment_start_date: date
    salary: Decimal = Decimal(0)
    part_time_factor: Decimal = Decimal(1)
    attainable_pension: Decimal | None = None
    projections: tuple[Projection, ...] | None = None

    @property
    def effective_salary(self) -> Decimal:
        return self.salary * self.part_time_factor


@dataclass(frozen=True, slots=True)
class Dossier:
    dossier_id: str
    status: DossierStatus = DossierStatus.ACTIVE
    retirement_date: date | None = None
    persons: tuple[Person, ...] = ()
    policies: tuple[Policy, ...] = ()

    @property
    def participant(self) -> Person | None:
        return next((p for p in self.persons if p.role is PersonRole.PARTICIPANT), None)

    def next_policy_id(self) -> str:
        return f"{self.dossier_id}-{len(self.policies) + 1}"

    def policy_index(self, ref: PolicyRef) -> int:
        """Resolve a zero-based index or a policy id to a position in ``policies``."""

        if isinstance(ref, int):
            if 0 <= ref < len(self.policies):
                return ref
            raise PolicyNotFound(self.dossier_id, ref)
        for index, policy in enumerate(self.policies):
            if policy.policy_id == ref:
                return index
        raise PolicyNotFound(self.dossier_id, ref)

    def policy(self, ref: PolicyRef) -> Policy:
        return self.policies[self.policy_index(ref)]

    def add_policy(self, policy: Policy) -> Dossier:
        return replace(self, policies=(*self.policies, policy))

    def update_policies(self, update: Callable[[Policy], Policy], *, only: set[str]) -> Dossier:
        """Return a copy with ``update`` applied to the policies whose id is in ``only``."""

        policies = tuple(update(p) if p.policy_id in only else p for p in self.policies)
        return replace(self, policies=policies)


@dataclass(frozen=True, slots=True)
class WorkingState:
    """Request-scoped dossiers keyed by identifier, in creation order."""

    dossiers: Mapping[str, Dossier] = field(default_factory=dict[str, Dossier])

    def __contains__(self, dossier_id: object) -> bool:
        return dossier_id in self.dossiers

    def __iter__(self) -> Iterator[Dossier]:
        return iter(self.dossiers.values())

    def get(self, dossier_id: str | None) -> Dossier:
        if dossier_id is None or dossier_id not in self.dossiers:
            raise DossierNotFound(dossier_id)
        return self.dossiers[dossier_id]

    def with_dossier(self, dossier: Dossier) -> WorkingState:
        return WorkingState(dossiers={**self.dossiers, dossier.dossier_id: dossier})

    def snapshot(self) -> dict[str, object]:
        """Return a JSON-shaped copy of the state (dicts and lists only)."""

        return {"dossiers": {key: to_document(value) for key, value in self.dossiers.items()}}


def to_document(value: object) -> object:
    """Unwrap dataclasses, enums, mappings and sequences into dicts and lists.

    Leaves such as ``Decimal`` and ``date`` are kept as they are.
    """

    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_document(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, StrEnum):
        return value.value
    if isinstance(value, Mapping):
        return {key: to_document(item) for key, item in value.items()}
    if isinstance(value, tuple | list):
        return [to_document(item) for item in value]
    return value
