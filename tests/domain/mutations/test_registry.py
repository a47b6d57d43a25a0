from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from pension_engine.domain.errors import (
    DuplicateHandlerKind,
    MissingHandlerKind,
    RegistryConfigurationError,
    UnknownMutationKind,
)
from pension_engine.domain.mutations import (
    AddPolicyHandler,
    CreateDossierHandler,
    HandlerRegistry,
    MutationKind,
    build_registry,
)

if TYPE_CHECKING:
    from tests.conftest import FakeRuleSource


def test_build_registry_covers_every_kind(rule_source: FakeRuleSource) -> None:
    registry = build_registry(rule_source)

    assert len(registry) == len(MutationKind)
    assert set(registry) == {kind.value for kind in MutationKind}
    assert isinstance(registry.resolve("create_dossier"), CreateDossierHandler)


def test_duplicate_kind_fails_construction() -> None:
    with pytest.raises(DuplicateHandlerKind) as exc:
        HandlerRegistry([AddPolicyHandler(), AddPolicyHandler()])

    assert exc.value.kind == "add_policy"
    assert isinstance(exc.value, RegistryConfigurationError)


def test_missing_required_kind_fails_construction() -> None:
    with pytest.raises(MissingHandlerKind) as exc:
        HandlerRegistry([CreateDossierHandler()], required_kinds=MutationKind)

    assert "add_policy" in exc.value.kinds
    assert "create_dossier" not in exc.value.kinds


def test_resolve_unknown_kind() -> None:
    registry = HandlerRegistry([CreateDossierHandler()])

    with pytest.raises(UnknownMutationKind) as exc:
        registry.resolve("transfer_out")

    assert exc.value.kind == "transfer_out"
    assert exc.value.code == "UNKNOWN_MUTATION"
    assert "transfer_out" not in registry
