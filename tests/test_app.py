from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import TYPE_CHECKING

import pytest

from pension_engine.adapters.scheme_registry import HttpSchemeRuleSource, StaticSchemeRuleSource
from pension_engine.app import build_engine, build_rule_source, calculate, fetch_scheme
from pension_engine.config import ConfigurationError, EngineConfig
from pension_engine.domain.engine import CalculationRequest
from pension_engine.domain.errors import ValidationError
from pension_engine.domain.mutations import DuplicateDossierPolicy, Mutation
from pension_engine.domain.rules import SchemeRuleSet

if TYPE_CHECKING:
    from pathlib import Path

    from pension_engine.domain.engine import CalculationEngine
    from tests.conftest import FakeRuleSource


def test_rule_source_follows_configuration(monkeypatch: pytest.MonkeyPatch) -> None:
    assert isinstance(build_rule_source(), StaticSchemeRuleSource)

    monkeypatch.setenv("SCHEME_REGISTRY_URL", "https://registry.test")
    assert isinstance(build_rule_source(), HttpSchemeRuleSource)


def test_invalid_configuration_surfaces_at_wiring(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SCHEME_REGISTRY_RETRIES", "many")

    with pytest.raises(ConfigurationError):
        build_engine()


def test_duplicate_dossier_policy_is_wired(rule_source: FakeRuleSource) -> None:
    duplicate = [
        Mutation(kind="create_dossier", properties={"dossier_id": "D1"}, mutation_id="m1"),
        Mutation(kind="create_dossier", properties={"dossier_id": "D1"}, mutation_id="m2"),
    ]
    strict = build_engine(rule_source=rule_source)
    lenient = build_engine(
        rule_source=rule_source,
        engine_config=EngineConfig(duplicate_dossier=DuplicateDossierPolicy.OVERWRITE),
    )

    with pytest.raises(ValidationError) as exc:
        asyncio.run(strict.process(CalculationRequest(mutations=duplicate)))
    response = asyncio.run(lenient.process(CalculationRequest(mutations=duplicate)))

    assert exc.value.code == "DOSSIER_ALREADY_EXISTS"
    assert "D1" in response.final_state


def test_calculate_accepts_raw_json(engine: CalculationEngine) -> None:
    body = (
        '{"tenant_id": "t", "calculation_instructions": {"mutations": ['
        '{"mutation_id": "m1", "mutation_definition_name": "create_dossier",'
        ' "mutation_type": "DOSSIER", "actual_at": "2025-01-01",'
        ' "mutation_properties": {"dossier_id": "D1"}}]}}'
    )

    response = calculate(body, engine=engine)

    assert response.status == 200
    assert response.payload["calculation_result"]["end_situation"]["mutation_id"] == "m1"


def test_fetch_scheme_uses_given_source(rule_source: FakeRuleSource) -> None:
    rule_source.rule_sets["NL-XYZ"] = SchemeRuleSet(
        scheme_id="NL-XYZ", accrual_rate=Decimal("0.015")
    )

    rule_set = fetch_scheme("NL-XYZ", rule_source=rule_source)

    assert rule_set.accrual_rate == Decimal("0.015")
    assert rule_source.calls == ["NL-XYZ"]
    assert rule_source.closed


def test_sqlite_cache_configuration_builds_client(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("SCHEME_REGISTRY_URL", "https://registry.test")
    monkeypatch.setenv("SCHEME_REGISTRY_CACHE_TTL_SECONDS", "60")
    monkeypatch.setenv("PENSION_ENGINE_DATA_DIR", str(tmp_path))

    assert isinstance(build_rule_source(), HttpSchemeRuleSource)


def test_calculate_closes_the_rule_source_it_builds(
    monkeypatch: pytest.MonkeyPatch, rule_source: FakeRuleSource
) -> None:
    monkeypatch.setattr("pension_engine.app.build_rule_source", lambda: rule_source)
    body = {
        "tenant_id": "t",
        "calculation_instructions": {
            "mutations": [
                {
                    "mutation_id": "m1",
                    "mutation_definition_name": "create_dossier",
                    "mutation_type": "DOSSIER",
                    "actual_at": "2025-01-01",
                    "mutation_properties": {"dossier_id": "D1"},
                }
            ]
        },
    }

    response = calculate(body)

    assert response.status == 200
    assert rule_source.closed
