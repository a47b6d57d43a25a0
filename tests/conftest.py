from __future__ import annotations

from datetime import UTC, date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

import pytest

from pension_engine.domain.engine import CalculationEngine
from pension_engine.domain.errors import SchemeNotFound
from pension_engine.domain.model import Dossier, Person, Policy, WorkingState
from pension_engine.domain.mutations import CalculationContext, build_registry
from pension_engine.domain.rules import SchemeRuleSet, default_rule_set

if TYPE_CHECKING:
    from collections.abc import Iterable

FIXED_NOW = datetime(2025, 1, 1, 9, 30, tzinfo=UTC)

_ENV_VARS = (
    "SCHEME_REGISTRY_URL",
    "SCHEME_REGISTRY_TIMEOUT_SECONDS",
    "SCHEME_REGISTRY_RETRIES",
    "SCHEME_REGISTRY_CACHE_TTL_SECONDS",
    "SCHEME_REGISTRY_CACHE_BACKEND",
    "SCHEME_REGISTRY_MAX_CALLS_PER_SECOND",
    "PENSION_ENGINE_DUPLICATE_DOSSIER",
    "PENSION_ENGINE_DATA_DIR",
)


class FakeRuleSource:
    """In-memory rule source that records every lookup."""

    def __init__(
        self,
        rule_sets: dict[str, SchemeRuleSet] | None = None,
        *,
        missing: Iterable[str] = (),
    ) -> None:
        self.rule_sets = dict(rule_sets or {})
        self.missing = set(missing)
        self.calls: list[str] = []
        self.closed = False

    async def get(self, scheme_id: str) -> SchemeRuleSet:
        self.calls.append(scheme_id)
        if scheme_id in self.missing:
            raise SchemeNotFound(scheme_id)
        return self.rule_sets.get(scheme_id) or default_rule_set(scheme_id)

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def rule_source() -> FakeRuleSource:
    return FakeRuleSource()


@pytest.fixture
def engine(rule_source: FakeRuleSource) -> CalculationEngine:
    return CalculationEngine(build_registry(rule_source), clock=lambda: FIXED_NOW)


@pytest.fixture
def context() -> CalculationContext:
    return CalculationContext(today=FIXED_NOW.date())


@pytest.fixture
def policy() -> Policy:
    return Policy(
        policy_id="D1-1",
        scheme_id="NL-ABC",
        employment_start_date=date(2000, 1, 1),
        salary=Decimal(50000),
    )


@pytest.fixture
def state(policy: Policy) -> WorkingState:
    dossier = Dossier(
        dossier_id="D1",
        persons=(Person(person_id="P1", name="Jan Jansen"),),
        policies=(policy,),
    )
    return WorkingState().with_dossier(dossier)
