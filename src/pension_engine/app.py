"""Application wiring entry points."""

from __future__ import annotations

import asyncio
from contextlib import aclosing
from logging import getLogger
from typing import TYPE_CHECKING, Any

from pension_engine.adapters.scheme_registry import build_scheme_rule_source
from pension_engine.api import handle_calculation_request
from pension_engine.config import get_engine_config, get_scheme_registry_config
from pension_engine.domain.engine import CalculationEngine
from pension_engine.domain.mutations import build_registry

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from datetime import datetime

    from pension_engine.api import BoundaryResponse
    from pension_engine.config import EngineConfig, SchemeRegistryConfig
    from pension_engine.domain.ports import SchemeRuleSource
    from pension_engine.domain.rules import SchemeRuleSet

log = getLogger(__name__)


def build_rule_source(config: SchemeRegistryConfig | None = None) -> SchemeRuleSource:
    registry_config = config or get_scheme_registry_config()
    if registry_config.enabled:
        log.info("Using scheme registry at %s", registry_config.base_url)
    else:
        log.info("No scheme registry configured; using default rule sets")
    return build_scheme_rule_source(registry_config)


def build_engine(
    *,
    rule_source: SchemeRuleSource | None = None,
    engine_config: EngineConfig | None = None,
    clock: Callable[[], datetime] | None = None,
) -> CalculationEngine:
    """Wire handlers, registry and rule source into an engine.

    Fails at construction if any built-in mutation kind has no handler.
    """

    effective_config = engine_config or get_engine_config()
    registry = build_registry(
        rule_source or build_rule_source(),
        on_duplicate_dossier=effective_config.duplicate_dossier,
    )
    if clock is None:
        return CalculationEngine(registry)
    return CalculationEngine(registry, clock=clock)


def calculate(
    body: Mapping[str, Any] | str | bytes,
    *,
    engine: CalculationEngine | None = None,
) -> BoundaryResponse:
    """Process one calculation request document to completion.

    Without an ``engine`` one is wired from the environment, and its rule source
    is closed once the request finishes.
    """

    if engine is not None:
        return asyncio.run(handle_calculation_request(body, engine=engine))
    rule_source = build_rule_source()
    return asyncio.run(
        _calculate_closing(body, build_engine(rule_source=rule_source), rule_source)
    )


async def _calculate_closing(
    body: Mapping[str, Any] | str | bytes,
    engine: CalculationEngine,
    rule_source: SchemeRuleSource,
) -> BoundaryResponse:
    async with aclosing(rule_source):
        return await handle_calculation_request(body, engine=engine)


def fetch_scheme(scheme_id: str, *, rule_source: SchemeRuleSource | None = None) -> SchemeRuleSet:
    """Look up a single scheme's rule set through the given or configured source.

    The source is closed afterwards.
    """

    source = rule_source or build_rule_source()
    return asyncio.run(_fetch_closing(source, scheme_id))


async def _fetch_closing(source: SchemeRuleSource, scheme_id: str) -> SchemeRuleSet:
    async with aclosing(source):
        return await source.get(scheme_id)
