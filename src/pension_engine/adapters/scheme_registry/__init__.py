"""Scheme rule source adapters."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .client import HttpSchemeRuleSource
from .static import StaticSchemeRuleSource

if TYPE_CHECKING:
    from pension_engine.config.scheme_registry import SchemeRegistryConfig
    from pension_engine.domain.ports import SchemeRuleSource


def build_scheme_rule_source(config: SchemeRegistryConfig) -> SchemeRuleSource:
    """HTTP source when a registry URL is configured, the static default otherwise."""

    if config.enabled:
        return HttpSchemeRuleSource(config=config)
    return StaticSchemeRuleSource()


__all__ = ["HttpSchemeRuleSource", "StaticSchemeRuleSource", "build_scheme_rule_source"]
