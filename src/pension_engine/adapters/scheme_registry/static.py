"""Rule source used when no scheme registry is configured."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from pension_engine.domain.errors import SchemeNotFound
from pension_engine.domain.rules import default_rule_set

if TYPE_CHECKING:
    from collections.abc import Mapping

    from pension_engine.domain.rules import SchemeRuleSet

log = getLogger(__name__)


class StaticSchemeRuleSource:
    """Serves fixed rule sets from memory.

    Known schemes come from ``rule_sets``; any other identifier gets the
    default rule set unless ``strict`` is set, in which case it is not found.
    """

    def __init__(
        self,
        rule_sets: Mapping[str, SchemeRuleSet] | None = None,
        *,
        strict: bool = False,
    ) -> None:
        self._rule_sets = dict(rule_sets or {})
        self._strict = strict

    async def get(self, scheme_id: str) -> SchemeRuleSet:
        rule_set = self._rule_sets.get(scheme_id)
        if rule_set is not None:
            return rule_set
        if self._strict:
            raise SchemeNotFound(scheme_id)
        log.debug("No registry rule set for scheme %s, using defaults", scheme_id)
        return default_rule_set(scheme_id)

    async def aclose(self) -> None:
        return None
