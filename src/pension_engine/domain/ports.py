"""Ports implemented by adapters."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .rules import SchemeRuleSet


@runtime_checkable
class SchemeRuleSource(Protocol):
    """Asynchronous lookup of a scheme's rule set.

    Implementations raise ``SchemeNotFound`` for identifiers the upstream does
    not know and ``ExternalServiceError`` for transport or upstream failures.
    ``aclose`` releases connections held across lookups.
    """

    async def get(self, scheme_id: str) -> SchemeRuleSet: ...

    async def aclose(self) -> None: ...


__all__ = ["SchemeRuleSource"]
