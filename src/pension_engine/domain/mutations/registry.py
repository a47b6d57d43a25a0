"""Lookup table from mutation kind to the handler that applies it."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pension_engine.domain.errors import (
    DuplicateHandlerKind,
    MissingHandlerKind,
    UnknownMutationKind,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from .base import MutationHandler


class HandlerRegistry:
    """Immutable dispatch table validated when it is built.

    Two handlers claiming one kind, or a required kind without a handler,
    fail construction so a misconfigured service never starts serving.
    """

    def __init__(
        self,
        handlers: Iterable[MutationHandler],
        *,
        required_kinds: Iterable[str] = (),
    ) -> None:
        table: dict[str, MutationHandler] = {}
        for handler in handlers:
            kind = str(handler.kind)
            if kind in table:
                raise DuplicateHandlerKind(kind)
            table[kind] = handler

        missing = frozenset(str(kind) for kind in required_kinds).difference(table)
        if missing:
            raise MissingHandlerKind(missing)

        self._handlers = table

    def resolve(self, kind: str) -> MutationHandler:
        try:
            return self._handlers[kind]
        except KeyError:
            raise UnknownMutationKind(kind) from None

    def __contains__(self, kind: object) -> bool:
        return kind in self._handlers

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)
