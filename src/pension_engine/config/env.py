"""Environment variable loaders for configuration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Iterable


def optional_env(name: str) -> str | None:
    """Return the stripped value of ``name``, or ``None`` when unset or blank."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def float_env(name: str, default: float | None = None, *, minimum: float = 0.0) -> float | None:
    """Parse ``name`` as a float strictly greater than ``minimum``."""

    raw = optional_env(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc
    if value <= minimum:
        raise ConfigurationError(f"{name} must be greater than {minimum:g}, got {raw!r}")
    return value


def int_env(name: str, default: int | None = None, *, minimum: int = 0) -> int | None:
    """Parse ``name`` as an integer of at least ``minimum``."""

    raw = optional_env(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ConfigurationError(f"{name} must be at least {minimum}, got {raw!r}")
    return value


def choice_env(name: str, choices: Iterable[str], default: str) -> str:
    """Return the lower-cased value of ``name`` if it is one of ``choices``."""

    allowed = tuple(choices)
    raw = optional_env(name)
    if raw is None:
        return default
    value = raw.lower()
    if value not in allowed:
        raise ConfigurationError(
            f"{name} must be one of {', '.join(allowed)}, got {raw!r}"
        )
    return value
