"""Calculation engine configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from pension_engine.domain.mutations import DuplicateDossierPolicy

from .env import choice_env


@dataclass(frozen=True, slots=True)
class EngineConfig:
    duplicate_dossier: DuplicateDossierPolicy = DuplicateDossierPolicy.REJECT


def get_engine_config() -> EngineConfig:
    policy = choice_env(
        "PENSION_ENGINE_DUPLICATE_DOSSIER",
        (member.value for member in DuplicateDossierPolicy),
        DuplicateDossierPolicy.REJECT.value,
    )
    return EngineConfig(duplicate_dossier=DuplicateDossierPolicy(policy))
