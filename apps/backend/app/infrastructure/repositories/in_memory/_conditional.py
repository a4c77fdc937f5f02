"""
Helpers compartidos por los repositorios in-memory de identidades.

apply_changes replica la semántica de un UPDATE ... WHERE <expected>:
valida las claves, compara los valores esperados y devuelve una copia nueva.
"""

from __future__ import annotations

import copy
from dataclasses import replace
from typing import Any, Mapping, TypeVar

from ....crosscutting.exceptions import StaleRecordError

T = TypeVar("T")


def check_fields(changes: Mapping[str, Any], allowed: frozenset[str]) -> None:
    unknown = set(changes) - allowed
    if unknown:
        raise ValueError(f"Campos no actualizables: {sorted(unknown)}")


def apply_changes(
    current: T,
    *,
    changes: Mapping[str, Any],
    expected: Mapping[str, Any] | None,
    allowed: frozenset[str],
    now,
) -> T:
    check_fields(changes, allowed)
    for name, value in (expected or {}).items():
        if getattr(current, name) != value:
            raise StaleRecordError(
                f"{type(current).__name__}.{name} cambió concurrentemente"
            )
    return replace(current, **dict(changes), updated_at=now)


def snapshot(entity: T) -> T:
    """Copia profunda: nada mutable se comparte entre el repo y el caller."""
    return copy.deepcopy(entity)
