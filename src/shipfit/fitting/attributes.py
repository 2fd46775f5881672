"""
Dogma attribute lookup helpers.

Every type carries a sparse id -> value attribute map; absence is normal
and callers always supply the fallback to use.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Protocol


class HasAttributes(Protocol):
    """Anything carrying a dogma attribute map (TypeEntity, FittedModule, ModuleData)."""

    @property
    def attributes(self) -> Mapping[int, float]: ...


class HasEffects(Protocol):
    @property
    def effects(self) -> Iterable[int]: ...


def attr(entity: HasAttributes, attribute_id: int, fallback: float = 0.0) -> float:
    """
    Read a dogma attribute with a fallback.

    Args:
        entity: Ship, module or drone record
        attribute_id: Dogma attribute ID
        fallback: Value returned when the attribute is absent

    Returns:
        Attribute value, or fallback
    """
    value = entity.attributes.get(attribute_id)
    return fallback if value is None else value


def has_effect(entity: HasEffects, effect_id: int) -> bool:
    """Check whether a type carries a dogma effect."""
    return effect_id in entity.effects
