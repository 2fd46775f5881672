"""
Pydantic models for EVE type data.

TypeEntity is the immutable ship/module/skill definition returned by the
Type Data Provider. Dogma attributes are flattened into an id -> value
mapping and dogma effects into a list of effect ids.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Base Model
# =============================================================================


class EveModel(BaseModel):
    """
    Base model for type data fetched from ESI.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")


# =============================================================================
# Type Models
# =============================================================================


class TypeEntity(EveModel):
    """
    Ship, module, charge, drone or skill definition.

    Absent attributes are expected; use shipfit.fitting.attributes.attr()
    to read them with a fallback.
    """

    type_id: int = Field(ge=1, description="EVE type ID")
    name: str = Field(description="Display name")
    description: str = Field(default="", description="Type description")
    group_id: int = Field(ge=0, description="Group ID")
    category_id: int | None = Field(default=None, description="Category ID (resolved via group)")
    mass: float | None = Field(default=None, ge=0, description="Mass in kg")
    volume: float | None = Field(default=None, ge=0, description="Volume in m³")
    capacity: float | None = Field(default=None, ge=0, description="Cargo capacity in m³")
    published: bool = Field(default=True, description="Whether the type is published")
    attributes: dict[int, float] = Field(
        default_factory=dict, description="Dogma attribute id -> value"
    )
    effects: list[int] = Field(default_factory=list, description="Dogma effect ids")

    @classmethod
    def from_esi(cls, payload: dict[str, Any], category_id: int | None = None) -> TypeEntity:
        """
        Build a TypeEntity from an ESI /universe/types/{id}/ payload.

        Args:
            payload: Raw JSON dict from ESI
            category_id: Category resolved from the type's group, if known

        Returns:
            TypeEntity with flattened attributes and effects
        """
        attributes = {
            int(entry["attribute_id"]): float(entry["value"])
            for entry in payload.get("dogma_attributes") or []
        }
        effects = [int(entry["effect_id"]) for entry in payload.get("dogma_effects") or []]

        return cls(
            type_id=payload["type_id"],
            name=payload.get("name", ""),
            description=payload.get("description", ""),
            group_id=payload.get("group_id", 0),
            category_id=category_id if category_id is not None else payload.get("category_id"),
            mass=payload.get("mass"),
            volume=payload.get("volume"),
            capacity=payload.get("capacity"),
            published=payload.get("published", True),
            attributes=attributes,
            effects=effects,
        )

    def with_category(self, category_id: int | None) -> TypeEntity:
        """Return a copy carrying the given category id."""
        return self.model_copy(update={"category_id": category_id})


class GroupEntity(EveModel):
    """Group classification (e.g., Frigate, Projectile Weapon)."""

    group_id: int = Field(ge=0, description="Group ID")
    name: str = Field(description="Group name")
    category_id: int = Field(ge=0, description="Parent category ID")
    published: bool = Field(default=True, description="Whether the group is published")

    @classmethod
    def from_esi(cls, payload: dict[str, Any]) -> GroupEntity:
        """Build a GroupEntity from an ESI /universe/groups/{id}/ payload."""
        return cls(
            group_id=payload["group_id"],
            name=payload.get("name", ""),
            category_id=payload.get("category_id", 0),
            published=payload.get("published", True),
        )
