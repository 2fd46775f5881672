"""
Data Models for Ship Fittings.

Defines the fitting aggregate (a ship plus modules placed into typed slots,
drones and cargo) and the module records it owns. All structures serialize
to plain JSON-compatible dicts via to_dict()/from_dict().
"""

from __future__ import annotations

import copy
import uuid
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from ..core.constants import ATTR_VOLUME

if TYPE_CHECKING:
    from .eve import TypeEntity


# =============================================================================
# Enums
# =============================================================================


class SlotType(str, Enum):
    """Slot category a module occupies."""

    HIGH = "high"
    MID = "mid"
    LOW = "low"
    RIG = "rig"
    SUBSYSTEM = "subsystem"
    DRONE = "drone"
    CARGO = "cargo"

    @property
    def is_rack(self) -> bool:
        """True for fixed-size racks (high/mid/low/rig/subsystem)."""
        return self in RACK_SLOT_TYPES

    @property
    def has_fixed_state(self) -> bool:
        """True for racks whose modules are always passive."""
        return self in FIXED_STATE_SLOT_TYPES


RACK_SLOT_TYPES: tuple[SlotType, ...] = (
    SlotType.HIGH,
    SlotType.MID,
    SlotType.LOW,
    SlotType.RIG,
    SlotType.SUBSYSTEM,
)

FIXED_STATE_SLOT_TYPES = frozenset({SlotType.RIG, SlotType.SUBSYSTEM})


class ModuleState(str, Enum):
    """Operational state of a fitted module."""

    ACTIVE = "active"
    PASSIVE = "passive"
    OFFLINE = "offline"

    def next(self) -> ModuleState:
        """Cycle active -> passive -> offline -> active."""
        order = (ModuleState.ACTIVE, ModuleState.PASSIVE, ModuleState.OFFLINE)
        return order[(order.index(self) + 1) % len(order)]


# =============================================================================
# Helpers
# =============================================================================


def generate_id() -> str:
    """Generate a unique instance id for a placement or fitting."""
    return str(uuid.uuid4())


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def _attributes_to_json(attributes: dict[int, float]) -> dict[str, float]:
    return {str(k): v for k, v in attributes.items()}


def _attributes_from_json(data: Optional[dict[Any, Any]]) -> dict[int, float]:
    return {int(k): float(v) for k, v in (data or {}).items()}


# =============================================================================
# Module Models
# =============================================================================


@dataclass(frozen=True)
class Charge:
    """Ammo or script loaded into a module."""

    type_id: int
    name: str
    quantity: int = 1

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {"type_id": self.type_id, "name": self.name, "quantity": self.quantity}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Charge:
        return cls(
            type_id=int(data["type_id"]),
            name=data["name"],
            quantity=int(data.get("quantity", 1)),
        )


@dataclass(frozen=True)
class ModuleData:
    """
    Template for placing a module, drone or cargo item.

    Carries the type's flattened attributes and effects. Every placement
    creates a new FittedModule with its own instance id and its own copy
    of these values.
    """

    type_id: int
    name: str
    group_id: Optional[int] = None
    category_id: Optional[int] = None
    attributes: dict[int, float] = field(default_factory=dict)
    effects: tuple[int, ...] = ()
    state: ModuleState = ModuleState.ACTIVE
    charge: Optional[Charge] = None

    @classmethod
    def from_type(
        cls,
        entity: TypeEntity,
        state: ModuleState = ModuleState.ACTIVE,
        charge: Optional[Charge] = None,
    ) -> ModuleData:
        """
        Build placement data from a TypeEntity.

        The type's volume is copied into the attribute map when the type
        does not carry the volume attribute, so drone bay usage can be
        read like any other attribute.
        """
        attributes = dict(entity.attributes)
        if ATTR_VOLUME not in attributes and entity.volume is not None:
            attributes[ATTR_VOLUME] = entity.volume
        return cls(
            type_id=entity.type_id,
            name=entity.name,
            group_id=entity.group_id,
            category_id=entity.category_id,
            attributes=attributes,
            effects=tuple(entity.effects),
            state=state,
            charge=charge,
        )


@dataclass
class FittedModule:
    """
    A module instance placed into a fitting.

    slot_index equals the module's position in its rack or list.
    Modules in rig and subsystem racks are always passive.
    """

    id: str
    type_id: int
    name: str
    slot_type: SlotType
    slot_index: int
    state: ModuleState = ModuleState.ACTIVE
    charge: Optional[Charge] = None
    group_id: Optional[int] = None
    category_id: Optional[int] = None
    attributes: dict[int, float] = field(default_factory=dict)
    effects: list[int] = field(default_factory=list)
    quantity: int = 1

    @classmethod
    def place(
        cls, data: ModuleData, slot_type: SlotType, slot_index: int, quantity: int = 1
    ) -> FittedModule:
        """Create a fresh instance of `data` at the given position."""
        state = ModuleState.PASSIVE if slot_type.has_fixed_state else data.state
        return cls(
            id=generate_id(),
            type_id=data.type_id,
            name=data.name,
            slot_type=slot_type,
            slot_index=slot_index,
            state=state,
            charge=data.charge,
            group_id=data.group_id,
            category_id=data.category_id,
            attributes=dict(data.attributes),
            effects=list(data.effects),
            quantity=quantity,
        )

    def to_module_data(self) -> ModuleData:
        """Placement template equivalent to this instance."""
        return ModuleData(
            type_id=self.type_id,
            name=self.name,
            group_id=self.group_id,
            category_id=self.category_id,
            attributes=dict(self.attributes),
            effects=tuple(self.effects),
            state=self.state,
            charge=self.charge,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "type_id": self.type_id,
            "name": self.name,
            "slot_type": self.slot_type.value,
            "slot_index": self.slot_index,
            "state": self.state.value,
            "charge": self.charge.to_dict() if self.charge else None,
            "group_id": self.group_id,
            "category_id": self.category_id,
            "attributes": _attributes_to_json(self.attributes),
            "effects": list(self.effects),
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FittedModule:
        charge = data.get("charge")
        return cls(
            id=data.get("id") or generate_id(),
            type_id=int(data["type_id"]),
            name=data["name"],
            slot_type=SlotType(data["slot_type"]),
            slot_index=int(data.get("slot_index", 0)),
            state=ModuleState(data.get("state", ModuleState.ACTIVE.value)),
            charge=Charge.from_dict(charge) if charge else None,
            group_id=data.get("group_id"),
            category_id=data.get("category_id"),
            attributes=_attributes_from_json(data.get("attributes")),
            effects=[int(e) for e in data.get("effects") or []],
            quantity=int(data.get("quantity", 1)),
        )


# =============================================================================
# Fitting Aggregate
# =============================================================================


@dataclass(frozen=True)
class SlotCounts:
    """Rack sizes for a fitting."""

    high: int
    mid: int
    low: int
    rig: int
    subsystem: int = 0

    def for_slot(self, slot_type: SlotType) -> int:
        """Rack size for a rack slot type."""
        if slot_type is SlotType.HIGH:
            return self.high
        if slot_type is SlotType.MID:
            return self.mid
        if slot_type is SlotType.LOW:
            return self.low
        if slot_type is SlotType.RIG:
            return self.rig
        if slot_type is SlotType.SUBSYSTEM:
            return self.subsystem
        raise ValueError(f"{slot_type.value} is not a rack slot type")


Rack = list[Optional[FittedModule]]


@dataclass
class Fitting:
    """
    A ship loadout.

    Rack lengths are fixed when the fitting is created and only change
    when the ship is re-selected. Drone and cargo entries are re-indexed
    on removal so slot_index always matches list position.
    """

    id: str
    name: str
    ship_type_id: int
    ship_name: str
    ship_group_id: Optional[int] = None
    description: str = ""
    tags: list[str] = field(default_factory=list)
    high_slots: Rack = field(default_factory=list)
    mid_slots: Rack = field(default_factory=list)
    low_slots: Rack = field(default_factory=list)
    rig_slots: Rack = field(default_factory=list)
    subsystem_slots: Rack = field(default_factory=list)
    drones: list[FittedModule] = field(default_factory=list)
    cargo: list[FittedModule] = field(default_factory=list)
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)

    def rack(self, slot_type: SlotType) -> Rack:
        """
        Return the rack list for a rack slot type.

        Raises:
            ValueError: If slot_type is drone or cargo
        """
        if slot_type is SlotType.HIGH:
            return self.high_slots
        if slot_type is SlotType.MID:
            return self.mid_slots
        if slot_type is SlotType.LOW:
            return self.low_slots
        if slot_type is SlotType.RIG:
            return self.rig_slots
        if slot_type is SlotType.SUBSYSTEM:
            return self.subsystem_slots
        raise ValueError(f"{slot_type.value} is a list category, not a rack")

    def item_list(self, slot_type: SlotType) -> list[FittedModule]:
        """Return the drone or cargo list."""
        if slot_type is SlotType.DRONE:
            return self.drones
        if slot_type is SlotType.CARGO:
            return self.cargo
        raise ValueError(f"{slot_type.value} is a rack, not a list category")

    @property
    def slot_counts(self) -> SlotCounts:
        return SlotCounts(
            high=len(self.high_slots),
            mid=len(self.mid_slots),
            low=len(self.low_slots),
            rig=len(self.rig_slots),
            subsystem=len(self.subsystem_slots),
        )

    def iter_rack_modules(self) -> Iterator[FittedModule]:
        """Yield every fitted rack module (empty slots skipped)."""
        for slot_type in RACK_SLOT_TYPES:
            for module in self.rack(slot_type):
                if module is not None:
                    yield module

    def iter_modules(self) -> Iterator[FittedModule]:
        """Yield rack modules followed by drones and cargo."""
        yield from self.iter_rack_modules()
        yield from self.drones
        yield from self.cargo

    def reindex_lists(self) -> None:
        """Make drone and cargo slot_index equal their list position."""
        for items in (self.drones, self.cargo):
            for i, item in enumerate(items):
                item.slot_index = i

    def touch(self, now: Optional[str] = None) -> None:
        self.updated_at = now or utc_now_iso()

    def clone(self) -> Fitting:
        """Deep copy with no module objects shared with the original."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""

        def rack_to_json(rack: Rack) -> list[Optional[dict]]:
            return [m.to_dict() if m is not None else None for m in rack]

        return {
            "id": self.id,
            "name": self.name,
            "ship_type_id": self.ship_type_id,
            "ship_name": self.ship_name,
            "ship_group_id": self.ship_group_id,
            "description": self.description,
            "tags": list(self.tags),
            "high_slots": rack_to_json(self.high_slots),
            "mid_slots": rack_to_json(self.mid_slots),
            "low_slots": rack_to_json(self.low_slots),
            "rig_slots": rack_to_json(self.rig_slots),
            "subsystem_slots": rack_to_json(self.subsystem_slots),
            "drones": [d.to_dict() for d in self.drones],
            "cargo": [c.to_dict() for c in self.cargo],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Fitting:
        if not isinstance(data, dict):
            raise ValueError("Fitting document must be a JSON object")

        def rack_from_json(items: Optional[list]) -> Rack:
            return [FittedModule.from_dict(m) if m else None for m in items or []]

        now = utc_now_iso()
        return cls(
            id=data.get("id") or generate_id(),
            name=data.get("name", ""),
            ship_type_id=int(data["ship_type_id"]),
            ship_name=data.get("ship_name", ""),
            ship_group_id=data.get("ship_group_id"),
            description=data.get("description") or "",
            tags=list(data.get("tags") or []),
            high_slots=rack_from_json(data.get("high_slots")),
            mid_slots=rack_from_json(data.get("mid_slots")),
            low_slots=rack_from_json(data.get("low_slots")),
            rig_slots=rack_from_json(data.get("rig_slots")),
            subsystem_slots=rack_from_json(data.get("subsystem_slots")),
            drones=[FittedModule.from_dict(d) for d in data.get("drones") or []],
            cargo=[FittedModule.from_dict(c) for c in data.get("cargo") or []],
            created_at=data.get("created_at") or now,
            updated_at=data.get("updated_at") or now,
        )


def create_empty_fitting(
    ship_type_id: int,
    ship_name: str,
    slot_counts: SlotCounts,
    ship_group_id: Optional[int] = None,
    name: Optional[str] = None,
) -> Fitting:
    """
    Create a fitting with empty racks sized by slot_counts.

    Args:
        ship_type_id: Ship type ID
        ship_name: Ship display name
        slot_counts: Rack sizes
        ship_group_id: Ship group ID, if known
        name: Fit name (default: "New <ship name>")

    Returns:
        Empty Fitting
    """
    now = utc_now_iso()
    return Fitting(
        id=generate_id(),
        name=name if name is not None else f"New {ship_name}",
        ship_type_id=ship_type_id,
        ship_name=ship_name,
        ship_group_id=ship_group_id,
        high_slots=[None] * slot_counts.high,
        mid_slots=[None] * slot_counts.mid,
        low_slots=[None] * slot_counts.low,
        rig_slots=[None] * slot_counts.rig,
        subsystem_slots=[None] * slot_counts.subsystem,
        created_at=now,
        updated_at=now,
    )
