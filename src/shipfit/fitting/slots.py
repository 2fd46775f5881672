"""
Slot-Type Classification and Slot Layout.

Decides which rack a module type belongs to (from its category, group or
dogma effects), derives a new fitting's rack sizes from ship attributes,
and maps between slot positions and ESI inventory flags.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Optional

from ..core.constants import (
    ATTR_HI_SLOTS,
    ATTR_LOW_SLOTS,
    ATTR_MED_SLOTS,
    CATEGORY_CHARGE,
    CATEGORY_DRONE,
    CATEGORY_SUBSYSTEM,
    DEFAULT_HIGH_SLOTS,
    DEFAULT_LOW_SLOTS,
    DEFAULT_MID_SLOTS,
    DEFAULT_RIG_SLOTS,
    EFFECT_HIGH_SLOT,
    EFFECT_LOW_SLOT,
    EFFECT_MED_SLOT,
    EFFECT_RIG_SLOT,
    EFFECT_SUBSYSTEM,
    MAX_RACK_SLOTS,
)
from ..models.eve import TypeEntity
from ..models.fitting import SlotCounts, SlotType
from .attributes import attr

# =============================================================================
# Group Table
# =============================================================================

# Module group -> slot type for common groups
MODULE_SLOT_BY_GROUP: dict[int, SlotType] = {
    # High slot modules
    53: SlotType.HIGH,  # Smart Bomb
    54: SlotType.HIGH,  # Projectile Weapon
    55: SlotType.HIGH,  # Energy Weapon
    56: SlotType.HIGH,  # Hybrid Weapon
    74: SlotType.HIGH,  # Mining Laser
    76: SlotType.HIGH,  # Tractor Beam
    77: SlotType.HIGH,  # Salvager
    85: SlotType.HIGH,  # Missile Launcher
    89: SlotType.HIGH,  # Bomb Launcher
    509: SlotType.HIGH,  # Siege Module
    524: SlotType.HIGH,  # Clone Bay
    535: SlotType.HIGH,  # Cynosural Field
    652: SlotType.HIGH,  # Energy Neutralizer
    # Mid slot modules
    59: SlotType.MID,  # Shield Hardener
    60: SlotType.MID,  # Shield Booster
    61: SlotType.MID,  # Shield Transporter
    63: SlotType.MID,  # Cap Recharger
    64: SlotType.MID,  # Afterburner
    65: SlotType.MID,  # Propulsion Module
    66: SlotType.MID,  # Warp Disruptor
    67: SlotType.MID,  # Stasis Webifier
    68: SlotType.MID,  # Target Painter
    71: SlotType.MID,  # ECM
    72: SlotType.MID,  # Sensor Dampener
    73: SlotType.MID,  # Tracking Disruptor
    # Low slot modules
    42: SlotType.LOW,  # Armor Hardener
    43: SlotType.LOW,  # Armor Repairer
    44: SlotType.LOW,  # Armor Plating
    45: SlotType.LOW,  # Damage Control
    46: SlotType.LOW,  # Nanofiber
    47: SlotType.LOW,  # Overdrive
    48: SlotType.LOW,  # Power Diagnostic
    49: SlotType.LOW,  # Reactor Control
    52: SlotType.LOW,  # Gyrostabilizer
    # Rigs
    773: SlotType.RIG,  # Armor Rig
    774: SlotType.RIG,  # Shield Rig
    775: SlotType.RIG,  # Missile Rig
    776: SlotType.RIG,  # Projectile Rig
    # Subsystems
    954: SlotType.SUBSYSTEM,
    955: SlotType.SUBSYSTEM,
    956: SlotType.SUBSYSTEM,
    957: SlotType.SUBSYSTEM,
    958: SlotType.SUBSYSTEM,
}

# Effect checks run in this order
SLOT_EFFECTS: tuple[tuple[int, SlotType], ...] = (
    (EFFECT_HIGH_SLOT, SlotType.HIGH),
    (EFFECT_MED_SLOT, SlotType.MID),
    (EFFECT_LOW_SLOT, SlotType.LOW),
    (EFFECT_RIG_SLOT, SlotType.RIG),
    (EFFECT_SUBSYSTEM, SlotType.SUBSYSTEM),
)


# =============================================================================
# Classification
# =============================================================================


def slot_type_from_effects(effect_ids: Iterable[int]) -> Optional[SlotType]:
    """Rack slot type from dogma effects, or None if no slot effect is present."""
    effects = set(effect_ids)
    for effect_id, slot_type in SLOT_EFFECTS:
        if effect_id in effects:
            return slot_type
    return None


def slot_type_from_group_id(group_id: Optional[int]) -> Optional[SlotType]:
    """Rack slot type from the group table, or None for unlisted groups."""
    if group_id is None:
        return None
    return MODULE_SLOT_BY_GROUP.get(group_id)


def classify_slot(
    category_id: Optional[int],
    group_id: Optional[int],
    effect_ids: Iterable[int] = (),
) -> Optional[SlotType]:
    """
    Classify a type into a slot category.

    Drone and subsystem categories win, then the group table, then the
    dogma effects.

    Returns:
        SlotType, or None when the type cannot be classified
    """
    if category_id == CATEGORY_DRONE:
        return SlotType.DRONE
    if category_id == CATEGORY_SUBSYSTEM:
        return SlotType.SUBSYSTEM

    by_group = slot_type_from_group_id(group_id)
    if by_group is not None:
        return by_group

    return slot_type_from_effects(effect_ids)


def classify_type(entity: TypeEntity) -> Optional[SlotType]:
    """classify_slot() for a TypeEntity; charges classify as cargo."""
    if entity.category_id == CATEGORY_CHARGE:
        return SlotType.CARGO
    return classify_slot(entity.category_id, entity.group_id, entity.effects)


# =============================================================================
# Slot Layout
# =============================================================================


def slot_counts_from_ship(ship: TypeEntity) -> SlotCounts:
    """
    Derive rack sizes for a new fitting from ship attributes.

    High/mid/low are clamped to 8 with fallbacks 8/5/5; rigs are fixed at 3.
    """
    return SlotCounts(
        high=min(int(attr(ship, ATTR_HI_SLOTS, DEFAULT_HIGH_SLOTS)), MAX_RACK_SLOTS),
        mid=min(int(attr(ship, ATTR_MED_SLOTS, DEFAULT_MID_SLOTS)), MAX_RACK_SLOTS),
        low=min(int(attr(ship, ATTR_LOW_SLOTS, DEFAULT_LOW_SLOTS)), MAX_RACK_SLOTS),
        rig=DEFAULT_RIG_SLOTS,
        subsystem=0,
    )


# =============================================================================
# ESI Inventory Flags
# =============================================================================

FLAG_PREFIXES: dict[SlotType, str] = {
    SlotType.HIGH: "HiSlot",
    SlotType.MID: "MedSlot",
    SlotType.LOW: "LoSlot",
    SlotType.RIG: "RigSlot",
    SlotType.SUBSYSTEM: "SubSystemSlot",
}

# Positional flags HiSlot0..7 etc.
ESI_FLAG_TO_SLOT: dict[str, tuple[SlotType, int]] = {
    f"{prefix}{index}": (slot_type, index)
    for slot_type, prefix in FLAG_PREFIXES.items()
    for index in range(MAX_RACK_SLOTS)
}

# Flags without a position
ESI_SPECIAL_FLAGS: dict[str, SlotType] = {
    "DroneBay": SlotType.DRONE,
    "FighterBay": SlotType.DRONE,
    "Cargo": SlotType.CARGO,
}


def slot_to_esi_flag(slot_type: SlotType, index: int) -> str:
    """ESI inventory flag for a slot position."""
    if slot_type is SlotType.DRONE:
        return "DroneBay"
    if slot_type is SlotType.CARGO:
        return "Cargo"
    return f"{FLAG_PREFIXES[slot_type]}{index}"
