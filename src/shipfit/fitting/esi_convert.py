"""
ESI Saved-Fitting Conversion.

ESI saved fittings (GET /characters/{id}/fittings/) are flat item lists:

    {
        "fitting_id": 1,
        "name": "PvE Rifter",
        "description": "",
        "ship_type_id": 587,
        "items": [
            {"type_id": 2873, "flag": "HiSlot0", "quantity": 1},
            {"type_id": 2488, "flag": "DroneBay", "quantity": 2},
        ],
    }

Flags name the slot position; items with flags outside the known set are
classified from their type data instead.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Optional

from ..core.logging import get_logger
from ..models.fitting import FittedModule, ModuleData, SlotType, create_empty_fitting
from .slots import (
    ESI_FLAG_TO_SLOT,
    ESI_SPECIAL_FLAGS,
    classify_type,
    slot_counts_from_ship,
    slot_to_esi_flag,
)

if TYPE_CHECKING:
    from ..models.eve import TypeEntity
    from ..models.fitting import Fitting, Rack
    from ..services.type_data import TypeLookup

logger = get_logger(__name__)


def _target_slot(flag: str, entity: TypeEntity) -> tuple[Optional[SlotType], Optional[int]]:
    """Slot type and preferred index for an item, from its flag or its type."""
    if flag in ESI_FLAG_TO_SLOT:
        return ESI_FLAG_TO_SLOT[flag]
    if flag in ESI_SPECIAL_FLAGS:
        return ESI_SPECIAL_FLAGS[flag], None
    return classify_type(entity), None


def _place_in_rack(rack: Rack, data: ModuleData, slot_type: SlotType, index: Optional[int]) -> bool:
    """Place at index when it is free, else in the first empty slot."""
    if index is None or index >= len(rack) or rack[index] is not None:
        index = next((i for i, module in enumerate(rack) if module is None), None)
    if index is None:
        return False
    rack[index] = FittedModule.place(data, slot_type, index)
    return True


async def esi_fitting_to_local(
    esi_fit: Mapping[str, Any],
    ship: TypeEntity,
    provider: TypeLookup,
) -> tuple[Fitting, list[str]]:
    """
    Convert an ESI saved fitting into a Fitting.

    Args:
        esi_fit: ESI fitting payload
        ship: Ship type of the fitting
        provider: Type data source for item lookups

    Returns:
        Tuple of (fitting, warnings for dropped items)
    """
    items = list(esi_fit.get("items") or [])
    results = await asyncio.gather(
        *(provider.get_type(int(item["type_id"])) for item in items), return_exceptions=True
    )

    warnings: list[str] = []
    placements: list[tuple[TypeEntity, SlotType, Optional[int], int]] = []
    for item, result in zip(items, results):
        type_id = int(item["type_id"])
        flag = item.get("flag", "")
        if isinstance(result, BaseException) or result is None:
            warnings.append(f"Type {type_id} ({flag}) could not be resolved")
            continue
        slot_type, index = _target_slot(flag, result)
        if slot_type is None:
            warnings.append(f"Cannot determine slot for {result.name} ({flag})")
            continue
        placements.append((result, slot_type, index, int(item.get("quantity", 1))))

    counts = slot_counts_from_ship(ship)
    subsystems = sum(1 for _, slot_type, _, _ in placements if slot_type is SlotType.SUBSYSTEM)
    fitting = create_empty_fitting(
        ship_type_id=ship.type_id,
        ship_name=ship.name,
        slot_counts=replace(counts, subsystem=subsystems),
        ship_group_id=ship.group_id,
        name=esi_fit.get("name") or None,
    )
    fitting.description = esi_fit.get("description") or ""

    for entity, slot_type, index, quantity in placements:
        data = ModuleData.from_type(entity)
        if slot_type is SlotType.DRONE:
            for _ in range(quantity):
                fitting.drones.append(FittedModule.place(data, slot_type, len(fitting.drones)))
        elif slot_type is SlotType.CARGO:
            fitting.cargo.append(
                FittedModule.place(data, slot_type, len(fitting.cargo), quantity=quantity)
            )
        elif not _place_in_rack(fitting.rack(slot_type), data, slot_type, index):
            warnings.append(f"No free {slot_type.value} slot for {entity.name}")

    for warning in warnings:
        logger.warning("ESI fitting %s: %s", esi_fit.get("fitting_id"), warning)
    logger.debug(
        "Converted ESI fitting %s (%d items, %d dropped)",
        esi_fit.get("fitting_id"),
        len(items),
        len(warnings),
    )
    return fitting, warnings


def fitting_to_esi_items(fitting: Fitting) -> list[dict[str, Any]]:
    """
    Build the ESI item list for a fitting.

    Rack modules keep their positional flags; drones are grouped per type
    in the drone bay; cargo carries its quantity.
    """
    items: list[dict[str, Any]] = [
        {
            "type_id": module.type_id,
            "flag": slot_to_esi_flag(module.slot_type, module.slot_index),
            "quantity": 1,
        }
        for module in fitting.iter_rack_modules()
    ]

    drone_counts: dict[int, int] = {}
    for drone in fitting.drones:
        drone_counts[drone.type_id] = drone_counts.get(drone.type_id, 0) + 1
    items.extend(
        {"type_id": type_id, "flag": slot_to_esi_flag(SlotType.DRONE, 0), "quantity": count}
        for type_id, count in drone_counts.items()
    )

    items.extend(
        {
            "type_id": item.type_id,
            "flag": slot_to_esi_flag(SlotType.CARGO, 0),
            "quantity": item.quantity,
        }
        for item in fitting.cargo
    )
    return items
